"""Supabase JWT validation and the FastAPI dependencies built on it."""

import hmac
from typing import Optional

from fastapi import Header, HTTPException, Request
from supabase import Client

from genjobs.jobs.errors import AuthError


class SupabaseAuthVerifier:
    """Resolves a Supabase access token to the user id that owns it."""

    def __init__(self, client: Client):
        self._client = client

    def verify(self, token: str) -> str:
        try:
            user_response = self._client.auth.get_user(token)
        except Exception as exc:
            raise AuthError("Invalid token") from exc
        user = getattr(user_response, "user", None)
        if user is None or not getattr(user, "id", None):
            raise AuthError("Invalid token")
        return str(user.id)


def get_owner_id(request: Request, authorization: Optional[str] = Header(None)) -> str:
    """Validate the bearer token from the Authorization header.

    Returns the authenticated user's id.
    """
    verifier = getattr(request.app.state, "auth_verifier", None)
    if verifier is None:
        raise HTTPException(status_code=503, detail="Authentication not configured")

    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("Missing or invalid token")

    token = authorization[len("Bearer "):].strip()
    if not token:
        raise AuthError("Missing or invalid token")
    return verifier.verify(token)


def require_worker(request: Request, x_worker_token: Optional[str] = Header(None)) -> None:
    """Worker routes act with system authority, granted by a shared secret."""
    expected = request.app.state.settings.worker_api_token
    if not expected:
        raise HTTPException(status_code=503, detail="Worker API not configured")
    if not x_worker_token or not hmac.compare_digest(x_worker_token.encode(), expected.encode()):
        raise AuthError("Invalid worker token")
