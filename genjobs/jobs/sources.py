"""Source reference validation."""

import re
from typing import Any, Optional

from genjobs.jobs.errors import ValidationError

SOURCE_URL_PATTERN = re.compile(
    r"^(https?://)?(www\.)?(youtube\.com/watch\?v=|youtu\.be/)(?P<video_id>[a-zA-Z0-9_-]{11})"
)


def validate_source_reference(source_reference: Any) -> str:
    """Return the trimmed URL, or raise ValidationError if it is not a video URL."""
    if not source_reference or not isinstance(source_reference, str):
        raise ValidationError("YouTube URL is required")
    cleaned = source_reference.strip()
    if not SOURCE_URL_PATTERN.match(cleaned):
        raise ValidationError("Invalid YouTube URL format")
    return cleaned


def extract_video_id(source_reference: str) -> Optional[str]:
    match = SOURCE_URL_PATTERN.match(source_reference.strip())
    return match.group("video_id") if match else None
