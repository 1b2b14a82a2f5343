import logging
import time
from typing import Callable, Optional

import redis

from genjobs.jobs.dispatcher import PipelineTrigger
from genjobs.jobs.errors import TriggerError
from genjobs.jobs.models import JobRecord

logger = logging.getLogger(__name__)


class RedisQueueTrigger(PipelineTrigger):
    """Pushes queued job ids onto a Redis list for external workers to pop.

    notify() runs on the request path, so it never sleeps. A failed ping
    schedules the next connection attempt with exponential backoff, and
    notifications inside that window fail straight away.
    """

    def __init__(
        self,
        redis_url: str,
        queue_key: str,
        client: Optional[redis.Redis] = None,
        retry_delay: float = 1.0,
        max_retry_delay: float = 30.0,
        socket_timeout: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._redis_url = redis_url
        self.queue_key = queue_key
        self._client = client
        self._retry_delay = retry_delay
        self._max_retry_delay = max_retry_delay
        self._socket_timeout = socket_timeout
        self._clock = clock
        self._connection_checked = False
        self._backoff = retry_delay
        self._next_attempt_at = 0.0

    async def start(self) -> None:
        if self._client is None:
            self._client = redis.Redis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=self._socket_timeout,
                socket_timeout=self._socket_timeout,
            )
        logger.info(f"Redis pipeline trigger using queue '{self.queue_key}'")

    async def stop(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._connection_checked = False

    def _ensure_connection(self) -> None:
        """Lazy connection check: one ping per attempt, backoff between attempts."""
        if self._connection_checked:
            return
        if self._client is None:
            raise TriggerError("Redis trigger is not started")

        now = self._clock()
        if now < self._next_attempt_at:
            raise TriggerError(
                f"Redis unavailable, next connection attempt in {self._next_attempt_at - now:.1f}s"
            )

        try:
            self._client.ping()
        except redis.RedisError as e:
            self._next_attempt_at = now + self._backoff
            logger.warning(f"Redis connection failed, retrying in {self._backoff}s: {e}")
            self._backoff = min(self._backoff * 2, self._max_retry_delay)
            raise TriggerError(f"Redis connection failed: {e}") from e

        self._connection_checked = True
        self._backoff = self._retry_delay
        self._next_attempt_at = 0.0

    def notify(self, job: JobRecord) -> None:
        self._ensure_connection()
        try:
            self._client.rpush(self.queue_key, job.id)
        except redis.RedisError as e:
            # Force a fresh ping on the next notify
            self._connection_checked = False
            raise TriggerError(f"Redis enqueue failed for job {job.id}: {e}") from e
        logger.debug(f"Enqueued job {job.id} on '{self.queue_key}'")
