"""Random short path generation with optimistic insert-and-retry.

Flow Diagram — generate()
=========================
::
    ┌─────────────┐
    │ attempt < N │◄──────────────────┐
    └──────┬──────┘                   │
           ▼                          │
    ┌─────────────┐   OSError   ┌──────────────┐
    │ token_bytes │────────────►│ count, log   │
    │ (6 bytes)   │             │ CRITICAL,    │
    └──────┬──────┘             │ RandomSource-│
           ▼                    │ Error        │
    ┌─────────────┐             └──────────────┘
    │ urlsafe b64 │
    │ no padding  │
    └──────┬──────┘
           ▼
    ┌─────────────┐  Duplicate / StorageError
    │ insert_link │───────────────────┘
    └──────┬──────┘
           ▼ OK
    ┌─────────────┐
    │ return path │
    └─────────────┘

Key Behaviours
===============
- 6 random bytes encode to exactly 8 URL-safe characters.
- Collisions are expected and retried up to max_attempts.
- Non-collision storage errors are retried too unless retry_on_storage_error
  is False, in which case they fail the request immediately.
- The loop is bounded by attempts, not by wall-clock time.
"""

import base64
import logging
import secrets
import time
from collections.abc import Callable

from linkshort.errors import DuplicateShortPathError, GenerationError, RandomSourceError, StorageError
from linkshort.stats import ServiceStats
from linkshort.store import LinkStore

__all__ = ["ShortPathGenerator", "encode_short_path"]

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 30
DEFAULT_SHORT_PATH_BYTES = 6


def encode_short_path(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


class ShortPathGenerator:
    def __init__(
        self,
        store: LinkStore,
        stats: ServiceStats,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        num_bytes: int = DEFAULT_SHORT_PATH_BYTES,
        retry_on_storage_error: bool = True,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._stats = stats
        self.max_attempts = max_attempts
        self.num_bytes = num_bytes
        self.retry_on_storage_error = retry_on_storage_error
        self._random_bytes = random_bytes
        self._clock = clock

    async def generate(self, long_url: str, ip: str, forwarded_for: str | None) -> str:
        """Reserve a fresh short path for long_url and return it.

        Raises:
            RandomSourceError: the secure random source failed.
            GenerationError: no free short path within max_attempts, or a
                storage error when retry_on_storage_error is False.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                raw = self._random_bytes(self.num_bytes)
            except OSError as exc:
                self._stats.random_errors.inc()
                logger.critical("Could not generate random numbers: %s", exc)
                raise RandomSourceError() from exc

            short_path = encode_short_path(raw)
            try:
                await self._store.insert_link(short_path, long_url, int(self._clock()), ip, forwarded_for)
            except DuplicateShortPathError:
                logger.error("Short path collision on attempt %d: %s", attempt, short_path)
                continue
            except StorageError as exc:
                logger.error("Error saving link on attempt %d: %s", attempt, exc)
                if not self.retry_on_storage_error:
                    raise GenerationError() from exc
                continue
            return short_path

        logger.error("Gave up generating a short path after %d attempts", self.max_attempts)
        raise GenerationError()
