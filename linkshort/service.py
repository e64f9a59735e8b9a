"""Business logic for creating and following short links.

Flow Diagram — Link Creation
============================
::
    ┌─────────────┐
    │ POST        │
    │ <base>_create│
    └──────┬──────┘
           ▼
    ┌─────────────┐  mismatch  ┌──────────────┐
    │ secret check│───────────►│ 401, count   │
    └──────┬──────┘            └──────────────┘
           ▼
    ┌─────────────┐  no        ┌──────────────┐
    │ https:// ?  │───────────►│ 400          │
    └──────┬──────┘            └──────────────┘
           ▼
    ┌─────────────┐  too long  ┌──────────────┐
    │ length limit│───────────►│ 400          │
    └──────┬──────┘            └──────────────┘
           ▼
    ┌─────────────┐
    │ generator   │
    └──────┬──────┘
           ▼
    BASE_URL + short_path

Flow Diagram — Follow
=====================
::
    ┌─────────────┐
    │ GET <base>x │
    └──────┬──────┘
           ▼
    ┌─────────────┐  miss  ┌──────────────┐
    │ lookup_link │───────►│ 404, no event│
    └──────┬──────┘        └──────────────┘
           ▼ hit
    ┌─────────────┐
    │ enqueue     │
    │ FollowEvent │
    └──────┬──────┘
           ▼
    302 Location: long_url

Key Behaviours
===============
- The secret is compared in constant time.
- The length limit counts UTF-8 bytes; LENGTH_LIMIT <= 0 disables it.
- The follow event is queued before the handler returns; storage latency
  for follows never reaches the client.
"""

import hmac
import time
from typing import TYPE_CHECKING

from linkshort.errors import AuthorizationError, InvalidRequestError
from linkshort.schemas import CreateRequest, FollowEvent

if TYPE_CHECKING:
    from linkshort.dependencies import RequestContext

__all__ = ["LinkService", "REQUIRED_SCHEME"]

REQUIRED_SCHEME = "https://"


class LinkService:
    """Create and follow short links on behalf of one request.

    Example:
        >>> service = LinkService.from_context(ctx)
        >>> short_url = await service.create_link(CreateRequest(long_url="https://example.com", secret=s))
        >>> long_url = await service.follow_link("q1Zx_9aB")
    """

    def __init__(self, ctx: "RequestContext"):
        self._ctx = ctx
        self._settings = ctx.settings
        self._logger = ctx.logger
        self._stats = ctx.container.stats
        self._generator = ctx.container.generator
        self._store = ctx.container.store
        self._recorder = ctx.container.recorder

    @classmethod
    def from_context(cls, ctx: "RequestContext") -> "LinkService":
        return cls(ctx)

    def _check_secret(self, secret: str) -> None:
        if not hmac.compare_digest(secret.encode("utf-8"), self._settings.SECRET.encode("utf-8")):
            self._stats.auth_errors.inc()
            self._logger.error("Refusing to linkify with wrong secret")
            raise AuthorizationError()

    def _check_url(self, long_url: str) -> None:
        if not long_url.startswith(REQUIRED_SCHEME):
            self._logger.warning(f"Refusing to linkify non-https link: {long_url}")
            raise InvalidRequestError("Links must start with https://")

        limit = self._settings.LENGTH_LIMIT
        if limit > 0 and len(long_url.encode("utf-8")) > limit:
            self._logger.warning(f"Refusing to linkify link longer than {limit} bytes")
            raise InvalidRequestError(f"Links must be at most {limit} bytes long")

    async def create_link(self, request: CreateRequest) -> str:
        """Validate a create request, reserve a short path and return the short URL.

        Raises:
            AuthorizationError: missing or incorrect secret.
            InvalidRequestError: non-https or oversize long URL.
            GenerationError: no short path could be reserved.
        """
        self._check_secret(request.secret)
        self._check_url(request.long_url)

        short_path = await self._generator.generate(request.long_url, self._ctx.client_ip, self._ctx.forwarded_for)
        self._logger.info(
            f"Link created: {short_path} -> {request.long_url}",
            extra={"operation": "create_link", "duration_ms": self._ctx.get_duration()},
        )
        return self._settings.BASE_URL + short_path

    async def follow_link(self, short_path: str) -> str:
        """Return the long URL for short_path and queue a follow event.

        Raises:
            LinkNotFoundError: unknown short path; nothing is queued.
            StorageError: the lookup itself failed.
        """
        long_url = await self._store.lookup_link(short_path)
        await self._recorder.record(
            FollowEvent(
                short_path=short_path,
                ts=int(time.time()),
                ip=self._ctx.client_ip,
                forwarded_for=self._ctx.forwarded_for,
            )
        )
        return long_url
