"""Dependency injection with an application-owned service container.

The container holds everything shared across requests (settings, store,
counters, generator, follow recorder, logger). It is created by create_app()
and stored on ``app.state``; handlers reach it through FastAPI dependencies,
so there is no module-level global state.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field

from fastapi import Depends, Request

from linkshort.config import Settings
from linkshort.follows import FollowRecorder
from linkshort.generator import ShortPathGenerator
from linkshort.service import LinkService
from linkshort.stats import ServiceStats
from linkshort.store import LinkStore

__all__ = [
    "ServiceContainer",
    "RequestContext",
    "get_service_container",
    "get_request_context",
    "get_link_service",
]

# ============================================================================
# SERVICE CONTAINER
# ============================================================================


class ServiceContainer:
    """Shared resources for one application instance."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.logger = self._setup_logger()
        self.stats = ServiceStats()
        self.store = LinkStore.from_url(settings.DATABASE_URL, echo=(settings.APP_ENV == "development"))
        self.generator = ShortPathGenerator(
            self.store,
            self.stats,
            max_attempts=settings.MAX_GENERATION_ATTEMPTS,
            num_bytes=settings.SHORT_PATH_BYTES,
            retry_on_storage_error=settings.RETRY_ON_STORAGE_ERROR,
        )
        self.recorder = FollowRecorder(self.store, self.stats, maxsize=settings.FOLLOW_QUEUE_SIZE)

    def _setup_logger(self) -> logging.Logger:
        """Setup logger once."""
        logger = logging.getLogger(self.settings.APP_NAME)
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(self.settings.LOG_LEVEL)
        return logger

    async def initialize(self) -> None:
        """Create tables and start the follow consumer."""
        if not self.settings.SECRET:
            raise RuntimeError("Must specify non-empty SECRET")
        await self.store.create_tables()
        self.recorder.start()
        self.logger.info(f"Serving short links under {self.settings.BASE_URL}")

    async def cleanup(self) -> None:
        """Stop the follow consumer and release the database."""
        await self.recorder.stop(drain=self.settings.FOLLOW_DRAIN_ON_SHUTDOWN)
        await self.store.close()


# ============================================================================
# REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request tracking data plus access to shared resources.

    Attributes:
        container: Application service container
        request_id: Unique identifier for this request
        client_ip: Remote address of the client ("" when unknown)
        forwarded_for: X-Forwarded-For header, if present
        start_time: Request start timestamp
    """

    container: ServiceContainer
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    client_ip: str = ""
    forwarded_for: str | None = None
    start_time: float = field(default_factory=lambda: time.time())

    @property
    def settings(self) -> Settings:
        return self.container.settings

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Shared logger with request context attached."""
        return logging.LoggerAdapter(
            self.container.logger,
            {
                "request_id": self.request_id,
                "client_ip": self.client_ip,
                "forwarded_for": self.forwarded_for,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


async def get_service_container(request: Request) -> ServiceContainer:
    return request.app.state.container


async def get_request_context(
    request: Request,
    container: ServiceContainer = Depends(get_service_container),
) -> RequestContext:
    client_ip = request.client.host if request.client else ""
    return RequestContext(
        container=container,
        client_ip=client_ip,
        forwarded_for=request.headers.get("x-forwarded-for"),
    )


def get_link_service(ctx: RequestContext = Depends(get_request_context)) -> LinkService:
    """Create the link service bound to this request's context."""
    return LinkService.from_context(ctx)
