"""FastAPI route definitions for the link shortener.

API Endpoint Overview
=====================
::
    GET  /health
        └─ HealthResponse (200)

    POST <base-path>_create
        ├─ {"long_url": str, "secret": str}
        └─ {"short_url": str} (200) or 400/401/500

    GET  <base-path><short_path>
        └─ 302 Location: <long_url>, or 404/500

Key Behaviours
===============
- The create body is decoded by hand so that malformed JSON maps to 400
  rather than FastAPI's 422 validation response.
- A null body, or null fields, decode to "" and so reach the secret check.
- Domain errors propagate as LinkShortError and are rendered as
  {"error": message} by the handler registered in linkshort.main.
- The lookup route is registered last; it matches every path under the
  base path, including ones containing "/".
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError

from linkshort.dependencies import RequestContext, get_link_service, get_request_context
from linkshort.enums import HealthStatus
from linkshort.errors import InvalidRequestError, StorageError
from linkshort.schemas import CreateRequest, CreateResponse, HealthResponse
from linkshort.service import LinkService

__all__ = ["router", "health_router"]

health_router = APIRouter()
router = APIRouter()

# Everything printable in ASCII passes through untouched.
_LOCATION_SAFE = "".join(chr(c) for c in range(0x21, 0x7F))


@health_router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    db_status = HealthStatus.HEALTHY
    try:
        await ctx.container.store.ping()
    except StorageError as e:
        ctx.logger.error(f"Database health check failed: {e}")
        db_status = HealthStatus.UNHEALTHY

    return HealthResponse(status=db_status, database=db_status)


@router.post("/_create", response_model=CreateResponse, tags=["links"])
async def create_link(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> CreateResponse:
    body = await request.body()
    try:
        payload = CreateRequest() if body.strip() == b"null" else CreateRequest.model_validate_json(body)
    except ValidationError as exc:
        ctx.logger.error(f"Got bad json: {exc.error_count()} error(s)")
        raise InvalidRequestError() from exc

    short_url = await service.create_link(payload)
    return CreateResponse(short_url=short_url)


@router.get("/{short_path:path}", tags=["redirect"])
async def follow_link(
    short_path: str,
    ctx: RequestContext = Depends(get_request_context),
    service: LinkService = Depends(get_link_service),
) -> Response:
    long_url = await service.follow_link(short_path)
    ctx.logger.info(
        f"Redirect: {short_path} -> {long_url}",
        extra={"operation": "redirect", "duration_ms": ctx.get_duration()},
    )
    return Response(status_code=302, headers={"Location": quote(long_url, safe=_LOCATION_SAFE)})
