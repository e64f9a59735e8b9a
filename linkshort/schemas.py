"""Pydantic schemas for request/response bodies and internal events.

Schema Hierarchy
=================
::
    CreateRequest (Input)
    ├─ long_url: str (defaults to "")
    └─ secret: str (defaults to "")

    CreateResponse (Output)
    └─ short_url: str

    ErrorResponse (Output)
    └─ error: str

    HealthResponse (Output)
    ├─ status: HealthStatus
    └─ database: HealthStatus

    FollowEvent (Follow Recorder queue item)
    ├─ short_path, ts, ip
    └─ forwarded_for: str | None

    StatsSnapshot (counter read-out)
    └─ random_errors, auth_errors, db_update_errors

Key Behaviours
===============
- Missing or null long_url/secret fields decode to "" so that a missing secret is
  reported as an authorization failure rather than a decoding failure.
- Non-string values are rejected; the create handler turns that into a 400.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from linkshort.enums import HealthStatus

__all__ = [
    "CreateRequest",
    "CreateResponse",
    "ErrorResponse",
    "HealthResponse",
    "FollowEvent",
    "StatsSnapshot",
]


class CreateRequest(BaseModel):
    long_url: str = ""
    secret: str = ""

    model_config = ConfigDict(strict=True)

    @field_validator("long_url", "secret", mode="before")
    @classmethod
    def null_as_empty(cls, v: object) -> object:
        return "" if v is None else v


class CreateResponse(BaseModel):
    short_url: str


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: HealthStatus
    database: HealthStatus


class FollowEvent(BaseModel):
    """One redirect waiting to be written to the follows table."""

    short_path: str = Field(..., description="Short path that was followed, e.g. 'q1Zx_9aB'")
    ts: int = Field(..., description="Unix timestamp in seconds")
    ip: str = Field("", description="Remote address of the client")
    forwarded_for: str | None = Field(None, description="X-Forwarded-For header, if any")


class StatsSnapshot(BaseModel):
    random_errors: float = 0
    auth_errors: float = 0
    db_update_errors: float = 0
