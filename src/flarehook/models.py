"""Pydantic models for zones, challenge records and Cloudflare API resources."""

from enum import StrEnum

from pydantic import BaseModel, Field

# =============================================================================
# Enums
# =============================================================================


class LookupErrorKind(StrEnum):
    """Classification of a failed authoritative TXT lookup."""

    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"


class PollState(StrEnum):
    """States of the convergence poller."""

    CHECKING = "checking"
    WAITING_RETRY = "waiting_retry"
    CONVERGED = "converged"
    GIVEN_UP = "given_up"


class ZoneStatus(StrEnum):
    """Cloudflare zone statuses."""

    ACTIVE = "active"
    PENDING = "pending"
    INITIALIZING = "initializing"
    MOVED = "moved"
    DELETED = "deleted"
    DEACTIVATED = "deactivated"


# =============================================================================
# Zone resolution
# =============================================================================


class NameserverPair(BaseModel):
    """The two authoritative nameservers (NS1, NS2) queried for a zone."""

    primary: str
    secondary: str

    model_config = {"frozen": True}


class ZoneRef(BaseModel):
    """Zone identity handed from the auth hook to the cleanup hook."""

    zone_id: str
    name: str

    model_config = {"frozen": True}


class ZoneMatch(ZoneRef):
    """An active provider zone matched for a requested domain."""

    nameservers: NameserverPair


class PollResult(BaseModel):
    """Outcome of a convergence poll."""

    found: bool
    attempts: int
    state: PollState
    values: list[str] = Field(default_factory=list)


# =============================================================================
# Cloudflare API (v4)
# =============================================================================


class ResponseError(BaseModel):
    """An entry of the errors list in a Cloudflare response."""

    code: int = 0
    message: str = ""

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ResultInfo(BaseModel):
    """Pagination details of a Cloudflare list response."""

    page: int = 1
    per_page: int = 0
    count: int = 0
    total_count: int = 0


class Zone(BaseModel):
    """Cloudflare zone resource."""

    id: str
    name: str
    status: str | None = None
    paused: bool = False
    type: str | None = None
    name_servers: list[str] = Field(default_factory=list)
    original_name_servers: list[str] | None = None


class DnsRecord(BaseModel):
    """Cloudflare DNS record resource."""

    id: str
    type: str
    name: str
    content: str
    ttl: int | None = None
    proxied: bool | None = None
    zone_id: str | None = None
    zone_name: str | None = None


class ApiResponse(BaseModel):
    """Common envelope of every Cloudflare response."""

    success: bool
    errors: list[ResponseError] = Field(default_factory=list)
    messages: list[ResponseError] = Field(default_factory=list)


class ZoneListResponse(ApiResponse):
    """Response of GET /zones."""

    result: list[Zone] | None = None
    result_info: ResultInfo | None = None


class RecordListResponse(ApiResponse):
    """Response of GET /zones/{id}/dns_records."""

    result: list[DnsRecord] | None = None
    result_info: ResultInfo | None = None


class RecordResponse(ApiResponse):
    """Response of POST /zones/{id}/dns_records."""

    result: DnsRecord | None = None


class DeletedRecord(BaseModel):
    """Result of a record deletion."""

    id: str


class DeleteResponse(ApiResponse):
    """Response of DELETE /zones/{id}/dns_records/{record_id}."""

    result: DeletedRecord | None = None
