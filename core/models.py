"""
Pydantic models shared across the Pain Points Finder core.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field


# ── Search target ──────────────────────────────────────────────────────────


class CompanyName(BaseModel):
    """A company identified by its name; searched across the open web."""

    kind: Literal["name"] = "name"
    value: str = Field(min_length=1)


class CompanyUrl(BaseModel):
    """A company identified by its website; search is scoped to that domain."""

    kind: Literal["url"] = "url"
    value: str = Field(min_length=1)


SearchTarget = Union[CompanyName, CompanyUrl]


# ── Outbound request ───────────────────────────────────────────────────────


class Message(BaseModel):
    role: Literal["developer", "user"]
    content: str


class DomainFilter(BaseModel):
    allowed_domains: list[str]


class ToolSpec(BaseModel):
    """A ``web_search`` tool, optionally restricted to a single domain."""

    type: Literal["web_search"] = "web_search"
    filters: Optional[DomainFilter] = None


class OutboundRequest(BaseModel):
    """Fully-specified body for one Responses API call."""

    model: str
    tools: list[ToolSpec]
    input: list[Message]

    def payload(self) -> dict[str, Any]:
        """Return the JSON body, omitting ``filters`` on unrestricted tools."""
        return self.model_dump(exclude_none=True)


# ── Results and state ──────────────────────────────────────────────────────


class NormalizedResult(BaseModel):
    """Human-readable content extracted from a raw API response."""

    content: str
    reasoning: Optional[str] = None


class QueryStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class QueryFailure(BaseModel):
    """Structured failure kept in ``QueryState``; rendered to text by the UI."""

    kind: Literal["validation", "transport", "api"]
    message: str
    status_code: Optional[int] = None


class QueryState(BaseModel):
    """Snapshot of a controller's request lifecycle."""

    status: QueryStatus = QueryStatus.IDLE
    result: Optional[NormalizedResult] = None
    error: Optional[QueryFailure] = None

    @property
    def is_busy(self) -> bool:
        return self.status in (QueryStatus.VALIDATING, QueryStatus.IN_FLIGHT)
