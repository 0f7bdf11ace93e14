"""Log search contract v1.

Defines the canonical types shared by every caller and every backend:
  - Search request (QueryParameters, ResolvedRange)
  - Normalized record (Result)
  - Response envelope (SearchResults, BackendFailure)

JSON field names follow the public API (camelCase); Python code uses the
snake_case attribute names. Both are accepted on input.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from loghub.utils.timeparse import format_iso_millis, resolve_instant

DEFAULT_START = "1h"
DEFAULT_LIMIT = 50
DEFAULT_LIMIT_PER_ITEM = 100
DEFAULT_LIMIT_BYTES_PER_ITEM = 100 * 1024


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolvedRange:
    """Absolute time window of a request; either bound may be unresolvable."""

    start: datetime | None
    end: datetime | None


class QueryParameters(BaseModel):
    """Caller-supplied search request."""

    model_config = ConfigDict(populate_by_name=True)

    limit: int = Field(default=0, description="Maximum number of results to return")
    limit_bytes: int = Field(default=0, alias="limitBytes")
    page: str = Field(
        default="",
        description="Opaque continuation cursor returned by a previous call (backend-specific)",
    )
    labels: dict[str, str] = Field(
        default_factory=dict, description="Label filters, ANDed together"
    )
    query: str = Field(
        default="",
        description="Free-form query passed to the backend, or applied as a post-filter",
    )
    start: str = Field(
        default="", description="RFC3339 timestamp or an age such as 1h, 2d, 1w"
    )
    end: str = Field(default="", description="RFC3339 timestamp or an age")
    type: str = Field(default="", description="Kind of log source, used for routing")
    id: str = Field(
        default="",
        description="Identifier of the log source, used for routing (prefix match)",
    )
    limit_per_item: int = Field(default=0, alias="limitPerItem")
    limit_bytes_per_item: int = Field(default=0, alias="limitBytesPerItem")

    _resolved: ResolvedRange | None = PrivateAttr(default=None)

    def with_defaults(self) -> QueryParameters:
        """Return a copy with unset fields filled in."""
        update: dict[str, object] = {}
        if not self.start:
            update["start"] = DEFAULT_START
        if self.limit_per_item == 0:
            update["limit_per_item"] = DEFAULT_LIMIT_PER_ITEM
        if self.limit <= 0:
            update["limit"] = DEFAULT_LIMIT
        if self.limit_bytes_per_item == 0:
            update["limit_bytes_per_item"] = DEFAULT_LIMIT_BYTES_PER_ITEM
        if not update:
            return self
        return self.model_copy(update=update)

    def resolve(self, now: datetime) -> ResolvedRange:
        """Resolve start/end against ``now``. Pure: no caching, no clock access."""
        start = resolve_instant(self.start or DEFAULT_START, now)
        end = resolve_instant(self.end, now) if self.end else None
        return ResolvedRange(start=start, end=end)

    def resolved(self) -> ResolvedRange:
        """Resolve once against the current clock and memoize the result."""
        if self._resolved is None:
            self._resolved = self.resolve(datetime.now(timezone.utc))
        return self._resolved

    def get_start(self) -> datetime | None:
        return self.resolved().start

    def get_end(self) -> datetime | None:
        return self.resolved().end

    def get_start_iso(self) -> str:
        start = self.get_start()
        return format_iso_millis(start) if start else ""

    def get_end_iso(self) -> str:
        end = self.get_end()
        return format_iso_millis(end) if end else ""

    def __str__(self) -> str:
        parts = []
        if self.type:
            parts.append(f"type={self.type}")
        if self.id:
            parts.append(f"id={self.id}")
        if self.start:
            parts.append(f"start={self.start}")
        if self.query:
            parts.append(f"query={self.query}")
        if self.labels:
            parts.append(f"labels={self.labels}")
        if self.end:
            parts.append(f"end={self.end}")
        if self.limit > 0:
            parts.append(f"limit={self.limit}")
        if self.page:
            parts.append(f"page={self.page}")
        return " ".join(parts)


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


class Result(BaseModel):
    """One normalized log record."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="", description="Backend-native identifier (opaque)")
    time: str = Field(default="", alias="timestamp", description="RFC3339 or empty")
    message: str = Field(default="")
    labels: dict[str, str] = Field(default_factory=dict)


class BackendFailure(BaseModel):
    """One backend that failed while answering a routed query."""

    source: str
    kind: str = Field(default="error", description="configuration | template | transport | decode | error")
    message: str = Field(default="")


class SearchResults(BaseModel):
    """Response envelope. ``next_page`` empty means there are no further pages."""

    model_config = ConfigDict(populate_by_name=True)

    total: int = Field(default=0, description="Exact count or lower bound, backend-defined")
    results: list[Result] = Field(default_factory=list)
    next_page: str = Field(default="", alias="nextPage")
    errors: list[BackendFailure] = Field(
        default_factory=list, description="Partial failures (one backend failed)"
    )

    def append(self, other: SearchResults) -> None:
        self.results.extend(other.results)
        self.total += other.total
        if other.next_page:
            self.next_page = other.next_page
