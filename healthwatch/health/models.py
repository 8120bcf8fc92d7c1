"""Health models — statuses, results, cache entries, aggregate + issue events.

Also holds the error taxonomy shared by the loader, registry and checker.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


# ── Errors ───────────────────────────────────────────────────────────────────


class HealthError(Exception):
    """Base class for all health engine errors."""


class DefinitionError(HealthError):
    """A resource declaration is incomplete or malformed."""


class CheckExecutionError(HealthError):
    """A check implementation failed.

    Raised by check functions; the checker turns it into an Error result.
    """


class CheckTimeout(CheckExecutionError):
    pass


class NotFound(HealthError, LookupError):
    pass


class CheckNotFound(NotFound):
    """No implementation is registered for a check type."""


class ResourceNotFound(NotFound):
    """No resource is declared under the requested name."""


# ── Models ───────────────────────────────────────────────────────────────────


class Status(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"
    SKIPPED = "skipped"

    @property
    def severity(self) -> int:
        """Ordering used for aggregation; skipped ranks below everything."""
        return _SEVERITY[self]

    @classmethod
    def parse(cls, value: Any) -> Status:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown status: {value!r}") from None


_SEVERITY = {
    Status.SKIPPED: -1,
    Status.HEALTHY: 0,
    Status.WARNING: 1,
    Status.ERROR: 2,
}

DEFAULT_THRESHOLD = frozenset({Status.WARNING, Status.ERROR})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CheckResult:
    """Result of a single resource check."""

    resource_name: str
    status: Status
    message: str = ""
    checked_at: datetime = field(default_factory=_utcnow)
    duration_ms: float = 0.0
    meta: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        self.status = Status.parse(self.status)

    @property
    def healthy(self) -> bool:
        return self.status == Status.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource": self.resource_name,
            "status": self.status.value,
            "message": self.message,
            "checked_at": self.checked_at.isoformat(),
            "duration_ms": self.duration_ms,
            "meta": self.meta or {},
        }


@dataclass
class CachedEntry:
    """A cached result plus its (monotonic) expiry time."""

    result: CheckResult
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass
class HealthIssueEvent:
    """Emitted once per status transition of a resource."""

    resource_name: str
    previous_status: Status
    new_status: Status
    result: CheckResult

    @property
    def message(self) -> str:
        return self.result.message

    @property
    def is_recovery(self) -> bool:
        return self.new_status == Status.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource": self.resource_name,
            "previous_status": self.previous_status.value,
            "new_status": self.new_status.value,
            "message": self.message,
            "checked_at": self.result.checked_at.isoformat(),
        }


@dataclass
class AggregateHealth:
    """Overall status + every result of one run, in definition order."""

    status: Status
    results: list[CheckResult] = field(default_factory=list)
    events: list[HealthIssueEvent] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return self.status == Status.HEALTHY

    def get(self, resource_name: str) -> CheckResult | None:
        return next((r for r in self.results if r.resource_name == resource_name), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "healthy": self.healthy,
            "resources": [r.to_dict() for r in self.results],
            "events": [e.to_dict() for e in self.events],
        }


def worst_status(results: list[CheckResult]) -> Status:
    """Worst status among non-skipped results; Healthy when there are none."""
    worst = Status.HEALTHY
    for r in results:
        if r.status == Status.SKIPPED:
            continue
        if r.status.severity > worst.severity:
            worst = r.status
    return worst
