"""Health subsystem — registry, checker, cache and issue notifier.

HealthService and the scheduler live in ``healthwatch.health.service`` and
``healthwatch.health.scheduler``.
"""

from .cache import ResultCache
from .checker import ResourceChecker
from .models import (
    AggregateHealth,
    CachedEntry,
    CheckExecutionError,
    CheckNotFound,
    CheckResult,
    DefinitionError,
    HealthIssueEvent,
    NotFound,
    ResourceNotFound,
    Status,
)
from .notifier import IssueNotifier
from .registry import CheckRegistry, default_registry
