"""Health service — checks every resource, aggregates, and raises issues.

``check_all()`` is the interactive entry point (dashboard / CLI panel) and
``check_silently()`` the scheduled one; both run the same ``run_checks()``.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from healthwatch.config import Settings
from healthwatch.config import settings as default_settings
from healthwatch.notifications import Notifier, build_notifier
from healthwatch.resources.loader import ResourceDefinition, ResourceDefinitionStore

from .cache import ResultCache
from .checker import ResourceChecker
from .models import (
    AggregateHealth,
    CheckResult,
    HealthIssueEvent,
    ResourceNotFound,
    Status,
    worst_status,
)
from .notifier import IssueNotifier
from .registry import CheckRegistry, default_registry

logger = logging.getLogger(__name__)


class HealthService:
    """Orchestrates ResourceChecker + IssueNotifier over all definitions."""

    def __init__(
        self,
        store: ResourceDefinitionStore,
        checker: ResourceChecker,
        issue_notifier: IssueNotifier | None = None,
        notifier: Notifier | None = None,
        max_workers: int = 1,
    ) -> None:
        self.store = store
        self.checker = checker
        self.issue_notifier = issue_notifier or IssueNotifier()
        self.notifier = notifier
        self.max_workers = max(1, max_workers)

    # -- Entry points ---------------------------------------------------------

    def check_all(self) -> AggregateHealth:
        """Check every resource and return the full report for display."""
        health = self.run_checks()
        logger.info(
            "Health: %s (%d resources, %d issues)",
            health.status.value, len(health.results), len(health.events),
        )
        return health

    def check_silently(self) -> AggregateHealth:
        """Same checks as check_all(); meant for scheduled runs that only notify."""
        health = self.run_checks()
        logger.debug("Silent health check: %s", health.status.value)
        return health

    def check_one(self, resource_name: str) -> CheckResult:
        definition = self.store.get(resource_name)
        if definition is None:
            raise ResourceNotFound(f"unknown resource: {resource_name}")
        result, event = self._check(definition)
        if event is not None:
            self._dispatch(event)
        return result

    def reload(self) -> list[ResourceDefinition]:
        """Re-read definitions; cached results of removed resources are dropped."""
        old = {d.name for d in self.store.definitions}
        definitions = self.store.reload()
        for name in old - {d.name for d in definitions}:
            self.checker.cache.invalidate(name)
        return definitions

    # -- Core -----------------------------------------------------------------

    def run_checks(self, notify: bool = True) -> AggregateHealth:
        """Check all definitions in order and aggregate the worst status."""
        definitions = self.store.definitions

        if self.max_workers > 1 and len(definitions) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(self._check, definitions))
        else:
            outcomes = [self._check(d) for d in definitions]

        results = [result for result, _ in outcomes]
        events = [event for _, event in outcomes if event is not None]

        if notify:
            for event in events:
                self._dispatch(event)

        return AggregateHealth(status=worst_status(results), results=results, events=events)

    def _check(self, definition: ResourceDefinition) -> tuple[CheckResult, HealthIssueEvent | None]:
        previous, result, fresh = self.checker.check_with_previous(definition)
        if not fresh:
            return result, None
        event = self.issue_notifier.evaluate(previous, result, definition.notification_threshold)
        return result, event

    def _dispatch(self, event: HealthIssueEvent) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.deliver(event)
        except Exception:
            logger.exception("Failed to deliver health issue for %s", event.resource_name)


def build_service(
    settings: Settings | None = None,
    notifier: Notifier | None = None,
    registry: CheckRegistry | None = None,
    resources_path: Path | str | None = None,
) -> HealthService:
    """Wire store → registry → cache → checker → service → notifier once."""
    cfg = settings or default_settings
    registry = registry or default_registry()
    threshold = frozenset(Status.parse(s) for s in cfg.notify_on_list)

    store = ResourceDefinitionStore(
        path=resources_path or cfg.resources_path,
        registry=registry,
        default_threshold=threshold,
    )
    cache = ResultCache(enabled=cfg.cache_enabled)
    checker = ResourceChecker(
        registry, cache,
        default_timeout=cfg.default_timeout_seconds,
        default_ttl=cfg.default_ttl_seconds,
    )
    if notifier is None and cfg.notifications_enabled:
        notifier = build_notifier(cfg)

    return HealthService(
        store=store,
        checker=checker,
        issue_notifier=IssueNotifier(threshold),
        notifier=notifier,
        max_workers=cfg.max_workers,
    )


def summarize(health: AggregateHealth) -> dict[str, Any]:
    """Counts per status, for panels and logs."""
    counts = {s.value: 0 for s in Status}
    for r in health.results:
        counts[r.status.value] += 1
    return {"status": health.status.value, "total": len(health.results), **counts}
