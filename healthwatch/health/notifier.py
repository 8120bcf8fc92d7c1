"""Issue notifier — turns status transitions into HealthIssueEvents."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import DEFAULT_THRESHOLD, CheckResult, HealthIssueEvent, Status

logger = logging.getLogger(__name__)


class IssueNotifier:
    """Compares a fresh result with the previous one for the same resource.

    A resource seen for the first time is treated as previously healthy, so a
    first-ever Error still notifies. Recovery to Healthy notifies only when
    HEALTHY is part of the threshold.
    """

    def __init__(self, default_threshold: Iterable[Status] = DEFAULT_THRESHOLD) -> None:
        self.default_threshold = frozenset(default_threshold)

    def evaluate(
        self,
        previous: CheckResult | None,
        current: CheckResult,
        threshold: Iterable[Status] | None = None,
    ) -> HealthIssueEvent | None:
        notify_on = self.default_threshold if threshold is None else frozenset(threshold)
        previous_status = previous.status if previous is not None else Status.HEALTHY

        if previous_status == current.status:
            return None
        if current.status not in notify_on:
            logger.debug(
                "%s: %s -> %s not in threshold, no event",
                current.resource_name, previous_status.value, current.status.value,
            )
            return None

        logger.info(
            "Health issue: %s %s -> %s (%s)",
            current.resource_name, previous_status.value, current.status.value, current.message,
        )
        return HealthIssueEvent(
            resource_name=current.resource_name,
            previous_status=previous_status,
            new_status=current.status,
            result=current,
        )
