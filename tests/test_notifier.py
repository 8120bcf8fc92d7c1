"""Tests for status transition detection."""

from __future__ import annotations

from healthwatch.health.models import CheckResult, Status
from healthwatch.health.notifier import IssueNotifier

ALL = {Status.HEALTHY, Status.WARNING, Status.ERROR}


def _r(status: Status, message: str = "") -> CheckResult:
    return CheckResult(resource_name="db", status=status, message=message)


class TestIssueNotifier:
    def test_healthy_to_error(self) -> None:
        event = IssueNotifier().evaluate(_r(Status.HEALTHY), _r(Status.ERROR, "refused"))
        assert event is not None
        assert event.resource_name == "db"
        assert event.previous_status == Status.HEALTHY
        assert event.new_status == Status.ERROR
        assert event.message == "refused"

    def test_same_status_is_silent(self) -> None:
        assert IssueNotifier().evaluate(_r(Status.ERROR), _r(Status.ERROR)) is None

    def test_first_error_notifies(self) -> None:
        event = IssueNotifier().evaluate(None, _r(Status.ERROR))
        assert event is not None
        assert event.previous_status == Status.HEALTHY

    def test_first_healthy_is_silent(self) -> None:
        assert IssueNotifier().evaluate(None, _r(Status.HEALTHY), ALL) is None

    def test_recovery_not_notified_by_default(self) -> None:
        assert IssueNotifier().evaluate(_r(Status.ERROR), _r(Status.HEALTHY)) is None

    def test_recovery_notified_when_configured(self) -> None:
        event = IssueNotifier().evaluate(_r(Status.ERROR), _r(Status.HEALTHY), ALL)
        assert event is not None
        assert event.is_recovery

    def test_warning_to_error(self) -> None:
        assert IssueNotifier().evaluate(_r(Status.WARNING), _r(Status.ERROR)) is not None

    def test_threshold_excludes_warning(self) -> None:
        assert IssueNotifier().evaluate(_r(Status.HEALTHY), _r(Status.WARNING), {Status.ERROR}) is None

    def test_default_threshold_override(self) -> None:
        notifier = IssueNotifier(default_threshold={Status.ERROR})
        assert notifier.evaluate(_r(Status.HEALTHY), _r(Status.WARNING)) is None
        assert notifier.evaluate(_r(Status.HEALTHY), _r(Status.ERROR)) is not None

    def test_event_to_dict(self) -> None:
        event = IssueNotifier().evaluate(_r(Status.HEALTHY), _r(Status.WARNING, "slow"))
        data = event.to_dict()
        assert data["resource"] == "db"
        assert data["previous_status"] == "healthy"
        assert data["new_status"] == "warning"
        assert data["message"] == "slow"
