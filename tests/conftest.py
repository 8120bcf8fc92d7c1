"""Shared test fixtures."""

from __future__ import annotations

import threading
from collections.abc import Iterator

import pytest

from healthwatch.health.cache import ResultCache
from healthwatch.health.checker import ResourceChecker
from healthwatch.health.models import CheckExecutionError, CheckResult, Status
from healthwatch.health.notifier import IssueNotifier
from healthwatch.health.registry import CheckRegistry
from healthwatch.health.service import HealthService
from healthwatch.resources.loader import ResourceDefinitionStore


class FakeClock:
    """Monotonic clock the tests can move forward by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Scripted:
    """A check that returns the next status from a script on every call."""

    def __init__(self, *statuses: Status) -> None:
        self._statuses = list(statuses)
        self.calls = 0

    def __call__(self, params) -> CheckResult:
        status = self._statuses[min(self.calls, len(self._statuses) - 1)]
        self.calls += 1
        return CheckResult(resource_name="", status=status, message=f"call {self.calls}")


class RecordingNotifier:
    def __init__(self) -> None:
        self.events = []

    def deliver(self, event) -> None:
        self.events.append(event)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def release() -> Iterator[threading.Event]:
    """Event that blocking checks wait on; set at teardown so threads exit."""
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def registry(release: threading.Event) -> CheckRegistry:
    reg = CheckRegistry()
    reg.register("ok", lambda p: CheckResult(resource_name="", status=Status.HEALTHY, message="fine"))
    reg.register("warn", lambda p: (Status.WARNING, "slow"))
    reg.register("fail", lambda p: Status.ERROR)

    def broken(params):
        raise CheckExecutionError("connection refused")

    def crashing(params):
        raise RuntimeError("boom")

    def hanging(params):
        release.wait(5)
        return Status.HEALTHY

    reg.register("broken", broken)
    reg.register("crash", crashing)
    reg.register("hang", hanging, timeout=0.1)
    return reg


@pytest.fixture
def cache(clock: FakeClock) -> ResultCache:
    return ResultCache(clock=clock)


@pytest.fixture
def checker(registry: CheckRegistry, cache: ResultCache) -> ResourceChecker:
    return ResourceChecker(registry, cache, default_timeout=2.0, default_ttl=60.0)


@pytest.fixture
def recorder() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_service(checker: ResourceChecker, registry: CheckRegistry, recorder: RecordingNotifier):
    """Build a HealthService over a list of raw definition mappings."""

    def _make(entries: list[dict], max_workers: int = 1) -> HealthService:
        store = ResourceDefinitionStore(registry=registry)
        store.load(entries)
        return HealthService(
            store=store,
            checker=checker,
            issue_notifier=IssueNotifier(),
            notifier=recorder,
            max_workers=max_workers,
        )

    return _make


@pytest.fixture
def scripted():
    """Factory for checks that walk through a fixed list of statuses."""
    return Scripted
