"""Resource checker — runs one resource's check under a timeout.

Never raises to the caller: unknown check types, check failures and timeouts
all come back as Error results. A timed-out check keeps running in its daemon
thread until it finishes on its own; its late result is discarded.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from .cache import ResultCache
from .models import CheckExecutionError, CheckNotFound, CheckResult, Status
from .registry import CheckRegistry, CheckSpec

if TYPE_CHECKING:
    from healthwatch.resources.loader import ResourceDefinition

logger = logging.getLogger(__name__)

UNKNOWN_CHECK_TYPE = "unknown check type"
CHECK_TIMED_OUT = "check timed out"


class ResourceChecker:
    """Resolves, executes and caches the check for a single resource."""

    def __init__(
        self,
        registry: CheckRegistry,
        cache: ResultCache,
        default_timeout: float = 10.0,
        default_ttl: float = 60.0,
    ) -> None:
        self.registry = registry
        self.cache = cache
        self.default_timeout = default_timeout
        self.default_ttl = default_ttl

    def check(self, definition: ResourceDefinition) -> CheckResult:
        return self.check_with_previous(definition)[1]

    def check_with_previous(
        self, definition: ResourceDefinition,
    ) -> tuple[CheckResult | None, CheckResult, bool]:
        """Return (previous, current, fresh).

        ``fresh`` is False when the result came from the cache or the resource
        is disabled; those must not be evaluated for notifications again.
        """
        if not definition.enabled:
            return None, self._skipped(definition), False

        entry = self.cache.get(definition.name)
        if entry is not None:
            logger.debug("Cache hit for %s", definition.name)
            return entry.result, entry.result, False

        result = self._execute(definition)

        ttl = definition.ttl_seconds if definition.ttl_seconds is not None else self.default_ttl
        stored, previous = self.cache.put(definition.name, result, ttl)
        if not stored:
            # a concurrent check already stored a newer result
            return previous, previous, False
        logger.debug(
            "Check %s: %s (%.0fms) %s",
            definition.name, result.status.value, result.duration_ms, result.message,
        )
        return previous, result, True

    # -- Execution ------------------------------------------------------------

    def _execute(self, definition: ResourceDefinition) -> CheckResult:
        try:
            spec = self.registry.resolve(definition.check_type)
        except CheckNotFound:
            logger.warning("Resource %s: unknown check type '%s'", definition.name, definition.check_type)
            return CheckResult(
                resource_name=definition.name, status=Status.ERROR,
                message=UNKNOWN_CHECK_TYPE, meta={"check_type": definition.check_type},
            )

        timeout = self._timeout_for(definition, spec)
        params = dict(definition.parameters or {})

        t0 = time.perf_counter()
        future = self._submit(spec, params, definition.name)
        try:
            outcome = future.result(timeout=timeout)
        except FutureTimeout:
            logger.warning("Resource %s: check timed out after %.2fs", definition.name, timeout)
            return CheckResult(
                resource_name=definition.name, status=Status.ERROR,
                message=CHECK_TIMED_OUT, duration_ms=round(timeout * 1000, 1),
                meta={"timeout": True, "timeout_seconds": timeout},
            )
        except CheckExecutionError as e:
            return self._error(definition, str(e) or type(e).__name__, t0)
        except Exception as e:
            logger.exception("Resource %s: check raised", definition.name)
            return self._error(
                definition, f"{type(e).__name__}: {e}", t0, {"exception": type(e).__name__},
            )

        elapsed_ms = round((time.perf_counter() - t0) * 1000, 1)
        try:
            return _normalize(outcome, definition.name, elapsed_ms)
        except CheckExecutionError as e:
            return self._error(definition, str(e), t0)

    def _submit(self, spec: CheckSpec, params: Mapping[str, Any], name: str) -> Future[Any]:
        future: Future[Any] = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(spec.fn(params))
            except Exception as e:
                future.set_exception(e)

        threading.Thread(target=run, name=f"check-{name}", daemon=True).start()
        return future

    def _timeout_for(self, definition: ResourceDefinition, spec: CheckSpec) -> float:
        if definition.timeout_seconds is not None:
            return definition.timeout_seconds
        if spec.timeout is not None:
            return spec.timeout
        return self.default_timeout

    @staticmethod
    def _skipped(definition: ResourceDefinition) -> CheckResult:
        return CheckResult(resource_name=definition.name, status=Status.SKIPPED, message="disabled")

    @staticmethod
    def _error(
        definition: ResourceDefinition, message: str, t0: float, meta: dict[str, Any] | None = None,
    ) -> CheckResult:
        return CheckResult(
            resource_name=definition.name, status=Status.ERROR, message=message,
            duration_ms=round((time.perf_counter() - t0) * 1000, 1), meta=meta,
        )


def _normalize(outcome: Any, resource_name: str, elapsed_ms: float) -> CheckResult:
    """Accept a CheckResult, a Status, or a (status, message) pair.

    Always returns a new result; a check may hand back a shared object.
    """
    if isinstance(outcome, CheckResult):
        return replace(
            outcome,
            resource_name=resource_name,
            duration_ms=outcome.duration_ms or elapsed_ms,
            meta=dict(outcome.meta) if outcome.meta is not None else None,
        )
    try:
        if isinstance(outcome, tuple) and len(outcome) == 2:
            status, message = outcome
            return CheckResult(
                resource_name=resource_name, status=status, message=str(message), duration_ms=elapsed_ms,
            )
        if isinstance(outcome, (Status, str)):
            return CheckResult(resource_name=resource_name, status=outcome, duration_ms=elapsed_ms)
    except ValueError as e:
        raise CheckExecutionError(f"invalid check result: {e}") from e
    raise CheckExecutionError(f"invalid check result: {outcome!r}")
