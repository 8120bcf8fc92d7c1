"""Check registry — maps a check type name to its implementation.

New check types register here without touching the checker::

    registry = CheckRegistry()

    @registry.check("redis", timeout=2.0)
    def check_redis(params):
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from .models import CheckNotFound

logger = logging.getLogger(__name__)

# fn(parameters) -> CheckResult | Status | (Status, message)
CheckFn = Callable[[Mapping[str, Any]], Any]


@dataclass(frozen=True)
class CheckSpec:
    """A registered check implementation."""

    check_type: str
    fn: CheckFn
    timeout: float | None = None  # seconds; None = use the default


class CheckRegistry:
    """Registry of check implementations keyed by type name."""

    def __init__(self) -> None:
        self._checks: dict[str, CheckSpec] = {}

    def register(self, check_type: str, check_fn: CheckFn, timeout: float | None = None) -> CheckSpec:
        if not check_type:
            raise ValueError("check_type is required")
        if check_type in self._checks:
            logger.info("Replacing check implementation for '%s'", check_type)
        spec = CheckSpec(check_type=check_type, fn=check_fn, timeout=timeout)
        self._checks[check_type] = spec
        return spec

    def check(self, check_type: str, timeout: float | None = None) -> Callable[[CheckFn], CheckFn]:
        """Decorator form of :meth:`register`."""

        def decorator(fn: CheckFn) -> CheckFn:
            self.register(check_type, fn, timeout=timeout)
            return fn

        return decorator

    def unregister(self, check_type: str) -> None:
        self._checks.pop(check_type, None)

    def get(self, check_type: str) -> CheckSpec | None:
        return self._checks.get(check_type)

    def resolve(self, check_type: str) -> CheckSpec:
        spec = self._checks.get(check_type)
        if spec is None:
            raise CheckNotFound(f"unknown check type: {check_type}")
        return spec

    def types(self) -> list[str]:
        return sorted(self._checks)

    def __contains__(self, check_type: object) -> bool:
        return check_type in self._checks

    def __len__(self) -> int:
        return len(self._checks)


def default_registry() -> CheckRegistry:
    """A registry pre-populated with the built-in check types."""
    from .checks import register_builtin_checks

    registry = CheckRegistry()
    register_builtin_checks(registry)
    return registry
