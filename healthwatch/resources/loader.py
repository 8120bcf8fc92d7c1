"""Resource definition store — loads resources.yaml and provides typed models.

Single source of truth for what gets monitored. The checker, service and
dashboard all consume this. A malformed record is dropped with a logged
reason; it never blocks the rest of the file.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from healthwatch.health.models import DEFAULT_THRESHOLD, DefinitionError, Status

if TYPE_CHECKING:
    from healthwatch.health.registry import CheckRegistry

logger = logging.getLogger(__name__)


# ── Data model ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ResourceDefinition:
    """A single monitored resource."""

    name: str
    check_type: str  # key into the CheckRegistry
    parameters: Mapping[str, Any] = field(default_factory=dict)
    enabled: bool = True
    notification_threshold: frozenset[Status] = DEFAULT_THRESHOLD
    ttl_seconds: float | None = None  # None = settings default
    timeout_seconds: float | None = None  # None = check type / settings default

    # Display metadata
    label: str = ""
    abbreviation: str = ""
    routes: tuple[Mapping[str, Any], ...] = ()

    @property
    def display_name(self) -> str:
        return self.label or self.name

    def notifies_on(self, status: Status) -> bool:
        return status in self.notification_threshold


# ── Store ────────────────────────────────────────────────────────────────────


class ResourceDefinitionStore:
    """Loads and caches resource definitions, preserving declaration order."""

    def __init__(
        self,
        path: Path | str | None = None,
        registry: CheckRegistry | None = None,
        default_threshold: Iterable[Status | str] | None = None,
    ) -> None:
        self._path = Path(path) if path else None
        self._registry = registry
        self._default_threshold = (
            frozenset(Status.parse(s) for s in default_threshold)
            if default_threshold is not None
            else DEFAULT_THRESHOLD
        )
        self._definitions: list[ResourceDefinition] = []
        self._source: Path | list[Mapping[str, Any]] | None = None
        self._loaded = False

    def load(
        self,
        source: Path | str | list[Mapping[str, Any]] | None = None,
        force: bool = False,
    ) -> list[ResourceDefinition]:
        """Parse definitions from a YAML path or a list of mappings."""
        if self._loaded and not force and source is None:
            return self._definitions

        if isinstance(source, (str, Path)):
            self._source = Path(source)
        elif source is not None:
            self._source = list(source)

        # the last explicit source wins over the configured path
        origin = self._source if self._source is not None else self._path
        if origin is None or isinstance(origin, Path):
            raw_entries = self._read_file(origin)
        else:
            raw_entries = list(origin)

        definitions: list[ResourceDefinition] = []
        seen: set[str] = set()
        for index, entry in enumerate(raw_entries):
            try:
                definition = parse_definition(entry, self._default_threshold)
                if definition.name in seen:
                    raise DefinitionError(f"duplicate resource name '{definition.name}'")
            except DefinitionError as e:
                logger.warning("Skipping resource definition #%d: %s", index, e)
                continue
            seen.add(definition.name)
            if self._registry is not None and definition.check_type not in self._registry:
                logger.warning(
                    "Resource '%s' uses unregistered check type '%s'; it will report an error",
                    definition.name, definition.check_type,
                )
            definitions.append(definition)

        self._definitions = definitions
        self._loaded = True
        logger.info("Loaded %d resource definitions", len(definitions))
        return self._definitions

    def _read_file(self, path: Path | None) -> list[Any]:
        if path is None:
            logger.warning("No resource definition source configured")
            return []
        if not path.exists():
            logger.warning("Resource definitions file not found: %s", path)
            return []
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            logger.error("Failed to parse %s: %s", path, e)
            return []

        if isinstance(raw, dict):
            raw = raw.get("resources")
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.error("%s: 'resources' must be a list", path)
            return []
        return raw

    @property
    def definitions(self) -> list[ResourceDefinition]:
        return self.load()

    def get(self, name: str) -> ResourceDefinition | None:
        return next((d for d in self.definitions if d.name == name), None)

    def reload(self) -> list[ResourceDefinition]:
        """Force reload from the last loaded source (or the configured path)."""
        return self.load(force=True)

    def __len__(self) -> int:
        return len(self.definitions)


# ── Parsers ──────────────────────────────────────────────────────────────────


def _pick(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return default


def _parse_threshold(value: Any, default: frozenset[Status]) -> frozenset[Status]:
    if value is None:
        return default
    if isinstance(value, str):
        value = [v for v in value.split(",") if v.strip()]
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise DefinitionError("notification_threshold must be a list of statuses")
    try:
        return frozenset(Status.parse(v) for v in value)
    except ValueError as e:
        raise DefinitionError(str(e)) from e


def _parse_seconds(raw: Mapping[str, Any], *keys: str) -> float | None:
    value = _pick(raw, *keys)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise DefinitionError(f"{keys[0]} must be a number, got {value!r}") from None


def parse_definition(
    raw: Any,
    default_threshold: frozenset[Status] = DEFAULT_THRESHOLD,
) -> ResourceDefinition:
    """Validate one raw record; raises DefinitionError when it is unusable."""
    if not isinstance(raw, Mapping):
        raise DefinitionError(f"expected a mapping, got {type(raw).__name__}")

    name = _pick(raw, "name", "slug")
    if not name or not isinstance(name, str):
        raise DefinitionError("missing required field 'name'")

    check_type = _pick(raw, "check_type", "checkType", "type")
    if not check_type or not isinstance(check_type, str):
        raise DefinitionError(f"resource '{name}' is missing required field 'check_type'")

    parameters = _pick(raw, "parameters", "params", default=None) or {}
    if not isinstance(parameters, Mapping):
        raise DefinitionError(f"resource '{name}': parameters must be a mapping")

    enabled = raw.get("enabled", True)
    if not isinstance(enabled, bool):
        raise DefinitionError(f"resource '{name}': enabled must be true/false")

    routes = raw.get("routes") or ()
    if isinstance(routes, Mapping):
        routes = [dict(route, name=key) for key, route in routes.items()]

    return ResourceDefinition(
        name=name,
        check_type=check_type,
        parameters=dict(parameters),
        enabled=enabled,
        notification_threshold=_parse_threshold(
            _pick(raw, "notification_threshold", "notificationThreshold"), default_threshold,
        ),
        ttl_seconds=_parse_seconds(raw, "ttl_seconds", "ttl"),
        timeout_seconds=_parse_seconds(raw, "timeout_seconds", "timeout"),
        label=raw.get("label") or "",
        abbreviation=raw.get("abbreviation") or "",
        routes=tuple(routes),
    )
