"""Bridge settings dataclass and persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, get_args, get_type_hints

from .bridge_types import DEFAULT_HANDLER_PRIORITY, BridgeSurface

__all__ = [
    "BridgeSettings",
    "SettingsStore",
    "default_settings_path",
    "merge_settings",
    "parse_flag",
    "parse_optional",
]

LOGGER = logging.getLogger(__name__)
_DEFAULT_SETTINGS_PATH = Path.home() / ".hostbridge" / "settings.json"
_SETTINGS_VERSION = 1
_TRUE_VALUES = frozenset({"1", "true", "yes", "on", "debug"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", "disabled"})
_NONE_VALUES = frozenset({"", "none", "null"})


@dataclass(slots=True)
class BridgeSettings:
    """Runtime configuration for a bridge session."""

    surface: str = BridgeSurface.WORK_ITEM_EDITOR.value
    handler_priority: int = DEFAULT_HANDLER_PRIORITY
    legacy_id_field: str | None = "_id"
    sink_prefix: str = "Host_"
    strict_sinks: bool = False
    debug_logging: bool = False
    telemetry_capacity: int = 200
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def bridge_surface(self) -> BridgeSurface:
        return BridgeSurface.coerce(self.surface)


# Fields that accept an explicit ``None`` (``legacy_id_field=None`` turns the fallback off)
_FIELD_TYPES = get_type_hints(BridgeSettings)
_NULLABLE_FIELDS = frozenset(name for name, hint in _FIELD_TYPES.items() if type(None) in get_args(hint))


def parse_flag(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def parse_optional(value: str) -> str | None:
    stripped = value.strip()
    return None if stripped.lower() in _NONE_VALUES else stripped


_ENV_OVERRIDES: Mapping[str, tuple[str, Callable[[str], Any]]] = {
    "HOSTBRIDGE_SURFACE": ("surface", str.strip),
    "HOSTBRIDGE_LEGACY_ID_FIELD": ("legacy_id_field", parse_optional),
    "HOSTBRIDGE_SINK_PREFIX": ("sink_prefix", str.strip),
    "HOSTBRIDGE_STRICT_SINKS": ("strict_sinks", parse_flag),
    "HOSTBRIDGE_DEBUG_LOGGING": ("debug_logging", parse_flag),
    "HOSTBRIDGE_HANDLER_PRIORITY": ("handler_priority", lambda raw: int(raw, 10)),
    "HOSTBRIDGE_TELEMETRY_CAPACITY": ("telemetry_capacity", lambda raw: int(raw, 10)),
}


def default_settings_path() -> Path:
    return _DEFAULT_SETTINGS_PATH


class SettingsStore:
    """Persistence adapter for :class:`BridgeSettings`.

    Precedence, lowest first: dataclass defaults, the JSON file, runtime
    overrides passed to :meth:`load`, then ``HOSTBRIDGE_*`` environment
    variables.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> BridgeSettings:
        payload = self._read_payload()
        settings = merge_settings(BridgeSettings(), payload, source=str(self._path))

        if payload and payload.get("version") != _SETTINGS_VERSION:
            try:
                self.save(settings)
            except OSError as exc:  # pragma: no cover - depends on filesystem
                LOGGER.warning("Failed to migrate settings payload: %s", exc)

        if overrides:
            settings = merge_settings(settings, overrides, source="runtime")
        settings = merge_settings(settings, _environment_overrides(), source="environment")
        return _normalize_surface(settings)

    def save(self, settings: BridgeSettings) -> Path:
        """Write settings atomically through a sibling ``.tmp`` file."""

        payload = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return payload


def merge_settings(settings: BridgeSettings, values: Mapping[str, Any], *, source: str) -> BridgeSettings:
    """Return *settings* updated from *values*.

    Unknown keys are ignored. ``None`` is kept only for nullable fields and
    skipped elsewhere. A ``metadata`` mapping is merged into the existing one.
    """

    known = {item.name for item in fields(BridgeSettings)}
    changes: Dict[str, Any] = {}
    for key, value in values.items():
        if key not in known:
            continue
        if value is None and key not in _NULLABLE_FIELDS:
            continue
        if key == "metadata" and isinstance(value, Mapping):
            value = {**settings.metadata, **value}
        changes[key] = value
    if not changes:
        return settings
    LOGGER.debug("Applying %s settings: %s", source, sorted(changes))
    return replace(settings, **changes)


def _environment_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, (field_name, parse) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None:
            continue
        try:
            overrides[field_name] = parse(raw)
        except ValueError:
            LOGGER.warning("Ignoring environment override %s=%r", env_name, raw)
    return overrides


def _normalize_surface(settings: BridgeSettings) -> BridgeSettings:
    try:
        surface = BridgeSurface.coerce(settings.surface)
    except ValueError:
        LOGGER.warning(
            "Unknown bridge surface %r; falling back to %s",
            settings.surface,
            BridgeSurface.WORK_ITEM_EDITOR.value,
        )
        surface = BridgeSurface.WORK_ITEM_EDITOR
    if surface.value != settings.surface:
        settings = replace(settings, surface=surface.value)
    return settings
