"""Command line helpers for inspecting the host bridge configuration."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, get_args, get_origin, get_type_hints

from .services.action_bridge import interceptors_for
from .services.document_events import FORWARDING_TABLE
from .services.settings import BridgeSettings, SettingsStore, parse_flag, parse_optional
from .utils import logging as logging_utils

_LOGGER = logging.getLogger(__name__)

COMMANDS: tuple[str, ...] = ("Save", "QueryIsModified", "QueryDocumentId")


def configure_logging(settings: BridgeSettings, *, debug: bool = False) -> Path:
    """Route bridge logging to the log file of the configured surface."""

    return logging_utils.setup_logging(settings, debug=debug)


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> BridgeSettings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except OSError as exc:  # pragma: no cover - depends on filesystem
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return BridgeSettings()


def describe_surface(settings: BridgeSettings) -> Dict[str, Any]:
    """Return the action, notification and command catalogue for the configured surface."""

    surface = settings.bridge_surface
    return {
        "surface": surface.value,
        "priority": settings.handler_priority,
        "actions": [
            {
                "action": interceptor.action.value,
                "sink": interceptor.sink.value if interceptor.sink is not None else None,
                "always_registered": interceptor.sink is None,
            }
            for interceptor in interceptors_for(surface)
        ],
        "notifications": [
            {"event": event_type.__name__, "sink": sink.value}
            for event_type, (sink, _extract) in FORWARDING_TABLE.items()
        ],
        "commands": list(COMMANDS),
    }


def settings_report(settings: BridgeSettings, store: SettingsStore, overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the effective settings together with where they came from."""

    return {
        "settings": asdict(settings),
        "meta": {
            "path": str(store.path),
            "cli_overrides": sorted(overrides),
            "environment_variables": sorted(name for name in os.environ if name.startswith("HOSTBRIDGE_")),
        },
    }


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the ``hostbridge`` console script."""

    args = _parse_cli_args(argv)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides)
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    settings_path = args.settings_path or os.environ.get("HOSTBRIDGE_SETTINGS_PATH")
    store = SettingsStore(Path(settings_path).expanduser() if settings_path else None)
    settings = load_settings(store=store, overrides=cli_overrides or None)
    configure_logging(settings, debug=parse_flag(os.environ.get("HOSTBRIDGE_DEBUG") or "0"))

    if args.output == "settings":
        payload = settings_report(settings, store, cli_overrides)
    else:
        payload = describe_surface(settings)
    json.dump(payload, sys.stdout, indent=2)
    sys.stdout.write("\n")


def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="hostbridge",
        description="Inspect the host bridge configuration and its action/sink catalogue.",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--describe",
        dest="output",
        action="store_const",
        const="describe",
        help="Print the interceptors, notifications and commands for the configured surface (default).",
    )
    output.add_argument(
        "--dump-settings",
        dest="output",
        action="store_const",
        const="settings",
        help="Print the effective settings payload and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.hostbridge/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings (repeatable).",
    )
    parser.set_defaults(output="describe")
    return parser.parse_args(argv)


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    """Parse ``KEY=VALUE`` pairs using the annotation of each settings field."""

    hints = get_type_hints(BridgeSettings)
    overrides: Dict[str, Any] = {}
    for entry in items:
        key, separator, raw_value = entry.partition("=")
        key = key.strip()
        if not separator or not key:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        if key not in hints:
            raise ValueError(f"Unknown setting '{key}'.")
        overrides[key] = _parse_override(hints[key], raw_value.strip())
    return overrides


def _parse_override(annotation: Any, raw_value: str) -> Any:
    if get_origin(annotation) is dict:
        value = json.loads(raw_value or "{}")
        if not isinstance(value, dict):
            raise ValueError("Dict overrides must be JSON objects.")
        return value
    members = get_args(annotation) or (annotation,)
    if type(None) in members:
        return parse_optional(raw_value)
    if bool in members:
        return parse_flag(raw_value)
    if int in members:
        return int(raw_value, 10)
    return raw_value


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
