"""Logging setup for a bridge session.

Bridge modules log through ``logging.getLogger(__name__)``, which places them
under the ``hostbridge`` package logger. :func:`setup_logging` attaches the
session handlers to that logger rather than to the root logger, so the host
application's own logging configuration is left alone. Each surface writes
its own rotating file (``hostbridge-work_item_editor.log``), and every record
carries the surface it came from.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

from ..services.bridge_types import BridgeSurface
from ..services.settings import BridgeSettings

__all__ = ["BRIDGE_LOGGER", "log_path_for", "setup_logging"]

BRIDGE_LOGGER = "hostbridge"
_DEFAULT_LOG_DIR = Path.home() / ".hostbridge" / "logs"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(surface)s | %(name)s | %(message)s"
_INSTALLED: list[logging.Handler] = []


class _SurfaceFilter(logging.Filter):
    def __init__(self, surface: BridgeSurface) -> None:
        super().__init__()
        self._surface = surface.value

    def filter(self, record: logging.LogRecord) -> bool:
        record.surface = self._surface
        return True


def log_path_for(surface: BridgeSurface | str, log_dir: Path | str | None = None) -> Path:
    """Return the log file used by *surface*; ``HOSTBRIDGE_LOG_DIR`` overrides the directory."""

    directory = log_dir or os.environ.get("HOSTBRIDGE_LOG_DIR") or _DEFAULT_LOG_DIR
    return Path(directory).expanduser() / f"hostbridge-{BridgeSurface.coerce(surface).value}.log"


def setup_logging(
    settings: BridgeSettings | None = None,
    *,
    debug: bool = False,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> Path:
    """Install the session handlers on the bridge logger and return the log path.

    The level is DEBUG when *debug* or ``settings.debug_logging`` is set and
    INFO otherwise. Calling again replaces the handlers of the previous call.
    """

    resolved = settings or BridgeSettings()
    surface = resolved.bridge_surface
    level = logging.DEBUG if debug or resolved.debug_logging else logging.INFO
    log_path = log_path_for(surface, log_dir)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    bridge_logger = logging.getLogger(BRIDGE_LOGGER)
    _remove_installed(bridge_logger)

    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    formatter = logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    surface_filter = _SurfaceFilter(surface)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(surface_filter)
        bridge_logger.addHandler(handler)
        _INSTALLED.append(handler)

    bridge_logger.setLevel(level)
    bridge_logger.debug("Logging to %s at %s", log_path, logging.getLevelName(level))
    return log_path


def _remove_installed(bridge_logger: logging.Logger) -> None:
    while _INSTALLED:
        handler = _INSTALLED.pop()
        bridge_logger.removeHandler(handler)
        handler.close()
