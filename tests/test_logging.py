"""Tests covering the bridge logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from hostbridge.services.settings import BridgeSettings
from hostbridge.utils import logging as logging_utils


@pytest.fixture(autouse=True)
def _restore_bridge_logger():
    bridge_logger = logging.getLogger(logging_utils.BRIDGE_LOGGER)
    level = bridge_logger.level
    yield bridge_logger
    logging_utils._remove_installed(bridge_logger)
    bridge_logger.setLevel(level)


def _flush(bridge_logger: logging.Logger) -> None:
    for handler in bridge_logger.handlers:
        handler.flush()


def test_setup_logging_writes_surface_tagged_records(tmp_path: Path, _restore_bridge_logger) -> None:
    log_path = logging_utils.setup_logging(BridgeSettings(surface="build_report"), log_dir=tmp_path, console=False)

    logging.getLogger("hostbridge.services.sinks").info("Sink smoke test")
    _flush(_restore_bridge_logger)

    assert log_path == tmp_path / "hostbridge-build_report.log"
    contents = log_path.read_text(encoding="utf-8")
    assert "| build_report | hostbridge.services.sinks | Sink smoke test" in contents


def test_debug_logging_setting_selects_level(tmp_path: Path, _restore_bridge_logger) -> None:
    logging_utils.setup_logging(BridgeSettings(debug_logging=True), log_dir=tmp_path, console=False)
    assert _restore_bridge_logger.level == logging.DEBUG

    logging_utils.setup_logging(BridgeSettings(), log_dir=tmp_path, console=False)
    assert _restore_bridge_logger.level == logging.INFO

    logging_utils.setup_logging(BridgeSettings(), debug=True, log_dir=tmp_path, console=False)
    assert _restore_bridge_logger.level == logging.DEBUG


def test_reconfiguring_replaces_previous_handlers(tmp_path: Path, _restore_bridge_logger) -> None:
    logging_utils.setup_logging(BridgeSettings(), log_dir=tmp_path / "first")
    before = len(_restore_bridge_logger.handlers)

    logging_utils.setup_logging(BridgeSettings(), log_dir=tmp_path / "second", console=False)

    assert len(_restore_bridge_logger.handlers) == before - 1


def test_root_logger_is_left_alone(tmp_path: Path) -> None:
    root_handlers = list(logging.getLogger().handlers)

    logging_utils.setup_logging(BridgeSettings(), log_dir=tmp_path, console=False)

    assert logging.getLogger().handlers == root_handlers


def test_log_path_respects_env_directory(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOSTBRIDGE_LOG_DIR", str(tmp_path / "env-logs"))

    assert logging_utils.log_path_for("work-item-editor") == tmp_path / "env-logs" / "hostbridge-work_item_editor.log"
