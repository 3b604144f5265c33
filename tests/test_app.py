"""Tests covering the command line helpers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from hostbridge import app
from hostbridge.services.settings import BridgeSettings, SettingsStore


@pytest.fixture(autouse=True)
def _stub_logging(monkeypatch: pytest.MonkeyPatch) -> list[tuple[BridgeSettings, bool]]:
    calls: list[tuple[BridgeSettings, bool]] = []

    def _record(settings: BridgeSettings, *, debug: bool = False) -> Path:
        calls.append((settings, debug))
        return Path("unused.log")

    monkeypatch.setattr(app, "configure_logging", _record)
    for name in (
        "HOSTBRIDGE_DEBUG",
        "HOSTBRIDGE_SURFACE",
        "HOSTBRIDGE_SETTINGS_PATH",
        "HOSTBRIDGE_DEBUG_LOGGING",
        "HOSTBRIDGE_LEGACY_ID_FIELD",
    ):
        monkeypatch.delenv(name, raising=False)
    return calls


def test_describe_surface_lists_editor_catalogue() -> None:
    description = app.describe_surface(BridgeSettings())

    assert description["surface"] == "work_item_editor"
    assert description["priority"] == 50
    assert [entry["action"] for entry in description["actions"]] == [
        "open-artifact-link",
        "open-work-item",
        "window-open",
        "discard-new-work-item",
        "window-unload",
    ]
    unload = description["actions"][-1]
    assert unload == {"action": "window-unload", "sink": None, "always_registered": True}
    assert {"event": "DocumentDeleted", "sink": "DocumentDeleted"} in description["notifications"]
    assert description["commands"] == ["Save", "QueryIsModified", "QueryDocumentId"]


def test_describe_surface_for_build_report() -> None:
    description = app.describe_surface(BridgeSettings(surface="build_report", handler_priority=5))

    assert description["priority"] == 5
    assert [entry["sink"] for entry in description["actions"]] == [
        "OpenArtifactLink",
        "OpenWorkItemLink",
        "OpenUrl",
    ]


def test_main_prints_catalogue_by_default(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    app.main(["--settings-path", str(tmp_path / "settings.json")])

    payload = json.loads(capsys.readouterr().out)
    assert payload["surface"] == "work_item_editor"


def test_main_dump_settings_applies_cli_overrides(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "settings.json"
    SettingsStore(path).save(BridgeSettings(sink_prefix="Saved_"))

    app.main(
        [
            "--settings-path",
            str(path),
            "--dump-settings",
            "--set",
            "handler_priority=7",
            "--set",
            "legacy_id_field=none",
            "--set",
            "strict_sinks=on",
        ]
    )

    payload = json.loads(capsys.readouterr().out)
    assert payload["settings"]["sink_prefix"] == "Saved_"
    assert payload["settings"]["handler_priority"] == 7
    assert payload["settings"]["legacy_id_field"] is None
    assert payload["settings"]["strict_sinks"] is True
    assert payload["meta"]["path"] == str(path)
    assert payload["meta"]["cli_overrides"] == ["handler_priority", "legacy_id_field", "strict_sinks"]


def test_main_passes_loaded_settings_to_logging(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    _stub_logging: list[tuple[BridgeSettings, bool]],
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("HOSTBRIDGE_DEBUG", "on")

    app.main(["--settings-path", str(tmp_path / "settings.json"), "--set", "debug_logging=true"])

    capsys.readouterr()
    assert len(_stub_logging) == 1
    settings, debug = _stub_logging[0]
    assert settings.debug_logging is True
    assert debug is True


def test_main_describe_flag_selects_catalogue(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    app.main(["--settings-path", str(tmp_path / "settings.json"), "--describe", "--set", "surface=build_report"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["surface"] == "build_report"
    assert "settings" not in payload


def test_main_rejects_both_output_modes(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        app.main(["--settings-path", str(tmp_path / "settings.json"), "--describe", "--dump-settings"])

    assert excinfo.value.code == 2
    capsys.readouterr()


@pytest.mark.parametrize(
    "override",
    ["handler_priority", "unknown=1", "handler_priority=high", "strict_sinks=maybe", "metadata=[1]"],
)
def test_main_rejects_invalid_overrides(
    tmp_path: Path, override: str, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        app.main(["--settings-path", str(tmp_path / "settings.json"), "--set", override])

    assert excinfo.value.code == 2
    assert "Invalid --set override" in capsys.readouterr().err


def test_coerce_cli_overrides_parses_metadata_json() -> None:
    overrides = app._coerce_cli_overrides(["metadata={\"shell\": \"qt\"}", "sink_prefix= Shell_ "])

    assert overrides == {"metadata": {"shell": "qt"}, "sink_prefix": "Shell_"}


def test_legacy_id_field_none_override_survives_loading(tmp_path: Path) -> None:
    overrides = app._coerce_cli_overrides(["legacy_id_field=none"])

    settings = SettingsStore(tmp_path / "settings.json").load(overrides=overrides)

    assert overrides == {"legacy_id_field": None}
    assert settings.legacy_id_field is None


def test_settings_report_lists_active_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOSTBRIDGE_SINK_PREFIX", "Env_")
    store = SettingsStore(tmp_path / "settings.json")

    report = app.settings_report(store.load(), store, {})

    assert report["settings"]["sink_prefix"] == "Env_"
    assert report["meta"]["cli_overrides"] == []
    assert "HOSTBRIDGE_SINK_PREFIX" in report["meta"]["environment_variables"]
