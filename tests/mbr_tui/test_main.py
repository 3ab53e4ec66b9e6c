from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from mbr_cli.mbr_tui import main as tui_main
from mbr_cli.mbr_tui.service import ServiceClient
from mbr_cli.shared import paths


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(paths.CONFIG_FILE_ENV, str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("MBR_URL", raising=False)
    monkeypatch.delenv("MBR_API_KEY", raising=False)


def test_requires_api_key() -> None:
    runner = CliRunner()
    result = runner.invoke(tui_main.main, [])

    assert result.exit_code == 1
    assert "Configuration error: No API key found" in result.output


def test_options_override_session_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    captured: dict[str, object] = {}

    def fake_run_app(service, settings, logger, *, log_file=None):
        captured.update(service=service, settings=settings, log_file=log_file)

    monkeypatch.setattr(tui_main, "run_app", fake_run_app)
    log_file = str(tmp_path / "session.log")

    runner = CliRunner()
    result = runner.invoke(
        tui_main.main,
        ["--api-key", "mb_test", "--page-size", "25", "--tick-ms", "50", "--no-color", "--log-file", log_file],
    )

    assert result.exit_code == 0, result.output
    settings = captured["settings"]
    assert (settings.page_size, settings.tick_ms, settings.color) == (25, 50, False)
    assert isinstance(captured["service"], ServiceClient)
    assert captured["log_file"] == log_file


def test_env_api_key_is_used(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MBR_API_KEY", "mb_env")
    seen: list[str | None] = []

    def fake_run_app(service, settings, logger, *, log_file=None):
        seen.append(service.client.api_key)

    monkeypatch.setattr(tui_main, "run_app", fake_run_app)

    result = CliRunner().invoke(tui_main.main, [])

    assert result.exit_code == 0, result.output
    assert seen == ["mb_env"]
