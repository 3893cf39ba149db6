"""Unit tests for the hearthboard command line entry points."""

from pathlib import Path

import pytest

from hearthboard import run_server
from hearthboard.__main__ import _create_parser
from hearthboard.core.config_manager import ServerConfig

pytestmark = [pytest.mark.unit, pytest.mark.fast]


class TestArgumentParser:
    def test_parse_when_no_arguments_then_server_only(self) -> None:
        args = _create_parser().parse_args([])

        assert args.port is None
        assert args.host is None
        assert args.ui == "none"

    def test_parse_when_console_ui_then_selected(self) -> None:
        args = _create_parser().parse_args(["--port", "3000", "--ui", "console"])

        assert args.port == 3000
        assert args.ui == "console"

    def test_parse_when_unknown_ui_then_exits(self) -> None:
        with pytest.raises(SystemExit):
            _create_parser().parse_args(["--ui", "framebuffer"])


class TestRunServer:
    def test_run_server_when_overrides_given_then_applied_to_config(self, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HEARTHBOARD_WEB_PORT", "9000")
        started: list[ServerConfig] = []
        monkeypatch.setattr("hearthboard.api.server.start_server", started.append)

        run_server(_create_parser().parse_args(["--port", "3000", "--host", "127.0.0.1"]))

        assert len(started) == 1
        assert started[0].server_port == 3000
        assert started[0].server_bind == "127.0.0.1"

    def test_run_server_when_no_overrides_then_environment_used(self, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HEARTHBOARD_WEB_PORT", "9000")
        started: list[ServerConfig] = []
        monkeypatch.setattr("hearthboard.api.server.start_server", started.append)

        run_server(_create_parser().parse_args([]))

        assert started[0].server_port == 9000
