"""Tests for the argparse front end (typhoon_scaffold.cli)."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from typhoon_scaffold.cli import build_parser, main
from typhoon_scaffold.utils import console


pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in (
        "TYPHOON_OUTPUT_DIR",
        "TYPHOON_LICENSE",
        "TYPHOON_DEFAULT_TEMPLATE",
        "TYPHOON_PROGRAMS_DIR",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _wide_console(monkeypatch):
    # Keep long paths in error messages on one line.
    monkeypatch.setattr(console, "width", 200)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParser:
    def test_init_defaults(self):
        args = build_parser().parse_args(["init", "my-program"])
        assert args.command == "init"
        assert args.name == "my-program"
        assert args.template is None
        assert args.workspace is False
        assert args.program is None

    def test_init_workspace_flags(self):
        args = build_parser().parse_args(
            ["init", "ws", "-w", "-t", "hello-world", "--program", "first", "-o", "out"]
        )
        assert args.workspace is True
        assert args.template == "hello-world"
        assert args.program == "first"
        assert args.output == "out"

    def test_add_program(self):
        args = build_parser().parse_args(["add", "program", "second", "-C", "/ws"])
        assert args.command == "add"
        assert args.kind == "program"
        assert args.name == "second"
        assert args.directory == "/ws"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------


class TestMain:
    def test_init_standalone(self, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        main(["init", "my-program"])

        root = tmp_path / "my-program"
        assert (root / "Cargo.toml").exists()
        assert (root / "build.rs").exists()
        output = capsys.readouterr().out
        assert "Created program 'my-program'" in output
        assert "cargo build-sbf" in output

    def test_init_workspace_then_add(self, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        main(["init", "ws", "--workspace"])
        main(["add", "program", "second", "-t", "hello-world", "-C", str(tmp_path / "ws")])

        manifest = tomllib.loads((tmp_path / "ws" / "Cargo.toml").read_text(encoding="utf-8"))
        assert manifest["workspace"]["members"] == ["programs/ws-program", "programs/second"]
        assert (tmp_path / "ws" / "programs" / "second" / "src" / "lib.rs").exists()
        assert "Added program 'second' to workspace 'ws'" in capsys.readouterr().out

    def test_program_without_workspace_warns(self, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        main(["init", "solo", "--program", "other"])

        assert (tmp_path / "solo" / "Cargo.toml").exists()
        assert not (tmp_path / "other").exists()
        assert "--program only applies with --workspace" in capsys.readouterr().out

    def test_output_option(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        main(["init", "p", "-t", "hello-world", "-o", "nested"])
        assert (tmp_path / "nested" / "p" / "src" / "lib.rs").exists()

    def test_scaffold_error_exits_1(self, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as exc_info:
            main(["init", "fn"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().out
        assert not (tmp_path / "fn").exists()

    def test_existing_directory(self, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "taken").mkdir()
        with pytest.raises(SystemExit) as exc_info:
            main(["init", "taken"])
        assert exc_info.value.code == 1
        assert "already exists" in capsys.readouterr().out

    def test_add_outside_workspace(self, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as exc_info:
            main(["add", "program", "p"])
        assert exc_info.value.code == 1
        assert "not in a workspace" in capsys.readouterr().out

    def test_unknown_template(self, tmp_path: Path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit):
            main(["init", "p", "-t", "token"])
        assert "template 'token' not found" in capsys.readouterr().out

    def test_invalid_env_config(self, monkeypatch, capsys):
        monkeypatch.setenv("TYPHOON_DEFAULT_TEMPLATE", "token")
        with pytest.raises(SystemExit) as exc_info:
            main(["templates"])
        assert exc_info.value.code == 1
        assert "Invalid configuration" in capsys.readouterr().out

    def test_templates_listing(self, capsys):
        main(["templates"])
        output = capsys.readouterr().out
        assert "counter (default)" in output
        assert "hello-world" in output
