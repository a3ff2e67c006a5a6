"""Integration tests for scaffolding onto a real filesystem.

These tests run the orchestrator end-to-end with ``LocalFilesystem`` and the
``FileWriter`` against temporary directories and verify the persisted
layout.  No Rust toolchain is required.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from typhoon_scaffold.scaffolder.errors import DuplicateMemberError, TargetExistsError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _relative_files(root: Path) -> set[str]:
    return {path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file()}


def _members(workspace: Path) -> list[str]:
    text = (workspace / "Cargo.toml").read_text(encoding="utf-8")
    return tomllib.loads(text)["workspace"]["members"]


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


@pytest.mark.integration
class TestStandaloneInit:
    async def test_counter_outside_repository(self, tmp_path: Path, make_orchestrator) -> None:
        await make_orchestrator(tmp_path).init("my-program", "counter")

        root = tmp_path / "my-program"
        assert _relative_files(root) == {
            "Cargo.toml",
            "src/lib.rs",
            "build.rs",
            "tests/integration.rs",
            ".gitignore",
        }
        manifest_text = (root / "Cargo.toml").read_text(encoding="utf-8")
        assert 'typhoon = "0.1.0-alpha.16"' in manifest_text
        assert tomllib.loads(manifest_text)["package"]["name"] == "my-program"
        assert not list(root.rglob("*keypair*"))

    async def test_hello_world(self, tmp_path: Path, make_orchestrator) -> None:
        await make_orchestrator(tmp_path).init("greeter", "hello-world")
        assert _relative_files(tmp_path / "greeter") == {
            "Cargo.toml",
            "src/lib.rs",
            "tests/integration.rs",
            ".gitignore",
        }

    async def test_inside_repository(self, tmp_repository: Path, make_orchestrator) -> None:
        examples = tmp_repository / "examples"
        await make_orchestrator(examples).init("my-program")

        manifest = tomllib.loads((examples / "my-program" / "Cargo.toml").read_text(encoding="utf-8"))
        assert manifest["dependencies"]["typhoon"] == {"path": "../../crates/lib"}
        assert manifest["build-dependencies"]["typhoon-idl-generator"] == {
            "path": "../../crates/idl-generator"
        }

    async def test_existing_directory_untouched(self, tmp_path: Path, make_orchestrator) -> None:
        existing = tmp_path / "my-program"
        existing.mkdir()
        (existing / "keep.txt").write_text("mine", encoding="utf-8")

        with pytest.raises(TargetExistsError):
            await make_orchestrator(tmp_path).init("my-program")
        assert _relative_files(existing) == {"keep.txt"}

    async def test_repeat_output_is_identical(self, tmp_path: Path, make_orchestrator) -> None:
        first, second = tmp_path / "a", tmp_path / "b"
        first.mkdir()
        second.mkdir()
        await make_orchestrator(first).init("p")
        await make_orchestrator(second).init("p")

        for relative in _relative_files(first / "p"):
            assert (first / "p" / relative).read_bytes() == (second / "p" / relative).read_bytes()


@pytest.mark.integration
class TestWorkspace:
    async def test_init_workspace(self, tmp_path: Path, make_orchestrator) -> None:
        await make_orchestrator(tmp_path).init("my-workspace", workspace=True)

        root = tmp_path / "my-workspace"
        assert _relative_files(root) == {
            "Cargo.toml",
            ".gitignore",
            "tests/.gitkeep",
            "programs/my-workspace-program/Cargo.toml",
            "programs/my-workspace-program/src/lib.rs",
            "programs/my-workspace-program/build.rs",
            "programs/my-workspace-program/tests/integration.rs",
            "programs/my-workspace-program/.gitignore",
        }
        assert _members(root) == ["programs/my-workspace-program"]

    async def test_add_program(self, tmp_workspace: Path, make_orchestrator) -> None:
        before = (tmp_workspace / "Cargo.toml").read_text(encoding="utf-8")
        await make_orchestrator(tmp_workspace).add_program("second-program")

        assert _members(tmp_workspace) == [
            "programs/my-workspace-program",
            "programs/second-program",
        ]
        after = (tmp_workspace / "Cargo.toml").read_text(encoding="utf-8")
        assert after == before.replace(
            '    "programs/my-workspace-program",\n',
            '    "programs/my-workspace-program",\n    "programs/second-program",\n',
        )
        program = tmp_workspace / "programs" / "second-program"
        assert _relative_files(program) == {
            "Cargo.toml",
            "src/lib.rs",
            "build.rs",
            "tests/integration.rs",
            ".gitignore",
        }

    async def test_init_then_add_twice(self, tmp_path: Path, make_orchestrator) -> None:
        await make_orchestrator(tmp_path).init("ws", workspace=True, program="first")
        workspace = tmp_path / "ws"
        await make_orchestrator(workspace).add_program("second", "hello-world")
        await make_orchestrator(workspace).add_program("third")

        assert _members(workspace) == ["programs/first", "programs/second", "programs/third"]

    async def test_duplicate_member_leaves_workspace_alone(
        self, tmp_workspace: Path, make_orchestrator
    ) -> None:
        before = (tmp_workspace / "Cargo.toml").read_bytes()
        with pytest.raises(DuplicateMemberError):
            await make_orchestrator(tmp_workspace).add_program("my-workspace-program")
        assert (tmp_workspace / "Cargo.toml").read_bytes() == before

    async def test_unlisted_directory_collision(self, tmp_workspace: Path, make_orchestrator) -> None:
        (tmp_workspace / "programs" / "stray").mkdir()
        before = (tmp_workspace / "Cargo.toml").read_bytes()

        with pytest.raises(TargetExistsError):
            await make_orchestrator(tmp_workspace).add_program("stray")
        assert (tmp_workspace / "Cargo.toml").read_bytes() == before

    async def test_crlf_manifest_keeps_line_endings(
        self, tmp_path: Path, make_orchestrator
    ) -> None:
        workspace = tmp_path / "ws"
        (workspace / "programs").mkdir(parents=True)
        (workspace / "Cargo.toml").write_bytes(
            b'[workspace]\r\nmembers = [\r\n    "programs/a",\r\n]\r\n'
        )
        await make_orchestrator(workspace).add_program("b")

        assert (workspace / "Cargo.toml").read_bytes() == (
            b'[workspace]\r\nmembers = [\r\n    "programs/a",\r\n    "programs/b",\r\n]\r\n'
        )

    async def test_program_dir_variant(self, tmp_path: Path, make_orchestrator) -> None:
        workspace = tmp_path / "legacy"
        (workspace / "program").mkdir(parents=True)
        (workspace / "Cargo.toml").write_text(
            '[workspace]\nmembers = []\n', encoding="utf-8"
        )
        await make_orchestrator(workspace).add_program("p")

        assert _members(workspace) == ["program/p"]
        assert (workspace / "program" / "p" / "Cargo.toml").exists()
