"""Tests for compile_commands.json loading."""
from __future__ import annotations

import logging
from pathlib import Path

import orjson
import pytest

from cpp_flatten.compile_commands import (
    CompileCommand,
    dedupe_commands,
    is_header_file,
    is_source_file,
    is_to_be_patched,
    load_compile_commands,
)
from cpp_flatten.errors import CompileCommandsError


def _write_db(path: Path, payload: object) -> Path:
    path.write_bytes(orjson.dumps(payload))
    return path


class TestLoadCompileCommands:
    def test_loads_arguments_and_command_entries(self, tmp_path: Path) -> None:
        db = _write_db(
            tmp_path / "compile_commands.json",
            [
                {
                    "directory": "/build",
                    "arguments": ["cc", "-c", "a.c", "-o", "a.o"],
                    "file": "a.c",
                },
                {
                    "directory": "/build",
                    "command": "cc -DNAME=\"a b\" -c /src/b.c",
                    "file": "/src/b.c",
                    "output": "b.o",
                },
            ],
        )
        commands = load_compile_commands(db)
        assert len(commands) == 2
        assert commands[0].argv() == ["cc", "-c", "a.c", "-o", "a.o"]
        assert commands[0].source_path == Path("/build/a.c")
        assert commands[1].argv() == ["cc", "-DNAME=a b", "-c", "/src/b.c"]
        assert commands[1].source_path == Path("/src/b.c")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CompileCommandsError, match="not found"):
            load_compile_commands(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "compile_commands.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(CompileCommandsError, match="Failed to parse"):
            load_compile_commands(path)

    def test_empty_array(self, tmp_path: Path) -> None:
        db = _write_db(tmp_path / "compile_commands.json", [])
        with pytest.raises(CompileCommandsError, match="no commands"):
            load_compile_commands(db)

    def test_not_an_array(self, tmp_path: Path) -> None:
        db = _write_db(tmp_path / "compile_commands.json", {"file": "a.c"})
        with pytest.raises(CompileCommandsError, match="JSON array"):
            load_compile_commands(db)

    def test_missing_fields(self, tmp_path: Path) -> None:
        db = _write_db(tmp_path / "compile_commands.json", [{"file": "a.c"}])
        with pytest.raises(CompileCommandsError, match="directory"):
            load_compile_commands(db)


class TestCompileCommand:
    def test_without_arguments_or_command(self) -> None:
        command = CompileCommand(directory=Path("/b"), file=Path("a.c"))
        with pytest.raises(CompileCommandsError, match="neither"):
            command.argv()

    def test_unbalanced_quotes(self) -> None:
        command = CompileCommand(directory=Path("/b"), file=Path("a.c"), command="cc 'a.c")
        with pytest.raises(CompileCommandsError, match="Cannot split"):
            command.argv()


class TestDedupe:
    def test_keeps_first_command_per_file(self, caplog: pytest.LogCaptureFixture) -> None:
        first = CompileCommand(directory=Path("/b"), file=Path("a.c"), arguments=("cc", "-O0"))
        second = CompileCommand(directory=Path("/b"), file=Path("a.c"), arguments=("cc", "-O2"))
        other = CompileCommand(directory=Path("/b"), file=Path("b.c"), arguments=("cc",))
        with caplog.at_level(logging.WARNING, logger="cpp_flatten.compile_commands"):
            unique = dedupe_commands([first, second, other])
        assert unique == [first, other]
        assert "Another command for same file" in caplog.text


class TestFileKinds:
    def test_kinds(self) -> None:
        assert is_source_file(Path("a.c")) is True
        assert is_source_file(Path("a.cc")) is True
        assert is_source_file(Path("a.cpp")) is True
        assert is_header_file(Path("a.hpp")) is True
        assert is_header_file(Path("a.c")) is False
        assert is_to_be_patched(Path("a.h")) is True
        assert is_to_be_patched(Path("a.S")) is False
