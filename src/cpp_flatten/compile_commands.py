"""compile_commands.json loading and file-kind helpers."""

from __future__ import annotations

import logging
import shlex
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import orjson

from cpp_flatten.errors import CompileCommandsError


log = logging.getLogger("cpp_flatten.compile_commands")

HEADER_SUFFIXES = frozenset({".h", ".hpp"})
SOURCE_SUFFIXES = frozenset({".c", ".cpp", ".cc"})


def is_header_file(path: Path) -> bool:
    return path.suffix in HEADER_SUFFIXES


def is_source_file(path: Path) -> bool:
    return path.suffix in SOURCE_SUFFIXES


def is_to_be_patched(path: Path) -> bool:
    return is_header_file(path) or is_source_file(path)


@dataclass(frozen=True, slots=True)
class CompileCommand:
    """One entry of a compilation database."""

    directory: Path
    file: Path
    arguments: tuple[str, ...] | None = None
    command: str | None = None

    @property
    def source_path(self) -> Path:
        """`file` resolved against `directory` when relative."""
        if self.file.is_absolute():
            return self.file
        return self.directory / self.file

    def argv(self) -> list[str]:
        """Compiler argv from `arguments`, else the shell-split `command`."""
        if self.arguments is not None:
            return list(self.arguments)
        if self.command is not None:
            try:
                return shlex.split(self.command)
            except ValueError as exc:
                raise CompileCommandsError(
                    f"Cannot split command for {self.file}: {exc}"
                ) from exc
        raise CompileCommandsError(
            f"Entry for {self.file} has neither 'arguments' nor 'command'"
        )


def _parse_entry(raw: Any, index: int) -> CompileCommand:
    if not isinstance(raw, dict):
        raise CompileCommandsError(f"Entry {index} is not a JSON object")
    directory = raw.get("directory")
    file = raw.get("file")
    if not isinstance(directory, str) or not isinstance(file, str):
        raise CompileCommandsError(
            f"Entry {index} must have string 'directory' and 'file' fields"
        )
    arguments = raw.get("arguments")
    if arguments is not None:
        if not isinstance(arguments, list) or not all(
            isinstance(arg, str) for arg in arguments
        ):
            raise CompileCommandsError(f"Entry {index}: 'arguments' must be a list of strings")
        arguments = tuple(arguments)
    command = raw.get("command")
    if command is not None and not isinstance(command, str):
        raise CompileCommandsError(f"Entry {index}: 'command' must be a string")
    return CompileCommand(
        directory=Path(directory),
        file=Path(file),
        arguments=arguments,
        command=command,
    )


def load_compile_commands(path: Path) -> list[CompileCommand]:
    """Load and validate a compilation database (must be a non-empty array)."""
    try:
        payload = orjson.loads(path.read_bytes())
    except FileNotFoundError as exc:
        raise CompileCommandsError(f"Compilation database not found: {path}") from exc
    except orjson.JSONDecodeError as exc:
        raise CompileCommandsError(f"Failed to parse {path}: {exc}") from exc
    if not isinstance(payload, list):
        raise CompileCommandsError(f"{path} must contain a JSON array")
    if not payload:
        raise CompileCommandsError(f"{path} contains no commands")
    return [_parse_entry(raw, idx) for idx, raw in enumerate(payload)]


def dedupe_commands(commands: Iterable[CompileCommand]) -> list[CompileCommand]:
    """Keep the first command per file; later ones are logged and skipped."""
    seen: set[Path] = set()
    unique: list[CompileCommand] = []
    for command in commands:
        if command.file in seen:
            log.warning(
                "Another command for same file. Skip: file=%s, arguments=%s, command=%s",
                command.file,
                command.arguments,
                command.command,
            )
            continue
        seen.add(command.file)
        unique.append(command)
    return unique
