"""End-to-end run: preprocess + reduce every source file, then patch files."""

from __future__ import annotations

import concurrent.futures
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from cpp_flatten.compile_commands import (
    CompileCommand,
    dedupe_commands,
    is_source_file,
    is_to_be_patched,
    load_compile_commands,
)
from cpp_flatten.compiler import preprocess_command
from cpp_flatten.errors import CompilerError, CompileCommandsError, ReductionError
from cpp_flatten.patches import apply_patches
from cpp_flatten.types import DEFAULT_SYSTEM_ROOTS, SystemHeaderPredicate, system_root_predicate


log = logging.getLogger("cpp_flatten.pipeline")


@dataclass(frozen=True, slots=True)
class PipelineOptions:
    """Options for one run over a compilation database."""

    compile_commands: Path
    files: tuple[Path, ...] = ()
    preprocess: bool = False
    include: str | None = None
    system_roots: tuple[str, ...] = DEFAULT_SYSTEM_ROOTS
    workers: int = field(default_factory=lambda: os.cpu_count() or 1)

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")


def _preprocess_one(
    command: CompileCommand,
    is_system_header: SystemHeaderPredicate,
) -> dict[str, Any]:
    try:
        report = preprocess_command(command, is_system_header=is_system_header)
    except (CompilerError, CompileCommandsError, ReductionError, OSError) as exc:
        return {
            "file": str(command.file),
            "status": "error",
            "error": f"{type(exc).__name__}: {exc}",
        }
    return {"file": str(command.file), "status": "ok", "report": asdict(report)}


def preprocess_all(
    commands: list[CompileCommand],
    *,
    is_system_header: SystemHeaderPredicate,
    workers: int,
) -> list[dict[str, Any]]:
    """Preprocess every source-file command concurrently, in input order."""
    targets = [c for c in commands if is_source_file(c.file)]
    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, workers)) as ex:
        results = list(ex.map(lambda c: _preprocess_one(c, is_system_header), targets))
    for result in results:
        if result["status"] == "error":
            log.error(
                "Failed to preprocess files in compile_commands.json: %s: %s",
                result["file"],
                result["error"],
            )
    return results


def _patch_one(path: Path, *, include: str | None) -> dict[str, Any]:
    try:
        applied = apply_patches(path, include=include, is_source=is_source_file(path))
    except (OSError, UnicodeDecodeError) as exc:
        log.error("Failed to patch %s: %s: %s", path, type(exc).__name__, exc)
        return {
            "file": str(path),
            "status": "error",
            "error": f"{type(exc).__name__}: {exc}",
        }
    log.debug("patched %s: %s", path, ", ".join(applied) or "no changes")
    return {"file": str(path), "status": "ok", "applied": applied}


def files_to_patch(commands: list[CompileCommand], extra: tuple[Path, ...]) -> list[Path]:
    """Database files that are C/C++ sources or headers, then explicit files."""
    ordered: dict[Path, None] = {}
    for command in commands:
        if is_to_be_patched(command.file):
            ordered.setdefault(command.source_path, None)
    for path in extra:
        ordered.setdefault(path, None)
    return list(ordered)


def run_pipeline(options: PipelineOptions) -> dict[str, Any]:
    """Run the whole pipeline and return a JSON-serializable summary.

    Raises `CompileCommandsError` when the database cannot be loaded.
    """
    commands = dedupe_commands(load_compile_commands(options.compile_commands))
    log.info("Loaded %d compile commands from %s", len(commands), options.compile_commands)
    is_system_header = system_root_predicate(*options.system_roots)

    preprocess_results: list[dict[str, Any]] = []
    if options.preprocess:
        preprocess_results = preprocess_all(
            commands,
            is_system_header=is_system_header,
            workers=options.workers,
        )
    failed = sum(1 for r in preprocess_results if r["status"] == "error")

    summary: dict[str, Any] = {
        "status": "ok",
        "compile_commands": str(options.compile_commands),
        "commands": len(commands),
        "preprocessed": len(preprocess_results) - failed,
        "preprocess_failed": failed,
        "preprocess_results": preprocess_results,
        "patched": [],
    }
    if failed:
        summary["status"] = "error"
        return summary

    patched = [
        _patch_one(path, include=options.include)
        for path in files_to_patch(commands, options.files)
    ]
    patch_failed = sum(1 for r in patched if r["status"] == "error")
    log.info("Patched %d files (%d failed)", len(patched) - patch_failed, patch_failed)
    summary["patched"] = patched
    summary["patch_failed"] = patch_failed
    if patch_failed:
        summary["status"] = "error"
    return summary
