#!/usr/bin/env python3
"""Preprocess and flatten the C/C++ translation units of a build.

For every source file in compile_commands.json, runs the recorded compiler
with `-E -dI`, reduces the output (system header bodies stripped, redundant
local includes dropped, line markers kept), and overwrites the source file.
Then applies the textual patches (NULL wrapping, constexpr stripping, quote
escaping) to every C/C++ file of the database plus any explicit files.

Usage:
    python3 scripts/flatten_units.py --compile-commands build/compile_commands.json \\
        --preprocessor -v
    python3 scripts/flatten_units.py --compile-commands build/compile_commands.json \\
        --include trace.h src/extra.c

Structured JSON output goes to stdout; logs go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any

import orjson

from cpp_flatten.errors import CompileCommandsError
from cpp_flatten.pipeline import PipelineOptions, run_pipeline
from cpp_flatten.types import DEFAULT_SYSTEM_ROOTS


log = logging.getLogger("flatten_units")


def dump_json(obj: Any) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")
    sys.stdout.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Preprocess C/C++ sources from compile_commands.json and flatten them.",
    )
    parser.add_argument(
        "--compile-commands",
        type=Path,
        required=True,
        help="Path to compile_commands.json",
    )
    parser.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="Extra files to patch",
    )
    parser.add_argument(
        "--preprocessor",
        action="store_true",
        help="Replace original source code with preprocessed one",
    )
    parser.add_argument(
        "--include",
        default=None,
        help="Add include directive on the top of files",
    )
    parser.add_argument(
        "--system-root",
        action="append",
        dest="system_roots",
        default=None,
        help=(
            "Directory whose headers count as system headers; repeatable "
            f"(default: {', '.join(DEFAULT_SYSTEM_ROOTS)})"
        ),
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=os.cpu_count() or 1,
        help="Parallel preprocessor runs (default: CPU count)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    log.debug("args = %s", vars(args))

    if args.workers < 1:
        log.error("--workers must be >= 1, got %d", args.workers)
        sys.exit(2)

    options = PipelineOptions(
        compile_commands=args.compile_commands.resolve(),
        files=tuple(args.files),
        preprocess=args.preprocessor,
        include=args.include,
        system_roots=tuple(args.system_roots or DEFAULT_SYSTEM_ROOTS),
        workers=args.workers,
    )
    try:
        summary = run_pipeline(options)
    except CompileCommandsError as exc:
        log.error("%s", exc)
        dump_json({"status": "error", "error": str(exc)})
        sys.exit(1)

    dump_json(summary)
    if summary["status"] != "ok":
        sys.exit(1)


if __name__ == "__main__":
    main()
