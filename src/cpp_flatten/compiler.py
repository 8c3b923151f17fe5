"""Run the platform preprocessor for a compile command and reduce its output."""

from __future__ import annotations

import logging
import subprocess

from cpp_flatten.compile_commands import CompileCommand
from cpp_flatten.errors import CompilerError
from cpp_flatten.reducer import ReductionReport, reduce_preprocessed_with_report
from cpp_flatten.types import SystemHeaderPredicate, is_system


log = logging.getLogger("cpp_flatten.compiler")


def build_preprocess_argv(argv: list[str]) -> list[str]:
    """Turn a compile argv into a `-E -dI` preprocess argv.

    `-c` becomes `-E` (or `-E` is appended when there is no `-c`), `-o` and
    its operand are removed, and `-dI` is appended so include directives are
    echoed into the output.
    """
    if not argv:
        raise CompilerError("Empty compiler argv")
    args = list(argv)
    has_compile_flag = "-c" in args
    if has_compile_flag:
        args[args.index("-c")] = "-E"
    if "-o" in args:
        out_idx = args.index("-o")
        del args[out_idx : out_idx + 2]
    if not has_compile_flag:
        args.append("-E")
    args.append("-dI")
    return args


def run_preprocessor(command: CompileCommand) -> str:
    """Run the preprocessor in the command's directory and return stdout."""
    argv = build_preprocess_argv(command.argv())
    log.debug("preprocessor: file=%s argv=%s", command.file, argv)
    try:
        proc = subprocess.run(
            argv,
            cwd=str(command.directory),
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        raise CompilerError(f"Failed to start {argv[0]}: {exc}", argv=argv) from exc

    if proc.stderr:
        log.warning(
            "preprocessor stderr for %s:\n%s",
            command.file,
            proc.stderr.decode("utf-8", errors="replace").rstrip(),
        )
    if proc.returncode != 0:
        raise CompilerError(
            f"Preprocessor exited with status {proc.returncode} for {command.file}",
            argv=argv,
            returncode=proc.returncode,
        )
    try:
        output = proc.stdout.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CompilerError(
            f"Invalid UTF-8 in preprocessor output for {command.file}",
            argv=argv,
            returncode=proc.returncode,
        ) from exc
    if not output:
        raise CompilerError(
            f"Empty preprocessor output for {command.file}",
            argv=argv,
            returncode=proc.returncode,
        )
    return output


def preprocess_command(
    command: CompileCommand,
    *,
    is_system_header: SystemHeaderPredicate = is_system,
) -> ReductionReport:
    """Replace the command's source file with its reduced preprocessed form."""
    output = run_preprocessor(command)
    reduced, report = reduce_preprocessed_with_report(
        output, is_system_header=is_system_header
    )
    command.source_path.write_text(reduced, encoding="utf-8", newline="")
    log.debug(
        "reduced %s: %d/%d lines kept, %d headers expanded",
        command.file,
        report.retained_lines,
        report.total_lines,
        report.expanded_headers,
    )
    return report
