"""Exception hierarchy for cpp_flatten."""

from __future__ import annotations


class ReductionError(ValueError):
    """Raised when text is not recognizable annotated preprocessor output."""


class MalformedLineMarkerError(ReductionError):
    """A line shaped like a line marker carries an unusable line number."""

    def __init__(self, line: str, *, line_index: int | None = None) -> None:
        self.line = line
        self.line_index = line_index
        where = f" at line {line_index}" if line_index is not None else ""
        super().__init__(f"Malformed line marker{where}: {line!r}")


class PatternError(RuntimeError):
    """A fixed regular expression failed to compile."""


class CompileCommandsError(ValueError):
    """Raised when a compile_commands.json database cannot be used."""


class CompilerError(RuntimeError):
    """Raised when the external preprocessor run fails."""

    def __init__(
        self,
        message: str,
        *,
        argv: list[str] | None = None,
        returncode: int | None = None,
    ) -> None:
        self.argv = argv
        self.returncode = returncode
        super().__init__(message)
