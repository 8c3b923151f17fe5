"""Line classifier for annotated preprocessor output (`-E -dI`)."""

from __future__ import annotations

import re
from collections.abc import Iterable

from cpp_flatten.errors import MalformedLineMarkerError, PatternError
from cpp_flatten.types import ClassifiedLine, ExpandedHeader, IncludedHeader, OtherLine


_MAX_LINE_NO = 2**64 - 1


def compile_pattern(pattern: str, flags: int = 0) -> re.Pattern[str]:
    """Compile a fixed pattern, surfacing failures as `PatternError`."""
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise PatternError(f"Invalid fixed pattern {pattern!r}: {exc}") from exc


# `#include "a.h"`, `#  include <a.h>`, `#include <a.h> /* clang -E -dI */`
_INCLUDE_RE = compile_pattern(r'^#?\s*include\s*(?:"([^"]*)"|<([^>]*)>)')
# `# 133 "/usr/include/stdio.h" 3 4`
_LINE_MARKER_RE = compile_pattern(r'^#\s+(\d+)\s+"(.*)"', re.ASCII)


def split_source_lines(source: str) -> list[str]:
    """Split text on LF, dropping one trailing CR per line.

    A final newline does not produce a trailing empty line; other line
    separators (form feed, vertical tab) stay inside their line.
    """
    if not source:
        return []
    lines = source.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _parse_line_no(field: str, line: str, line_index: int | None) -> int:
    line_no = int(field)
    if line_no > _MAX_LINE_NO:
        raise MalformedLineMarkerError(line, line_index=line_index)
    return line_no


def classify_line(line: str, *, line_index: int | None = None) -> ClassifiedLine:
    """Classify one line (without its newline).

    The include pattern is tried before the line-marker pattern. A line
    shaped like a marker whose digits do not fit an unsigned 64-bit
    value raises `MalformedLineMarkerError`; any other non-matching line is
    returned as `OtherLine`.
    """
    include = _INCLUDE_RE.match(line)
    if include is not None:
        path = include.group(1) if include.group(1) is not None else include.group(2)
        return IncludedHeader(path=path, text=line)

    marker = _LINE_MARKER_RE.match(line)
    if marker is not None:
        line_no = _parse_line_no(marker.group(1), line, line_index)
        return ExpandedHeader(line_no=line_no, path=marker.group(2), text=line)

    return OtherLine(text=line)


def classify_lines(lines: Iterable[str]) -> list[ClassifiedLine]:
    """Classify every line in order; error messages carry 1-based indices."""
    return [
        classify_line(line, line_index=idx)
        for idx, line in enumerate(lines, start=1)
    ]
