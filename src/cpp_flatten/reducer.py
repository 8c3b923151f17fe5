"""Two-pass header-expansion reducer.

Pass 1 (`scan_expansions`) collects every header path entered by a line
marker. Pass 2 (`reconstruct`) re-walks the same lines from the main-file
context and keeps or drops each one:

1. line markers are always kept so downstream include-stack bookkeeping
   stays balanced
2. body text inside a system header is dropped
3. include directives are dropped inside a system header body, or when a
   non-system header with the same identity was expanded anywhere in the
   unit (the expansion may come later than the textual include, which is
   why pass 1 has to see the whole file first)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from cpp_flatten.classifier import classify_lines, split_source_lines
from cpp_flatten.types import (
    ClassifiedLine,
    ExpandedHeader,
    IncludedHeader,
    SystemHeaderPredicate,
    is_system,
    same_header,
)


@dataclass(frozen=True, slots=True)
class ReductionReport:
    """Line accounting for one reduction."""

    total_lines: int
    retained_lines: int
    dropped_system_lines: int
    dropped_system_includes: int
    dropped_redundant_includes: int
    expanded_headers: int

    @property
    def dropped_lines(self) -> int:
        """Lines removed from the input, across every drop reason."""
        return self.total_lines - self.retained_lines


def scan_expansions(lines: Iterable[ClassifiedLine]) -> frozenset[str]:
    """Pass 1: the flat set of every path entered by a line marker."""
    expanded: set[str] = set()
    for line in lines:
        if isinstance(line, ExpandedHeader):
            expanded.add(line.path)
    return frozenset(expanded)


def _reconstruct(
    lines: Sequence[ClassifiedLine],
    expanded_headers: Iterable[str],
    is_system_header: SystemHeaderPredicate,
) -> tuple[str, ReductionReport]:
    expanded = frozenset(expanded_headers)
    local_headers = tuple(path for path in expanded if not is_system_header(path))
    redundant_by_path: dict[str, bool] = {}

    def _is_redundant(include_path: str) -> bool:
        cached = redundant_by_path.get(include_path)
        if cached is None:
            cached = any(same_header(path, include_path) for path in local_headers)
            redundant_by_path[include_path] = cached
        return cached

    in_system_body = False
    out: list[str] = []
    dropped_system_lines = 0
    dropped_system_includes = 0
    dropped_redundant_includes = 0

    for line in lines:
        if isinstance(line, ExpandedHeader):
            in_system_body = is_system_header(line.path)
        elif isinstance(line, IncludedHeader):
            if in_system_body:
                dropped_system_includes += 1
                continue
            if _is_redundant(line.path):
                dropped_redundant_includes += 1
                continue
        elif in_system_body:
            dropped_system_lines += 1
            continue
        out.append(line.render())

    report = ReductionReport(
        total_lines=len(lines),
        retained_lines=len(out),
        dropped_system_lines=dropped_system_lines,
        dropped_system_includes=dropped_system_includes,
        dropped_redundant_includes=dropped_redundant_includes,
        expanded_headers=len(expanded),
    )
    return "".join(f"{text}\n" for text in out), report


def reconstruct(
    lines: Sequence[ClassifiedLine],
    expanded_headers: Iterable[str],
    *,
    is_system_header: SystemHeaderPredicate = is_system,
) -> str:
    """Pass 2: join every retained line, each followed by a newline."""
    text, _ = _reconstruct(lines, expanded_headers, is_system_header)
    return text


def reduce_preprocessed_with_report(
    source: str,
    *,
    is_system_header: SystemHeaderPredicate = is_system,
) -> tuple[str, ReductionReport]:
    """Reduce annotated preprocessor output and account for every line.

    Raises `ReductionError` (no partial output) when a line marker is
    malformed.
    """
    lines = classify_lines(split_source_lines(source))
    expanded = scan_expansions(lines)
    return _reconstruct(lines, expanded, is_system_header)


def reduce_preprocessed(
    source: str,
    *,
    is_system_header: SystemHeaderPredicate = is_system,
) -> str:
    """Reduce annotated preprocessor output to its retained lines."""
    text, _ = reduce_preprocessed_with_report(source, is_system_header=is_system_header)
    return text
