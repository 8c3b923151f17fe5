"""Core types for the header-expansion reducer.

Each line of annotated preprocessor output is classified into exactly one of
three variants:

1. `IncludedHeader`: an `#include` directive echoed by the include trace
2. `ExpandedHeader`: a compiler line marker entering a file
3. `OtherLine`: anything else (body text, blank lines, other directives)

Header paths are compared by path-suffix identity rather than equality so a
relative `#include "foo.h"` and an absolute `/project/foo.h` marker name the
same header.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias
from dataclasses import dataclass, field
from pathlib import PurePosixPath


SystemHeaderPredicate: TypeAlias = Callable[[str], bool]

DEFAULT_SYSTEM_ROOTS: tuple[str, ...] = ("/usr",)


@dataclass(frozen=True, slots=True)
class IncludedHeader:
    """Include directive as it appears in the expanded trace.

    `path` is the referenced path verbatim (no normalization).
    """

    path: str
    text: str = field(default="", compare=False, repr=False)

    def render(self) -> str:
        """Source line, or a quoted `#include` when built without one."""
        return self.text or f'#include "{self.path}"'


@dataclass(frozen=True, slots=True)
class ExpandedHeader:
    """Line marker entry: destination line number plus the path entered."""

    line_no: int
    path: str
    text: str = field(default="", compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.line_no < 0:
            raise ValueError(f"line_no must be >= 0, got {self.line_no}")

    def render(self) -> str:
        """Source line, or a flag-less `# N "path"` marker when built without one."""
        return self.text or f'# {self.line_no} "{self.path}"'


@dataclass(frozen=True, slots=True)
class OtherLine:
    """Line matching neither directive shape, preserved as-is."""

    text: str

    def render(self) -> str:
        return self.text


ClassifiedLine: TypeAlias = IncludedHeader | ExpandedHeader | OtherLine


def _path_parts(path: str) -> tuple[str, ...]:
    if not path:
        return ()
    return PurePosixPath(path).parts


def is_path_suffix(path: str, suffix: str) -> bool:
    """True when `suffix` matches the trailing components of `path`.

    Comparison is per path component, so `foo.h` is a suffix of
    `/project/foo.h` but not of `/project/myfoo.h`. An empty suffix never
    matches.
    """
    suffix_parts = _path_parts(suffix)
    if not suffix_parts:
        return False
    path_parts = _path_parts(path)
    if len(suffix_parts) > len(path_parts):
        return False
    return path_parts[len(path_parts) - len(suffix_parts):] == suffix_parts


def same_header(a: str, b: str) -> bool:
    """Header identity: one path is a component suffix of the other."""
    return is_path_suffix(a, b) or is_path_suffix(b, a)


def system_root_predicate(*roots: str) -> SystemHeaderPredicate:
    """Build a predicate classifying paths under any of `roots` as system.

    The test is a component-wise prefix match: with root `/usr`,
    `/usr/include/stdio.h` is a system path, `/usrlocal/x.h` is not.
    """
    root_parts = tuple(_path_parts(root) for root in roots if root)

    def _is_system(path: str) -> bool:
        parts = _path_parts(path)
        return any(parts[: len(prefix)] == prefix for prefix in root_parts)

    return _is_system


is_system = system_root_predicate(*DEFAULT_SYSTEM_ROOTS)
