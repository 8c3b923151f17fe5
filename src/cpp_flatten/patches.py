"""Regex textual patches applied to source files after preprocessing.

Each patch takes the file text and returns the patched text, or `None` when
the patch does not apply and the file should be left untouched.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TypeAlias
from pathlib import Path

from cpp_flatten.classifier import compile_pattern


MatchFilter: TypeAlias = Callable[[re.Match[str] | None], bool]

_NULL_RE = compile_pattern(r"([^\w^\(])NULL([^\w^\)])")
_CONSTEXPR_FUNCTION_RE = compile_pattern(r"constexpr\s(.*(\r)?(\n)?(\s*)\{)")
_STATIC_CONSTEXPR_OBJECT_RE = compile_pattern(r"static constexpr\s(.*;)")
_QUOTED_SINGLE_QUOTES_RE = compile_pattern("\"(.*?)\\\\?'([^\"\\n]{2,}?)\\\\?'(.*?)\"")


def _no_match(match: re.Match[str] | None) -> bool:
    return match is None


def _no_match_or_nested_double_quote(match: re.Match[str] | None) -> bool:
    if match is None:
        return True
    return '"' in match.group(1) or '"' in match.group(3)


def _apply(
    pattern: re.Pattern[str],
    original: str,
    replacement: str,
    skip: MatchFilter = _no_match,
) -> str | None:
    # `skip` only inspects the first match; the replacement covers all of them.
    if skip(pattern.search(original)):
        return None
    return pattern.sub(replacement, original)


def wrap_null(text: str) -> str | None:
    """`f(a, NULL, b)` -> `f(a, (NULL), b)`."""
    return _apply(_NULL_RE, text, r"\1(NULL)\2")


def strip_constexpr_functions(text: str) -> str | None:
    return _apply(_CONSTEXPR_FUNCTION_RE, text, r"\1")


def strip_static_constexpr_objects(text: str) -> str | None:
    return _apply(_STATIC_CONSTEXPR_OBJECT_RE, text, r"\1")


def escape_single_quotes_in_const_char(text: str) -> str | None:
    """Double single quotes inside string literals for YAML embedding.

    `"test 'ab'."` becomes `"test ''ab''."`. Character literals such as
    `'-'` next to strings are left alone.
    """
    return _apply(
        _QUOTED_SINGLE_QUOTES_RE,
        text,
        "\"\\1''\\2''\\3\"",
        _no_match_or_nested_double_quote,
    )


def prepend_include(text: str, header: str) -> str:
    return f"#include <{header}>\n{text}"


def apply_patches(
    path: Path,
    *,
    include: str | None = None,
    is_source: bool = False,
) -> list[str]:
    """Patch one file in place; returns names of the patches that applied."""
    original = path.read_bytes().decode("utf-8")
    text = original
    applied: list[str] = []

    if include is not None:
        text = prepend_include(text, include)
        applied.append("include")

    steps: list[tuple[str, Callable[[str], str | None]]] = [
        ("wrap_null", wrap_null),
        ("strip_constexpr_functions", strip_constexpr_functions),
    ]
    if is_source:
        steps.append(("strip_static_constexpr_objects", strip_static_constexpr_objects))
    steps.append(("escape_single_quotes", escape_single_quotes_in_const_char))

    for name, patch in steps:
        patched = patch(text)
        if patched is None:
            continue
        text = patched
        applied.append(name)

    if text != original:
        path.write_bytes(text.encode("utf-8"))
    return applied
