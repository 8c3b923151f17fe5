"""Reduce `-E -dI` preprocessor output to a compact single-file form."""

from cpp_flatten.classifier import classify_line, classify_lines, split_source_lines
from cpp_flatten.errors import (
    CompileCommandsError,
    CompilerError,
    MalformedLineMarkerError,
    PatternError,
    ReductionError,
)
from cpp_flatten.reducer import (
    ReductionReport,
    reconstruct,
    reduce_preprocessed,
    reduce_preprocessed_with_report,
    scan_expansions,
)
from cpp_flatten.types import (
    DEFAULT_SYSTEM_ROOTS,
    ClassifiedLine,
    ExpandedHeader,
    IncludedHeader,
    OtherLine,
    SystemHeaderPredicate,
    is_path_suffix,
    is_system,
    same_header,
    system_root_predicate,
)

__all__ = [
    "DEFAULT_SYSTEM_ROOTS",
    "ClassifiedLine",
    "CompileCommandsError",
    "CompilerError",
    "ExpandedHeader",
    "IncludedHeader",
    "MalformedLineMarkerError",
    "OtherLine",
    "PatternError",
    "ReductionError",
    "ReductionReport",
    "SystemHeaderPredicate",
    "classify_line",
    "classify_lines",
    "is_path_suffix",
    "is_system",
    "reconstruct",
    "reduce_preprocessed",
    "reduce_preprocessed_with_report",
    "same_header",
    "scan_expansions",
    "split_source_lines",
    "system_root_predicate",
]
