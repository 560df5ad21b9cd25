"""
coltag operations

Structural operations on tagged matrices:
    - apply:     apply_core / apply_col (function application with rebinding)
    - filter:    filter_col / filter_col_q (column selection by attributes)
    - reprocess: reprocess_month (month offsets into neighbouring years)
    - reshape:   melt / cast_long (long-format conversion)
"""

from .apply import apply_core, apply_col, normalize_bind
from .filter import filter_col, filter_col_q, evaluate_predicate, check_month_range
from .reprocess import reprocess_month
from .reshape import melt, cast_long

__all__ = [
    "apply_core",
    "apply_col",
    "normalize_bind",
    "filter_col",
    "filter_col_q",
    "evaluate_predicate",
    "check_month_range",
    "reprocess_month",
    "melt",
    "cast_long",
]
