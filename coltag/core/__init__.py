"""
coltag core

The tagged-matrix data type, its errors and month arithmetic.
"""

from .errors import (
    TaggedMatrixError,
    InvalidShape,
    MissingFieldNames,
    InvalidIndex,
    ColumnNotFound,
    BadResultType,
    InvalidBindSpec,
    ShapeMismatch,
    PredicateError,
    InvalidMonthRange,
)
from .labels import cattr_labels
from .months import true_month, rela_year, shift_index
from .tagged import TaggedMatrix, MonthTaggedMatrix, merge, order_col

__all__ = [
    "TaggedMatrix",
    "MonthTaggedMatrix",
    "merge",
    "order_col",
    "cattr_labels",
    "true_month",
    "rela_year",
    "shift_index",
    "TaggedMatrixError",
    "InvalidShape",
    "MissingFieldNames",
    "InvalidIndex",
    "ColumnNotFound",
    "BadResultType",
    "InvalidBindSpec",
    "ShapeMismatch",
    "PredicateError",
    "InvalidMonthRange",
]
