"""
coltag - time series matrices with column attribute tables

A TaggedMatrix is a numeric matrix whose rows follow an ordered time
index and whose columns are described by an attribute table (one row
per column, arbitrary named fields such as "month" or "variable").
Columns are selected, filtered and transformed by those attributes
while the matrix, index and table stay aligned.

Architecture:
    - core:   TaggedMatrix / MonthTaggedMatrix, errors, month arithmetic
    - ops:    apply_core, apply_col, filter_col, reprocess_month, melt, cast_long
    - config: YAML defaults (index name, label separator, ...)
    - utils:  logging setup

Quick Start:
    import numpy as np
    import pandas as pd
    from coltag import TaggedMatrix, apply_core, filter_col

    x = np.arange(1, 21).reshape(5, 4, order="F")
    cattr = pd.DataFrame({"month": [2, 3, 5, 6], "name": ["xxx", "xxx", "xxx", "yyy"]})
    zc = TaggedMatrix(x, order_by=range(1991, 1996), cattr=cattr)

    filter_col(zc, "month > 2")
    apply_core(zc, lambda m: m.mean(axis=0), bind="cattr")
"""

from coltag.core import (
    TaggedMatrix,
    MonthTaggedMatrix,
    merge,
    order_col,
    cattr_labels,
    true_month,
    rela_year,
    shift_index,
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
from coltag.ops import (
    apply_core,
    apply_col,
    filter_col,
    filter_col_q,
    reprocess_month,
    melt,
    cast_long,
)

__version__ = "0.1.0"

__all__ = [
    "TaggedMatrix",
    "MonthTaggedMatrix",
    "merge",
    "order_col",
    "cattr_labels",
    "true_month",
    "rela_year",
    "shift_index",
    "apply_core",
    "apply_col",
    "filter_col",
    "filter_col_q",
    "reprocess_month",
    "melt",
    "cast_long",
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
