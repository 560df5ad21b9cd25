"""
coltag Attribute Filter

Select columns of a TaggedMatrix by a predicate over its attribute table.

A predicate is one of:
    - a string expression over field names, evaluated with
      pandas.DataFrame.eval against the attribute table
      ("month > 2 & name == 'yyy'", "month in [1, 2, 3]").
      Caller variables are referenced as @name.
    - a callable receiving a copy of the attribute table and
      returning a boolean mask (lambda t: t.month > 2).
    - an already evaluated boolean mask.

filter_col captures the caller's scope for @name references;
filter_col_q takes that scope explicitly, for predicates built in code.

On a MonthTaggedMatrix, mon_repro hands the filtered matrix to
reprocess_month.

Usage:
    filter_col(zc, "month > 2")
    lo = 3
    filter_col(zc, "month >= @lo and name == 'xxx'")
    filter_col(zm, "month in [1, 2, 3]", mon_repro=range(-24, 4))
"""

import inspect
import logging
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from coltag.core.errors import InvalidMonthRange, PredicateError
from coltag.core.tagged import TaggedMatrix

logger = logging.getLogger(__name__)

PREDICATE_ERRORS = (NameError, KeyError, AttributeError, SyntaxError, TypeError, ValueError)


def _caller_scope(depth: int = 2) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Locals and globals of the frame `depth` levels above this one."""
    frame = inspect.currentframe()
    try:
        for _ in range(depth):
            frame = frame.f_back
        return dict(frame.f_locals), dict(frame.f_globals)
    finally:
        del frame


def _as_mask(mask: Any, ncol: int, cond: Any) -> np.ndarray:
    if isinstance(mask, (pd.Series, pd.Index)):
        mask = mask.to_numpy()
    arr = np.asarray(mask)
    if arr.dtype == object and all(isinstance(v, (bool, np.bool_)) for v in arr.ravel()):
        arr = arr.astype(bool)
    if arr.dtype != bool:
        raise PredicateError(f"Predicate {cond!r} must yield booleans, got dtype {arr.dtype}")
    if arr.shape != (ncol,):
        raise PredicateError(
            f"Predicate {cond!r} yielded a mask of shape {arr.shape}, expected ({ncol},)"
        )
    return arr


def evaluate_predicate(
    cattr: pd.DataFrame,
    cond: Any,
    local_dict: Optional[Dict[str, Any]] = None,
    global_dict: Optional[Dict[str, Any]] = None,
) -> np.ndarray:
    """
    Evaluate a predicate once against an attribute table.

    Returns:
        Boolean mask, one entry per attribute row

    Raises:
        PredicateError: Unknown field, failed evaluation, or malformed mask
    """
    try:
        if callable(cond):
            mask = cond(cattr.copy())
        elif isinstance(cond, str):
            mask = cattr.eval(cond, local_dict=local_dict or {}, global_dict=global_dict or {})
        else:
            mask = cond
    except PREDICATE_ERRORS as e:
        raise PredicateError(f"Predicate {cond!r} failed: {e}") from e
    return _as_mask(mask, len(cattr), cond)


def check_month_range(x: TaggedMatrix) -> None:
    """Raise InvalidMonthRange unless every month attribute lies in 1-12."""
    field = x.month_field
    if field not in x.fields:
        raise InvalidMonthRange(f"Attribute table has no '{field}' field")
    months = x.cattr[field]
    bad = months[~months.isin(range(1, 13))]
    if len(bad):
        raise InvalidMonthRange(
            f"All '{field}' values must be in 1-12 for month reprocessing, got {list(pd.unique(bad))}"
        )


def _filter(x: TaggedMatrix, cond: Any, local_dict, global_dict) -> TaggedMatrix:
    mask = evaluate_predicate(x.cattr, cond, local_dict, global_dict)
    logger.debug(f"Filter {cond!r}: kept {int(mask.sum())} of {x.ncol} columns")
    return x.select(cols=np.flatnonzero(mask), drop=False)


def filter_col_q(
    x: TaggedMatrix,
    cond: Any = None,
    mon_repro: Optional[Sequence[int]] = None,
    local_dict: Optional[Dict[str, Any]] = None,
    global_dict: Optional[Dict[str, Any]] = None,
) -> TaggedMatrix:
    """
    Filter columns by a deferred predicate.

    Args:
        x: Tagged matrix
        cond: Predicate (expression string, callable, or mask); None keeps all
        mon_repro: Month offsets for reprocess_month (MonthTaggedMatrix only)
        local_dict: Variables available to @name references
        global_dict: Fallback scope for @name references

    Returns:
        TaggedMatrix of the same class (drop is always off)

    Raises:
        PredicateError: Predicate failed or yielded a malformed mask
        InvalidMonthRange: mon_repro given and a month value is outside 1-12
        TypeError: mon_repro given for a matrix without month attributes
    """
    if mon_repro is not None and not x.is_month_attributed:
        raise TypeError(f"Month reprocessing needs a MonthTaggedMatrix, got {type(x).__name__}")
    if x.empty:
        return x._empty_like()

    if mon_repro is None:
        if cond is None:
            return x
        return _filter(x, cond, local_dict, global_dict)

    from coltag.ops.reprocess import reprocess_month

    check_month_range(x)
    if cond is not None:
        x = _filter(x, cond, local_dict, global_dict)
    return reprocess_month(x, mon_repro)


def filter_col(
    x: TaggedMatrix,
    cond: Any = None,
    mon_repro: Optional[Sequence[int]] = None,
) -> TaggedMatrix:
    """
    Filter columns by a predicate written at the call site.

    Same as filter_col_q, with @name references resolved in the caller's scope.
    """
    local_dict, global_dict = _caller_scope()
    return filter_col_q(x, cond, mon_repro=mon_repro,
                        local_dict=local_dict, global_dict=global_dict)
