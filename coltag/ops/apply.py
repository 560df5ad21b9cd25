"""
coltag Functional Applicator

Apply a function to the whole core matrix of a TaggedMatrix and bind
the result back to the index, the attribute table, both, or neither.

The bind specification has one or two entries, each "cattr", "index"
or None. The position of an entry names the result dimension it binds:

    bind                 result shape   returns
    None / (None, None)  anything       raw result
    ("index", "cattr")   R x C          TaggedMatrix
    ("cattr", "index")   C x R          TaggedMatrix (result transposed)
    "cattr"              C vector       attribute table + result column(s)
    "index"              R vector       Series on the index
    ("cattr", None)      C x k          attribute table + k columns
    (None, "cattr")      k x C          transposed, then as above
    ("index", None)      R x k          DataFrame on the index
    (None, "index")      k x R          transposed, then as above

Under (None, ...) a vector result counts as one column, so its
transpose is a single row.

Usage:
    apply_core(zc, lambda m: m.mean(axis=0), bind="cattr")
    apply_core(zc, lambda m: m * 2, bind=("index", "cattr"))
    apply_core(zc, lambda m: m[2:4], bind=(None, "cattr"))
"""

import logging
from numbers import Number
from typing import Any, Callable, Iterable, List, Tuple, Union

import numpy as np
import pandas as pd

from coltag.config import get_defaults
from coltag.core.errors import BadResultType, InvalidBindSpec, ShapeMismatch
from coltag.core.tagged import TaggedMatrix

logger = logging.getLogger(__name__)

BIND_TARGETS = ("cattr", "index")

Result = Union[pd.Series, pd.DataFrame]


# =============================================================================
# Bind specification
# =============================================================================

def _is_absent(entry: Any) -> bool:
    if entry is None:
        return True
    try:
        return bool(pd.isna(entry))
    except (TypeError, ValueError):
        return False


def normalize_bind(bind: Any) -> Tuple:
    """
    Validate a bind specification.

    Returns:
        Tuple of 1 or 2 entries, each "cattr", "index" or None

    Raises:
        InvalidBindSpec: On a bad length, an unknown entry, or the same
                         target in both positions
    """
    if isinstance(bind, str) or np.ndim(bind) == 0:
        bind = (bind,)
    bind = tuple(bind)

    if len(bind) not in (1, 2):
        raise InvalidBindSpec(f"Bind must have 1 or 2 entries, got {len(bind)}")

    entries = []
    for entry in bind:
        if _is_absent(entry):
            entries.append(None)
        elif isinstance(entry, str) and entry in BIND_TARGETS:
            entries.append(entry)
        else:
            raise InvalidBindSpec(f"Bind entries must be 'cattr', 'index' or None, got {entry!r}")

    if len(entries) == 2 and entries[0] is not None and entries[0] == entries[1]:
        raise InvalidBindSpec(f"Bind cannot target '{entries[0]}' twice")
    return tuple(entries)


# =============================================================================
# Result coercion
# =============================================================================

def _coerce_result(result: Any) -> Result:
    """Vectors become a Series, matrices and tables a DataFrame."""
    if isinstance(result, (pd.Series, pd.DataFrame)):
        return result
    if isinstance(result, Number):
        return pd.Series([result])
    if isinstance(result, (np.ndarray, list, tuple)):
        try:
            arr = np.asarray(result)
        except ValueError as e:
            raise BadResultType(f"Function result is not a vector or matrix: {e}") from e
        if arr.ndim == 0 and arr.dtype.kind in "biufc":
            return pd.Series([arr.item()])
        if arr.ndim == 1:
            return pd.Series(arr)
        if arr.ndim == 2:
            return pd.DataFrame(arr)
    raise BadResultType(
        f"Function must return a vector or a matrix, got {type(result).__name__}"
    )


def _unique_names(names: Iterable[str], taken: Iterable[str]) -> List[str]:
    taken = set(taken)
    out = []
    for name in names:
        candidate, k = name, 1
        while candidate in taken:
            candidate = f"{name}_{k}"
            k += 1
        taken.add(candidate)
        out.append(candidate)
    return out


def _result_columns(result: Result, existing: Iterable[str]) -> pd.DataFrame:
    """Result as a table of named columns, ready to append to the attribute table."""
    base = get_defaults()["result_field"]
    if isinstance(result, pd.Series):
        name = result.name if isinstance(result.name, str) and result.name else base
        names = _unique_names([name], existing)
        return pd.DataFrame({names[0]: result.to_numpy()})

    if len(result.columns) and all(isinstance(c, str) and c for c in result.columns):
        names = list(result.columns)
    elif result.shape[1] == 1:
        names = [base]
    else:
        names = [f"{base}{k + 1}" for k in range(result.shape[1])]
    names = _unique_names(names, existing)
    return result.set_axis(names, axis=1).reset_index(drop=True)


# =============================================================================
# Binding
# =============================================================================

def _bind_cattr(x: TaggedMatrix, result: Result) -> pd.DataFrame:
    if len(result) != x.ncol:
        raise ShapeMismatch(
            f"Result has {len(result)} rows but the attribute table has {x.ncol}"
        )
    cattr = x.cattr
    appended = _result_columns(result, cattr.columns)
    return pd.concat([cattr, appended], axis=1).reset_index(drop=True)


def _bind_index(x: TaggedMatrix, result: Result) -> Result:
    if len(result) != x.nrow:
        raise ShapeMismatch(f"Result has {len(result)} rows but the index has {x.nrow} keys")
    if isinstance(result, pd.Series):
        return pd.Series(result.to_numpy(), index=x.index, name=result.name)
    return result.set_axis(x.index, axis=0)


def _bind_both(x: TaggedMatrix, result: Result, bind: Tuple) -> TaggedMatrix:
    if isinstance(result, pd.Series):
        raise ShapeMismatch(f"Bind {bind} needs a matrix result, got a vector of {len(result)}")
    values = result.to_numpy()
    if bind == ("index", "cattr"):
        expected = (x.nrow, x.ncol)
    else:
        expected = (x.ncol, x.nrow)
    if values.shape != expected:
        raise ShapeMismatch(f"Bind {bind} needs a {expected} result, got {values.shape}")
    if bind == ("cattr", "index"):
        values = values.T
    return x._new(values, x._index, x._cattr)


def _bind_one(x: TaggedMatrix, result: Result, bind: Tuple) -> Any:
    target = next(entry for entry in bind if entry is not None)
    if len(bind) == 2 and bind[0] is None:
        # a vector is a single column, so its transpose is a single row
        if isinstance(result, pd.Series):
            result = result.to_frame()
        result = result.T
    elif isinstance(result, pd.DataFrame):
        if len(bind) == 1 and 1 not in result.shape:
            raise ShapeMismatch(
                f"A single bind target needs a vector or a one-row/one-column matrix, "
                f"got {result.shape}"
            )
    if target == "cattr":
        return _bind_cattr(x, result)
    return _bind_index(x, result)


# =============================================================================
# Public API
# =============================================================================

def apply_core(x: TaggedMatrix, func: Callable, bind: Any, *args, **kwargs) -> Any:
    """
    Apply a function to the core matrix and bind the result.

    Args:
        x: Tagged matrix
        func: Called once as func(matrix, *args, **kwargs); must return a
              vector or a matrix (a DataFrame is taken as a matrix)
        bind: Bind specification, see module docstring
        *args, **kwargs: Passed on to func

    Returns:
        Raw result, attribute table, Series/DataFrame on the index, or a
        TaggedMatrix, depending on bind. An empty x gives an empty instance.

    Raises:
        InvalidBindSpec: Bad bind specification
        BadResultType: func returned neither a vector nor a matrix
        ShapeMismatch: Result dimensions do not fit the requested binding
    """
    if x.empty:
        return x._empty_like()
    bind = normalize_bind(bind)

    raw = func(x.to_numpy(), *args, **kwargs)
    result = _coerce_result(raw)
    logger.debug(f"apply_core: {getattr(func, '__name__', func)!s} -> {result.shape}, bind={bind}")

    if all(entry is None for entry in bind):
        return raw.to_numpy() if isinstance(raw, pd.DataFrame) else raw
    if len(bind) == 2 and None not in bind:
        return _bind_both(x, result, bind)
    return _bind_one(x, result, bind)


def apply_col(x: TaggedMatrix, func: Callable, *args, **kwargs) -> pd.DataFrame:
    """
    Apply a function to each column and bind the results to the attribute table.

    func is called once per column vector and must return a scalar or a
    vector; all vectors must have the same length. Labelled vectors
    (Series with string labels) name the appended columns.

    Returns:
        Attribute table with the per-column results appended
    """
    if x.empty:
        return x.cattr

    values = x.to_numpy()
    vectors = []
    for k in range(x.ncol):
        result = _coerce_result(func(values[:, k], *args, **kwargs))
        if isinstance(result, pd.DataFrame):
            raise BadResultType(f"Column function must return a scalar or vector, got shape {result.shape}")
        vectors.append(result)

    lengths = sorted({len(v) for v in vectors})
    if len(lengths) > 1:
        raise ShapeMismatch(f"Column function returned vectors of differing lengths: {lengths}")

    labels = vectors[0].index
    if lengths[0] == 1:
        stacked = pd.Series([v.iloc[0] for v in vectors], name=vectors[0].name)
    else:
        columns = list(labels) if all(isinstance(c, str) for c in labels) else None
        stacked = pd.DataFrame([v.to_numpy() for v in vectors], columns=columns)
    return _bind_cattr(x, stacked)
