"""
coltag Tagged Matrix

A numeric matrix whose rows carry an ordered time index and whose
columns carry a column attribute ("cattr") table.

Structure:
    values  - R x C numeric matrix (numpy)
    index   - ordered index of length R (pandas.Index)
    cattr   - attribute table with C rows, one per matrix column
    index_name - name of the index variable (default "index")

Invariants (checked on every construction):
    - len(index) == R
    - len(cattr) == C
    - cattr has unique, non-empty string field names
    - index keys are unique and stored in ascending order

Row and column labels of the raw data are dropped: a column is
identified only by its attribute row, a row only by its index key.

Every operation returns a new instance. Nothing is modified in place.

Usage:
    x = np.arange(1, 21).reshape(5, 4, order="F")
    cattr = pd.DataFrame({"month": [2, 3, 5, 6], "name": ["xxx"] * 3 + ["yyy"]})
    zc = TaggedMatrix(x, order_by=range(1991, 1996), cattr=cattr)

    zc[0, 2]          # scalar
    zc[1]             # labelled vector (one row, all columns)
    zc[:, "2_xxx"]    # ordered series
    zc.select(cols=[0, 1], drop=False)
"""

import logging
from typing import Any, List, Optional, Sequence

import numpy as np
import pandas as pd

from coltag.config import get_defaults
from coltag.core.errors import (
    ColumnNotFound,
    InvalidIndex,
    InvalidShape,
    MissingFieldNames,
)
from coltag.core.labels import cattr_labels

logger = logging.getLogger(__name__)


# =============================================================================
# Validation helpers
# =============================================================================

def _check_field_names(columns: pd.Index) -> None:
    if len(columns) == 0:
        raise MissingFieldNames("Column attribute table has no fields")
    if isinstance(columns, pd.RangeIndex):
        raise MissingFieldNames("Column attribute table has positional field names only")
    bad = [c for c in columns if not isinstance(c, str) or not c]
    if bad:
        raise MissingFieldNames(f"Attribute field names must be non-empty strings, got {bad}")
    if columns.has_duplicates:
        dupes = sorted(set(columns[columns.duplicated()]))
        raise MissingFieldNames(f"Attribute field names must be unique, duplicated: {dupes}")


def _as_cattr(cattr: Any) -> pd.DataFrame:
    if cattr is None:
        raise MissingFieldNames("A column attribute table is required")
    if not isinstance(cattr, pd.DataFrame):
        try:
            cattr = pd.DataFrame(cattr)
        except (TypeError, ValueError) as e:
            raise InvalidShape(f"Cannot build a column attribute table: {e}") from e
    _check_field_names(cattr.columns)
    return cattr


def _positions(selector: Any, n: int) -> np.ndarray:
    """Positions selected by an int, slice, position list or boolean mask."""
    if selector is None:
        return np.arange(n)
    if isinstance(selector, tuple):
        selector = list(selector)
    if isinstance(selector, (pd.Series, pd.Index)):
        selector = selector.to_numpy()
    return np.atleast_1d(np.arange(n)[selector])


def _is_label_selector(selector: Any) -> bool:
    if isinstance(selector, str):
        return True
    if isinstance(selector, (list, tuple, np.ndarray, pd.Index, pd.Series)):
        items = list(selector)
        return len(items) > 0 and all(isinstance(s, str) for s in items)
    return False


# =============================================================================
# TaggedMatrix
# =============================================================================

class TaggedMatrix:
    """
    Numeric matrix with an ordered row index and a column attribute table.

    Calling TaggedMatrix() with no data gives the empty instance, which
    serves as a merge accumulator. Every operation on it returns another
    empty instance.
    """

    is_month_attributed = False

    def __init__(
        self,
        data: Any = None,
        order_by: Optional[Sequence] = None,
        cattr: Any = None,
        index_name: Optional[str] = None,
    ):
        """
        Build a tagged matrix.

        Args:
            data: 2-D array-like, or a DataFrame (coerced to its values)
            order_by: Index keys, one per row (default: 1..R)
            cattr: Attribute table (DataFrame, or anything DataFrame() accepts)
            index_name: Name of the index variable (default: config index_name)

        Raises:
            InvalidShape: If the index or attribute table does not match the data
            MissingFieldNames: If the attribute table lacks field names
            InvalidIndex: If index keys are duplicated
        """
        self._index_name = index_name if index_name is not None else get_defaults()["index_name"]

        if data is None:
            self._values = np.empty((0, 0))
            self._index = pd.Index([])
            self._cattr = pd.DataFrame()
            return

        values = data.to_numpy() if isinstance(data, pd.DataFrame) else np.asarray(data)
        if values.ndim != 2:
            raise InvalidShape(f"Core data must be a 2-D matrix, got {values.ndim}-D")
        nrow, ncol = values.shape

        cattr = _as_cattr(cattr)
        if len(cattr) != ncol:
            raise InvalidShape(
                f"Attribute table has {len(cattr)} rows but the matrix has {ncol} columns"
            )

        if order_by is None:
            index = pd.RangeIndex(1, nrow + 1)
        elif isinstance(order_by, pd.Index):
            index = order_by
        else:
            index = pd.Index(order_by)
        if len(index) != nrow:
            raise InvalidShape(f"Index has {len(index)} keys but the matrix has {nrow} rows")
        if index.has_duplicates:
            raise InvalidIndex(f"Index keys must be unique, duplicated: {list(index[index.duplicated()])}")

        if index.is_monotonic_increasing:
            values = values.copy()
        else:
            order = np.argsort(index.to_numpy(), kind="stable")
            logger.debug(f"Index not ordered; reordering {nrow} rows")
            index = index.take(order)
            values = values[order]

        self._values = values
        self._index = index.rename(None)
        self._cattr = cattr.reset_index(drop=True).copy()

    def _new(self, values: np.ndarray, index: pd.Index, cattr: pd.DataFrame) -> "TaggedMatrix":
        """Same class and index name, new content."""
        return type(self)(values, order_by=index, cattr=cattr, index_name=self._index_name)

    def _empty_like(self) -> "TaggedMatrix":
        return type(self)(index_name=self._index_name)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def index(self) -> pd.Index:
        """Ordered row index, named after the index variable."""
        return self._index.rename(self._index_name)

    @property
    def cattr(self) -> pd.DataFrame:
        """Copy of the column attribute table."""
        return self._cattr.copy()

    @property
    def index_name(self) -> str:
        return self._index_name

    @property
    def values(self) -> np.ndarray:
        """Copy of the core data matrix."""
        return self._values.copy()

    def to_numpy(self) -> np.ndarray:
        return self._values.copy()

    @property
    def shape(self):
        return self._values.shape

    @property
    def nrow(self) -> int:
        return self._values.shape[0]

    @property
    def ncol(self) -> int:
        return self._values.shape[1]

    @property
    def size(self) -> int:
        return self._values.size

    @property
    def empty(self) -> bool:
        return self._values.size == 0

    @property
    def fields(self) -> List[str]:
        """Attribute field names, in order."""
        return list(self._cattr.columns)

    @property
    def labels(self) -> List[str]:
        """Composite column identities."""
        return cattr_labels(self._cattr)

    # -------------------------------------------------------------------------
    # Rebinding (each returns a new instance)
    # -------------------------------------------------------------------------

    def with_index(self, index: Sequence) -> "TaggedMatrix":
        if self.empty:
            return self._empty_like()
        return self._new(self._values, index, self._cattr)

    def with_cattr(self, cattr: Any) -> "TaggedMatrix":
        if self.empty:
            return self._empty_like()
        return self._new(self._values, self._index, cattr)

    def with_index_name(self, index_name: str) -> "TaggedMatrix":
        if self.empty:
            return type(self)(index_name=index_name)
        return type(self)(self._values, order_by=self._index, cattr=self._cattr, index_name=index_name)

    def with_field(self, name: str, values: Any) -> "TaggedMatrix":
        """Replace or add one attribute field."""
        if self.empty:
            return self._empty_like()
        values = np.asarray(values)
        if len(values) != self.ncol:
            raise InvalidShape(f"Field '{name}' needs {self.ncol} values, got {len(values)}")
        cattr = self.cattr
        cattr[name] = values
        return self._new(self._values, self._index, cattr)

    # -------------------------------------------------------------------------
    # Indexing
    # -------------------------------------------------------------------------

    def _column_positions(self, cols: Any) -> np.ndarray:
        if not _is_label_selector(cols):
            return _positions(cols, self.ncol)

        wanted = [cols] if isinstance(cols, str) else list(cols)
        lookup = {}
        for pos, label in enumerate(self.labels):
            # first match wins on repeated identities
            lookup.setdefault(label, pos)
        missing = [label for label in wanted if label not in lookup]
        if missing:
            raise ColumnNotFound(f"Columns not found: {missing}")
        return np.array([lookup[label] for label in wanted], dtype=np.int64)

    def select(self, rows: Any = None, cols: Any = None, drop: Optional[bool] = None) -> Any:
        """
        Subset rows and columns.

        Args:
            rows: Row positions, slice or boolean mask (None = all rows)
            cols: Column positions, slice, boolean mask, or composite
                  identity labels (None = all columns)
            drop: Collapse singleton dimensions (default: config drop)

        Returns:
            With drop on and a singleton dimension:
                one row, several columns  -> Series labelled by composite identity
                several rows, one column  -> Series on the ordered index
                one row, one column       -> scalar
            Otherwise a TaggedMatrix of the same class.

        Raises:
            ColumnNotFound: If a column label matches no column
            InvalidIndex: If the row selector names a row more than once
        """
        if self.empty:
            return self._empty_like()
        if drop is None:
            drop = get_defaults()["drop"]

        row_pos = np.sort(_positions(rows, self.nrow), kind="stable")
        if len(np.unique(row_pos)) < len(row_pos):
            raise InvalidIndex(f"Row selector repeats positions: {row_pos.tolist()}")
        col_pos = self._column_positions(cols)

        values = self._values[np.ix_(row_pos, col_pos)]
        index = self._index.take(row_pos)
        cattr = self._cattr.take(col_pos).reset_index(drop=True)

        nrow, ncol = values.shape
        if drop and min(nrow, ncol) == 1:
            if nrow == 1 and ncol > 1:
                return pd.Series(values[0], index=cattr_labels(cattr))
            if nrow > 1 and ncol == 1:
                return pd.Series(values[:, 0], index=index.rename(self._index_name))
            value = values[0, 0]
            return value.item() if isinstance(value, np.generic) else value

        return self._new(values, index, cattr)

    def __getitem__(self, key: Any) -> Any:
        """tm[i, j], tm[i] (rows) or tm["label"] (columns); drop is on."""
        if isinstance(key, tuple):
            if len(key) != 2:
                raise IndexError(f"Expected at most 2 selectors, got {len(key)}")
            rows, cols = key
        elif _is_label_selector(key):
            rows, cols = None, key
        else:
            rows, cols = key, None
        return self.select(rows, cols)

    # -------------------------------------------------------------------------
    # Combination
    # -------------------------------------------------------------------------

    def merge(self, *others: "TaggedMatrix") -> "TaggedMatrix":
        """Column-wise merge on the union of the indexes."""
        return merge(self, *others)

    def _order_fields(self) -> List[str]:
        return self.fields

    def order_col(self, by: Optional[Sequence[str]] = None) -> "TaggedMatrix":
        return order_col(self, by)

    # -------------------------------------------------------------------------
    # Operations (implemented in coltag.ops)
    # -------------------------------------------------------------------------

    def apply_core(self, func, bind, *args, **kwargs) -> Any:
        from coltag.ops.apply import apply_core
        return apply_core(self, func, bind, *args, **kwargs)

    def apply_col(self, func, *args, **kwargs) -> pd.DataFrame:
        from coltag.ops.apply import apply_col
        return apply_col(self, func, *args, **kwargs)

    def filter_col(self, cond: Any = None, mon_repro: Optional[Sequence[int]] = None) -> "TaggedMatrix":
        from coltag.ops.filter import _caller_scope, filter_col_q
        local_dict, global_dict = _caller_scope()
        return filter_col_q(self, cond, mon_repro=mon_repro,
                            local_dict=local_dict, global_dict=global_dict)

    def filter_col_q(self, cond: Any = None, mon_repro: Optional[Sequence[int]] = None,
                     local_dict: Optional[dict] = None, global_dict: Optional[dict] = None) -> "TaggedMatrix":
        from coltag.ops.filter import filter_col_q
        return filter_col_q(self, cond, mon_repro=mon_repro,
                            local_dict=local_dict, global_dict=global_dict)

    def melt(self, value_name: Optional[str] = None) -> pd.DataFrame:
        from coltag.ops.reshape import melt
        return melt(self, value_name=value_name)

    # -------------------------------------------------------------------------
    # Comparison and display
    # -------------------------------------------------------------------------

    def equals(self, other: Any) -> bool:
        """Same class, index, index name, attribute table and values."""
        if type(other) is not type(self):
            return False
        if self.empty or other.empty:
            return self.empty and other.empty
        if self._index_name != other._index_name:
            return False
        if self._values.shape != other._values.shape:
            return False
        if not (self._index.equals(other._index) and self._cattr.equals(other._cattr)):
            return False
        equal_nan = self._values.dtype.kind in "fc" and other._values.dtype.kind in "fc"
        return bool(np.array_equal(self._values, other._values, equal_nan=equal_nan))

    def to_frame(self) -> pd.DataFrame:
        """DataFrame view with composite identities as column labels."""
        return pd.DataFrame(self._values, index=self.index, columns=self.labels)

    def __repr__(self) -> str:
        name = type(self).__name__
        if self.empty:
            return f"empty {name}"
        lines = [
            f"A {name} with:",
            f"- [column attribute fields]: {', '.join(self.fields)}",
            f"- [index variable]: {self._index_name}",
            "- [data]:",
            self.to_frame().to_string(),
        ]
        return "\n".join(lines)


class MonthTaggedMatrix(TaggedMatrix):
    """
    TaggedMatrix whose attribute table carries a calendar month field.

    The month values are only required to lie in 1-12 when month
    reprocessing is requested, not at construction.
    """

    is_month_attributed = True

    @classmethod
    def from_tagged(cls, x: TaggedMatrix) -> "MonthTaggedMatrix":
        if x.empty:
            return cls(index_name=x.index_name)
        return cls(x.values, order_by=x.index, cattr=x.cattr, index_name=x.index_name)

    @property
    def month_field(self) -> str:
        return get_defaults()["month_field"]

    def _order_fields(self) -> List[str]:
        fields = self.fields
        if self.month_field in fields:
            fields.remove(self.month_field)
            fields.insert(0, self.month_field)
        return fields

    def reprocess_month(self, mon_repro: Sequence[int], keep_offset: bool = False) -> "MonthTaggedMatrix":
        from coltag.ops.reprocess import reprocess_month
        return reprocess_month(self, mon_repro, keep_offset=keep_offset)


# =============================================================================
# Module-level operations
# =============================================================================

def _merge_pair(x: TaggedMatrix, y: TaggedMatrix) -> TaggedMatrix:
    if y.empty:
        return x
    if x.empty:
        return y

    index = x._index.union(y._index)
    left = pd.DataFrame(x._values, index=x._index).reindex(index).to_numpy()
    right = pd.DataFrame(y._values, index=y._index).reindex(index).to_numpy()
    cattr = pd.concat([x._cattr, y._cattr], ignore_index=True)

    logger.debug(f"Merged {x.shape} with {y.shape} over {len(index)} index keys")
    return type(x)(np.hstack([left, right]), order_by=index, cattr=cattr,
                   index_name=x._index_name)


def merge(*objs: TaggedMatrix) -> TaggedMatrix:
    """
    Merge tagged matrices column-wise on the union of their indexes.

    Rows missing from an operand become NaN gaps. Attribute tables are
    stacked in argument order; fields missing from an operand are NaN.
    Empty operands are skipped.
    """
    if not objs:
        return TaggedMatrix()
    result = objs[0]
    for other in objs[1:]:
        result = _merge_pair(result, other)
    return result


def order_col(x: TaggedMatrix, by: Optional[Sequence[str]] = None) -> TaggedMatrix:
    """
    Reorder columns by attribute fields (stable, ascending).

    Args:
        x: Tagged matrix
        by: Field names to sort by. Default: every field in field order,
            with the month field first on a MonthTaggedMatrix.
    """
    if x.empty:
        return x
    if by is None:
        by = x._order_fields()
    elif isinstance(by, str):
        by = [by]
    unknown = [f for f in by if f not in x.fields]
    if unknown:
        raise MissingFieldNames(f"Unknown attribute fields: {unknown}")

    order = x._cattr.sort_values(by=list(by), kind="mergesort", na_position="last").index
    return x.select(cols=order.to_numpy(), drop=False)
