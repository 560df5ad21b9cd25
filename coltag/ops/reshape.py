"""
coltag Reshaping

Convert between a TaggedMatrix and long-format records.

Long format has one row per matrix cell:

    index  month  name  value
    1991       2   xxx      1
    1992       2   xxx      2
    ...

melt() goes wide -> long, cast_long() goes long -> wide.
"""

import logging
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from coltag.config import get_defaults
from coltag.core.errors import InvalidIndex, MissingFieldNames
from coltag.core.tagged import MonthTaggedMatrix, TaggedMatrix

logger = logging.getLogger(__name__)


def melt(x: TaggedMatrix, value_name: Optional[str] = None) -> pd.DataFrame:
    """
    Long-format table of a tagged matrix.

    Columns are [index_name, *fields, value_name]; cells are listed
    column by column.
    """
    if value_name is None:
        value_name = get_defaults()["result_field"]
    if x.empty:
        return pd.DataFrame(columns=[x.index_name, *x.fields, value_name])

    nrow, ncol = x.shape
    keys = pd.DataFrame({x.index_name: np.tile(x.index.to_numpy(), ncol)})
    attrs = x.cattr.iloc[np.repeat(np.arange(ncol), nrow)].reset_index(drop=True)
    values = pd.DataFrame({value_name: x.to_numpy().ravel(order="F")})
    return pd.concat([keys, attrs, values], axis=1)


def cast_long(
    df: pd.DataFrame,
    index_col: str,
    value_col: Optional[str] = None,
    fields: Optional[Sequence[str]] = None,
    month: bool = False,
    index_name: Optional[str] = None,
) -> TaggedMatrix:
    """
    Build a tagged matrix from long-format records.

    Args:
        df: Long-format records
        index_col: Column holding the index keys
        value_col: Column holding the cell values (default: config result_field)
        fields: Attribute columns (default: all other columns)
        month: Build a MonthTaggedMatrix
        index_name: Index variable name (default: index_col)

    Returns:
        One matrix column per distinct combination of fields, in order of
        first appearance; cells without a record are NaN.

    Raises:
        MissingFieldNames: No attribute columns
        InvalidIndex: Two records share an index key and field combination
    """
    if value_col is None:
        value_col = get_defaults()["result_field"]
    if fields is None:
        fields = [c for c in df.columns if c not in (index_col, value_col)]
    fields = list(fields)
    if not fields:
        raise MissingFieldNames("Long-format table has no attribute columns")

    col_codes = df.groupby(fields, sort=False, dropna=False).ngroup().to_numpy()
    index = pd.Index(df[index_col].unique()).sort_values()
    row_codes = index.get_indexer(df[index_col])

    cells = pd.DataFrame({"row": row_codes, "col": col_codes})
    if cells.duplicated().any():
        raise InvalidIndex("Long-format table has repeated records for an index key and field combination")

    values = np.full((len(index), int(col_codes.max()) + 1 if len(col_codes) else 0), np.nan)
    values[row_codes, col_codes] = df[value_col].to_numpy(dtype=float)

    first_seen = ~pd.Series(col_codes).duplicated().to_numpy()
    cattr = df.loc[first_seen, fields].reset_index(drop=True)

    logger.debug(f"Cast {len(df)} records into a {values.shape} matrix")
    cls = MonthTaggedMatrix if month else TaggedMatrix
    return cls(values, order_by=index, cattr=cattr,
               index_name=index_name if index_name is not None else index_col)
