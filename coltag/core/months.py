"""
Month Arithmetic

Signed month offsets address months of neighbouring years relative to
a reference year:

    offset   true month   relative year
      -11         1            -1
        0        12            -1
        1         1             0
       12        12             0
       13         1             1
       25         1             2
"""

from typing import Union

import numpy as np
import pandas as pd

from coltag.core.errors import InvalidMonthRange


def _as_offsets(month) -> np.ndarray:
    arr = np.asarray(month)
    if arr.dtype.kind in "iu":
        return arr.astype(np.int64)
    if arr.dtype.kind == "f" and np.all(np.isfinite(arr)) and np.all(arr == np.floor(arr)):
        return arr.astype(np.int64)
    raise InvalidMonthRange(f"Month offsets must be whole numbers, got {month!r}")


def true_month(month) -> Union[int, np.ndarray]:
    """Canonical calendar month (1-12) of each offset."""
    out = (_as_offsets(month) - 1) % 12 + 1
    return int(out) if out.ndim == 0 else out


def rela_year(month) -> Union[int, np.ndarray]:
    """Whole years between each offset and the reference year."""
    out = (_as_offsets(month) - 1) // 12
    return int(out) if out.ndim == 0 else out


def shift_index(index: pd.Index, years: int) -> pd.Index:
    """
    Move every key of an ordered index by whole years.

    Integer (or float) keys are treated as years and shifted arithmetically.
    Datetime and period keys move by calendar years, keeping their frequency.

    Args:
        index: Ordered index
        years: Years to add (negative moves keys backwards)

    Returns:
        New index of the same kind
    """
    years = int(years)
    if years == 0:
        return index.copy()
    if isinstance(index, pd.DatetimeIndex):
        return index + pd.DateOffset(years=years)
    if isinstance(index, pd.PeriodIndex):
        shifted = index.to_timestamp() + pd.DateOffset(years=years)
        return shifted.to_period(index.freqstr)
    return index + years
