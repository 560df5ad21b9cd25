"""
coltag Month Reprocessor

Reinterpret month attributes of a MonthTaggedMatrix as signed offsets
into neighbouring years.

For an offset m:
    true month    = ((m - 1) mod 12) + 1
    relative year = floor((m - 1) / 12)

Offset 13 is January of the following year: the January columns are
taken, and each row moves one year back, so the row labelled 1991
holds the January 1992 value. Offset 0 is December of the previous
year: rows move one year forward.

Shifted pieces are merged on the union of their indexes (missing rows
become NaN gaps), then columns are put in canonical order.

Usage:
    zm = MonthTaggedMatrix(mat, order_by=range(1991, 1995), cattr={"month": range(1, 13)})
    reprocess_month(zm, range(-11, 3))
    reprocess_month(zm, range(-24, 4), keep_offset=True)
"""

import logging
from typing import Sequence

import numpy as np
import pandas as pd

from coltag.core.months import rela_year, shift_index, true_month
from coltag.core.tagged import MonthTaggedMatrix, order_col
from coltag.ops.filter import check_month_range

logger = logging.getLogger(__name__)


def reprocess_month(
    x: MonthTaggedMatrix,
    mon_repro: Sequence[int],
    keep_offset: bool = False,
) -> MonthTaggedMatrix:
    """
    Rebuild a MonthTaggedMatrix around signed month offsets.

    Args:
        x: Month-attributed tagged matrix, month values in 1-12
        mon_repro: Month offsets; may be below 1 or above 12
        keep_offset: Store the signed offset (e.g. 13) in the month field
                     instead of the calendar month (1)

    Returns:
        MonthTaggedMatrix ordered by month, then the other fields

    Raises:
        TypeError: x has no month attributes
        InvalidMonthRange: A month value of x is outside 1-12, or an
                           offset is not a whole number
    """
    if not getattr(x, "is_month_attributed", False):
        raise TypeError(f"reprocess_month needs a MonthTaggedMatrix, got {type(x).__name__}")
    if x.empty:
        return x._empty_like()
    check_month_range(x)

    offsets = np.atleast_1d(np.asarray(mon_repro))
    months = np.atleast_1d(true_month(offsets))
    shifts = np.atleast_1d(rela_year(offsets))

    field = x.month_field
    cattr_months = x.cattr[field]
    result = x._empty_like()

    for shift in pd.unique(shifts):
        wanted = np.unique(months[shifts == shift])
        mask = cattr_months.isin(wanted).to_numpy()
        if not mask.any():
            logger.debug(f"No columns for months {list(wanted)} at relative year {shift}")
            continue

        part = x.select(cols=np.flatnonzero(mask), drop=False)
        part = part.with_index(shift_index(part._index, -int(shift)))
        if keep_offset:
            part = part.with_field(field, part.cattr[field].to_numpy() + 12 * int(shift))
        else:
            part = part.with_field(field, true_month(part.cattr[field].to_numpy()))

        logger.debug(f"Relative year {shift}: {part.ncol} columns, months {list(wanted)}")
        result = result.merge(part)

    result = result.with_index_name(x.index_name)
    return order_col(result)
