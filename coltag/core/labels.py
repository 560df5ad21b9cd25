"""
Composite Column Identity

A column's composite identity is the string made by joining every
attribute value of that column, in field order. It is never stored;
it is rebuilt from the attribute table whenever it is needed for
display or for selecting columns by label.

    month=2, name="xxx"  ->  "2_xxx"
"""

from typing import Any, List, Optional

import numpy as np
import pandas as pd

from coltag.config import get_defaults


def format_value(value: Any) -> str:
    """
    Render one attribute value for a composite identity.

    Whole floats print as integers in full (1e20 -> "100000000000000000000"),
    booleans as "True"/"False", missing values as "NA". Everything else
    uses str(). Select columns by label with these spellings.
    """
    if value is None:
        return "NA"
    if isinstance(value, (float, np.floating)):
        if np.isnan(value):
            return "NA"
        if float(value).is_integer():
            return str(int(value))
    if value is pd.NA or value is pd.NaT:
        return "NA"
    return str(value)


def cattr_labels(cattr: pd.DataFrame, sep: Optional[str] = None) -> List[str]:
    """
    Composite column identities of an attribute table.

    Args:
        cattr: Attribute table, one row per matrix column
        sep: Separator between field values (default: config label_sep)

    Returns:
        One label per attribute row
    """
    if sep is None:
        sep = get_defaults()["label_sep"]
    if cattr.shape[1] == 0:
        return [""] * len(cattr)
    return [
        sep.join(format_value(v) for v in row)
        for row in cattr.itertuples(index=False, name=None)
    ]
