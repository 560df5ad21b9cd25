"""
Shared fixtures for coltag tests.
"""

import numpy as np
import pandas as pd
import pytest

from coltag import MonthTaggedMatrix, TaggedMatrix


@pytest.fixture
def cattr():
    """Attribute table of the 5 x 4 example."""
    return pd.DataFrame({"month": [2, 3, 5, 6], "name": ["xxx", "xxx", "xxx", "yyy"]})


@pytest.fixture
def core():
    """5 x 4 matrix holding 1..20 column by column."""
    return np.arange(1, 21).reshape(5, 4, order="F")


@pytest.fixture
def zc(core, cattr):
    """5 x 4 tagged matrix indexed 1991..1995."""
    return TaggedMatrix(core, order_by=range(1991, 1996), cattr=cattr)


@pytest.fixture
def zm():
    """4 x 12 monthly matrix holding 1..48, indexed 1991..1994."""
    mat = np.arange(1, 49).reshape(4, 12, order="F")
    return MonthTaggedMatrix(mat, order_by=range(1991, 1995),
                             cattr=pd.DataFrame({"month": range(1, 13)}))
