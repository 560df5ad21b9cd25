"""
Functional applicator tests (pytest compatible)

Run with:
    pytest tests/test_apply.py -v
    pytest tests/test_apply.py -k "cattr" -v
"""

import numpy as np
import pandas as pd
import pytest

from coltag import (
    BadResultType,
    InvalidBindSpec,
    MonthTaggedMatrix,
    ShapeMismatch,
    TaggedMatrix,
    apply_col,
    apply_core,
)
from coltag.ops.apply import normalize_bind


def col_means(m):
    return m.mean(axis=0)


def row_means(m):
    return m.mean(axis=1)


# =============================================================================
# Bind specification
# =============================================================================

class TestBindSpec:

    def test_string_bind(self):
        """A bare string is a one-entry bind."""
        assert normalize_bind("cattr") == ("cattr",)

    def test_none_and_nan_are_absent(self):
        """None and NaN both mean no binding."""
        assert normalize_bind((None, "index")) == (None, "index")
        assert normalize_bind((np.nan, "cattr")) == (None, "cattr")
        assert normalize_bind(None) == (None,)

    def test_unknown_entry(self):
        """Only 'cattr', 'index' and None are accepted."""
        with pytest.raises(InvalidBindSpec):
            normalize_bind(("index", "columns"))

    def test_bad_length(self):
        """Bind has one or two entries."""
        with pytest.raises(InvalidBindSpec):
            normalize_bind(("index", "cattr", None))
        with pytest.raises(InvalidBindSpec):
            normalize_bind(())

    def test_same_target_twice(self):
        """A target cannot be bound twice."""
        with pytest.raises(InvalidBindSpec):
            normalize_bind(("index", "index"))

    def test_invalid_bind_reported_by_apply(self, zc):
        """apply_core rejects a bad bind."""
        with pytest.raises(InvalidBindSpec):
            apply_core(zc, col_means, bind="rows")


# =============================================================================
# Binding to the attribute table
# =============================================================================

class TestBindCattr:

    def test_col_means(self, zc, core):
        """Column means are appended to the attribute table."""
        table = apply_core(zc, col_means, bind="cattr")
        assert isinstance(table, pd.DataFrame)
        assert list(table.columns) == ["month", "name", "value"]
        assert len(table) == 4
        np.testing.assert_allclose(table["value"], core.mean(axis=0))
        assert list(table.index) == [0, 1, 2, 3]

    def test_extra_arguments(self, zc):
        """Extra arguments reach the function."""
        table = apply_core(zc, np.mean, "cattr", axis=0)
        np.testing.assert_allclose(table["value"], [3, 8, 13, 18])

    def test_correlation_with_vector(self, zc):
        """Per-column statistics against an external vector."""
        vec = zc[:, 0].to_numpy()

        def corr(m, v):
            return np.array([np.corrcoef(m[:, k], v)[0, 1] for k in range(m.shape[1])])

        table = apply_core(zc, corr, "cattr", vec)
        np.testing.assert_allclose(table["value"], 1.0)

    def test_transposed_rows(self, zc, core):
        """(None, 'cattr') binds result columns to matrix columns."""
        table = apply_core(zc, lambda m: m[2:4], bind=(None, "cattr"))
        assert list(table.columns) == ["month", "name", "value1", "value2"]
        np.testing.assert_array_equal(table["value1"], core[2])
        np.testing.assert_array_equal(table["value2"], core[3])

    def test_labelled_rows_name_columns(self, zc):
        """Row labels of a DataFrame result name the appended columns."""
        def pick(m):
            return pd.DataFrame(m[2:4], index=["a", "b"])

        table = apply_core(zc, pick, bind=(None, "cattr"))
        assert list(table.columns) == ["month", "name", "a", "b"]

    def test_one_column_matrix(self, zc):
        """A C x 1 matrix is accepted by a single bind."""
        table = apply_core(zc, lambda m: m.sum(axis=0).reshape(-1, 1), bind="cattr")
        assert list(table["value"]) == [15, 40, 65, 90]

    def test_name_collision(self, core):
        """Appended names never overwrite attribute fields."""
        zc = TaggedMatrix(core, cattr={"value": [1, 2, 3, 4]})
        table = apply_core(zc, col_means, bind="cattr")
        assert list(table.columns) == ["value", "value_1"]

    def test_length_mismatch(self, zc):
        """A vector of the wrong length cannot bind to the attribute table."""
        with pytest.raises(ShapeMismatch):
            apply_core(zc, row_means, bind="cattr")

    def test_transposed_vector_is_one_row(self, zc):
        """(None, 'cattr') turns a vector into one row, which cannot bind to C columns."""
        with pytest.raises(ShapeMismatch):
            apply_core(zc, col_means, bind=(None, "cattr"))

    def test_transposed_scalar_single_column(self, zc):
        """A length-1 vector transposes to one row, matching a one-column matrix."""
        one = zc.select(cols=[0], drop=False)
        table = apply_core(one, lambda m: m.sum(axis=0), bind=(None, "cattr"))
        assert list(table.columns) == ["month", "name", "value"]
        assert list(table["value"]) == [15]

    def test_full_matrix_single_bind(self, zc):
        """A single bind needs a vector or a one-column matrix."""
        with pytest.raises(ShapeMismatch):
            apply_core(zc, lambda m: m, bind="cattr")


# =============================================================================
# Binding to the index
# =============================================================================

class TestBindIndex:

    def test_row_means(self, zc, core):
        """Row means become a series on the index."""
        series = apply_core(zc, row_means, bind="index")
        assert isinstance(series, pd.Series)
        assert list(series.index) == [1991, 1992, 1993, 1994, 1995]
        assert series.index.name == "index"
        np.testing.assert_allclose(series, core.mean(axis=1))

    def test_matrix_on_index(self, zc, core):
        """('index', None) keys a matrix result by the index."""
        frame = apply_core(zc, lambda m: m * 2, bind=("index", None))
        assert isinstance(frame, pd.DataFrame)
        assert frame.shape == (5, 4)
        assert list(frame.index) == [1991, 1992, 1993, 1994, 1995]
        np.testing.assert_array_equal(frame.to_numpy(), core * 2)

    def test_transposed_matrix_on_index(self, zc, core):
        """(None, 'index') transposes before keying by the index."""
        frame = apply_core(zc, lambda m: m.T[:2], bind=(None, "index"))
        assert frame.shape == (5, 2)
        np.testing.assert_array_equal(frame.to_numpy(), core[:, :2])

    def test_transposed_vector_is_one_row(self, zc):
        """(None, 'index') turns a vector into one row, which cannot key R rows."""
        with pytest.raises(ShapeMismatch):
            apply_core(zc, row_means, bind=(None, "index"))

    def test_length_mismatch(self, zc):
        """A vector of the wrong length cannot bind to the index."""
        with pytest.raises(ShapeMismatch):
            apply_core(zc, col_means, bind="index")


# =============================================================================
# Binding to both
# =============================================================================

class TestBindBoth:

    def test_identity(self, zc):
        """('index', 'cattr') with the identity returns an equal matrix."""
        assert apply_core(zc, lambda m: m, bind=("index", "cattr")).equals(zc)

    def test_scaled(self, zc, core):
        """Same-shape results are rebound to index and attributes."""
        doubled = apply_core(zc, lambda m: m * 2, bind=("index", "cattr"))
        assert isinstance(doubled, TaggedMatrix)
        np.testing.assert_array_equal(doubled.values, core * 2)
        assert doubled.cattr.equals(zc.cattr)

    def test_transposed_round_trip(self, zc, core):
        """('cattr', 'index') un-transposes a transposed result."""
        result = apply_core(zc, lambda m: (m * 2).T, bind=("cattr", "index"))
        assert result.shape == zc.shape
        np.testing.assert_array_equal(result.values, core * 2)

    def test_wrong_orientation(self, zc):
        """Both-bound results must match the requested orientation."""
        with pytest.raises(ShapeMismatch):
            apply_core(zc, lambda m: m.T, bind=("index", "cattr"))
        with pytest.raises(ShapeMismatch):
            apply_core(zc, lambda m: m, bind=("cattr", "index"))

    def test_vector_cannot_bind_both(self, zc):
        """A vector result cannot bind to both tables."""
        with pytest.raises(ShapeMismatch):
            apply_core(zc, col_means, bind=("index", "cattr"))

    def test_subclass_preserved(self, zm):
        """Rebinding keeps the month-attributed class."""
        result = apply_core(zm, lambda m: m + 1, bind=("index", "cattr"))
        assert isinstance(result, MonthTaggedMatrix)


# =============================================================================
# Pass-through and result types
# =============================================================================

class TestPassThrough:

    def test_unbound_result(self, zc, core):
        """No binding returns the raw result."""
        result = apply_core(zc, lambda m: m[:2], bind=(None, None))
        np.testing.assert_array_equal(result, core[:2])

    def test_table_coerced_to_matrix(self, zc, core):
        """A DataFrame result comes back as a matrix."""
        result = apply_core(zc, lambda m: pd.DataFrame(m), bind=None)
        assert isinstance(result, np.ndarray)
        np.testing.assert_array_equal(result, core)

    def test_function_called_once(self, zc):
        """The function is invoked exactly once."""
        calls = []

        def spy(m):
            calls.append(m.shape)
            return m.sum(axis=0)

        apply_core(zc, spy, bind="cattr")
        assert calls == [(5, 4)]

    def test_function_cannot_mutate(self, zc):
        """The function receives a copy of the core matrix."""
        def scribble(m):
            m[:] = 0
            return m.sum(axis=0)

        apply_core(zc, scribble, bind="cattr")
        assert zc.values[0, 0] == 1

    @pytest.mark.parametrize("bad", [None, "text", {"a": 1}, np.zeros((2, 2, 2))])
    def test_bad_result_type(self, zc, bad):
        """Only vectors and matrices are accepted."""
        with pytest.raises(BadResultType):
            apply_core(zc, lambda m: bad, bind="cattr")

    def test_bad_result_is_type_error(self, zc):
        """BadResultType can be caught as TypeError."""
        with pytest.raises(TypeError):
            apply_core(zc, lambda m: None, bind=None)

    def test_empty_input(self):
        """An empty matrix gives an empty result without calling the function."""
        def boom(m):
            raise AssertionError("should not be called")

        assert apply_core(TaggedMatrix(), boom, bind="cattr").empty

    def test_method_form(self, zc):
        """TaggedMatrix.apply_core delegates to apply_core."""
        table = zc.apply_core(col_means, "cattr")
        assert list(table["value"]) == [3, 8, 13, 18]


# =============================================================================
# Column-wise apply
# =============================================================================

class TestApplyCol:

    def test_scalar_per_column(self, zc):
        """Scalar results make one appended column."""
        table = apply_col(zc, np.max)
        assert list(table.columns) == ["month", "name", "value"]
        assert list(table["value"]) == [5, 10, 15, 20]

    def test_labelled_vector_per_column(self, zc):
        """Labelled vector results name the appended columns."""
        table = zc.apply_col(lambda v: pd.Series({"lo": v.min(), "hi": v.max()}))
        assert list(table.columns) == ["month", "name", "lo", "hi"]
        assert list(table["lo"]) == [1, 6, 11, 16]

    def test_unlabelled_vector_per_column(self, zc):
        """Unlabelled vectors get numbered names."""
        table = apply_col(zc, lambda v: v[:2])
        assert list(table.columns) == ["month", "name", "value1", "value2"]

    def test_ragged_results(self, zc):
        """Per-column vectors must share one length."""
        with pytest.raises(ShapeMismatch):
            apply_col(zc, lambda v: v[: int(v[0]) % 3 + 1])

    def test_matrix_result_refused(self, zc):
        """Per-column results cannot be matrices."""
        with pytest.raises(BadResultType):
            apply_col(zc, lambda v: np.outer(v, v))
