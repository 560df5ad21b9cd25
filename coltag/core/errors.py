"""
Tagged Matrix Errors

Every failure raised by coltag derives from TaggedMatrixError, so callers
can catch the whole family with one clause or a single kind precisely.

All errors are raised synchronously at the first violated invariant.
Operations are deterministic, so none of them is retryable.
"""


class TaggedMatrixError(ValueError):
    """Base class for all coltag errors."""
    pass


class InvalidShape(TaggedMatrixError):
    """Core matrix, index and attribute table disagree on a dimension."""
    pass


class MissingFieldNames(TaggedMatrixError):
    """Attribute table has no usable field names."""
    pass


class InvalidIndex(TaggedMatrixError):
    """Ordered index contains duplicated keys."""
    pass


class ColumnNotFound(TaggedMatrixError, KeyError):
    """A column label matches no composite column identity."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class BadResultType(TaggedMatrixError, TypeError):
    """Applied function returned something other than a vector or matrix."""
    pass


class InvalidBindSpec(TaggedMatrixError):
    """Bind specification has an illegal length or entry."""
    pass


class ShapeMismatch(TaggedMatrixError):
    """Applied function's result cannot be rebound as requested."""
    pass


class PredicateError(TaggedMatrixError):
    """Filter predicate failed or produced a malformed mask."""
    pass


class InvalidMonthRange(TaggedMatrixError):
    """Month attributes are outside 1-12 where reprocessing needs them."""
    pass
