"""Exceptions raised by the storage layer.

A missing row is not an error: lookups return ``None`` and updates or
deletes return ``False``. The classes below cover the hard failures that
callers must handle.
"""


class OrumaError(Exception):
    """Base class for storage errors."""


class ConstraintViolation(OrumaError):
    """A write broke a schema constraint (unique native id, foreign key, check)."""


class TransactionFailure(OrumaError):
    """A multi-row transaction failed and was rolled back."""


class ConnectionFailure(OrumaError):
    """The database could not be opened or its schema could not be created."""
