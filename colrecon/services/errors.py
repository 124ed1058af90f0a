from __future__ import annotations

"""Engine exceptions.

Assigning an already-claimed target field is not an error (it opens a
duplication conflict). These exceptions are reserved for integration
mistakes: the review surface calling operations out of order, or naming
headers / field ids the session does not know.
"""

__all__ = [
    "ReconciliationError",
    "InvalidStateError",
    "UnknownColumnError",
]


class ReconciliationError(Exception):
    """Base exception for reconciliation engine errors."""
    pass


class InvalidStateError(ReconciliationError):
    """Raised when an operation is not legal in the current session mode."""
    pass


class UnknownColumnError(ReconciliationError):
    """Raised when a header or target field id is not part of the session."""
    pass
