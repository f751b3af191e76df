"""Exceptions raised by circulation operations.

Every failure a caller can act on is a ``CirculationError``. The base class
derives from ``ValueError`` so code that already guards manager calls with
``except ValueError`` keeps working.
"""


class CirculationError(ValueError):
    """Base exception for rejected circulation operations."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CirculationError):
    """Raised when a book, user, transaction or review is missing or deleted."""

    kind = "not_found"


class UnavailableError(CirculationError):
    """Raised when a book has no free copies or cannot be lent."""

    kind = "unavailable"


class DuplicateLoanError(CirculationError):
    """Raised when a user already holds or has reserved the book."""

    kind = "duplicate_loan"


class LimitExceededError(CirculationError):
    """Raised when a user is at their membership loan limit."""

    kind = "limit_exceeded"


class NotActiveError(CirculationError):
    """Raised when a transaction is not in a returnable state."""

    kind = "not_active"


class NotRenewableError(CirculationError):
    """Raised when a loan cannot be renewed."""

    kind = "not_renewable"


class InUseError(CirculationError):
    """Raised when deleting a book or user that still has open loans."""

    kind = "in_use"


class ReviewNotAllowedError(CirculationError):
    """Raised when a review is not backed by a completed loan."""

    kind = "review_not_allowed"


class ConcurrencyError(CirculationError):
    """Raised when a unit of work keeps conflicting with concurrent writers."""

    kind = "conflict"
