"""Error taxonomy for the availability and reservation core.

Every failure here is local and recoverable by user retry or correction.
"""

from typing import Optional


class BookingError(Exception):
    """Base class for all booking core errors."""


class DataFetchError(BookingError):
    """Raised when the catalog or ledger cannot be read."""


class ValidationError(BookingError):
    """Raised when a precondition or contact field check fails."""


class DataWriteError(BookingError):
    """Raised when a reservation batch could not be written."""


class OverbookingError(DataWriteError):
    """Raised when a batch would push an item past its inventory for the date."""

    def __init__(self, message: str, item_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.item_id = item_id


class PartialWriteError(DataWriteError):
    """Raised by a ledger writer that persisted only part of a batch."""

    def __init__(self, message: str, written: int, requested: int) -> None:
        super().__init__(message)
        self.written = written
        self.requested = requested


class PartialCommitRisk(BookingError):
    """Raised when a batch write may have left the ledger in an indeterminate state."""


class InvalidTransitionError(BookingError):
    """Raised when an event is not valid from the current booking step."""
