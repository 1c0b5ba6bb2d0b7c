from src.booking.availability import compute_availability, load_availability, stock_level
from src.booking.session import BookingSession, LedgerRefreshSignal
from src.booking.state_machine import (
    BookingStateMachine,
    BookingStep,
    BookingTrigger,
)
from src.booking.submitter import ReservationSubmitter
from src.booking.validator import validate_contact_details

__all__ = [
    "BookingSession",
    "BookingStateMachine",
    "BookingStep",
    "BookingTrigger",
    "LedgerRefreshSignal",
    "ReservationSubmitter",
    "compute_availability",
    "load_availability",
    "stock_level",
    "validate_contact_details",
]
