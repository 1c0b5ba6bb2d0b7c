"""Reservation data models: ledger lines, selection draft, and snapshot."""

from dataclasses import dataclass, field
import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

TIME_PATTERN = r"^\d{2}:\d{2}$"


class BookingLineRecord(BaseModel):
    """One committed reservation line in the ledger."""
    model_config = ConfigDict(frozen=True)

    booking_date: datetime.date
    booking_time: str = Field(pattern=TIME_PATTERN)
    item_id: str
    quantity: int = Field(gt=0)
    customer_name: str
    customer_phone: str
    customer_email: str
    customer_address: str
    line_total: Decimal


class SnapshotLine(BaseModel):
    """A selected item frozen at the selection -> details boundary."""
    model_config = ConfigDict(frozen=True)

    item_id: str
    name: str
    unit_price: Decimal
    total_inventory: int
    remaining: int
    quantity: int = Field(gt=0)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class BookingSummarySnapshot(BaseModel):
    """Immutable copy of the selection used for confirmation and submission."""
    model_config = ConfigDict(frozen=True)

    date: datetime.date
    time: str = Field(pattern=TIME_PATTERN)
    lines: tuple[SnapshotLine, ...]
    total_cost: Decimal


class ContactForm(BaseModel):
    """Contact fields exactly as typed by the customer."""
    name: str = ""
    phone: str = ""
    email: str = ""
    confirm_email: str = ""
    address: str = ""


class CustomerDetails(BaseModel):
    """Accepted contact details with the phone in E.164 form."""
    model_config = ConfigDict(frozen=True)

    name: str
    normalized_phone: str
    email: str
    address: str


class SubmissionResult(BaseModel):
    """Outcome of a committed reservation."""
    lines_written: int
    total_cost: Decimal
    refresh_token: int = 0


@dataclass
class SelectionLine:
    """Mutable per-item choice inside the draft."""
    item_id: str
    name: str
    unit_price: Decimal
    total_inventory: int = 0
    remaining: int = 0
    chosen_quantity: int = 0


@dataclass
class SelectionDraft:
    """
    In-progress choices of the active booking session.

    Lives only as long as the session; reset on close or successful
    submission. chosen_quantity stays within [0, remaining] on every line.
    """
    date: Optional[datetime.date] = None
    time: Optional[str] = None
    lines: list[SelectionLine] = field(default_factory=list)

    def get_line(self, item_id: str) -> Optional[SelectionLine]:
        for line in self.lines:
            if line.item_id == item_id:
                return line
        return None

    @property
    def total_cost(self) -> Decimal:
        return sum(
            (line.unit_price * line.chosen_quantity for line in self.lines),
            Decimal("0"),
        )
