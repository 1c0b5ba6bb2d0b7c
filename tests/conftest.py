"""Shared test fixtures and helpers."""

import asyncio
import datetime
from decimal import Decimal
from typing import Optional

import pytest

from src.booking.session import BookingSession, LedgerRefreshSignal
from src.booking.state_machine import BookingStateMachine
from src.exceptions import DataFetchError
from src.schemas.booking_schema import BookingLineRecord, ContactForm
from src.schemas.inventory_schema import ItemDefinition
from src.tools.catalog import InMemoryCatalog
from src.tools.ledger import InMemoryLedger, LedgerReader, LedgerWriter

BOOKING_DAY = datetime.date(2024, 6, 1)
OTHER_DAY = datetime.date(2024, 6, 2)
NOW = datetime.datetime(2024, 5, 20, 9, 0)


def run(coro):
    """Run a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)


def make_item(
    item_id: str = "sup",
    total: int = 5,
    price: str = "50",
    name: Optional[str] = None,
) -> ItemDefinition:
    """Helper to create an ItemDefinition."""
    return ItemDefinition(
        id=item_id,
        name=name or item_id.upper(),
        unit_price=Decimal(price),
        total_inventory=total,
    )


def make_line(
    item_id: str = "sup",
    quantity: int = 1,
    day: datetime.date = BOOKING_DAY,
    time: str = "10:00",
    price: str = "50",
) -> BookingLineRecord:
    """Helper to create a BookingLineRecord with placeholder customer data."""
    return BookingLineRecord(
        booking_date=day,
        booking_time=time,
        item_id=item_id,
        quantity=quantity,
        customer_name="Existing Customer",
        customer_phone="+41791111111",
        customer_email="existing@example.com",
        customer_address="Aarestrasse 1, Thun",
        line_total=Decimal(price) * quantity,
    )


def valid_form(**overrides) -> ContactForm:
    """A contact form that passes every check unless overridden."""
    fields = {
        "name": "John Aareboots",
        "phone": "+41791234567",
        "email": "x@y.com",
        "confirm_email": "x@y.com",
        "address": "Main Street 1, 3000 Bern",
    }
    fields.update(overrides)
    return ContactForm(**fields)


class GatedLedgerReader(LedgerReader):
    """Ledger reader whose responses wait until the test releases each date."""

    def __init__(self, ledger: InMemoryLedger) -> None:
        self._ledger = ledger
        self._gates: dict[datetime.date, asyncio.Event] = {}
        self.fail_dates: set[datetime.date] = set()

    def gate(self, day: datetime.date) -> asyncio.Event:
        if day not in self._gates:
            self._gates[day] = asyncio.Event()
        return self._gates[day]

    def release(self, day: datetime.date) -> None:
        self.gate(day).set()

    async def list_bookings_for_date(self, day: datetime.date) -> list[BookingLineRecord]:
        await self.gate(day).wait()
        if day in self.fail_dates:
            raise DataFetchError(f"ledger unavailable for {day}")
        return await self._ledger.list_bookings_for_date(day)


class GatedLedgerWriter(LedgerWriter):
    """Ledger writer that holds every batch until the test releases it."""

    def __init__(self, ledger: InMemoryLedger) -> None:
        self._ledger = ledger
        self._gate: Optional[asyncio.Event] = None

    def gate(self) -> asyncio.Event:
        if self._gate is None:
            self._gate = asyncio.Event()
        return self._gate

    def release(self) -> None:
        self.gate().set()

    async def insert_booking_lines(
        self,
        lines: list[BookingLineRecord],
        inventory_caps: Optional[dict[str, int]] = None,
    ) -> int:
        await self.gate().wait()
        return await self._ledger.insert_booking_lines(lines, inventory_caps)


@pytest.fixture
def state_machine():
    return BookingStateMachine()


@pytest.fixture
def catalog():
    return InMemoryCatalog([
        make_item("sup", total=5, price="50", name="SUP"),
        make_item("kanu", total=2, price="90", name="Kanu"),
        make_item("large-raft", total=0, price="250", name="Large Raft"),
    ])


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def refresh_signal():
    return LedgerRefreshSignal()


@pytest.fixture
def session(catalog, ledger, refresh_signal):
    return BookingSession(
        catalog, ledger, ledger,
        refresh_signal=refresh_signal,
        clock=lambda: NOW,
        session_id="BS-test",
    )
