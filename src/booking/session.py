"""
Booking session: one customer's pass through the booking dialog.

Owns the selection draft, the frozen summary snapshot, the loaded
availability view and the in-flight flags. Every event is checked against
the BookingStateMachine before it touches any state, and availability
responses are tagged with a generation number so a response for a date
the customer has already left is dropped.

Usage:
    session = BookingSession(catalog, ledger, ledger)
    await session.choose_date(date(2024, 6, 1))
    session.change_quantity("sup", +1)
    session.proceed_to_details()
    await session.confirm_submission(form)
"""

import datetime
import uuid
from decimal import Decimal
from typing import Callable, Optional

from src.booking.availability import load_availability
from src.booking.state_machine import BookingStateMachine, BookingStep, BookingTrigger
from src.booking.submitter import ReservationSubmitter
from src.booking.validator import validate_contact_details
from src.exceptions import DataFetchError, DataWriteError, PartialCommitRisk, ValidationError
from src.logging_context import get_session_logger, set_session_id
from src.schemas.booking_schema import (
    BookingSummarySnapshot,
    ContactForm,
    SelectionDraft,
    SelectionLine,
    SnapshotLine,
    SubmissionResult,
)
from src.schemas.inventory_schema import AvailabilityRow
from src.tools.address import AddressLookup, resolve_address
from src.tools.catalog import CatalogReader
from src.tools.ledger import LedgerReader, LedgerWriter
from src.tools.schedule import default_time_slot, is_bookable_date, is_valid_time_slot
from src.utils import clamp

logger = get_session_logger(__name__)

INCOMPLETE_SELECTION_MESSAGE = (
    "incomplete selection: please select a date, time, and at least one item."
)
FETCH_FAILED_MESSAGE = "Failed to load item availability."
WRITE_FAILED_MESSAGE = "Could not confirm booking. Please try again."


class LedgerRefreshSignal:
    """Shared counter bumped whenever the ledger gains a committed reservation."""

    def __init__(self) -> None:
        self._value = 0
        self._listeners: list[Callable[[int], None]] = []

    @property
    def value(self) -> int:
        return self._value

    def bump(self) -> int:
        self._value += 1
        for listener in list(self._listeners):
            listener(self._value)
        return self._value

    def subscribe(self, listener: Callable[[int], None]) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[int], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)


class BookingSession:
    """
    Selection -> details -> commit flow for a single customer.

    Not shared between customers; concurrent sessions coordinate only
    through the ledger and the refresh signal.
    """

    def __init__(
        self,
        catalog_reader: CatalogReader,
        ledger_reader: LedgerReader,
        ledger_writer: LedgerWriter,
        refresh_signal: Optional[LedgerRefreshSignal] = None,
        address_lookup: Optional[AddressLookup] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self._catalog = catalog_reader
        self._ledger_reader = ledger_reader
        self._submitter = ReservationSubmitter(ledger_writer)
        self._address_lookup = address_lookup
        self._clock = clock or datetime.datetime.now
        self._sm = BookingStateMachine()

        self.session_id = session_id or f"BS-{uuid.uuid4().hex[:6]}"
        self.refresh_signal = refresh_signal or LedgerRefreshSignal()
        self.refresh_signal.subscribe(self._on_ledger_changed)

        self.draft = SelectionDraft(time=default_time_slot())
        self.snapshot: Optional[BookingSummarySnapshot] = None
        self.contact_form: Optional[ContactForm] = None
        self.availability: list[AvailabilityRow] = []
        self.availability_error: Optional[str] = None
        self.form_error: Optional[str] = None
        self.is_loading_availability = False
        self.is_submitting = False
        self.last_result: Optional[SubmissionResult] = None

        self._generation = 0
        self._view_token: Optional[int] = None

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #

    @property
    def current_step(self) -> BookingStep:
        return self._sm.current_step

    @property
    def total_cost(self) -> Decimal:
        return self.draft.total_cost

    @property
    def quantity_controls_enabled(self) -> bool:
        return (
            self._sm.current_step == BookingStep.SELECTION
            and not self.is_loading_availability
            and self.availability_error is None
            and bool(self.draft.lines)
        )

    @property
    def availability_is_stale(self) -> bool:
        """True when the ledger changed after the current view was loaded."""
        return self._view_token is not None and self._view_token != self.refresh_signal.value

    def get_step_trace(self) -> list[str]:
        return self._sm.get_step_trace()

    # ------------------------------------------------------------------ #
    # Selection step
    # ------------------------------------------------------------------ #

    async def choose_date(self, day: datetime.date) -> list[AvailabilityRow]:
        """Select a date and load its availability.

        Quantities restart at zero, except when returning to the date of
        the last snapshot, whose quantities are carried back in.
        """
        set_session_id(self.session_id)
        self._sm.require(BookingTrigger.DATE_CHOSEN)
        if not is_bookable_date(day, self._clock()):
            raise ValidationError(f"{day.isoformat()} can no longer be booked.")

        self._sm.transition(BookingTrigger.DATE_CHOSEN)
        self.draft.date = day
        carry: dict[str, int] = {}
        if self.snapshot is not None and self.snapshot.date == day:
            carry = {line.item_id: line.quantity for line in self.snapshot.lines}
        return await self._load(day, carry)

    async def refresh_availability(self) -> list[AvailabilityRow]:
        """Reload availability for the chosen date, keeping current quantities where they still fit."""
        set_session_id(self.session_id)
        self._sm.require(BookingTrigger.AVAILABILITY_LOADED)
        if self.draft.date is None:
            raise ValidationError("Please choose a date first.")

        carry = {line.item_id: line.chosen_quantity for line in self.draft.lines}
        if not carry and self.snapshot is not None and self.snapshot.date == self.draft.date:
            carry = {line.item_id: line.quantity for line in self.snapshot.lines}
        return await self._load(self.draft.date, carry)

    def choose_time(self, time: str) -> str:
        set_session_id(self.session_id)
        self._sm.require(BookingTrigger.TIME_CHOSEN)
        if not is_valid_time_slot(time):
            raise ValidationError(f"{time} is not an available time slot.")
        self._sm.transition(BookingTrigger.TIME_CHOSEN)
        self.draft.time = time
        return time

    def change_quantity(self, item_id: str, delta: int) -> int:
        """Adjust one item by delta, clamped to [0, remaining]. Returns the new quantity."""
        set_session_id(self.session_id)
        self._sm.require(BookingTrigger.QUANTITY_CHANGED)
        if self.is_loading_availability:
            raise ValidationError("Availability is still loading.")
        if self.availability_error is not None or not self.draft.lines:
            raise ValidationError("Availability is not loaded. Please retry.")

        line = self.draft.get_line(item_id)
        if line is None:
            raise ValidationError(f"Unknown item: {item_id}")

        line.chosen_quantity = clamp(line.chosen_quantity + delta, 0, line.remaining)
        self._sm.transition(BookingTrigger.QUANTITY_CHANGED)
        return line.chosen_quantity

    def proceed_to_details(self) -> BookingSummarySnapshot:
        """Freeze the selection and move to contact details entry."""
        set_session_id(self.session_id)
        self._sm.require(BookingTrigger.PROCEED)
        if (
            self.draft.date is None
            or self.draft.time is None
            or self.is_loading_availability
            or self.availability_error is not None
            or self.draft.total_cost <= 0
        ):
            raise ValidationError(INCOMPLETE_SELECTION_MESSAGE)

        snapshot = BookingSummarySnapshot(
            date=self.draft.date,
            time=self.draft.time,
            lines=tuple(
                SnapshotLine(
                    item_id=line.item_id,
                    name=line.name,
                    unit_price=line.unit_price,
                    total_inventory=line.total_inventory,
                    remaining=line.remaining,
                    quantity=line.chosen_quantity,
                )
                for line in self.draft.lines
                if line.chosen_quantity > 0
            ),
            total_cost=self.draft.total_cost,
        )
        self._sm.transition(BookingTrigger.PROCEED)
        self.snapshot = snapshot
        self.form_error = None
        logger.info(
            "Selection frozen: %d item line(s) on %s at %s, total %s",
            len(snapshot.lines), snapshot.date, snapshot.time, snapshot.total_cost,
        )
        return snapshot

    # ------------------------------------------------------------------ #
    # Details step
    # ------------------------------------------------------------------ #

    async def back_to_selection(self) -> list[AvailabilityRow]:
        """Return to the selection step with the snapshot's date, time and quantities."""
        set_session_id(self.session_id)
        self._sm.require(BookingTrigger.BACK_TO_SELECTION)
        if self.is_submitting:
            raise ValidationError("Submission already in progress.")
        snapshot = self.snapshot
        self._sm.transition(BookingTrigger.BACK_TO_SELECTION)
        self.form_error = None
        if snapshot is None:
            self._reset_draft()
            return []

        # Placeholder stock figures until the refresh below replaces them.
        self.draft = SelectionDraft(
            date=snapshot.date,
            time=snapshot.time,
            lines=[
                SelectionLine(
                    item_id=line.item_id,
                    name=line.name,
                    unit_price=line.unit_price,
                    total_inventory=line.total_inventory,
                    remaining=line.remaining,
                    chosen_quantity=line.quantity,
                )
                for line in snapshot.lines
            ],
        )
        carry = {line.item_id: line.quantity for line in snapshot.lines}
        return await self._load(snapshot.date, carry)

    def suggest_address(self, text: str) -> str:
        """Formatted address for free text, or the text itself without a lookup."""
        return resolve_address(text, self._address_lookup)

    async def confirm_submission(self, form: ContactForm) -> SubmissionResult:
        """
        Validate contact details and commit the snapshot.

        Raises:
            ValidationError: Contact details rejected or a submission is in flight.
            DataWriteError: Nothing was written; details stay in place for a retry.
            PartialCommitRisk: The batch may be partly written.
        """
        set_session_id(self.session_id)
        self._sm.require(BookingTrigger.SUBMISSION_SUCCEEDED)
        if self.is_submitting:
            raise ValidationError("Submission already in progress.")

        self.contact_form = form
        self.form_error = None
        result = validate_contact_details(form)
        if not result.accepted:
            self.form_error = result.reason
            raise ValidationError(result.reason)
        if self.snapshot is None:
            self.form_error = "Booking summary is missing. Please go back and select items."
            raise ValidationError(self.form_error)

        generation = self._generation
        self.is_submitting = True
        try:
            outcome = await self._submitter.submit(self.snapshot, result.customer)
        except (DataWriteError, PartialCommitRisk) as exc:
            self.form_error = str(exc) or WRITE_FAILED_MESSAGE
            raise
        finally:
            self.is_submitting = False

        token = self.refresh_signal.bump()
        outcome = outcome.model_copy(update={"refresh_token": token})
        if generation != self._generation:
            logger.info("Reservation committed after the dialog was closed")
            self.snapshot = None
            self.last_result = outcome
            return outcome

        self._sm.transition(BookingTrigger.SUBMISSION_SUCCEEDED)
        self._discard()
        self.last_result = outcome
        return outcome

    # ------------------------------------------------------------------ #
    # Any step
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """Discard everything and return to an empty selection step.

        In-flight availability requests are abandoned; their responses are
        dropped when they arrive.
        """
        set_session_id(self.session_id)
        self._sm.transition(BookingTrigger.CANCEL)
        self._discard()

    def detach(self) -> None:
        """Stop listening to the shared refresh signal."""
        self.refresh_signal.unsubscribe(self._on_ledger_changed)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    async def _load(self, day: datetime.date, carry: dict[str, int]) -> list[AvailabilityRow]:
        self._generation += 1
        generation = self._generation
        token = self.refresh_signal.value

        self.is_loading_availability = True
        self.availability_error = None
        self.draft.lines = []
        logger.debug("Fetching availability for %s (request %d)", day, generation)

        try:
            rows = await load_availability(day, self._catalog, self._ledger_reader)
        except DataFetchError as exc:
            if generation != self._generation:
                logger.debug("Dropping failed availability response for %s", day)
                return self.availability
            self.is_loading_availability = False
            self.availability = []
            self.availability_error = str(exc) or FETCH_FAILED_MESSAGE
            self._view_token = None
            logger.warning("Availability fetch failed for %s: %s", day, exc)
            return []

        if generation != self._generation:
            logger.debug("Dropping stale availability response for %s", day)
            return self.availability

        self.is_loading_availability = False
        self.availability = rows
        self._view_token = token
        self.draft.lines = [self._seed_line(row, carry.get(row.id, 0)) for row in rows]
        self._sm.transition(BookingTrigger.AVAILABILITY_LOADED)
        return rows

    @staticmethod
    def _seed_line(row: AvailabilityRow, wanted: int) -> SelectionLine:
        chosen = clamp(wanted, 0, row.remaining)
        if chosen < wanted:
            logger.info(
                "Reduced %s from %d to %d to match remaining stock", row.id, wanted, chosen
            )
        return SelectionLine(
            item_id=row.id,
            name=row.name,
            unit_price=row.unit_price,
            total_inventory=row.total_inventory,
            remaining=row.remaining,
            chosen_quantity=chosen,
        )

    def _reset_draft(self) -> None:
        self.draft = SelectionDraft(time=default_time_slot())
        self.availability = []
        self.availability_error = None
        self.is_loading_availability = False
        self._view_token = None

    def _discard(self) -> None:
        self._generation += 1
        self._reset_draft()
        self.snapshot = None
        self.contact_form = None
        self.form_error = None

    def _on_ledger_changed(self, token: int) -> None:
        if self._view_token is not None and self._view_token != token:
            logger.debug("Ledger changed (token %d); availability for %s is stale",
                         token, self.draft.date)
