"""Tests for reservation submission and ledger batch semantics."""

from decimal import Decimal
from typing import Optional

import pytest

from src.booking.submitter import ReservationSubmitter, build_booking_lines
from src.exceptions import (
    DataWriteError,
    OverbookingError,
    PartialCommitRisk,
    ValidationError,
)
from src.schemas.booking_schema import (
    BookingLineRecord,
    BookingSummarySnapshot,
    CustomerDetails,
    SnapshotLine,
)
from src.tools.ledger import InMemoryLedger, LedgerWriter
from tests.conftest import BOOKING_DAY, OTHER_DAY, make_line, run


def make_snapshot(*lines: tuple[str, int, str, int]) -> BookingSummarySnapshot:
    """Build a snapshot from (item_id, quantity, unit_price, total_inventory) tuples."""
    snapshot_lines = tuple(
        SnapshotLine(
            item_id=item_id,
            name=item_id.upper(),
            unit_price=Decimal(price),
            total_inventory=total,
            remaining=total,
            quantity=quantity,
        )
        for item_id, quantity, price, total in lines
    )
    return BookingSummarySnapshot(
        date=BOOKING_DAY,
        time="10:30",
        lines=snapshot_lines,
        total_cost=sum((l.line_total for l in snapshot_lines), Decimal("0")),
    )


CUSTOMER = CustomerDetails(
    name="John Aareboots",
    normalized_phone="+41791234567",
    email="x@y.com",
    address="Main Street 1, 3000 Bern",
)


class ShortAckLedger(LedgerWriter):
    """Writer that claims success but acknowledges fewer lines than sent."""

    async def insert_booking_lines(
        self, lines: list[BookingLineRecord], inventory_caps: Optional[dict[str, int]] = None
    ) -> int:
        return len(lines) - 1


class TestBuildBookingLines:
    def test_one_line_per_item_with_customer_payload(self):
        snapshot = make_snapshot(("sup", 2, "50", 5), ("kanu", 1, "90", 2))
        lines = build_booking_lines(snapshot, CUSTOMER)

        assert [(l.item_id, l.quantity) for l in lines] == [("sup", 2), ("kanu", 1)]
        assert [l.line_total for l in lines] == [Decimal("100"), Decimal("90")]
        for line in lines:
            assert line.booking_date == BOOKING_DAY
            assert line.booking_time == "10:30"
            assert line.customer_name == "John Aareboots"
            assert line.customer_phone == "+41791234567"
            assert line.customer_email == "x@y.com"
            assert line.customer_address == "Main Street 1, 3000 Bern"


class TestSubmit:
    def test_success_writes_whole_batch(self, ledger):
        snapshot = make_snapshot(("sup", 2, "50", 5), ("kanu", 1, "90", 2))
        result = run(ReservationSubmitter(ledger).submit(snapshot, CUSTOMER))

        assert result.lines_written == 2
        assert result.total_cost == Decimal("190")
        assert len(ledger.all_lines()) == 2

    def test_empty_snapshot_rejected(self, ledger):
        snapshot = BookingSummarySnapshot(
            date=BOOKING_DAY, time="10:00", lines=(), total_cost=Decimal("0")
        )
        with pytest.raises(ValidationError):
            run(ReservationSubmitter(ledger).submit(snapshot, CUSTOMER))
        assert ledger.all_lines() == []

    def test_clean_failure_is_write_error(self, ledger):
        ledger.fail_writes_with = "store unavailable"
        with pytest.raises(DataWriteError, match="store unavailable"):
            run(ReservationSubmitter(ledger).submit(make_snapshot(("sup", 1, "50", 5)), CUSTOMER))

    def test_partial_write_is_commit_risk(self, ledger):
        ledger.partial_after = 1
        snapshot = make_snapshot(("sup", 1, "50", 5), ("kanu", 1, "90", 2))
        with pytest.raises(PartialCommitRisk):
            run(ReservationSubmitter(ledger).submit(snapshot, CUSTOMER))
        assert len(ledger.all_lines()) == 1

    def test_failure_on_non_atomic_store_is_commit_risk(self):
        ledger = InMemoryLedger(atomic_batches=False)
        ledger.fail_writes_with = "connection reset"
        with pytest.raises(PartialCommitRisk):
            run(ReservationSubmitter(ledger).submit(make_snapshot(("sup", 1, "50", 5)), CUSTOMER))

    def test_short_acknowledgement_is_commit_risk(self):
        snapshot = make_snapshot(("sup", 1, "50", 5), ("kanu", 1, "90", 2))
        with pytest.raises(PartialCommitRisk, match="1 of 2"):
            run(ReservationSubmitter(ShortAckLedger()).submit(snapshot, CUSTOMER))


class TestOverbookingGuard:
    def test_rejects_batch_exceeding_inventory(self, ledger):
        run(ledger.insert_booking_lines([make_line("kanu", 1)]))
        snapshot = make_snapshot(("sup", 1, "50", 5), ("kanu", 2, "90", 2))

        with pytest.raises(OverbookingError, match="kanu") as exc_info:
            run(ReservationSubmitter(ledger).submit(snapshot, CUSTOMER))

        assert exc_info.value.item_id == "kanu"
        assert len(ledger.all_lines()) == 1

    def test_overbooking_on_non_atomic_store_is_not_partial(self):
        ledger = InMemoryLedger(atomic_batches=False)
        run(ledger.insert_booking_lines([make_line("kanu", 2)]))
        with pytest.raises(OverbookingError):
            run(ReservationSubmitter(ledger).submit(make_snapshot(("kanu", 1, "90", 2)), CUSTOMER))

    def test_exact_fit_allowed(self, ledger):
        run(ledger.insert_booking_lines([make_line("kanu", 1)]))
        result = run(ReservationSubmitter(ledger).submit(make_snapshot(("kanu", 1, "90", 2)), CUSTOMER))
        assert result.lines_written == 1

    def test_other_dates_do_not_count(self, ledger):
        run(ledger.insert_booking_lines([make_line("kanu", 2, day=OTHER_DAY)]))
        result = run(ReservationSubmitter(ledger).submit(make_snapshot(("kanu", 2, "90", 2)), CUSTOMER))
        assert result.lines_written == 1


class TestLedgerFailureSwitches:
    def test_partial_switch_applies_to_next_batch_only(self, ledger):
        ledger.partial_after = 5
        assert run(ledger.insert_booking_lines([make_line("sup", 1)])) == 1
        assert ledger.partial_after is None

        assert run(ledger.insert_booking_lines([make_line("sup", 1), make_line("kanu", 1)])) == 2
        assert len(ledger.all_lines()) == 3

    def test_partial_switch_cleared_by_rejected_batch(self, ledger):
        ledger.partial_after = 0
        with pytest.raises(OverbookingError):
            run(ledger.insert_booking_lines([make_line("kanu", 3)], inventory_caps={"kanu": 2}))
        assert ledger.partial_after is None
