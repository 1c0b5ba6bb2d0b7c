"""
Turns a confirmed snapshot into ledger lines and commits them as one batch.

A batch is either fully persisted or reported as a failure. When the
ledger cannot promise that, a failed write is reported as a partial
commit risk instead of a clean failure.
"""

import logging

from src.exceptions import (
    DataWriteError,
    OverbookingError,
    PartialCommitRisk,
    PartialWriteError,
    ValidationError,
)
from src.schemas.booking_schema import (
    BookingLineRecord,
    BookingSummarySnapshot,
    CustomerDetails,
    SubmissionResult,
)
from src.tools.ledger import LedgerWriter

logger = logging.getLogger(__name__)


def build_booking_lines(
    snapshot: BookingSummarySnapshot, customer: CustomerDetails
) -> list[BookingLineRecord]:
    """One ledger line per snapshot line, each carrying the full customer payload."""
    return [
        BookingLineRecord(
            booking_date=snapshot.date,
            booking_time=snapshot.time,
            item_id=line.item_id,
            quantity=line.quantity,
            customer_name=customer.name,
            customer_phone=customer.normalized_phone,
            customer_email=customer.email,
            customer_address=customer.address,
            line_total=line.unit_price * line.quantity,
        )
        for line in snapshot.lines
    ]


class ReservationSubmitter:
    """Writes reservations through a LedgerWriter."""

    def __init__(self, ledger_writer: LedgerWriter) -> None:
        self._ledger = ledger_writer

    async def submit(
        self, snapshot: BookingSummarySnapshot, customer: CustomerDetails
    ) -> SubmissionResult:
        """
        Commit the snapshot for the customer.

        Raises:
            ValidationError: If the snapshot holds no lines.
            DataWriteError: If nothing was written (OverbookingError included).
            PartialCommitRisk: If some lines may have been written.
        """
        if not snapshot.lines:
            raise ValidationError("Booking summary is missing. Please go back and select items.")

        lines = build_booking_lines(snapshot, customer)
        caps = {line.item_id: line.total_inventory for line in snapshot.lines}

        try:
            written = await self._ledger.insert_booking_lines(lines, inventory_caps=caps)
        except PartialWriteError as exc:
            logger.error(
                "Partial booking commit for %s: %d of %d lines written",
                snapshot.date, exc.written, exc.requested,
            )
            raise PartialCommitRisk(
                "Your booking may have been saved only in part. "
                "Please contact us before booking again."
            ) from exc
        except OverbookingError as exc:
            logger.warning("Booking rejected for %s: %s", snapshot.date, exc)
            raise
        except DataWriteError as exc:
            if not self._ledger.atomic_batches:
                logger.error("Non-atomic ledger failed mid-batch for %s: %s", snapshot.date, exc)
                raise PartialCommitRisk(
                    "Your booking may have been saved only in part. "
                    "Please contact us before booking again."
                ) from exc
            logger.warning("Booking write failed for %s: %s", snapshot.date, exc)
            raise

        if written != len(lines):
            logger.error(
                "Ledger acknowledged %d of %d lines for %s", written, len(lines), snapshot.date
            )
            raise PartialCommitRisk(
                f"Only {written} of {len(lines)} booking lines were confirmed."
            )

        logger.info(
            "Reservation committed: %d line(s) on %s at %s, total %s",
            written, snapshot.date, snapshot.time, snapshot.total_cost,
        )
        return SubmissionResult(lines_written=written, total_cost=snapshot.total_cost)
