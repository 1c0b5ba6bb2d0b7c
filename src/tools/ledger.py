"""
Booking ledger: the append-only store of committed reservation lines.

In production, this is a bookings table in the shop's data store queried
by booking date. The in-memory ledger serializes every batch insert behind
a lock and checks per-date inventory caps inside it, so two sessions that
both saw enough stock cannot oversell an item.
"""

import datetime
import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Optional

from src.exceptions import DataFetchError, DataWriteError, OverbookingError, PartialWriteError
from src.schemas.booking_schema import BookingLineRecord

logger = logging.getLogger(__name__)


class LedgerReader(ABC):
    @abstractmethod
    async def list_bookings_for_date(self, day: datetime.date) -> list[BookingLineRecord]:
        """Return every booking line on the given date, across all customers and time slots."""
        raise NotImplementedError


class LedgerWriter(ABC):
    # False when the store may persist part of a failed batch.
    atomic_batches: bool = True

    @abstractmethod
    async def insert_booking_lines(
        self,
        lines: list[BookingLineRecord],
        inventory_caps: Optional[dict[str, int]] = None,
    ) -> int:
        """Persist lines as one batch and return how many were written.

        inventory_caps maps item_id to total inventory; when given, the
        batch is rejected with OverbookingError if any item would exceed
        its cap on the booking date.
        """
        raise NotImplementedError


class InMemoryLedger(LedgerReader, LedgerWriter):
    """Ledger kept in process memory. Failure switches exist for tests and demos."""

    def __init__(self, atomic_batches: bool = True) -> None:
        self.atomic_batches = atomic_batches
        self._lines: list[BookingLineRecord] = []
        self._lock = threading.Lock()
        self.fail_reads_with: Optional[str] = None
        self.fail_writes_with: Optional[str] = None
        # Persist only this many lines of the next batch, then fail. Every insert clears it.
        self.partial_after: Optional[int] = None

    async def list_bookings_for_date(self, day: datetime.date) -> list[BookingLineRecord]:
        if self.fail_reads_with is not None:
            logger.warning("Ledger read failed for %s: %s", day, self.fail_reads_with)
            raise DataFetchError(self.fail_reads_with)
        with self._lock:
            return [line for line in self._lines if line.booking_date == day]

    async def insert_booking_lines(
        self,
        lines: list[BookingLineRecord],
        inventory_caps: Optional[dict[str, int]] = None,
    ) -> int:
        if self.fail_writes_with is not None:
            logger.warning("Ledger write failed: %s", self.fail_writes_with)
            raise DataWriteError(self.fail_writes_with)

        with self._lock:
            partial_after, self.partial_after = self.partial_after, None
            if inventory_caps is not None:
                self._check_caps(lines, inventory_caps)

            if partial_after is not None and partial_after < len(lines):
                written = max(0, partial_after)
                self._lines.extend(lines[:written])
                logger.error(
                    "Ledger persisted %d of %d lines before failing", written, len(lines)
                )
                raise PartialWriteError(
                    f"Only {written} of {len(lines)} booking lines were saved.",
                    written=written,
                    requested=len(lines),
                )

            self._lines.extend(lines)

        logger.info("Ledger stored %d booking line(s)", len(lines))
        return len(lines)

    def _check_caps(self, lines: list[BookingLineRecord], inventory_caps: dict[str, int]) -> None:
        """Reject the batch if any (date, item) would exceed its cap. Caller holds the lock."""
        booked: dict[tuple[datetime.date, str], int] = defaultdict(int)
        for existing in self._lines:
            booked[(existing.booking_date, existing.item_id)] += existing.quantity

        requested: dict[tuple[datetime.date, str], int] = defaultdict(int)
        for line in lines:
            requested[(line.booking_date, line.item_id)] += line.quantity

        for (day, item_id), quantity in requested.items():
            cap = inventory_caps.get(item_id)
            if cap is None:
                continue
            if booked[(day, item_id)] + quantity > cap:
                left = max(0, cap - booked[(day, item_id)])
                logger.warning(
                    "Overbooking rejected: %s on %s (requested %d, left %d)",
                    item_id, day, quantity, left,
                )
                raise OverbookingError(
                    f"Only {left} x {item_id} left on {day.isoformat()}; "
                    f"requested {quantity}.",
                    item_id=item_id,
                )

    def all_lines(self) -> list[BookingLineRecord]:
        with self._lock:
            return list(self._lines)

    def reset(self) -> None:
        """Clear all lines and failure switches. Used by test fixtures for isolation."""
        with self._lock:
            self._lines.clear()
        self.fail_reads_with = None
        self.fail_writes_with = None
        self.partial_after = None
