"""
Per-date availability: catalog stock minus what the ledger already holds.

All time slots on a date share one stock pool, so only the booking date
matters when aggregating the ledger.
"""

import datetime
import logging
from collections import defaultdict
from typing import Iterable

from src.config import settings
from src.exceptions import DataFetchError
from src.schemas.booking_schema import BookingLineRecord
from src.schemas.inventory_schema import AvailabilityRow, ItemDefinition, StockLevel
from src.tools.catalog import CatalogReader
from src.tools.ledger import LedgerReader

logger = logging.getLogger(__name__)


def stock_level(remaining: int, total_inventory: int) -> StockLevel:
    """Classify remaining stock as a share of total inventory."""
    if remaining <= 0 or total_inventory <= 0:
        return StockLevel.UNAVAILABLE
    percent_left = remaining * 100 / total_inventory
    if percent_left <= settings.inventory.low_stock_percent:
        return StockLevel.LOW
    if percent_left <= settings.inventory.limited_stock_percent:
        return StockLevel.LIMITED
    return StockLevel.PLENTY


def compute_availability(
    day: datetime.date,
    catalog: Iterable[ItemDefinition],
    ledger_lines: Iterable[BookingLineRecord],
) -> list[AvailabilityRow]:
    """
    Combine catalog and same-day ledger lines into one row per catalog item.

    ledger_lines must already be filtered to day. Rows follow catalog
    order. Ledger entries for items missing from the catalog are ignored.
    """
    booked: dict[str, int] = defaultdict(int)
    for line in ledger_lines:
        booked[line.item_id] += line.quantity

    rows = []
    known_ids = set()
    for item in catalog:
        known_ids.add(item.id)
        booked_so_far = booked.get(item.id, 0)
        remaining = max(0, item.total_inventory - booked_so_far)
        rows.append(AvailabilityRow(
            id=item.id,
            name=item.name,
            unit_price=item.unit_price,
            total_inventory=item.total_inventory,
            booked_so_far=booked_so_far,
            remaining=remaining,
            stock_level=stock_level(remaining, item.total_inventory),
        ))

    unknown = sorted(set(booked) - known_ids)
    if unknown:
        logger.debug("Ignoring ledger lines for unknown items on %s: %s", day, unknown)
    return rows


async def load_availability(
    day: datetime.date,
    catalog_reader: CatalogReader,
    ledger_reader: LedgerReader,
) -> list[AvailabilityRow]:
    """
    Read catalog and ledger for day and compute availability.

    Raises:
        DataFetchError: If either read fails. No partial view is returned.
    """
    try:
        catalog = await catalog_reader.list_items()
        ledger_lines = await ledger_reader.list_bookings_for_date(day)
    except DataFetchError:
        raise
    except Exception as exc:
        logger.warning("Availability read failed for %s: %r", day, exc)
        raise DataFetchError(f"Failed to load item availability: {exc}") from exc

    rows = compute_availability(day, catalog, ledger_lines)
    logger.debug("Availability for %s: %s", day, {row.id: row.remaining for row in rows})
    return rows
