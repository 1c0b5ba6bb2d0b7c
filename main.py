"""
Entry point for the booking core.

Usage:
    Availability:  python main.py availability 2024-06-01
    Console mode:  python main.py console [--scenario booking]
"""

import asyncio
import datetime
import sys

from src.booking.availability import load_availability
from src.config import settings
from src.tools.catalog import InMemoryCatalog
from src.tools.ledger import InMemoryLedger
from src.utils import format_money


async def _print_availability(day: datetime.date) -> None:
    """Print the availability view of the in-memory stores for one date."""
    rows = await load_availability(day, InMemoryCatalog(), InMemoryLedger())
    for row in rows:
        price = format_money(row.unit_price, settings.inventory.currency)
        print(f"{row.id:<12} {price:>12}  {row.remaining}/{row.total_inventory}  {row.stock_level.value}")


def _run_console_mode(argv: list[str]) -> None:
    """Start the offline console demo."""
    from console_demo import main as console_main

    console_main(argv)


if __name__ == "__main__":
    if len(sys.argv) > 2 and sys.argv[1] == "availability":
        asyncio.run(_print_availability(datetime.date.fromisoformat(sys.argv[2])))
    elif len(sys.argv) > 1 and sys.argv[1] == "console":
        _run_console_mode(sys.argv[2:])
    else:
        print(__doc__)
        sys.exit(1)
