"""Bookable time slots and calendar rules."""

import datetime
import logging
from typing import Optional

from src.config import settings

logger = logging.getLogger(__name__)


def _parse_clock(value: str) -> datetime.time:
    return datetime.datetime.strptime(value, "%H:%M").time()


def generate_time_slots(
    start: Optional[str] = None,
    end: Optional[str] = None,
    interval_minutes: Optional[int] = None,
) -> list[str]:
    """List HH:MM slots from start to end inclusive, every interval_minutes."""
    start_at = _parse_clock(start or settings.schedule.slot_start)
    end_at = _parse_clock(end or settings.schedule.slot_end)
    step = datetime.timedelta(
        minutes=interval_minutes or settings.schedule.slot_interval_minutes
    )

    base = datetime.date(2000, 1, 1)
    current = datetime.datetime.combine(base, start_at)
    last = datetime.datetime.combine(base, end_at)
    slots = []
    while current <= last:
        slots.append(current.strftime("%H:%M"))
        current += step
    return slots


TIME_SLOTS: list[str] = generate_time_slots()


def default_time_slot() -> str:
    return TIME_SLOTS[0]


def is_valid_time_slot(value: str) -> bool:
    return value in TIME_SLOTS


def is_bookable_date(day: datetime.date, now: Optional[datetime.datetime] = None) -> bool:
    """
    Check whether a date can still be booked.

    Past dates never can. Today can until the same-day cutoff
    (inclusive, to the minute).
    """
    now = now or datetime.datetime.now()
    today = now.date()
    if day < today:
        return False
    if day == today:
        cutoff = _parse_clock(settings.schedule.same_day_cutoff)
        return now.time().replace(second=0, microsecond=0) <= cutoff
    return True
