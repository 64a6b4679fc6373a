"""
Date and time allocation for a batch of bills.

Pure functions only. No logging, no I/O.

Dates are handled as integer day offsets from the start of the range
(``date.toordinal``). Nothing here touches a timezone, so the same literal
input always yields the same literal output regardless of host locale.
"""

import random
import re
from datetime import date, datetime, time

from .errors import InfeasibleSchedule, ScheduleGenerationExhausted
from .models import DATE_FORMAT, ScheduleSlot


# Business hours: [06:00, 22:00)
BUSINESS_HOURS_START = 6
BUSINESS_HOURS_END = 22

# Attempts allowed per requested date before giving up
ATTEMPTS_PER_DATE = 100

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def parse_date(value: str) -> date:
    """
    Parse a literal ``YYYY-MM-DD`` string.

    Raises:
        ValueError: If the string is not in that exact format or is not a
            real calendar date (e.g. 2025-02-30)
    """
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        raise ValueError(f"Invalid date format: {value!r}. Expected YYYY-MM-DD")
    return datetime.strptime(value, DATE_FORMAT).date()


def parse_time(value: str) -> time:
    """Parse a literal 24-hour ``HH:MM`` string."""
    if not isinstance(value, str) or not _TIME_PATTERN.match(value):
        raise ValueError(f"Invalid time format: {value!r}. Expected HH:MM")
    hour, minute = (int(part) for part in value.split(":"))
    return time(hour, minute)


def _coerce_date(value: date | str) -> date:
    return value if isinstance(value, date) else parse_date(value)


def days_between(start: date, end: date) -> int:
    """Number of days from ``start`` to ``end`` (negative if end is earlier)."""
    return end.toordinal() - start.toordinal()


def required_span_days(count: int, min_spacing_days: int) -> int:
    """
    Smallest ``end - start`` in days that can hold ``count`` spaced dates.

    Dates must also be distinct, so a spacing of 0 still needs one day per date.
    """
    return max(count - 1, 0) * max(min_spacing_days, 1)


def check_schedule_feasible(
    count: int,
    start_date: date | str,
    end_date: date | str,
    min_spacing_days: int,
) -> None:
    """
    Raise InfeasibleSchedule if the range cannot hold the dates.

    The message names the minimum range that would be required.
    """
    start = _coerce_date(start_date)
    end = _coerce_date(end_date)

    if count < 1:
        raise InfeasibleSchedule(f"Number of dates must be at least 1, got {count}")
    if min_spacing_days < 0:
        raise InfeasibleSchedule(
            f"Minimum spacing cannot be negative, got {min_spacing_days}"
        )
    if end < start:
        raise InfeasibleSchedule(f"End date {end} is before start date {start}")

    span = days_between(start, end)
    required = required_span_days(count, min_spacing_days)
    if span < required:
        raise InfeasibleSchedule(
            f"Date range is too small. Need at least {required + 1} days for "
            f"{count} bills with {min_spacing_days}-day spacing. "
            f"Current range: {span + 1} days.",
            required_days=required + 1,
        )


def random_business_time(rng: random.Random) -> time:
    """Uniform hour in the business window, uniform minute 0-59."""
    hour = rng.randrange(BUSINESS_HOURS_START, BUSINESS_HOURS_END)
    minute = rng.randrange(60)
    return time(hour, minute)


def is_properly_spaced(offset: int, accepted: list[int], min_spacing_days: int) -> bool:
    """True if ``offset`` is new and at least the spacing away from every accepted offset."""
    return all(
        offset != other and abs(offset - other) >= min_spacing_days
        for other in accepted
    )


def allocate(
    count: int,
    start_date: date | str,
    end_date: date | str,
    min_spacing_days: int,
    rng: random.Random | None = None,
) -> list[ScheduleSlot]:
    """
    Pick ``count`` distinct, spaced dates in [start, end], each with a business-hours time.

    Uses rejection sampling: draw a random day, keep it only if it is new and
    far enough from every date already kept. Request sizes are small, so the
    expected number of draws stays low and the dates are not biased toward
    the edges of the range.

    Args:
        count: Number of slots (>= 1)
        start_date: First allowed date (date or ``YYYY-MM-DD``)
        end_date: Last allowed date, inclusive
        min_spacing_days: Minimum days between any two dates (>= 0)
        rng: Random source; the module-level generator if None

    Returns:
        Slots sorted ascending by date

    Raises:
        InfeasibleSchedule: If the range is too small for the spacing
        ScheduleGenerationExhausted: If ``count * 100`` draws were not enough
    """
    check_schedule_feasible(count, start_date, end_date, min_spacing_days)
    rng = rng or random.Random()

    start = _coerce_date(start_date)
    span = days_between(start, _coerce_date(end_date))
    max_attempts = count * ATTEMPTS_PER_DATE

    accepted: list[int] = []
    slots: list[ScheduleSlot] = []
    attempts = 0

    while len(slots) < count and attempts < max_attempts:
        attempts += 1
        offset = rng.randint(0, span)
        if not is_properly_spaced(offset, accepted, min_spacing_days):
            continue
        accepted.append(offset)
        slots.append(
            ScheduleSlot(
                date=date.fromordinal(start.toordinal() + offset),
                time=random_business_time(rng),
            )
        )

    if len(slots) < count:
        raise ScheduleGenerationExhausted(count, min_spacing_days, attempts)

    return sorted(slots, key=lambda slot: slot.date)


def format_date_for_display(value: date) -> str:
    """Render a date as ``DD/MM/YYYY``."""
    return value.strftime("%d/%m/%Y")


def format_time_for_display(value: time) -> str:
    """Render a time on a 12-hour clock, e.g. ``9:05 AM`` or ``12:30 PM``."""
    period = "PM" if value.hour >= 12 else "AM"
    hour = value.hour % 12 or 12
    return f"{hour}:{value.minute:02d} {period}"
