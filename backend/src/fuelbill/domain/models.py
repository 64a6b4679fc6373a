"""
Domain models for fuel bill batches.

Design Decisions:
- Frozen dataclasses: every value is created once and never mutated
- Decimal for all monetary values, quantized to minor-unit precision
- Dates are naive ``datetime.date`` values; no timezone ever enters the domain
"""

from dataclasses import dataclass, field
from datetime import date, time
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path


# Smallest currency increment
MINOR_UNIT = Decimal("0.01")

# Literal wire formats for dates and times
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def to_money(value: Decimal | int | float | str) -> Decimal:
    """
    Quantize a value to two fractional digits.

    Floats go through ``str`` first so 0.1 becomes Decimal("0.1")
    rather than its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def to_cents(value: Decimal) -> int:
    """Convert a money value to an integer count of minor units."""
    return int(to_money(value) / MINOR_UNIT)


def from_cents(cents: int) -> Decimal:
    """Convert an integer count of minor units back to money."""
    return (Decimal(cents) * MINOR_UNIT).quantize(MINOR_UNIT)


@dataclass(frozen=True)
class ScheduleSlot:
    """A calendar date and a time of day assigned to one bill."""
    date: date
    time: time

    @property
    def date_text(self) -> str:
        """Date in the wire format ``YYYY-MM-DD``."""
        return self.date.strftime(DATE_FORMAT)

    @property
    def time_text(self) -> str:
        """Time in the wire format ``HH:MM`` (24-hour)."""
        return self.time.strftime(TIME_FORMAT)


@dataclass(frozen=True)
class BillParameters:
    """
    A validated bill generation request.

    Built by the validator from raw form values; everything downstream
    can rely on the types and ranges here.
    """
    station_name: str
    fuel_rate: Decimal
    template: int
    total_amount: Decimal
    number_of_bills: int
    max_amount_per_bill: Decimal
    start_date: date
    end_date: date


@dataclass(frozen=True)
class ReceiptRequest:
    """Everything needed to fill the bill form for one unit of a batch."""
    sequence_number: int
    station_name: str
    fuel_rate: Decimal
    template: int
    amount: Decimal
    slot: ScheduleSlot


@dataclass(frozen=True)
class ReceiptUnit:
    """A bill that was produced successfully."""
    sequence_number: int
    amount: Decimal
    slot: ScheduleSlot
    source_document_path: Path
    station_name: str = ""


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating raw request parameters.

    ``parameters`` is only populated when every check passed.
    """
    violations: list[str] = field(default_factory=list)
    parameters: BillParameters | None = None

    @property
    def valid(self) -> bool:
        """True if no check failed."""
        return not self.violations
