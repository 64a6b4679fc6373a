"""
Validation rules for bill generation requests.

This module contains pure functions that check raw form values before any
amount is distributed or any browser is launched. No side effects, no I/O.

Design Decisions:
- Every check runs; the caller gets the complete list of problems at once
- Each failed check contributes exactly one message naming the field
- Cross-field feasibility checks run only when their inputs are individually valid
- Values are never coerced silently: "3.0" is not a bill count, "2025-1-5" is not a date
- Feasibility messages come from the same checks the algorithms enforce
"""

import re
from collections.abc import Mapping
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from .distribution import check_distribution_feasible
from .errors import InfeasibleDistribution, InfeasibleSchedule, InputViolation
from .models import BillParameters, ValidationResult, to_money
from .schedule import check_schedule_feasible, parse_date


# Templates offered by the bill form
TEMPLATES = (1, 2, 3)

# Default minimum days between two bills in a batch
DEFAULT_MIN_DAYS_APART = 3

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_decimal(value: Any) -> Decimal | None:
    """Parse a numeric value, or return None if it is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


def _fits_money(number: Decimal) -> bool:
    """True if the number can be held to the cent without losing digits."""
    try:
        to_money(number)
    except InvalidOperation:
        return False
    return True


def _to_whole_number(value: Any) -> int | None:
    """Parse a value written as an integer. ``3.0`` and ``"3.0"`` are rejected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INTEGER_PATTERN.match(value.strip()):
        return int(value.strip())
    return None


def validate_station_name(station_name: Any) -> str | None:
    """Station name must be a non-empty string after trimming."""
    if not isinstance(station_name, str) or not station_name.strip():
        return "Fuel Station Name is required and cannot be empty"
    return None


def _validate_positive_number(value: Any, label: str) -> str | None:
    if _is_missing(value):
        return f"{label} is required"
    number = _to_decimal(value)
    if number is None:
        return f"{label} must be a valid number"
    if number <= 0:
        return f"{label} must be greater than 0"
    if not _fits_money(number):
        return f"{label} is too large"
    return None


def validate_fuel_rate(fuel_rate: Any) -> str | None:
    """Fuel rate must be numeric and > 0."""
    return _validate_positive_number(fuel_rate, "Fuel Rate")


def validate_total_amount(total_amount: Any) -> str | None:
    """Total amount must be numeric and > 0."""
    return _validate_positive_number(total_amount, "Total Amount")


def validate_max_amount_per_bill(max_amount_per_bill: Any) -> str | None:
    """Max amount per bill must be numeric and > 0."""
    return _validate_positive_number(max_amount_per_bill, "Max Amount Per Bill")


def validate_template(template: Any) -> str | None:
    """Template must be one of 1, 2 or 3, written as an integer."""
    if _is_missing(template):
        return "Template selection is required"
    if _to_whole_number(template) not in TEMPLATES:
        return "Template must be 1, 2, or 3"
    return None


def validate_number_of_bills(number_of_bills: Any) -> str | None:
    """
    Number of bills must be a positive whole number.

    A fractional representation is flagged even when it is numerically
    integral, so ``3.0`` is rejected while ``3`` and ``"3"`` are accepted.
    """
    if _is_missing(number_of_bills):
        return "Number of Bills is required"
    number = _to_decimal(number_of_bills)
    if number is None:
        return "Number of Bills must be a valid integer"
    if number < 1:
        return "Number of Bills must be at least 1"
    if _to_whole_number(number_of_bills) is None:
        return "Number of Bills must be a whole number"
    return None


def _validate_date(value: Any, label: str) -> str | None:
    if _is_missing(value):
        return f"{label} is required"
    try:
        parse_date(value)
    except ValueError:
        return f"{label} is invalid: expected a calendar date in YYYY-MM-DD format"
    return None


def validate_start_date(start_date: Any) -> str | None:
    """Start date must be a real calendar date in ``YYYY-MM-DD``."""
    return _validate_date(start_date, "Start Date")


def validate_end_date(end_date: Any) -> str | None:
    """End date must be a real calendar date in ``YYYY-MM-DD``."""
    return _validate_date(end_date, "End Date")


def validate_date_order(start_date: date, end_date: date) -> str | None:
    """End date cannot be before start date."""
    if end_date < start_date:
        return "End Date cannot be before Start Date"
    return None


def validate_distribution_possible(
    total_amount: Decimal,
    number_of_bills: int,
    max_amount_per_bill: Decimal,
) -> str | None:
    """The total must fit into the bills without exceeding the per-bill max."""
    try:
        check_distribution_feasible(total_amount, number_of_bills, max_amount_per_bill)
    except InfeasibleDistribution as exc:
        return f"{exc}. Please increase Max Amount Per Bill or Number of Bills."
    return None


def validate_schedule_possible(
    number_of_bills: int,
    start_date: date,
    end_date: date,
    min_days_apart: int,
) -> str | None:
    """The date range must be wide enough for the bills at the required spacing."""
    try:
        check_schedule_feasible(number_of_bills, start_date, end_date, min_days_apart)
    except InfeasibleSchedule as exc:
        return str(exc)
    return None


def validate_bill_request(
    raw: Mapping[str, Any],
    min_days_apart: int = DEFAULT_MIN_DAYS_APART,
) -> ValidationResult:
    """
    Run every check against raw request parameters.

    Never raises. The result lists one message per failed check and, when
    nothing failed, carries the parsed BillParameters.

    Args:
        raw: Form values keyed by their wire names (stationName, fuelRate,
            template, totalAmount, numberOfBills, maxAmountPerBill,
            startDate, endDate)
        min_days_apart: Required spacing between bill dates

    Returns:
        ValidationResult with violations and, if valid, parameters
    """
    station_name = raw.get("stationName")
    fuel_rate = raw.get("fuelRate")
    template = raw.get("template")
    total_amount = raw.get("totalAmount")
    number_of_bills = raw.get("numberOfBills")
    max_amount_per_bill = raw.get("maxAmountPerBill")
    start_date = raw.get("startDate")
    end_date = raw.get("endDate")

    violations: list[str] = []

    def check(message: str | None) -> bool:
        if message:
            violations.append(message)
            return False
        return True

    check(validate_station_name(station_name))
    check(validate_fuel_rate(fuel_rate))
    check(validate_template(template))
    total_ok = check(validate_total_amount(total_amount))
    count_ok = check(validate_number_of_bills(number_of_bills))
    max_ok = check(validate_max_amount_per_bill(max_amount_per_bill))

    if total_ok and count_ok and max_ok:
        check(validate_distribution_possible(
            _to_decimal(total_amount),
            _to_whole_number(number_of_bills),
            _to_decimal(max_amount_per_bill),
        ))

    start_ok = check(validate_start_date(start_date))
    end_ok = check(validate_end_date(end_date))

    dates_ok = False
    if start_ok and end_ok:
        dates_ok = check(validate_date_order(parse_date(start_date), parse_date(end_date)))

    if dates_ok and count_ok:
        check(validate_schedule_possible(
            _to_whole_number(number_of_bills),
            parse_date(start_date),
            parse_date(end_date),
            min_days_apart,
        ))

    if violations:
        return ValidationResult(violations=violations)

    return ValidationResult(
        parameters=BillParameters(
            station_name=station_name.strip(),
            fuel_rate=_to_decimal(fuel_rate),
            template=_to_whole_number(template),
            total_amount=to_money(_to_decimal(total_amount)),
            number_of_bills=_to_whole_number(number_of_bills),
            max_amount_per_bill=to_money(_to_decimal(max_amount_per_bill)),
            start_date=parse_date(start_date),
            end_date=parse_date(end_date),
        ),
    )


def ensure_valid(
    raw: Mapping[str, Any],
    min_days_apart: int = DEFAULT_MIN_DAYS_APART,
) -> BillParameters:
    """
    Validate and return parsed parameters.

    Raises:
        InputViolation: Carrying every violation found
    """
    result = validate_bill_request(raw, min_days_apart)
    if not result.valid:
        raise InputViolation(result.violations)
    return result.parameters
