"""
Random distribution of a total amount across a batch of bills.

Pure functions only. No logging, no I/O.

Algorithm:
Units are filled left to right. Each unit draws uniformly from the range
that still leaves the remaining units satisfiable: at least one minor unit
each and at most ``max_per_unit`` each. The last unit takes whatever is
left, so the sum is exact.

Draws are made in integer minor units (cents), which is equivalent to
drawing a real value and rounding to two decimals, but cannot drift.

The per-unit ranges depend on what has already been drawn, so the result
is not uniform over all valid partitions. That is accepted.
"""

import random
from decimal import Decimal

from .errors import DistributionInvariantViolation, InfeasibleDistribution
from .models import MINOR_UNIT, from_cents, to_cents, to_money


def check_distribution_feasible(
    total: Decimal,
    count: int,
    max_per_unit: Decimal,
) -> None:
    """
    Raise InfeasibleDistribution if no valid split exists.

    The message names the inequality that failed.
    """
    total = to_money(total)
    max_per_unit = to_money(max_per_unit)

    if total <= 0:
        raise InfeasibleDistribution(f"Total amount must be greater than 0, got {total}")
    if count < 1:
        raise InfeasibleDistribution(f"Number of bills must be at least 1, got {count}")
    if max_per_unit <= 0:
        raise InfeasibleDistribution(
            f"Max amount per bill must be greater than 0, got {max_per_unit}"
        )

    capacity = max_per_unit * count
    if capacity < total:
        raise InfeasibleDistribution(
            f"Max amount per bill ({max_per_unit}) × number of bills ({count}) "
            f"= {capacity}, which is less than total amount ({total})"
        )

    floor = MINOR_UNIT * count
    if total < floor:
        raise InfeasibleDistribution(
            f"Total amount ({total}) is less than {MINOR_UNIT} × number of bills "
            f"({count}) = {floor}"
        )


def distribute(
    total: Decimal,
    count: int,
    max_per_unit: Decimal,
    rng: random.Random | None = None,
) -> list[Decimal]:
    """
    Split ``total`` into ``count`` positive amounts, each at most ``max_per_unit``.

    Args:
        total: Amount to distribute (> 0)
        count: Number of bills (>= 1)
        max_per_unit: Upper bound for every bill (> 0)
        rng: Random source; the module-level generator if None

    Returns:
        Amounts in bill order, each quantized to 0.01, summing exactly to total

    Raises:
        InfeasibleDistribution: If the preconditions do not hold
        DistributionInvariantViolation: If a generated amount is out of bounds
    """
    check_distribution_feasible(total, count, max_per_unit)
    rng = rng or random.Random()

    total_cents = to_cents(total)
    max_cents = to_cents(max_per_unit)

    cents: list[int] = []
    remaining = total_cents

    for i in range(count - 1):
        remaining_units = count - i - 1
        upper = min(max_cents, remaining - remaining_units)
        lower = max(1, remaining - remaining_units * max_cents)
        amount = rng.randint(lower, upper)
        cents.append(amount)
        remaining -= amount

    cents.append(remaining)

    amounts = [from_cents(c) for c in cents]
    return _enforce_postconditions(amounts, to_money(total), to_money(max_per_unit))


def _enforce_postconditions(
    amounts: list[Decimal],
    total: Decimal,
    max_per_unit: Decimal,
) -> list[Decimal]:
    """Correct any sum residual into the last unit, then check every bound."""
    residual = total - sum(amounts, Decimal(0))
    if abs(residual) >= MINOR_UNIT:
        amounts[-1] = to_money(amounts[-1] + residual)

    for i, amount in enumerate(amounts):
        if amount <= 0:
            raise DistributionInvariantViolation(
                f"Generated amount for bill {i + 1} is not positive: {amount}"
            )
        if amount > max_per_unit:
            raise DistributionInvariantViolation(
                f"Generated amount for bill {i + 1} exceeds max: {amount} > {max_per_unit}"
            )

    return amounts
