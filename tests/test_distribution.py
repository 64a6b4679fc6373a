import random
from decimal import Decimal

import pytest

from fuelbill.domain.distribution import check_distribution_feasible, distribute
from fuelbill.domain.errors import InfeasibleDistribution


CENT = Decimal("0.01")


def _assert_valid(amounts, total, count, max_per_unit):
    assert len(amounts) == count
    assert sum(amounts, Decimal(0)) == total
    for amount in amounts:
        assert Decimal(0) < amount <= max_per_unit
        assert amount == amount.quantize(CENT)


class TestDistribute:
    """Test distribute() splits the total into bounded, exact parts."""

    def test_single_bill_gets_everything(self):
        assert distribute(Decimal("100.00"), 1, Decimal("100.00")) == [Decimal("100.00")]

    def test_three_bills_under_cap(self):
        amounts = distribute(Decimal("100.00"), 3, Decimal("40.00"), rng=random.Random(7))
        _assert_valid(amounts, Decimal("100.00"), 3, Decimal("40.00"))

    def test_properties_hold_across_seeds(self):
        """Sum, bounds and precision hold for many random feasible requests."""
        for seed in range(300):
            rng = random.Random(seed)
            count = rng.randint(1, 25)
            max_cents = rng.randint(1, 50_000)
            total_cents = rng.randint(count, count * max_cents)
            total = Decimal(total_cents) * CENT
            max_per_unit = Decimal(max_cents) * CENT

            amounts = distribute(total, count, max_per_unit, rng=rng)

            _assert_valid(amounts, total, count, max_per_unit)

    def test_total_at_capacity_fills_every_bill(self):
        amounts = distribute(Decimal("120.00"), 3, Decimal("40.00"), rng=random.Random(1))
        assert amounts == [Decimal("40.00")] * 3

    def test_total_at_floor_gives_one_cent_each(self):
        amounts = distribute(Decimal("0.05"), 5, Decimal("10.00"), rng=random.Random(1))
        assert amounts == [CENT] * 5

    def test_same_seed_same_result(self):
        a = distribute(Decimal("5000.00"), 8, Decimal("900.00"), rng=random.Random(42))
        b = distribute(Decimal("5000.00"), 8, Decimal("900.00"), rng=random.Random(42))
        assert a == b

    def test_accepts_float_and_int_inputs(self):
        amounts = distribute(250.5, 4, 100, rng=random.Random(3))
        _assert_valid(amounts, Decimal("250.50"), 4, Decimal("100.00"))

    def test_amounts_vary_between_bills(self):
        """The split is random, not an even division."""
        amounts = distribute(Decimal("1000.00"), 10, Decimal("500.00"), rng=random.Random(5))
        assert len(set(amounts)) > 1


class TestFeasibility:
    """Test the preconditions reject impossible splits with a named inequality."""

    def test_cap_too_small(self):
        with pytest.raises(InfeasibleDistribution, match="30.00"):
            distribute(Decimal("100.00"), 3, Decimal("10.00"))

    def test_zero_total(self):
        with pytest.raises(InfeasibleDistribution, match="Total amount"):
            distribute(Decimal("0"), 3, Decimal("10.00"))

    def test_zero_count(self):
        with pytest.raises(InfeasibleDistribution, match="Number of bills"):
            distribute(Decimal("10.00"), 0, Decimal("10.00"))

    def test_non_positive_cap(self):
        with pytest.raises(InfeasibleDistribution, match="Max amount per bill"):
            distribute(Decimal("10.00"), 2, Decimal("-1"))

    def test_total_below_one_cent_per_bill(self):
        with pytest.raises(InfeasibleDistribution, match="less than 0.01"):
            distribute(Decimal("0.02"), 3, Decimal("1.00"))

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            check_distribution_feasible(Decimal("100.00"), 3, Decimal("10.00"))

    def test_feasible_passes(self):
        check_distribution_feasible(Decimal("100.00"), 3, Decimal("40.00"))
