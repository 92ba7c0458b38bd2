"""
Tests for Budget & Variance Derivation.

Covers:
- derive_budget (margin policy, floor at zero)
- compute_variance / compute_profit_margin zero-denominator policies
- budget_utilization (clamped display, raw, thresholds)
- target_profit and classify_budget_health
- Properties: monotonic in margin, variance round trip
"""

from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from profit_engines.budget import (
    BudgetHealth,
    UtilizationThresholds,
    budget_utilization,
    classify_budget_health,
    compute_profit_margin,
    compute_variance,
    derive_budget,
    target_profit,
)
from profit_kernel.exceptions import NegativeMarginError, NegativeValueError

costs = st.decimals(min_value=0, max_value=10**7, places=2, allow_nan=False)
margins = st.decimals(min_value=0, max_value=500, places=2, allow_nan=False)


class TestDeriveBudget:
    def test_twenty_percent_markup(self):
        """Total cost 1050 at 20 % margin -> budget 1260."""
        assert derive_budget(Decimal("1050"), Decimal("20")) == Decimal("1260")

    def test_zero_margin_is_cost(self):
        assert derive_budget(Decimal("500"), Decimal("0")) == Decimal("500")

    def test_negative_margin_allowed_by_default(self):
        assert derive_budget(Decimal("1000"), Decimal("-10")) == Decimal("900")

    def test_negative_margin_rejected_when_disallowed(self):
        with pytest.raises(NegativeMarginError) as exc_info:
            derive_budget(Decimal("1000"), Decimal("-10"), allow_negative_margin=False)
        assert exc_info.value.margin == Decimal("-10")
        assert exc_info.value.code == "NEGATIVE_MARGIN"

    def test_budget_floored_at_zero(self):
        assert derive_budget(Decimal("1000"), Decimal("-150")) == Decimal("0")

    def test_negative_cost_rejected(self):
        with pytest.raises(NegativeValueError):
            derive_budget(Decimal("-1"), Decimal("20"))

    @given(cost=costs, low=margins, high=margins)
    def test_monotonic_in_margin(self, cost, low, high):
        if low > high:
            low, high = high, low
        assert derive_budget(cost, low) <= derive_budget(cost, high)

    @given(
        cost=st.decimals(min_value=1, max_value=10**6, places=2, allow_nan=False),
        margin=margins,
    )
    def test_variance_round_trip(self, cost, margin):
        """percent variance of (budget, cost) equals m / (1 + m/100)."""
        budget = derive_budget(cost, margin)
        result = compute_variance(budget, cost)
        expected = margin / (1 + margin / 100)
        assert abs(result.percent_variance - expected) < Decimal("0.0001")


class TestComputeVariance:
    def test_both_zero(self):
        result = compute_variance(Decimal("0"), Decimal("0"))
        assert (result.variance, result.percent_variance) == (0, 0)

    def test_zero_plan_with_actual(self):
        result = compute_variance(Decimal("0"), Decimal("50"))
        assert result.variance == Decimal("-50")
        assert result.percent_variance == Decimal("-100")
        assert not result.is_favorable

    def test_under_budget_is_favorable(self):
        result = compute_variance(Decimal("200"), Decimal("150"))
        assert result.variance == Decimal("50")
        assert result.percent_variance == Decimal("25")
        assert result.is_favorable


class TestComputeProfitMargin:
    def test_both_zero(self):
        result = compute_profit_margin(Decimal("0"), Decimal("0"))
        assert (result.profit, result.margin) == (0, 0)

    def test_loss(self):
        result = compute_profit_margin(Decimal("100"), Decimal("150"))
        assert result.profit == Decimal("-50")
        assert result.margin == Decimal("-50")

    def test_zero_revenue_with_cost(self):
        """No revenue but some cost: -100 %, never NaN or Infinity."""
        result = compute_profit_margin(Decimal("0"), Decimal("10"))
        assert result.profit == Decimal("-10")
        assert result.margin == Decimal("-100")
        assert result.margin.is_finite()


class TestBudgetUtilization:
    def test_over_budget_scenario(self):
        result = budget_utilization(Decimal("1100"), Decimal("1000"))
        assert result.display_percent == Decimal("100")
        assert result.raw_percent == Decimal("110")
        assert result.is_over_budget
        assert result.is_warning

    def test_within_budget(self):
        result = budget_utilization(Decimal("500"), Decimal("1000"))
        assert result.display_percent == Decimal("50")
        assert result.raw_percent == Decimal("50")
        assert not result.is_warning
        assert not result.is_over_budget

    def test_warning_band(self):
        result = budget_utilization(Decimal("950"), Decimal("1000"))
        assert result.is_warning
        assert not result.is_over_budget

    def test_exactly_at_budget_is_not_over(self):
        assert not budget_utilization(Decimal("1000"), Decimal("1000")).is_over_budget

    def test_zero_budget_with_cost(self):
        result = budget_utilization(Decimal("1"), Decimal("0"))
        assert result.display_percent == Decimal("100")
        assert result.raw_percent == Decimal("100")
        assert result.is_over_budget

    def test_zero_budget_no_cost(self):
        result = budget_utilization(Decimal("0"), Decimal("0"))
        assert result.display_percent == Decimal("0")
        assert not result.is_over_budget

    def test_custom_thresholds(self):
        thresholds = UtilizationThresholds(
            healthy_percent=Decimal("50"),
            warning_percent=Decimal("60"),
            over_budget_percent=Decimal("70"),
        )
        result = budget_utilization(Decimal("75"), Decimal("100"), thresholds=thresholds)
        assert result.is_over_budget

    @given(actual=costs, budget=costs)
    def test_display_always_clamped(self, actual, budget):
        result = budget_utilization(actual, budget)
        assert Decimal("0") <= result.display_percent <= Decimal("100")


class TestTargetProfit:
    def test_target_and_revenue(self):
        result = target_profit(Decimal("1000"), Decimal("20"))
        assert result.target_profit_amount == Decimal("200")
        assert result.revenue_target == Decimal("1200")


class TestBudgetHealth:
    @pytest.mark.parametrize(
        "actual, expected",
        [
            (Decimal("800"), BudgetHealth.HEALTHY),
            (Decimal("801"), BudgetHealth.WARNING),
            (Decimal("1000"), BudgetHealth.WARNING),
            (Decimal("1001"), BudgetHealth.DANGER),
        ],
    )
    def test_thresholds(self, actual, expected):
        budget = Decimal("1000")
        utilization = budget_utilization(actual, budget)
        assert classify_budget_health(utilization, budget, actual) is expected

    def test_zero_budget(self):
        zero = Decimal("0")
        assert (
            classify_budget_health(budget_utilization(zero, zero), zero, zero)
            is BudgetHealth.HEALTHY
        )
        spent = Decimal("5")
        assert (
            classify_budget_health(budget_utilization(spent, zero), zero, spent)
            is BudgetHealth.DANGER
        )
