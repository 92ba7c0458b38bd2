"""
profit_engines.budget -- Budget, variance, margin, and utilization derivation.

Responsibility:
    Turn cost figures into the numbers a project manager reads: the
    budget implied by a target margin, planned-vs-actual variance, profit
    and margin from revenue and cost, and budget utilization both clamped
    for progress bars and raw for threshold alerts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes totals produced by ``profit_engines.cost_aggregation``.
    Consumed by ``ProjectService`` and ``ReportingService``.

Invariants enforced:
    - Every division is guarded.  A zero denominator never raises and
      never yields NaN or Infinity; each ratio has an explicit policy:

        percent_variance: planned == 0 -> 0 if actual == 0 else -100
        margin:           revenue == 0 -> 0 if cost == 0 else -100
        utilization:      budget == 0  -> 100 if actual > 0 else 0

    - Results are exact Decimals.  Presentation rounding is the caller's
      job (``round_money`` / ``round_percent``).
    - A derived budget is never negative.

Failure modes:
    - NegativeMarginError from ``derive_budget`` when the margin is below
      zero and ``allow_negative_margin`` is False.
    - NegativeValueError from ``derive_budget`` on a negative total cost.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Protocol

from profit_engines.tracer import traced_engine
from profit_kernel.db.types import HUNDRED, ZERO
from profit_kernel.exceptions import NegativeMarginError, NegativeValueError
from profit_kernel.logging_config import get_logger

logger = get_logger("engines.budget")

MINUS_HUNDRED = -HUNDRED


class ThresholdPolicy(Protocol):
    """Utilization thresholds in percent."""

    healthy_percent: Decimal
    warning_percent: Decimal
    over_budget_percent: Decimal


@dataclass(frozen=True)
class UtilizationThresholds:
    healthy_percent: Decimal = Decimal("80")
    warning_percent: Decimal = Decimal("90")
    over_budget_percent: Decimal = Decimal("100")


DEFAULT_THRESHOLDS = UtilizationThresholds()


class BudgetHealth(str, Enum):
    """Traffic-light state of a project's spend against its budget."""

    HEALTHY = "healthy"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class VarianceResult:
    """Planned minus actual; positive means under plan."""

    planned: Decimal
    actual: Decimal
    variance: Decimal
    percent_variance: Decimal

    @property
    def is_favorable(self) -> bool:
        return self.variance >= ZERO


@dataclass(frozen=True)
class ProfitResult:
    revenue: Decimal
    cost: Decimal
    profit: Decimal
    margin: Decimal


@dataclass(frozen=True)
class BudgetUtilization:
    """
    Actual cost as a percentage of budget.

    ``display_percent`` is clamped to [0, 100] for progress bars;
    ``raw_percent`` is unclamped and drives alerting.  With a zero budget
    both carry the display value (100 when anything was spent).
    """

    display_percent: Decimal
    raw_percent: Decimal
    is_warning: bool
    is_over_budget: bool


@dataclass(frozen=True)
class TargetProfit:
    target_profit_amount: Decimal
    revenue_target: Decimal


@traced_engine("budget", "1.0", fingerprint_fields=("total_cost", "profit_margin_percent"))
def derive_budget(
    total_cost: Decimal,
    profit_margin_percent: Decimal,
    *,
    allow_negative_margin: bool = True,
) -> Decimal:
    """
    Budget implied by a cost base and a target margin.

    Formula: total_cost x (1 + margin / 100), floored at zero.

    Raises:
        NegativeValueError: if total_cost is negative.
        NegativeMarginError: if margin < 0 and negative margins are disallowed.
    """
    if total_cost < ZERO:
        raise NegativeValueError("total_cost", total_cost)
    if profit_margin_percent < ZERO and not allow_negative_margin:
        logger.warning(
            "negative_margin_rejected",
            extra={"profit_margin_percent": str(profit_margin_percent)},
        )
        raise NegativeMarginError(profit_margin_percent)

    budget = total_cost * (1 + profit_margin_percent / HUNDRED)
    if budget < ZERO:
        return ZERO
    return budget


@traced_engine("budget", "1.0", fingerprint_fields=("planned", "actual"))
def compute_variance(planned: Decimal, actual: Decimal) -> VarianceResult:
    """
    Variance of actual against plan.

    Examples:
        compute_variance(Decimal("0"), Decimal("0"))   -> (0, 0)
        compute_variance(Decimal("0"), Decimal("50"))  -> (-50, -100)
        compute_variance(Decimal("200"), Decimal("150")) -> (50, 25)
    """
    variance = planned - actual
    if planned == ZERO:
        percent = ZERO if actual == ZERO else MINUS_HUNDRED
    else:
        percent = variance / planned * HUNDRED
    return VarianceResult(
        planned=planned,
        actual=actual,
        variance=variance,
        percent_variance=percent,
    )


@traced_engine("budget", "1.0", fingerprint_fields=("revenue", "cost"))
def compute_profit_margin(revenue: Decimal, cost: Decimal) -> ProfitResult:
    """Profit and margin (profit as a percentage of revenue)."""
    profit = revenue - cost
    if revenue == ZERO:
        margin = ZERO if cost == ZERO else MINUS_HUNDRED
    else:
        margin = profit / revenue * HUNDRED
    return ProfitResult(revenue=revenue, cost=cost, profit=profit, margin=margin)


@traced_engine("budget", "1.0", fingerprint_fields=("actual_cost", "budget"))
def budget_utilization(
    actual_cost: Decimal,
    budget: Decimal,
    *,
    thresholds: ThresholdPolicy = DEFAULT_THRESHOLDS,
) -> BudgetUtilization:
    """Clamped and raw utilization of ``budget`` by ``actual_cost``."""
    if budget == ZERO:
        display = HUNDRED if actual_cost > ZERO else ZERO
        raw = display
    else:
        raw = actual_cost / budget * HUNDRED
        display = min(max(raw, ZERO), HUNDRED)

    over = raw > thresholds.over_budget_percent or (
        budget == ZERO and actual_cost > ZERO
    )
    return BudgetUtilization(
        display_percent=display,
        raw_percent=raw,
        is_warning=raw > thresholds.warning_percent,
        is_over_budget=over,
    )


def target_profit(total_cost: Decimal, profit_margin_percent: Decimal) -> TargetProfit:
    """
    Profit the margin asks for on top of ``total_cost``.

    target = cost x margin / 100; revenue target = cost + target.
    """
    amount = total_cost * profit_margin_percent / HUNDRED
    return TargetProfit(target_profit_amount=amount, revenue_target=total_cost + amount)


def classify_budget_health(
    utilization: BudgetUtilization,
    budget: Decimal,
    actual_cost: Decimal,
    thresholds: ThresholdPolicy = DEFAULT_THRESHOLDS,
) -> BudgetHealth:
    """
    Traffic-light classification of spend.

    healthy up to the healthy threshold, warning up to the over-budget
    threshold, danger above it.  A zero budget is healthy until something
    is spent, then danger.
    """
    if budget == ZERO:
        return BudgetHealth.DANGER if actual_cost > ZERO else BudgetHealth.HEALTHY
    if utilization.raw_percent <= thresholds.healthy_percent:
        return BudgetHealth.HEALTHY
    if utilization.raw_percent <= thresholds.over_budget_percent:
        return BudgetHealth.WARNING
    return BudgetHealth.DANGER
