"""
profit_engines.cost_aggregation -- Labor and expense cost aggregation.

Responsibility:
    Sum the cost of a project from its labor (planned team hours or
    logged time) and its non-labor expenses.  Also groups the same costs
    by role, by expense type, and by calendar month for reports.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Depends on ``profit_engines.rates`` for the rate fallback.
    Consumed by ``profit_engines.budget`` callers and the report services.

Invariants enforced:
    - Two named labor modes.  PLANNED multiplies each team member's
      allocated hours by the resolved rate.  ACTUAL multiplies billable
      time-log hours by the resolved rate; non-billable hours count toward
      total hours and are costed separately, outside ``labor_cost``.
    - ``total_cost == labor_cost + expenses_cost`` exactly (no rounding).
    - Every input is validated before any arithmetic: negative hours,
      rates or amounts raise ``NegativeValueError``.
    - Empty inputs yield zero for every component.

Failure modes:
    - NegativeValueError on a negative hours, rate, or amount.
    - ValueError from ``aggregate_project_cost`` when the records required
      by the chosen mode are missing.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Protocol
from uuid import UUID

from profit_engines.rates import resolve_rate
from profit_engines.tracer import traced_engine
from profit_kernel.db.types import ZERO
from profit_kernel.exceptions import NegativeValueError
from profit_kernel.logging_config import get_logger

logger = get_logger("engines.cost_aggregation")

UNASSIGNED_ROLE = "Unassigned"

COST_CATEGORIES: tuple[str, ...] = (
    "labor",
    "materials",
    "contractors",
    "overhead",
    "software",
    "facilities",
)


class LaborMode(str, Enum):
    """Which labor records a cost figure is built from."""

    PLANNED = "planned"  # TeamMember.hours x rate
    ACTUAL = "actual"  # billable TimeLog.hours x rate


# ---------------------------------------------------------------------------
# Input shapes
# ---------------------------------------------------------------------------


class PlannedLabor(Protocol):
    role: str | None
    hours: Decimal
    user_rate: Decimal | None


class LoggedLabor(Protocol):
    project_id: UUID
    date: date
    hours: Decimal
    billable: bool
    user_rate: Decimal | None


class ExpenseRecord(Protocol):
    amount: Decimal
    type: str


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActualLaborSummary:
    """Cost and hours derived from logged time."""

    labor_cost: Decimal
    non_billable_cost: Decimal
    billable_hours: Decimal
    non_billable_hours: Decimal

    @property
    def total_hours(self) -> Decimal:
        return self.billable_hours + self.non_billable_hours


@dataclass(frozen=True)
class ProjectCost:
    """
    Total cost of a project under one labor mode.

    ``total_hours`` and ``billable_hours`` are planned hours in PLANNED mode
    (all planned hours count as billable) and logged hours in ACTUAL mode.
    """

    mode: LaborMode
    labor_cost: Decimal
    expenses_cost: Decimal
    total_cost: Decimal
    total_hours: Decimal
    billable_hours: Decimal


@dataclass(frozen=True)
class CostShare:
    """One named slice of a cost distribution (a role, an expense type)."""

    name: str
    value: Decimal


@dataclass(frozen=True)
class MonthlyCostBreakdown:
    """Labor cost for one calendar month, split direct/indirect."""

    year: int
    month: int
    direct: Decimal
    indirect: Decimal
    categories: tuple[CostShare, ...]

    @property
    def total(self) -> Decimal:
        return self.direct + self.indirect

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def category(self, name: str) -> Decimal:
        for share in self.categories:
            if share.name == name:
                return share.value
        return ZERO


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _require_non_negative(field: str, value: Decimal) -> Decimal:
    if value < ZERO:
        logger.warning(
            "negative_value_rejected",
            extra={"field": field, "value": str(value)},
        )
        raise NegativeValueError(field, value)
    return value


def _checked_rate(user_rate: Decimal | None, project_rate: Decimal | None) -> Decimal:
    return _require_non_negative("rate", resolve_rate(user_rate, project_rate))


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


@traced_engine("cost_aggregation", "1.0", fingerprint_fields=("project_rate",))
def planned_labor_cost(
    members: Iterable[PlannedLabor],
    project_rate: Decimal | None,
) -> Decimal:
    """
    Planned labor cost: sum of resolved rate x allocated hours.

    Raises:
        NegativeValueError: if any member has negative hours or a negative
            resolved rate.
    """
    total = ZERO
    for member in members:
        hours = _require_non_negative("hours", member.hours)
        rate = _checked_rate(member.user_rate, project_rate)
        total += rate * hours
    return total


@traced_engine("cost_aggregation", "1.0", fingerprint_fields=("project_rate",))
def actual_labor_cost(
    logs: Iterable[LoggedLabor],
    project_rate: Decimal | None,
) -> ActualLaborSummary:
    """
    Actual labor cost from time logs.

    Only billable hours contribute to ``labor_cost``.  Non-billable hours
    are counted and costed separately in ``non_billable_cost``.
    """
    labor_cost = ZERO
    non_billable_cost = ZERO
    billable_hours = ZERO
    non_billable_hours = ZERO

    for log in logs:
        hours = _require_non_negative("hours", log.hours)
        rate = _checked_rate(log.user_rate, project_rate)
        if log.billable:
            labor_cost += rate * hours
            billable_hours += hours
        else:
            non_billable_cost += rate * hours
            non_billable_hours += hours

    return ActualLaborSummary(
        labor_cost=labor_cost,
        non_billable_cost=non_billable_cost,
        billable_hours=billable_hours,
        non_billable_hours=non_billable_hours,
    )


def expenses_cost(expenses: Iterable[ExpenseRecord]) -> Decimal:
    """Sum of expense amounts."""
    total = ZERO
    for expense in expenses:
        total += _require_non_negative("amount", expense.amount)
    return total


@traced_engine("cost_aggregation", "1.0", fingerprint_fields=("project_rate", "mode"))
def aggregate_project_cost(
    project_rate: Decimal | None,
    expenses: Iterable[ExpenseRecord],
    *,
    members: Iterable[PlannedLabor] | None = None,
    logs: Iterable[LoggedLabor] | None = None,
    mode: LaborMode,
) -> ProjectCost:
    """
    Total project cost under ``mode``.

    Preconditions:
        ``members`` is given for PLANNED mode, ``logs`` for ACTUAL mode.

    Postconditions:
        ``total_cost == labor_cost + expenses_cost``.

    Raises:
        ValueError: if the records for ``mode`` were not supplied.
        NegativeValueError: on any negative hours, rate, or amount.
    """
    if mode is LaborMode.PLANNED:
        if members is None:
            raise ValueError("PLANNED labor mode requires team members")
        member_list = list(members)
        labor = planned_labor_cost(member_list, project_rate)
        total_hours = sum((m.hours for m in member_list), ZERO)
        billable_hours = total_hours
    else:
        if logs is None:
            raise ValueError("ACTUAL labor mode requires time logs")
        summary = actual_labor_cost(logs, project_rate)
        labor = summary.labor_cost
        total_hours = summary.total_hours
        billable_hours = summary.billable_hours

    expense_total = expenses_cost(expenses)
    result = ProjectCost(
        mode=mode,
        labor_cost=labor,
        expenses_cost=expense_total,
        total_cost=labor + expense_total,
        total_hours=total_hours,
        billable_hours=billable_hours,
    )

    logger.debug(
        "project_cost_aggregated",
        extra={
            "mode": mode.value,
            "labor_cost": str(result.labor_cost),
            "expenses_cost": str(result.expenses_cost),
            "total_cost": str(result.total_cost),
        },
    )
    return result


# ---------------------------------------------------------------------------
# Distributions
# ---------------------------------------------------------------------------


def cost_by_role(
    members: Iterable[PlannedLabor],
    project_rate: Decimal | None,
) -> tuple[CostShare, ...]:
    """
    Planned labor cost grouped by role, in first-seen order.

    Members with a blank role are grouped under ``"Unassigned"``.
    """
    totals: OrderedDict[str, Decimal] = OrderedDict()
    for member in members:
        hours = _require_non_negative("hours", member.hours)
        rate = _checked_rate(member.user_rate, project_rate)
        role = (member.role or "").strip() or UNASSIGNED_ROLE
        totals[role] = totals.get(role, ZERO) + rate * hours
    return tuple(CostShare(name=role, value=value) for role, value in totals.items())


def cost_by_expense_type(expenses: Iterable[ExpenseRecord]) -> tuple[CostShare, ...]:
    """Expense totals grouped by type, in first-seen order."""
    totals: OrderedDict[str, Decimal] = OrderedDict()
    for expense in expenses:
        amount = _require_non_negative("amount", expense.amount)
        totals[expense.type] = totals.get(expense.type, ZERO) + amount
    return tuple(CostShare(name=name, value=value) for name, value in totals.items())


@traced_engine("cost_aggregation", "1.0")
def monthly_cost_breakdown(
    logs: Iterable[LoggedLabor],
    rates: Mapping[UUID, Decimal | None],
) -> tuple[MonthlyCostBreakdown, ...]:
    """
    Logged labor cost per calendar month.

    Billable time is direct cost (category ``labor``); non-billable time is
    indirect cost (category ``overhead``).  The other categories are
    always present with zero so every month has the same shape.

    Args:
        logs: Time logs, possibly across several projects.
        rates: Project default rate keyed by project id.

    Returns:
        One breakdown per month that has at least one log, oldest first.
    """
    buckets: dict[tuple[int, int], dict[str, Decimal]] = {}
    for log in logs:
        hours = _require_non_negative("hours", log.hours)
        rate = _checked_rate(log.user_rate, rates.get(log.project_id))
        key = (log.date.year, log.date.month)
        bucket = buckets.setdefault(key, {name: ZERO for name in COST_CATEGORIES})
        category = "labor" if log.billable else "overhead"
        bucket[category] += rate * hours

    result = []
    for (year, month), bucket in sorted(buckets.items()):
        result.append(
            MonthlyCostBreakdown(
                year=year,
                month=month,
                direct=bucket["labor"],
                indirect=bucket["overhead"],
                categories=tuple(
                    CostShare(name=name, value=bucket[name]) for name in COST_CATEGORIES
                ),
            )
        )
    return tuple(result)
