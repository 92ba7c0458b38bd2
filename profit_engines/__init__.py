"""
Module: profit_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the project
    financial model.  This is the canonical import surface for
    profit_modules services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import profit_kernel (exceptions, types, logging) and sibling
    engine modules.  MUST NOT import profit_modules or profit_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in by services, which own the clock.
    - Decimal-only arithmetic: amounts, rates, hours and percentages are
      ``Decimal``; floats are forbidden.
    - Layering, leaves first: rates -> cost_aggregation -> budget;
      hours and alerts build on those three.

Failure modes:
    - InvalidInputError subclasses propagated from individual engines.

Usage:
    from profit_engines import (
        LaborMode,
        aggregate_project_cost,
        derive_budget,
        budget_utilization,
    )
"""

from profit_kernel.logging_config import get_logger

logger = get_logger("engines")

from profit_engines.alerts import (
    Alert,
    AlertSeverity,
    AlertType,
    ProjectAlertSnapshot,
    evaluate_project_alerts,
)
from profit_engines.budget import (
    DEFAULT_THRESHOLDS,
    BudgetHealth,
    BudgetUtilization,
    ProfitResult,
    TargetProfit,
    UtilizationThresholds,
    VarianceResult,
    budget_utilization,
    classify_budget_health,
    compute_profit_margin,
    compute_variance,
    derive_budget,
    target_profit,
)
from profit_engines.cost_aggregation import (
    COST_CATEGORIES,
    ActualLaborSummary,
    CostShare,
    LaborMode,
    MonthlyCostBreakdown,
    ProjectCost,
    actual_labor_cost,
    aggregate_project_cost,
    cost_by_expense_type,
    cost_by_role,
    expenses_cost,
    monthly_cost_breakdown,
    planned_labor_cost,
)
from profit_engines.hours import (
    CompletionSummary,
    ProjectHours,
    UserHoursSummary,
    billable_percentage,
    deliverable_completion,
    hours_utilization,
    summarize_billable_hours,
)
from profit_engines.rates import resolve_log_rate, resolve_member_rate, resolve_rate
from profit_engines.tracer import traced_engine

__all__ = [
    # Rates
    "resolve_rate",
    "resolve_member_rate",
    "resolve_log_rate",
    # Cost aggregation
    "COST_CATEGORIES",
    "LaborMode",
    "ActualLaborSummary",
    "ProjectCost",
    "CostShare",
    "MonthlyCostBreakdown",
    "planned_labor_cost",
    "actual_labor_cost",
    "expenses_cost",
    "aggregate_project_cost",
    "cost_by_role",
    "cost_by_expense_type",
    "monthly_cost_breakdown",
    # Budget
    "DEFAULT_THRESHOLDS",
    "UtilizationThresholds",
    "BudgetHealth",
    "VarianceResult",
    "ProfitResult",
    "BudgetUtilization",
    "TargetProfit",
    "derive_budget",
    "compute_variance",
    "compute_profit_margin",
    "budget_utilization",
    "target_profit",
    "classify_budget_health",
    # Hours
    "ProjectHours",
    "UserHoursSummary",
    "CompletionSummary",
    "billable_percentage",
    "hours_utilization",
    "summarize_billable_hours",
    "deliverable_completion",
    # Alerts
    "AlertType",
    "AlertSeverity",
    "ProjectAlertSnapshot",
    "Alert",
    "evaluate_project_alerts",
    # Tracing
    "traced_engine",
]
