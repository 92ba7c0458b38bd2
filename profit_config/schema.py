"""
Settings schema.

Frozen dataclasses that the YAML loader produces.  Every section has
defaults so an empty file yields a working configuration; the packaged
``defaults.yaml`` spells those defaults out for operators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Financial policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FinancialPolicy:
    """How budgets are derived and how figures are rounded for display."""

    default_profit_margin: Decimal = Decimal("20")
    allow_negative_margin: bool = True
    money_decimal_places: int = 2
    percent_decimal_places: int = 2


@dataclass(frozen=True)
class BudgetThresholds:
    """Utilization thresholds in percent (see profit_engines.budget)."""

    healthy_percent: Decimal = Decimal("80")
    warning_percent: Decimal = Decimal("90")
    over_budget_percent: Decimal = Decimal("100")


@dataclass(frozen=True)
class AlertPolicy:
    deadline_warning_days: int = 7
    at_risk_status: str = "AT_RISK"


@dataclass(frozen=True)
class DashboardPolicy:
    active_statuses: tuple[str, ...] = ("In Progress", "Planning")
    revenue_window_days: int = 30


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "sqlite:///:memory:"
    echo: bool = False


@dataclass(frozen=True)
class Settings:
    """Complete runtime configuration."""

    financial_policy: FinancialPolicy = field(default_factory=FinancialPolicy)
    budget_thresholds: BudgetThresholds = field(default_factory=BudgetThresholds)
    alerts: AlertPolicy = field(default_factory=AlertPolicy)
    dashboard: DashboardPolicy = field(default_factory=DashboardPolicy)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    source: str | None = None
