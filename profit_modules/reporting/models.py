"""
Profitability Reporting Domain Models (``profit_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass records returned by ``ReportingService``: variance rows,
profitability rows, billable-hours summaries, monthly cost breakdowns,
cost shares, alerts and the dashboard summary.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Must not
import ``profit_modules.project`` (which imports ``render`` from this
package).

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary, hour and percentage fields use ``Decimal`` -- NEVER
  ``float``.  Values are already rounded for display.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from profit_engines.alerts import Alert
from profit_modules.reporting.render import RecordMixin

# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    VARIANCE = "variance"
    PROFITABILITY = "profitability"
    BILLABLE_HOURS = "billable_hours"
    COST_BREAKDOWN = "cost_breakdown"
    COST_BY_ROLE = "cost_by_role"
    ALERTS = "alerts"
    DASHBOARD = "dashboard"


class ProfitabilityMetric(str, Enum):
    """Sort key of the profitability report (always descending)."""

    REVENUE = "revenue"
    COST = "cost"
    PROFIT = "profit"
    MARGIN = "margin"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata(RecordMixin):
    """Metadata attached to every report."""

    report_type: ReportType
    generated_at: str  # ISO format timestamp from injected clock
    period_start: date | None = None
    period_end: date | None = None
    project_id: UUID | None = None


# =========================================================================
# Shared rows
# =========================================================================


@dataclass(frozen=True)
class ShareRow(RecordMixin):
    """One named slice of a total (role, expense type, project)."""

    name: str
    value: Decimal


@dataclass(frozen=True)
class MonthlyCostRow(RecordMixin):
    """Logged labor cost for one calendar month."""

    month: str  # "YYYY-MM"
    direct: Decimal
    indirect: Decimal
    total: Decimal
    categories: tuple[ShareRow, ...]


# =========================================================================
# Variance
# =========================================================================


@dataclass(frozen=True)
class VarianceRow(RecordMixin):
    """
    Budgeted versus actual figure for one project and category.

    ``variance = budget - actual``; positive means under budget.
    """

    project_id: UUID
    project_name: str
    category: str  # "labor", "hours", "total"
    budget: Decimal
    actual: Decimal
    variance: Decimal
    percent_variance: Decimal


@dataclass(frozen=True)
class VarianceReport(RecordMixin):
    metadata: ReportMetadata
    rows: tuple[VarianceRow, ...]


# =========================================================================
# Profitability
# =========================================================================


@dataclass(frozen=True)
class ProfitabilityRow(RecordMixin):
    """Revenue is the derived budget; cost is the actual cost."""

    id: UUID
    name: str
    client_id: UUID | None
    status: str
    revenue: Decimal
    cost: Decimal
    profit: Decimal
    margin: Decimal


@dataclass(frozen=True)
class ProfitabilityReport(RecordMixin):
    metadata: ReportMetadata
    metric: ProfitabilityMetric
    rows: tuple[ProfitabilityRow, ...]


# =========================================================================
# Billable hours
# =========================================================================


@dataclass(frozen=True)
class ProjectHoursRow(RecordMixin):
    project_id: UUID
    name: str
    hours: Decimal
    billable: Decimal


@dataclass(frozen=True)
class UserHoursRow(RecordMixin):
    user_id: UUID
    name: str
    role: str | None
    total_hours: Decimal
    billable_hours: Decimal
    billable_percentage: Decimal  # whole percent
    projects: tuple[ProjectHoursRow, ...]


@dataclass(frozen=True)
class BillableHoursReport(RecordMixin):
    metadata: ReportMetadata
    users: tuple[UserHoursRow, ...]


# =========================================================================
# Cost
# =========================================================================


@dataclass(frozen=True)
class CostBreakdownReport(RecordMixin):
    metadata: ReportMetadata
    months: tuple[MonthlyCostRow, ...]


@dataclass(frozen=True)
class CostByRoleReport(RecordMixin):
    metadata: ReportMetadata
    roles: tuple[ShareRow, ...]
    total: Decimal


# =========================================================================
# Alerts and dashboard
# =========================================================================


@dataclass(frozen=True)
class AlertsReport(RecordMixin):
    metadata: ReportMetadata
    alerts: tuple[Alert, ...]

    def by_type(self, alert_type: str) -> tuple[Alert, ...]:
        return tuple(a for a in self.alerts if a.type.value == alert_type)


@dataclass(frozen=True)
class StatusCount(RecordMixin):
    status: str
    count: int


@dataclass(frozen=True)
class DashboardSummary(RecordMixin):
    """
    Headline figures across every project.

    ``total_revenue``, ``revenue_breakdown`` and ``cost_distribution``
    cover the trailing revenue window; ``financial_overview`` covers the
    last six calendar months of logged time.
    """

    metadata: ReportMetadata
    total_projects: int
    active_projects: int
    total_revenue: Decimal
    average_profitability: Decimal
    projects_by_status: tuple[StatusCount, ...]
    revenue_breakdown: tuple[ShareRow, ...]
    cost_distribution: tuple[ShareRow, ...]
    financial_overview: tuple[MonthlyCostRow, ...]
