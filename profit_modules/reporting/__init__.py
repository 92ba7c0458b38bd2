"""
Profitability Reporting Module (``profit_modules.reporting``).

Responsibility
--------------
Read-only, cross-project reports: budget variance, profitability
ranking, billable hours, monthly cost breakdown, planned cost by role,
project alerts and the dashboard summary.

Architecture position
---------------------
**Modules layer** -- ``ReportingService`` (``profit_modules.reporting.service``)
reads through ``ProjectRepository`` and delegates every figure to
``profit_engines``.  ``render`` holds the JSON conversion shared by all
records, including the project module's.

Invariants enforced
-------------------
* No report mutates the database.
* Every report carries a ``ReportMetadata`` stamped by the injected clock.

Import ``ReportingService`` from ``profit_modules.reporting.service``;
this package only re-exports the records so that
``profit_modules.project.models`` can depend on ``render`` without an
import cycle.
"""

from profit_modules.reporting.models import (
    AlertsReport,
    BillableHoursReport,
    CostBreakdownReport,
    CostByRoleReport,
    DashboardSummary,
    MonthlyCostRow,
    ProfitabilityMetric,
    ProfitabilityReport,
    ProfitabilityRow,
    ProjectHoursRow,
    ReportMetadata,
    ReportType,
    ShareRow,
    StatusCount,
    UserHoursRow,
    VarianceReport,
    VarianceRow,
)
from profit_modules.reporting.render import RecordMixin, render_to_dict

__all__ = [
    "AlertsReport",
    "BillableHoursReport",
    "CostBreakdownReport",
    "CostByRoleReport",
    "DashboardSummary",
    "MonthlyCostRow",
    "ProfitabilityMetric",
    "ProfitabilityReport",
    "ProfitabilityRow",
    "ProjectHoursRow",
    "RecordMixin",
    "ReportMetadata",
    "ReportType",
    "ShareRow",
    "StatusCount",
    "UserHoursRow",
    "VarianceReport",
    "VarianceRow",
    "render_to_dict",
]
