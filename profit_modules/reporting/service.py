"""
Profitability Reporting Service (``profit_modules.reporting.service``).

Responsibility
--------------
Generates the cross-project reports: budget variance, profitability
ranking, billable hours, monthly cost breakdown, planned cost by role,
alerts and the dashboard summary.

Architecture position
---------------------
**Modules layer** -- read-only orchestration.  Loads DTOs through
``ProjectRepository`` and delegates every figure to ``profit_engines``;
no arithmetic beyond summing engine results lives here.

Invariants enforced
-------------------
* Read-only: no report adds, changes or deletes a row.
* Budgets are derived on read (planned team cost + expenses, marked up
  by the project margin); the stored ``Project.budget`` is never read.
* Actual project cost is always aggregated from time logs and expenses,
  never assumed to be zero.
* Percentages and money are rounded once, at record construction, using
  the configured decimal places.

Failure modes
-------------
* ``ProjectNotFoundError`` -- a ``project_id`` filter names an unknown
  project.
* ``InvalidMetricError`` -- unknown profitability sort metric.
* ``InvalidDateRangeError`` -- ``from_date`` after ``to_date``.
"""

from __future__ import annotations

from collections import Counter, OrderedDict
from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from profit_config import Settings, get_settings
from profit_engines import (
    Alert,
    CostShare,
    LaborMode,
    MonthlyCostBreakdown,
    ProjectAlertSnapshot,
    actual_labor_cost,
    aggregate_project_cost,
    compute_profit_margin,
    compute_variance,
    cost_by_expense_type,
    cost_by_role,
    derive_budget,
    evaluate_project_alerts,
    expenses_cost,
    monthly_cost_breakdown,
    planned_labor_cost,
    summarize_billable_hours,
)
from profit_kernel.db.types import ZERO, round_money, round_percent
from profit_kernel.domain.clock import Clock, SystemClock
from profit_kernel.exceptions import InvalidDateRangeError, InvalidMetricError
from profit_kernel.logging_config import LogContext, get_logger
from profit_modules.project.inputs import DateRange
from profit_modules.project.models import Project
from profit_modules.project.repository import (
    ProjectRepository,
    SqlAlchemyProjectRepository,
)
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
from profit_modules.reporting.render import render_to_dict

logger = get_logger("modules.reporting.service")

OVERVIEW_MONTHS = 6
HOURS_DECIMAL_PLACES = 2


def _months_back(day: date, months: int) -> date:
    """First day of the month ``months`` calendar months before ``day``'s."""
    index = day.year * 12 + (day.month - 1) - months
    return date(index // 12, index % 12 + 1, 1)


class ReportingService:
    """
    Cross-project report generation.

    Contract
    --------
    * Every public method returns a typed report record carrying
      ``ReportMetadata``.
    * All methods are **read-only** -- the session is never committed.

    Guarantees
    ----------
    * Clock is injectable; "today" in alerts and the dashboard comes from
      it and nowhere else.
    * All monetary amounts use ``Decimal`` -- NEVER ``float``.

    Non-goals
    ---------
    * Does NOT render charts or tables.
    * Does NOT persist or cache reports.
    """

    def __init__(
        self,
        session: Session,
        settings: Settings | None = None,
        clock: Clock | None = None,
        repository: ProjectRepository | None = None,
    ):
        self._session = session
        self._settings = settings or get_settings()
        self._clock = clock or SystemClock()
        self._repo = repository or SqlAlchemyProjectRepository(session)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _money(self, value: Decimal) -> Decimal:
        return round_money(value, self._settings.financial_policy.money_decimal_places)

    def _percent(self, value: Decimal) -> Decimal:
        return round_percent(value, self._settings.financial_policy.percent_decimal_places)

    def _hours(self, value: Decimal) -> Decimal:
        return round_money(value, HOURS_DECIMAL_PLACES)

    def _metadata(
        self,
        report_type: ReportType,
        date_range: DateRange | None = None,
        project_id: UUID | None = None,
    ) -> ReportMetadata:
        return ReportMetadata(
            report_type=report_type,
            generated_at=self._clock.now().isoformat(),
            period_start=date_range.start if date_range is not None else None,
            period_end=date_range.end if date_range is not None else None,
            project_id=project_id,
        )

    def _projects(self, project_id: UUID | None = None) -> list[Project]:
        """All projects, or just ``project_id`` (raises if unknown)."""
        if project_id is not None:
            return [self._repo.get_project(project_id)]
        return self._repo.list_projects()

    def _derived_budget(self, project: Project) -> Decimal:
        planned = aggregate_project_cost(
            project.hourly_rate,
            self._repo.list_expenses(project.id),
            members=self._repo.list_team_members(project.id),
            mode=LaborMode.PLANNED,
        )
        return derive_budget(planned.total_cost, project.profit_margin)

    def _actual_cost(self, project: Project) -> Decimal:
        actual = aggregate_project_cost(
            project.hourly_rate,
            self._repo.list_expenses(project.id),
            logs=self._repo.list_time_logs(project.id),
            mode=LaborMode.ACTUAL,
        )
        return actual.total_cost

    def _share_rows(self, shares: Iterable[CostShare]) -> tuple[ShareRow, ...]:
        return tuple(ShareRow(name=s.name, value=self._money(s.value)) for s in shares)

    def _month_rows(
        self, months: Iterable[MonthlyCostBreakdown]
    ) -> tuple[MonthlyCostRow, ...]:
        return tuple(
            MonthlyCostRow(
                month=m.label,
                direct=self._money(m.direct),
                indirect=self._money(m.indirect),
                total=self._money(m.total),
                categories=self._share_rows(m.categories),
            )
            for m in months
        )

    def _log_generated(self, event: str, **fields: object) -> None:
        logger.info(event, extra={k: v for k, v in fields.items() if v is not None})

    # =========================================================================
    # Public API
    # =========================================================================

    def variance_report(
        self,
        date_range: DateRange,
        project_id: UUID | None = None,
    ) -> VarianceReport:
        """
        Budgeted versus actual figures for projects active in ``date_range``.

        A project is active when it has a time log or an expense in the
        range.  Each gets four rows:

        * ``labor``    planned team cost vs billable labor logged in range
        * ``expenses`` all recorded expenses vs expenses dated in range
        * ``hours``    estimated hours vs hours logged in range
        * ``total``    derived budget vs labor plus expenses in range
        """
        with LogContext.bind(report=ReportType.VARIANCE.value):
            projects = self._projects(project_id)
            logs = self._repo.list_time_logs_between(date_range, project_id=project_id)
            expenses = self._repo.list_expenses_between(date_range)

            rows: list[VarianceRow] = []
            for project in projects:
                project_logs = [log for log in logs if log.project_id == project.id]
                project_expenses = [e for e in expenses if e.project_id == project.id]
                if not project_logs and not project_expenses:
                    continue

                members = self._repo.list_team_members(project.id)
                all_expenses = self._repo.list_expenses(project.id)
                planned_labor = planned_labor_cost(members, project.hourly_rate)
                planned_expenses = expenses_cost(all_expenses)
                budget = derive_budget(planned_labor + planned_expenses, project.profit_margin)

                labor = actual_labor_cost(project_logs, project.hourly_rate)
                spent = expenses_cost(project_expenses)

                for category, planned, actual, as_money in (
                    ("labor", planned_labor, labor.labor_cost, True),
                    ("expenses", planned_expenses, spent, True),
                    ("hours", project.estimated_hours, labor.total_hours, False),
                    ("total", budget, labor.labor_cost + spent, True),
                ):
                    result = compute_variance(planned, actual)
                    quantize = self._money if as_money else self._hours
                    rows.append(
                        VarianceRow(
                            project_id=project.id,
                            project_name=project.name,
                            category=category,
                            budget=quantize(result.planned),
                            actual=quantize(result.actual),
                            variance=quantize(result.variance),
                            percent_variance=self._percent(result.percent_variance),
                        )
                    )

            report = VarianceReport(
                metadata=self._metadata(ReportType.VARIANCE, date_range, project_id),
                rows=tuple(rows),
            )
            self._log_generated(
                "variance_report_generated",
                period_start=date_range.start.isoformat(),
                period_end=date_range.end.isoformat(),
                row_count=len(report.rows),
            )
            return report

    def profitability_report(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
        project_id: UUID | None = None,
        metric: ProfitabilityMetric | str = ProfitabilityMetric.PROFIT,
    ) -> ProfitabilityReport:
        """
        Profit and margin per project, sorted by ``metric`` (descending).

        Revenue is the derived budget, cost the actual cost (billable labor
        plus expenses).  ``from_date`` keeps projects starting on or after
        it; ``to_date`` keeps projects ending on or before it.

        Raises:
            InvalidMetricError: metric is not revenue, cost, profit or margin.
            InvalidDateRangeError: from_date is after to_date.
            ProjectNotFoundError: project_id names no project.
        """
        try:
            sort_metric = ProfitabilityMetric(metric)
        except ValueError:
            raise InvalidMetricError(str(metric), ProfitabilityMetric.values()) from None
        if from_date is not None and to_date is not None and from_date > to_date:
            raise InvalidDateRangeError(from_date, to_date)

        with LogContext.bind(report=ReportType.PROFITABILITY.value):
            if project_id is not None:
                self._repo.get_project(project_id)
            projects = self._repo.list_projects(
                project_id=project_id,
                starts_on_or_after=from_date,
                ends_on_or_before=to_date,
            )

            rows = []
            for project in projects:
                result = compute_profit_margin(
                    self._derived_budget(project), self._actual_cost(project)
                )
                rows.append(
                    ProfitabilityRow(
                        id=project.id,
                        name=project.name,
                        client_id=project.client_id,
                        status=project.status,
                        revenue=self._money(result.revenue),
                        cost=self._money(result.cost),
                        profit=self._money(result.profit),
                        margin=self._percent(result.margin),
                    )
                )
            rows.sort(key=lambda row: getattr(row, sort_metric.value), reverse=True)

            period = None
            if from_date is not None and to_date is not None:
                period = DateRange(from_date, to_date)
            report = ProfitabilityReport(
                metadata=self._metadata(ReportType.PROFITABILITY, period, project_id),
                metric=sort_metric,
                rows=tuple(rows),
            )
            self._log_generated(
                "profitability_report_generated",
                metric=sort_metric.value,
                row_count=len(report.rows),
            )
            return report

    def billable_hours_report(
        self,
        date_range: DateRange,
        project_id: UUID | None = None,
    ) -> BillableHoursReport:
        """Hours per user (and per project within user) logged in range."""
        with LogContext.bind(report=ReportType.BILLABLE_HOURS.value):
            if project_id is not None:
                self._repo.get_project(project_id)
            logs = self._repo.list_time_logs_between(date_range, project_id=project_id)
            users = {user.id: user for user in self._repo.list_users()}
            projects = {project.id: project for project in self._repo.list_projects()}

            summaries = summarize_billable_hours(logs, users, projects)
            rows = tuple(
                UserHoursRow(
                    user_id=s.user_id,
                    name=s.name,
                    role=s.role,
                    total_hours=self._hours(s.total_hours),
                    billable_hours=self._hours(s.billable_hours),
                    billable_percentage=s.billable_percentage,
                    projects=tuple(
                        ProjectHoursRow(
                            project_id=p.project_id,
                            name=p.name,
                            hours=self._hours(p.hours),
                            billable=self._hours(p.billable),
                        )
                        for p in sorted(s.projects, key=lambda p: (p.name, str(p.project_id)))
                    ),
                )
                for s in sorted(summaries, key=lambda s: (s.name, str(s.user_id)))
            )

            report = BillableHoursReport(
                metadata=self._metadata(ReportType.BILLABLE_HOURS, date_range, project_id),
                users=rows,
            )
            self._log_generated(
                "billable_hours_report_generated",
                log_count=len(logs),
                user_count=len(rows),
            )
            return report

    def cost_breakdown_report(
        self,
        date_range: DateRange,
        project_id: UUID | None = None,
    ) -> CostBreakdownReport:
        """
        Logged labor cost per month in ``date_range``.

        Raises:
            ProjectNotFoundError: project_id names no project.
        """
        with LogContext.bind(report=ReportType.COST_BREAKDOWN.value):
            if project_id is not None:
                self._repo.get_project(project_id)
            logs = self._repo.list_time_logs_between(date_range, project_id=project_id)
            rates = {p.id: p.hourly_rate for p in self._repo.list_projects()}
            months = monthly_cost_breakdown(logs, rates)

            report = CostBreakdownReport(
                metadata=self._metadata(ReportType.COST_BREAKDOWN, date_range, project_id),
                months=self._month_rows(months),
            )
            self._log_generated(
                "cost_breakdown_report_generated",
                log_count=len(logs),
                month_count=len(report.months),
            )
            return report

    def cost_by_role(self, project_id: UUID | None = None) -> CostByRoleReport:
        """Planned labor cost by team role, across projects or for one."""
        with LogContext.bind(report=ReportType.COST_BY_ROLE.value):
            totals: OrderedDict[str, Decimal] = OrderedDict()
            for project in self._projects(project_id):
                members = self._repo.list_team_members(project.id)
                for share in cost_by_role(members, project.hourly_rate):
                    totals[share.name] = totals.get(share.name, ZERO) + share.value

            roles = tuple(
                ShareRow(name=name, value=self._money(value)) for name, value in totals.items()
            )
            report = CostByRoleReport(
                metadata=self._metadata(ReportType.COST_BY_ROLE, project_id=project_id),
                roles=roles,
                total=self._money(sum(totals.values(), ZERO)),
            )
            self._log_generated("cost_by_role_report_generated", role_count=len(roles))
            return report

    def alerts(self) -> AlertsReport:
        """Budget, deadline, resource and quality alerts for every project."""
        as_of = self._clock.today()
        policy = self._settings.alerts
        with LogContext.bind(report=ReportType.ALERTS.value):
            found: list[Alert] = []
            for project in self._repo.list_projects():
                snapshot = ProjectAlertSnapshot(
                    project_id=project.id,
                    project_name=project.name,
                    status=project.status,
                    budget=self._derived_budget(project),
                    actual_cost=self._actual_cost(project),
                    team_size=len(self._repo.list_team_members(project.id)),
                    end_date=project.end_date,
                )
                found.extend(
                    evaluate_project_alerts(
                        snapshot,
                        as_of=as_of,
                        thresholds=self._settings.budget_thresholds,
                        deadline_warning_days=policy.deadline_warning_days,
                        at_risk_status=policy.at_risk_status,
                    )
                )

            report = AlertsReport(
                metadata=self._metadata(ReportType.ALERTS),
                alerts=tuple(found),
            )
            self._log_generated(
                "alerts_report_generated",
                as_of=as_of.isoformat(),
                alert_count=len(found),
            )
            return report

    def dashboard(self) -> DashboardSummary:
        """
        Headline figures for the landing page.

        * revenue: billable labor logged in the trailing revenue window
        * average profitability: mean margin of projects with revenue,
          where revenue is all-time billable labor and cost is expenses
        * cost distribution: expenses in the revenue window, by type
        * financial overview: logged labor per month, last six months
        """
        today = self._clock.today()
        policy = self._settings.dashboard
        window = DateRange(today - timedelta(days=policy.revenue_window_days), today)

        with LogContext.bind(report=ReportType.DASHBOARD.value):
            projects = self._repo.list_projects()
            active = sum(1 for p in projects if p.status in policy.active_statuses)
            statuses = Counter(p.status for p in projects)

            window_logs = self._repo.list_time_logs_between(window)
            revenue_breakdown: list[CostShare] = []
            margins: list[Decimal] = []
            for project in projects:
                recent = [log for log in window_logs if log.project_id == project.id]
                revenue_breakdown.append(
                    CostShare(
                        name=project.name,
                        value=actual_labor_cost(recent, project.hourly_rate).labor_cost,
                    )
                )
                revenue = actual_labor_cost(
                    self._repo.list_time_logs(project.id), project.hourly_rate
                ).labor_cost
                if revenue > ZERO:
                    cost = expenses_cost(self._repo.list_expenses(project.id))
                    margins.append(compute_profit_margin(revenue, cost).margin)

            average = sum(margins, ZERO) / len(margins) if margins else ZERO
            total_revenue = sum((share.value for share in revenue_breakdown), ZERO)

            overview_range = DateRange(_months_back(today, OVERVIEW_MONTHS - 1), today)
            overview = monthly_cost_breakdown(
                self._repo.list_time_logs_between(overview_range),
                {p.id: p.hourly_rate for p in projects},
            )

            summary = DashboardSummary(
                metadata=self._metadata(ReportType.DASHBOARD, window),
                total_projects=len(projects),
                active_projects=active,
                total_revenue=self._money(total_revenue),
                average_profitability=self._percent(average),
                projects_by_status=tuple(
                    StatusCount(status=status, count=count)
                    for status, count in sorted(statuses.items())
                ),
                revenue_breakdown=self._share_rows(revenue_breakdown),
                cost_distribution=self._share_rows(
                    cost_by_expense_type(self._repo.list_expenses_between(window))
                ),
                financial_overview=self._month_rows(overview),
            )
            self._log_generated(
                "dashboard_generated",
                total_projects=summary.total_projects,
                active_projects=summary.active_projects,
            )
            return summary

    def to_dict(self, report: object) -> dict:
        """
        Convert any report record to a plain dict for JSON serialization.

        Delegates to the pure render_to_dict function.
        """
        return render_to_dict(report)
