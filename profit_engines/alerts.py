"""
profit_engines.alerts -- Project health alerts.

Responsibility:
    Inspect a snapshot of one project (spend, budget, end date, team
    size, status) and produce the budget, deadline, resource and quality
    alerts a portfolio view shows.

Architecture position:
    Engines -- pure calculation layer, zero I/O, no clock.  The caller
    supplies ``as_of``; ``ReportingService.alerts`` gets it from its
    injected ``Clock``.

Invariants enforced:
    - Budget alerts use the raw (unclamped) utilization.  At most one
      budget alert and one deadline alert per project.
    - Alert ids are stable: ``"<kind>-<project_id>"``, so repeated
      evaluation of the same snapshot yields equal alerts.

Failure modes:
    - None.  A zero budget is an alert condition, not an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID

from profit_engines.budget import DEFAULT_THRESHOLDS, ThresholdPolicy, budget_utilization
from profit_engines.tracer import traced_engine
from profit_kernel.db.types import HUNDRED, ZERO
from profit_kernel.logging_config import get_logger

logger = get_logger("engines.alerts")

DEFAULT_DEADLINE_WARNING_DAYS = 7
DEFAULT_AT_RISK_STATUS = "AT_RISK"


class AlertType(str, Enum):
    BUDGET = "budget"
    DEADLINE = "deadline"
    RESOURCE = "resource"
    QUALITY = "quality"


class AlertSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ProjectAlertSnapshot:
    """Everything the alert rules look at for one project."""

    project_id: UUID
    project_name: str
    status: str
    budget: Decimal
    actual_cost: Decimal
    team_size: int
    end_date: date | None = None


@dataclass(frozen=True)
class Alert:
    id: str
    project_id: UUID
    project_name: str
    type: AlertType
    severity: AlertSeverity
    message: str
    raised_on: date


def _one_place(value: Decimal) -> str:
    return str(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@traced_engine("alerts", "1.0", fingerprint_fields=("as_of",))
def evaluate_project_alerts(
    snapshot: ProjectAlertSnapshot,
    as_of: date,
    thresholds: ThresholdPolicy = DEFAULT_THRESHOLDS,
    deadline_warning_days: int = DEFAULT_DEADLINE_WARNING_DAYS,
    at_risk_status: str = DEFAULT_AT_RISK_STATUS,
) -> tuple[Alert, ...]:
    """
    Evaluate every alert rule for one project.

    Rules:
        budget    raw utilization above the over-budget threshold -> high;
                  above the warning threshold -> medium; zero budget with
                  any cost -> high.
        deadline  end date in the past -> high; fewer than
                  ``deadline_warning_days`` left -> medium.
        resource  no team members -> high.
        quality   status equals ``at_risk_status`` -> high.
    """
    alerts: list[Alert] = []
    pid = snapshot.project_id

    def add(kind: str, alert_type: AlertType, severity: AlertSeverity, message: str) -> None:
        alerts.append(
            Alert(
                id=f"{kind}-{pid}",
                project_id=pid,
                project_name=snapshot.project_name,
                type=alert_type,
                severity=severity,
                message=message,
                raised_on=as_of,
            )
        )

    utilization = budget_utilization(
        snapshot.actual_cost, snapshot.budget, thresholds=thresholds
    )
    if snapshot.budget == ZERO:
        if snapshot.actual_cost > ZERO:
            add(
                "budget",
                AlertType.BUDGET,
                AlertSeverity.HIGH,
                "Project has incurred costs without a budget",
            )
    elif utilization.is_over_budget:
        add(
            "budget",
            AlertType.BUDGET,
            AlertSeverity.HIGH,
            "Project has exceeded its budget by "
            f"{_one_place(utilization.raw_percent - HUNDRED)}%",
        )
    elif utilization.is_warning:
        add(
            "budget-warning",
            AlertType.BUDGET,
            AlertSeverity.MEDIUM,
            "Project is approaching budget limit "
            f"({_one_place(utilization.raw_percent)}% used)",
        )

    if snapshot.end_date is not None:
        days_left = (snapshot.end_date - as_of).days
        if days_left < 0:
            add(
                "deadline",
                AlertType.DEADLINE,
                AlertSeverity.HIGH,
                "Project has passed its deadline",
            )
        elif days_left < deadline_warning_days:
            add(
                "deadline-warning",
                AlertType.DEADLINE,
                AlertSeverity.MEDIUM,
                f"Project deadline is approaching ({days_left} days remaining)",
            )

    if snapshot.team_size == 0:
        add(
            "resource",
            AlertType.RESOURCE,
            AlertSeverity.HIGH,
            "Project has no team members assigned",
        )

    if snapshot.status == at_risk_status:
        add(
            "quality",
            AlertType.QUALITY,
            AlertSeverity.HIGH,
            "Project is at risk of not meeting quality standards",
        )

    if alerts:
        logger.info(
            "project_alerts_raised",
            extra={"project_id": str(pid), "alert_count": len(alerts)},
        )
    return tuple(alerts)
