"""
Tests for project alert evaluation.

Covers:
- Budget alerts (over, approaching, zero budget with costs)
- Deadline alerts (passed, approaching)
- Resource and quality alerts
- Stable ids and the as_of date
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from profit_engines.alerts import (
    AlertSeverity,
    AlertType,
    ProjectAlertSnapshot,
    evaluate_project_alerts,
)

AS_OF = date(2024, 3, 15)


@pytest.fixture
def healthy_snapshot() -> ProjectAlertSnapshot:
    return ProjectAlertSnapshot(
        project_id=uuid4(),
        project_name="Website",
        status="In Progress",
        budget=Decimal("1000"),
        actual_cost=Decimal("100"),
        team_size=2,
        end_date=date(2024, 6, 30),
    )


class TestBudgetAlerts:
    def test_healthy_project_raises_nothing(self, healthy_snapshot):
        assert evaluate_project_alerts(healthy_snapshot, as_of=AS_OF) == ()

    def test_over_budget(self, healthy_snapshot):
        snapshot = replace(healthy_snapshot, actual_cost=Decimal("1155"))
        (alert,) = evaluate_project_alerts(snapshot, as_of=AS_OF)

        assert alert.id == f"budget-{snapshot.project_id}"
        assert alert.type is AlertType.BUDGET
        assert alert.severity is AlertSeverity.HIGH
        assert alert.message == "Project has exceeded its budget by 15.5%"
        assert alert.raised_on == AS_OF

    def test_approaching_budget(self, healthy_snapshot):
        snapshot = replace(healthy_snapshot, actual_cost=Decimal("925"))
        (alert,) = evaluate_project_alerts(snapshot, as_of=AS_OF)

        assert alert.id == f"budget-warning-{snapshot.project_id}"
        assert alert.severity is AlertSeverity.MEDIUM
        assert alert.message == "Project is approaching budget limit (92.5% used)"

    def test_exactly_at_warning_threshold_is_quiet(self, healthy_snapshot):
        snapshot = replace(healthy_snapshot, actual_cost=Decimal("900"))
        assert evaluate_project_alerts(snapshot, as_of=AS_OF) == ()

    def test_zero_budget_with_costs(self, healthy_snapshot):
        snapshot = replace(healthy_snapshot, budget=Decimal("0"), actual_cost=Decimal("1"))
        (alert,) = evaluate_project_alerts(snapshot, as_of=AS_OF)
        assert alert.severity is AlertSeverity.HIGH
        assert alert.message == "Project has incurred costs without a budget"

    def test_zero_budget_without_costs_is_quiet(self, healthy_snapshot):
        snapshot = replace(healthy_snapshot, budget=Decimal("0"), actual_cost=Decimal("0"))
        assert evaluate_project_alerts(snapshot, as_of=AS_OF) == ()


class TestDeadlineAlerts:
    def test_deadline_passed(self, healthy_snapshot):
        snapshot = replace(healthy_snapshot, end_date=date(2024, 3, 14))
        (alert,) = evaluate_project_alerts(snapshot, as_of=AS_OF)
        assert alert.id == f"deadline-{snapshot.project_id}"
        assert alert.type is AlertType.DEADLINE
        assert alert.severity is AlertSeverity.HIGH

    def test_deadline_approaching(self, healthy_snapshot):
        snapshot = replace(healthy_snapshot, end_date=date(2024, 3, 20))
        (alert,) = evaluate_project_alerts(snapshot, as_of=AS_OF)
        assert alert.id == f"deadline-warning-{snapshot.project_id}"
        assert alert.severity is AlertSeverity.MEDIUM
        assert "5 days remaining" in alert.message

    def test_custom_warning_window(self, healthy_snapshot):
        snapshot = replace(healthy_snapshot, end_date=date(2024, 3, 20))
        assert evaluate_project_alerts(snapshot, as_of=AS_OF, deadline_warning_days=3) == ()

    def test_no_end_date(self, healthy_snapshot):
        snapshot = replace(healthy_snapshot, end_date=None)
        assert evaluate_project_alerts(snapshot, as_of=AS_OF) == ()


class TestResourceAndQuality:
    def test_no_team(self, healthy_snapshot):
        (alert,) = evaluate_project_alerts(replace(healthy_snapshot, team_size=0), as_of=AS_OF)
        assert alert.type is AlertType.RESOURCE
        assert alert.id == f"resource-{healthy_snapshot.project_id}"

    def test_at_risk_status(self, healthy_snapshot):
        (alert,) = evaluate_project_alerts(replace(healthy_snapshot, status="AT_RISK"), as_of=AS_OF)
        assert alert.type is AlertType.QUALITY

    def test_custom_at_risk_status(self, healthy_snapshot):
        snapshot = replace(healthy_snapshot, status="Red")
        (alert,) = evaluate_project_alerts(snapshot, as_of=AS_OF, at_risk_status="Red")
        assert alert.id == f"quality-{snapshot.project_id}"

    def test_everything_at_once(self, healthy_snapshot):
        snapshot = replace(
            healthy_snapshot,
            actual_cost=Decimal("2000"),
            end_date=date(2024, 1, 1),
            team_size=0,
            status="AT_RISK",
        )
        alerts = evaluate_project_alerts(snapshot, as_of=AS_OF)
        assert [a.type for a in alerts] == [
            AlertType.BUDGET,
            AlertType.DEADLINE,
            AlertType.RESOURCE,
            AlertType.QUALITY,
        ]
        assert evaluate_project_alerts(snapshot, as_of=AS_OF) == alerts
