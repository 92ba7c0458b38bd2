"""
Tests for ProjectService.

Covers:
- Stored budget refresh after every budget-affecting mutation
- Transaction boundaries (rollback leaves no partial writes)
- Typed not-found and duplicate errors
- Financial views: financials (both labor modes), budget view, performance
- Structured log events for mutations
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from profit_config import FinancialPolicy, Settings
from profit_engines import LaborMode
from profit_kernel.exceptions import (
    DeliverableNotFoundError,
    DuplicateAssignmentError,
    ExpenseNotFoundError,
    InvalidStatusError,
    MissingFieldError,
    NegativeMarginError,
    NegativeValueError,
    ProjectNotFoundError,
    TeamMemberNotFoundError,
    UserNotFoundError,
)
from profit_modules.project import (
    DeliverableInput,
    ExpenseInput,
    ProjectInput,
    ProjectService,
    SqlAlchemyProjectRepository,
    TeamMemberInput,
    TimeLogInput,
)


def _stored_budget(session, project_id) -> Decimal:
    return SqlAlchemyProjectRepository(session).get_project(project_id).budget


def _expense(project_id, amount="50", day=date(2024, 3, 1), kind="software"):
    return ExpenseInput(project_id, "Licences", Decimal(amount), kind, day)


@pytest.fixture
def strict_service(session, deterministic_clock):
    """A service whose policy forbids negative margins."""
    settings = Settings(financial_policy=FinancialPolicy(allow_negative_margin=False))
    return ProjectService(session, settings=settings, clock=deterministic_clock)


@pytest.fixture
def logged_project(project_service, test_actor_id, project, rated_user, unrated_user):
    """
    The seeded project plus one 50 expense and some logged time.

    Ada: 5 h billable at 120 (600).  Grace: 2 h non-billable at 100 (200).
    """
    project_service.record_expense(_expense(project.id), test_actor_id)
    project_service.log_time(
        TimeLogInput(project.id, rated_user.id, date(2024, 3, 4), Decimal("5")),
        test_actor_id,
    )
    project_service.log_time(
        TimeLogInput(
            project.id, unrated_user.id, date(2024, 3, 5), Decimal("2"), billable=False
        ),
        test_actor_id,
    )
    return project


# =============================================================================
# Clients and users
# =============================================================================


class TestClientsAndUsers:
    def test_create_user_with_rate(self, rated_user):
        assert rated_user.hourly_rate == Decimal("120")
        assert rated_user.role == "Developer"

    def test_blank_name(self, project_service, test_actor_id):
        with pytest.raises(MissingFieldError):
            project_service.create_user("  ", test_actor_id)
        with pytest.raises(MissingFieldError):
            project_service.create_client("", test_actor_id)

    def test_negative_user_rate(self, project_service, test_actor_id):
        with pytest.raises(NegativeValueError):
            project_service.create_user("Linus", test_actor_id, hourly_rate=Decimal("-1"))

    def test_update_user_rate_refreshes_budgets(
        self, project_service, session, test_actor_id, project, rated_user
    ):
        updated = project_service.update_user_rate(rated_user.id, Decimal("200"), test_actor_id)

        assert updated.hourly_rate == Decimal("200")
        # 10 h x 200 + 5 h x 100 = 2500, +20 %
        assert _stored_budget(session, project.id) == Decimal("3000")

    def test_clearing_user_rate_falls_back_to_project_rate(
        self, project_service, session, test_actor_id, project, rated_user
    ):
        project_service.update_user_rate(rated_user.id, None, test_actor_id)
        # 15 h x 100 = 1500, +20 %
        assert _stored_budget(session, project.id) == Decimal("1800")

    def test_user_rate_change_not_blocked_by_legacy_negative_margin(
        self, project_service, strict_service, session, test_actor_id, project, rated_user
    ):
        project_service.update_project_rates(
            project.id, test_actor_id, profit_margin=Decimal("-10")
        )

        updated = strict_service.update_user_rate(rated_user.id, Decimal("200"), test_actor_id)

        assert updated.hourly_rate == Decimal("200")
        # 10 h x 200 + 5 h x 100 = 2500, -10 %
        assert _stored_budget(session, project.id) == Decimal("2250")

    def test_update_rate_unknown_user(self, project_service, test_actor_id):
        with pytest.raises(UserNotFoundError):
            project_service.update_user_rate(uuid4(), Decimal("10"), test_actor_id)


# =============================================================================
# Projects and stored budget
# =============================================================================


class TestCreateProject:
    def test_initial_budget(self, project):
        assert project.budget == Decimal("2040")
        assert project.profit_margin == Decimal("20")

    def test_default_margin_from_settings(self, session, deterministic_clock, test_actor_id):
        settings = Settings(financial_policy=FinancialPolicy(default_profit_margin=Decimal("35")))
        service = ProjectService(session, settings=settings, clock=deterministic_clock)

        created = service.create_project(ProjectInput(name="Audit"), test_actor_id)

        assert created.profit_margin == Decimal("35")
        assert created.budget == Decimal("0")

    def test_deliverables_created(self, project_service, session, test_actor_id):
        created = project_service.create_project(
            ProjectInput(
                name="Docs",
                deliverables=(DeliverableInput("Outline", date(2024, 4, 1)),),
            ),
            test_actor_id,
        )
        (deliverable,) = SqlAlchemyProjectRepository(session).list_deliverables(created.id)
        assert deliverable.name == "Outline"
        assert deliverable.status == "Not Started"

    def test_duplicate_user_in_team_rolls_back(
        self, project_service, session, test_actor_id, rated_user
    ):
        with pytest.raises(DuplicateAssignmentError):
            project_service.create_project(
                ProjectInput(
                    name="Twice",
                    team=(
                        TeamMemberInput(rated_user.id, Decimal("1")),
                        TeamMemberInput(rated_user.id, Decimal("2")),
                    ),
                ),
                test_actor_id,
            )
        assert SqlAlchemyProjectRepository(session).list_projects() == []

    def test_unknown_team_user(self, project_service, test_actor_id):
        with pytest.raises(UserNotFoundError):
            project_service.create_project(
                ProjectInput(name="Ghost", team=(TeamMemberInput(uuid4(), Decimal("1")),)),
                test_actor_id,
            )

    def test_negative_margin_rejected_by_policy(self, strict_service, session, test_actor_id):
        with pytest.raises(NegativeMarginError):
            strict_service.create_project(
                ProjectInput(name="Loss Leader", profit_margin=Decimal("-5")), test_actor_id
            )
        assert SqlAlchemyProjectRepository(session).list_projects() == []


class TestProjectRates:
    def test_rate_change_refreshes_budget(self, project_service, test_actor_id, project):
        updated = project_service.update_project_rates(
            project.id, test_actor_id, hourly_rate=Decimal("200")
        )
        # Ada keeps 120: 1200 + 5 h x 200 = 2200, +20 %
        assert updated.budget == Decimal("2640")

    def test_margin_change_refreshes_budget(self, project_service, test_actor_id, project):
        updated = project_service.update_project_rates(
            project.id, test_actor_id, profit_margin=Decimal("50")
        )
        assert updated.profit_margin == Decimal("50")
        assert updated.budget == Decimal("2550")

    def test_rejected_margin_leaves_project_untouched(
        self, strict_service, session, test_actor_id, project
    ):
        with pytest.raises(NegativeMarginError):
            strict_service.update_project_rates(
                project.id, test_actor_id, profit_margin=Decimal("-10")
            )

        stored = SqlAlchemyProjectRepository(session).get_project(project.id)
        assert stored.profit_margin == Decimal("20")
        assert stored.budget == Decimal("2040")

    def test_unknown_project(self, project_service, test_actor_id):
        with pytest.raises(ProjectNotFoundError):
            project_service.update_project_rates(uuid4(), test_actor_id, hourly_rate=Decimal("1"))


class TestTeam:
    def test_add_member_refreshes_budget(
        self, project_service, session, test_actor_id, project
    ):
        newcomer = project_service.create_user("Alan Turing", test_actor_id)

        member = project_service.add_team_member(
            project.id, TeamMemberInput(newcomer.id, Decimal("10"), "Analyst"), test_actor_id
        )

        assert member.user_name == "Alan Turing"
        assert member.role == "Analyst"
        # 1700 + 10 h x 100 = 2700, +20 %
        assert _stored_budget(session, project.id) == Decimal("3240")

    def test_duplicate_member(self, project_service, test_actor_id, project, rated_user):
        with pytest.raises(DuplicateAssignmentError) as exc_info:
            project_service.add_team_member(
                project.id, TeamMemberInput(rated_user.id, Decimal("1")), test_actor_id
            )
        assert exc_info.value.code == "DUPLICATE_ASSIGNMENT"

    def test_add_member_unknown_project(self, project_service, test_actor_id, rated_user):
        with pytest.raises(ProjectNotFoundError):
            project_service.add_team_member(
                uuid4(), TeamMemberInput(rated_user.id, Decimal("1")), test_actor_id
            )

    def test_update_hours(self, project_service, session, test_actor_id, project, unrated_user):
        member = project_service.update_team_member_hours(
            project.id, unrated_user.id, Decimal("10"), test_actor_id
        )
        assert member.hours == Decimal("10")
        assert _stored_budget(session, project.id) == Decimal("2640")

    def test_update_hours_for_non_member(self, project_service, test_actor_id, project):
        with pytest.raises(TeamMemberNotFoundError):
            project_service.update_team_member_hours(
                project.id, uuid4(), Decimal("1"), test_actor_id
            )

    def test_remove_member(self, project_service, session, test_actor_id, project, unrated_user):
        project_service.remove_team_member(project.id, unrated_user.id, test_actor_id)

        members = SqlAlchemyProjectRepository(session).list_team_members(project.id)
        assert [m.user_name for m in members] == ["Ada Lovelace"]
        assert _stored_budget(session, project.id) == Decimal("1440")


# =============================================================================
# Expenses, time and deliverables
# =============================================================================


class TestExpenses:
    def test_expense_refreshes_budget(self, project_service, session, test_actor_id, project):
        """Planned labor 1700 + expense 50 = 1750, budget 2100."""
        project_service.record_expense(_expense(project.id), test_actor_id)
        assert _stored_budget(session, project.id) == Decimal("2100")

    def test_delete_expense_restores_budget(
        self, project_service, session, test_actor_id, project
    ):
        expense = project_service.record_expense(_expense(project.id), test_actor_id)
        project_service.delete_expense(project.id, expense.id, test_actor_id)
        assert _stored_budget(session, project.id) == Decimal("2040")
        assert SqlAlchemyProjectRepository(session).list_expenses(project.id) == []

    def test_delete_expense_of_other_project(
        self, project_service, test_actor_id, project
    ):
        other = project_service.create_project(ProjectInput(name="Other"), test_actor_id)
        expense = project_service.record_expense(_expense(project.id), test_actor_id)
        with pytest.raises(ExpenseNotFoundError):
            project_service.delete_expense(other.id, expense.id, test_actor_id)

    def test_expense_for_unknown_project_rolls_back(
        self, project_service, session, test_actor_id, captured_logs
    ):
        missing = uuid4()
        with pytest.raises(ProjectNotFoundError):
            project_service.record_expense(_expense(missing), test_actor_id)

        rolled_back = [
            r for r in captured_logs() if r["message"] == "expense_recording_rolled_back"
        ]
        assert len(rolled_back) == 1
        assert rolled_back[0]["level"] == "WARNING"
        assert rolled_back[0]["exc_code"] == "PROJECT_NOT_FOUND"
        assert SqlAlchemyProjectRepository(session).list_expenses(missing) == []

    def test_commit_is_logged_with_context(
        self, project_service, test_actor_id, project, captured_logs
    ):
        project_service.record_expense(_expense(project.id), test_actor_id)

        records = captured_logs()
        committed = [r for r in records if r["message"] == "expense_recording_committed"]
        assert len(committed) == 1
        assert committed[0]["actor_id"] == str(test_actor_id)
        assert committed[0]["project_id"] == str(project.id)
        assert committed[0]["expense_type"] == "software"

        refreshed = [r for r in records if r["message"] == "project_budget_refreshed"]
        assert refreshed[-1]["budget"] == "2100.00"


class TestTimeAndDeliverables:
    def test_time_does_not_change_stored_budget(
        self, project_service, session, test_actor_id, project, rated_user
    ):
        log = project_service.log_time(
            TimeLogInput(project.id, rated_user.id, date(2024, 3, 1), Decimal("30")),
            test_actor_id,
        )
        assert log.user_rate == Decimal("120")
        assert _stored_budget(session, project.id) == Decimal("2040")

    def test_time_for_unknown_user(self, project_service, session, test_actor_id, project):
        with pytest.raises(UserNotFoundError):
            project_service.log_time(
                TimeLogInput(project.id, uuid4(), date(2024, 3, 1), Decimal("1")),
                test_actor_id,
            )
        assert SqlAlchemyProjectRepository(session).list_time_logs(project.id) == []

    def test_deliverable_lifecycle(self, project_service, test_actor_id, project):
        deliverable = project_service.add_deliverable(
            project.id, DeliverableInput("Wireframes", date(2024, 2, 1)), test_actor_id
        )
        updated = project_service.update_deliverable_status(
            project.id, deliverable.id, "Completed", test_actor_id
        )
        assert updated.status == "Completed"

    def test_invalid_deliverable_status(self, project_service, test_actor_id, project):
        with pytest.raises(InvalidStatusError):
            project_service.update_deliverable_status(
                project.id, uuid4(), "Shipped", test_actor_id
            )

    def test_unknown_deliverable(self, project_service, test_actor_id, project):
        with pytest.raises(DeliverableNotFoundError):
            project_service.update_deliverable_status(
                project.id, uuid4(), "Completed", test_actor_id
            )


# =============================================================================
# Financial views
# =============================================================================


class TestProjectFinancials:
    def test_actual_mode(self, project_service, logged_project):
        result = project_service.project_financials(logged_project.id)

        assert result.labor_mode == "actual"
        assert result.total_labor_cost == Decimal("600.00")
        assert result.total_expenses == Decimal("50.00")
        assert result.total_actual_cost == Decimal("650.00")
        assert result.budget == Decimal("2100.00")
        assert result.budget_variance == Decimal("1450.00")
        assert result.budget_utilization_percent == Decimal("30.95")
        assert result.health == "healthy"
        assert not result.is_over_budget
        assert result.target_profit_amount == Decimal("130.00")
        assert result.revenue_target == Decimal("780.00")

    def test_planned_mode(self, project_service, logged_project):
        result = project_service.project_financials(logged_project.id, labor_mode="planned")

        assert result.labor_mode == LaborMode.PLANNED.value
        assert result.total_actual_cost == Decimal("1750.00")
        assert result.budget_variance == Decimal("350.00")
        assert result.raw_utilization_percent == Decimal("83.33")
        assert result.health == "warning"

    def test_over_budget(self, project_service, test_actor_id, project, rated_user):
        project_service.log_time(
            TimeLogInput(project.id, rated_user.id, date(2024, 3, 1), Decimal("20")),
            test_actor_id,
        )
        result = project_service.project_financials(project.id)

        # 20 h x 120 = 2400 against 2040
        assert result.budget_utilization_percent == Decimal("100.00")
        assert result.raw_utilization_percent == Decimal("117.65")
        assert result.is_over_budget
        assert result.health == "danger"
        assert result.budget_variance == Decimal("-360.00")

    def test_unknown_project(self, project_service):
        with pytest.raises(ProjectNotFoundError):
            project_service.project_financials(uuid4())

    def test_serializes(self, project_service, logged_project):
        data = project_service.project_financials(logged_project.id).to_dict()
        assert data["budget"] == "2100.00"
        assert data["project_id"] == str(logged_project.id)


class TestBudgetView:
    def test_logged_hours_against_budget(self, project_service, logged_project):
        view = project_service.project_budget_view(logged_project.id)

        assert view.actual_hours == Decimal("7")
        assert view.billable_hours == Decimal("5")
        assert view.non_billable_hours == Decimal("2")
        assert view.actual_cost == Decimal("800.00")
        assert view.billable_value == Decimal("600.00")
        assert view.budget == Decimal("2100.00")
        assert view.budget_remaining == Decimal("1300.00")
        assert view.budget_utilization_percent == Decimal("38.10")
        assert view.hours_utilization_percent == Decimal("17.50")

    def test_no_logs(self, project_service, project):
        view = project_service.project_budget_view(project.id)
        assert view.actual_cost == Decimal("0.00")
        assert view.budget_remaining == Decimal("2040.00")
        assert view.hours_utilization_percent == Decimal("0.00")


class TestPerformance:
    def test_hours_and_realized_profit(self, project_service, test_actor_id, logged_project):
        first = project_service.add_deliverable(
            logged_project.id, DeliverableInput("Design", date(2024, 2, 1)), test_actor_id
        )
        project_service.add_deliverable(
            logged_project.id, DeliverableInput("Build", date(2024, 5, 1)), test_actor_id
        )
        project_service.update_deliverable_status(
            logged_project.id, first.id, "Completed", test_actor_id
        )

        perf = project_service.project_performance(logged_project.id)

        assert perf.total_hours == Decimal("7")
        assert perf.billable_hours == Decimal("5")
        assert perf.billable_percentage == Decimal("71.43")
        assert perf.deliverable_completion.completed == 1
        assert perf.deliverable_completion.total == 2
        assert perf.deliverable_completion.percentage == Decimal("50.00")
        assert perf.financial.revenue == Decimal("600.00")
        assert perf.financial.cost == Decimal("800.00")
        assert perf.financial.profit == Decimal("-200.00")
        assert perf.financial.profit_margin == Decimal("-33.33")

    def test_empty_project(self, project_service, project):
        perf = project_service.project_performance(project.id)
        assert perf.total_hours == Decimal("0")
        assert perf.billable_percentage == Decimal("0.00")
        assert perf.financial.profit_margin == Decimal("0.00")
