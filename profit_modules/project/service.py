"""
Project Module Service (``profit_modules.project.service``).

Responsibility
--------------
Orchestrates project mutations (projects, team, expenses, time, deliverables,
rates) and the per-project financial views (financials, budget view,
performance) by delegating all arithmetic to ``profit_engines`` and all
reads to ``ProjectRepository``.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``ProjectService`` is the sole public
entry point for project writes.  Constructor: ``session`` + ``settings``
+ ``clock`` (+ optional repository for substitution in tests).

Invariants enforced
-------------------
* Each public mutating method owns the transaction boundary (``commit``
  on success, ``rollback`` and re-raise on any exception).
* The stored ``Project.budget`` is refreshed inside the same transaction
  as every mutation that changes it: expense recorded/deleted, team
  member added/removed/re-planned, project rate or margin changed, user
  rate changed.  The project row is locked (FOR UPDATE) before its
  children are read.
* Financial views never read the stored budget; they derive it from the
  planned team cost, expenses and margin.
* All monetary calculations use ``Decimal`` -- NEVER ``float``.

Failure modes
-------------
* ``NotFoundError`` subclasses propagate unchanged from the repository.
* ``InvalidInputError`` subclasses from inputs and engines; session rolled
  back.
* ``DuplicateAssignmentError`` when a user is already on the project.
* Unexpected exception  -> session rolled back, exception re-raised.

Audit relevance
---------------
Structured log events are emitted at operation start and commit/rollback
for every mutating method, carrying the actor and project ids.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from profit_config import Settings, get_settings
from profit_engines import (
    LaborMode,
    ProjectCost,
    actual_labor_cost,
    aggregate_project_cost,
    billable_percentage,
    budget_utilization,
    classify_budget_health,
    compute_profit_margin,
    compute_variance,
    deliverable_completion,
    derive_budget,
    hours_utilization,
    target_profit,
)
from profit_kernel.db.types import ZERO, round_money, round_percent
from profit_kernel.domain.clock import Clock, SystemClock
from profit_kernel.exceptions import (
    DeliverableNotFoundError,
    DuplicateAssignmentError,
    ExpenseNotFoundError,
    InvalidStatusError,
    MissingFieldError,
    NegativeValueError,
    TeamMemberNotFoundError,
    UserNotFoundError,
)
from profit_kernel.logging_config import LogContext, get_logger
from profit_modules.project.inputs import (
    DeliverableInput,
    ExpenseInput,
    ProjectInput,
    TeamMemberInput,
    TimeLogInput,
)
from profit_modules.project.models import (
    Client,
    CompletionStat,
    Deliverable,
    DeliverableStatus,
    PerformanceFinancials,
    Project,
    ProjectBudgetView,
    ProjectExpense,
    ProjectFinancials,
    ProjectPerformance,
    TeamMember,
    TimeLog,
    User,
)
from profit_modules.project.orm import (
    ClientModel,
    DeliverableModel,
    ProjectExpenseModel,
    ProjectModel,
    TeamMemberModel,
    TimeLogModel,
    UserModel,
)
from profit_modules.project.repository import (
    ProjectRepository,
    SqlAlchemyProjectRepository,
)

logger = get_logger("modules.project.service")


class ProjectService:
    """
    Orchestrates project writes and per-project financial views.

    Contract
    --------
    * Mutating methods take an ``actor_id`` recorded as ``created_by_id`` /
      ``updated_by_id`` and return the resulting DTO.
    * View methods are read-only and return records rounded for display.

    Guarantees
    ----------
    * Session is committed only when the whole mutation, budget refresh
      included, succeeded; otherwise rolled back.
    * Clock and settings are injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT authenticate or authorize the actor.
    * Does NOT produce cross-project reports (see ``ReportingService``).
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
    # Helpers
    # =========================================================================

    @contextmanager
    def _unit_of_work(self, operation: str, actor_id: UUID, **fields: Any) -> Iterator[None]:
        """Commit on success; rollback, log and re-raise on failure."""
        extra = {k: str(v) for k, v in fields.items() if v is not None}
        with LogContext.bind(actor_id=actor_id, project_id=fields.get("project_id")):
            logger.info(f"{operation}_started", extra=extra)
            try:
                yield
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning(f"{operation}_rolled_back", extra=extra, exc_info=True)
                raise
            logger.info(f"{operation}_committed", extra=extra)

    def _money(self, value: Decimal) -> Decimal:
        return round_money(value, self._settings.financial_policy.money_decimal_places)

    def _percent(self, value: Decimal) -> Decimal:
        return round_percent(value, self._settings.financial_policy.percent_decimal_places)

    def _planned_cost(self, project: Project) -> ProjectCost:
        return aggregate_project_cost(
            project.hourly_rate,
            self._repo.list_expenses(project.id),
            members=self._repo.list_team_members(project.id),
            mode=LaborMode.PLANNED,
        )

    def _derived_budget(self, project: Project, enforce_policy: bool = False) -> Decimal:
        allow = True
        if enforce_policy:
            allow = self._settings.financial_policy.allow_negative_margin
        return derive_budget(
            self._planned_cost(project).total_cost,
            project.profit_margin,
            allow_negative_margin=allow,
        )

    def _refresh_budget(self, project_id: UUID, enforce_policy: bool = True) -> Decimal:
        """Lock the project, recompute its budget, and store it (no commit)."""
        project = self._repo.lock_project(project_id)
        budget = self._money(self._derived_budget(project, enforce_policy=enforce_policy))
        self._repo.update_project_budget(project_id, budget)
        logger.info(
            "project_budget_refreshed",
            extra={"project_id": str(project_id), "budget": str(budget)},
        )
        return budget

    def _require_user(self, user_id: UUID) -> UserModel:
        model = self._session.get(UserModel, user_id)
        if model is None:
            raise UserNotFoundError(user_id)
        return model

    def _team_member(self, project_id: UUID, user_id: UUID) -> TeamMemberModel | None:
        stmt = select(TeamMemberModel).where(
            TeamMemberModel.project_id == project_id,
            TeamMemberModel.user_id == user_id,
        )
        return self._session.execute(stmt).unique().scalar_one_or_none()

    # =========================================================================
    # Clients and users
    # =========================================================================

    def create_client(self, name: str, actor_id: UUID, email: str | None = None) -> Client:
        """Create a client (no budget effect)."""
        if not name or not name.strip():
            raise MissingFieldError("name")
        client = Client(id=uuid4(), name=name.strip(), email=email)
        with self._unit_of_work("client_creation", actor_id, client_id=client.id):
            self._session.add(ClientModel.from_dto(client, created_by_id=actor_id))
        return client

    def create_user(
        self,
        name: str,
        actor_id: UUID,
        email: str | None = None,
        role: str | None = None,
        hourly_rate: Decimal | None = None,
    ) -> User:
        """Create a user; ``hourly_rate=None`` falls back to project rates."""
        if not name or not name.strip():
            raise MissingFieldError("name")
        if hourly_rate is not None and hourly_rate < ZERO:
            raise NegativeValueError("hourly_rate", hourly_rate)
        user = User(
            id=uuid4(), name=name.strip(), email=email, role=role, hourly_rate=hourly_rate
        )
        with self._unit_of_work("user_creation", actor_id, user_id=user.id):
            self._session.add(UserModel.from_dto(user, created_by_id=actor_id))
        return user

    def update_user_rate(
        self,
        user_id: UUID,
        hourly_rate: Decimal | None,
        actor_id: UUID,
    ) -> User:
        """
        Change a user's personal rate and refresh every affected budget.

        ``None`` clears the personal rate so project rates apply.  Budgets
        are refreshed with the permissive margin rule: a project whose
        margin predates a stricter policy does not block the rate change.
        """
        if hourly_rate is not None and hourly_rate < ZERO:
            raise NegativeValueError("hourly_rate", hourly_rate)
        with self._unit_of_work("user_rate_update", actor_id, user_id=user_id):
            model = self._require_user(user_id)
            model.hourly_rate = hourly_rate
            model.updated_by_id = actor_id
            self._session.flush()
            for project_id in self._repo.list_project_ids_for_user(user_id):
                self._refresh_budget(project_id, enforce_policy=False)
        return self._repo.get_user(user_id)

    # =========================================================================
    # Projects
    # =========================================================================

    def create_project(self, data: ProjectInput, actor_id: UUID) -> Project:
        """
        Create a project with its initial team and deliverables.

        The stored budget is derived from the initial team and the margin
        (configured default when the input leaves it unset).

        Raises:
            UserNotFoundError: a team entry names an unknown user.
            DuplicateAssignmentError: a user appears twice in the team.
            NegativeMarginError: margin < 0 while the policy forbids it.
        """
        margin = data.profit_margin
        if margin is None:
            margin = self._settings.financial_policy.default_profit_margin

        project = Project(
            id=uuid4(),
            name=data.name,
            client_id=data.client_id,
            description=data.description,
            status=data.status,
            start_date=data.start_date,
            end_date=data.end_date,
            hourly_rate=data.hourly_rate,
            estimated_hours=data.estimated_hours,
            profit_margin=margin,
        )

        with self._unit_of_work("project_creation", actor_id, project_id=project.id):
            self._session.add(ProjectModel.from_dto(project, created_by_id=actor_id))

            seen: set[UUID] = set()
            for member in data.team:
                if member.user_id in seen:
                    raise DuplicateAssignmentError(project.id, member.user_id)
                seen.add(member.user_id)
                self._require_user(member.user_id)
                self._session.add(
                    TeamMemberModel(
                        id=uuid4(),
                        project_id=project.id,
                        user_id=member.user_id,
                        role=member.role,
                        hours=member.hours,
                        created_by_id=actor_id,
                    )
                )

            for deliverable in data.deliverables:
                self._session.add(
                    DeliverableModel(
                        id=uuid4(),
                        project_id=project.id,
                        name=deliverable.name,
                        due_date=deliverable.due_date,
                        hours=deliverable.hours,
                        status=deliverable.status,
                        created_by_id=actor_id,
                    )
                )

            self._session.flush()
            self._refresh_budget(project.id)

        return self._repo.get_project(project.id)

    def update_project_rates(
        self,
        project_id: UUID,
        actor_id: UUID,
        hourly_rate: Decimal | None = None,
        profit_margin: Decimal | None = None,
    ) -> Project:
        """Change the default rate and/or target margin; refreshes the budget."""
        if hourly_rate is not None and hourly_rate < ZERO:
            raise NegativeValueError("hourly_rate", hourly_rate)
        with self._unit_of_work("project_rate_update", actor_id, project_id=project_id):
            self._repo.lock_project(project_id)
            model = self._session.get(ProjectModel, project_id)
            if hourly_rate is not None:
                model.hourly_rate = hourly_rate
            if profit_margin is not None:
                model.profit_margin = profit_margin
            model.updated_by_id = actor_id
            self._session.flush()
            self._refresh_budget(project_id)
        return self._repo.get_project(project_id)

    # =========================================================================
    # Team
    # =========================================================================

    def add_team_member(
        self,
        project_id: UUID,
        data: TeamMemberInput,
        actor_id: UUID,
    ) -> TeamMember:
        """
        Assign a user to a project.

        Raises:
            ProjectNotFoundError / UserNotFoundError: unknown ids.
            DuplicateAssignmentError: the user is already on the project.
        """
        member_id = uuid4()
        with self._unit_of_work(
            "team_member_addition", actor_id, project_id=project_id, user_id=data.user_id
        ):
            self._repo.lock_project(project_id)
            self._require_user(data.user_id)
            if self._team_member(project_id, data.user_id) is not None:
                raise DuplicateAssignmentError(project_id, data.user_id)
            self._session.add(
                TeamMemberModel(
                    id=member_id,
                    project_id=project_id,
                    user_id=data.user_id,
                    role=data.role,
                    hours=data.hours,
                    created_by_id=actor_id,
                )
            )
            self._session.flush()
            self._refresh_budget(project_id)
        return next(m for m in self._repo.list_team_members(project_id) if m.id == member_id)

    def update_team_member_hours(
        self,
        project_id: UUID,
        user_id: UUID,
        hours: Decimal,
        actor_id: UUID,
    ) -> TeamMember:
        """Re-plan a member's allocated hours; refreshes the budget."""
        if hours < ZERO:
            raise NegativeValueError("hours", hours)
        with self._unit_of_work(
            "team_member_update", actor_id, project_id=project_id, user_id=user_id
        ):
            self._repo.lock_project(project_id)
            model = self._team_member(project_id, user_id)
            if model is None:
                raise TeamMemberNotFoundError(project_id, user_id)
            model.hours = hours
            model.updated_by_id = actor_id
            self._session.flush()
            self._refresh_budget(project_id)
            result = model.to_dto()
        return result

    def remove_team_member(self, project_id: UUID, user_id: UUID, actor_id: UUID) -> None:
        """Unassign a user; refreshes the budget."""
        with self._unit_of_work(
            "team_member_removal", actor_id, project_id=project_id, user_id=user_id
        ):
            self._repo.lock_project(project_id)
            model = self._team_member(project_id, user_id)
            if model is None:
                raise TeamMemberNotFoundError(project_id, user_id)
            self._session.delete(model)
            self._session.flush()
            self._refresh_budget(project_id)

    # =========================================================================
    # Expenses
    # =========================================================================

    def record_expense(self, data: ExpenseInput, actor_id: UUID) -> ProjectExpense:
        """Record a non-labor cost; refreshes the budget."""
        expense = ProjectExpense(
            id=uuid4(),
            project_id=data.project_id,
            name=data.name,
            amount=data.amount,
            type=data.type,
            date=data.date,
            description=data.description,
        )
        with self._unit_of_work(
            "expense_recording",
            actor_id,
            project_id=data.project_id,
            amount=data.amount,
            expense_type=data.type,
        ):
            self._repo.lock_project(data.project_id)
            self._session.add(ProjectExpenseModel.from_dto(expense, created_by_id=actor_id))
            self._session.flush()
            self._refresh_budget(data.project_id)
        return expense

    def delete_expense(self, project_id: UUID, expense_id: UUID, actor_id: UUID) -> None:
        """
        Delete an expense; refreshes the budget.

        Raises:
            ExpenseNotFoundError: no such expense on this project.
        """
        with self._unit_of_work(
            "expense_deletion", actor_id, project_id=project_id, expense_id=expense_id
        ):
            self._repo.lock_project(project_id)
            model = self._session.get(ProjectExpenseModel, expense_id)
            if model is None or model.project_id != project_id:
                raise ExpenseNotFoundError(expense_id)
            self._session.delete(model)
            self._session.flush()
            self._refresh_budget(project_id)

    # =========================================================================
    # Time and deliverables
    # =========================================================================

    def log_time(self, data: TimeLogInput, actor_id: UUID) -> TimeLog:
        """Book time.  Logged time never changes the stored budget."""
        log_id = uuid4()
        with self._unit_of_work(
            "time_logging",
            actor_id,
            project_id=data.project_id,
            user_id=data.user_id,
            hours=data.hours,
        ):
            self._repo.get_project(data.project_id)
            self._require_user(data.user_id)
            model = TimeLogModel(
                id=log_id,
                project_id=data.project_id,
                user_id=data.user_id,
                task_id=data.task_id,
                date=data.date,
                hours=data.hours,
                billable=data.billable,
                start_time=data.start_time,
                end_time=data.end_time,
                description=data.description,
                created_by_id=actor_id,
            )
            self._session.add(model)
            self._session.flush()
            result = model.to_dto()
        return result

    def add_deliverable(
        self,
        project_id: UUID,
        data: DeliverableInput,
        actor_id: UUID,
    ) -> Deliverable:
        deliverable = Deliverable(
            id=uuid4(),
            project_id=project_id,
            name=data.name,
            due_date=data.due_date,
            hours=data.hours,
            status=data.status,
        )
        with self._unit_of_work("deliverable_addition", actor_id, project_id=project_id):
            self._repo.get_project(project_id)
            self._session.add(DeliverableModel.from_dto(deliverable, created_by_id=actor_id))
        return deliverable

    def update_deliverable_status(
        self,
        project_id: UUID,
        deliverable_id: UUID,
        status: str,
        actor_id: UUID,
    ) -> Deliverable:
        """
        Move a deliverable to another status.

        Raises:
            InvalidStatusError: status is not a ``DeliverableStatus`` value.
            DeliverableNotFoundError: no such deliverable on this project.
        """
        if status not in DeliverableStatus.values():
            raise InvalidStatusError(status, DeliverableStatus.values())
        with self._unit_of_work(
            "deliverable_status_update",
            actor_id,
            project_id=project_id,
            deliverable_id=deliverable_id,
            status=status,
        ):
            model = self._session.get(DeliverableModel, deliverable_id)
            if model is None or model.project_id != project_id:
                raise DeliverableNotFoundError(deliverable_id)
            model.status = status
            model.updated_by_id = actor_id
            self._session.flush()
            result = model.to_dto()
        return result

    # =========================================================================
    # Financial views (read-only)
    # =========================================================================

    def project_financials(
        self,
        project_id: UUID,
        labor_mode: LaborMode = LaborMode.ACTUAL,
    ) -> ProjectFinancials:
        """
        Budget position of a project.

        The budget is derived from planned team cost plus expenses and the
        target margin.  Actual cost uses ``labor_mode``: ACTUAL costs
        billable logged time, PLANNED costs the team allocation.
        """
        labor_mode = LaborMode(labor_mode)
        project = self._repo.get_project(project_id)
        expenses = self._repo.list_expenses(project_id)
        planned = aggregate_project_cost(
            project.hourly_rate,
            expenses,
            members=self._repo.list_team_members(project_id),
            mode=LaborMode.PLANNED,
        )
        budget = derive_budget(planned.total_cost, project.profit_margin)

        if labor_mode is LaborMode.PLANNED:
            actual = planned
        else:
            actual = aggregate_project_cost(
                project.hourly_rate,
                expenses,
                logs=self._repo.list_time_logs(project_id),
                mode=LaborMode.ACTUAL,
            )

        thresholds = self._settings.budget_thresholds
        variance = compute_variance(budget, actual.total_cost)
        utilization = budget_utilization(actual.total_cost, budget, thresholds=thresholds)
        health = classify_budget_health(utilization, budget, actual.total_cost, thresholds)
        target = target_profit(actual.total_cost, project.profit_margin)

        return ProjectFinancials(
            project_id=project_id,
            labor_mode=labor_mode.value,
            total_labor_cost=self._money(actual.labor_cost),
            total_expenses=self._money(actual.expenses_cost),
            total_actual_cost=self._money(actual.total_cost),
            budget=self._money(budget),
            budget_variance=self._money(variance.variance),
            budget_utilization_percent=self._percent(utilization.display_percent),
            raw_utilization_percent=self._percent(utilization.raw_percent),
            is_over_budget=utilization.is_over_budget,
            health=health.value,
            target_profit_margin=project.profit_margin,
            target_profit_amount=self._money(target.target_profit_amount),
            revenue_target=self._money(target.revenue_target),
        )

    def project_budget_view(self, project_id: UUID) -> ProjectBudgetView:
        """Logged hours and labor cost against the derived budget and estimate."""
        project = self._repo.get_project(project_id)
        budget = self._derived_budget(project)
        summary = actual_labor_cost(self._repo.list_time_logs(project_id), project.hourly_rate)
        actual_cost = summary.labor_cost + summary.non_billable_cost
        utilization = budget_utilization(
            actual_cost, budget, thresholds=self._settings.budget_thresholds
        )
        return ProjectBudgetView(
            project_id=project_id,
            budget=self._money(budget),
            hourly_rate=project.hourly_rate,
            estimated_hours=project.estimated_hours,
            actual_hours=summary.total_hours,
            billable_hours=summary.billable_hours,
            non_billable_hours=summary.non_billable_hours,
            actual_cost=self._money(actual_cost),
            billable_value=self._money(summary.labor_cost),
            budget_remaining=self._money(budget - actual_cost),
            budget_utilization_percent=self._percent(utilization.raw_percent),
            hours_utilization_percent=self._percent(
                hours_utilization(summary.total_hours, project.estimated_hours)
            ),
        )

    def project_performance(self, project_id: UUID) -> ProjectPerformance:
        """
        Hours, deliverable completion and realized profitability.

        Revenue is the billable value of logged time; cost is every logged
        hour at its resolved rate.
        """
        project = self._repo.get_project(project_id)
        summary = actual_labor_cost(self._repo.list_time_logs(project_id), project.hourly_rate)
        completion = deliverable_completion(self._repo.list_deliverables(project_id))
        profit = compute_profit_margin(
            summary.labor_cost, summary.labor_cost + summary.non_billable_cost
        )
        return ProjectPerformance(
            project_id=project_id,
            total_hours=summary.total_hours,
            billable_hours=summary.billable_hours,
            billable_percentage=self._percent(
                billable_percentage(summary.billable_hours, summary.total_hours)
            ),
            deliverable_completion=CompletionStat(
                completed=completion.completed,
                total=completion.total,
                percentage=self._percent(completion.percentage),
            ),
            financial=PerformanceFinancials(
                revenue=self._money(profit.revenue),
                cost=self._money(profit.cost),
                profit=self._money(profit.profit),
                profit_margin=self._percent(profit.margin),
            ),
        )
