"""
Project Repository (``profit_modules.project.repository``).

Responsibility
--------------
The persistence boundary of the financial model.  ``ProjectRepository``
is the abstract interface the services depend on;
``SqlAlchemyProjectRepository`` implements it over a caller-owned
SQLAlchemy ``Session``.

Architecture position
---------------------
**Modules layer** -- read side plus the single budget write.  Returns
frozen DTOs from ``profit_modules.project.models``, never ORM instances.

Invariants enforced
-------------------
* Session ownership: the repository never commits, rolls back or closes
  the session.  ``update_project_budget`` flushes only.
* Not-found lookups raise the typed ``NotFoundError`` subclass; they are
  never swallowed or turned into ``None``.
* Team members and time logs carry their user's name and personal rate.
* List results are ordered deterministically (by date, then id, or by
  name, then id).

Failure modes
-------------
* ``ProjectNotFoundError`` / ``UserNotFoundError`` from single-record
  lookups and ``update_project_budget``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from profit_kernel.exceptions import ProjectNotFoundError, UserNotFoundError
from profit_kernel.logging_config import get_logger
from profit_modules.project.inputs import DateRange
from profit_modules.project.models import (
    Deliverable,
    Project,
    ProjectExpense,
    TeamMember,
    TimeLog,
    User,
)
from profit_modules.project.orm import (
    DeliverableModel,
    ProjectExpenseModel,
    ProjectModel,
    TeamMemberModel,
    TimeLogModel,
    UserModel,
)

logger = get_logger("modules.project.repository")


class ProjectRepository(ABC):
    """
    Abstract persistence interface consumed by the services.

    Contract:
        Implementations return DTOs and raise typed NotFound errors.  They
        do not own the transaction.
    """

    @abstractmethod
    def get_project(self, project_id: UUID) -> Project:
        """Raises ProjectNotFoundError."""

    @abstractmethod
    def list_projects(
        self,
        project_id: UUID | None = None,
        starts_on_or_after: date | None = None,
        ends_on_or_before: date | None = None,
    ) -> list[Project]:
        """Projects filtered by id and/or date window, ordered by name."""

    @abstractmethod
    def lock_project(self, project_id: UUID) -> Project:
        """Take a row lock on the project (FOR UPDATE) and return it."""

    @abstractmethod
    def update_project_budget(self, project_id: UUID, new_budget: Decimal) -> None:
        """Raises ProjectNotFoundError."""

    @abstractmethod
    def list_team_members(self, project_id: UUID) -> list[TeamMember]:
        """Assignments joined with each user's name and hourly rate."""

    @abstractmethod
    def list_time_logs(
        self,
        project_id: UUID,
        date_range: DateRange | None = None,
        billable_only: bool = False,
    ) -> list[TimeLog]:
        """Time logs for one project, oldest first."""

    @abstractmethod
    def list_time_logs_between(
        self,
        date_range: DateRange,
        project_id: UUID | None = None,
    ) -> list[TimeLog]:
        """Time logs across projects in ``date_range``, oldest first."""

    @abstractmethod
    def list_expenses(self, project_id: UUID) -> list[ProjectExpense]:
        """Expenses for one project, oldest first."""

    @abstractmethod
    def list_expenses_between(self, date_range: DateRange) -> list[ProjectExpense]:
        """Expenses across projects in ``date_range``, oldest first."""

    @abstractmethod
    def list_deliverables(self, project_id: UUID) -> list[Deliverable]:
        """Deliverables for one project by due date."""

    @abstractmethod
    def get_user(self, user_id: UUID) -> User:
        """Raises UserNotFoundError."""

    @abstractmethod
    def list_users(self) -> list[User]:
        """All users by name."""

    @abstractmethod
    def list_project_ids_for_user(self, user_id: UUID) -> list[UUID]:
        """Ids of every project the user is assigned to."""


class SqlAlchemyProjectRepository(ProjectRepository):
    """
    ``ProjectRepository`` over a SQLAlchemy session.

    Guarantees:
        - No commit, rollback or close is ever issued.
        - ``lock_project`` uses ``SELECT ... FOR UPDATE`` (a no-op on
          SQLite, which serializes writers itself).
    """

    def __init__(self, session: Session):
        self.session = session

    # -- projects ------------------------------------------------------------

    def _project_model(self, project_id: UUID, for_update: bool = False) -> ProjectModel:
        stmt = select(ProjectModel).where(ProjectModel.id == project_id)
        if for_update:
            stmt = stmt.with_for_update()
        model = self.session.execute(stmt).scalar_one_or_none()
        if model is None:
            logger.info("project_not_found", extra={"project_id": str(project_id)})
            raise ProjectNotFoundError(project_id)
        return model

    def get_project(self, project_id: UUID) -> Project:
        return self._project_model(project_id).to_dto()

    def list_projects(
        self,
        project_id: UUID | None = None,
        starts_on_or_after: date | None = None,
        ends_on_or_before: date | None = None,
    ) -> list[Project]:
        stmt = select(ProjectModel)
        if project_id is not None:
            stmt = stmt.where(ProjectModel.id == project_id)
        if starts_on_or_after is not None:
            stmt = stmt.where(ProjectModel.start_date >= starts_on_or_after)
        if ends_on_or_before is not None:
            stmt = stmt.where(ProjectModel.end_date <= ends_on_or_before)
        stmt = stmt.order_by(ProjectModel.name, ProjectModel.id)
        return [m.to_dto() for m in self.session.execute(stmt).scalars()]

    def lock_project(self, project_id: UUID) -> Project:
        return self._project_model(project_id, for_update=True).to_dto()

    def update_project_budget(self, project_id: UUID, new_budget: Decimal) -> None:
        model = self._project_model(project_id)
        model.budget = new_budget
        self.session.flush()

    # -- team ----------------------------------------------------------------

    def list_team_members(self, project_id: UUID) -> list[TeamMember]:
        stmt = (
            select(TeamMemberModel)
            .join(UserModel, TeamMemberModel.user_id == UserModel.id)
            .where(TeamMemberModel.project_id == project_id)
            .order_by(UserModel.name, TeamMemberModel.id)
        )
        return [m.to_dto() for m in self.session.execute(stmt).unique().scalars()]

    # -- time ----------------------------------------------------------------

    def list_time_logs(
        self,
        project_id: UUID,
        date_range: DateRange | None = None,
        billable_only: bool = False,
    ) -> list[TimeLog]:
        stmt = select(TimeLogModel).where(TimeLogModel.project_id == project_id)
        if date_range is not None:
            stmt = stmt.where(
                TimeLogModel.date >= date_range.start,
                TimeLogModel.date <= date_range.end,
            )
        if billable_only:
            stmt = stmt.where(TimeLogModel.billable.is_(True))
        stmt = stmt.order_by(TimeLogModel.date, TimeLogModel.id)
        return [m.to_dto() for m in self.session.execute(stmt).unique().scalars()]

    def list_time_logs_between(
        self,
        date_range: DateRange,
        project_id: UUID | None = None,
    ) -> list[TimeLog]:
        stmt = select(TimeLogModel).where(
            TimeLogModel.date >= date_range.start,
            TimeLogModel.date <= date_range.end,
        )
        if project_id is not None:
            stmt = stmt.where(TimeLogModel.project_id == project_id)
        stmt = stmt.order_by(TimeLogModel.date, TimeLogModel.id)
        return [m.to_dto() for m in self.session.execute(stmt).unique().scalars()]

    # -- expenses ------------------------------------------------------------

    def list_expenses(self, project_id: UUID) -> list[ProjectExpense]:
        stmt = (
            select(ProjectExpenseModel)
            .where(ProjectExpenseModel.project_id == project_id)
            .order_by(ProjectExpenseModel.date, ProjectExpenseModel.id)
        )
        return [m.to_dto() for m in self.session.execute(stmt).scalars()]

    def list_expenses_between(self, date_range: DateRange) -> list[ProjectExpense]:
        stmt = (
            select(ProjectExpenseModel)
            .where(
                ProjectExpenseModel.date >= date_range.start,
                ProjectExpenseModel.date <= date_range.end,
            )
            .order_by(ProjectExpenseModel.date, ProjectExpenseModel.id)
        )
        return [m.to_dto() for m in self.session.execute(stmt).scalars()]

    # -- deliverables --------------------------------------------------------

    def list_deliverables(self, project_id: UUID) -> list[Deliverable]:
        stmt = (
            select(DeliverableModel)
            .where(DeliverableModel.project_id == project_id)
            .order_by(DeliverableModel.due_date, DeliverableModel.id)
        )
        return [m.to_dto() for m in self.session.execute(stmt).scalars()]

    # -- users ---------------------------------------------------------------

    def get_user(self, user_id: UUID) -> User:
        model = self.session.get(UserModel, user_id)
        if model is None:
            raise UserNotFoundError(user_id)
        return model.to_dto()

    def list_users(self) -> list[User]:
        stmt = select(UserModel).order_by(UserModel.name, UserModel.id)
        return [m.to_dto() for m in self.session.execute(stmt).scalars()]

    def list_project_ids_for_user(self, user_id: UUID) -> list[UUID]:
        stmt = (
            select(TeamMemberModel.project_id)
            .where(TeamMemberModel.user_id == user_id)
            .order_by(TeamMemberModel.project_id)
        )
        return list(self.session.execute(stmt).scalars())
