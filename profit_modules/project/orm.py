"""
SQLAlchemy ORM persistence models for the project profitability module.

Responsibility
--------------
Database-backed persistence for clients, users, projects, team
assignments, time logs, project expenses and deliverables.  Derived
figures (labor cost, variance, utilization) are never stored, with the
single exception of ``ProjectModel.budget``, a denormalized copy of the
derived budget kept current by ``ProjectService``.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``SqlAlchemyProjectRepository``
and ``ProjectService``.  Inherits from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* All monetary, rate and hour fields use ``Decimal`` (Numeric(38,9)) --
  NEVER float.
* (project_id, user_id) is unique on team assignments.
* Deleting a project deletes its assignments, logs, expenses and
  deliverables (``delete-orphan`` cascades).
"""

import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from profit_kernel.db.base import TrackedBase

# ---------------------------------------------------------------------------
# ClientModel
# ---------------------------------------------------------------------------


class ClientModel(TrackedBase):
    """Maps to the ``Client`` DTO in ``profit_modules.project.models``."""

    __tablename__ = "profit_clients"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    projects: Mapped[list["ProjectModel"]] = relationship(
        "ProjectModel",
        back_populates="client",
    )

    def to_dto(self):
        from profit_modules.project.models import Client

        return Client(id=self.id, name=self.name, email=self.email)

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ClientModel":
        return cls(
            id=dto.id,
            name=dto.name,
            email=dto.email,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<ClientModel {self.name}>"


# ---------------------------------------------------------------------------
# UserModel
# ---------------------------------------------------------------------------


class UserModel(TrackedBase):
    """
    A person who can be staffed on projects.

    Guarantees:
        - ``hourly_rate`` is nullable; ``NULL`` means "use the project rate".
        - ``email`` is unique when present.
    """

    __tablename__ = "profit_users"

    __table_args__ = (
        UniqueConstraint("email", name="uq_profit_user_email"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str | None] = mapped_column(String(100), nullable=True)
    hourly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)

    def to_dto(self):
        from profit_modules.project.models import User

        return User(
            id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            hourly_rate=self.hourly_rate,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "UserModel":
        return cls(
            id=dto.id,
            name=dto.name,
            email=dto.email,
            role=dto.role,
            hourly_rate=dto.hourly_rate,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<UserModel {self.name}>"


# ---------------------------------------------------------------------------
# ProjectModel
# ---------------------------------------------------------------------------


class ProjectModel(TrackedBase):
    """
    A client project.

    Maps to the ``Project`` DTO in ``profit_modules.project.models``.

    Guarantees:
        - ``budget`` is >= 0 and equals the derived budget as of the last
          committed mutation that affects it.
        - ``profit_margin`` is a percentage (20 means 20 %).
    """

    __tablename__ = "profit_projects"

    __table_args__ = (
        Index("idx_profit_project_status", "status"),
        Index("idx_profit_project_client", "client_id"),
    )

    client_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("profit_clients.id"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="Planning")
    start_date: Mapped[datetime.date | None] = mapped_column(nullable=True)
    end_date: Mapped[datetime.date | None] = mapped_column(nullable=True)
    budget: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    hourly_rate: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    estimated_hours: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    profit_margin: Mapped[Decimal] = mapped_column(default=Decimal("20"))

    # Relationships
    client: Mapped["ClientModel | None"] = relationship(
        "ClientModel",
        back_populates="projects",
    )

    team_members: Mapped[list["TeamMemberModel"]] = relationship(
        "TeamMemberModel",
        back_populates="project",
        cascade="all, delete-orphan",
    )

    time_logs: Mapped[list["TimeLogModel"]] = relationship(
        "TimeLogModel",
        back_populates="project",
        cascade="all, delete-orphan",
    )

    expenses: Mapped[list["ProjectExpenseModel"]] = relationship(
        "ProjectExpenseModel",
        back_populates="project",
        cascade="all, delete-orphan",
    )

    deliverables: Mapped[list["DeliverableModel"]] = relationship(
        "DeliverableModel",
        back_populates="project",
        cascade="all, delete-orphan",
    )

    def to_dto(self):
        from profit_modules.project.models import Project

        return Project(
            id=self.id,
            name=self.name,
            client_id=self.client_id,
            description=self.description,
            status=self.status,
            start_date=self.start_date,
            end_date=self.end_date,
            budget=self.budget,
            hourly_rate=self.hourly_rate,
            estimated_hours=self.estimated_hours,
            profit_margin=self.profit_margin,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ProjectModel":
        return cls(
            id=dto.id,
            name=dto.name,
            client_id=dto.client_id,
            description=dto.description,
            status=dto.status,
            start_date=dto.start_date,
            end_date=dto.end_date,
            budget=dto.budget,
            hourly_rate=dto.hourly_rate,
            estimated_hours=dto.estimated_hours,
            profit_margin=dto.profit_margin,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<ProjectModel {self.name} [{self.status}]>"


# ---------------------------------------------------------------------------
# TeamMemberModel
# ---------------------------------------------------------------------------


class TeamMemberModel(TrackedBase):
    """
    A user's planned allocation to a project.

    Guarantees:
        - (project_id, user_id) is unique.
        - ``hours`` is the planned allocation, never time-log actuals.
    """

    __tablename__ = "profit_team_members"

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_profit_team_member"),
        Index("idx_profit_team_member_user", "user_id"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("profit_projects.id"), nullable=False)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("profit_users.id"), nullable=False)
    role: Mapped[str | None] = mapped_column(String(100), nullable=True)
    hours: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    project: Mapped["ProjectModel"] = relationship(
        "ProjectModel",
        back_populates="team_members",
    )

    user: Mapped["UserModel"] = relationship("UserModel", lazy="joined")

    def to_dto(self):
        from profit_modules.project.models import TeamMember

        return TeamMember(
            id=self.id,
            project_id=self.project_id,
            user_id=self.user_id,
            role=self.role,
            hours=self.hours,
            user_name=self.user.name if self.user is not None else "",
            user_rate=self.user.hourly_rate if self.user is not None else None,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "TeamMemberModel":
        return cls(
            id=dto.id,
            project_id=dto.project_id,
            user_id=dto.user_id,
            role=dto.role,
            hours=dto.hours,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<TeamMemberModel {self.user_id} on {self.project_id}>"


# ---------------------------------------------------------------------------
# TimeLogModel
# ---------------------------------------------------------------------------


class TimeLogModel(TrackedBase):
    """
    Time actually booked by a user against a project.

    ``task_id`` is an opaque reference to an external task tracker.
    """

    __tablename__ = "profit_time_logs"

    __table_args__ = (
        Index("idx_profit_time_log_project_date", "project_id", "date"),
        Index("idx_profit_time_log_user", "user_id"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("profit_projects.id"), nullable=False)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("profit_users.id"), nullable=False)
    task_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date: Mapped[datetime.date] = mapped_column(nullable=False)
    hours: Mapped[Decimal] = mapped_column(nullable=False)
    billable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_time: Mapped[datetime.time | None] = mapped_column(nullable=True)
    end_time: Mapped[datetime.time | None] = mapped_column(nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    project: Mapped["ProjectModel"] = relationship(
        "ProjectModel",
        back_populates="time_logs",
    )

    user: Mapped["UserModel"] = relationship("UserModel", lazy="joined")

    def to_dto(self):
        from profit_modules.project.models import TimeLog

        return TimeLog(
            id=self.id,
            project_id=self.project_id,
            user_id=self.user_id,
            date=self.date,
            hours=self.hours,
            billable=self.billable,
            task_id=self.task_id,
            start_time=self.start_time,
            end_time=self.end_time,
            description=self.description,
            user_name=self.user.name if self.user is not None else "",
            user_rate=self.user.hourly_rate if self.user is not None else None,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "TimeLogModel":
        return cls(
            id=dto.id,
            project_id=dto.project_id,
            user_id=dto.user_id,
            task_id=dto.task_id,
            date=dto.date,
            hours=dto.hours,
            billable=dto.billable,
            start_time=dto.start_time,
            end_time=dto.end_time,
            description=dto.description,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<TimeLogModel {self.date} {self.hours}h>"


# ---------------------------------------------------------------------------
# ProjectExpenseModel
# ---------------------------------------------------------------------------


class ProjectExpenseModel(TrackedBase):
    """A non-labor cost charged to a project."""

    __tablename__ = "profit_project_expenses"

    __table_args__ = (
        Index("idx_profit_expense_project", "project_id"),
        Index("idx_profit_expense_date", "date"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("profit_projects.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime.date] = mapped_column(nullable=False)

    project: Mapped["ProjectModel"] = relationship(
        "ProjectModel",
        back_populates="expenses",
    )

    def to_dto(self):
        from profit_modules.project.models import ProjectExpense

        return ProjectExpense(
            id=self.id,
            project_id=self.project_id,
            name=self.name,
            amount=self.amount,
            type=self.type,
            date=self.date,
            description=self.description,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "ProjectExpenseModel":
        return cls(
            id=dto.id,
            project_id=dto.project_id,
            name=dto.name,
            amount=dto.amount,
            type=dto.type,
            date=dto.date,
            description=dto.description,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<ProjectExpenseModel {self.name}: {self.amount}>"


# ---------------------------------------------------------------------------
# DeliverableModel
# ---------------------------------------------------------------------------


class DeliverableModel(TrackedBase):
    """A dated project deliverable with an hours estimate."""

    __tablename__ = "profit_deliverables"

    __table_args__ = (
        Index("idx_profit_deliverable_project", "project_id"),
    )

    project_id: Mapped[UUID] = mapped_column(ForeignKey("profit_projects.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    due_date: Mapped[datetime.date] = mapped_column(nullable=False)
    hours: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="Not Started")

    project: Mapped["ProjectModel"] = relationship(
        "ProjectModel",
        back_populates="deliverables",
    )

    def to_dto(self):
        from profit_modules.project.models import Deliverable

        return Deliverable(
            id=self.id,
            project_id=self.project_id,
            name=self.name,
            due_date=self.due_date,
            hours=self.hours,
            status=self.status,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID) -> "DeliverableModel":
        return cls(
            id=dto.id,
            project_id=dto.project_id,
            name=dto.name,
            due_date=dto.due_date,
            hours=dto.hours,
            status=dto.status,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<DeliverableModel {self.name} [{self.status}]>"
