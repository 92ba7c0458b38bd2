"""
Project Domain Models (``profit_modules.project.models``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of project profitability:
clients, users, projects, team assignments, time logs, expenses and
deliverables.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Produced by
the ORM ``to_dto()`` methods, consumed by ``ProjectService``,
``ReportingService`` and (structurally) by the engines.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary, rate and hour fields use ``Decimal`` -- NEVER ``float``.
* Financial records (``ProjectFinancials``, ``ProjectBudgetView``,
  ``ProjectPerformance``) carry exact engine results; services round
  them for display before construction.
* ``TeamMember.user_rate`` and ``TimeLog.user_rate`` carry the assigned
  user's personal rate (``None`` when unset) so rate resolution needs no
  further lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from enum import Enum
from uuid import UUID

from profit_modules.reporting.render import RecordMixin


class DeliverableStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @classmethod
    def values(cls) -> tuple[str, ...]:
        return tuple(member.value for member in cls)


DEFAULT_PROJECT_STATUS = "Planning"


@dataclass(frozen=True)
class Client:
    id: UUID
    name: str
    email: str | None = None


@dataclass(frozen=True)
class User:
    """A person who can be assigned to projects and log time."""
    id: UUID
    name: str
    email: str | None = None
    role: str | None = None
    hourly_rate: Decimal | None = None


@dataclass(frozen=True)
class Project:
    """
    A client project.

    ``budget`` is the stored copy of the derived budget; financial
    summaries recompute it from team, expenses and margin.
    """
    id: UUID
    name: str
    client_id: UUID | None = None
    description: str | None = None
    status: str = DEFAULT_PROJECT_STATUS
    start_date: date | None = None
    end_date: date | None = None
    budget: Decimal = Decimal("0")
    hourly_rate: Decimal = Decimal("0")
    estimated_hours: Decimal = Decimal("0")
    profit_margin: Decimal = Decimal("20")


@dataclass(frozen=True)
class TeamMember:
    """A user's planned allocation to a project."""
    id: UUID
    project_id: UUID
    user_id: UUID
    role: str | None
    hours: Decimal
    user_name: str = ""
    user_rate: Decimal | None = None


@dataclass(frozen=True)
class TimeLog:
    """Actual time booked by a user against a project."""
    id: UUID
    project_id: UUID
    user_id: UUID
    date: date
    hours: Decimal
    billable: bool = True
    task_id: str | None = None
    start_time: time | None = None
    end_time: time | None = None
    description: str | None = None
    user_name: str = ""
    user_rate: Decimal | None = None


@dataclass(frozen=True)
class ProjectExpense:
    id: UUID
    project_id: UUID
    name: str
    amount: Decimal
    type: str
    date: date
    description: str | None = None


@dataclass(frozen=True)
class Deliverable:
    id: UUID
    project_id: UUID
    name: str
    due_date: date
    hours: Decimal = Decimal("0")
    status: str = DeliverableStatus.NOT_STARTED.value


# =========================================================================
# Financial records (returned by ProjectService)
# =========================================================================


@dataclass(frozen=True)
class ProjectFinancials(RecordMixin):
    """
    Budget position of one project.

    ``budget`` is derived on read from the planned team cost, expenses and
    the target margin.  ``total_labor_cost`` follows ``labor_mode``.
    """
    project_id: UUID
    labor_mode: str
    total_labor_cost: Decimal
    total_expenses: Decimal
    total_actual_cost: Decimal
    budget: Decimal
    budget_variance: Decimal
    budget_utilization_percent: Decimal
    raw_utilization_percent: Decimal
    is_over_budget: bool
    health: str
    target_profit_margin: Decimal
    target_profit_amount: Decimal
    revenue_target: Decimal


@dataclass(frozen=True)
class ProjectBudgetView(RecordMixin):
    """Logged hours and their labor cost against budget and estimate."""
    project_id: UUID
    budget: Decimal
    hourly_rate: Decimal
    estimated_hours: Decimal
    actual_hours: Decimal
    billable_hours: Decimal
    non_billable_hours: Decimal
    actual_cost: Decimal
    billable_value: Decimal
    budget_remaining: Decimal
    budget_utilization_percent: Decimal
    hours_utilization_percent: Decimal


@dataclass(frozen=True)
class CompletionStat(RecordMixin):
    completed: int
    total: int
    percentage: Decimal


@dataclass(frozen=True)
class PerformanceFinancials(RecordMixin):
    revenue: Decimal
    cost: Decimal
    profit: Decimal
    profit_margin: Decimal


@dataclass(frozen=True)
class ProjectPerformance(RecordMixin):
    project_id: UUID
    total_hours: Decimal
    billable_hours: Decimal
    billable_percentage: Decimal
    deliverable_completion: CompletionStat
    financial: PerformanceFinancials
