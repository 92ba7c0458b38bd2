"""
Project Module (``profit_modules.project``).

Responsibility
--------------
Clients, users, projects, team assignments, time logs, expenses and
deliverables: their persistence, their validated inputs, and the
per-project financial views built on ``profit_engines``.

Architecture position
---------------------
**Modules layer** -- ``ProjectService`` owns every write and keeps the
stored project budget in step with the team plan and expenses.
``ProjectRepository`` is the read boundary shared with
``profit_modules.reporting``.

Invariants enforced
-------------------
* Budget = (planned team cost + expenses) x (1 + margin / 100), derived
  on read and copied to ``Project.budget`` inside every mutation that
  changes it.
* All monetary and hour values are ``Decimal``.
"""

from profit_modules.project.inputs import (
    DateRange,
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
from profit_modules.project.repository import (
    ProjectRepository,
    SqlAlchemyProjectRepository,
)
from profit_modules.project.service import ProjectService

__all__ = [
    "Client",
    "CompletionStat",
    "DateRange",
    "Deliverable",
    "DeliverableInput",
    "DeliverableStatus",
    "ExpenseInput",
    "PerformanceFinancials",
    "Project",
    "ProjectBudgetView",
    "ProjectExpense",
    "ProjectFinancials",
    "ProjectInput",
    "ProjectPerformance",
    "ProjectRepository",
    "ProjectService",
    "SqlAlchemyProjectRepository",
    "TeamMember",
    "TeamMemberInput",
    "TimeLog",
    "TimeLogInput",
    "User",
]
