"""
profit_engines.hours -- Logged-hours summaries and completion ratios.

Responsibility:
    Billable percentage, hours utilization against an estimate, per-user
    billable-hours summaries, and deliverable completion.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by ``ProjectService.project_performance`` /
    ``project_budget_view`` and ``ReportingService.billable_hours_report``.

Invariants enforced:
    - Zero denominators return zero (billable percentage, completion) or
      follow the utilization policy (hours utilization); never raise.
    - ``summarize_billable_hours`` preserves first-seen order of users and
      of projects within a user, so the output is deterministic for a
      given input order.

Failure modes:
    - NegativeValueError on a log with negative hours.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol
from uuid import UUID

from profit_engines.tracer import traced_engine
from profit_kernel.db.types import HUNDRED, ZERO
from profit_kernel.exceptions import NegativeValueError

COMPLETED_STATUS = "Completed"


class HoursLog(Protocol):
    project_id: UUID
    user_id: UUID
    hours: Decimal
    billable: bool


class NamedUser(Protocol):
    id: UUID
    name: str
    role: str | None


class NamedProject(Protocol):
    id: UUID
    name: str


class StatusRecord(Protocol):
    status: str


@dataclass(frozen=True)
class ProjectHours:
    project_id: UUID
    name: str
    hours: Decimal
    billable: Decimal


@dataclass(frozen=True)
class UserHoursSummary:
    """Hours one person logged in a period, with a per-project split."""

    user_id: UUID
    name: str
    role: str | None
    total_hours: Decimal
    billable_hours: Decimal
    billable_percentage: Decimal
    projects: tuple[ProjectHours, ...]


@dataclass(frozen=True)
class CompletionSummary:
    completed: int
    total: int
    percentage: Decimal


def billable_percentage(billable_hours: Decimal, total_hours: Decimal) -> Decimal:
    """Billable share of total hours in percent; 0 when nothing was logged."""
    if total_hours == ZERO:
        return ZERO
    return billable_hours / total_hours * HUNDRED


def hours_utilization(actual_hours: Decimal, estimated_hours: Decimal) -> Decimal:
    """
    Logged hours as a percentage of the estimate, unclamped.

    No estimate: 100 when anything was logged, else 0.
    """
    if estimated_hours == ZERO:
        return HUNDRED if actual_hours > ZERO else ZERO
    return actual_hours / estimated_hours * HUNDRED


@traced_engine("hours", "1.0")
def summarize_billable_hours(
    logs: Iterable[HoursLog],
    users: Mapping[UUID, NamedUser],
    projects: Mapping[UUID, NamedProject],
) -> tuple[UserHoursSummary, ...]:
    """
    Group time logs by user, then by project.

    ``billable_percentage`` is rounded half-up to a whole percent.
    Users or projects missing from the lookup maps are labelled by id.
    """
    totals: dict[UUID, list[Decimal]] = {}
    per_project: dict[UUID, dict[UUID, list[Decimal]]] = {}

    for log in logs:
        if log.hours < ZERO:
            raise NegativeValueError("hours", log.hours)
        user_totals = totals.setdefault(log.user_id, [ZERO, ZERO])
        project_totals = per_project.setdefault(log.user_id, {}).setdefault(
            log.project_id, [ZERO, ZERO]
        )
        user_totals[0] += log.hours
        project_totals[0] += log.hours
        if log.billable:
            user_totals[1] += log.hours
            project_totals[1] += log.hours

    summaries = []
    for user_id, (total, billable) in totals.items():
        user = users.get(user_id)
        project_rows = []
        for project_id, (hours, billable_hours) in per_project[user_id].items():
            project = projects.get(project_id)
            project_rows.append(
                ProjectHours(
                    project_id=project_id,
                    name=project.name if project is not None else str(project_id),
                    hours=hours,
                    billable=billable_hours,
                )
            )
        summaries.append(
            UserHoursSummary(
                user_id=user_id,
                name=user.name if user is not None else str(user_id),
                role=user.role if user is not None else None,
                total_hours=total,
                billable_hours=billable,
                billable_percentage=billable_percentage(billable, total).quantize(
                    Decimal("1"), rounding=ROUND_HALF_UP
                ),
                projects=tuple(project_rows),
            )
        )
    return tuple(summaries)


def deliverable_completion(deliverables: Iterable[StatusRecord]) -> CompletionSummary:
    """Count of completed deliverables and the completed share in percent."""
    total = 0
    completed = 0
    for deliverable in deliverables:
        total += 1
        if deliverable.status == COMPLETED_STATUS:
            completed += 1
    percentage = ZERO if total == 0 else Decimal(completed) / Decimal(total) * HUNDRED
    return CompletionSummary(completed=completed, total=total, percentage=percentage)
