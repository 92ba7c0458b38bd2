"""
Boundary Input Records (``profit_modules.project.inputs``).

Responsibility
--------------
Explicit, validated records for everything a caller can submit: new
projects with their team and deliverables, expenses, time logs, and
report date ranges.  ``from_dict()`` constructors accept loosely typed
payloads (JSON bodies, query strings) and coerce them to ``Decimal``,
``date``, ``time`` and ``UUID``.

Architecture position
---------------------
**Modules layer** -- pure data with ZERO I/O.  Built by whatever host
framework sits in front of ``ProjectService`` / ``ReportingService``.

Invariants enforced
-------------------
* Validation happens in ``__post_init__`` so direct construction and
  ``from_dict()`` enforce the same rules.
* Hours, rates and amounts are non-negative ``Decimal``.
* Every date range has ``start <= end``.
* Deliverable status is one of ``DeliverableStatus``.

Failure modes
-------------
* ``MissingFieldError`` -- required key absent or blank.
* ``InvalidFieldValueError`` -- value cannot be coerced.
* ``NegativeValueError`` -- negative hours, rate or amount.
* ``InvalidDateRangeError`` -- start after end.
* ``InvalidStatusError`` -- unknown deliverable status.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

from profit_kernel.db.types import ZERO, to_decimal
from profit_kernel.exceptions import (
    InvalidDateRangeError,
    InvalidFieldValueError,
    InvalidStatusError,
    MissingFieldError,
    NegativeValueError,
)
from profit_modules.project.models import DEFAULT_PROJECT_STATUS, DeliverableStatus

# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

_MISSING = object()


def _get(data: Mapping[str, Any], *keys: str) -> Any:
    """First present, non-None value among ``keys`` (camelCase aliases)."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return _MISSING


def _required_str(data: Mapping[str, Any], field: str, *aliases: str) -> str:
    value = _get(data, field, *aliases)
    if value is _MISSING or not str(value).strip():
        raise MissingFieldError(field)
    return str(value).strip()


def _optional_str(data: Mapping[str, Any], field: str, *aliases: str) -> str | None:
    value = _get(data, field, *aliases)
    if value is _MISSING:
        return None
    text = str(value).strip()
    return text or None


def _decimal(
    data: Mapping[str, Any],
    field: str,
    *aliases: str,
    default: Decimal | None = None,
    required: bool = False,
) -> Decimal | None:
    value = _get(data, field, *aliases)
    if value is _MISSING or value == "":
        if required:
            raise MissingFieldError(field)
        return default
    return to_decimal(value, field)


def parse_date(value: Any, field: str) -> date:
    """Accept a ``date``, a ``datetime`` or an ISO-8601 string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            raise InvalidFieldValueError(field, value, "ISO date") from None
    raise InvalidFieldValueError(field, value, "ISO date")


def _date(
    data: Mapping[str, Any], field: str, *aliases: str, required: bool = False
) -> date | None:
    value = _get(data, field, *aliases)
    if value is _MISSING or value == "":
        if required:
            raise MissingFieldError(field)
        return None
    return parse_date(value, field)


def _time(data: Mapping[str, Any], field: str, *aliases: str) -> time | None:
    value = _get(data, field, *aliases)
    if value is _MISSING or value == "":
        return None
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidFieldValueError(field, value, "HH:MM time") from None


def _uuid(
    data: Mapping[str, Any], field: str, *aliases: str, required: bool = False
) -> UUID | None:
    value = _get(data, field, *aliases)
    if value is _MISSING or value == "":
        if required:
            raise MissingFieldError(field)
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise InvalidFieldValueError(field, value, "UUID") from None


def _bool(data: Mapping[str, Any], field: str, default: bool) -> bool:
    value = _get(data, field)
    if value is _MISSING:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise InvalidFieldValueError(field, value, "boolean")


def _non_negative(field: str, value: Decimal | None) -> None:
    if value is not None and value < ZERO:
        raise NegativeValueError(field, value)


def _ordered(start: date | None, end: date | None) -> None:
    if start is not None and end is not None and start > end:
        raise InvalidDateRangeError(start, end)


# ---------------------------------------------------------------------------
# Date range
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar range used by report filters."""

    start: date
    end: date

    def __post_init__(self) -> None:
        _ordered(self.start, self.end)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DateRange:
        """Accepts ``from``/``to`` (query-string style) or ``start``/``end``."""
        return cls(
            start=_date(data, "from", "start", required=True),
            end=_date(data, "to", "end", required=True),
        )


# ---------------------------------------------------------------------------
# Team and deliverables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TeamMemberInput:
    user_id: UUID
    hours: Decimal = ZERO
    role: str | None = None

    def __post_init__(self) -> None:
        _non_negative("hours", self.hours)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TeamMemberInput:
        return cls(
            user_id=_uuid(data, "user_id", "userId", required=True),
            hours=_decimal(data, "hours", default=ZERO),
            role=_optional_str(data, "role"),
        )


@dataclass(frozen=True)
class DeliverableInput:
    name: str
    due_date: date
    hours: Decimal = ZERO
    status: str = DeliverableStatus.NOT_STARTED.value

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise MissingFieldError("name")
        _non_negative("hours", self.hours)
        if self.status not in DeliverableStatus.values():
            raise InvalidStatusError(self.status, DeliverableStatus.values())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DeliverableInput:
        return cls(
            name=_required_str(data, "name"),
            due_date=_date(data, "due_date", "dueDate", required=True),
            hours=_decimal(data, "hours", default=ZERO),
            status=_optional_str(data, "status") or DeliverableStatus.NOT_STARTED.value,
        )


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectInput:
    """
    A new project with its initial team and deliverables.

    ``profit_margin`` of ``None`` means "use the configured default".
    """

    name: str
    client_id: UUID | None = None
    description: str | None = None
    status: str = DEFAULT_PROJECT_STATUS
    start_date: date | None = None
    end_date: date | None = None
    hourly_rate: Decimal = ZERO
    estimated_hours: Decimal = ZERO
    profit_margin: Decimal | None = None
    team: tuple[TeamMemberInput, ...] = ()
    deliverables: tuple[DeliverableInput, ...] = ()

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise MissingFieldError("name")
        _non_negative("hourly_rate", self.hourly_rate)
        _non_negative("estimated_hours", self.estimated_hours)
        _ordered(self.start_date, self.end_date)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProjectInput:
        team = data.get("team") or data.get("teamMembers") or ()
        deliverables = data.get("deliverables") or ()
        return cls(
            name=_required_str(data, "name"),
            client_id=_uuid(data, "client_id", "clientId"),
            description=_optional_str(data, "description"),
            status=_optional_str(data, "status") or DEFAULT_PROJECT_STATUS,
            start_date=_date(data, "start_date", "startDate"),
            end_date=_date(data, "end_date", "endDate"),
            hourly_rate=_decimal(data, "hourly_rate", "hourlyRate", default=ZERO),
            estimated_hours=_decimal(
                data, "estimated_hours", "estimatedHours", default=ZERO
            ),
            profit_margin=_decimal(data, "profit_margin", "profitMargin"),
            team=tuple(TeamMemberInput.from_dict(m) for m in team),
            deliverables=tuple(DeliverableInput.from_dict(d) for d in deliverables),
        )


# ---------------------------------------------------------------------------
# Expenses and time
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExpenseInput:
    project_id: UUID
    name: str
    amount: Decimal
    type: str
    date: date
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise MissingFieldError("name")
        if not self.type or not self.type.strip():
            raise MissingFieldError("type")
        _non_negative("amount", self.amount)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExpenseInput:
        return cls(
            project_id=_uuid(data, "project_id", "projectId", required=True),
            name=_required_str(data, "name"),
            amount=_decimal(data, "amount", required=True),
            type=_required_str(data, "type"),
            date=_date(data, "date", required=True),
            description=_optional_str(data, "description"),
        )


@dataclass(frozen=True)
class TimeLogInput:
    project_id: UUID
    user_id: UUID
    date: date
    hours: Decimal
    billable: bool = True
    task_id: str | None = None
    start_time: time | None = None
    end_time: time | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        _non_negative("hours", self.hours)
        if (
            self.start_time is not None
            and self.end_time is not None
            and self.end_time < self.start_time
        ):
            raise InvalidFieldValueError("end_time", self.end_time, "time after start_time")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TimeLogInput:
        return cls(
            project_id=_uuid(data, "project_id", "projectId", required=True),
            user_id=_uuid(data, "user_id", "userId", required=True),
            date=_date(data, "date", required=True),
            hours=_decimal(data, "hours", required=True),
            billable=_bool(data, "billable", True),
            task_id=_optional_str(data, "task_id", "taskId"),
            start_time=_time(data, "start_time", "startTime"),
            end_time=_time(data, "end_time", "endTime"),
            description=_optional_str(data, "description"),
        )
