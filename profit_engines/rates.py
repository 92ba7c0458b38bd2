"""
profit_engines.rates -- Effective hourly rate resolution.

Responsibility:
    Decide which hourly rate applies to a piece of work: the assigned
    user's personal rate when one is set, otherwise the project's default
    rate, otherwise zero.

Architecture position:
    Engines -- the leaf of the financial model.  Pure, zero I/O.
    Consumed by ``profit_engines.cost_aggregation`` and nothing else
    should re-implement the fallback.

Invariants enforced:
    - A user rate of ``Decimal("0")`` is a real rate and is honoured; only
      ``None`` falls through to the project rate.
    - The result is never ``None``.

Failure modes:
    - None.  Negative rates are rejected by the aggregation layer, which
      knows which record they came from.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from profit_kernel.db.types import ZERO


class RatedRecord(Protocol):
    """Anything that may carry a personal rate (team member, time log)."""

    user_rate: Decimal | None


class RatedProject(Protocol):
    hourly_rate: Decimal | None


def resolve_rate(
    user_rate: Decimal | None,
    project_rate: Decimal | None,
) -> Decimal:
    """
    Return the effective hourly rate.

    Examples:
        resolve_rate(Decimal("150"), Decimal("100")) -> Decimal("150")
        resolve_rate(None, Decimal("100"))           -> Decimal("100")
        resolve_rate(Decimal("0"), Decimal("100"))   -> Decimal("0")
        resolve_rate(None, None)                     -> Decimal("0")
    """
    if user_rate is not None:
        return user_rate
    if project_rate is not None:
        return project_rate
    return ZERO


def resolve_member_rate(member: RatedRecord, project: RatedProject) -> Decimal:
    """Effective rate for a team assignment on ``project``."""
    return resolve_rate(member.user_rate, project.hourly_rate)


def resolve_log_rate(log: RatedRecord, project: RatedProject) -> Decimal:
    """Effective rate for a time log booked against ``project``."""
    return resolve_rate(log.user_rate, project.hourly_rate)
