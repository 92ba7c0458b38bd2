"""Every kernel exception carries a distinct machine-readable code."""

import inspect
from decimal import Decimal
from uuid import uuid4

import pytest

from profit_kernel import exceptions
from profit_kernel.exceptions import (
    DuplicateAssignmentError,
    InvalidInputError,
    InvalidMetricError,
    NotFoundError,
    ProfitKernelError,
    ProjectNotFoundError,
    TeamMemberNotFoundError,
)


def _exception_classes():
    return [
        cls
        for _, cls in inspect.getmembers(exceptions, inspect.isclass)
        if issubclass(cls, ProfitKernelError)
    ]


def test_codes_are_unique():
    codes = [cls.code for cls in _exception_classes()]
    assert len(codes) == len(set(codes))


@pytest.mark.parametrize("cls", _exception_classes(), ids=lambda c: c.__name__)
def test_code_is_upper_snake_case(cls):
    assert cls.code == cls.code.upper()
    assert " " not in cls.code


def test_hierarchy():
    assert issubclass(InvalidMetricError, InvalidInputError)
    assert issubclass(ProjectNotFoundError, NotFoundError)
    assert issubclass(TeamMemberNotFoundError, NotFoundError)
    assert not issubclass(DuplicateAssignmentError, InvalidInputError)


def test_structured_fields():
    project_id, user_id = uuid4(), uuid4()
    error = DuplicateAssignmentError(project_id, user_id)
    assert (error.project_id, error.user_id) == (project_id, user_id)
    assert str(user_id) in str(error)


def test_invalid_metric_message_lists_allowed():
    error = InvalidMetricError("velocity", ("revenue", "cost"))
    assert "revenue, cost" in str(error)


def test_negative_margin_message():
    error = exceptions.NegativeMarginError(Decimal("-5"))
    assert error.margin == Decimal("-5")
    assert "-5" in str(error)
