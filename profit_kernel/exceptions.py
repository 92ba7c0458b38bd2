"""
Typed Exception Hierarchy for the Profit Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (report builders, HTTP handlers, CLIs) must be able to tell a bad
payload from a missing record without parsing message strings.  Every error
therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example:
    try:
        service.record_expense(expense_input)
    except NegativeValueError as e:
        return {"error": e.code, "field": e.field, "value": str(e.value)}
    except ProjectNotFoundError as e:
        return {"error": e.code, "project_id": str(e.project_id)}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ProfitKernelError (base)
    |
    +-- InvalidInputError
    |   +-- NegativeValueError
    |   +-- NegativeMarginError
    |   +-- InvalidDateRangeError
    |   +-- MissingFieldError
    |   +-- InvalidFieldValueError
    |   +-- InvalidStatusError
    |   +-- InvalidMetricError
    |
    +-- NotFoundError
    |   +-- ProjectNotFoundError
    |   +-- UserNotFoundError
    |   +-- TeamMemberNotFoundError
    |   +-- ExpenseNotFoundError
    |   +-- DeliverableNotFoundError
    |
    +-- DuplicateAssignmentError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                  | When Raised
-----------|-----------------------|------------------------------------------
Input      | NEGATIVE_VALUE        | Negative hours, rate, or amount
           | NEGATIVE_MARGIN       | Margin < 0 while policy forbids it
           | INVALID_DATE_RANGE    | start date after end date
           | MISSING_FIELD         | Required payload field absent/blank
           | INVALID_FIELD_VALUE   | Value cannot be coerced (Decimal, date)
           | INVALID_STATUS        | Unknown deliverable status
           | INVALID_METRIC        | Unknown profitability sort metric
-----------|-----------------------|------------------------------------------
Lookup     | PROJECT_NOT_FOUND     | Project ID doesn't exist
           | USER_NOT_FOUND        | User ID doesn't exist
           | TEAM_MEMBER_NOT_FOUND | User is not assigned to the project
           | EXPENSE_NOT_FOUND     | Expense ID doesn't exist on the project
           | DELIVERABLE_NOT_FOUND | Deliverable ID doesn't exist on project
-----------|-----------------------|------------------------------------------
Team       | DUPLICATE_ASSIGNMENT  | User already assigned to the project

Division by zero is never an error: every ratio in the financial model has an
explicit zero-denominator policy and returns a number.
"""

from decimal import Decimal
from typing import Any


class ProfitKernelError(Exception):
    """
    Base exception for all profit kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PROFIT_KERNEL_ERROR"


# Input validation


class InvalidInputError(ProfitKernelError):
    """Base exception for payloads rejected before any computation."""

    code: str = "INVALID_INPUT"


class NegativeValueError(InvalidInputError):
    """Hours, rates, and amounts must be non-negative."""

    code: str = "NEGATIVE_VALUE"

    def __init__(self, field: str, value: Decimal):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be non-negative, got {value}")


class NegativeMarginError(InvalidInputError):
    """Profit margin below zero while the policy forbids it."""

    code: str = "NEGATIVE_MARGIN"

    def __init__(self, margin: Decimal):
        self.margin = margin
        super().__init__(f"Negative profit margin not allowed: {margin}%")


class InvalidDateRangeError(InvalidInputError):
    """Date range whose start falls after its end."""

    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start: Any, end: Any):
        self.start = start
        self.end = end
        super().__init__(f"Invalid date range: {start} is after {end}")


class MissingFieldError(InvalidInputError):
    """Required field absent or blank."""

    code: str = "MISSING_FIELD"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing required field: {field}")


class InvalidFieldValueError(InvalidInputError):
    """Field value that cannot be coerced to its declared type."""

    code: str = "INVALID_FIELD_VALUE"

    def __init__(self, field: str, value: Any, expected: str):
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(f"Invalid value for {field}: {value!r} (expected {expected})")


class InvalidStatusError(InvalidInputError):
    """Status outside the allowed set."""

    code: str = "INVALID_STATUS"

    def __init__(self, status: str, allowed: tuple[str, ...]):
        self.status = status
        self.allowed = allowed
        super().__init__(
            f"Invalid status {status!r}; expected one of {', '.join(allowed)}"
        )


class InvalidMetricError(InvalidInputError):
    """Unknown sort metric for the profitability report."""

    code: str = "INVALID_METRIC"

    def __init__(self, metric: str, allowed: tuple[str, ...]):
        self.metric = metric
        self.allowed = allowed
        super().__init__(
            f"Invalid metric {metric!r}; expected one of {', '.join(allowed)}"
        )


# Lookup failures


class NotFoundError(ProfitKernelError):
    """Base exception for records missing from the persistence layer."""

    code: str = "NOT_FOUND"


class ProjectNotFoundError(NotFoundError):
    """Project with given ID was not found."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: Any):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class UserNotFoundError(NotFoundError):
    """User with given ID was not found."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: Any):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class TeamMemberNotFoundError(NotFoundError):
    """User is not assigned to the project."""

    code: str = "TEAM_MEMBER_NOT_FOUND"

    def __init__(self, project_id: Any, user_id: Any):
        self.project_id = project_id
        self.user_id = user_id
        super().__init__(
            f"User {user_id} is not a team member of project {project_id}"
        )


class ExpenseNotFoundError(NotFoundError):
    """Expense with given ID was not found on the project."""

    code: str = "EXPENSE_NOT_FOUND"

    def __init__(self, expense_id: Any):
        self.expense_id = expense_id
        super().__init__(f"Expense not found: {expense_id}")


class DeliverableNotFoundError(NotFoundError):
    """Deliverable with given ID was not found on the project."""

    code: str = "DELIVERABLE_NOT_FOUND"

    def __init__(self, deliverable_id: Any):
        self.deliverable_id = deliverable_id
        super().__init__(f"Deliverable not found: {deliverable_id}")


# Team composition


class DuplicateAssignmentError(ProfitKernelError):
    """User already assigned to the project."""

    code: str = "DUPLICATE_ASSIGNMENT"

    def __init__(self, project_id: Any, user_id: Any):
        self.project_id = project_id
        self.user_id = user_id
        super().__init__(
            f"User {user_id} is already a team member of project {project_id}"
        )
