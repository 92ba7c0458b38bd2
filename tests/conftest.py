"""
Pytest fixtures for the project profitability test suite.

Provides:
- Structured logging configuration and log capture
- A fresh in-memory SQLite database (all tables) per test
- A deterministic clock and default settings
- Seed data: a client, users with and without personal rates, and a
  project with a planned team

Every service commits its own transaction, so isolation comes from
building a new engine for each test rather than from rollback.
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from profit_config import Settings, clear_settings_cache
from profit_kernel.db.engine import get_session, init_engine_from_url, reset_engine
from profit_kernel.domain.clock import DeterministicClock
from profit_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from profit_modules._orm_registry import create_all_tables
from profit_modules.project.inputs import ProjectInput, TeamMemberInput
from profit_modules.project.service import ProjectService
from profit_modules.reporting.service import ReportingService

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

# "Today" for every service test: 2024-03-15 09:00 UTC
TEST_NOW = datetime(2024, 3, 15, 9, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture profit_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, project_service):
            project_service.record_expense(...)
            logs = captured_logs()
            assert any(r["message"] == "expense_recording_committed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("profit_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Configuration and clock
# =============================================================================


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(TEST_NOW)


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """A session bound to a brand-new in-memory database."""
    init_engine_from_url("sqlite:///:memory:")
    create_all_tables()
    db = get_session()
    try:
        yield db
    finally:
        db.close()
        reset_engine()


@pytest.fixture
def project_service(session, settings, deterministic_clock) -> ProjectService:
    return ProjectService(session, settings=settings, clock=deterministic_clock)


@pytest.fixture
def reporting_service(session, settings, deterministic_clock) -> ReportingService:
    return ReportingService(session, settings=settings, clock=deterministic_clock)


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def client(project_service, test_actor_id):
    return project_service.create_client("Acme Corp", test_actor_id, email="ops@acme.test")


@pytest.fixture
def rated_user(project_service, test_actor_id):
    """A developer with a personal rate of 120/h."""
    return project_service.create_user(
        "Ada Lovelace",
        test_actor_id,
        email="ada@example.test",
        role="Developer",
        hourly_rate=Decimal("120"),
    )


@pytest.fixture
def unrated_user(project_service, test_actor_id):
    """A designer without a personal rate (falls back to the project rate)."""
    return project_service.create_user(
        "Grace Hopper",
        test_actor_id,
        email="grace@example.test",
        role="Designer",
    )


@pytest.fixture
def project(project_service, test_actor_id, client, rated_user, unrated_user):
    """
    Project at 100/h, 20 % margin, ending 2024-06-30.

    Team: Ada 10 h at 120 (1200), Grace 5 h at 100 (500).
    Planned labor 1700, no expenses, budget 2040.
    """
    return project_service.create_project(
        ProjectInput(
            name="Website Redesign",
            client_id=client.id,
            status="In Progress",
            start_date=date(2024, 1, 1),
            end_date=date(2024, 6, 30),
            hourly_rate=Decimal("100"),
            estimated_hours=Decimal("40"),
            profit_margin=Decimal("20"),
            team=(
                TeamMemberInput(rated_user.id, Decimal("10"), "Developer"),
                TeamMemberInput(unrated_user.id, Decimal("5"), "Designer"),
            ),
        ),
        test_actor_id,
    )
