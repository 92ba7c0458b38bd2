"""
Configuration Loader (``profit_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the typed
``profit_config.schema`` dataclasses.  Callers should go through
``profit_config.get_settings()``, which caches the parsed result.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  No dependency on kernel,
engines, or modules.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Numeric thresholds and margins are parsed to ``Decimal`` via ``str`` so
  YAML floats never leak binary error into the financial model.
* Unknown keys are ignored; a missing section takes the schema defaults.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong types or out-of-range values  -> ``ValueError`` with the offending
  section and key in the message.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from profit_config.schema import (
    AlertPolicy,
    BudgetThresholds,
    DashboardPolicy,
    DatabaseSettings,
    FinancialPolicy,
    Settings,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level YAML must be a mapping")
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"{name}: expected a mapping, got {type(value).__name__}")
    return value


def parse_decimal(section: str, key: str, value: Any, *, minimum: Decimal | None = None) -> Decimal:
    """Parse a YAML scalar as Decimal, optionally enforcing a lower bound."""
    if isinstance(value, bool):
        raise ValueError(f"{section}.{key}: expected a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{section}.{key}: expected a number, got {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"{section}.{key}: expected a finite number, got {value!r}")
    if minimum is not None and result < minimum:
        raise ValueError(f"{section}.{key}: must be >= {minimum}, got {result}")
    return result


def parse_int(section: str, key: str, value: Any, *, minimum: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{section}.{key}: expected an integer, got {value!r}")
    if value < minimum:
        raise ValueError(f"{section}.{key}: must be >= {minimum}, got {value}")
    return value


def parse_bool(section: str, key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{section}.{key}: expected true/false, got {value!r}")
    return value


def parse_financial_policy(data: dict[str, Any]) -> FinancialPolicy:
    defaults = FinancialPolicy()
    s = "financial_policy"
    return FinancialPolicy(
        default_profit_margin=parse_decimal(
            s, "default_profit_margin",
            data.get("default_profit_margin", defaults.default_profit_margin),
        ),
        allow_negative_margin=parse_bool(
            s, "allow_negative_margin",
            data.get("allow_negative_margin", defaults.allow_negative_margin),
        ),
        money_decimal_places=parse_int(
            s, "money_decimal_places",
            data.get("money_decimal_places", defaults.money_decimal_places),
        ),
        percent_decimal_places=parse_int(
            s, "percent_decimal_places",
            data.get("percent_decimal_places", defaults.percent_decimal_places),
        ),
    )


def parse_budget_thresholds(data: dict[str, Any]) -> BudgetThresholds:
    """
    Parse utilization thresholds.

    Raises:
        ValueError: unless healthy <= warning <= over_budget.
    """
    defaults = BudgetThresholds()
    s = "budget_thresholds"
    zero = Decimal("0")
    thresholds = BudgetThresholds(
        healthy_percent=parse_decimal(
            s, "healthy_percent", data.get("healthy_percent", defaults.healthy_percent),
            minimum=zero,
        ),
        warning_percent=parse_decimal(
            s, "warning_percent", data.get("warning_percent", defaults.warning_percent),
            minimum=zero,
        ),
        over_budget_percent=parse_decimal(
            s, "over_budget_percent",
            data.get("over_budget_percent", defaults.over_budget_percent),
            minimum=zero,
        ),
    )
    if not (
        thresholds.healthy_percent
        <= thresholds.warning_percent
        <= thresholds.over_budget_percent
    ):
        raise ValueError(
            f"{s}: expected healthy <= warning <= over_budget, got "
            f"{thresholds.healthy_percent}, {thresholds.warning_percent}, "
            f"{thresholds.over_budget_percent}"
        )
    return thresholds


def parse_alert_policy(data: dict[str, Any]) -> AlertPolicy:
    defaults = AlertPolicy()
    status = data.get("at_risk_status", defaults.at_risk_status)
    if not isinstance(status, str) or not status.strip():
        raise ValueError(f"alerts.at_risk_status: expected a non-empty string, got {status!r}")
    return AlertPolicy(
        deadline_warning_days=parse_int(
            "alerts", "deadline_warning_days",
            data.get("deadline_warning_days", defaults.deadline_warning_days),
        ),
        at_risk_status=status,
    )


def parse_dashboard_policy(data: dict[str, Any]) -> DashboardPolicy:
    defaults = DashboardPolicy()
    statuses = data.get("active_statuses", list(defaults.active_statuses))
    if not isinstance(statuses, list) or not all(isinstance(x, str) for x in statuses):
        raise ValueError(
            f"dashboard.active_statuses: expected a list of strings, got {statuses!r}"
        )
    return DashboardPolicy(
        active_statuses=tuple(statuses),
        revenue_window_days=parse_int(
            "dashboard", "revenue_window_days",
            data.get("revenue_window_days", defaults.revenue_window_days),
            minimum=1,
        ),
    )


def parse_database_settings(data: dict[str, Any]) -> DatabaseSettings:
    defaults = DatabaseSettings()
    url = data.get("url", defaults.url)
    if not isinstance(url, str) or not url:
        raise ValueError(f"database.url: expected a non-empty string, got {url!r}")
    return DatabaseSettings(
        url=url,
        echo=parse_bool("database", "echo", data.get("echo", defaults.echo)),
    )


def parse_settings(data: dict[str, Any], source: str | None = None) -> Settings:
    """Build ``Settings`` from an already-loaded YAML mapping."""
    return Settings(
        financial_policy=parse_financial_policy(_section(data, "financial_policy")),
        budget_thresholds=parse_budget_thresholds(_section(data, "budget_thresholds")),
        alerts=parse_alert_policy(_section(data, "alerts")),
        dashboard=parse_dashboard_policy(_section(data, "dashboard")),
        database=parse_database_settings(_section(data, "database")),
        source=source,
    )


def load_settings(path: Path) -> Settings:
    """Load and parse a YAML settings file."""
    return parse_settings(load_yaml_file(path), source=str(path))
