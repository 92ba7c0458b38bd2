"""
profit_config -- single public entrypoint for runtime settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_settings()``.  Services receive the returned ``Settings`` by
    constructor injection; nothing else reads configuration files.

Architecture position:
    Configuration -- YAML-driven policy.  Sits beside ``profit_kernel``
    and below ``profit_modules``.  The kernel and the engines MUST NEVER
    import from ``profit_config``; services pass the relevant values to
    engines as plain arguments.

Invariants enforced:
    - Single entrypoint: all runtime settings flow through ``get_settings()``.
    - The parsed ``Settings`` is frozen and cached per path until
      ``reload=True`` is passed.

Failure modes:
    - ``FileNotFoundError`` -- the given path does not exist.
    - ``ValueError`` -- a value has the wrong type or is out of range.

Audit relevance:
    Every load from disk emits a ``PROFIT_CONFIG_TRACE`` log record naming
    the source file and the policy values in force.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from profit_config.loader import load_settings
from profit_config.schema import (
    AlertPolicy,
    BudgetThresholds,
    DashboardPolicy,
    DatabaseSettings,
    FinancialPolicy,
    Settings,
)

_logger = logging.getLogger("profit_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

_cache: dict[Path, Settings] = {}
_cache_lock = threading.Lock()


def get_settings(config_path: Path | str | None = None, reload: bool = False) -> Settings:
    """The ONLY public settings entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to the packaged
            ``defaults.yaml``.
        reload: Re-read the file even if it was loaded before.

    Returns:
        Frozen ``Settings``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a value fails validation.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    with _cache_lock:
        if not reload and path in _cache:
            return _cache[path]

    settings = load_settings(path)

    with _cache_lock:
        _cache[path] = settings

    policy = settings.financial_policy
    thresholds = settings.budget_thresholds
    _logger.info(
        "PROFIT_CONFIG_TRACE",
        extra={
            "trace_type": "PROFIT_CONFIG_TRACE",
            "config_source": str(path),
            "default_profit_margin": str(policy.default_profit_margin),
            "allow_negative_margin": policy.allow_negative_margin,
            "warning_percent": str(thresholds.warning_percent),
            "over_budget_percent": str(thresholds.over_budget_percent),
            "deadline_warning_days": settings.alerts.deadline_warning_days,
            "database_dialect": settings.database.url.split(":", 1)[0],
        },
    )
    return settings


def clear_settings_cache() -> None:
    """Forget every cached ``Settings``. FOR TESTING ONLY."""
    with _cache_lock:
        _cache.clear()


__all__ = [
    "get_settings",
    "clear_settings_cache",
    "DEFAULT_CONFIG_PATH",
    "Settings",
    "FinancialPolicy",
    "BudgetThresholds",
    "AlertPolicy",
    "DashboardPolicy",
    "DatabaseSettings",
]
