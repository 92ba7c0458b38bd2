"""
Module ORM Registry (``profit_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created.

Also provides ``create_all_tables()`` -- the entry point that registers
every module ORM model and then creates every table.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from sibling ``profit_modules``
packages and from ``profit_kernel.db.engine`` (allowed: modules -> kernel).
MUST NOT be imported by ``profit_engines``.

Usage
-----
Scripts, entrypoints, and ``tests/conftest.py`` all call
``create_all_tables()``.
"""


def import_all_orm_models() -> None:
    """Import every ``profit_modules.*.orm`` module to register ORM models.

    This function is idempotent -- repeated calls are harmless.
    """
    import profit_modules.project.orm  # noqa: F401


def create_all_tables() -> None:
    """Create every module table.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from profit_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
