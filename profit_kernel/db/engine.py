"""
Module: profit_kernel.db.engine
Responsibility: Own the process-wide engine and session factory for the
    project store, and the transactional scope used outside the services.
Architecture position: Kernel > DB.  May import from db/base.py.
    create_tables goes through the module ORM registry so every project
    table is known before DDL runs.

Invariants enforced:
    - PostgreSQL runs at READ COMMITTED; budget refreshes serialize with
      SELECT ... FOR UPDATE on the project row.
    - SQLite URLs share a single connection (StaticPool), so an in-memory
      store is visible to every session.

Failure modes:
    - RuntimeError from get_engine/get_session before init_engine_from_url().
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from profit_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 5,
) -> Engine:
    """
    Create the engine for ``database_url`` and bind the session factory.

    Any previously initialized engine is disposed first.  ``pool_size`` and
    ``max_overflow`` apply to PostgreSQL only.
    """
    global _engine, _SessionFactory

    reset_engine()
    if database_url.startswith("sqlite"):
        _engine = create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        _engine = create_engine(
            database_url,
            echo=echo,
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            isolation_level="READ COMMITTED",
        )

    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "echo": echo},
    )
    return _engine


def _require_initialized() -> sessionmaker[Session]:
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


def get_engine() -> Engine:
    _require_initialized()
    return _engine


def get_session() -> Session:
    """A new session bound to the current engine (caller closes it)."""
    return _require_initialized()()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Commit on normal exit, roll back and re-raise on error, always close.

    Services own their own transactions; this scope is for seeding and
    maintenance scripts that write outside a service.
    """
    session = get_session()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every project table known to the module ORM registry."""
    from profit_kernel.db.base import Base
    from profit_modules._orm_registry import import_all_orm_models

    engine = get_engine()
    import_all_orm_models()
    Base.metadata.create_all(engine)
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    from profit_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine (if any) and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None
