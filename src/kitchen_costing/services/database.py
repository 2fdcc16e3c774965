"""
Engine and session handling for the costing database.

One process-wide engine and session factory are created lazily from
Config.database_url. Services open short transactions with session_scope()
or accept a caller's session to join a larger one.

SQLite connections get foreign keys switched on so the ON DELETE CASCADE /
SET NULL rules on tenant data are enforced.
"""

from typing import Optional
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..utils.config import get_config
from ..models.base import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None

REQUIRED_TABLES = ("users", "ingredients", "materials", "recipes")


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Turn on foreign keys (and WAL for files) for SQLite connections."""
    if type(dbapi_connection).__module__.split(".")[0] not in ("sqlite3", "pysqlite2"):
        return

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Build an engine for database_url (Config.database_url when None).

    In-memory SQLite shares a single connection so every session sees the
    same tables; file SQLite gets the configured busy timeout; anything else
    is passed to SQLAlchemy with pre-ping enabled.

    Args:
        database_url: SQLAlchemy URL
        echo: Log emitted SQL
    """
    config = get_config()
    url = database_url or config.database_url

    logger.info(f"Opening database engine for {url}")

    if ":memory:" in url or "mode=memory" in url:
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    if url.startswith("sqlite"):
        config.ensure_directories()
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": config.db_timeout},
        )

    return create_engine(url, echo=echo, pool_pre_ping=True)


def _register_models() -> None:
    # Importing the package registers every model with Base.metadata
    from .. import models  # noqa: F401


def init_database(engine: Optional[Engine] = None) -> None:
    """Create any missing tables on engine (the global engine by default)."""
    target = engine if engine is not None else get_engine()
    _register_models()
    Base.metadata.create_all(target)
    logger.info("Costing tables are in place")


def get_engine(force_recreate: bool = False) -> Engine:
    """The process-wide engine, built on first use or when force_recreate."""
    global _engine

    if _engine is None or force_recreate:
        _engine = create_database_engine()

    return _engine


def get_session_factory() -> sessionmaker:
    """The process-wide session factory (objects stay readable after commit)."""
    global _SessionFactory

    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine(), expire_on_commit=False)

    return _SessionFactory


def get_session() -> Session:
    """Open a session the caller must commit or roll back and close."""
    return get_session_factory()()


@contextmanager
def session_scope():
    """
    Run a block in one transaction.

    Commits when the block finishes, rolls back and re-raises when it
    raises, and closes the session either way.

    Example:
        with session_scope() as session:
            session.add(Supplier(user_id=user.id, name="Mill Co"))
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def verify_database() -> bool:
    """True when the engine connects and the core tables exist."""
    try:
        tables = set(inspect(get_engine()).get_table_names())
    except SQLAlchemyError as e:
        logger.error(f"Could not inspect database: {e}")
        return False
    missing = [table for table in REQUIRED_TABLES if table not in tables]
    if missing:
        logger.warning(f"Database is missing tables: {', '.join(missing)}")
        return False
    return True


def reset_database(confirm: bool = False) -> None:
    """
    Drop and recreate every table. All tenant data is lost.

    Raises:
        ValueError: Unless confirm=True
    """
    if not confirm:
        raise ValueError("reset_database() drops all data; pass confirm=True to proceed")

    engine = get_engine()
    _register_models()
    logger.warning("Dropping all costing tables")
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    logger.info("Costing tables recreated")


def close_connections() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    _SessionFactory = None

    if _engine is not None:
        _engine.dispose()
        _engine = None


def initialize_app_database() -> None:
    """
    Prepare the database for the command line.

    Creates the SQLite file and tables when missing, then checks them.
    """
    config = get_config()

    if config.database_url.startswith("sqlite:///") and not config.is_test:
        state = "existing" if config.database_exists() else "new"
        logger.info(f"Using {state} database at {config.database_path}")

    init_database(get_engine())

    if not verify_database():
        logger.warning("Database check failed after initialization")
