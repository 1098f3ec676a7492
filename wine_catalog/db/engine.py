"""Database engine, session factory and transaction management."""

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from wine_catalog.core.errors import StorageUnavailableError

logger = logging.getLogger(__name__)

# Default database path (can be overridden via environment variable)
DEFAULT_DB_PATH = Path.home() / ".wine_catalog" / "wine_catalog.db"

# Seconds a SQLite connection waits on a locked database before failing
SQLITE_BUSY_TIMEOUT = 30


def get_database_url(db_path: Path | str | None = None) -> str:
    """
    Get the database URL.

    Args:
        db_path: Optional database URL or path to a SQLite file. If None,
                 uses the DATABASE_URL env var or the default path.

    Returns:
        SQLAlchemy connection URL.
    """
    if db_path is None:
        db_path = os.environ.get("DATABASE_URL") or DEFAULT_DB_PATH

    # Full URLs (sqlite:///..., postgresql://...) are used as-is
    if isinstance(db_path, str) and "://" in db_path:
        return db_path

    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path}"


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _register_sqlite_functions(dbapi_conn, connection_record) -> None:
    """Replace SQLite's ASCII-only lower() with a Unicode-aware one."""
    dbapi_conn.create_function("lower", 1, _unicode_lower, deterministic=True)


def create_db_engine(db_path: Path | str | None = None, echo: bool = False) -> Engine:
    """
    Create a SQLAlchemy engine.

    Args:
        db_path: Optional database URL or SQLite file path.
        echo: If True, log all SQL statements.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = get_database_url(db_path)
    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo)

    # Requests are served from a thread pool; writers wait on the lock
    engine = create_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
    )
    event.listen(engine, "connect", _register_sqlite_functions)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create the session factory shared by all stores."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """
    Initialize the database by creating all tables.

    Args:
        engine: Engine bound to the target database.
    """
    from wine_catalog.db.models import Base

    Base.metadata.create_all(bind=engine)


@contextmanager
def transaction(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """
    Run a block of work in a single transaction.

    Commits on success and rolls back on any exception. Connection-level
    storage failures are reported once as StorageUnavailableError; they
    are never retried.

    Usage:
        with transaction(session_factory) as session:
            ProducerRepository(session).create(producer)

    Yields:
        SQLAlchemy Session instance.
    """
    try:
        with session_factory.begin() as session:
            yield session
    except (OperationalError, InterfaceError) as exc:
        logger.error(f"Storage operation failed: {exc.orig!r}")
        raise StorageUnavailableError("Storage is unavailable") from exc
