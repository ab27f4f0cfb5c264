"""Engine and transaction scope for the matching store.

One ``get_session()`` block is one transaction: every API request and every
matching operation runs inside exactly one. SQLite is the default backend;
any SQLAlchemy URL works, and PostgreSQL additionally gets row locks and
native upserts.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from app.logging import get_logger
from app.utils.identifiers import new_id

from .exceptions import DatabaseConnectionError

SQLITE_BUSY_TIMEOUT_SECONDS = 30

_engine: Engine | None = None
_session_factory: sessionmaker | None = None
# Keeps a named in-memory database alive while the engine is in use
_memory_anchor: Any = None

logger = get_logger(__name__, component="database")


def init_database(database_url: str, reset: bool = False) -> None:
    """Connect to the database and make sure the schema exists.

    Call once at startup. Calling it again replaces the previous engine, which
    is how tests switch between throwaway databases.

    ``sqlite:///:memory:`` becomes a uniquely named shared-cache memory
    database: every session gets its own connection and transaction, so a
    rollback in one session never discards another session's writes. It is
    meant for tests and demos; concurrent writers there fail fast with
    "database table is locked" instead of queueing. File-based SQLite runs in
    WAL mode with a busy timeout, so concurrent writers queue instead of
    failing.

    Args:
        database_url: SQLAlchemy URL, e.g. "sqlite:///./data/freelance_match.db"
        reset: Drop and recreate every table (tests and demo scripts only)

    Raises:
        DatabaseConnectionError: If the URL is unusable or the database unreachable
    """
    global _engine, _session_factory, _memory_anchor

    if not database_url or not isinstance(database_url, str):
        raise DatabaseConnectionError("Database URL must be a non-empty string")

    safe_url = _redact_url(database_url)
    logger.info(
        f"Connecting to {safe_url}",
        extra={"event": "database.initializing", "database_url": safe_url},
    )

    try:
        _release()

        engine = _build_engine(database_url)
        _validate_connection(engine)
        if _is_memory(engine):
            _memory_anchor = engine.raw_connection()

        from .schema import create_schema

        create_schema(engine, drop_existing=reset)

    except DatabaseConnectionError:
        raise
    except Exception as e:
        logger.error(f"Could not initialize {safe_url}: {e}", exc_info=True)
        raise DatabaseConnectionError(f"Failed to initialize database: {e}") from e

    _engine = engine
    _session_factory = sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)

    logger.info(
        "Database ready",
        extra={
            "event": "database.initialised",
            "database_url": safe_url,
            "dialect": engine.dialect.name,
            "reset": reset,
        },
    )


def _build_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    options: Dict[str, Any] = {"pool_pre_ping": True}

    if url.get_backend_name() != "sqlite":
        return create_engine(url, **options)

    in_memory = url.database in (None, "", ":memory:")
    options["connect_args"] = {
        "check_same_thread": False,
        "timeout": SQLITE_BUSY_TIMEOUT_SECONDS,
    }
    if in_memory:
        url = url.set(
            database=f"file:freelance_match_{new_id()}",
            query={"mode": "memory", "cache": "shared", "uri": "true"},
        )
        # pysqlite would otherwise share one connection per thread
        options["poolclass"] = QueuePool
    else:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, **options)
    _install_sqlite_pragmas(engine, wal=not in_memory)
    return engine


def _install_sqlite_pragmas(engine: Engine, wal: bool) -> None:
    """Enable foreign keys (and WAL for files) on every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
            if wal:
                cursor.execute("PRAGMA journal_mode=WAL")
        finally:
            cursor.close()


def _is_memory(engine: Engine) -> bool:
    return engine.url.get_backend_name() == "sqlite" and engine.url.query.get("mode") == "memory"


def _release() -> None:
    global _engine, _session_factory, _memory_anchor

    if _memory_anchor is not None:
        _memory_anchor.close()
        _memory_anchor = None
    if _engine is not None:
        _engine.dispose()
    _engine, _session_factory = None, None


def _validate_connection(engine: Engine) -> None:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).scalar()
    except Exception as e:
        raise DatabaseConnectionError(f"Database is unreachable: {e}") from e


def _redact_url(url: str) -> str:
    """Mask the password of a database URL before it reaches the logs.

    Example:
        >>> _redact_url("postgresql://match:s3cret@db:5432/match")
        'postgresql://match:***@db:5432/match'
    """
    if url.startswith("sqlite") or "@" not in url:
        return url

    credentials, _, location = url.rpartition("@")
    scheme, sep, userinfo = credentials.partition("://")
    if ":" not in userinfo:
        return url
    user = userinfo.split(":", 1)[0]
    return f"{scheme}{sep}{user}:***@{location}"


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Run a block inside one transaction.

    Commits when the block completes, rolls back when it raises, and closes
    the session either way. Nothing written inside a failed block is visible
    afterwards.

    Raises:
        DatabaseConnectionError: If init_database() has not been called

    Example:
        >>> with get_session() as session:
        ...     MatchingEngine(session).like(Side.CLIENT, "C1", "F7", "P3")
    """
    if _session_factory is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_session()"
        )

    session = _session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.warning(
            f"Transaction rolled back: {e}",
            extra={
                "event": "database.session.rolled_back",
                "error_type": type(e).__name__,
            },
        )
        raise
    finally:
        session.close()


def get_engine() -> Engine:
    """Return the active engine.

    Raises:
        DatabaseConnectionError: If init_database() has not been called
    """
    if _engine is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_engine()"
        )
    return _engine


def close_database() -> None:
    """Dispose of the engine and its pooled connections (shutdown and tests)."""
    if _engine is None:
        return

    _release()
    logger.info("Database connections closed", extra={"event": "database.closed"})
