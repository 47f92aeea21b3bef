from datetime import datetime, timezone

from sqlalchemy import event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from inventory_api.core.config import Settings

UNIQUE_VIOLATION = "23505"
# serialization_failure, deadlock_detected
TRANSIENT_SQLSTATES = {"40001", "40P01"}


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(settings: Settings) -> AsyncEngine:
    kwargs = {
        "echo": settings.database_echo,
        "isolation_level": settings.database_isolation_level,
    }
    is_sqlite = settings.database_url.startswith("sqlite")
    if is_sqlite:
        # aiosqlite connections are bound to the loop that opened them
        kwargs["poolclass"] = NullPool

    engine = create_async_engine(settings.database_url, **kwargs)
    if is_sqlite:
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_db_and_tables(engine: AsyncEngine):
    # Register every table on Base.metadata before creating them
    from inventory_api.db import users  # noqa: F401
    from inventory_api.db.inventory import item, record  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def dialect_insert(session: AsyncSession):
    """`insert` construct supporting ON CONFLICT for the session's backend."""
    name = session.bind.dialect.name
    if name == "postgresql":
        return postgresql.insert
    if name == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"ON CONFLICT inserts are not supported on {name}")


def _sqlstate(exc: DBAPIError):
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_unique_violation(exc: IntegrityError) -> bool:
    code = _sqlstate(exc)
    if code is not None:
        return code == UNIQUE_VIOLATION
    orig = exc.orig
    if getattr(orig, "sqlite_errorname", None) == "SQLITE_CONSTRAINT_UNIQUE":
        return True
    return "UNIQUE constraint failed" in str(orig)


def is_transient(exc: DBAPIError) -> bool:
    return _sqlstate(exc) in TRANSIENT_SQLSTATES
