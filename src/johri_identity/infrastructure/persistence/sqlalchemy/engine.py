"""Async engine construction."""

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from johri_identity.infrastructure.persistence.sqlalchemy.base import IdentityBase


def create_identity_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for ``database_url``.

    SQLite connections get explicit BEGIN handling so SAVEPOINTs work, and
    in-memory databases share one connection across the pool.
    """
    kwargs: dict[str, Any] = {"echo": echo}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite and ":memory:" in database_url:
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    elif not is_sqlite:
        kwargs["pool_pre_ping"] = True

    engine = create_async_engine(database_url, **kwargs)

    if is_sqlite:

        @event.listens_for(engine.sync_engine, "connect")
        def _disable_pysqlite_transactions(dbapi_connection, connection_record):  # noqa: ARG001
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _emit_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


async def create_tables(engine: AsyncEngine) -> None:
    """Create all identity tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(IdentityBase.metadata.create_all)


async def drop_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(IdentityBase.metadata.drop_all)
