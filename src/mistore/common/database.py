"""Async database manager for Mi Store (single-DB)."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Iterable

from sqlalchemy import insert, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mistore.common.config import StoreSettings, get_settings
from mistore.common.models import Base

# Import all model modules so Base.metadata is complete for create_all().
import mistore.accounts.models  # noqa: F401
import mistore.catalog.models  # noqa: F401
import mistore.payments.models  # noqa: F401
import mistore.reviews.models  # noqa: F401

_DIALECT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class DatabaseManager:
    """Manages a single async database engine."""

    def __init__(self, settings: StoreSettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        url = self._settings.db_url
        self.engine = create_async_engine(url, echo=False)
        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager not initialized — call init() first")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized — call init() first")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None


async def insert_if_absent(
    session: AsyncSession,
    model: type[Base],
    values: dict[str, Any],
    conflict_columns: Iterable[str],
) -> bool:
    """Insert one row unless a unique key already holds it.

    Returns True when this call wrote the row. Uniqueness is enforced by the
    database, so concurrent callers racing on the same key see exactly one True.
    """
    table = model.__table__
    dialect = session.get_bind().dialect.name
    dialect_insert = _DIALECT_INSERTS.get(dialect)

    if dialect_insert is not None:
        stmt = dialect_insert(table).values(**values).on_conflict_do_nothing(
            index_elements=list(conflict_columns),
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    try:
        async with session.begin_nested():
            await session.execute(insert(table).values(**values))
    except IntegrityError:
        return False
    return True


async def upsert(
    session: AsyncSession,
    model: type[Base],
    values: dict[str, Any],
    conflict_columns: Iterable[str],
    update_columns: Iterable[str],
) -> None:
    """Insert a row, or overwrite ``update_columns`` when the unique key exists."""
    table = model.__table__
    conflict_columns = list(conflict_columns)
    update_columns = list(update_columns)
    dialect = session.get_bind().dialect.name
    dialect_insert = _DIALECT_INSERTS.get(dialect)

    if dialect_insert is not None:
        stmt = dialect_insert(table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=conflict_columns,
            set_={col: stmt.excluded[col] for col in update_columns},
        )
        await session.execute(stmt)
        return

    inserted = await insert_if_absent(session, model, values, conflict_columns)
    if not inserted:
        key = [table.c[col] == values[col] for col in conflict_columns]
        await session.execute(
            update(table).where(*key).values({col: values[col] for col in update_columns})
        )
