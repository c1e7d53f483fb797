"""SQLite-backed key-value storage on an async SQLModel engine."""

import contextlib
import logging
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,  # type: ignore[attr-defined]
    create_async_engine,
)
from sqlmodel import Field, SQLModel

from birdscope.storage.key_value import KeyValueStore

logger = logging.getLogger(__name__)


class StoredItem(SQLModel, table=True):
    """One key-value pair of local client state."""

    __tablename__ = "key_value_items"  # type: ignore[assignment]

    key: str = Field(primary_key=True)
    value: str
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class SQLiteKeyValueStore(KeyValueStore):
    """Key-value storage persisted to a local SQLite database."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.db_url = f"sqlite+aiosqlite:///{self.db_path}"
        self.async_engine = create_async_engine(self.db_url, pool_pre_ping=True)
        self.async_session_local = async_sessionmaker(
            autocommit=False, autoflush=False, bind=self.async_engine, class_=AsyncSession
        )
        # Tables are created by initialize()

    async def initialize(self) -> None:
        """Create the storage table if needed."""
        async with self.async_engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.debug("Key-value storage ready at %s", self.db_path)

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.async_engine.dispose()

    @contextlib.asynccontextmanager
    async def get_async_db(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide an async database session."""
        async with self.async_session_local() as session:
            yield session

    async def get_item(self, key: str) -> str | None:
        """Get the stored value for a key."""
        async with self.get_async_db() as session:
            item = await session.get(StoredItem, key)
            return item.value if item else None

    async def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous value."""
        async with self.get_async_db() as session:
            item = await session.get(StoredItem, key)
            if item is None:
                session.add(StoredItem(key=key, value=value))
            else:
                item.value = value
                item.updated_at = datetime.now(UTC)
            await session.commit()

    async def remove_item(self, key: str) -> None:
        """Remove a key if present."""
        async with self.get_async_db() as session:
            item = await session.get(StoredItem, key)
            if item is not None:
                await session.delete(item)
                await session.commit()
