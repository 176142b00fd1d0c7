"""
Key-Value Store

Async local storage on top of the `storage_entries` table: one JSON document
per string key. Mirrors the classic mobile key-value API (getItem / setItem /
removeItem / multiRemove) and adds typed helpers that (de)serialize Pydantic
models.

Every failure (database error, undecodable document) is raised as
StorageError; callers decide how to report it.
"""
from functools import lru_cache
from typing import Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlmodel import select

from datarium.app.db.models import StorageEntry
from datarium.app.logging_config import get_logger
from datarium.app.utils.datetime_utils import utcnow

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class StorageError(Exception):
    """Raised when a storage read, write or decode fails."""

    def __init__(self, key: str, operation: str, message: str):
        self.key = key
        self.operation = operation
        super().__init__(f"Storage {operation} failed for '{key}': {message}")


@lru_cache(maxsize=None)
def _list_adapter(item_type: type) -> TypeAdapter:
    return TypeAdapter(list[item_type])


class KeyValueStore:
    """
    Async key-value storage.

    A write to an existing key overwrites it. Missing keys read as None
    (or as an empty list through load_list).
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    def _session(self) -> AsyncSession:
        return AsyncSession(self.engine, expire_on_commit=False)

    # =========================================================================
    # RAW OPERATIONS
    # =========================================================================

    async def get_item(self, key: str) -> Optional[str]:
        """
        Read the raw JSON value stored under a key.

        Returns:
            JSON text or None if the key is absent

        Raises:
            StorageError: on database failure
        """
        try:
            async with self._session() as session:
                entry = await session.get(StorageEntry, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as e:
            raise StorageError(key, "read", str(e)) from e

    async def set_item(self, key: str, value: str) -> None:
        """
        Store raw JSON text under a key (insert or overwrite).

        Raises:
            StorageError: on database failure
        """
        try:
            async with self._session() as session:
                entry = await session.get(StorageEntry, key)
                if entry is None:
                    entry = StorageEntry(key=key, value=value, updated_at=utcnow())
                else:
                    entry.value = value
                    entry.updated_at = utcnow()
                session.add(entry)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(key, "write", str(e)) from e
        logger.debug("Storage item written", key=key, size=len(value))

    async def remove_item(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if the key existed, False otherwise

        Raises:
            StorageError: on database failure
        """
        return await self.multi_remove([key]) > 0

    async def multi_remove(self, keys: Sequence[str]) -> int:
        """
        Delete several keys in one transaction.

        Returns:
            Number of keys actually deleted

        Raises:
            StorageError: on database failure
        """
        if not keys:
            return 0
        try:
            async with self._session() as session:
                stmt = delete(StorageEntry).where(StorageEntry.key.in_(list(keys)))
                result = await session.execute(stmt)
                await session.commit()
                deleted = result.rowcount or 0
        except SQLAlchemyError as e:
            raise StorageError(",".join(keys), "delete", str(e)) from e
        logger.debug("Storage items removed", keys=list(keys), deleted=deleted)
        return deleted

    async def get_all_keys(self) -> list[str]:
        """List every stored key, sorted."""
        try:
            async with self._session() as session:
                result = await session.execute(select(StorageEntry.key).order_by(StorageEntry.key))
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StorageError("*", "read", str(e)) from e

    # =========================================================================
    # TYPED HELPERS
    # =========================================================================

    async def load_model(self, key: str, model_type: Type[ModelT]) -> Optional[ModelT]:
        """
        Read and validate a single model.

        Raises:
            StorageError: on database failure or if the stored document doesn't validate
        """
        raw = await self.get_item(key)
        if raw is None:
            return None
        try:
            return model_type.model_validate_json(raw)
        except ValidationError as e:
            raise StorageError(key, "decode", str(e)) from e

    async def save_model(self, key: str, model: BaseModel) -> None:
        """Serialize a model (by alias) and store it."""
        await self.set_item(key, model.model_dump_json(by_alias=True))

    async def load_list(self, key: str, item_type: Type[ModelT]) -> list[ModelT]:
        """
        Read and validate a list of models; an absent key is an empty list.

        Raises:
            StorageError: on database failure or if the stored document doesn't validate
        """
        raw = await self.get_item(key)
        if raw is None:
            return []
        try:
            return _list_adapter(item_type).validate_json(raw)
        except ValidationError as e:
            raise StorageError(key, "decode", str(e)) from e

    async def save_list(self, key: str, items: Sequence[ModelT], item_type: Type[ModelT]) -> None:
        """Serialize a list of models (by alias) and store it."""
        payload = _list_adapter(item_type).dump_json(list(items), by_alias=True)
        await self.set_item(key, payload.decode("utf-8"))
