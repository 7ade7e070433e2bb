"""
GreenPantry API — Base repository

Persistence adapter over one table of document-style records. A missing
record is a normal empty result (None / False); any other storage failure
is logged and propagated to the caller.
"""
import logging
from typing import Generic, Sequence, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import Base, utcnow

ModelT = TypeVar("ModelT", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelT]):
    model: type[ModelT]
    # Column records are sharded by; None means the record id is its own partition
    partition_field: str | None = None

    def __init__(self, db: AsyncSession):
        self.db = db

    def partition_key(self, entity: ModelT) -> str:
        if self.partition_field is None:
            return entity.id
        return getattr(entity, self.partition_field)

    def _by_id(self, id: str, partition_key: str | None):
        query = select(self.model).where(self.model.id == id)
        if partition_key is not None and self.partition_field is not None:
            query = query.where(getattr(self.model, self.partition_field) == partition_key)
        return query

    async def get_by_id(self, id: str, partition_key: str | None = None) -> ModelT | None:
        try:
            result = await self.db.execute(self._by_id(id, partition_key))
        except SQLAlchemyError:
            logger.exception("Error getting %s by id: %s", self.model.__name__, id)
            raise
        return result.scalar_one_or_none()

    async def reload(self, id: str, partition_key: str | None = None) -> ModelT | None:
        """get_by_id that overwrites any copy of the record already held by the session."""
        query = self._by_id(id, partition_key).execution_options(populate_existing=True)
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError:
            logger.exception("Error reloading %s %s", self.model.__name__, id)
            raise
        return result.scalar_one_or_none()

    async def get_all(self) -> Sequence[ModelT]:
        try:
            result = await self.db.execute(select(self.model))
        except SQLAlchemyError:
            logger.exception("Error getting all %s records", self.model.__name__)
            raise
        return result.scalars().all()

    async def create(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Error creating %s", self.model.__name__)
            raise
        await self.db.refresh(entity)
        logger.debug(
            "Created %s %s in partition %s", self.model.__name__, entity.id, self.partition_key(entity)
        )
        return entity

    async def update(self, entity: ModelT) -> ModelT:
        """Upsert: last write wins, no concurrency check."""
        try:
            merged = await self.db.merge(entity)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Error updating %s %s", self.model.__name__, entity.id)
            raise
        return merged

    async def delete(self, id: str) -> bool:
        try:
            result = await self.db.execute(delete(self.model).where(self.model.id == id))
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Error deleting %s with id: %s", self.model.__name__, id)
            raise
        return result.rowcount > 0

    async def soft_delete(self, id: str) -> bool:
        entity = await self.get_by_id(id)
        if entity is None or entity.is_deleted:
            return False
        entity.is_deleted = True
        entity.updated_at = utcnow()
        await self.update(entity)
        return True
