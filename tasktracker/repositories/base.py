"""
Base Repository Classes
Generic CRUD operations for RDB
"""

from typing import Generic, TypeVar, Type

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.core.exceptions import NotFoundError
from tasktracker.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository for CRUD operations

    Provides common database operations for any SQLAlchemy model
    with an integer ``id`` primary key.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository

        Args:
            model: SQLAlchemy model class
            session: AsyncSession for database operations
        """
        self.model = model
        self.session = session

    async def create(self, obj: ModelType) -> ModelType:
        """
        Create new record

        Args:
            obj: Model instance to create

        Returns:
            Created model instance
        """
        self.session.add(obj)
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def get_by_id(self, id: int, *, for_update: bool = False) -> ModelType | None:
        """
        Get record by ID

        Args:
            id: Record id
            for_update: Lock the row until the transaction ends
                (ignored by backends without row locks)

        Returns:
            Model instance or None if not found
        """
        stmt = select(self.model).where(self.model.id == id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id_or_raise(self, id: int, *, for_update: bool = False) -> ModelType:
        """
        Get record by ID or raise exception

        Args:
            id: Record id

        Returns:
            Model instance

        Raises:
            NotFoundError: If record not found
        """
        obj = await self.get_by_id(id, for_update=for_update)
        if obj is None:
            raise NotFoundError(f"{self.model.__name__} with id={id} not found")
        return obj

    async def update(self, obj: ModelType) -> ModelType:
        """
        Update existing record

        Args:
            obj: Model instance with updated fields

        Returns:
            Updated model instance
        """
        await self.session.flush()
        await self.session.refresh(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        """
        Delete record

        Args:
            obj: Model instance to delete
        """
        await self.session.delete(obj)
        await self.session.flush()
