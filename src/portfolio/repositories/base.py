"""Base repository with common CRUD operations.

Provides generic database operations that model-specific repositories
inherit. Uses SQLAlchemy 2.0's async API with proper type hints.

Supports both Pydantic models and dictionaries for create/update operations.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio.db.base import Base

# Generic type for SQLAlchemy models
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations.

    Repositories do NOT manage transactions; the caller is responsible for
    commit/rollback (usually through ``transactional``).

    Type Parameters:
        ModelType: The SQLAlchemy model class

    Example:
        >>> class InstrumentRepository(BaseRepository[Instrument]):
        ...     pass
        >>>
        >>> repo = InstrumentRepository(Instrument, db)
        >>> instrument = await repo.get("AL30")
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """Initialize repository.

        Args:
            model: The SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def get(self, id: Any) -> ModelType | None:
        """Get a single record by primary key.

        Args:
            id: Primary key value, or a tuple for composite keys

        Returns:
            Model instance if found, None otherwise
        """
        return await self.db.get(self.model, id)

    async def create(self, *, obj_in: BaseModel | dict[str, Any]) -> ModelType:
        """Create a new record.

        Args:
            obj_in: Pydantic model or dictionary of field names and values

        Returns:
            Created model instance (flushed, not yet committed)

        Example:
            >>> itype = await repo.create(obj_in={"code": "crypto", "name": "Crypto"})
            >>> await db.commit()
        """
        if isinstance(obj_in, BaseModel):
            create_data = obj_in.model_dump(exclude_unset=True)
        else:
            create_data = obj_in

        db_obj = self.model(**create_data)
        self.db.add(db_obj)
        await self.db.flush()
        await self.db.refresh(db_obj)
        return db_obj

    async def update(
        self,
        *,
        db_obj: ModelType,
        obj_in: BaseModel | dict[str, Any],
    ) -> ModelType:
        """Update an existing record.

        Args:
            db_obj: Existing model instance to update
            obj_in: Pydantic model or dictionary of fields to update (can be partial)

        Returns:
            Updated model instance (flushed, not yet committed)
        """
        if isinstance(obj_in, BaseModel):
            update_data = obj_in.model_dump(exclude_unset=True)
        else:
            update_data = obj_in

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        await self.db.flush()
        await self.db.refresh(db_obj)
        return db_obj

    async def delete(self, *, id: Any) -> ModelType:
        """Delete a record by primary key.

        Args:
            id: Primary key value

        Returns:
            Deleted model instance (flushed, not yet committed)

        Raises:
            ValueError: If record not found
        """
        db_obj = await self.get(id)
        if not db_obj:
            raise ValueError(f"{self.model.__name__} with id {id} not found")

        await self.db.delete(db_obj)
        await self.db.flush()
        return db_obj

    async def exists(self, id: Any) -> bool:
        """Check if a record exists by primary key.

        Args:
            id: Primary key value

        Returns:
            True if record exists, False otherwise
        """
        return await self.get(id) is not None
