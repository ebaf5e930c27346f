"""Async repository pattern for database access.

Provides a generic base repository bound to one ``AsyncSession`` with the
four operations every entity family supports (get, list_by_category,
create, update). Rows are returned as pydantic schemas, never as live ORM
objects. Concrete repositories subclass this to add their own queries.

The repository never commits, caches or retries: the caller owns the
session scope (``Database.session()`` / ``Database.transaction()``).
"""

from enum import Enum
from typing import Any, Generic, Sequence, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.models.base import Base

# ---------------------------------------------------------------------------
# Type variables for model and schema classes
# ---------------------------------------------------------------------------

ModelT = TypeVar("ModelT", bound=Base)
SchemaT = TypeVar("SchemaT", bound=BaseModel)


def column_values(data: BaseModel | dict[str, Any], exclude_unset: bool = False) -> dict[str, Any]:
    """Flatten a payload into column values (enum members become their values)."""
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=exclude_unset)
    return {k: v.value if isinstance(v, Enum) else v for k, v in data.items()}


# ---------------------------------------------------------------------------
# Base repository
# ---------------------------------------------------------------------------

class BaseRepository(Generic[ModelT, SchemaT]):
    """Generic async repository with get / list / create / update.

    Subclass and set ``model`` and ``schema``::

        class PartTypeRepository(BaseRepository[PartTypeRow, PartType]):
            model = PartTypeRow
            schema = PartType
            order_by = ("display_order", "name")

    ``order_by`` lists the columns used for listings; ``id`` is always
    appended so the order is total. ``relationships`` names collections
    that must be loaded before a freshly written row is converted.
    """

    model: type[ModelT]
    schema: type[SchemaT]
    category_column: str = "product_category_id"
    order_by: tuple[str, ...] = ("name",)
    relationships: tuple[str, ...] = ()
    protected_fields: tuple[str, ...] = ("id", "created_at", "updated_at")

    def __init__(self, session: AsyncSession):
        self.session = session

    # -- Conversion --

    def _to_schema(self, row: ModelT) -> SchemaT:
        return self.schema.model_validate(row, from_attributes=True)

    def _to_schemas(self, rows: Sequence[ModelT]) -> list[SchemaT]:
        return [self._to_schema(row) for row in rows]

    def _ordering(self) -> list:
        return [getattr(self.model, name) for name in self.order_by] + [self.model.id]

    async def _reload(self, row: ModelT) -> None:
        """Load server state and named collections of a just-flushed row."""
        await self.session.refresh(row)
        if self.relationships:
            await self.session.refresh(row, attribute_names=list(self.relationships))

    async def _get_row(self, item_id: str) -> ModelT | None:
        stmt = select(self.model).where(self.model.id == item_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # -- Get by ID --

    async def get(self, item_id: str) -> SchemaT | None:
        """Get a single entity by ID, or None if absent."""
        row = await self._get_row(item_id)
        return self._to_schema(row) if row else None

    # -- List by category --

    async def list_by_category(self, category_id: str) -> list[SchemaT]:
        """List every entity of a product category in listing order."""
        stmt = (
            select(self.model)
            .where(getattr(self.model, self.category_column) == category_id)
            .order_by(*self._ordering())
        )
        result = await self.session.execute(stmt)
        return self._to_schemas(result.scalars().all())

    # -- Create --

    async def create(self, data: BaseModel | dict[str, Any]) -> SchemaT:
        """Insert a new entity; the id is assigned here."""
        values = column_values(data)
        for key in self.protected_fields:
            values.pop(key, None)
        row = self.model(**values)
        self.session.add(row)
        await self.session.flush()
        await self._reload(row)
        return self._to_schema(row)

    # -- Update --

    async def update(self, item_id: str, data: BaseModel | dict[str, Any]) -> SchemaT | None:
        """Apply a partial update. Returns None if not found."""
        row = await self._get_row(item_id)
        if row is None:
            return None

        for key, value in column_values(data, exclude_unset=True).items():
            if hasattr(row, key) and key not in self.protected_fields:
                setattr(row, key, value)

        await self.session.flush()
        await self._reload(row)
        return self._to_schema(row)
