"""Generic async repository for SQLAlchemy 2.0."""
from __future__ import annotations

from typing import Any, ClassVar, Generic, List, Optional, TypeVar

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    """CRUD helpers over one model. Callers own the transaction (commit/rollback)."""

    model: ClassVar[type]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, data: dict[str, Any]) -> ModelT:
        instance = self.model(**data)
        self.session.add(instance)
        await self.session.flush()
        return instance  # type: ignore[return-value]

    async def find_one(self, **lookup: Any) -> Optional[ModelT]:
        conditions = [getattr(self.model, k) == v for k, v in lookup.items()]
        stmt = select(self.model).where(and_(*conditions)).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, lookup: dict[str, Any], defaults: dict[str, Any]) -> tuple[ModelT, bool]:
        instance = await self.find_one(**lookup)
        if instance is not None:
            return instance, False
        instance = await self.create({**lookup, **defaults})
        return instance, True

    async def list_where(self, *conditions: Any, order_by: Any = None, limit: int = 100) -> List[ModelT]:
        stmt = select(self.model).where(*conditions)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        result = await self.session.execute(stmt.limit(limit))
        return list(result.scalars().all())  # type: ignore[return-value]
