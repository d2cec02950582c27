"""Base model with a small Django-style query manager for SQLModel tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from sqlmodel import SQLModel, col, select

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.sql.elements import ColumnElement
    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

ModelT = TypeVar("ModelT", bound="QueryModel")


@dataclass(frozen=True)
class QuerySet(Generic[ModelT]):
    """Immutable, lazily-evaluated query over a single model."""

    model: type[ModelT]
    criteria: tuple[ColumnElement[bool], ...] = ()
    ordering: tuple[Any, ...] = field(default_factory=tuple)

    def filter(self, *criteria: ColumnElement[bool]) -> QuerySet[ModelT]:
        return QuerySet(self.model, (*self.criteria, *criteria), self.ordering)

    def filter_by(self, **kwargs: Any) -> QuerySet[ModelT]:
        extra = tuple(col(getattr(self.model, key)) == value for key, value in kwargs.items())
        return self.filter(*extra)

    def order_by(self, *ordering: Any) -> QuerySet[ModelT]:
        return QuerySet(self.model, self.criteria, (*self.ordering, *ordering))

    @property
    def statement(self) -> SelectOfScalar[ModelT]:
        statement = select(self.model)
        if self.criteria:
            statement = statement.where(*self.criteria)
        if self.ordering:
            statement = statement.order_by(*self.ordering)
        return statement

    async def all(self, session: AsyncSession) -> list[ModelT]:
        return list(await session.exec(self.statement))

    async def first(self, session: AsyncSession) -> ModelT | None:
        return (await session.exec(self.statement.limit(1))).first()

    async def exists(self, session: AsyncSession) -> bool:
        return await self.first(session) is not None


class ModelManager(Generic[ModelT]):
    """Entry point for building query sets, exposed as `Model.objects`."""

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    def all(self) -> QuerySet[ModelT]:
        return QuerySet(self.model)

    def filter(self, *criteria: ColumnElement[bool]) -> QuerySet[ModelT]:
        return self.all().filter(*criteria)

    def filter_by(self, **kwargs: Any) -> QuerySet[ModelT]:
        return self.all().filter_by(**kwargs)

    def by_id(self, obj_id: object) -> QuerySet[ModelT]:
        return self.filter_by(id=obj_id)

    def by_ids(self, obj_ids: Iterable[object]) -> QuerySet[ModelT]:
        return self.by_field_in("id", obj_ids)

    def by_field_in(self, field_name: str, values: Iterable[object]) -> QuerySet[ModelT]:
        return self.filter(col(getattr(self.model, field_name)).in_(list(values)))


class _ManagerDescriptor:
    def __get__(self, instance: object, owner: type[QueryModel]) -> ModelManager[Any]:
        return ModelManager(owner)


class QueryModel(SQLModel):
    """SQLModel base that adds `Model.objects` query helpers."""

    objects: ClassVar[_ManagerDescriptor] = _ManagerDescriptor()

