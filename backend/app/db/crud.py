"""Generic async CRUD helpers shared by services and API handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy import update as sa_update
from sqlmodel import SQLModel, select

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.sql.elements import ColumnElement
    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)


async def get_or_create(
    session: AsyncSession,
    model: type[ModelT],
    *,
    defaults: Mapping[str, Any] | None = None,
    commit: bool = True,
    **lookup: Any,
) -> tuple[ModelT, bool]:
    """Return the row matching *lookup*, creating it with *defaults* when missing."""
    statement = select(model).filter_by(**lookup)
    existing = (await session.exec(statement)).first()
    if existing is not None:
        return existing, False
    instance = model(**{**lookup, **dict(defaults or {})})
    session.add(instance)
    if commit:
        await session.commit()
        await session.refresh(instance)
    else:
        await session.flush()
    return instance, True


async def patch(
    session: AsyncSession,
    instance: ModelT,
    updates: Mapping[str, Any],
    *,
    commit: bool = True,
) -> ModelT:
    """Apply *updates* to *instance* attribute-wise and persist it."""
    for key, value in updates.items():
        setattr(instance, key, value)
    session.add(instance)
    if commit:
        await session.commit()
        await session.refresh(instance)
    return instance


async def update_where(
    session: AsyncSession,
    model: type[SQLModel],
    *criteria: ColumnElement[bool],
    values: Mapping[str, Any],
    commit: bool = True,
) -> int:
    """Issue a conditional `UPDATE` and return the number of matched rows."""
    statement = sa_update(model).where(*criteria).values(**values)
    result = await session.exec(statement)  # type: ignore[call-overload]
    if commit:
        await session.commit()
    return int(result.rowcount or 0)


async def delete_where(
    session: AsyncSession,
    model: type[SQLModel],
    *criteria: ColumnElement[bool],
    commit: bool = True,
) -> int:
    """Issue a bulk `DELETE` and return the number of removed rows."""
    statement = sa_delete(model).where(*criteria)
    result = await session.exec(statement)  # type: ignore[call-overload]
    if commit:
        await session.commit()
    return int(result.rowcount or 0)


async def delete(session: AsyncSession, instance: SQLModel, *, commit: bool = True) -> None:
    """Delete a loaded row."""
    await session.delete(instance)
    if commit:
        await session.commit()
