"""Task type catalog: CRUD with unique names and restrict-delete."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from app.core.logging import get_logger
from app.core.time import utcnow
from app.db import crud
from app.models.machines import MachineTaskType
from app.models.task_types import TaskType
from app.models.tasks import Task
from app.models.users import UserTaskType
from app.services.errors import InvalidRequestError, InvalidStateError, NotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.schemas.task_types import TaskTypeCreate, TaskTypeUpdate

logger = get_logger(__name__)


async def get_task_type_or_404(session: AsyncSession, task_type_id: UUID) -> TaskType:
    task_type = await TaskType.objects.by_id(task_type_id).first(session)
    if task_type is None:
        raise NotFoundError("task_type_not_found", "Task type not found.")
    return task_type


async def require_task_types(session: AsyncSession, task_type_ids: Iterable[UUID]) -> list[UUID]:
    """Return *task_type_ids* de-duplicated, raising 422 if any is unknown."""
    ids = list(dict.fromkeys(task_type_ids))
    if not ids:
        return []
    found = {task_type.id for task_type in await TaskType.objects.by_ids(ids).all(session)}
    missing = [task_type_id for task_type_id in ids if task_type_id not in found]
    if missing:
        raise InvalidRequestError(
            "task_type_not_found",
            f"Unknown task type ids: {', '.join(str(item) for item in missing)}.",
        )
    return ids


async def _ensure_name_available(
    session: AsyncSession,
    name: str,
    *,
    exclude_id: UUID | None = None,
) -> None:
    existing = await TaskType.objects.filter_by(name=name).first(session)
    if existing is not None and existing.id != exclude_id:
        raise InvalidRequestError("task_type_name_taken", f"Task type {name!r} already exists.")


async def create_task_type(session: AsyncSession, payload: TaskTypeCreate) -> TaskType:
    await _ensure_name_available(session, payload.name)
    task_type = TaskType.model_validate(payload)
    session.add(task_type)
    await session.commit()
    await session.refresh(task_type)
    logger.info("task_type.created", extra={"task_type_id": str(task_type.id)})
    return task_type


async def update_task_type(
    session: AsyncSession,
    task_type_id: UUID,
    payload: TaskTypeUpdate,
) -> TaskType:
    task_type = await get_task_type_or_404(session, task_type_id)
    updates = payload.model_dump(exclude_unset=True)
    if updates.get("name") is not None:
        await _ensure_name_available(session, updates["name"], exclude_id=task_type_id)
    for key in ("name", "machine_count"):
        if key in updates and updates[key] is None:
            del updates[key]
    updates["updated_at"] = utcnow()
    return await crud.patch(session, task_type, updates)


async def delete_task_type(session: AsyncSession, task_type_id: UUID) -> None:
    """Delete a task type no task references, along with its capability rows."""
    await get_task_type_or_404(session, task_type_id)
    if await Task.objects.filter_by(task_type_id=task_type_id).exists(session):
        raise InvalidStateError(
            "task_type_in_use",
            "Task type is referenced by existing tasks.",
        )
    await crud.delete_where(
        session,
        MachineTaskType,
        col(MachineTaskType.task_type_id) == task_type_id,
        commit=False,
    )
    await crud.delete_where(
        session,
        UserTaskType,
        col(UserTaskType.task_type_id) == task_type_id,
        commit=False,
    )
    await crud.delete_where(session, TaskType, col(TaskType.id) == task_type_id, commit=False)
    await session.commit()
    logger.info("task_type.deleted", extra={"task_type_id": str(task_type_id)})
