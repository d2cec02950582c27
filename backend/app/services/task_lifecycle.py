"""Draft editing and terminal transitions for tasks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from app.core.logging import get_logger
from app.core.time import utcnow
from app.db import crud
from app.models.task_types import TaskType
from app.models.tasks import (
    TASK_STATE_DRAFT,
    TASK_STATE_FAIL,
    TASK_STATE_IN_PROGRESS,
    TASK_STATE_SUCCESS,
    TASK_STATE_TRANSITIONS,
    Task,
    TaskMachine,
)
from app.services.errors import InvalidRequestError, InvalidStateError, NotFoundError

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.schemas.tasks import TaskCreate, TaskUpdate

logger = get_logger(__name__)


def validate_state_transition(current: str, target: str) -> None:
    """Raise `InvalidStateError` unless *current* may move to *target*."""
    if target not in TASK_STATE_TRANSITIONS.get(current, frozenset()):
        raise InvalidStateError(
            "invalid_transition",
            f"Task cannot move from {current} to {target}.",
        )


async def get_task_or_404(session: AsyncSession, task_id: UUID) -> Task:
    task = await Task.objects.by_id(task_id).first(session)
    if task is None:
        raise NotFoundError("task_not_found", "Task not found.")
    return task


async def _require_task_type(session: AsyncSession, task_type_id: UUID) -> TaskType:
    task_type = await TaskType.objects.by_id(task_type_id).first(session)
    if task_type is None:
        raise InvalidRequestError("task_type_not_found", "Task type does not exist.")
    return task_type


async def create_task(session: AsyncSession, payload: TaskCreate) -> Task:
    """Create a new task in `draft`."""
    await _require_task_type(session, payload.task_type_id)
    task = Task(task_type_id=payload.task_type_id, name=payload.name)
    session.add(task)
    await session.commit()
    await session.refresh(task)
    logger.info("task.created", extra={"task_id": str(task.id)})
    return task


async def update_draft(session: AsyncSession, task_id: UUID, payload: TaskUpdate) -> Task:
    """Edit name or task type of a draft task."""
    task = await get_task_or_404(session, task_id)
    if task.state != TASK_STATE_DRAFT:
        raise InvalidStateError("task_not_draft", "Only draft tasks can be edited.")
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "task_type_id" in updates:
        await _require_task_type(session, updates["task_type_id"])
    updates["updated_at"] = utcnow()
    return await crud.patch(session, task, updates)


async def delete_task(session: AsyncSession, task_id: UUID) -> None:
    """Delete a task; only drafts may be deleted."""
    task = await get_task_or_404(session, task_id)
    if task.state != TASK_STATE_DRAFT:
        raise InvalidStateError("task_not_draft", "Only draft tasks can be deleted.")
    removed = await crud.delete_where(
        session,
        Task,
        col(Task.id) == task_id,
        col(Task.state) == TASK_STATE_DRAFT,
    )
    if removed != 1:
        raise InvalidStateError("task_not_draft", "Only draft tasks can be deleted.")
    logger.info("task.deleted", extra={"task_id": str(task_id)})


async def _finish(
    session: AsyncSession,
    task_id: UUID,
    *,
    target: str,
    message: str | None,
) -> Task:
    task = await get_task_or_404(session, task_id)
    validate_state_transition(task.state, target)

    now = utcnow()
    values: dict[str, object] = {"state": target, "end_time": now, "updated_at": now}
    if message is not None:
        values["message"] = message
    updated = await crud.update_where(
        session,
        Task,
        col(Task.id) == task_id,
        col(Task.state) == TASK_STATE_IN_PROGRESS,
        values=values,
        commit=False,
    )
    if updated != 1:
        await session.rollback()
        raise InvalidStateError(
            "invalid_transition",
            f"Task is no longer {TASK_STATE_IN_PROGRESS}.",
        )
    released = await crud.delete_where(
        session,
        TaskMachine,
        col(TaskMachine.task_id) == task_id,
        commit=False,
    )
    await session.commit()
    await session.refresh(task)
    logger.info(
        "task.finished",
        extra={"task_id": str(task_id), "state": target, "released_machines": released},
    )
    return task


async def complete_task(
    session: AsyncSession,
    task_id: UUID,
    *,
    message: str | None = None,
) -> Task:
    """Move an in-progress task to `success` and release its machines."""
    return await _finish(session, task_id, target=TASK_STATE_SUCCESS, message=message)


async def fail_task(
    session: AsyncSession,
    task_id: UUID,
    *,
    message: str | None = None,
) -> Task:
    """Move an in-progress task to `fail` and release its machines."""
    return await _finish(session, task_id, target=TASK_STATE_FAIL, message=message)
