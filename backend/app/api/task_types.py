"""Task type catalog endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter
from sqlmodel import col

from app.api.deps import API_AUTH_DEP, SESSION_DEP
from app.db.pagination import paginate
from app.models.task_types import TaskType
from app.schemas.common import DeletedResponse
from app.schemas.pagination import DefaultLimitOffsetPage
from app.schemas.task_types import TaskTypeCreate, TaskTypeRead, TaskTypeUpdate
from app.services import task_types as task_type_service

if TYPE_CHECKING:
    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/task-types", tags=["task-types"], dependencies=[API_AUTH_DEP])


@router.post("", response_model=TaskTypeRead)
async def create_task_type(
    payload: TaskTypeCreate,
    session: AsyncSession = SESSION_DEP,
) -> TaskType:
    """Register a task type and the number of machines it occupies."""
    return await task_type_service.create_task_type(session, payload)


@router.get("", response_model=DefaultLimitOffsetPage[TaskTypeRead])
async def list_task_types(
    session: AsyncSession = SESSION_DEP,
) -> LimitOffsetPage[TaskTypeRead]:
    statement = TaskType.objects.all().order_by(col(TaskType.name).asc()).statement
    return await paginate(session, statement)


@router.get("/{task_type_id}", response_model=TaskTypeRead)
async def get_task_type(
    task_type_id: UUID,
    session: AsyncSession = SESSION_DEP,
) -> TaskType:
    return await task_type_service.get_task_type_or_404(session, task_type_id)


@router.patch("/{task_type_id}", response_model=TaskTypeRead)
async def update_task_type(
    task_type_id: UUID,
    payload: TaskTypeUpdate,
    session: AsyncSession = SESSION_DEP,
) -> TaskType:
    return await task_type_service.update_task_type(session, task_type_id, payload)


@router.delete("/{task_type_id}", response_model=DeletedResponse)
async def delete_task_type(
    task_type_id: UUID,
    session: AsyncSession = SESSION_DEP,
) -> DeletedResponse:
    """Delete a task type that no task references."""
    await task_type_service.delete_task_type(session, task_type_id)
    return DeletedResponse(id=task_type_id)
