"""User directory endpoints, worker skills, and per-worker task summaries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter
from sqlmodel import col

from app.api.deps import API_AUTH_DEP, SESSION_DEP
from app.db.pagination import paginate
from app.models.users import WORKER_ROLE, User
from app.schemas.common import DeletedResponse
from app.schemas.pagination import DefaultLimitOffsetPage
from app.schemas.users import (
    UserCreate,
    UserRead,
    UserSkillUpdate,
    UserUpdate,
    UserWithTasksRead,
)
from app.services import users as user_service
from app.services.task_reads import (
    attach_user_skills,
    to_user_read,
    user_reads,
    users_with_tasks,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/users", tags=["users"], dependencies=[API_AUTH_DEP])


async def _user_read(session: AsyncSession, user: User) -> UserRead:
    return (await user_reads(session, [user]))[0]


@router.post("", response_model=UserRead)
async def create_user(
    payload: UserCreate,
    session: AsyncSession = SESSION_DEP,
) -> UserRead:
    """Create a user with an optional initial skill set."""
    user = await user_service.create_user(session, payload)
    return await _user_read(session, user)


@router.get("", response_model=DefaultLimitOffsetPage[UserRead])
async def list_users(
    session: AsyncSession = SESSION_DEP,
) -> LimitOffsetPage[UserRead]:
    statement = (
        User.objects.all().order_by(col(User.created_at).asc(), col(User.id).asc()).statement
    )

    def _transform(items: Sequence[Any]) -> Sequence[Any]:
        return [to_user_read(item) for item in items]

    page = await paginate(session, statement, transformer=_transform)
    await attach_user_skills(session, page.items)
    return page


@router.get("/with-tasks", response_model=list[UserWithTasksRead])
async def list_workers_with_tasks(
    session: AsyncSession = SESSION_DEP,
) -> list[UserWithTasksRead]:
    """Every worker with their assigned, in-progress, and completed tasks."""
    workers = await User.objects.filter_by(role=WORKER_ROLE).order_by(
        col(User.created_at).asc(),
        col(User.id).asc(),
    ).all(session)
    return await users_with_tasks(session, workers)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: UUID,
    session: AsyncSession = SESSION_DEP,
) -> UserRead:
    user = await user_service.get_user_or_404(session, user_id)
    return await _user_read(session, user)


@router.patch("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    session: AsyncSession = SESSION_DEP,
) -> UserRead:
    user = await user_service.update_user(session, user_id, payload)
    return await _user_read(session, user)


@router.delete("/{user_id}", response_model=DeletedResponse)
async def delete_user(
    user_id: UUID,
    session: AsyncSession = SESSION_DEP,
) -> DeletedResponse:
    """Delete a user that no task references."""
    await user_service.delete_user(session, user_id)
    return DeletedResponse(id=user_id)


@router.post("/{user_id}/add-task-type", response_model=UserRead)
async def add_task_type(
    user_id: UUID,
    payload: UserSkillUpdate,
    session: AsyncSession = SESSION_DEP,
) -> UserRead:
    """Qualify the user for one more task type."""
    user = await user_service.add_skill(session, user_id, payload.task_type_id)
    return await _user_read(session, user)


@router.delete("/{user_id}/remove-task-type", response_model=UserRead)
async def remove_task_type(
    user_id: UUID,
    payload: UserSkillUpdate,
    session: AsyncSession = SESSION_DEP,
) -> UserRead:
    """Remove one task type from the user's skills."""
    user = await user_service.remove_skill(session, user_id, payload.task_type_id)
    return await _user_read(session, user)
