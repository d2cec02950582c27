"""User directory: CRUD, worker skills, and delete guards."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import or_
from sqlmodel import col

from app.core.logging import get_logger
from app.core.passwords import hash_password
from app.core.time import utcnow
from app.db import crud
from app.models.tasks import ACTIVE_TASK_STATES, Task
from app.models.users import WORKER_ROLE, User, UserTaskType
from app.services.errors import InvalidRequestError, InvalidStateError, NotFoundError
from app.services.task_types import get_task_type_or_404, require_task_types

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.schemas.users import UserCreate, UserUpdate

logger = get_logger(__name__)


async def get_user_or_404(session: AsyncSession, user_id: UUID) -> User:
    user = await User.objects.by_id(user_id).first(session)
    if user is None:
        raise NotFoundError("user_not_found", "User not found.")
    return user


async def _ensure_name_available(
    session: AsyncSession,
    name: str,
    *,
    exclude_id: UUID | None = None,
) -> None:
    existing = await User.objects.filter_by(name=name).first(session)
    if existing is not None and existing.id != exclude_id:
        raise InvalidRequestError("user_name_taken", f"User {name!r} already exists.")


async def create_user(session: AsyncSession, payload: UserCreate) -> User:
    await _ensure_name_available(session, payload.name)
    task_type_ids = await require_task_types(session, payload.task_type_ids)
    user = User(
        name=payload.name,
        password_hash=hash_password(payload.password),
        role=payload.role,
    )
    session.add(user)
    await session.flush()
    session.add_all(
        UserTaskType(user_id=user.id, task_type_id=task_type_id)
        for task_type_id in task_type_ids
    )
    await session.commit()
    await session.refresh(user)
    logger.info("user.created", extra={"user_id": str(user.id), "role": user.role})
    return user


async def _has_active_tasks(session: AsyncSession, user_id: UUID) -> bool:
    return await Task.objects.filter_by(assignee_id=user_id).filter(
        col(Task.state).in_(ACTIVE_TASK_STATES),
    ).exists(session)


async def update_user(session: AsyncSession, user_id: UUID, payload: UserUpdate) -> User:
    user = await get_user_or_404(session, user_id)
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in updates:
        await _ensure_name_available(session, updates["name"], exclude_id=user_id)
    if updates.get("role", user.role) != WORKER_ROLE and await _has_active_tasks(session, user_id):
        raise InvalidStateError(
            "user_has_active_tasks",
            "User has assigned or in-progress tasks; finish them before changing role.",
        )
    updates["updated_at"] = utcnow()
    return await crud.patch(session, user, updates)


async def add_skill(session: AsyncSession, user_id: UUID, task_type_id: UUID) -> User:
    """Qualify the user for *task_type_id*; re-adding a skill is rejected."""
    user = await get_user_or_404(session, user_id)
    await get_task_type_or_404(session, task_type_id)
    _, created = await crud.get_or_create(
        session,
        UserTaskType,
        user_id=user_id,
        task_type_id=task_type_id,
    )
    if not created:
        raise InvalidRequestError("skill_already_present", "User already has this task type.")
    return user


async def remove_skill(session: AsyncSession, user_id: UUID, task_type_id: UUID) -> User:
    user = await get_user_or_404(session, user_id)
    removed = await crud.delete_where(
        session,
        UserTaskType,
        col(UserTaskType.user_id) == user_id,
        col(UserTaskType.task_type_id) == task_type_id,
    )
    if removed == 0:
        raise InvalidRequestError("skill_not_present", "User does not have this task type.")
    return user


async def delete_user(session: AsyncSession, user_id: UUID) -> None:
    """Delete a user who holds no task; skills are removed with them."""
    await get_user_or_404(session, user_id)
    if await _has_active_tasks(session, user_id):
        raise InvalidStateError(
            "user_has_active_tasks",
            "User has assigned or in-progress tasks.",
        )
    if await Task.objects.filter(
        or_(col(Task.assignee_id) == user_id, col(Task.assigner_id) == user_id),
    ).exists(session):
        raise InvalidStateError(
            "user_has_task_history",
            "User is referenced by finished tasks.",
        )
    await crud.delete_where(
        session,
        UserTaskType,
        col(UserTaskType.user_id) == user_id,
        commit=False,
    )
    await crud.delete_where(session, User, col(User.id) == user_id, commit=False)
    await session.commit()
    logger.info("user.deleted", extra={"user_id": str(user_id)})
