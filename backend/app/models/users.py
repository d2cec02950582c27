"""User model and worker skill association rows."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

USER_ROLES = frozenset({"admin", "leader", "worker"})
WORKER_ROLE = "worker"


class User(QueryModel, table=True):
    """Lab user; only `worker` users receive assignments and start tasks."""

    __tablename__ = "users"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(index=True, unique=True)
    password_hash: str
    role: str = Field(default=WORKER_ROLE, index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class UserTaskType(QueryModel, table=True):
    """Skill link: the user is qualified to perform tasks of the given type."""

    __tablename__ = "user_task_types"  # pyright: ignore[reportAssignmentType]

    user_id: UUID = Field(foreign_key="users.id", primary_key=True)
    task_type_id: UUID = Field(foreign_key="task_types.id", primary_key=True, index=True)
    created_at: datetime = Field(default_factory=utcnow)
