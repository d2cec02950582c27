"""User API schemas for create, update, read, and skill edits."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

UserRole = Literal["admin", "leader", "worker"]


class UserCreate(SQLModel):
    """Payload used to create a user record."""

    name: str = Field(min_length=1, max_length=100, examples=["worker001"])
    password: str = Field(min_length=1, description="Plain-text password; stored hashed.")
    role: UserRole = Field(examples=["worker"])
    task_type_ids: list[UUID] = Field(
        default_factory=list,
        description="Initial skills (task types the user can perform).",
    )


class UserUpdate(SQLModel):
    """Payload for partial user updates."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    role: UserRole | None = None


class UserSkillUpdate(SQLModel):
    """Payload naming a single skill to add or remove."""

    task_type_id: UUID


class UserRead(SQLModel):
    """User payload returned by API responses (never includes the hash)."""

    id: UUID
    name: str
    role: str
    task_type_ids: list[UUID] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class WorkerTaskSummary(SQLModel):
    """Compact task entry used in per-worker summaries."""

    id: UUID
    name: str
    state: str
    task_type_name: str | None = None
    machine_names: list[str] = Field(default_factory=list)


class UserWithTasksRead(UserRead):
    """Worker payload with assigned, running, and completed task summaries."""

    assigned_tasks: list[WorkerTaskSummary] = Field(default_factory=list)
    in_progress_tasks: list[WorkerTaskSummary] = Field(default_factory=list)
    completed_tasks: list[WorkerTaskSummary] = Field(default_factory=list)
