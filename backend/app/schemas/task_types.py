"""Task type API schemas for create, update, and read operations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

from app.models.task_types import (
    MACHINE_COUNT_MAX,
    MACHINE_COUNT_MIN,
    TASK_TYPE_NAME_MAX_LENGTH,
    TASK_TYPE_NAME_MIN_LENGTH,
)

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class TaskTypeCreate(SQLModel):
    """Payload used to register a new task type."""

    name: str = Field(
        min_length=TASK_TYPE_NAME_MIN_LENGTH,
        max_length=TASK_TYPE_NAME_MAX_LENGTH,
        description="Unique task type name.",
        examples=["electrical"],
    )
    machine_count: int = Field(
        ge=MACHINE_COUNT_MIN,
        le=MACHINE_COUNT_MAX,
        description="Number of compatible machines one task of this type occupies.",
        examples=[2],
    )
    color: str | None = Field(
        default=None,
        description="Optional display color.",
        examples=["#ffaa00"],
    )


class TaskTypeUpdate(SQLModel):
    """Payload for partial task type updates."""

    name: str | None = Field(
        default=None,
        min_length=TASK_TYPE_NAME_MIN_LENGTH,
        max_length=TASK_TYPE_NAME_MAX_LENGTH,
    )
    machine_count: int | None = Field(default=None, ge=MACHINE_COUNT_MIN, le=MACHINE_COUNT_MAX)
    color: str | None = None


class TaskTypeRead(SQLModel):
    """Task type payload returned by read endpoints."""

    id: UUID
    name: str
    machine_count: int
    color: str | None = None
    created_at: datetime
    updated_at: datetime
