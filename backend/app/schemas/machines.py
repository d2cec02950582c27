"""Machine API schemas, including the derived busy/idle status."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

from app.models.machines import MACHINE_NAME_MAX_LENGTH, MACHINE_NAME_MIN_LENGTH

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

MachineStatus = Literal["idle", "in-use"]


class MachineCreate(SQLModel):
    """Payload used to register a machine and its supported task types."""

    name: str = Field(
        min_length=MACHINE_NAME_MIN_LENGTH,
        max_length=MACHINE_NAME_MAX_LENGTH,
        description="Unique machine name.",
        examples=["GPU-01"],
    )
    task_type_ids: list[UUID] = Field(
        default_factory=list,
        description="Task types this machine can run.",
    )


class MachineUpdate(SQLModel):
    """Payload for partial machine updates; `task_type_ids` replaces the set."""

    name: str | None = Field(
        default=None,
        min_length=MACHINE_NAME_MIN_LENGTH,
        max_length=MACHINE_NAME_MAX_LENGTH,
    )
    task_type_ids: list[UUID] | None = None


class MachineRead(SQLModel):
    """Machine payload with status derived from in-progress task bindings."""

    id: UUID
    name: str
    task_type_ids: list[UUID] = Field(default_factory=list)
    status: MachineStatus = Field(
        default="idle",
        description="`in-use` while bound to an in-progress task, otherwise `idle`.",
        examples=["idle"],
    )
    current_task_id: UUID | None = None
    created_at: datetime
    updated_at: datetime
