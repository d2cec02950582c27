"""Task API schemas for CRUD, lifecycle transitions, and load views."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

TaskState = Literal["draft", "assigned", "in-progress", "success", "fail"]


class TaskCreate(SQLModel):
    """Payload used to create a draft task."""

    task_type_id: UUID
    name: str = Field(min_length=1, max_length=200, examples=["electrical-001"])


class TaskUpdate(SQLModel):
    """Partial update allowed only while the task is a draft."""

    task_type_id: UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=200)


class TaskFinish(SQLModel):
    """Optional operator message attached on completion or failure."""

    message: str | None = Field(default=None, examples=["Readings nominal."])


class TaskTypeRef(SQLModel):
    """Embedded task type reference on task payloads."""

    id: UUID
    name: str
    machine_count: int


class UserRef(SQLModel):
    """Embedded user reference on task payloads."""

    id: UUID
    name: str


class MachineRef(SQLModel):
    """Embedded machine reference on task payloads."""

    id: UUID
    name: str


class TaskRead(SQLModel):
    """Fully resolved task payload."""

    id: UUID
    name: str
    task_type_id: UUID
    task_type: TaskTypeRef | None = None
    state: TaskState
    assigner_id: UUID | None = None
    assigner: UserRef | None = None
    assignee_id: UUID | None = None
    assignee: UserRef | None = None
    machine_ids: list[UUID] = Field(default_factory=list)
    machines: list[MachineRef] = Field(default_factory=list)
    assign_time: datetime | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    message: str = ""
    created_at: datetime
    updated_at: datetime


class TaskActionResponse(SQLModel):
    """Envelope returned by lifecycle actions."""

    message: str
    task: TaskRead


class WorkerLoadRead(SQLModel):
    """Current workload of a worker: assigned and in-progress tasks."""

    worker_id: UUID
    name: str
    assigned: list[TaskRead] = Field(default_factory=list)
    in_progress: list[TaskRead] = Field(default_factory=list)


class WeeklyLoadRead(SQLModel):
    """Tasks assigned to a worker within the current calendar week."""

    worker_id: UUID
    week_start: datetime
    week_end: datetime
    count: int
    tasks: list[TaskRead] = Field(default_factory=list)
