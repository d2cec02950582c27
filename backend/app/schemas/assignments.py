"""Schemas for automatic assignment preview/confirm and start-next."""

from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

from app.schemas.tasks import TaskRead, UserRef

RUNTIME_ANNOTATION_TYPES = (UUID,)


class AssignmentPreviewRead(SQLModel):
    """Proposed assignee for one draft task."""

    task_id: UUID
    task_name: str
    preview_assignee: UserRef


class AssignmentItem(SQLModel):
    """One caller-approved task-to-worker pairing."""

    task_id: UUID
    assignee_id: UUID


class AssignmentConfirm(SQLModel):
    """Batch of approved assignments applied by a leader."""

    assigner_id: UUID
    assignments: list[AssignmentItem] = Field(min_length=1)


class AssignmentResultRead(SQLModel):
    """Per-item outcome of a batch confirm."""

    task_id: UUID
    status: Literal["assigned", "skipped"]
    assignee_id: UUID | None = None
    reason: str | None = None


class AssignmentConfirmResponse(SQLModel):
    """Full per-item result list of a batch confirm."""

    results: list[AssignmentResultRead] = Field(default_factory=list)


class StartNextRequest(SQLModel):
    """Worker asking to start their next task."""

    worker_id: UUID


class StartNextResponse(SQLModel):
    """The task that was started and its bound machines."""

    message: str
    task: TaskRead
