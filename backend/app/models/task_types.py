"""Task type model describing a kind of lab work and its machine demand."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

TASK_TYPE_NAME_MIN_LENGTH = 2
TASK_TYPE_NAME_MAX_LENGTH = 50
MACHINE_COUNT_MIN = 1
MACHINE_COUNT_MAX = 20


class TaskType(QueryModel, table=True):
    """Kind of task with the number of machines one run of it occupies."""

    __tablename__ = "task_types"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=TASK_TYPE_NAME_MAX_LENGTH)
    machine_count: int = Field(ge=MACHINE_COUNT_MIN, le=MACHINE_COUNT_MAX)
    color: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
