"""Machine model and its supported-task-type association rows."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

MACHINE_NAME_MIN_LENGTH = 2
MACHINE_NAME_MAX_LENGTH = 50


class Machine(QueryModel, table=True):
    """Physical lab machine.

    There is no status column: idle/in-use is derived from the
    `task_machines` bindings of in-progress tasks at read time.
    """

    __tablename__ = "machines"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(index=True, unique=True, max_length=MACHINE_NAME_MAX_LENGTH)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class MachineTaskType(QueryModel, table=True):
    """Capability link: the machine can run tasks of the given type."""

    __tablename__ = "machine_task_types"  # pyright: ignore[reportAssignmentType]

    machine_id: UUID = Field(foreign_key="machines.id", primary_key=True)
    task_type_id: UUID = Field(foreign_key="task_types.id", primary_key=True, index=True)
    created_at: datetime = Field(default_factory=utcnow)
