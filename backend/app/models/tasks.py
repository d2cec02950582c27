"""Task model, its lifecycle states, and live machine bindings."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Index, text
from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

TASK_STATE_DRAFT = "draft"
TASK_STATE_ASSIGNED = "assigned"
TASK_STATE_IN_PROGRESS = "in-progress"
TASK_STATE_SUCCESS = "success"
TASK_STATE_FAIL = "fail"

TASK_STATES = frozenset(
    {
        TASK_STATE_DRAFT,
        TASK_STATE_ASSIGNED,
        TASK_STATE_IN_PROGRESS,
        TASK_STATE_SUCCESS,
        TASK_STATE_FAIL,
    },
)
TASK_STATE_TRANSITIONS: dict[str, frozenset[str]] = {
    TASK_STATE_DRAFT: frozenset({TASK_STATE_ASSIGNED}),
    TASK_STATE_ASSIGNED: frozenset({TASK_STATE_IN_PROGRESS}),
    TASK_STATE_IN_PROGRESS: frozenset({TASK_STATE_SUCCESS, TASK_STATE_FAIL}),
    TASK_STATE_SUCCESS: frozenset(),
    TASK_STATE_FAIL: frozenset(),
}
ACTIVE_TASK_STATES = (TASK_STATE_ASSIGNED, TASK_STATE_IN_PROGRESS)

_IN_PROGRESS_PREDICATE = text(f"state = '{TASK_STATE_IN_PROGRESS}'")


class Task(QueryModel, table=True):
    """Unit of lab work moving from draft to a terminal success/fail state."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        # At most one in-progress task per worker, enforced by the store.
        Index(
            "uq_tasks_assignee_in_progress",
            "assignee_id",
            unique=True,
            postgresql_where=_IN_PROGRESS_PREDICATE,
            sqlite_where=_IN_PROGRESS_PREDICATE,
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_type_id: UUID = Field(foreign_key="task_types.id", index=True)
    name: str
    assigner_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)

    state: str = Field(default=TASK_STATE_DRAFT, index=True)
    assignee_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    assign_time: datetime | None = Field(default=None, index=True)
    start_time: datetime | None = None
    end_time: datetime | None = None
    message: str = Field(default="")

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TaskMachine(QueryModel, table=True):
    """Binding of a machine to the in-progress task currently using it.

    `machine_id` is the primary key, so a machine can be bound to at most one
    task at a time; rows are removed when the task reaches a terminal state.
    """

    __tablename__ = "task_machines"  # pyright: ignore[reportAssignmentType]

    machine_id: UUID = Field(foreign_key="machines.id", primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True)
    position: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
