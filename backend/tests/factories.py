# ruff: noqa: INP001
"""Engine builders and record factories shared by the backend tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from itertools import count
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.passwords import hash_password
from app.db.session import build_engine, create_schema
from app.models.machines import Machine, MachineTaskType
from app.models.task_types import TaskType
from app.models.tasks import TASK_STATE_DRAFT, Task, TaskMachine
from app.models.users import WORKER_ROLE, User, UserTaskType

if TYPE_CHECKING:
    from pathlib import Path

# Records get strictly increasing creation times so ordering is deterministic.
_BASE_TIME = datetime(2026, 3, 2, 8, 0, 0)
_TICKS = count()
# Hashed once and shared by every factory user.
_PASSWORD_HASH = hash_password("secret")


def next_created_at() -> datetime:
    return _BASE_TIME + timedelta(seconds=next(_TICKS))


async def make_engine(tmp_path: Path | None = None) -> AsyncEngine:
    """Build a schema-initialized SQLite engine, file-backed when *tmp_path* is given."""
    url = (
        f"sqlite+aiosqlite:///{tmp_path / 'lab.db'}"
        if tmp_path is not None
        else "sqlite+aiosqlite:///:memory:"
    )
    engine = build_engine(url)
    await create_schema(engine)
    return engine


def make_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def add_task_type(
    session: AsyncSession,
    name: str = "electrical",
    *,
    machine_count: int = 1,
) -> TaskType:
    task_type = TaskType(name=name, machine_count=machine_count, created_at=next_created_at())
    session.add(task_type)
    await session.commit()
    await session.refresh(task_type)
    return task_type


async def add_machine(session: AsyncSession, name: str, *task_types: TaskType) -> Machine:
    machine = Machine(name=name, created_at=next_created_at())
    session.add(machine)
    await session.flush()
    session.add_all(
        MachineTaskType(machine_id=machine.id, task_type_id=task_type.id)
        for task_type in task_types
    )
    await session.commit()
    await session.refresh(machine)
    return machine


async def add_user(
    session: AsyncSession,
    name: str,
    *skills: TaskType,
    role: str = WORKER_ROLE,
) -> User:
    user = User(
        name=name,
        password_hash=_PASSWORD_HASH,
        role=role,
        created_at=next_created_at(),
    )
    session.add(user)
    await session.flush()
    session.add_all(UserTaskType(user_id=user.id, task_type_id=skill.id) for skill in skills)
    await session.commit()
    await session.refresh(user)
    return user


async def add_task(
    session: AsyncSession,
    task_type: TaskType,
    name: str = "task",
    *,
    state: str = TASK_STATE_DRAFT,
    assignee: User | None = None,
    assign_time: datetime | None = None,
    machines: tuple[Machine, ...] = (),
) -> Task:
    """Insert a task directly in any state, binding *machines* when given."""
    created_at = next_created_at()
    task = Task(
        task_type_id=task_type.id,
        name=name,
        state=state,
        assignee_id=assignee.id if assignee else None,
        assign_time=assign_time or (created_at if assignee else None),
        created_at=created_at,
    )
    session.add(task)
    await session.flush()
    session.add_all(
        TaskMachine(machine_id=machine.id, task_id=task.id, position=position)
        for position, machine in enumerate(machines)
    )
    await session.commit()
    await session.refresh(task)
    return task
