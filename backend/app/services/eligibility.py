"""Skill and capability matching for workers and machines."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlmodel import col, select

from app.models.machines import Machine, MachineTaskType
from app.models.tasks import TASK_STATE_IN_PROGRESS, Task, TaskMachine
from app.models.users import WORKER_ROLE, User, UserTaskType

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


@dataclass(frozen=True)
class WorkerProfile:
    """A worker together with the task types they are skilled in."""

    user: User
    task_type_ids: frozenset[UUID]

    @property
    def id(self) -> UUID:
        return self.user.id

    @property
    def is_specialist(self) -> bool:
        return is_specialist(self)


def is_specialist(worker: WorkerProfile) -> bool:
    """Return whether the worker has exactly one skill."""
    return len(worker.task_type_ids) == 1


async def skills_by_user(
    session: AsyncSession,
    user_ids: Iterable[UUID],
) -> dict[UUID, frozenset[UUID]]:
    ids = list(user_ids)
    if not ids:
        return {}
    rows = await session.exec(
        select(UserTaskType).where(col(UserTaskType.user_id).in_(ids)),
    )
    skills: dict[UUID, set[UUID]] = defaultdict(set)
    for row in rows:
        skills[row.user_id].add(row.task_type_id)
    return {user_id: frozenset(skills.get(user_id, ())) for user_id in ids}


async def load_worker_profiles(session: AsyncSession) -> list[WorkerProfile]:
    """Return all worker-role users with their skills, in creation order."""
    workers = await User.objects.filter_by(role=WORKER_ROLE).order_by(
        col(User.created_at).asc(),
        col(User.id).asc(),
    ).all(session)
    skills = await skills_by_user(session, (worker.id for worker in workers))
    return [
        WorkerProfile(user=worker, task_type_ids=skills.get(worker.id, frozenset()))
        for worker in workers
    ]


def filter_eligible_workers(
    workers: Sequence[WorkerProfile],
    task_type_id: UUID,
) -> list[WorkerProfile]:
    """Keep workers skilled in *task_type_id*, preserving input order."""
    return [worker for worker in workers if task_type_id in worker.task_type_ids]


async def eligible_workers(session: AsyncSession, task_type_id: UUID) -> list[WorkerProfile]:
    """Return all workers skilled in *task_type_id*."""
    return filter_eligible_workers(await load_worker_profiles(session), task_type_id)


async def busy_machine_bindings(session: AsyncSession) -> dict[UUID, UUID]:
    """Map machine id to the in-progress task currently holding it."""
    rows = await session.exec(
        select(TaskMachine.machine_id, TaskMachine.task_id)
        .join(Task, col(Task.id) == col(TaskMachine.task_id))
        .where(col(Task.state) == TASK_STATE_IN_PROGRESS),
    )
    return {machine_id: task_id for machine_id, task_id in rows}


async def busy_machine_ids(session: AsyncSession) -> set[UUID]:
    """Return the busy set: machines bound to any in-progress task."""
    return set(await busy_machine_bindings(session))


async def eligible_machines(
    session: AsyncSession,
    task_type_id: UUID,
    exclude_ids: Collection[UUID] = (),
) -> list[Machine]:
    """Return machines supporting *task_type_id* that are not excluded.

    Ordering is creation order so repeated calls pick machines stably.
    """
    statement = (
        select(Machine)
        .join(MachineTaskType, col(MachineTaskType.machine_id) == col(Machine.id))
        .where(col(MachineTaskType.task_type_id) == task_type_id)
        .order_by(col(Machine.created_at).asc(), col(Machine.id).asc())
    )
    if exclude_ids:
        statement = statement.where(col(Machine.id).not_in(list(exclude_ids)))
    return list(await session.exec(statement))


async def task_types_by_machine(
    session: AsyncSession,
    machine_ids: Iterable[UUID],
) -> dict[UUID, list[UUID]]:
    ids = list(machine_ids)
    if not ids:
        return {}
    rows = await session.exec(
        select(MachineTaskType)
        .where(col(MachineTaskType.machine_id).in_(ids))
        .order_by(col(MachineTaskType.created_at).asc()),
    )
    capabilities: dict[UUID, list[UUID]] = {machine_id: [] for machine_id in ids}
    for row in rows:
        capabilities[row.machine_id].append(row.task_type_id)
    return capabilities
