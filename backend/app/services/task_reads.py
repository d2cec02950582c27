"""Batch resolution of tasks, workers, and machines into API payloads."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from sqlmodel import col

from app.models.machines import Machine
from app.models.task_types import TaskType
from app.models.tasks import (
    TASK_STATE_ASSIGNED,
    TASK_STATE_IN_PROGRESS,
    TASK_STATE_SUCCESS,
    Task,
    TaskMachine,
)
from app.models.users import User
from app.schemas.machines import MachineRead
from app.schemas.tasks import MachineRef, TaskRead, TaskTypeRef, UserRef
from app.schemas.users import UserRead, UserWithTasksRead, WorkerTaskSummary
from app.services.eligibility import busy_machine_bindings, skills_by_user, task_types_by_machine

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


async def _machines_by_task(
    session: AsyncSession,
    task_ids: list[UUID],
) -> dict[UUID, list[Machine]]:
    if not task_ids:
        return {}
    bindings = await TaskMachine.objects.by_field_in("task_id", task_ids).order_by(
        col(TaskMachine.position).asc(),
    ).all(session)
    machines = {
        machine.id: machine
        for machine in await Machine.objects.by_ids(
            {binding.machine_id for binding in bindings},
        ).all(session)
    }
    grouped: dict[UUID, list[Machine]] = defaultdict(list)
    for binding in bindings:
        machine = machines.get(binding.machine_id)
        if machine is not None:
            grouped[binding.task_id].append(machine)
    return grouped


def to_task_read(task: Task) -> TaskRead:
    return TaskRead.model_validate(task, from_attributes=True)


async def attach_task_refs(session: AsyncSession, reads: Sequence[TaskRead]) -> list[TaskRead]:
    """Resolve task types, users, and bound machines onto *reads* in bulk."""
    items = list(reads)
    if not items:
        return []
    task_types = {
        task_type.id: task_type
        for task_type in await TaskType.objects.by_ids(
            {task.task_type_id for task in items},
        ).all(session)
    }
    user_ids = {task.assignee_id for task in items if task.assignee_id is not None}
    user_ids |= {task.assigner_id for task in items if task.assigner_id is not None}
    users = (
        {user.id: user for user in await User.objects.by_ids(user_ids).all(session)}
        if user_ids
        else {}
    )
    machines = await _machines_by_task(session, [read.id for read in items])

    for read in items:
        task_type = task_types.get(read.task_type_id)
        assignee = users.get(read.assignee_id) if read.assignee_id else None
        assigner = users.get(read.assigner_id) if read.assigner_id else None
        bound = machines.get(read.id, [])
        read.task_type = (
            TaskTypeRef.model_validate(task_type, from_attributes=True) if task_type else None
        )
        read.assignee = UserRef(id=assignee.id, name=assignee.name) if assignee else None
        read.assigner = UserRef(id=assigner.id, name=assigner.name) if assigner else None
        read.machine_ids = [machine.id for machine in bound]
        read.machines = [MachineRef(id=machine.id, name=machine.name) for machine in bound]
    return items


async def task_reads(session: AsyncSession, tasks: Sequence[Task]) -> list[TaskRead]:
    """Build fully resolved payloads for *tasks*."""
    return await attach_task_refs(session, [to_task_read(task) for task in tasks])


async def task_read(session: AsyncSession, task: Task) -> TaskRead:
    return (await task_reads(session, [task]))[0]


def to_machine_read(machine: Machine) -> MachineRead:
    return MachineRead.model_validate(machine, from_attributes=True)


async def attach_machine_state(
    session: AsyncSession,
    reads: Sequence[MachineRead],
) -> list[MachineRead]:
    """Attach capabilities and derived `idle`/`in-use` status to machine payloads."""
    items = list(reads)
    capabilities = await task_types_by_machine(session, [read.id for read in items])
    bindings = await busy_machine_bindings(session)
    for read in items:
        read.current_task_id = bindings.get(read.id)
        read.status = "in-use" if read.current_task_id is not None else "idle"
        read.task_type_ids = capabilities.get(read.id, [])
    return items


async def machine_reads(session: AsyncSession, machines: Sequence[Machine]) -> list[MachineRead]:
    return await attach_machine_state(session, [to_machine_read(machine) for machine in machines])


def to_user_read(user: User) -> UserRead:
    return UserRead.model_validate(user, from_attributes=True)


async def attach_user_skills(session: AsyncSession, reads: Sequence[UserRead]) -> list[UserRead]:
    items = list(reads)
    skills = await skills_by_user(session, [read.id for read in items])
    for read in items:
        read.task_type_ids = sorted(skills.get(read.id, frozenset()), key=str)
    return items


async def user_reads(session: AsyncSession, users: Sequence[User]) -> list[UserRead]:
    return await attach_user_skills(session, [to_user_read(user) for user in users])


def _summary(read: TaskRead) -> WorkerTaskSummary:
    return WorkerTaskSummary(
        id=read.id,
        name=read.name,
        state=read.state,
        task_type_name=read.task_type.name if read.task_type else None,
        machine_names=[machine.name for machine in read.machines],
    )


async def users_with_tasks(session: AsyncSession, users: Sequence[User]) -> list[UserWithTasksRead]:
    """Group each user's assigned, in-progress, and completed tasks."""
    tracked = (TASK_STATE_ASSIGNED, TASK_STATE_IN_PROGRESS, TASK_STATE_SUCCESS)
    tasks = await Task.objects.by_field_in("assignee_id", [user.id for user in users]).filter(
        col(Task.state).in_(tracked),
    ).order_by(col(Task.created_at).asc(), col(Task.id).asc()).all(session)
    by_user: dict[UUID, list[TaskRead]] = defaultdict(list)
    for read in await task_reads(session, tasks):
        if read.assignee_id is not None:
            by_user[read.assignee_id].append(read)

    results: list[UserWithTasksRead] = []
    for base in await user_reads(session, users):
        reads = by_user.get(base.id, [])
        results.append(
            UserWithTasksRead(
                **base.model_dump(),
                assigned_tasks=[_summary(r) for r in reads if r.state == TASK_STATE_ASSIGNED],
                in_progress_tasks=[
                    _summary(r) for r in reads if r.state == TASK_STATE_IN_PROGRESS
                ],
                completed_tasks=[_summary(r) for r in reads if r.state == TASK_STATE_SUCCESS],
            ),
        )
    return results
