# ruff: noqa: INP001
"""Task lifecycle transitions and the end-to-end scheduling scenario."""

from __future__ import annotations

from uuid import uuid4

import pytest

from app.models.tasks import (
    TASK_STATE_ASSIGNED,
    TASK_STATE_DRAFT,
    TASK_STATE_FAIL,
    TASK_STATE_IN_PROGRESS,
    TASK_STATE_SUCCESS,
    TASK_STATE_TRANSITIONS,
    TASK_STATES,
    Task,
    TaskMachine,
)
from app.schemas.tasks import TaskCreate, TaskUpdate
from app.services.assignment import AssignmentRequest, confirm_assignments, preview_assignments
from app.services.errors import InvalidRequestError, InvalidStateError, NotFoundError
from app.services.scheduler import start_next
from app.services.task_lifecycle import (
    complete_task,
    create_task,
    delete_task,
    fail_task,
    update_draft,
    validate_state_transition,
)
from factories import (
    add_machine,
    add_task,
    add_task_type,
    add_user,
    make_engine,
    make_session_maker,
)


def test_transition_table_covers_every_state() -> None:
    assert set(TASK_STATE_TRANSITIONS) == TASK_STATES
    assert TASK_STATE_TRANSITIONS[TASK_STATE_SUCCESS] == frozenset()
    assert TASK_STATE_TRANSITIONS[TASK_STATE_FAIL] == frozenset()


def test_validate_state_transition_rejects_skips() -> None:
    validate_state_transition(TASK_STATE_IN_PROGRESS, TASK_STATE_SUCCESS)
    with pytest.raises(InvalidStateError) as exc:
        validate_state_transition(TASK_STATE_ASSIGNED, TASK_STATE_SUCCESS)
    assert exc.value.status_code == 409
    assert exc.value.code == "invalid_transition"


@pytest.mark.asyncio
async def test_example_scenario_draft_to_success() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        electrical = await add_task_type(session, "electrical", machine_count=2)
        m1 = await add_machine(session, "M1", electrical)
        m2 = await add_machine(session, "M2", electrical)
        worker = await add_user(session, "W", electrical)
        leader = await add_user(session, "A", role="leader")
        task = await create_task(session, TaskCreate(task_type_id=electrical.id, name="T"))
        assert task.state == TASK_STATE_DRAFT

        previews = await preview_assignments(session)
        assert [(p.task_id, p.assignee.id) for p in previews] == [(task.id, worker.id)]

        outcomes = await confirm_assignments(
            session,
            assigner_id=leader.id,
            assignments=[AssignmentRequest(task_id=task.id, assignee_id=worker.id)],
        )
        assert outcomes[0].status == "assigned"

        started = await start_next(session, worker.id)
        assert started.id == task.id
        assert started.state == TASK_STATE_IN_PROGRESS
        bindings = await TaskMachine.objects.filter_by(task_id=task.id).all(session)
        assert {b.machine_id for b in bindings} == {m1.id, m2.id}

        finished = await complete_task(session, task.id, message="ok")
        assert finished.state == TASK_STATE_SUCCESS
        assert finished.end_time is not None
        assert finished.message == "ok"
        assert not await TaskMachine.objects.filter_by(task_id=task.id).exists(session)
    await engine.dispose()


@pytest.mark.asyncio
async def test_fail_releases_machines_and_keeps_message_when_omitted() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session, machine_count=1)
        worker = await add_user(session, "w1", kind)
        machine = await add_machine(session, "M1", kind)
        task = await add_task(
            session,
            kind,
            state=TASK_STATE_IN_PROGRESS,
            assignee=worker,
            machines=(machine,),
        )

        failed = await fail_task(session, task.id)

        assert failed.state == TASK_STATE_FAIL
        assert failed.message == ""
        assert not await TaskMachine.objects.all().exists(session)
    await engine.dispose()


@pytest.mark.asyncio
@pytest.mark.parametrize("state", [TASK_STATE_DRAFT, TASK_STATE_ASSIGNED, TASK_STATE_SUCCESS])
async def test_finish_requires_in_progress(state: str) -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session)
        worker = await add_user(session, "w1", kind)
        task = await add_task(
            session,
            kind,
            state=state,
            assignee=None if state == TASK_STATE_DRAFT else worker,
        )

        for action in (complete_task, fail_task):
            with pytest.raises(InvalidStateError):
                await action(session, task.id)
        stored = await Task.objects.by_id(task.id).first(session)

    assert stored is not None and stored.state == state
    assert stored.end_time is None
    await engine.dispose()


@pytest.mark.asyncio
async def test_terminal_states_reject_every_transition() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session)
        worker = await add_user(session, "w1", kind)
        done = await add_task(session, kind, state=TASK_STATE_SUCCESS, assignee=worker)
        failed = await add_task(session, kind, state=TASK_STATE_FAIL, assignee=worker)

        for task in (done, failed):
            with pytest.raises(InvalidStateError):
                await complete_task(session, task.id)
            with pytest.raises(InvalidStateError):
                await fail_task(session, task.id)
            with pytest.raises(InvalidStateError):
                await delete_task(session, task.id)
    await engine.dispose()


@pytest.mark.asyncio
async def test_unknown_task_is_not_found() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        for action in (complete_task, fail_task, delete_task):
            with pytest.raises(NotFoundError) as exc:
                await action(session, uuid4())
            assert exc.value.code == "task_not_found"
    await engine.dispose()


@pytest.mark.asyncio
async def test_delete_only_drafts() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session)
        worker = await add_user(session, "w1", kind)
        draft = await add_task(session, kind)
        assigned = await add_task(session, kind, state=TASK_STATE_ASSIGNED, assignee=worker)

        await delete_task(session, draft.id)
        with pytest.raises(InvalidStateError):
            await delete_task(session, assigned.id)

        assert await Task.objects.by_id(draft.id).first(session) is None
        assert await Task.objects.by_id(assigned.id).first(session) is not None
    await engine.dispose()


@pytest.mark.asyncio
async def test_create_and_update_draft_validate_task_type() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        electrical = await add_task_type(session, "electrical")
        optics = await add_task_type(session, "optics")
        worker = await add_user(session, "w1", electrical)

        with pytest.raises(InvalidRequestError) as exc:
            await create_task(session, TaskCreate(task_type_id=uuid4(), name="ghost"))
        assert exc.value.status_code == 422

        task = await create_task(session, TaskCreate(task_type_id=electrical.id, name="t"))
        updated = await update_draft(
            session,
            task.id,
            TaskUpdate(task_type_id=optics.id, name="renamed"),
        )
        assert updated.task_type_id == optics.id
        assert updated.name == "renamed"

        with pytest.raises(InvalidRequestError):
            await update_draft(session, task.id, TaskUpdate(task_type_id=uuid4()))

        assigned = await add_task(session, electrical, state=TASK_STATE_ASSIGNED, assignee=worker)
        with pytest.raises(InvalidStateError):
            await update_draft(session, assigned.id, TaskUpdate(name="nope"))
    await engine.dispose()
