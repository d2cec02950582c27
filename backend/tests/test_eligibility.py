# ruff: noqa: INP001
"""Worker skill matching and machine capability matching."""

from __future__ import annotations

import pytest

from app.models.tasks import TASK_STATE_IN_PROGRESS, TASK_STATE_SUCCESS
from app.services.eligibility import (
    busy_machine_bindings,
    busy_machine_ids,
    eligible_machines,
    eligible_workers,
    is_specialist,
    load_worker_profiles,
)
from factories import (
    add_machine,
    add_task,
    add_task_type,
    add_user,
    make_engine,
    make_session_maker,
)


@pytest.mark.asyncio
async def test_eligible_workers_require_skill_and_worker_role() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        electrical = await add_task_type(session, "electrical")
        optics = await add_task_type(session, "optics")
        skilled = await add_user(session, "w1", electrical)
        await add_user(session, "w2", optics)
        await add_user(session, "lead", electrical, role="leader")

        workers = await eligible_workers(session, electrical.id)

    assert [worker.id for worker in workers] == [skilled.id]
    await engine.dispose()


@pytest.mark.asyncio
async def test_specialist_has_exactly_one_skill() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        electrical = await add_task_type(session, "electrical")
        optics = await add_task_type(session, "optics")
        await add_user(session, "specialist", electrical)
        await add_user(session, "generalist", electrical, optics)
        await add_user(session, "unskilled")

        profiles = {profile.user.name: profile for profile in await load_worker_profiles(session)}

    assert is_specialist(profiles["specialist"])
    assert profiles["specialist"].is_specialist
    assert not is_specialist(profiles["generalist"])
    assert not is_specialist(profiles["unskilled"])
    await engine.dispose()


@pytest.mark.asyncio
async def test_eligible_machines_filter_capability_and_exclusions() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        electrical = await add_task_type(session, "electrical")
        optics = await add_task_type(session, "optics")
        m1 = await add_machine(session, "M1", electrical)
        m2 = await add_machine(session, "M2", electrical, optics)
        await add_machine(session, "M3", optics)

        everything = await eligible_machines(session, electrical.id)
        without_m1 = await eligible_machines(session, electrical.id, exclude_ids={m1.id})

    assert [machine.id for machine in everything] == [m1.id, m2.id]
    assert [machine.id for machine in without_m1] == [m2.id]
    await engine.dispose()


@pytest.mark.asyncio
async def test_busy_set_only_counts_in_progress_bindings() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session, machine_count=1)
        worker = await add_user(session, "w1", kind)
        other = await add_user(session, "w2", kind)
        m1 = await add_machine(session, "M1", kind)
        m2 = await add_machine(session, "M2", kind)
        running = await add_task(
            session,
            kind,
            state=TASK_STATE_IN_PROGRESS,
            assignee=worker,
            machines=(m1,),
        )
        # A stale binding left on a finished task does not make a machine busy.
        await add_task(session, kind, state=TASK_STATE_SUCCESS, assignee=other, machines=(m2,))

        assert await busy_machine_bindings(session) == {m1.id: running.id}
        assert await busy_machine_ids(session) == {m1.id}
    await engine.dispose()
