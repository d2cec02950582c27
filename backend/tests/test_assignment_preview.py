# ruff: noqa: INP001
"""Assignment preview: skill gating, load ranking, specialist tie-break, fan-out."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from app.models.tasks import TASK_STATE_ASSIGNED, TASK_STATE_DRAFT, TASK_STATE_SUCCESS, Task
from app.models.users import User
from app.services.assignment import preview_assignments, rank_workers
from app.services.eligibility import WorkerProfile
from factories import add_task, add_task_type, add_user, make_engine, make_session_maker


def _profile(name: str, *skills: str) -> WorkerProfile:
    return WorkerProfile(
        user=User(name=name, password_hash="x"),
        task_type_ids=frozenset(skills),  # type: ignore[arg-type]
    )


def test_rank_workers_orders_by_load_then_specialist_then_input_order() -> None:
    generalist = _profile("g", "a", "b")
    specialist = _profile("s", "a")
    late_generalist = _profile("g2", "a", "c")
    loads = {generalist.id: 1, specialist.id: 1, late_generalist.id: 0}

    ranked = rank_workers([generalist, specialist, late_generalist], loads)

    assert [worker.user.name for worker in ranked] == ["g2", "s", "g"]


def test_rank_workers_is_stable_for_full_ties() -> None:
    first = _profile("first", "a", "b")
    second = _profile("second", "a", "c")
    ranked = rank_workers([first, second], {})
    assert [worker.user.name for worker in ranked] == ["first", "second"]


@pytest.mark.asyncio
async def test_preview_omits_tasks_without_eligible_workers() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        electrical = await add_task_type(session, "electrical")
        optics = await add_task_type(session, "optics")
        worker = await add_user(session, "w1", electrical)
        staffed = await add_task(session, electrical, "staffed")
        await add_task(session, optics, "orphan")

        previews = await preview_assignments(session)

    assert [(p.task_id, p.assignee.id) for p in previews] == [(staffed.id, worker.id)]
    assert all(preview.assignee is not None for preview in previews)
    await engine.dispose()


@pytest.mark.asyncio
async def test_preview_picks_least_loaded_worker() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session)
        busy = await add_user(session, "busy", kind)
        free = await add_user(session, "free", kind)
        await add_task(session, kind, state=TASK_STATE_ASSIGNED, assignee=busy)
        await add_task(session, kind, state=TASK_STATE_ASSIGNED, assignee=busy)
        await add_task(session, kind, "draft")

        previews = await preview_assignments(session)

    assert [preview.assignee.id for preview in previews] == [free.id]
    await engine.dispose()


@pytest.mark.asyncio
async def test_preview_prefers_specialist_on_equal_load() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        electrical = await add_task_type(session, "electrical")
        optics = await add_task_type(session, "optics")
        await add_user(session, "generalist", electrical, optics)
        specialist = await add_user(session, "specialist", electrical)
        await add_task(session, electrical, "draft")

        previews = await preview_assignments(session)

    assert previews[0].assignee.id == specialist.id
    await engine.dispose()


@pytest.mark.asyncio
async def test_preview_load_outranks_specialisation() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        electrical = await add_task_type(session, "electrical")
        optics = await add_task_type(session, "optics")
        specialist = await add_user(session, "specialist", electrical)
        generalist = await add_user(session, "generalist", electrical, optics)
        for _ in range(3):
            await add_task(session, electrical, state=TASK_STATE_ASSIGNED, assignee=specialist)
        await add_task(session, electrical, "draft")

        previews = await preview_assignments(session)

    assert previews[0].assignee.id == generalist.id
    await engine.dispose()


@pytest.mark.asyncio
async def test_preview_fans_out_batch_across_equal_workers() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session)
        workers = [await add_user(session, f"w{i}", kind) for i in range(3)]
        for i in range(3):
            await add_task(session, kind, f"t{i}")

        previews = await preview_assignments(session)

    assigned = [preview.assignee.id for preview in previews]
    assert len(previews) == 3
    assert sorted(assigned, key=str) == sorted((worker.id for worker in workers), key=str)
    await engine.dispose()


@pytest.mark.asyncio
async def test_preview_is_read_only_and_repeatable() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session)
        await add_user(session, "w1", kind)
        await add_user(session, "w2", kind)
        for i in range(3):
            await add_task(session, kind, f"t{i}")

        first = await preview_assignments(session)
        second = await preview_assignments(session)
        drafts = await Task.objects.filter_by(state=TASK_STATE_DRAFT).all(session)

    assert [(p.task_id, p.assignee.id) for p in first] == [
        (p.task_id, p.assignee.id) for p in second
    ]
    assert len(drafts) == 3
    assert all(task.assignee_id is None for task in drafts)
    await engine.dispose()


@pytest.mark.asyncio
async def test_preview_follows_draft_creation_order() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session)
        await add_user(session, "w1", kind)
        names = ["alpha", "bravo", "charlie"]
        for name in names:
            await add_task(session, kind, name)

        previews = await preview_assignments(session)

    assert [preview.task_name for preview in previews] == names
    await engine.dispose()


@pytest.mark.asyncio
async def test_weekly_strategy_uses_week_to_date_assignments() -> None:
    now = datetime(2026, 3, 4, 12, 0)
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session)
        # Finished this week: zero current load, one weekly assignment.
        finished = await add_user(session, "finished", kind)
        await add_task(
            session,
            kind,
            state=TASK_STATE_SUCCESS,
            assignee=finished,
            assign_time=now - timedelta(days=1),
        )
        # Carrying an old assignment from last week: one current, zero weekly.
        carry_over = await add_user(session, "carry-over", kind)
        await add_task(
            session,
            kind,
            state=TASK_STATE_ASSIGNED,
            assignee=carry_over,
            assign_time=now - timedelta(days=7),
        )
        await add_task(session, kind, "draft")

        current = await preview_assignments(session, strategy="current", now=now)
        weekly = await preview_assignments(session, strategy="weekly", now=now)

    assert current[0].assignee.id == finished.id
    assert weekly[0].assignee.id == carry_over.id
    await engine.dispose()
