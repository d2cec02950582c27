# ruff: noqa: INP001
"""Current and weekly load accounting."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from app.models.tasks import (
    TASK_STATE_ASSIGNED,
    TASK_STATE_FAIL,
    TASK_STATE_IN_PROGRESS,
    TASK_STATE_SUCCESS,
)
from app.services.errors import NotFoundError
from app.services.load_accounting import (
    current_load,
    current_load_counts,
    week_bounds,
    weekly_load,
    weekly_load_counts,
    worker_loads,
)
from factories import add_task, add_task_type, add_user, make_engine, make_session_maker


def test_week_bounds_midweek() -> None:
    window = week_bounds(datetime(2026, 3, 4, 15, 30), timezone="UTC")
    assert window.start == datetime(2026, 3, 2, 0, 0, 0)
    assert window.end == datetime(2026, 3, 8, 23, 59, 59, 999000)


def test_week_bounds_sunday_belongs_to_week_started_six_days_earlier() -> None:
    window = week_bounds(datetime(2026, 3, 8, 22, 0), timezone="UTC")
    assert window.start == datetime(2026, 3, 2)
    assert window.end.date() == datetime(2026, 3, 8).date()


def test_week_bounds_monday_midnight_starts_new_week() -> None:
    window = week_bounds(datetime(2026, 3, 9, 0, 0), timezone="UTC")
    assert window.start == datetime(2026, 3, 9)


def test_week_bounds_uses_local_clock_and_returns_naive_utc() -> None:
    # 2026-03-08 23:30 UTC is already Monday 2026-03-09 08:30 in Tokyo.
    now = datetime(2026, 3, 8, 23, 30, tzinfo=UTC)
    window = week_bounds(now, timezone="Asia/Tokyo")
    assert window.start == datetime(2026, 3, 8, 15, 0)
    assert window.start.tzinfo is None
    assert window.end - window.start == timedelta(days=7) - timedelta(milliseconds=1)


def test_week_window_contains_is_inclusive() -> None:
    window = week_bounds(datetime(2026, 3, 4), timezone="UTC")
    assert window.start in window
    assert window.end in window
    assert window.end + timedelta(milliseconds=1) not in window
    assert "2026-03-04" not in window


@pytest.mark.asyncio
async def test_current_load_counts_only_assigned_and_in_progress() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session)
        worker = await add_user(session, "w1", kind)
        idle = await add_user(session, "w2", kind)
        await add_task(session, kind, state=TASK_STATE_ASSIGNED, assignee=worker)
        await add_task(session, kind, state=TASK_STATE_IN_PROGRESS, assignee=worker)
        await add_task(session, kind, state=TASK_STATE_SUCCESS, assignee=worker)
        await add_task(session, kind, state=TASK_STATE_FAIL, assignee=worker)
        await add_task(session, kind)

        assert await current_load(session, worker.id) == 2
        counts = await current_load_counts(session, [worker.id, idle.id])
        assert counts == {worker.id: 2, idle.id: 0}
        assert await current_load_counts(session, []) == {}
    await engine.dispose()


@pytest.mark.asyncio
async def test_weekly_load_counts_assign_time_in_window_regardless_of_state() -> None:
    engine = await make_engine()
    now = datetime(2026, 3, 4, 12, 0)
    window = week_bounds(now, timezone="UTC")
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session)
        worker = await add_user(session, "w1", kind)
        await add_task(
            session,
            kind,
            state=TASK_STATE_SUCCESS,
            assignee=worker,
            assign_time=window.start,
        )
        await add_task(
            session,
            kind,
            state=TASK_STATE_ASSIGNED,
            assignee=worker,
            assign_time=window.end,
        )
        await add_task(
            session,
            kind,
            state=TASK_STATE_ASSIGNED,
            assignee=worker,
            assign_time=window.start - timedelta(milliseconds=1),
        )

        counts = await weekly_load_counts(session, [worker.id], window)
        assert counts == {worker.id: 2}

        load = await weekly_load(session, worker.id, now=now)
        assert load.count == 2
        assert [task.assign_time for task in load.tasks] == [window.start, window.end]
    await engine.dispose()


@pytest.mark.asyncio
async def test_weekly_load_unknown_user_is_not_found() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        with pytest.raises(NotFoundError) as exc:
            await weekly_load(session, uuid4())
    assert exc.value.status_code == 404
    assert exc.value.code == "user_not_found"
    await engine.dispose()


@pytest.mark.asyncio
async def test_worker_loads_lists_every_worker_split_by_state() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        kind = await add_task_type(session)
        first = await add_user(session, "w1", kind)
        second = await add_user(session, "w2", kind)
        await add_user(session, "lead", role="leader")
        assigned = await add_task(session, kind, state=TASK_STATE_ASSIGNED, assignee=first)
        running = await add_task(session, kind, state=TASK_STATE_IN_PROGRESS, assignee=first)

        loads = await worker_loads(session)

    assert [load.worker.id for load in loads] == [first.id, second.id]
    assert [task.id for task in loads[0].assigned] == [assigned.id]
    assert [task.id for task in loads[0].in_progress] == [running.id]
    assert loads[0].total == 2
    assert loads[1].total == 0
    await engine.dispose()


@pytest.mark.asyncio
async def test_worker_loads_rejects_unknown_or_non_worker_id() -> None:
    engine = await make_engine()
    async with make_session_maker(engine)() as session:
        leader = await add_user(session, "lead", role="leader")
        for worker_id in (uuid4(), leader.id):
            with pytest.raises(NotFoundError) as exc:
                await worker_loads(session, worker_id)
            assert exc.value.code == "worker_not_found"
    await engine.dispose()
