"""Tests for PomodoroRegistry: per-user timers, loading minutes and persistence."""

import asyncio
from datetime import date

import pytest

from backend.services.pomodoro import BREAK, PomodoroRegistry


class FakeStore:
    def __init__(self, minutes=0, fail=False):
        self.minutes = minutes
        self.fail = fail
        self.saved = []
        self.loads = []

    async def record(self, user_id, minutes, day_iso, task_title=None):
        if self.fail:
            raise ConnectionError("database unavailable")
        self.saved.append((user_id, minutes, day_iso, task_title))

    async def load(self, user_id, day_iso):
        self.loads.append((user_id, day_iso))
        return self.minutes


class Calendar:
    def __init__(self, day):
        self.day = day

    def __call__(self):
        return self.day


async def finish_focus(registry, timer):
    timer.start()
    completed = 0
    for _ in range(timer.remaining_seconds):
        completed += await registry.tick_all()
    await registry.drain()
    return completed


class TestRegistryTimers:
    @pytest.mark.asyncio
    async def test_same_user_gets_same_timer(self):
        registry = PomodoroRegistry()
        first = await registry.get("user-1")
        second = await registry.get("user-1")
        other = await registry.get("user-2")
        assert first is second
        assert first is not other

    @pytest.mark.asyncio
    async def test_configured_focus_length(self):
        registry = PomodoroRegistry(focus_minutes=50, require_task=True)
        timer = await registry.get("user-1")
        assert timer.remaining_seconds == 3000
        assert timer.require_task is True

    @pytest.mark.asyncio
    async def test_accumulated_minutes_are_loaded_once_per_day(self):
        store = FakeStore(minutes=75)
        calendar = Calendar(date(2024, 5, 1))
        registry = PomodoroRegistry(load_minutes=store.load, today=calendar)
        timer = await registry.get("user-1")
        await registry.get("user-1")
        assert timer.accumulated_focus_minutes_today == 75
        assert store.loads == [("user-1", "2024-05-01")]

        store.minutes = 0
        calendar.day = date(2024, 5, 2)
        again = await registry.get("user-1")
        assert again is timer
        assert timer.accumulated_focus_minutes_today == 0
        assert store.loads[-1] == ("user-1", "2024-05-02")

    @pytest.mark.asyncio
    async def test_load_failure_starts_from_zero(self):
        async def broken(user_id, day_iso):
            raise ConnectionError("database unavailable")

        registry = PomodoroRegistry(load_minutes=broken)
        timer = await registry.get("user-1")
        assert timer.accumulated_focus_minutes_today == 0


class TestTickAll:
    @pytest.mark.asyncio
    async def test_only_running_timers_advance(self):
        registry = PomodoroRegistry()
        running = await registry.get("user-1")
        idle = await registry.get("user-2")
        running.start()
        await registry.tick_all()
        assert running.remaining_seconds == 1499
        assert idle.remaining_seconds == 1500

    @pytest.mark.asyncio
    async def test_focus_completion_is_saved(self):
        store = FakeStore()
        registry = PomodoroRegistry(
            record_session=store.record,
            focus_minutes=1,
            today=Calendar(date(2024, 5, 1)),
        )
        timer = await registry.get("user-1")
        timer.select_task("Write report")
        assert await finish_focus(registry, timer) == 1
        assert store.saved == [("user-1", 1, "2024-05-01", "Write report")]

    @pytest.mark.asyncio
    async def test_break_completion_is_not_saved(self):
        store = FakeStore()
        registry = PomodoroRegistry(record_session=store.record, focus_minutes=1)
        timer = await registry.get("user-1")
        await finish_focus(registry, timer)
        await finish_focus(registry, timer)
        assert len(store.saved) == 1

    @pytest.mark.asyncio
    async def test_save_failure_still_advances_the_timer(self):
        store = FakeStore(fail=True)
        registry = PomodoroRegistry(record_session=store.record, focus_minutes=1)
        timer = await registry.get("user-1")
        assert await finish_focus(registry, timer) == 1
        assert timer.phase == BREAK
        assert timer.sessions_completed == 1
        assert timer.accumulated_focus_minutes_today == 1


class TestBackgroundWrites:
    @pytest.mark.asyncio
    async def test_simultaneous_completions_are_all_saved(self):
        store = FakeStore()
        registry = PomodoroRegistry(record_session=store.record, focus_minutes=1, today=Calendar(date(2024, 5, 1)))
        first = await registry.get("user-1")
        second = await registry.get("user-2")
        second.start()
        assert await finish_focus(registry, first) == 2
        assert sorted(store.saved) == [
            ("user-1", 1, "2024-05-01", None),
            ("user-2", 1, "2024-05-01", None),
        ]

    @pytest.mark.asyncio
    async def test_one_failing_write_does_not_block_another(self):
        store = FakeStore()

        async def record(user_id, minutes, day_iso, task_title=None):
            if user_id == "user-1":
                raise ConnectionError("database unavailable")
            await store.record(user_id, minutes, day_iso, task_title)

        registry = PomodoroRegistry(record_session=record, focus_minutes=1)
        first = await registry.get("user-1")
        second = await registry.get("user-2")
        second.start()
        assert await finish_focus(registry, first) == 2
        assert [saved[0] for saved in store.saved] == ["user-2"]

    @pytest.mark.asyncio
    async def test_slow_write_does_not_hold_up_countdowns(self):
        release = asyncio.Event()
        saved = []

        async def slow_record(user_id, minutes, day_iso, task_title=None):
            await release.wait()
            saved.append(user_id)

        registry = PomodoroRegistry(record_session=slow_record, focus_minutes=1)
        finishing = await registry.get("user-1")
        counting = await registry.get("user-2")
        finishing.start()
        for _ in range(59):
            await registry.tick_all()
        counting.start()

        assert await registry.tick_all() == 1
        assert finishing.phase == BREAK
        for _ in range(5):
            assert await registry.tick_all() == 0
        assert counting.remaining_seconds == 60 - 6
        assert saved == []

        release.set()
        await registry.drain()
        assert saved == ["user-1"]
