from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, Optional

from backend.clock import local_today

logger = logging.getLogger(__name__)

FOCUS = "focus"
BREAK = "break"

SHORT_BREAK_SECONDS = 5 * 60
LONG_BREAK_SECONDS = 15 * 60
SESSIONS_PER_LONG_BREAK = 4
MIN_FOCUS_MINUTES = 1
MAX_FOCUS_MINUTES = 180
DEFAULT_FOCUS_MINUTES = 25
SELECT_TASK_MESSAGE = "Please select a task to focus on."


class TimerStartRejected(Exception):
    pass


class TimerBusy(Exception):
    pass


@dataclass
class IntervalCompletion:
    phase: str
    focus_minutes: int
    long_break: bool = False
    task_title: str | None = None

    @property
    def persist_focus(self) -> bool:
        return self.phase == FOCUS


@dataclass
class TimerNotification:
    seq: int
    kind: str
    title: str
    message: str
    long_break: bool = False
    play_sound: bool = True

    def to_dict(self) -> dict:
        return {
            "seq": self.seq,
            "kind": self.kind,
            "title": self.title,
            "message": self.message,
            "long_break": self.long_break,
            "play_sound": self.play_sound,
        }


@dataclass
class PomodoroTimer:
    focus_duration_minutes: int = DEFAULT_FOCUS_MINUTES
    accumulated_focus_minutes_today: int = 0
    require_task: bool = False
    running: bool = False
    paused: bool = False
    phase: str = FOCUS
    sessions_completed: int = 0
    remaining_seconds: int = field(default=-1)
    selected_task: str | None = None
    last_notification: TimerNotification | None = None

    def __post_init__(self) -> None:
        if self.remaining_seconds < 0:
            self.remaining_seconds = self.focus_duration_minutes * 60

    def start(self) -> None:
        if self.running:
            return
        if self.require_task and self.phase == FOCUS and not self.selected_task:
            raise TimerStartRejected(SELECT_TASK_MESSAGE)
        self.running = True
        self.paused = False

    def toggle_pause(self) -> None:
        if not self.running:
            return
        self.paused = not self.paused

    def stop(self) -> None:
        self.running = False
        self.paused = False
        if self.phase == FOCUS:
            self.remaining_seconds = self.focus_duration_minutes * 60
        else:
            self.remaining_seconds = SHORT_BREAK_SECONDS

    def reset(self) -> None:
        self.running = False
        self.paused = False
        self.phase = FOCUS
        self.remaining_seconds = self.focus_duration_minutes * 60
        self.sessions_completed = 0

    def set_focus_duration(self, minutes: int) -> None:
        if self.running:
            raise TimerBusy("Stop the timer before changing the focus length.")
        minutes = int(minutes)
        if minutes < MIN_FOCUS_MINUTES or minutes > MAX_FOCUS_MINUTES:
            raise ValueError(
                f"Focus length must be between {MIN_FOCUS_MINUTES} and {MAX_FOCUS_MINUTES} minutes"
            )
        self.focus_duration_minutes = minutes
        if self.phase == FOCUS:
            self.remaining_seconds = minutes * 60

    def select_task(self, title: str | None) -> None:
        self.selected_task = (title or "").strip() or None

    def tick(self) -> IntervalCompletion | None:
        if not self.running or self.paused:
            return None
        if self.remaining_seconds - 1 <= 0:
            return self._complete_interval()
        self.remaining_seconds -= 1
        return None

    def _complete_interval(self) -> IntervalCompletion:
        self.running = False
        self.paused = False
        if self.phase == FOCUS:
            self.sessions_completed += 1
            self.accumulated_focus_minutes_today += self.focus_duration_minutes
            long_break = self.sessions_completed % SESSIONS_PER_LONG_BREAK == 0
            self.phase = BREAK
            self.remaining_seconds = LONG_BREAK_SECONDS if long_break else SHORT_BREAK_SECONDS
            completion = IntervalCompletion(
                phase=FOCUS,
                focus_minutes=self.focus_duration_minutes,
                long_break=long_break,
                task_title=self.selected_task,
            )
            if long_break:
                message = "Great work! Take a 15-minute long break."
            else:
                message = "Great work! Take a 5-minute short break."
            self._notify("focus_complete", "Focus session complete", message, long_break)
        else:
            self.phase = FOCUS
            self.remaining_seconds = self.focus_duration_minutes * 60
            completion = IntervalCompletion(phase=BREAK, focus_minutes=self.focus_duration_minutes)
            self._notify("break_over", "Break is over", "Ready for another focus session?")
        return completion

    def _notify(self, kind: str, title: str, message: str, long_break: bool = False) -> None:
        seq = self.last_notification.seq + 1 if self.last_notification else 1
        self.last_notification = TimerNotification(seq, kind, title, message, long_break)

    def progress_percent(self) -> float:
        # Breaks are measured against the short break even during a long one.
        total = self.focus_duration_minutes * 60 if self.phase == FOCUS else SHORT_BREAK_SECONDS
        if total <= 0:
            return 0.0
        return (total - self.remaining_seconds) / total * 100

    def snapshot(self) -> dict:
        return {
            "running": self.running,
            "paused": self.paused,
            "phase": self.phase,
            "remaining_seconds": self.remaining_seconds,
            "sessions_completed": self.sessions_completed,
            "focus_duration_minutes": self.focus_duration_minutes,
            "accumulated_focus_minutes_today": self.accumulated_focus_minutes_today,
            "selected_task": self.selected_task,
            "require_task": self.require_task,
            "progress_percent": round(self.progress_percent(), 2),
            "last_notification": self.last_notification.to_dict() if self.last_notification else None,
        }


RecordSession = Callable[[str, int, str, Optional[str]], Awaitable[object]]
LoadMinutes = Callable[[str, str], Awaitable[int]]


class PomodoroRegistry:
    """One timer per user, all driven by a single ticker."""

    def __init__(
        self,
        record_session: RecordSession | None = None,
        load_minutes: LoadMinutes | None = None,
        focus_minutes: int = DEFAULT_FOCUS_MINUTES,
        require_task: bool = False,
        today: Callable[[], date] = local_today,
    ):
        self._record_session = record_session
        self._load_minutes = load_minutes
        self._focus_minutes = focus_minutes
        self._require_task = require_task
        self._today = today
        self._timers: dict[str, PomodoroTimer] = {}
        self._days: dict[str, str] = {}
        self._lock = asyncio.Lock()
        self._pending_writes: set[asyncio.Task] = set()

    async def _load_accumulated(self, user_id: str, day_iso: str) -> int:
        if self._load_minutes is None:
            return 0
        try:
            return int(await self._load_minutes(user_id, day_iso))
        except Exception:
            logger.exception("Failed to load focus minutes for %s", user_id)
            return 0

    async def get(self, user_id: str) -> PomodoroTimer:
        day_iso = self._today().isoformat()
        async with self._lock:
            timer = self._timers.get(user_id)
            if timer is None:
                timer = PomodoroTimer(
                    focus_duration_minutes=self._focus_minutes,
                    accumulated_focus_minutes_today=await self._load_accumulated(user_id, day_iso),
                    require_task=self._require_task,
                )
                self._timers[user_id] = timer
                self._days[user_id] = day_iso
            elif self._days.get(user_id) != day_iso:
                timer.accumulated_focus_minutes_today = await self._load_accumulated(user_id, day_iso)
                self._days[user_id] = day_iso
        return timer

    async def tick_all(self) -> int:
        """Advance every timer, then hand finished focus sessions to background writes."""
        completions = []
        for user_id, timer in list(self._timers.items()):
            completion = timer.tick()
            if completion is not None:
                completions.append((user_id, completion))
        day_iso = self._today().isoformat()
        for user_id, completion in completions:
            if completion.persist_focus and self._record_session is not None:
                task = asyncio.create_task(self._persist(user_id, completion, day_iso))
                self._pending_writes.add(task)
                task.add_done_callback(self._pending_writes.discard)
        return len(completions)

    async def drain(self) -> None:
        """Wait for focus sessions that are still being written."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes))

    async def _persist(self, user_id: str, completion: IntervalCompletion, day_iso: str) -> None:
        try:
            await self._record_session(user_id, completion.focus_minutes, day_iso, completion.task_title)
        except Exception:
            logger.exception("Failed to save focus session for %s", user_id)

    async def run_forever(self, interval: float = 1.0) -> None:
        logger.info("Pomodoro ticker started")
        while True:
            await self.tick_all()
            await asyncio.sleep(interval)


_registry: PomodoroRegistry | None = None


def get_registry() -> PomodoroRegistry:
    global _registry
    if _registry is None:
        from backend import repositories
        from backend.settings import get_settings

        settings = get_settings()
        _registry = PomodoroRegistry(
            record_session=repositories.add_focus_session,
            load_minutes=repositories.sum_focus_minutes,
            focus_minutes=settings.pomodoro_focus_minutes,
            require_task=settings.pomodoro_require_task,
        )
    return _registry


def reset_registry() -> None:
    global _registry
    _registry = None
