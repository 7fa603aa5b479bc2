"""Pomodoro timer state machine.

The timer is driven by ``tick()`` calls (one per elapsed second from the UI
loop) rather than owning a thread. Finishing a focus session records it
through ``on_complete`` and moves to a break; every fourth one earns a long
break. Finishing a break returns to focus mode, paused.
"""

from collections.abc import Callable
from typing import Literal

from src.planner.config import PlannerConfig, get_config
from src.planner.logging import get_logger

log = get_logger(__name__)

Mode = Literal["pomodoro", "short_break", "long_break"]

LONG_BREAK_EVERY = 4

MODE_TITLES: dict[str, str] = {
    "pomodoro": "Time to focus!",
    "short_break": "Time for a break!",
    "long_break": "Time for a long break!",
}


def format_time(seconds: int) -> str:
    """MM:SS, e.g. 1500 -> "25:00"."""
    minutes, secs = divmod(max(seconds, 0), 60)
    return f"{minutes:02d}:{secs:02d}"


class PomodoroTimer:
    """Countdown with pomodoro / short break / long break modes.

    Args:
        on_complete: Called with the focus duration in minutes each time a
            pomodoro finishes (e.g. ``store.add_pomodoro_session``).
        on_alarm: Called with the finished mode whenever a countdown hits zero.
        config: Supplies the three durations.
    """

    def __init__(
        self,
        on_complete: Callable[[int], object] | None = None,
        on_alarm: Callable[[str], object] | None = None,
        config: PlannerConfig | None = None,
    ) -> None:
        config = config or get_config()
        self.durations: dict[str, int] = {
            "pomodoro": config.pomodoro_minutes * 60,
            "short_break": config.short_break_minutes * 60,
            "long_break": config.long_break_minutes * 60,
        }
        self.on_complete = on_complete
        self.on_alarm = on_alarm
        self.mode: Mode = "pomodoro"
        self.time_left = self.durations["pomodoro"]
        self.active = False
        self.completed_count = 0

    @property
    def title(self) -> str:
        return MODE_TITLES[self.mode]

    @property
    def display(self) -> str:
        return format_time(self.time_left)

    def start(self) -> None:
        self.active = True

    def pause(self) -> None:
        self.active = False

    def toggle(self) -> None:
        self.active = not self.active

    def switch_mode(self, mode: Mode) -> None:
        """Stop the timer and reset it to the full length of *mode*."""
        if mode not in self.durations:
            raise ValueError(f"Unknown mode {mode!r}. Valid: {list(self.durations)}")
        self.active = False
        self.mode = mode
        self.time_left = self.durations[mode]

    def tick(self, seconds: int = 1) -> None:
        """Advance the countdown while active; handle expiry."""
        if not self.active:
            return
        self.time_left = max(self.time_left - seconds, 0)
        if self.time_left == 0:
            self._finish()

    def _finish(self) -> None:
        finished = self.mode
        if self.on_alarm is not None:
            self.on_alarm(finished)

        if finished != "pomodoro":
            self.switch_mode("pomodoro")
            return

        self.completed_count += 1
        minutes = self.durations["pomodoro"] // 60
        log.info("pomodoro_completed", count=self.completed_count, minutes=minutes)
        if self.on_complete is not None:
            self.on_complete(minutes)

        if self.completed_count % LONG_BREAK_EVERY == 0:
            self.switch_mode("long_break")
        else:
            self.switch_mode("short_break")
