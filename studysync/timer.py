"""Focus timer state machine and the countdown loop that drives it."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from studysync.display import console, create_timer_progress, print_nudge
from studysync.encouragement import get_break_message, get_nudge
from studysync.models import TimerConfig, TimerMode, TimerState

log = logging.getLogger(__name__)

FOCUS_SESSIONS_PER_CYCLE = 4

FocusCompleteCallback = Callable[[int], object]


class FocusTimer:
    """Focus / short break / long break countdown.

    The machine only moves when ``tick()`` is called; whoever owns the clock
    feeds one tick per elapsed second. Every fourth completed focus session is
    followed by a long break instead of a short one.
    """

    def __init__(
        self,
        config: Optional[TimerConfig] = None,
        on_focus_complete: Optional[FocusCompleteCallback] = None,
    ) -> None:
        self.config = config or TimerConfig()
        self.on_focus_complete = on_focus_complete
        self.state = TimerState(
            mode=TimerMode.FOCUS,
            remaining_seconds=self.duration_for(TimerMode.FOCUS),
        )

    # -- queries ------------------------------------------------------------

    def duration_for(self, mode: TimerMode) -> int:
        return self.config.minutes_for(mode) * 60

    @property
    def mode(self) -> TimerMode:
        return self.state.mode

    @property
    def remaining_seconds(self) -> int:
        return self.state.remaining_seconds

    @property
    def running(self) -> bool:
        return self.state.running

    @property
    def completed_focus_count(self) -> int:
        return self.state.completed_focus_count

    @property
    def progress(self) -> float:
        """Fraction of the current phase already elapsed, 0.0 to 1.0."""
        duration = self.duration_for(self.state.mode)
        return (duration - self.state.remaining_seconds) / duration

    def format_remaining(self) -> str:
        mins, secs = divmod(self.state.remaining_seconds, 60)
        return f"{mins:02d}:{secs:02d}"

    # -- controls -----------------------------------------------------------

    def start(self) -> None:
        if self.state.remaining_seconds == 0:
            return
        self.state.running = True

    def pause(self) -> None:
        self.state.running = False

    def toggle(self) -> None:
        if self.state.running:
            self.pause()
        else:
            self.start()

    def reset(self) -> None:
        self.state.running = False
        self.state.remaining_seconds = self.duration_for(self.state.mode)

    def switch_mode(self, target: TimerMode) -> None:
        """Jump to another phase. Any countdown in flight is discarded."""
        self.state.mode = target
        self.state.remaining_seconds = self.duration_for(target)
        self.state.running = False

    def reconfigure(self, config: TimerConfig) -> None:
        """Apply new durations. A running countdown keeps its current length."""
        self.config = config
        if not self.state.running:
            self.state.remaining_seconds = self.duration_for(self.state.mode)

    def tick(self) -> Optional[TimerMode]:
        """Advance one second. Returns the new mode if the phase just ended."""
        if not self.state.running or self.state.remaining_seconds == 0:
            return None
        self.state.remaining_seconds -= 1
        if self.state.remaining_seconds == 0:
            return self._expire()
        return None

    def _expire(self) -> TimerMode:
        finished = self.state.mode
        if finished is TimerMode.FOCUS:
            index_in_cycle = self.state.completed_focus_count % FOCUS_SESSIONS_PER_CYCLE
            self.state.completed_focus_count += 1
            if self.on_focus_complete is not None:
                self.on_focus_complete(self.config.focus)
            if index_in_cycle == FOCUS_SESSIONS_PER_CYCLE - 1:
                next_mode = TimerMode.LONG_BREAK
            else:
                next_mode = TimerMode.SHORT_BREAK
        else:
            next_mode = TimerMode.FOCUS
        log.debug("%s finished, switching to %s", finished.value, next_mode.value)
        self.state.mode = next_mode
        self.state.remaining_seconds = self.duration_for(next_mode)
        self.state.running = False
        return next_mode


# ---------------------------------------------------------------------------
# Countdown loop
# ---------------------------------------------------------------------------


def run_phase(timer: FocusTimer) -> bool:
    """Run the current phase to completion. Returns False if interrupted."""
    finished = timer.mode
    label = finished.label
    total = timer.duration_for(finished)

    progress = create_timer_progress()
    timer.start()

    try:
        with progress:
            task = progress.add_task(label, total=total, completed=total - timer.remaining_seconds)
            while timer.running:
                time.sleep(1)
                timer.tick()
                progress.advance(task, 1)
    except KeyboardInterrupt:
        timer.pause()
        console.print("\n[yellow]Timer stopped early.[/yellow]")
        return False

    # Bell notification
    console.print("\a", end="")

    if finished is TimerMode.FOCUS:
        print_nudge(get_nudge())
    else:
        print_nudge(get_break_message())

    return True


def run_focus_cycle(
    timer: FocusTimer,
    cycles: int = 1,
    take_break: Optional[Callable[[TimerMode], bool]] = None,
) -> int:
    """Run ``cycles`` focus sessions, each followed by its break.

    ``take_break`` is asked before every break; returning False skips it.
    Returns the number of focus sessions completed.
    """
    completed = 0
    for _ in range(cycles):
        if timer.mode is not TimerMode.FOCUS:
            timer.switch_mode(TimerMode.FOCUS)
        if not run_phase(timer):
            break
        completed += 1
        if take_break is not None and not take_break(timer.mode):
            timer.switch_mode(TimerMode.FOCUS)
            continue
        if not run_phase(timer):
            break
    return completed
