"""Tests for the timer module."""

from __future__ import annotations

from unittest.mock import patch

from studysync.models import TimerConfig, TimerMode
from studysync.timer import FocusTimer, run_focus_cycle, run_phase

SCENARIO = TimerConfig(focus=25, short_break=5, long_break=15)


def _run_to_expiry(timer: FocusTimer) -> TimerMode:
    """Feed ticks until the current phase ends."""
    timer.start()
    while True:
        result = timer.tick()
        if result is not None:
            return result


class TestInitialState:
    def test_starts_in_focus(self) -> None:
        timer = FocusTimer(SCENARIO)
        assert timer.mode is TimerMode.FOCUS
        assert timer.remaining_seconds == 25 * 60
        assert not timer.running
        assert timer.completed_focus_count == 0

    def test_default_config(self) -> None:
        timer = FocusTimer()
        assert timer.remaining_seconds == 1500


class TestControls:
    def test_start_and_pause(self) -> None:
        timer = FocusTimer(SCENARIO)
        timer.start()
        assert timer.running
        timer.pause()
        assert not timer.running

    def test_toggle(self) -> None:
        timer = FocusTimer(SCENARIO)
        timer.toggle()
        assert timer.running
        timer.toggle()
        assert not timer.running

    def test_tick_only_while_running(self) -> None:
        timer = FocusTimer(SCENARIO)
        assert timer.tick() is None
        assert timer.remaining_seconds == 1500
        timer.start()
        timer.tick()
        assert timer.remaining_seconds == 1499

    def test_reset_restores_full_duration(self) -> None:
        timer = FocusTimer(SCENARIO)
        timer.start()
        for _ in range(100):
            timer.tick()
        timer.reset()
        assert timer.remaining_seconds == 1500
        assert not timer.running

    def test_reset_after_switch(self) -> None:
        timer = FocusTimer(SCENARIO)
        timer.switch_mode(TimerMode.SHORT_BREAK)
        timer.start()
        timer.tick()
        timer.reset()
        assert timer.remaining_seconds == 300

    def test_switch_mode_stops_timer(self) -> None:
        timer = FocusTimer(SCENARIO)
        timer.start()
        timer.switch_mode(TimerMode.LONG_BREAK)
        assert timer.mode is TimerMode.LONG_BREAK
        assert timer.remaining_seconds == 900
        assert not timer.running

    def test_switch_mode_discards_pending_award(self) -> None:
        awards: list[int] = []
        timer = FocusTimer(TimerConfig(focus=1), on_focus_complete=awards.append)
        timer.start()
        for _ in range(59):
            timer.tick()
        timer.switch_mode(TimerMode.FOCUS)
        assert timer.remaining_seconds == 60
        assert awards == []
        assert timer.completed_focus_count == 0


class TestExpiry:
    def test_focus_goes_to_short_break_and_awards(self) -> None:
        awards: list[int] = []
        timer = FocusTimer(SCENARIO, on_focus_complete=awards.append)
        assert _run_to_expiry(timer) is TimerMode.SHORT_BREAK
        assert awards == [25]
        assert timer.completed_focus_count == 1
        assert timer.remaining_seconds == 300
        assert not timer.running

    def test_break_goes_back_to_focus_without_award(self) -> None:
        awards: list[int] = []
        timer = FocusTimer(SCENARIO, on_focus_complete=awards.append)
        timer.switch_mode(TimerMode.SHORT_BREAK)
        assert _run_to_expiry(timer) is TimerMode.FOCUS
        assert awards == []
        assert timer.remaining_seconds == 1500

    def test_fourth_focus_session_gets_long_break(self) -> None:
        timer = FocusTimer(SCENARIO)
        for _ in range(3):
            assert _run_to_expiry(timer) is TimerMode.SHORT_BREAK
            assert _run_to_expiry(timer) is TimerMode.FOCUS
        assert _run_to_expiry(timer) is TimerMode.LONG_BREAK
        assert timer.remaining_seconds == 900
        assert timer.completed_focus_count == 4

    def test_cadence_repeats(self) -> None:
        timer = FocusTimer(TimerConfig(focus=1, short_break=1, long_break=2))
        breaks = []
        for _ in range(8):
            breaks.append(_run_to_expiry(timer))
            _run_to_expiry(timer)
        assert breaks.count(TimerMode.LONG_BREAK) == 2
        assert breaks[3] is TimerMode.LONG_BREAK
        assert breaks[7] is TimerMode.LONG_BREAK

    def test_remaining_stays_in_bounds(self) -> None:
        timer = FocusTimer(TimerConfig(focus=1, short_break=1))
        timer.start()
        for _ in range(500):
            timer.tick()
            assert 0 <= timer.remaining_seconds <= timer.duration_for(timer.mode)
            if timer.remaining_seconds == 0:
                assert not timer.running


class TestReconfigure:
    def test_idle_timer_picks_up_new_duration(self) -> None:
        timer = FocusTimer(SCENARIO)
        timer.reconfigure(TimerConfig(focus=50))
        assert timer.remaining_seconds == 3000

    def test_running_countdown_untouched(self) -> None:
        timer = FocusTimer(SCENARIO)
        timer.start()
        timer.tick()
        timer.reconfigure(TimerConfig(focus=50))
        assert timer.remaining_seconds == 1499
        timer.reset()
        assert timer.remaining_seconds == 3000


class TestDisplayHelpers:
    def test_progress(self) -> None:
        timer = FocusTimer(TimerConfig(focus=1))
        assert timer.progress == 0.0
        timer.start()
        for _ in range(30):
            timer.tick()
        assert timer.progress == 0.5

    def test_format_remaining(self) -> None:
        timer = FocusTimer(SCENARIO)
        assert timer.format_remaining() == "25:00"
        timer.start()
        timer.tick()
        assert timer.format_remaining() == "24:59"


class TestRunPhase:
    @patch("studysync.timer.time.sleep")
    def test_completes(self, mock_sleep) -> None:
        """A 1-minute phase should sleep 60 times and return True."""
        awards: list[int] = []
        timer = FocusTimer(TimerConfig(focus=1), on_focus_complete=awards.append)
        assert run_phase(timer) is True
        assert mock_sleep.call_count == 60
        assert awards == [1]
        assert timer.mode is TimerMode.SHORT_BREAK

    @patch("studysync.timer.time.sleep", side_effect=KeyboardInterrupt)
    def test_interrupted(self, mock_sleep) -> None:
        """Ctrl-C pauses the timer and grants nothing."""
        awards: list[int] = []
        timer = FocusTimer(TimerConfig(focus=1), on_focus_complete=awards.append)
        assert run_phase(timer) is False
        assert not timer.running
        assert awards == []


class TestRunFocusCycle:
    @patch("studysync.timer.time.sleep")
    def test_runs_focus_and_breaks(self, mock_sleep) -> None:
        timer = FocusTimer(TimerConfig(focus=1, short_break=1))
        completed = run_focus_cycle(timer, cycles=2)
        assert completed == 2
        assert mock_sleep.call_count == 240
        assert timer.mode is TimerMode.FOCUS

    @patch("studysync.timer.time.sleep")
    def test_skipping_breaks(self, mock_sleep) -> None:
        timer = FocusTimer(TimerConfig(focus=1, short_break=1))
        completed = run_focus_cycle(timer, cycles=2, take_break=lambda mode: False)
        assert completed == 2
        assert mock_sleep.call_count == 120
