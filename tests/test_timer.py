"""Tests for the single-slot quest timer.

Covers: start/pause/resume, implicit pause on switch, elapsed and total
minutes, shutdown auto-pause, crash recovery, discard/reset/prune, the
state_changed signal, and duration formatting.
"""

import random

import pytest
from datetime import datetime, timedelta

from questlog.storage.models import TimerState
from questlog.timer.engine import (
    TimerStateMachine, TimerStatus, format_minutes, to_epoch_ms,
)

from helpers import SignalCollector


# ═══════════════════════════════════════════════════════════════════════════
#  STATE TRANSITIONS
# ═══════════════════════════════════════════════════════════════════════════


class TestStateTransitions:

    def test_initial_state_is_idle(self, timer):
        assert timer.status == TimerStatus.IDLE
        assert timer.active_quest_id is None
        assert timer.elapsed_minutes() == 0

    def test_start_sets_active_and_start_time(self, timer, clock):
        timer.start("a")
        assert timer.status == TimerStatus.RUNNING
        assert timer.active_quest_id == "a"
        assert timer.state.start_time == to_epoch_ms(clock())

    def test_pause_banks_elapsed(self, timer, clock):
        timer.start("a")
        clock.advance(minutes=12)
        assert timer.pause("a") is True
        assert timer.active_quest_id is None
        assert timer.state.start_time is None
        assert timer.state.paused_sessions["a"] == pytest.approx(12)

    def test_pause_other_quest_is_noop(self, timer, clock):
        timer.start("a")
        clock.advance(minutes=5)
        assert timer.pause("b") is False
        assert timer.active_quest_id == "a"
        assert "b" not in timer.state.paused_sessions

    def test_pause_when_idle_is_noop(self, timer):
        assert timer.pause("a") is False

    def test_resume_accumulates(self, timer, clock):
        timer.start("a")
        clock.advance(minutes=10)
        timer.pause("a")
        clock.advance(minutes=30)  # paused time is not counted
        timer.resume("a")
        clock.advance(minutes=5)
        assert timer.total_minutes("a") == pytest.approx(15)

    def test_switching_quests_banks_the_previous_one(self, timer, clock):
        timer.start("a")
        clock.advance(minutes=7)
        timer.start("b")
        assert timer.active_quest_id == "b"
        assert timer.state.paused_sessions["a"] == pytest.approx(7)
        clock.advance(minutes=3)
        assert timer.total_minutes("a") == pytest.approx(7)
        assert timer.total_minutes("b") == pytest.approx(3)

    def test_starting_the_running_quest_keeps_its_time(self, timer, clock):
        timer.start("a")
        clock.advance(minutes=20)
        timer.start("a")
        assert timer.elapsed_minutes() == pytest.approx(20)

    def test_state_changed_signal(self, timer):
        c = SignalCollector()
        timer.state_changed.connect(c)

        timer.start("a")
        assert c.last == "a"
        timer.start("b")
        assert c.last == "b"
        timer.pause("b")
        assert c.last is None
        assert len(c) == 3


# ═══════════════════════════════════════════════════════════════════════════
#  READINGS
# ═══════════════════════════════════════════════════════════════════════════


class TestReadings:

    def test_elapsed_never_negative(self, timer, clock):
        timer.start("a")
        clock.advance(minutes=-10)
        assert timer.elapsed_minutes() == 0

    def test_total_for_unknown_quest_is_zero(self, timer):
        assert timer.total_minutes("nope") == 0

    def test_total_combines_banked_and_live(self, timer, clock):
        timer.state.paused_sessions["a"] = 4.5
        timer.start("a")
        clock.advance(minutes=2)
        assert timer.total_minutes("a") == pytest.approx(6.5)


# ═══════════════════════════════════════════════════════════════════════════
#  SHUTDOWN / RECOVERY
# ═══════════════════════════════════════════════════════════════════════════


class TestShutdownAndRecovery:

    def test_auto_pause_banks_running_quest(self, timer, clock):
        timer.start("a")
        clock.advance(minutes=25)
        assert timer.auto_pause_active() == "a"
        assert timer.active_quest_id is None
        assert timer.state.paused_sessions["a"] == pytest.approx(25)

    def test_auto_pause_when_idle(self, timer):
        assert timer.auto_pause_active() is None

    def test_recover_folds_in_time_since_start(self, qapp, clock):
        started = clock() - timedelta(hours=2)
        state = TimerState(
            active_quest_id="a",
            start_time=to_epoch_ms(started),
            paused_sessions={"a": 5.0},
        )
        timer = TimerStateMachine(state, clock)

        quest_id, minutes = timer.recover_on_load()

        assert quest_id == "a"
        assert minutes == pytest.approx(120)
        assert state.paused_sessions["a"] == pytest.approx(125)
        assert state.active_quest_id is None
        assert state.start_time is None

    def test_recover_does_not_cap_long_absences(self, qapp, clock):
        started = clock() - timedelta(days=3)
        state = TimerState(active_quest_id="a", start_time=to_epoch_ms(started))
        timer = TimerStateMachine(state, clock)
        timer.recover_on_load()
        assert state.paused_sessions["a"] == pytest.approx(3 * 24 * 60)

    def test_recover_without_start_time_just_clears(self, qapp, clock):
        state = TimerState(active_quest_id="a", start_time=None)
        timer = TimerStateMachine(state, clock)
        assert timer.recover_on_load() is None
        assert state.active_quest_id is None
        assert state.paused_sessions == {}

    def test_recover_when_idle(self, timer):
        assert timer.recover_on_load() is None


# ═══════════════════════════════════════════════════════════════════════════
#  CLEARING
# ═══════════════════════════════════════════════════════════════════════════


class TestClearing:

    def test_discard_running_quest(self, timer, clock):
        timer.state.paused_sessions["a"] = 3
        timer.start("a")
        clock.advance(minutes=1)
        timer.discard("a")
        assert timer.active_quest_id is None
        assert "a" not in timer.state.paused_sessions

    def test_discard_leaves_other_quests(self, timer, clock):
        timer.state.paused_sessions["b"] = 8
        timer.start("a")
        timer.discard("b")
        assert timer.active_quest_id == "a"
        assert "b" not in timer.state.paused_sessions

    def test_reset_clears_everything(self, timer):
        timer.state.paused_sessions.update({"a": 1, "b": 2})
        timer.start("c")
        timer.reset()
        assert timer.state == TimerState()

    def test_prune_drops_unknown_ids(self, timer):
        timer.state.paused_sessions.update({"a": 1, "gone": 2})
        timer.start("gone2")
        timer.prune(["a"])
        assert timer.state.paused_sessions == {"a": 1}
        assert timer.active_quest_id is None


# ═══════════════════════════════════════════════════════════════════════════
#  SINGLE-TIMER INVARIANT
# ═══════════════════════════════════════════════════════════════════════════


class TestSingleTimer:

    def test_random_action_sequences(self, timer, clock):
        rng = random.Random(1234)
        ids = ["a", "b", "c", "d"]
        expected = {q: 0.0 for q in ids}
        running = None

        for _ in range(500):
            action = rng.choice(["start", "pause", "resume", "wait"])
            qid = rng.choice(ids)
            if action == "wait":
                step = rng.randint(0, 30)
                clock.advance(minutes=step)
                if running:
                    expected[running] += step
            elif action == "pause":
                timer.pause(qid)
                if running == qid:
                    running = None
            else:
                getattr(timer, action)(qid)
                running = qid

            assert timer.active_quest_id == running
            assert (timer.status == TimerStatus.RUNNING) == (running is not None)

        for qid in ids:
            assert timer.total_minutes(qid) == pytest.approx(expected[qid])


# ═══════════════════════════════════════════════════════════════════════════
#  FORMATTING
# ═══════════════════════════════════════════════════════════════════════════


class TestFormatMinutes:

    @pytest.mark.parametrize("minutes,text", [
        (0, "0s"),
        (-3, "0s"),
        (0.5, "30s"),
        (5, "5m 0s"),
        (12.5, "12m 30s"),
        (60.25, "1h 15s"),
        (90.5, "1h 30m 30s"),
    ])
    def test_format(self, minutes, text):
        assert format_minutes(minutes) == text
