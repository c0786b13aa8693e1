"""Shared pytest fixtures for QuestLog tests."""

import sys
from datetime import datetime

import pytest

from PyQt6.QtCore import QCoreApplication

from questlog.engine import QuestEngine
from questlog.gamification.xp import XPLedger
from questlog.quests.completions import CompletionStore
from questlog.quests.registry import QuestRegistry
from questlog.settings import Settings
from questlog.storage.models import QuestLog
from questlog.storage.store import JsonQuestLogStore
from questlog.timer.engine import TimerStateMachine

from helpers import FakeClock

# Monday 19 October 2026, mid-morning.
MONDAY_9AM = datetime(2026, 10, 19, 9, 0)


@pytest.fixture(scope="session")
def qapp():
    """A single QCoreApplication instance shared across the entire test run."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    yield app


@pytest.fixture
def clock():
    return FakeClock(MONDAY_9AM)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def store(tmp_path):
    """JSON store rooted in a throwaway directory."""
    return JsonQuestLogStore(tmp_path)


@pytest.fixture
def log():
    return QuestLog(day="2026-10-19")


@pytest.fixture
def timer(qapp, log, clock):
    return TimerStateMachine(log.timer_state, clock)


@pytest.fixture
def ledger(qapp, settings):
    return XPLedger(settings)


@pytest.fixture
def registry(log, timer):
    return QuestRegistry(log, timer)


@pytest.fixture
def today():
    """Mutable logical day for CompletionStore tests."""
    return {"day": "2026-10-19"}


@pytest.fixture
def completions(log, timer, ledger, today):
    return CompletionStore(log, timer, ledger, lambda: today["day"])


@pytest.fixture
def engine(qapp, settings, store, clock):
    """Fresh QuestEngine on an empty store, ticks not started."""
    e = QuestEngine(settings, store=store, clock=clock)
    e.on_init(start_ticks=False)
    return e
