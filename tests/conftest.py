import os
from datetime import datetime, timedelta, timezone

import pytest

from seeyouagain.application.config import ParameterStore, Parameters
from seeyouagain.application.service import SpacedRepetitionService
from seeyouagain.domain.models import Card, State


class FixedRandom:
    """RandomSource that always yields the same value."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def fixed_random():
    return FixedRandom


@pytest.fixture
def now():
    return datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def parameters():
    return Parameters()


@pytest.fixture
def fuzzed_parameters():
    return Parameters(enable_fuzz=True)


@pytest.fixture
def long_term_parameters():
    return Parameters(enable_short_term=False)


@pytest.fixture
def new_card(now):
    return Card(due=now)


@pytest.fixture
def review_card(now):
    """A mature card last reviewed 10 days before `now`."""
    return Card(
        due=now,
        stability=10.0,
        difficulty=5.0,
        elapsed_days=8,
        scheduled_days=10,
        reps=4,
        lapses=0,
        state=State.Review,
        last_review=now - timedelta(days=10),
    )


@pytest.fixture
def learning_card(now):
    return Card(
        due=now,
        stability=3.173,
        difficulty=5.28,
        reps=1,
        state=State.Learning,
        last_review=now - timedelta(minutes=10),
    )


@pytest.fixture
def service():
    return SpacedRepetitionService(ParameterStore())


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep user config files and SEEYOUAGAIN_* variables out of tests."""
    monkeypatch.setattr("seeyouagain.application.config._config_paths", lambda: [])
    for key in list(os.environ):
        if key.startswith("SEEYOUAGAIN_"):
            monkeypatch.delenv(key)
