from datetime import datetime, timezone

import pytest

from config.settings import Config
from src.scheduler.smart_scheduler import SmartScheduler

# A Monday
NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture(autouse=True)
def oracle_disabled(monkeypatch):
    monkeypatch.setattr(Config, "ORACLE_ENABLED", False)


@pytest.fixture
def scheduler():
    return SmartScheduler()
