"""App wiring — settings validation and scheduler construction from settings."""

import pytest
from pydantic import ValidationError

from aux_rounds.config import Settings
from aux_rounds.infrastructure.clock import SystemClock
from aux_rounds.main import build_round_scheduler


def test_plain_postgres_url_gets_asyncpg_driver():
    settings = Settings(database_url="postgresql://u:p@host:5432/aux")
    assert settings.database_url == "postgresql+asyncpg://u:p@host:5432/aux"


def test_non_positive_tick_interval_rejected():
    with pytest.raises(ValidationError):
        Settings(round_tick_interval_seconds=0)


def test_default_tick_is_hourly():
    assert Settings().round_tick_interval_seconds == 3600


def test_scheduler_built_from_settings(session_scope):
    settings = Settings(
        round_tick_interval_seconds=60,
        round_run_on_startup=False,
        round_logging_enabled=False,
    )

    scheduler = build_round_scheduler(settings, session_scope, SystemClock())

    assert scheduler.interval_seconds == 60
    assert scheduler.run_on_startup is False
    assert scheduler.engine.logging_enabled is False
    assert not scheduler.is_running


def test_system_clock_is_utc():
    assert SystemClock().now().utcoffset().total_seconds() == 0
