"""Aux Rounds API — FastAPI host for the round lifecycle scheduler.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map AuxError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, engine and scheduler are built once, in the lifespan
    - Scheduler stops before the database pool is disposed

Design Decisions:
    - Lifespan over @app.on_event: cleaner cleanup, one place for wiring
    - Spotify Web API client built per playlist from the admin's token
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aux_rounds.api.error_handlers import register_error_handlers
from aux_rounds.api.routes import health, round_management
from aux_rounds.config import Settings, get_settings
from aux_rounds.infrastructure.clock import SystemClock
from aux_rounds.infrastructure.database import SessionScope, init_db
from aux_rounds.infrastructure.expo_push import ExpoPushClient
from aux_rounds.infrastructure.observability import setup_logging
from aux_rounds.infrastructure.spotify_client import (
    SpotifyAccountsClient, SpotifyClient,
)
from aux_rounds.services.notification_dispatch import NotificationDispatcher
from aux_rounds.services.push_notifier import PushNotifier
from aux_rounds.services.round_engine import RoundLifecycleEngine
from aux_rounds.services.round_playlists import RoundPlaylistBuilder
from aux_rounds.services.round_scheduler import RoundScheduler
from aux_rounds.services.spotify_auth import SpotifyAuthService

logger = logging.getLogger(__name__)


def build_round_scheduler(
    settings: Settings, session_scope: SessionScope, clock: SystemClock,
) -> RoundScheduler:
    """Wire the engine and its collaborators from settings."""
    accounts = SpotifyAuthService(
        session_scope,
        SpotifyAccountsClient(
            settings.spotify_client_id,
            settings.spotify_client_secret,
            token_url=settings.spotify_accounts_url,
            timeout_seconds=settings.spotify_timeout_seconds,
            max_retries=settings.spotify_max_retries,
        ),
        clock,
        refresh_margin_seconds=settings.spotify_token_refresh_margin_seconds,
    )
    playlists = RoundPlaylistBuilder(
        session_scope,
        accounts,
        lambda token: SpotifyClient(
            token,
            api_url=settings.spotify_api_url,
            timeout_seconds=settings.spotify_timeout_seconds,
            max_retries=settings.spotify_max_retries,
        ),
    )
    notifier = PushNotifier(
        session_scope,
        ExpoPushClient(
            settings.expo_push_url,
            access_token=settings.expo_access_token,
            timeout_seconds=settings.expo_timeout_seconds,
        ),
    )
    engine = RoundLifecycleEngine(
        session_scope,
        playlists,
        NotificationDispatcher(session_scope, notifier, clock),
        clock,
        logging_enabled=settings.round_logging_enabled,
    )
    return RoundScheduler(
        engine,
        settings.round_tick_interval_seconds,
        run_on_startup=settings.round_run_on_startup,
        logging_enabled=settings.round_logging_enabled,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    clock = SystemClock()
    scheduler = build_round_scheduler(settings, manager.session, clock)
    app.state.clock = clock
    app.state.round_scheduler = scheduler
    if settings.round_scheduler_enabled:
        await scheduler.start()
    else:
        logger.info("Round scheduler disabled by configuration")
    logger.info("Aux Rounds API started")
    yield
    logger.info("Aux Rounds API shutting down")
    await scheduler.stop()
    await manager.dispose()


app = FastAPI(
    title="Aux Rounds API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(round_management.router)

register_error_handlers(app)
