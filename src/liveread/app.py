"""Application factory for the FastAPI service."""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import PROJECT_ROOT, Settings, get_settings
from .logging_handlers import DateStampedFileHandler, cleanup_old_logs
from .logging_settings import LoggingSettings, parse_logging_settings
from .routers.broadcast import router as broadcast_router
from .schemas.show_settings import ShowSettings
from .services.listener_session import ListenerConnectionManager
from .services.record_source import PostgrestRecordSource
from .services.session_controller import SessionController
from .services.show_settings import ShowSettingsService
from .services.turn_log import TurnLog, TurnLogWriter

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_under(base: Path, p: Path) -> Path:
    # Allow absolute paths as-is (useful for tests and external mounts).
    if p.is_absolute():
        return p.resolve()
    return (base / p).resolve()


def _configure_logging(logging_settings: LoggingSettings) -> None:
    """Configure logging from LOG_LEVEL / LOG_FILE / LOG_DIR and logging_settings.conf."""
    # Load .env file first to ensure LOG_FILE is available
    load_dotenv()

    log_level_str = os.getenv("LOG_LEVEL")
    if log_level_str:
        log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    else:
        log_level = logging_settings.terminal_level or logging.INFO

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)
    handlers: list[logging.Handler] = []

    log_file = os.getenv("LOG_FILE")
    log_dir = os.getenv("LOG_DIR")
    if log_file or log_dir:
        file_handler = DateStampedFileHandler(
            filename=log_file or None,
            directory=log_dir or None,
            prefix="liveread",
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # Console output can be switched off in logging_settings.conf
    if logging_settings.terminal_level is not None:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers or [logging.NullHandler()],
        format=_LOG_FORMAT,
        datefmt=_DATE_FORMAT,
        force=True,
    )

    logging.getLogger("liveread").setLevel(log_level)
    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.error").setLevel(log_level)

    # Quiet down the HTTP client unless debugging the poll traffic
    if log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_app(settings: Settings | None = None) -> FastAPI:
    logging_settings = parse_logging_settings(PROJECT_ROOT / "logging_settings.conf")
    # Configure logging first thing
    _configure_logging(logging_settings)

    settings = settings or get_settings()

    turn_log_dir = _resolve_under(PROJECT_ROOT, settings.turn_log_dir)
    app_log_dir = _resolve_under(PROJECT_ROOT, settings.log_dir)

    show_settings_service = ShowSettingsService(
        ShowSettings(
            language=settings.default_language,
            voice_style=settings.default_voice_style,  # type: ignore[arg-type]
        )
    )
    listener_manager = ListenerConnectionManager()
    turn_log = TurnLog(
        settings.max_turns,
        writer=TurnLogWriter(turn_log_dir, min_level=logging_settings.turns_level),
        publisher=listener_manager.publish,
    )

    source = PostgrestRecordSource(settings) if settings.source_enabled else None
    if source is None:
        logging.warning("SUPABASE_URL not configured; only pushed records will be read")

    session_controller = SessionController(
        settings,
        listener_manager,
        show_settings_service,
        source=source,
        turn_log=turn_log,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            cleanup_old_logs(
                [app_log_dir, turn_log_dir],
                logging_settings.retention_hours,
                logger=logging.getLogger("liveread.app"),
            )
        except Exception as exc:
            logging.warning("Initial log cleanup failed: %s", exc)
        try:
            yield
        finally:
            # Shutdown is bounded so a stuck send cannot hold the process
            try:
                await asyncio.wait_for(session_controller.shutdown(), timeout=10.0)
            except asyncio.TimeoutError:
                logging.warning("Session shutdown timed out after 10s")
            except Exception as exc:
                logging.warning("Error during session shutdown: %s", exc)

    app = FastAPI(
        title="Live Read Broadcast",
        version="0.1.0",
        description="Paced live reading of an updating text source with idle fillers.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.show_settings_service = show_settings_service
    app.state.listener_manager = listener_manager
    app.state.turn_log = turn_log
    app.state.session_controller = session_controller

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(broadcast_router)

    return app


__all__ = ["create_app"]
