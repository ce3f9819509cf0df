"""REST and WebSocket endpoints for the live read broadcast."""

from __future__ import annotations

import logging
import secrets
from typing import Any

from fastapi import APIRouter, Header, HTTPException, Request, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from liveread.schemas.records import DatabaseChangePayload, IngestResponse, RawRecord
from liveread.schemas.show_settings import (
    STYLE_PROFILES,
    SUPPORTED_LANGUAGES,
    ShowSettings,
    ShowSettingsUpdate,
)
from liveread.services.ingestor import IngestOutcome
from liveread.services.session_controller import SessionController

router = APIRouter(prefix="/api/broadcast", tags=["broadcast"])
logger = logging.getLogger(__name__)


def _controller(request: Request) -> SessionController:
    controller = getattr(request.app.state, "session_controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Broadcast session not available")
    return controller


def _check_webhook_secret(request: Request, provided: str | None) -> None:
    settings = getattr(request.app.state, "settings", None)
    secret = getattr(settings, "webhook_secret", None)
    if secret is None:
        return
    if provided is None or not secrets.compare_digest(provided, secret.get_secret_value()):
        raise HTTPException(status_code=401, detail="Invalid webhook secret")


@router.post("/records", response_model=IngestResponse)
async def push_record(
    request: Request,
    payload: DatabaseChangePayload,
    x_webhook_secret: str | None = Header(default=None),
) -> IngestResponse:
    """Receive a row-change notification for the source table."""
    _check_webhook_secret(request, x_webhook_secret)
    controller = _controller(request)

    settings = getattr(request.app.state, "settings", None)
    source_table = getattr(settings, "source_table", None)
    if source_table and payload.table != source_table:
        return IngestResponse(accepted=False, reason="ignored_table")
    if payload.type == "DELETE" or payload.record is None:
        return IngestResponse(accepted=False, reason="no_record")

    try:
        record = RawRecord.model_validate(payload.record)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Malformed record: {e}") from e

    outcome = await controller.handle_push(record)
    if outcome is None:
        return IngestResponse(accepted=False, reason="not_subscribed")
    return IngestResponse(
        accepted=outcome in (IngestOutcome.ENQUEUED, IngestOutcome.NO_CHUNKS),
        reason=outcome.value,
    )


@router.post("/fetch")
async def fetch_latest(request: Request) -> dict[str, Any]:
    """Poll the source once, outside the regular cadence."""
    controller = _controller(request)
    if not controller.is_connected:
        raise HTTPException(status_code=409, detail="No speech channel connected")
    return {"handled": await controller.fetch_now()}


@router.get("/status")
async def get_status(request: Request) -> dict[str, Any]:
    return _controller(request).status()


@router.get("/turns")
async def list_turns(request: Request, limit: int = 100) -> list[dict[str, Any]]:
    """Most recent entries of the turn log, oldest first."""
    turn_log = getattr(request.app.state, "turn_log", None)
    if turn_log is None:
        return []
    turns = turn_log.turns
    if limit > 0:
        turns = turns[-limit:]
    return [turn.to_dict() for turn in turns]


@router.get("/settings", response_model=ShowSettings)
async def get_show_settings(request: Request) -> ShowSettings:
    return request.app.state.show_settings_service.get_settings()


@router.put("/settings", response_model=ShowSettings)
async def update_show_settings(request: Request, body: ShowSettingsUpdate) -> ShowSettings:
    return request.app.state.show_settings_service.update_settings(body)


@router.get("/languages")
async def list_languages() -> dict[str, Any]:
    return {
        "languages": SUPPORTED_LANGUAGES,
        "voice_styles": {
            name: {
                "reading_rate_wps": profile.reading_rate_wps,
                "base_delay_ms": profile.base_delay_ms,
            }
            for name, profile in STYLE_PROFILES.items()
        },
    }


@router.websocket("/ws/{client_id}")
async def listener_websocket(websocket: WebSocket, client_id: str):
    """Attach a speech persona client. Utterances arrive as ``{"type": "utterance"}``."""
    manager = websocket.app.state.listener_manager
    controller: SessionController = websocket.app.state.session_controller

    if await manager.connect(websocket, client_id):
        await controller.on_connect()

    try:
        while True:
            data = await websocket.receive_json()
            event_type = data.get("type")

            if event_type == "heartbeat":
                pass

            elif event_type == "record":
                try:
                    record = RawRecord.model_validate(data.get("record") or {})
                except ValidationError as e:
                    logger.warning(f"Ignoring malformed record from {client_id}: {e}")
                    continue
                await controller.handle_push(record)

            else:
                logger.debug(f"Unhandled message type from {client_id}: {event_type}")

    except WebSocketDisconnect:
        logger.info(f"Listener {client_id} closed the connection")
    except Exception as e:
        logger.error(f"Listener connection error for {client_id}: {e}", exc_info=True)
    finally:
        if manager.disconnect(client_id, websocket):
            await controller.on_disconnect()
