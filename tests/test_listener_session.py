"""Tests for the listener connection manager acting as a speech channel."""

from unittest.mock import AsyncMock

import pytest

from liveread.services.listener_session import ListenerConnectionManager
from liveread.services.speech import ChannelClosedError, SpeechChannel


def _websocket(fail: bool = False) -> AsyncMock:
    ws = AsyncMock()
    if fail:
        ws.send_json.side_effect = RuntimeError("closed")
    return ws


def test_manager_is_a_speech_channel():
    assert isinstance(ListenerConnectionManager(), SpeechChannel)


@pytest.mark.asyncio
async def test_connect_and_disconnect_report_first_and_last():
    manager = ListenerConnectionManager()
    ws_a, ws_b = _websocket(), _websocket()

    assert await manager.connect(ws_a, "a") is True
    assert await manager.connect(ws_b, "b") is False
    assert manager.is_connected
    ws_a.accept.assert_awaited_once()

    assert manager.disconnect("a") is False
    assert manager.disconnect("b") is True
    assert manager.disconnect("b") is True
    assert manager.is_connected is False


@pytest.mark.asyncio
async def test_send_delivers_utterance_to_every_listener():
    manager = ListenerConnectionManager()
    ws_a, ws_b = _websocket(), _websocket()
    await manager.connect(ws_a, "a")
    await manager.connect(ws_b, "b")

    await manager.send("Hello po!")

    expected = {"type": "utterance", "text": "Hello po!"}
    ws_a.send_json.assert_awaited_once_with(expected)
    ws_b.send_json.assert_awaited_once_with(expected)
    assert manager.get_session("a").utterances_sent == 1


@pytest.mark.asyncio
async def test_send_without_listeners_raises():
    manager = ListenerConnectionManager()

    with pytest.raises(ChannelClosedError):
        await manager.send("anyone?")


@pytest.mark.asyncio
async def test_failed_listener_is_dropped():
    manager = ListenerConnectionManager()
    await manager.connect(_websocket(fail=True), "broken")
    await manager.connect(_websocket(), "ok")

    await manager.send("still heard")

    assert manager.get_session("broken") is None
    assert manager.get_session("ok") is not None


@pytest.mark.asyncio
async def test_send_raises_when_nobody_received_it():
    manager = ListenerConnectionManager()
    await manager.connect(_websocket(fail=True), "broken")

    with pytest.raises(ChannelClosedError):
        await manager.send("lost")
    assert manager.is_connected is False


@pytest.mark.asyncio
async def test_publish_counts_deliveries():
    manager = ListenerConnectionManager()
    await manager.connect(_websocket(), "a")
    await manager.connect(_websocket(fail=True), "b")

    delivered = await manager.publish({"type": "turn", "text": "x"})

    assert delivered == 1


@pytest.mark.asyncio
async def test_stale_socket_cleanup_keeps_reconnected_listener():
    manager = ListenerConnectionManager()
    old_ws, new_ws = _websocket(), _websocket()
    await manager.connect(old_ws, "persona")
    assert await manager.connect(new_ws, "persona") is False

    # The handler of the dropped socket cleans up after the client came back
    assert manager.disconnect("persona", old_ws) is False

    assert manager.is_connected
    assert manager.get_session("persona").websocket is new_ws
    await manager.send("still on air")
    new_ws.send_json.assert_awaited_once_with({"type": "utterance", "text": "still on air"})

    assert manager.disconnect("persona", new_ws) is True
    assert manager.is_connected is False
