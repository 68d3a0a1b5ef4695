"""
Tests for the WebSocket live channel
"""
import asyncio
import contextlib
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from app.api.v1.live import WebSocketChannel
from app.application.live_channels import LiveChannelHub
from app.main import create_app


async def _stop(channel, writer):
    channel.close()
    writer.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await writer


class FakeWebSocket:
    def __init__(self, fail=False):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.fail = fail
        self.sent = []

    async def send_text(self, frame):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(frame)


@pytest.mark.asyncio
async def test_writer_delivers_frames_in_order():
    ws = FakeWebSocket()
    channel = WebSocketChannel(ws, buffer_size=8)
    writer = asyncio.create_task(channel.pump())

    for i in range(5):
        channel.send_text(str(i))
    await asyncio.sleep(0.01)

    await _stop(channel, writer)
    assert ws.sent == ["0", "1", "2", "3", "4"]


@pytest.mark.asyncio
async def test_full_buffer_drops_new_frames():
    ws = FakeWebSocket()
    channel = WebSocketChannel(ws, buffer_size=2)

    for frame in ("a", "b", "c"):
        channel.send_text(frame)

    writer = asyncio.create_task(channel.pump())
    await asyncio.sleep(0.01)
    await _stop(channel, writer)

    assert ws.sent == ["a", "b"]


@pytest.mark.asyncio
async def test_send_failure_closes_channel():
    channel = WebSocketChannel(FakeWebSocket(fail=True))
    writer = asyncio.create_task(channel.pump())

    channel.send_text("x")
    await asyncio.sleep(0.01)

    assert channel.is_open is False
    await _stop(channel, writer)
    with pytest.raises(RuntimeError):
        channel.send_text("y")


def test_is_open_follows_socket_state():
    ws = FakeWebSocket()
    channel = WebSocketChannel(SimpleNamespace(
        client_state=ws.client_state, application_state=WebSocketState.DISCONNECTED,
    ))
    assert channel.is_open is False
    assert WebSocketChannel(ws).is_open is True


def test_client_frames_are_ignored(client, register_user):
    user = register_user("Andi", "andi")

    with client.websocket_connect("/ws") as ws:
        ws.send_text("hello server")
        ws.send_json({"type": "transaction", "data": {"id": "forged"}})
        entry = client.post(
            "/api/transactions",
            json={"userId": user["id"], "contributorName": "Andi", "amount": 1000, "type": "DEPOSIT"},
        ).json()

        assert ws.receive_json()["data"]["id"] == entry["id"]

    assert [e["id"] for e in client.get("/api/transactions/all").json()] == [entry["id"]]


def test_live_hub_tracks_open_channels(client, app):
    with client.websocket_connect("/ws"):
        with client.websocket_connect("/"):
            # Runs on the server loop after both handlers reached their receive loop
            client.get("/health")
            assert len(app.state.live_hub) == 2


def test_injected_hub_is_used(dispatcher):
    hub = LiveChannelHub()
    application = create_app(hub=hub, dispatcher=dispatcher)

    with TestClient(application):
        assert application.state.live_hub is hub
        assert application.state.fanout.hub is hub
