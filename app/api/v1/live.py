"""
Live channel: WebSocket endpoint that streams ledger changes to clients.

Server -> client frames: {"type": "transaction", "data": <entry>}.
Client -> server frames are read (to notice disconnects) and ignored.
"""
import asyncio
import contextlib
import logging

from fastapi import APIRouter, Depends, WebSocket
from starlette.websockets import WebSocketState

from app.api.deps import get_live_hub
from app.application.live_channels import LiveChannelHub
from app.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["live"])


class WebSocketChannel:
    """
    LiveChannel over a Starlette WebSocket.

    send_text() never suspends: frames go into a bounded buffer drained by
    a single writer task, so one socket sees frames in broadcast order.
    A full buffer means a slow consumer; the new frame is dropped and the
    client catches up by refetching on reconnect.
    """

    def __init__(self, websocket: WebSocket, buffer_size: int = 64):
        self.websocket = websocket
        self._buffer: asyncio.Queue = asyncio.Queue(maxsize=max(1, buffer_size))
        self._closed = False

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def send_text(self, frame: str) -> None:
        if self._closed:
            raise RuntimeError("live channel is closed")
        try:
            self._buffer.put_nowait(frame)
        except asyncio.QueueFull:
            logger.warning("Live channel buffer full, dropping frame")

    async def pump(self) -> None:
        """Writer loop: deliver buffered frames until the socket fails or is closed."""
        while not self._closed:
            frame = await self._buffer.get()
            try:
                await self.websocket.send_text(frame)
            except Exception as exc:
                logger.warning("Live channel send failed: %s", exc)
                self._closed = True

    def close(self) -> None:
        self._closed = True


async def _serve(websocket: WebSocket, hub: LiveChannelHub) -> None:
    await websocket.accept()
    channel = WebSocketChannel(websocket, buffer_size=get_settings().LIVE_CHANNEL_BUFFER)
    hub.join(channel)
    writer = asyncio.create_task(channel.pump())
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        channel.close()
        hub.leave(channel)
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer


@router.websocket("/ws")
async def live_stream(websocket: WebSocket, hub: LiveChannelHub = Depends(get_live_hub)):
    await _serve(websocket, hub)


@router.websocket("/")
async def live_stream_root(websocket: WebSocket, hub: LiveChannelHub = Depends(get_live_hub)):
    """Same channel on the API origin root (clients derive ws:// from the API base URL)"""
    await _serve(websocket, hub)
