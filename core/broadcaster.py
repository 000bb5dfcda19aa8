"""
Realtime broadcaster

Every connected viewer receives every event as {"type": ..., "data": ...}.
There is no topic filtering, no replay for late joiners and no retry: the
events only tell clients which cached queries to re-fetch.

publish() never touches a socket. It hands the envelope to an internal
asyncio.Queue and a single fan-out task, started with the application,
delivers it. Sync endpoints run in the threadpool, so the hand-off goes
through loop.call_soon_threadsafe.
"""
import asyncio
import logging
from typing import Any, Dict, Optional, Set

from fastapi import Request, WebSocket
from pydantic import BaseModel
from starlette.websockets import WebSocketState

from models import EventType

logger = logging.getLogger(__name__)


def build_envelope(event_type: EventType, data: Any) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    return {"type": EventType(event_type).value, "data": data}


class Broadcaster:
    """Single-process pub/sub fan-out over WebSocket connections"""

    def __init__(self):
        self._connections: Set[WebSocket] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the fan-out task on the running loop (application startup)."""
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._fan_out())
        logger.info("Broadcaster started")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._loop = None
        self._connections.clear()
        logger.info("Broadcaster stopped")

    async def connect(self, websocket: WebSocket) -> None:
        # Registered before accept so no event published after the handshake is missed
        self._connections.add(websocket)
        await websocket.accept()
        logger.info(f"Client connected to WebSocket ({self.connection_count} open)")

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.info(f"Client disconnected from WebSocket ({self.connection_count} open)")

    def publish(self, event_type: EventType, data: Any) -> None:
        """
        Queue an event for every open connection.

        Fire-and-forget: returns immediately and never raises because of a
        viewer. When the fan-out task is not running the event is dropped.
        """
        envelope = build_envelope(event_type, data)

        if self._loop is None or self._queue is None or self._loop.is_closed():
            logger.debug(f"Broadcaster not running, dropping {envelope['type']}")
            return

        self._loop.call_soon_threadsafe(self._queue.put_nowait, envelope)

    async def _fan_out(self) -> None:
        while True:
            envelope = await self._queue.get()
            await self.deliver(envelope)

    async def deliver(self, envelope: Dict[str, Any]) -> None:
        """Send one envelope to every open connection; failed sockets are dropped."""
        for websocket in list(self._connections):
            if (
                websocket.client_state != WebSocketState.CONNECTED
                or websocket.application_state != WebSocketState.CONNECTED
            ):
                continue

            try:
                await websocket.send_json(envelope)
            except Exception as e:
                logger.warning(f"Dropping WebSocket after failed send of {envelope['type']}: {e}")
                self._connections.discard(websocket)


def get_broadcaster(request: Request) -> Broadcaster:
    """FastAPI dependency: the broadcaster started with the application."""
    return request.app.state.broadcaster
