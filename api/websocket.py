"""
Realtime channel

Clients connect to /ws/app and receive every {"type", "data"} event.
Whatever the client sends is logged and ignored.
"""
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import logging

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)


@router.websocket("/ws/app")
async def app_updates(websocket: WebSocket):
    broadcaster = websocket.app.state.broadcaster

    try:
        await broadcaster.connect(websocket)
        while True:
            message = await websocket.receive_text()
            logger.debug(f"Received message: {message}")
    except WebSocketDisconnect:
        logger.debug("WebSocket closed by client")
    finally:
        broadcaster.disconnect(websocket)
