"""WebSocket endpoint of the direct-messaging relay.

Clients connect to ``/`` (or ``/ws``) and speak the JSON protocol in
``app.chat.protocol``:

Protocol Flow:
    1. Client sends: {type: "join", self, target}
       → Server sends: {type: "history", messages: [...]}
    2. Client sends: {type: "chat", text, file?}
       → Recipient's connections may get: {type: "unknown_message", ...}
       → Room members get: {type: "chat", from, text, createdAt, file?}
       → Room members may get: {type: "contact_added", message}
    3. On disconnect the connection is released; nobody is notified.
"""
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from .relay import ChatRelay

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/")
@router.websocket("/ws")
async def relay_websocket(websocket: WebSocket) -> None:
    """Handle the full lifecycle of one client connection."""
    relay: ChatRelay = websocket.app.state.relay
    await websocket.accept()
    logger.info("[WS] Connection accepted from %s", websocket.client)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            await relay.handle_frame(websocket, raw)
    except WebSocketDisconnect:
        pass
    finally:
        relay.handle_disconnect(websocket)
        logger.info("[WS] Connection closed from %s", websocket.client)
