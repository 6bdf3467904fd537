"""Message handling for relay connections.

``ChatRelay`` turns client frames into registry changes, storage writes and
broadcasts:

    join  -> bind the connection, replay the room history to it
    chat  -> persist, run notifications, broadcast chat, then contact_added

Frames that fail (malformed input, chat before join, storage errors) are
logged and dropped. The connection stays open and the client gets no error
frame.
"""
import logging
from typing import Union

from fastapi import WebSocket

from app.storage import MessageStore

from .keys import InvalidIdentityError
from .notifications import NotificationDispatcher
from .protocol import (
    ChatBroadcast,
    ChatFrame,
    FrameError,
    HistoryFrame,
    JoinFrame,
    normalize_file,
    parse_frame,
)
from .registry import ConnectionRegistry, SessionBinding

logger = logging.getLogger(__name__)


class SessionNotJoinedError(RuntimeError):
    """Raised when a chat frame arrives on a connection that never joined."""


class ChatRelay:
    """Per-server message engine over one registry and one message store."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        messages: MessageStore,
        notifier: NotificationDispatcher,
    ) -> None:
        self.registry = registry
        self.messages = messages
        self.notifier = notifier

    async def handle_frame(self, websocket: WebSocket, raw: Union[str, bytes]) -> None:
        """Parse and handle one incoming frame. Never raises."""
        try:
            frame = parse_frame(raw)
            if isinstance(frame, JoinFrame):
                await self.handle_join(websocket, frame)
            else:
                await self.handle_chat(websocket, frame)
        except (FrameError, InvalidIdentityError) as e:
            logger.warning(f"[WS] Dropping malformed frame: {e}")
        except SessionNotJoinedError as e:
            logger.warning(f"[WS] Dropping frame: {e}")
        except Exception:
            logger.exception("[WS] Error handling frame")

    async def handle_join(self, websocket: WebSocket, frame: JoinFrame) -> SessionBinding:
        """Bind the connection and send it the room's full history."""
        binding = self.registry.join(websocket, frame.self_identity, frame.target)
        history = self.messages.list_room(binding.room_key)
        await self.registry.send(websocket, HistoryFrame(messages=history).to_wire())
        logger.info(f"[WS] {binding.identity} joined {binding.room_key}, sent {len(history)} message(s)")
        return binding

    async def handle_chat(self, websocket: WebSocket, frame: ChatFrame) -> None:
        """Persist a message and fan it out to the sender's room.

        The chat frame and the optional contact_added event are sent as two
        ordered phases so clients always see the message first.
        """
        sender = self.registry.binding_for(websocket)
        if sender is None:
            raise SessionNotJoinedError("chat received before join")

        record = self.messages.create(
            room_id=sender.room_key,
            sender=sender.identity,
            text=frame.text,
            file=normalize_file(frame.file),
        )
        payload = ChatBroadcast.from_record(record).to_wire()

        contact_added = await self.notifier.process(sender, frame.text)

        delivered = await self.registry.dispatch_to_room(sender.room_key, payload)
        logger.debug(f"[WS] chat from {sender.identity} delivered to {delivered} connection(s)")

        if contact_added is not None:
            await self.registry.dispatch_to_room(sender.room_key, contact_added.to_wire())

    def handle_disconnect(self, websocket: WebSocket) -> None:
        """Drop the connection from the registry. Nobody else is notified."""
        self.registry.release(websocket)
