"""In-memory registry of live relay connections.

This module tracks which websocket belongs to which identity and which
two-party room, and delivers frames to those connections.

Three indices are kept consistent by every operation:
    - bindings: connection -> SessionBinding(identity, room_key)
    - rooms: room_key -> set of connections
    - identities: identity -> set of connections (one per device/tab)

A connection is bound to at most one room at a time; joining again moves it.
Room entries stay in the index once created (possibly empty); identity
entries are removed when their last connection is released.

Thread Safety:
    This implementation is designed for async/await usage with a single event
    loop. It is NOT thread-safe for concurrent access from multiple threads;
    multi-threaded use needs a lock around join/release.

Delivery:
    Sends are best-effort. A connection that is closed or fails to send is
    skipped and logged at debug level; it is removed only when its own
    handler releases it.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Set

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from .keys import room_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionBinding:
    """Identity and room a connection joined with."""
    identity: str
    room_key: str


def is_open(connection: WebSocket) -> bool:
    """True while both sides of the websocket are connected."""
    return (
        connection.client_state == WebSocketState.CONNECTED
        and connection.application_state == WebSocketState.CONNECTED
    )


class ConnectionRegistry:
    """Session, room and identity indices for one server instance."""

    def __init__(self) -> None:
        # websocket -> SessionBinding for message routing and disconnect handling
        self.bindings: Dict[WebSocket, SessionBinding] = {}

        # room_key -> live connections in that room
        self.rooms: Dict[str, Set[WebSocket]] = {}

        # identity -> live connections of that identity, in any room
        self.identities: Dict[str, Set[WebSocket]] = {}

    def join(
        self, websocket: WebSocket, self_identity: str, target_identity: str
    ) -> SessionBinding:
        """Bind a connection to ``self_identity`` in the room shared with the target.

        Any previous binding of the connection is dropped first.

        Raises:
            InvalidIdentityError: If either identity cannot form a room key.
        """
        key = room_key(self_identity, target_identity)
        self._detach(websocket)

        binding = SessionBinding(identity=self_identity, room_key=key)
        self.bindings[websocket] = binding
        self.rooms.setdefault(key, set()).add(websocket)
        self.identities.setdefault(self_identity, set()).add(websocket)

        logger.info(
            f"[Registry] {self_identity} joined {key} "
            f"({len(self.rooms[key])} connection(s) in room)"
        )
        return binding

    def release(self, websocket: WebSocket) -> Optional[SessionBinding]:
        """Forget a connection. Releasing an unbound connection is a no-op.

        Returns:
            The binding that was removed, if any.
        """
        binding = self._detach(websocket)
        if binding:
            logger.info(f"[Registry] {binding.identity} left {binding.room_key}")
        return binding

    def binding_for(self, websocket: WebSocket) -> Optional[SessionBinding]:
        return self.bindings.get(websocket)

    def members(self, key: str) -> Set[WebSocket]:
        """Snapshot of the connections currently in a room."""
        return set(self.rooms.get(key, ()))

    def connections_for(self, identity: str) -> Set[WebSocket]:
        """Snapshot of the connections bound to an identity."""
        return set(self.identities.get(identity, ()))

    async def send(self, websocket: WebSocket, payload: dict) -> bool:
        """Send one frame to one connection (closed connections are skipped)."""
        if not is_open(websocket):
            return False
        return await self._safe_send(websocket, payload)

    async def dispatch_to_room(self, key: str, payload: dict) -> int:
        """Send a frame to every connection in a room.

        Returns:
            Number of connections the frame was delivered to.
        """
        return await self._dispatch(self.members(key), payload)

    async def dispatch_to_identity(self, identity: str, payload: dict) -> int:
        """Send a frame to every open connection of an identity, in any room.

        Returns:
            Number of connections the frame was delivered to.
        """
        connections = [c for c in self.connections_for(identity) if is_open(c)]
        if not connections:
            logger.debug(f"[Registry] No open connections for {identity}")
        return await self._dispatch(connections, payload)

    async def _dispatch(self, connections: Iterable[WebSocket], payload: dict) -> int:
        targets = [c for c in connections if is_open(c)]
        if not targets:
            return 0
        results = await asyncio.gather(
            *[self._safe_send(conn, payload) for conn in targets],
            return_exceptions=True,
        )
        return sum(1 for ok in results if ok is True)

    async def _safe_send(self, connection: WebSocket, payload: dict) -> bool:
        """Send a frame with error handling.

        Returns:
            True if successful, False if the connection failed.
        """
        try:
            await connection.send_json(payload)
            return True
        except Exception as e:
            logger.debug(f"[Registry] Failed to send to connection: {e}")
            return False

    def _detach(self, websocket: WebSocket) -> Optional[SessionBinding]:
        binding = self.bindings.pop(websocket, None)
        if binding is None:
            return None

        room = self.rooms.get(binding.room_key)
        if room is not None:
            room.discard(websocket)

        sockets = self.identities.get(binding.identity)
        if sockets is not None:
            sockets.discard(websocket)
            if not sockets:
                del self.identities[binding.identity]
        return binding
