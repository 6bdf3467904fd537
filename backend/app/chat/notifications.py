"""Social side effects of each chat message.

For every message the dispatcher:
    1. Resolves the other participant from the room key.
    2. If the sender is not in that participant's contact list, pushes an
       ``unknown_message`` notice to all of the participant's open
       connections, whether or not they are in this room.
    3. Adds each participant to the other's contact list.

The contact check runs before the auto-add, so the first message between two
strangers always produces a notice even though both are linked right after.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from app.contacts import ContactDirectory

from .keys import counterpart
from .protocol import ContactAddedEvent, UnknownMessageNotice
from .registry import ConnectionRegistry, SessionBinding

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Computes and delivers unknown-sender notices and contact links."""

    def __init__(self, registry: ConnectionRegistry, contacts: ContactDirectory) -> None:
        self.registry = registry
        self.contacts = contacts

    async def process(self, sender: SessionBinding, text: str) -> Optional[ContactAddedEvent]:
        """Run the notification pipeline for one message from ``sender``.

        Returns:
            The ``contact_added`` event to broadcast to the room after the chat
            frame, or None if no contact entry was created.
        """
        other = counterpart(sender.room_key, sender.identity)
        logger.info(f"[Relay] Message from {sender.identity} to {other}")

        if not self.contacts.is_contact(other, sender.identity):
            await self.notify_unknown(other, sender.identity, text)

        added_for_sender = self.contacts.add_contact(sender.identity, other)
        added_for_other = self.contacts.add_contact(other, sender.identity)
        if added_for_sender or added_for_other:
            return ContactAddedEvent(message=f"Added {other} to contacts")
        return None

    async def notify_unknown(self, recipient: str, sender: str, text: str) -> int:
        """Push an ``unknown_message`` notice to every open connection of ``recipient``.

        Returns:
            Number of connections that received the notice.
        """
        name, image = self.contacts.display_identity(sender)
        notice = UnknownMessageNotice(
            from_=sender,
            fromName=name,
            fromImage=image,
            text=text,
            timestamp=datetime.now(timezone.utc),
        )
        delivered = await self.registry.dispatch_to_identity(recipient, notice.to_wire())
        logger.info(
            f"[Relay] {sender} is not in {recipient}'s contacts; "
            f"unknown_message delivered to {delivered} connection(s)"
        )
        return delivered
