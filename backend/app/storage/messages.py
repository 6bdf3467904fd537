"""MessageStore: DuckDB-backed chat message persistence."""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from .database import Database
from .schemas import FileAttachment, MessageRecord, MessageStatus

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, room_id, sender, text, file_url, file_name, file_type, file_size, "
    "created_at, status"
)


class MessageStore:
    """Persists and replays the messages of two-party rooms.

    All calls are synchronous; DuckDB is embedded and fast enough for the
    volume of a direct-messaging relay.
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    def create(
        self,
        room_id: str,
        sender: str,
        text: str,
        file: Optional[FileAttachment] = None,
    ) -> MessageRecord:
        """Store a new message and return it with its creation timestamp."""
        message_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        self._db.connection.execute(
            """
            INSERT INTO messages
              (id, room_id, sender, text, file_url, file_name, file_type,
               file_size, created_at, status)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                message_id, room_id, sender, text or "",
                file.url if file else None,
                file.name if file else None,
                file.type if file else None,
                file.size if file else None,
                now.replace(tzinfo=None), MessageStatus.SENT.value,
            ],
        )
        return MessageRecord(
            id=message_id,
            roomId=room_id,
            from_=sender,
            text=text or "",
            file=file,
            createdAt=now,
            status=MessageStatus.SENT,
        )

    def list_room(self, room_id: str) -> List[MessageRecord]:
        """All messages of a room, oldest first."""
        rows = self._db.connection.execute(
            f"SELECT {_COLUMNS} FROM messages WHERE room_id = ? "
            "ORDER BY created_at ASC, seq ASC",
            [room_id],
        ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def get(self, message_id: str) -> Optional[MessageRecord]:
        row = self._db.connection.execute(
            f"SELECT {_COLUMNS} FROM messages WHERE id = ?", [message_id]
        ).fetchone()
        return self._row_to_record(row) if row else None

    def update_text(self, message_id: str, text: str) -> Optional[MessageRecord]:
        """Replace the text of a message; None if it does not exist."""
        updated = self._db.connection.execute(
            "UPDATE messages SET text = ? WHERE id = ? RETURNING id",
            [text, message_id],
        ).fetchone()
        if updated is None:
            return None
        return self.get(message_id)

    def delete(self, message_id: str) -> bool:
        result = self._db.connection.execute(
            "DELETE FROM messages WHERE id = ? RETURNING id", [message_id]
        ).fetchone()
        return result is not None

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    @staticmethod
    def _row_to_record(row) -> MessageRecord:
        (message_id, room_id, sender, text, file_url, file_name, file_type,
         file_size, created_at, status) = row
        file = None
        if file_url:
            if file_size is not None and float(file_size).is_integer():
                file_size = int(file_size)
            file = FileAttachment(
                url=file_url, name=file_name, type=file_type, size=file_size
            )
        # created_at is stored as naive UTC
        return MessageRecord(
            id=message_id,
            roomId=room_id,
            from_=sender,
            text=text,
            file=file,
            createdAt=created_at.replace(tzinfo=timezone.utc),
            status=MessageStatus(status),
        )
