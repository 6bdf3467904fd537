"""Pydantic schemas for persisted relay data.

These models mirror the rows kept by the DuckDB storage layer and double as
the wire form sent to clients (history frames and the HTTP surface).
Field names follow the client protocol (camelCase, ``from`` for the sender).
"""
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt


class MessageStatus(str, Enum):
    """Delivery status of a stored message.

    Attributes:
        SENT: Persisted by the relay (default).
        DELIVERED: Acknowledged by the recipient's client.
        SEEN: Displayed to the recipient.
    """
    SENT = "sent"
    DELIVERED = "delivered"
    SEEN = "seen"


class FileAttachment(BaseModel):
    """File descriptor attached to a chat message.

    Only ``url`` is required; the rest is whatever the uploader reported.
    """
    url: str = Field(..., min_length=1, description="Download URL")
    name: Optional[str] = Field(None, description="Original filename")
    type: Optional[str] = Field(None, description="MIME type")
    size: Optional[Union[NonNegativeInt, NonNegativeFloat]] = Field(None, description="Size in bytes")


class MessageRecord(BaseModel):
    """A chat message as stored and replayed in history.

    Attributes:
        id: Unique message identifier (UUID).
        roomId: Room key of the two-party conversation.
        from_: Sender identity (serialized as ``from``).
        text: Message body.
        file: Optional file attachment.
        createdAt: Server-side creation time (UTC).
        status: Delivery status.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    roomId: str
    from_: str = Field(..., alias="from")
    text: str = ""
    file: Optional[FileAttachment] = None
    createdAt: datetime
    status: MessageStatus = MessageStatus.SENT

    def to_wire(self) -> dict:
        """JSON-ready dict; ``file`` is omitted when absent."""
        data = self.model_dump(mode="json", by_alias=True)
        if data.get("file") is None:
            data.pop("file", None)
        else:
            data["file"] = self.file.model_dump(mode="json", exclude_none=True)
        return data


class UserProfile(BaseModel):
    """Public profile of an identity."""
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    createdAt: Optional[datetime] = None


class Contact(BaseModel):
    """Entry in a user's contact list.

    ``found`` is False when the counterpart had no profile at the time the
    entry was created and the name was derived from the email address.
    """
    email: str
    name: str
    image: Optional[str] = None
    found: bool = False
