"""Wire protocol of the relay websocket.

Client → Server frames are a closed set, validated into pydantic models:
    - join: {type: "join", self, target}
    - chat: {type: "chat", text, file?}

Server → Client frames:
    - history: {type: "history", messages: [...]}
    - chat: {type: "chat", from, text, createdAt, file?}
    - contact_added: {type: "contact_added", message}
    - unknown_message: {type: "unknown_message", from, fromName, fromImage, text, timestamp}
"""
import json
import logging
from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from app.storage import FileAttachment, MessageRecord

logger = logging.getLogger(__name__)


class FrameError(ValueError):
    """Raised for a client frame that cannot be parsed or validated."""


# =============================================================================
# Client → Server
# =============================================================================


class JoinFrame(BaseModel):
    """Bind the connection to ``self`` and the room shared with ``target``."""
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["join"]
    self_identity: str = Field(..., alias="self", min_length=1)
    target: str = Field(..., min_length=1)


class ChatFrame(BaseModel):
    """A message for the connection's current room.

    ``file`` may arrive as an object or as a JSON-encoded string; see
    ``normalize_file``.
    """
    type: Literal["chat"]
    text: str = ""
    file: Optional[Any] = None


ClientFrame = Annotated[Union[JoinFrame, ChatFrame], Field(discriminator="type")]

_client_frame = TypeAdapter(ClientFrame)

FRAME_TYPES = ("join", "chat")


def parse_frame(raw: Union[str, bytes]) -> Union[JoinFrame, ChatFrame]:
    """Decode and validate one client frame.

    Raises:
        FrameError: On invalid JSON, a non-object frame, an unknown type, or
            fields failing validation.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise FrameError(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise FrameError("Frame must be a JSON object")
    if data.get("type") not in FRAME_TYPES:
        raise FrameError(f"Unsupported frame type: {data.get('type')!r}")
    try:
        return _client_frame.validate_python(data)
    except ValidationError as exc:
        raise FrameError(f"Invalid {data['type']} frame: {exc.error_count()} error(s)") from exc


def normalize_file(value: Any) -> Optional[FileAttachment]:
    """Coerce a client-supplied file field into an attachment, or None.

    Strings are parsed as JSON. Anything unparseable, not an object, or
    without a URL is dropped. Optional fields that fail validation are
    dropped on their own; the attachment is kept.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("[WS] Discarding unparseable file payload")
            return None
    if not isinstance(value, dict) or not value.get("url"):
        return None
    try:
        return FileAttachment.model_validate(value)
    except ValidationError as exc:
        invalid = {error["loc"][0] for error in exc.errors() if error["loc"]}

    if "url" in invalid:
        logger.warning("[WS] Discarding file payload with invalid url")
        return None
    logger.warning(f"[WS] Dropping invalid file field(s): {', '.join(sorted(map(str, invalid)))}")
    return FileAttachment.model_validate(
        {key: item for key, item in value.items() if key not in invalid}
    )


# =============================================================================
# Server → Client
# =============================================================================


class HistoryFrame(BaseModel):
    type: Literal["history"] = "history"
    messages: List[MessageRecord] = Field(default_factory=list)

    def to_wire(self) -> dict:
        return {"type": self.type, "messages": [m.to_wire() for m in self.messages]}


class ChatBroadcast(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["chat"] = "chat"
    from_: str = Field(..., alias="from")
    text: str
    createdAt: datetime
    file: Optional[FileAttachment] = None

    @classmethod
    def from_record(cls, record: MessageRecord) -> "ChatBroadcast":
        return cls(
            from_=record.from_,
            text=record.text,
            createdAt=record.createdAt,
            file=record.file,
        )

    def to_wire(self) -> dict:
        data = self.model_dump(mode="json", by_alias=True, exclude={"file"})
        if self.file is not None:
            data["file"] = self.file.model_dump(mode="json", exclude_none=True)
        return data


class ContactAddedEvent(BaseModel):
    type: Literal["contact_added"] = "contact_added"
    message: str

    def to_wire(self) -> dict:
        return self.model_dump(mode="json")


class UnknownMessageNotice(BaseModel):
    """Out-of-band notice that someone outside the contact list wrote."""
    type: Literal["unknown_message"] = "unknown_message"
    from_: str = Field(..., alias="from")
    fromName: str
    fromImage: Optional[str] = None
    text: str
    timestamp: datetime

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
