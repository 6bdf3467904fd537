"""Tests for relay frame parsing and payload shapes."""
import json
from datetime import datetime

import pytest

from app.chat.protocol import (
    ChatBroadcast,
    ChatFrame,
    ContactAddedEvent,
    FrameError,
    HistoryFrame,
    JoinFrame,
    UnknownMessageNotice,
    normalize_file,
    parse_frame,
)
from app.storage import FileAttachment, MessageRecord


class TestParseFrame:

    def test_join(self):
        frame = parse_frame(json.dumps({"type": "join", "self": "alice@x", "target": "bob@x"}))
        assert isinstance(frame, JoinFrame)
        assert frame.self_identity == "alice@x"
        assert frame.target == "bob@x"

    def test_chat_with_defaults(self):
        frame = parse_frame('{"type": "chat"}')
        assert isinstance(frame, ChatFrame)
        assert frame.text == ""
        assert frame.file is None

    def test_chat_accepts_bytes(self):
        frame = parse_frame(b'{"type": "chat", "text": "hi"}')
        assert frame.text == "hi"

    @pytest.mark.parametrize("raw", [
        "not json",
        "[1, 2, 3]",
        '"just a string"',
        '{"type": "typing"}',
        '{"text": "no type"}',
        '{"type": "join", "self": "alice@x"}',
        '{"type": "join", "self": "", "target": "bob@x"}',
        '{"type": "chat", "text": 42}',
    ])
    def test_rejects_malformed(self, raw):
        with pytest.raises(FrameError):
            parse_frame(raw)


class TestNormalizeFile:

    def test_absent(self):
        assert normalize_file(None) is None

    def test_object_with_url(self):
        file = normalize_file({"url": "https://f/x.png", "name": "x.png", "type": "image/png", "size": 12})
        assert file == FileAttachment(url="https://f/x.png", name="x.png", type="image/png", size=12)

    def test_json_string(self):
        file = normalize_file('{"url": "https://f/doc.pdf", "name": "doc.pdf"}')
        assert file.url == "https://f/doc.pdf"
        assert file.name == "doc.pdf"

    @pytest.mark.parametrize("value", [
        "{broken",
        '"https://f/x.png"',
        {"name": "no-url.png"},
        {"url": ""},
        42,
    ])
    def test_discards_unusable_values(self, value):
        assert normalize_file(value) is None

    def test_keeps_fractional_size(self):
        file = normalize_file({"url": "https://f/x", "name": "x", "type": "t", "size": 1.5})
        assert file == FileAttachment(url="https://f/x", name="x", type="t", size=1.5)

    @pytest.mark.parametrize("value, dropped", [
        ({"url": "https://f/x", "name": "x", "size": -3}, "size"),
        ({"url": "https://f/x", "name": "x", "size": "huge"}, "size"),
        ({"url": "https://f/x", "name": 7, "size": 3}, "name"),
    ])
    def test_invalid_metadata_dropped_attachment_kept(self, value, dropped):
        file = normalize_file(value)

        assert file is not None
        assert file.url == "https://f/x"
        assert getattr(file, dropped) is None
        kept = next(field for field in ("name", "size") if field != dropped)
        assert getattr(file, kept) == value[kept]

    def test_invalid_url_discards_attachment(self):
        assert normalize_file({"url": 123, "name": "x"}) is None


class TestOutgoingPayloads:

    def _record(self, **overrides):
        data = dict(
            id="m1", roomId="alice@x+bob@x", from_="alice@x", text="hi",
            createdAt=datetime(2024, 5, 1, 12, 0, 0),
        )
        data.update(overrides)
        return MessageRecord(**data)

    def test_chat_broadcast_without_file(self):
        payload = ChatBroadcast.from_record(self._record()).to_wire()
        assert payload == {
            "type": "chat",
            "from": "alice@x",
            "text": "hi",
            "createdAt": "2024-05-01T12:00:00",
        }

    def test_chat_broadcast_with_file_is_verbatim(self):
        file = FileAttachment(url="https://f/x.png", name="x.png")
        payload = ChatBroadcast.from_record(self._record(file=file)).to_wire()
        assert payload["file"] == {"url": "https://f/x.png", "name": "x.png"}

    def test_history_frame(self):
        payload = HistoryFrame(messages=[self._record()]).to_wire()
        assert payload["type"] == "history"
        assert payload["messages"][0]["from"] == "alice@x"
        assert payload["messages"][0]["status"] == "sent"
        assert "file" not in payload["messages"][0]

    def test_contact_added(self):
        assert ContactAddedEvent(message="Added bob@x to contacts").to_wire() == {
            "type": "contact_added",
            "message": "Added bob@x to contacts",
        }

    def test_unknown_message_notice(self):
        notice = UnknownMessageNotice(
            from_="alice@x", fromName="alice", text="hi",
            timestamp=datetime(2024, 5, 1),
        ).to_wire()
        assert notice["type"] == "unknown_message"
        assert notice["from"] == "alice@x"
        assert notice["fromName"] == "alice"
        assert notice["fromImage"] is None
