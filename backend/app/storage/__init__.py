"""Persistent storage for messages, profiles and contact lists (DuckDB)."""

from .database import Database, StorageUnavailableError
from .messages import MessageStore
from .schemas import Contact, FileAttachment, MessageRecord, MessageStatus, UserProfile
from .users import UserDirectory

__all__ = [
    "Contact",
    "Database",
    "FileAttachment",
    "MessageRecord",
    "MessageStatus",
    "MessageStore",
    "StorageUnavailableError",
    "UserDirectory",
    "UserProfile",
]
