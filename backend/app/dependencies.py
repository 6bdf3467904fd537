"""FastAPI dependencies resolving the per-app services stored on ``app.state``."""
from fastapi import Request

from app.storage import MessageStore, UserDirectory


def get_message_store(request: Request) -> MessageStore:
    return request.app.state.message_store


def get_user_directory(request: Request) -> UserDirectory:
    return request.app.state.user_directory
