"""Direct-messaging relay application.

This is the main entry point for the relay service. Clients hold a websocket
open, join a two-party room, exchange text/file messages, and receive
unknown-sender notices and contact-list updates.

Modules:
    - chat: room keys, connection registry, wire protocol, broadcast engine
    - contacts: contact directory bridge used by the notification pipeline
    - storage: DuckDB persistence for messages, profiles and contacts
    - messages: HTTP edit/delete endpoints
    - users: HTTP profile and contact-list endpoints
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.chat.notifications import NotificationDispatcher
from app.chat.registry import ConnectionRegistry
from app.chat.relay import ChatRelay
from app.chat.router import router as chat_router
from app.config import AppConfig, get_config
from app.contacts import ContactDirectory
from app.messages import router as messages_router
from app.storage import Database, MessageStore, StorageUnavailableError, UserDirectory
from app.users import router as users_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build a relay application.

    Each application owns its own registry and database; nothing is shared
    between instances.

    Args:
        config: Configuration to use. Defaults to ``get_config()``.
    """
    cfg = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open storage and wire the relay; close storage on shutdown."""
        configured_level = getattr(logging, cfg.logging.level.upper(), None)
        if configured_level is not None:
            logging.getLogger().setLevel(configured_level)
            logger.info("Root logger level set to %s", cfg.logging.level.upper())

        database = Database(cfg.database.url)
        try:
            database.open()
        except StorageUnavailableError as exc:
            logger.critical("Storage unavailable at startup: %s", exc)
            raise

        registry = ConnectionRegistry()
        user_directory = UserDirectory(database)
        contact_directory = ContactDirectory(user_directory)
        message_store = MessageStore(database)
        notifier = NotificationDispatcher(registry, contact_directory)

        app.state.database = database
        app.state.registry = registry
        app.state.user_directory = user_directory
        app.state.contact_directory = contact_directory
        app.state.message_store = message_store
        app.state.relay = ChatRelay(registry, message_store, notifier)
        logger.info("Relay ready on port %s", cfg.server.port)

        yield  # Application runs here

        database.close()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="DM Relay",
        description="Real-time direct-messaging relay",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(chat_router)
    app.include_router(messages_router)
    app.include_router(users_router)

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint.

        Returns:
            dict: Status object indicating the server is running.
        """
        return {"status": "OK", "message": "WebSocket server is running"}

    return app


# Default app instance (used by uvicorn: app.main:app)
app = create_app()


def run() -> None:
    """Console entry point: serve the default app on the configured address."""
    config = get_config()
    uvicorn.run(
        "app.main:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level,
    )
