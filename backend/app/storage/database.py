"""DuckDB connection and schema for the relay's persistent data.

One ``Database`` owns one DuckDB connection. The schema is created on open and
is safe to create repeatedly.

Database Schema:
    users table:
        - email: Identity (primary key)
        - name / image: Profile fields shown to counterparts
        - created_at / updated_at: UTC timestamps
    contacts table:
        - owner_email + email: Primary key (one entry per counterpart)
        - name / image / found: Snapshot of the counterpart's profile
        - seq: Insertion order
    messages table:
        - id: UUID primary key
        - seq: Insertion order (tiebreak for equal timestamps)
        - room_id / sender / text
        - file_url / file_name / file_type / file_size: Optional attachment
        - created_at: UTC timestamp
        - status: 'sent', 'delivered' or 'seen'

Thread Safety:
    The DuckDB connection is NOT thread-safe. The relay calls it from the
    event loop only.
"""
import logging
from typing import Optional

import duckdb

logger = logging.getLogger(__name__)


class StorageUnavailableError(RuntimeError):
    """Raised when the database cannot be opened or initialised."""


_SCHEMA = [
    "CREATE SEQUENCE IF NOT EXISTS contacts_seq START 1",
    "CREATE SEQUENCE IF NOT EXISTS messages_seq START 1",
    """
    CREATE TABLE IF NOT EXISTS users (
        email      VARCHAR PRIMARY KEY,
        name       VARCHAR,
        image      VARCHAR,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS contacts (
        owner_email VARCHAR NOT NULL,
        email       VARCHAR NOT NULL,
        name        VARCHAR NOT NULL,
        image       VARCHAR,
        found       BOOLEAN NOT NULL DEFAULT FALSE,
        seq         INTEGER DEFAULT nextval('contacts_seq'),
        PRIMARY KEY (owner_email, email)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS messages (
        id         VARCHAR PRIMARY KEY,
        seq        INTEGER DEFAULT nextval('messages_seq'),
        room_id    VARCHAR NOT NULL,
        sender     VARCHAR NOT NULL,
        text       VARCHAR NOT NULL DEFAULT '',
        file_url   VARCHAR,
        file_name  VARCHAR,
        file_type  VARCHAR,
        file_size  DOUBLE,
        created_at TIMESTAMP NOT NULL,
        status     VARCHAR NOT NULL DEFAULT 'sent'
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_messages_room ON messages(room_id)",
]


class Database:
    """Owner of the DuckDB connection shared by the storage services.

    Args:
        db_path: DuckDB file path or ``":memory:"``.
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._connection: Optional[duckdb.DuckDBPyConnection] = None

    @property
    def path(self) -> str:
        return self._db_path

    def open(self) -> "Database":
        """Connect and create the schema.

        Raises:
            StorageUnavailableError: If DuckDB cannot open the database.
        """
        try:
            conn = self.connection
            for statement in _SCHEMA:
                conn.execute(statement)
        except duckdb.Error as exc:
            self.close()
            raise StorageUnavailableError(
                f"Cannot open database {self._db_path}: {exc}"
            ) from exc
        logger.info("[Storage] Database ready at %s", self._db_path)
        return self

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        """The DuckDB connection, created on first use."""
        if self._connection is None:
            self._connection = duckdb.connect(self._db_path)
        return self._connection

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
