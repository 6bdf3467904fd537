"""UserDirectory: DuckDB-backed user profiles and contact lists."""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from .database import Database
from .schemas import Contact, UserProfile

logger = logging.getLogger(__name__)


class UserDirectory:
    """Profiles keyed by email, and each user's list of known counterparts."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def upsert_user(
        self, email: str, name: Optional[str] = None, image: Optional[str] = None
    ) -> UserProfile:
        """Create a profile, or update name/image of an existing one.

        Fields passed as None keep their stored value.
        """
        stored_at = datetime.now(timezone.utc).replace(tzinfo=None)
        conn = self._db.connection
        existing = self.get_user(email)
        if existing is None:
            conn.execute(
                "INSERT INTO users (email, name, image, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?)",
                [email, name, image, stored_at, stored_at],
            )
        else:
            conn.execute(
                "UPDATE users SET name = ?, image = ?, updated_at = ? WHERE email = ?",
                [
                    name if name is not None else existing.name,
                    image if image is not None else existing.image,
                    stored_at,
                    email,
                ],
            )
        return self.get_user(email)

    def get_user(self, email: str) -> Optional[UserProfile]:
        row = self._db.connection.execute(
            "SELECT email, name, image, created_at FROM users WHERE email = ?",
            [email],
        ).fetchone()
        if row is None:
            return None
        created_at = row[3].replace(tzinfo=timezone.utc) if row[3] else None
        return UserProfile(email=row[0], name=row[1], image=row[2], createdAt=created_at)

    def list_contacts(self, owner_email: str) -> List[Contact]:
        rows = self._db.connection.execute(
            "SELECT email, name, image, found FROM contacts "
            "WHERE owner_email = ? ORDER BY seq ASC",
            [owner_email],
        ).fetchall()
        return [
            Contact(email=r[0], name=r[1], image=r[2], found=r[3]) for r in rows
        ]

    def has_contact(self, owner_email: str, email: str) -> bool:
        row = self._db.connection.execute(
            "SELECT 1 FROM contacts WHERE owner_email = ? AND email = ?",
            [owner_email, email],
        ).fetchone()
        return row is not None

    def insert_contact(self, owner_email: str, contact: Contact) -> bool:
        """Append a contact unless one for the same email already exists.

        Returns:
            True if a new entry was written.
        """
        if self.has_contact(owner_email, contact.email):
            return False
        self._db.connection.execute(
            "INSERT INTO contacts (owner_email, email, name, image, found) "
            "VALUES (?, ?, ?, ?, ?)",
            [owner_email, contact.email, contact.name, contact.image, contact.found],
        )
        return True
