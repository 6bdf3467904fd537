"""Contact directory bridge used by the relay.

Wraps ``UserDirectory`` with the semantics the notification pipeline needs:
lookups never raise. A failed "is this a contact?" check answers False, which
routes the message through the unknown-sender notice rather than hiding it.
"""
import logging
from typing import Optional, Tuple

from app.storage import Contact, UserDirectory, UserProfile

logger = logging.getLogger(__name__)


def local_part(email: str) -> str:
    """Display-name fallback: the part of an email before ``@``."""
    return email.split("@")[0]


class ContactDirectory:
    """Checks and updates users' contact lists."""

    def __init__(self, users: UserDirectory) -> None:
        self._users = users

    def is_contact(self, owner: str, counterpart: str) -> bool:
        """True iff ``counterpart`` is in ``owner``'s contact list.

        False when the owner is unknown, the list is empty, or the lookup fails.
        """
        try:
            return self._users.has_contact(owner, counterpart)
        except Exception:
            logger.exception("[Contacts] Error checking contact list for %s", owner)
            return False

    def add_contact(self, owner: str, counterpart: str) -> bool:
        """Add ``counterpart`` to ``owner``'s contacts if not already present.

        The entry snapshots the counterpart's profile. Without a profile the
        name falls back to the local part of the email and ``found`` is False.

        Returns:
            True if a new entry was appended; False if the owner is unknown,
            the entry already exists, or storage failed.
        """
        try:
            if self._users.get_user(owner) is None:
                return False
            profile = self._users.get_user(counterpart)
            contact = Contact(
                email=counterpart,
                name=(profile.name if profile and profile.name else local_part(counterpart)),
                image=profile.image if profile else None,
                found=profile is not None,
            )
            added = self._users.insert_contact(owner, contact)
        except Exception:
            logger.exception("[Contacts] Error adding contact for %s", owner)
            return False
        if added:
            logger.info("[Contacts] Added %s to %s's contacts", counterpart, owner)
        return added

    def lookup_profile(self, email: str) -> Optional[UserProfile]:
        try:
            return self._users.get_user(email)
        except Exception:
            logger.exception("[Contacts] Error loading profile for %s", email)
            return None

    def display_identity(self, email: str) -> Tuple[str, Optional[str]]:
        """Name and image to show for ``email``, with the local-part fallback."""
        profile = self.lookup_profile(email)
        name = profile.name if profile and profile.name else local_part(email)
        return name, profile.image if profile else None
