"""Tests for the contact directory bridge."""
from unittest.mock import MagicMock

from app.contacts import ContactDirectory, local_part


def test_local_part():
    assert local_part("alice.smith@example.com") == "alice.smith"


class TestIsContact:

    def test_unknown_owner(self, contacts):
        assert contacts.is_contact("ghost@x", "alice@x") is False

    def test_after_add(self, contacts, user_directory):
        user_directory.upsert_user("bob@x", name="Bob")
        contacts.add_contact("bob@x", "alice@x")
        assert contacts.is_contact("bob@x", "alice@x") is True
        assert contacts.is_contact("alice@x", "bob@x") is False

    def test_lookup_failure_fails_open(self):
        users = MagicMock()
        users.has_contact.side_effect = RuntimeError("db down")
        assert ContactDirectory(users).is_contact("bob@x", "alice@x") is False


class TestAddContact:

    def test_uses_counterpart_profile(self, contacts, user_directory):
        user_directory.upsert_user("alice@x", name="Alice")
        user_directory.upsert_user("bob@x", name="Bob", image="https://img/bob.png")

        assert contacts.add_contact("alice@x", "bob@x") is True

        [entry] = user_directory.list_contacts("alice@x")
        assert entry.email == "bob@x"
        assert entry.name == "Bob"
        assert entry.image == "https://img/bob.png"
        assert entry.found is True

    def test_falls_back_to_local_part(self, contacts, user_directory):
        user_directory.upsert_user("alice@x", name="Alice")

        assert contacts.add_contact("alice@x", "stranger@x") is True

        [entry] = user_directory.list_contacts("alice@x")
        assert entry.name == "stranger"
        assert entry.image is None
        assert entry.found is False

    def test_idempotent(self, contacts, user_directory):
        user_directory.upsert_user("alice@x")
        user_directory.upsert_user("bob@x")

        assert contacts.add_contact("alice@x", "bob@x") is True
        assert contacts.add_contact("alice@x", "bob@x") is False
        assert len(user_directory.list_contacts("alice@x")) == 1

    def test_unknown_owner_is_not_added(self, contacts, user_directory):
        assert contacts.add_contact("ghost@x", "bob@x") is False
        assert user_directory.list_contacts("ghost@x") == []

    def test_storage_failure_returns_false(self):
        users = MagicMock()
        users.get_user.side_effect = RuntimeError("db down")
        assert ContactDirectory(users).add_contact("alice@x", "bob@x") is False


class TestDisplayIdentity:

    def test_profile(self, contacts, user_directory):
        user_directory.upsert_user("alice@x", name="Alice", image="https://img/a.png")
        assert contacts.display_identity("alice@x") == ("Alice", "https://img/a.png")

    def test_fallback(self, contacts):
        assert contacts.display_identity("nobody@x") == ("nobody", None)
