"""Tests for the notification inbox."""

import pytest

from larder.db import Database
from larder.errors import AuthorizationError, NotFoundError, ValidationError
from larder.models import NotificationType
from larder.notifications import NotificationService


@pytest.fixture
def db(tmp_path):
    return Database(tmp_path / "larder.db")


@pytest.fixture
def inbox(db):
    return NotificationService(db)


def _notify(db, recipient, title="Hello", payload=None):
    with db.transaction() as tx:
        return tx.notifications.create(
            recipient, NotificationType.SHOPPING_ASSIGNMENT, title, payload=payload
        )


def test_unread_newest_first(db, inbox):
    first = _notify(db, "alice", "first")
    second = _notify(db, "alice", "second")
    _notify(db, "bob")
    assert [n.id for n in inbox.unread("alice")] == [second.id, first.id]


def test_payload_round_trips(db, inbox):
    _notify(db, "alice", payload={"itemId": "i1", "itemName": "Milk"})
    assert inbox.unread("alice")[0].payload == {"itemId": "i1", "itemName": "Milk"}


def test_mark_read(db, inbox):
    note = _notify(db, "alice")
    read = inbox.mark_read(note.id, "alice")
    assert read.read_at is not None
    assert inbox.unread("alice") == []
    assert [n.id for n in inbox.recent("alice")] == [note.id]


def test_mark_read_tri_state(db, inbox):
    note = _notify(db, "alice")
    with pytest.raises(NotFoundError):
        inbox.mark_read("missing", "alice")
    with pytest.raises(AuthorizationError):
        inbox.mark_read(note.id, "bob")


def test_mark_all_read(db, inbox):
    _notify(db, "alice")
    _notify(db, "alice")
    _notify(db, "bob")
    assert inbox.mark_all_read("alice") == 2
    assert inbox.mark_all_read("alice") == 0
    assert len(inbox.unread("bob")) == 1


def test_recent_limit(db, inbox):
    for i in range(5):
        _notify(db, "alice", f"n{i}")
    assert len(inbox.recent("alice", limit=3)) == 3
    with pytest.raises(ValidationError):
        inbox.recent("alice", limit=0)
