from datetime import timedelta

import pytest

from shared import time
from store.pending_actions_store import PendingActionsStore

OWNER = "user-1"
ACTIONS = [
    {"type": "create_task", "data": {"title": "A", "category": "Work"}},
    {"type": "sync_calendar_event", "data": {"taskId": "pending"}},
]


@pytest.fixture
def store():
    return PendingActionsStore(ttl_seconds=300)


def test_set_and_get(store):
    assert store.set(OWNER, ACTIONS, conversation_id="c1") is True
    assert store.has_pending(OWNER)
    assert store.count(OWNER) == 2
    assert store.get_actions(OWNER) == ACTIONS
    assert store.get(OWNER).conversation_id == "c1"


@pytest.mark.parametrize("owner,actions", [("", ACTIONS), (OWNER, []), (OWNER, None)])
def test_invalid_set_is_rejected(store, owner, actions):
    assert store.set(owner, actions) is False
    assert not store.has_pending(OWNER)


def test_entries_expire(store, frozen_clock):
    store.set(OWNER, ACTIONS)
    time.set_fake_utcnow(frozen_clock + timedelta(seconds=301))
    assert store.get(OWNER) is None
    assert store.get_actions(OWNER) == []
    assert store.stats()["totalEntries"] == 0


def test_touch_extends_ttl(store, frozen_clock):
    store.set(OWNER, ACTIONS)
    time.set_fake_utcnow(frozen_clock + timedelta(seconds=200))
    assert store.touch(OWNER) is True
    time.set_fake_utcnow(frozen_clock + timedelta(seconds=400))
    assert store.has_pending(OWNER)


def test_clear(store):
    store.set(OWNER, ACTIONS)
    assert store.clear(OWNER) is True
    assert store.clear(OWNER) is False


def test_replace_actions_keeps_entry(store):
    store.set(OWNER, ACTIONS)
    lock = store.get(OWNER).lock
    assert store.replace_actions(OWNER, ACTIONS[:1]) is True
    assert store.count(OWNER) == 1
    assert store.get(OWNER).lock is lock
    assert store.replace_actions("nobody", ACTIONS) is False


def test_metadata(store, frozen_clock):
    store.set(OWNER, ACTIONS, conversation_id="c1")
    time.set_fake_utcnow(frozen_clock + timedelta(seconds=60))
    meta = store.metadata(OWNER)
    assert meta["count"] == 2
    assert meta["conversationId"] == "c1"
    assert meta["timeRemaining"] == 240
    assert meta["actionTypes"] == ["create_task", "sync_calendar_event"]
    assert store.metadata("nobody") is None


def test_cleanup(store, frozen_clock):
    store.set(OWNER, ACTIONS)
    store.set("user-2", ACTIONS)
    time.set_fake_utcnow(frozen_clock + timedelta(seconds=100))
    store.set("user-3", ACTIONS)
    time.set_fake_utcnow(frozen_clock + timedelta(seconds=350))
    assert store.cleanup() == 2
    assert store.stats() == {"totalEntries": 1, "ttlMinutes": 5.0}
