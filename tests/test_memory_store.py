import pytest

from store.entity_store import VersionConflict
from store.memory_store import InMemoryEntityStore

OWNER = "user-1"
OTHER = "user-2"


@pytest.fixture
def store():
    return InMemoryEntityStore("task")


def test_create_sets_store_owned_fields(store, frozen_clock):
    doc = store.create(OWNER, {"title": "A", "item_id": "forged", "version": 99})
    assert doc["item_id"] != "forged"
    assert doc["user_id"] == OWNER
    assert doc["version"] == 1
    assert doc["created_at"] == frozen_clock


def test_reads_are_owner_scoped(store):
    doc = store.create(OWNER, {"title": "A"})
    assert store.find(OTHER, doc["item_id"]) is None
    assert store.update(OTHER, doc["item_id"], {"title": "B"}) is None
    assert store.delete(OTHER, doc["item_id"]) is None
    assert store.list(OTHER) == []


def test_update_bumps_version_and_checks_it(store):
    doc = store.create(OWNER, {"title": "A"})
    updated = store.update(OWNER, doc["item_id"], {"title": "B"}, expected_version=1)
    assert updated["version"] == 2

    with pytest.raises(VersionConflict) as exc:
        store.update(OWNER, doc["item_id"], {"title": "C"}, expected_version=1)
    assert (exc.value.expected, exc.value.actual) == (1, 2)
    assert store.find(OWNER, doc["item_id"])["title"] == "B"


def test_returned_documents_are_copies(store):
    doc = store.create(OWNER, {"title": "A", "tags": ["x"]})
    doc["tags"].append("y")
    assert store.find(OWNER, doc["item_id"])["tags"] == ["x"]


def test_list_filters(store):
    store.create(OWNER, {"title": "A", "status": "todo"})
    store.create(OWNER, {"title": "B", "status": "completed"})
    assert [d["title"] for d in store.list(OWNER, status="todo")] == ["A"]


def test_delete_all_counts(store):
    store.create(OWNER, {"title": "A"})
    store.create(OTHER, {"title": "B"})
    assert store.delete_all(OWNER) == 1
    assert store.delete_all(OWNER) == 0
    assert len(store.list(OTHER)) == 1


def test_create_requires_owner(store):
    with pytest.raises(ValueError):
        store.create("", {"title": "A"})
