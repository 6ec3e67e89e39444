# store/task_item_store.py
from __future__ import annotations

from shared.config import TASKS_COLLECTION
from store.firestore_entity_store import FirestoreEntityStore


class TaskStore(FirestoreEntityStore):
    """
    Firestore-backed store for tasks.
    Documents: title, category, priority, status, due_date (UTC), description,
    optional google_event_id, plus the store-owned item_id/user_id/version/timestamps.
    """

    kind = "task"

    def __init__(self, client=None, collection_name: str = TASKS_COLLECTION):
        super().__init__(collection_name, client=client)
