# store/goal_item_store.py
from __future__ import annotations

from shared.config import GOALS_COLLECTION
from store.firestore_entity_store import FirestoreEntityStore


class GoalStore(FirestoreEntityStore):
    """Firestore-backed store for goals (title, description, progress, priority, deadline)."""

    kind = "goal"

    def __init__(self, client=None, collection_name: str = GOALS_COLLECTION):
        super().__init__(collection_name, client=client)
