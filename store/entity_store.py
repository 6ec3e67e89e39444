# store/entity_store.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

Entity = Dict[str, Any]

# Written by the stores themselves; never accepted from an update payload
PROTECTED_FIELDS = frozenset({"item_id", "user_id", "version", "created_at", "updated_at", "id", "_id"})


class VersionConflict(Exception):
    """The entity changed between read and write (optimistic concurrency check failed)."""

    def __init__(self, item_id: str, expected: Optional[int], actual: Optional[int]):
        super().__init__(f"version conflict on {item_id}: expected {expected}, found {actual}")
        self.item_id = item_id
        self.expected = expected
        self.actual = actual


class EntityStore(Protocol):
    """
    Owner-scoped CRUD over one entity kind (tasks or goals).

    Entities are plain dicts carrying at least item_id, user_id and version.
    Not-found and owner mismatch both come back as None.
    """

    kind: str

    def create(self, owner_id: str, payload: Dict[str, Any]) -> Entity: ...

    def find(self, owner_id: str, item_id: str) -> Optional[Entity]: ...

    def list(self, owner_id: str, **filters: Any) -> List[Entity]: ...

    def update(self, owner_id: str, item_id: str, changes: Dict[str, Any],
               expected_version: Optional[int] = None) -> Optional[Entity]: ...

    def delete(self, owner_id: str, item_id: str,
               expected_version: Optional[int] = None) -> Optional[Entity]: ...

    def delete_all(self, owner_id: str) -> int: ...
