# store/memory_store.py
from __future__ import annotations

import copy
import logging
import threading
import uuid
from typing import Any, Dict, List, Optional

from shared import time
from store.entity_store import PROTECTED_FIELDS, Entity, VersionConflict

logger = logging.getLogger(__name__)


class InMemoryEntityStore:
    """
    Process-local EntityStore (STORE_BACKEND=memory, tests, demos).
    Same contract as the Firestore stores, including version checks.
    """

    def __init__(self, kind: str):
        self.kind = kind
        self._items: Dict[str, Entity] = {}
        self._lock = threading.RLock()

    def _owned(self, owner_id: str, item_id: str) -> Optional[Entity]:
        doc = self._items.get(item_id)
        if doc is None or doc.get("user_id") != owner_id:
            return None
        return doc

    @staticmethod
    def _check_version(doc: Entity, expected_version: Optional[int]) -> None:
        if expected_version is not None and doc.get("version") != expected_version:
            raise VersionConflict(doc["item_id"], expected_version, doc.get("version"))

    # ------------------------- mutations -------------------------------------

    def create(self, owner_id: str, payload: Dict[str, Any]) -> Entity:
        if not owner_id:
            raise ValueError("create requires owner_id")
        now = time.utcnow()
        with self._lock:
            item_id = uuid.uuid4().hex
            doc = {k: v for k, v in payload.items() if k not in PROTECTED_FIELDS}
            doc.update(item_id=item_id, user_id=owner_id, version=1, created_at=now, updated_at=now)
            self._items[item_id] = doc
            logger.info("[%s] Created %s for user %s", self.kind.upper(), item_id, owner_id)
            return copy.deepcopy(doc)

    def update(self, owner_id: str, item_id: str, changes: Dict[str, Any],
               expected_version: Optional[int] = None) -> Optional[Entity]:
        with self._lock:
            doc = self._owned(owner_id, item_id)
            if doc is None:
                return None
            self._check_version(doc, expected_version)
            doc.update({k: v for k, v in changes.items() if k not in PROTECTED_FIELDS})
            doc["version"] = doc.get("version", 0) + 1
            doc["updated_at"] = time.utcnow()
            return copy.deepcopy(doc)

    def delete(self, owner_id: str, item_id: str,
               expected_version: Optional[int] = None) -> Optional[Entity]:
        with self._lock:
            doc = self._owned(owner_id, item_id)
            if doc is None:
                return None
            self._check_version(doc, expected_version)
            del self._items[item_id]
            return doc

    def delete_all(self, owner_id: str) -> int:
        with self._lock:
            ids = [k for k, d in self._items.items() if d.get("user_id") == owner_id]
            for k in ids:
                del self._items[k]
            return len(ids)

    # --------------------------- queries -------------------------------------

    def find(self, owner_id: str, item_id: str) -> Optional[Entity]:
        with self._lock:
            doc = self._owned(owner_id, item_id)
            return copy.deepcopy(doc) if doc is not None else None

    def list(self, owner_id: str, **filters: Any) -> List[Entity]:
        with self._lock:
            out = [
                copy.deepcopy(d) for d in self._items.values()
                if d.get("user_id") == owner_id
                and all(d.get(k) == v for k, v in filters.items() if v is not None)
            ]
        out.sort(key=lambda d: d["created_at"])
        return out
