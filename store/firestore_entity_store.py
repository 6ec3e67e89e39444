# store/firestore_entity_store.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import FailedPrecondition

from db.base import get_db
from shared import time
from store.entity_store import PROTECTED_FIELDS, Entity, VersionConflict

logger = logging.getLogger(__name__)

# Firestore caps a write batch at 500 operations
_BATCH_LIMIT = 500


class FirestoreEntityStore:
    """
    Firestore-backed EntityStore. One collection per entity kind, ownership in `user_id`.

    Optimistic concurrency: every document carries an integer `version`. Writes
    compare it with the caller's expected version and are sent with a
    last_update_time precondition, so a concurrent writer between our read and
    our write makes Firestore reject the second write.
    """

    kind = "entity"

    def __init__(self, collection_name: str, client=None):
        self.client = client or get_db()
        self.collection = self.client.collection(collection_name)
        self._tag = f"[{self.kind.upper()}S]"

    # ---------------------- internal utils -----------------------------------

    def _owned_snapshot(self, owner_id: str, item_id: str):
        snap = self.collection.document(item_id).get()
        if not snap.exists:
            logger.info("%s not found %s", self._tag, item_id)
            return None
        if (snap.to_dict() or {}).get("user_id") != owner_id:
            logger.warning("%s user mismatch for %s", self._tag, item_id)
            return None
        return snap

    @staticmethod
    def _check_version(item_id: str, data: Dict[str, Any], expected_version: Optional[int]) -> None:
        if expected_version is not None and data.get("version") != expected_version:
            raise VersionConflict(item_id, expected_version, data.get("version"))

    def _precondition(self, snap):
        return self.client.write_option(last_update_time=snap.update_time)

    # ------------------------- mutations -------------------------------------

    def create(self, owner_id: str, payload: Dict[str, Any]) -> Entity:
        if not owner_id:
            raise ValueError("create requires owner_id")

        now = time.utcnow()
        data = {k: v for k, v in payload.items() if k not in PROTECTED_FIELDS and v is not None}

        doc_ref = self.collection.document()
        data.update(item_id=doc_ref.id, user_id=owner_id, version=1, created_at=now, updated_at=now)
        doc_ref.set(data)
        logger.info("%s Created %s for user %s", self._tag, doc_ref.id, owner_id)
        return data

    def update(self, owner_id: str, item_id: str, changes: Dict[str, Any],
               expected_version: Optional[int] = None) -> Optional[Entity]:
        snap = self._owned_snapshot(owner_id, item_id)
        if snap is None:
            return None
        current = snap.to_dict() or {}
        self._check_version(item_id, current, expected_version)

        patch = {k: v for k, v in changes.items() if k not in PROTECTED_FIELDS}
        patch["version"] = int(current.get("version") or 0) + 1
        patch["updated_at"] = time.utcnow()
        try:
            snap.reference.update(patch, option=self._precondition(snap))
        except FailedPrecondition:
            raise VersionConflict(item_id, expected_version, None)
        return {**current, **patch}

    def delete(self, owner_id: str, item_id: str,
               expected_version: Optional[int] = None) -> Optional[Entity]:
        snap = self._owned_snapshot(owner_id, item_id)
        if snap is None:
            return None
        current = snap.to_dict() or {}
        self._check_version(item_id, current, expected_version)
        try:
            snap.reference.delete(option=self._precondition(snap))
        except FailedPrecondition:
            raise VersionConflict(item_id, expected_version, None)
        logger.info("%s Deleted %s for user %s", self._tag, item_id, owner_id)
        return current

    def delete_all(self, owner_id: str) -> int:
        deleted = 0
        batch = self.client.batch()
        pending = 0
        for doc in self.collection.where("user_id", "==", owner_id).stream():
            batch.delete(doc.reference)
            pending += 1
            if pending == _BATCH_LIMIT:
                batch.commit()
                deleted += pending
                batch, pending = self.client.batch(), 0
        if pending:
            batch.commit()
            deleted += pending
        logger.info("%s Deleted %d for user %s", self._tag, deleted, owner_id)
        return deleted

    # --------------------------- queries -------------------------------------

    def find(self, owner_id: str, item_id: str) -> Optional[Entity]:
        snap = self._owned_snapshot(owner_id, item_id)
        if snap is None:
            return None
        return {"item_id": snap.id, **(snap.to_dict() or {})}

    def list(self, owner_id: str, **filters: Any) -> List[Entity]:
        """Any extra keyword is applied as an equality filter (field == value)."""
        q = self.collection.where("user_id", "==", owner_id)
        for k, v in filters.items():
            if v is not None:
                q = q.where(k, "==", v)
        return [{"item_id": d.id, **d.to_dict()} for d in q.stream()]
