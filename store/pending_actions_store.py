# store/pending_actions_store.py
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from shared import time
from shared.config import PENDING_ACTIONS_TTL_SECONDS

logger = logging.getLogger(__name__)


@dataclass
class PendingEntry:
    actions: List[Dict[str, Any]]
    conversation_id: Optional[str]
    timestamp: datetime
    expires_at: datetime
    # serialises executions of this batch (double "yes" must not run it twice)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def expired(self, now: datetime) -> bool:
        return now > self.expires_at


class PendingActionsStore:
    """
    Per-owner holding area for proposals awaiting a chat confirmation.
    In-memory, one entry per owner; entries expire after `ttl_seconds` and are purged on access.
    """

    def __init__(self, ttl_seconds: int = PENDING_ACTIONS_TTL_SECONDS):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._entries: Dict[str, PendingEntry] = {}
        self._lock = threading.RLock()

    def set(self, owner_id: str, actions: List[Dict[str, Any]], conversation_id: Optional[str] = None) -> bool:
        if not owner_id or not isinstance(actions, list) or not actions:
            logger.info("[PENDING] Invalid set request for %r (%s actions)",
                        owner_id, len(actions) if isinstance(actions, list) else None)
            return False

        now = time.utcnow()
        with self._lock:
            self._entries[owner_id] = PendingEntry(
                actions=list(actions), conversation_id=conversation_id, timestamp=now, expires_at=now + self.ttl,
            )
        logger.info("[PENDING] Stored %d pending actions for user %s", len(actions), owner_id)
        return True

    def get(self, owner_id: str) -> Optional[PendingEntry]:
        with self._lock:
            entry = self._entries.get(owner_id)
            if entry is None:
                return None
            if entry.expired(time.utcnow()):
                logger.info("[PENDING] Entry expired for user %s", owner_id)
                del self._entries[owner_id]
                return None
            return entry

    def get_actions(self, owner_id: str) -> List[Dict[str, Any]]:
        entry = self.get(owner_id)
        return list(entry.actions) if entry else []

    def replace_actions(self, owner_id: str, actions: List[Dict[str, Any]]) -> bool:
        """Swap the stored list (e.g. after recording statuses), keeping TTL and lock."""
        with self._lock:
            entry = self.get(owner_id)
            if entry is None:
                return False
            entry.actions = list(actions)
            return True

    def clear(self, owner_id: str) -> bool:
        with self._lock:
            had = self._entries.pop(owner_id, None) is not None
        if had:
            logger.info("[PENDING] Cleared pending actions for user %s", owner_id)
        return had

    def has_pending(self, owner_id: str) -> bool:
        return self.get(owner_id) is not None

    def count(self, owner_id: str) -> int:
        entry = self.get(owner_id)
        return len(entry.actions) if entry else 0

    def touch(self, owner_id: str) -> bool:
        """Extend the TTL while the user is actively interacting."""
        with self._lock:
            entry = self.get(owner_id)
            if entry is None:
                return False
            now = time.utcnow()
            entry.timestamp = now
            entry.expires_at = now + self.ttl
            return True

    def metadata(self, owner_id: str) -> Optional[Dict[str, Any]]:
        entry = self.get(owner_id)
        if entry is None:
            return None
        return {
            "count": len(entry.actions),
            "conversationId": entry.conversation_id,
            "timestamp": entry.timestamp,
            "expiresAt": entry.expires_at,
            "timeRemaining": (entry.expires_at - time.utcnow()).total_seconds(),
            "actionTypes": [a.get("type") for a in entry.actions],
        }

    def cleanup(self) -> int:
        now = time.utcnow()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.expired(now)]
            for k in expired:
                del self._entries[k]
        if expired:
            logger.info("[PENDING] Cleaned up %d expired entries", len(expired))
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {"totalEntries": len(self._entries), "ttlMinutes": self.ttl.total_seconds() / 60}


# global instance
pending_actions = PendingActionsStore()
