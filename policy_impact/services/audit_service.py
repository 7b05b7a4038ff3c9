"""
Audit Service — records every dependency mutation (create, update,
soft/hard delete) so edge history survives hard deletes.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from policy_impact.persistence.mongo_client import MongoClient

logger = logging.getLogger(__name__)


class AuditService:
    """
    Records dependency mutations.
    In mock mode (no Mongo handle), uses an in-memory list.
    """

    def __init__(self, mongo: Optional[MongoClient] = None):
        self._mongo = mongo
        self._entries: list[dict[str, Any]] = []

    def _collection(self) -> Any:
        if self._mongo is None:
            return None
        return self._mongo.get_collection(self._mongo.settings.audit_collection)

    def record(
        self,
        policy_id: str,
        dependency_id: str,
        action: str,
        actor: Optional[str] = None,
        details: str = "",
    ) -> dict[str, Any]:
        """Record an audit entry and return it."""
        entry = {
            "policy_id": policy_id,
            "dependency_id": dependency_id,
            "action": action,
            "actor": actor,
            "details": details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        collection = self._collection()
        if collection is None:
            self._entries.append(entry)
        else:
            collection.insert_one(dict(entry))
        logger.debug(f"[AUDIT] {action} {dependency_id} on {policy_id}: {details}")

        return entry

    def get_trail(self, policy_id: str) -> list[dict[str, Any]]:
        """Return all audit entries for a policy, oldest first."""
        collection = self._collection()
        if collection is None:
            return [e for e in self._entries if e["policy_id"] == policy_id]
        return list(collection.find({"policy_id": policy_id}, {"_id": 0}).sort("timestamp", 1))
