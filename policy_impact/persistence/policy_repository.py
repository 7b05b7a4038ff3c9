"""
Policy Repository — read access to the policies that dependencies hang off.
Policy authoring lives elsewhere; the engine only looks policies up by id.
Uses an in-memory dict in mock mode, the policies collection otherwise.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from policy_impact.models.schemas import Policy
from policy_impact.persistence.mongo_client import MongoClient

logger = logging.getLogger(__name__)


class PolicyRepository:
    """Look up policies by id; `save` exists for seeding and tests."""

    def __init__(self, mongo: Optional[MongoClient] = None):
        self._mongo = mongo
        self._memory_store: dict[str, Policy] = {}

    def _collection(self) -> Any:
        if self._mongo is None:
            return None
        return self._mongo.get_collection(self._mongo.settings.policies_collection)

    def find_policy_by_id(self, policy_id: str) -> Optional[Policy]:
        """Return the policy or None if it does not exist."""
        collection = self._collection()
        if collection is None:
            policy = self._memory_store.get(policy_id)
            return policy.model_copy(deep=True) if policy else None

        doc = collection.find_one({"_id": policy_id})
        if doc is None:
            return None
        doc["id"] = doc.pop("_id")
        return Policy(**doc)

    def save(self, policy: Policy) -> Policy:
        collection = self._collection()
        if collection is None:
            self._memory_store[policy.id] = policy.model_copy(deep=True)
        else:
            doc = policy.model_dump(exclude={"id"})
            collection.replace_one({"_id": policy.id}, doc, upsert=True)
        logger.debug(f"Saved policy {policy.id} ({policy.title})")
        return policy
