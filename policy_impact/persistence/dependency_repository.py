"""
Dependency Repository — persistence for declared policy → entity edges.
Uses an in-memory dict in mock mode, the dependencies collection otherwise.

Writes are independent single-record operations; there is no transaction
spanning several records.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from policy_impact.exceptions import ConflictError
from policy_impact.models.enums import DependentType
from policy_impact.models.schemas import DependencyRecord
from policy_impact.persistence.mongo_client import MongoClient

logger = logging.getLogger(__name__)

ACTIVE_EDGE_INDEX = "uniq_active_edge"


def _to_doc(record: DependencyRecord) -> dict[str, Any]:
    doc = record.model_dump()
    doc["_id"] = doc.pop("id")
    doc["dependent_type"] = record.dependent_type.value
    doc["strength"] = record.strength.value
    return doc


def _from_doc(doc: dict[str, Any]) -> DependencyRecord:
    data = dict(doc)
    data["id"] = data.pop("_id")
    return DependencyRecord(**data)


class DependencyRepository:
    """find / find_by_id / save / remove over dependency records."""

    def __init__(self, mongo: Optional[MongoClient] = None):
        self._mongo = mongo
        self._memory_store: dict[str, DependencyRecord] = {}

    def _collection(self) -> Any:
        if self._mongo is None:
            return None
        return self._mongo.get_collection(self._mongo.settings.dependencies_collection)

    def ensure_indexes(self) -> None:
        """Create the lookup index and the partial unique index on active edges."""
        collection = self._collection()
        if collection is None:
            return
        collection.create_index([("policy_id", ASCENDING), ("is_active", ASCENDING)])
        collection.create_index(
            [("policy_id", ASCENDING), ("dependent_type", ASCENDING), ("dependent_id", ASCENDING)],
            name=ACTIVE_EDGE_INDEX,
            unique=True,
            partialFilterExpression={"is_active": True},
        )
        logger.info("Dependency indexes ensured")

    def find(
        self,
        policy_id: Optional[str] = None,
        dependent_type: Optional[DependentType] = None,
        dependent_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[DependencyRecord]:
        """Return records matching every given filter (None = any), unordered."""
        query: dict[str, Any] = {}
        if policy_id is not None:
            query["policy_id"] = policy_id
        if dependent_type is not None:
            query["dependent_type"] = DependentType(dependent_type).value
        if dependent_id is not None:
            query["dependent_id"] = dependent_id
        if is_active is not None:
            query["is_active"] = is_active

        collection = self._collection()
        if collection is not None:
            return [_from_doc(doc) for doc in collection.find(query)]

        matches = []
        for record in self._memory_store.values():
            doc = _to_doc(record)
            if all(doc.get(key) == value for key, value in query.items()):
                matches.append(record.model_copy(deep=True))
        return matches

    def find_by_id(self, dependency_id: str) -> Optional[DependencyRecord]:
        collection = self._collection()
        if collection is not None:
            doc = collection.find_one({"_id": dependency_id})
            return _from_doc(doc) if doc else None

        record = self._memory_store.get(dependency_id)
        return record.model_copy(deep=True) if record else None

    def save(self, record: DependencyRecord) -> DependencyRecord:
        """Insert or replace a record and return it."""
        collection = self._collection()
        if collection is not None:
            try:
                collection.replace_one({"_id": record.id}, _to_doc(record), upsert=True)
            except DuplicateKeyError as e:
                raise ConflictError(
                    "Dependency already exists for this policy and dependent entity",
                    details={"policy_id": record.policy_id, "dependent_id": record.dependent_id},
                ) from e
        else:
            self._memory_store[record.id] = record.model_copy(deep=True)

        logger.debug(f"Saved dependency {record.id} (active={record.is_active})")
        return record

    def remove(self, record: DependencyRecord) -> None:
        """Physically delete a record."""
        collection = self._collection()
        if collection is not None:
            collection.delete_one({"_id": record.id})
        else:
            self._memory_store.pop(record.id, None)
        logger.debug(f"Removed dependency {record.id}")
