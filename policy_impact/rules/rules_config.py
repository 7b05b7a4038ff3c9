"""
Rules Config Store — loads/saves the impact scoring constants from MongoDB.

Organisation-level setting: constants are configured once by an admin and
cached. Falls back to the defaults below when MongoDB is empty or the
engine runs in mock mode.

The user-impact multipliers are placeholders with no usage telemetry
behind them; they are approximations, not measured values.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel
from pymongo.errors import PyMongoError

from policy_impact.config import get_settings

if TYPE_CHECKING:
    from policy_impact.persistence.mongo_client import MongoClient

logger = logging.getLogger(__name__)

IMPACT_RULE_TYPE = "impact"


# ── Config model ─────────────────────────────────────────

class ImpactRulesConfig(BaseModel):
    """Every constant used by dependency and impact scoring."""

    # Local per-policy score: min(max_score, strong*10 + medium*5 + weak*2)
    strong_weight: int = 10
    medium_weight: int = 5
    weak_weight: int = 2
    max_score: int = 100

    # Overall change-risk score, each term capped before summing
    strong_dependency_points: float = 10
    strong_dependency_cap: float = 30
    dependency_count_points: float = 2
    dependency_count_cap: float = 20
    critical_workflow_points: float = 5
    critical_workflow_cap: float = 25
    impact_radius_points: float = 1.5
    impact_radius_cap: float = 15
    user_impact_divisor: float = 10
    user_impact_cap: float = 10

    # Risk level thresholds (boundary belongs to the higher level)
    critical_threshold: float = 80
    high_threshold: float = 60
    medium_threshold: float = 30

    # User impact approximations
    users_per_workflow: int = 20
    users_per_module: int = 10

    # Change scope
    max_impact_radius: int = 10
    radius_depth_weight: float = 2
    radius_affected_divisor: float = 5
    localized_max_radius: int = 3     # exclusive
    localized_max_affected: int = 5   # exclusive

    # Checklist / notification triggers (strictly greater than)
    rollback_plan_score_threshold: int = 50
    compliance_review_score_threshold: int = 30

    # Graph traversal
    default_max_depth: int = 5


# ── Store class ──────────────────────────────────────────

class RulesConfigStore:
    """
    Loads the impact config from MongoDB. Falls back to defaults on first run.
    Cached after first load for the lifetime of the process.
    """

    def __init__(self, mongo: Optional[MongoClient] = None):
        self._mongo = mongo
        self.settings = mongo.settings if mongo is not None else get_settings()
        self._cache: dict[str, Any] = {}

    def _get_db(self):
        if self._mongo is None:
            return None
        return self._mongo.get_database()

    def get_impact_config(self) -> ImpactRulesConfig:
        """Load from MongoDB or return defaults."""
        if IMPACT_RULE_TYPE in self._cache:
            return self._cache[IMPACT_RULE_TYPE]

        config = ImpactRulesConfig()
        db = self._get_db()
        if db is not None:
            try:
                doc = db[self.settings.rules_config_collection].find_one({"rule_type": IMPACT_RULE_TYPE})
                if doc and "config" in doc:
                    config = ImpactRulesConfig(**doc["config"])
            except PyMongoError as e:
                logger.warning(f"Failed loading {IMPACT_RULE_TYPE} rules from MongoDB, using defaults: {e}")

        self._cache[IMPACT_RULE_TYPE] = config
        return config

    def update_config(self, config_dict: dict[str, Any]) -> ImpactRulesConfig:
        """Admin: validate, save and return an updated impact config."""
        config = ImpactRulesConfig(**config_dict)
        db = self._get_db()
        if db is not None:
            db[self.settings.rules_config_collection].update_one(
                {"rule_type": IMPACT_RULE_TYPE},
                {"$set": {"rule_type": IMPACT_RULE_TYPE, "config": config.model_dump()}},
                upsert=True,
            )
            logger.info(f"Updated {IMPACT_RULE_TYPE} rules config in MongoDB")
        else:
            logger.info(f"[MOCK] Updated {IMPACT_RULE_TYPE} rules config in memory")

        self._cache[IMPACT_RULE_TYPE] = config
        return config
