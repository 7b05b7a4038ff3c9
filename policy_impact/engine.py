"""
Engine factory — wires repositories, rules config and services together.

    from policy_impact.engine import create_engine

    engine = create_engine()
    engine.dependencies.create_dependency(policy_id, "workflow", workflow_id, "strong")
    report = engine.impact.generate_impact_report(policy_id, "json")
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from policy_impact.config import Settings, get_settings
from policy_impact.persistence.dependency_repository import DependencyRepository
from policy_impact.persistence.mongo_client import MongoClient
from policy_impact.persistence.policy_repository import PolicyRepository
from policy_impact.rules.rules_config import ImpactRulesConfig, RulesConfigStore
from policy_impact.services.audit_service import AuditService
from policy_impact.services.dependency_service import DependencyService
from policy_impact.services.impact_analysis_service import ImpactAnalysisService
from policy_impact.utils.logger import setup_logging

logger = logging.getLogger(__name__)


class PolicyImpactEngine:
    """Facade holding the wired services and their shared connection."""

    def __init__(
        self,
        mongo: Optional[MongoClient] = None,
        config: Optional[ImpactRulesConfig] = None,
    ):
        self.mongo = mongo
        self.rules_store = RulesConfigStore(mongo)
        self.config = config or self.rules_store.get_impact_config()

        self.policy_repo = PolicyRepository(mongo)
        self.dependency_repo = DependencyRepository(mongo)
        self.audit = AuditService(mongo)

        self.dependencies = DependencyService(
            self.policy_repo,
            self.dependency_repo,
            audit=self.audit,
            config=self.config,
        )
        self.impact = ImpactAnalysisService(self.dependencies, config=self.config)

    def update_rules_config(self, config_dict: dict[str, Any]) -> ImpactRulesConfig:
        """Admin: persist a new impact config and apply it to the running services."""
        config = self.rules_store.update_config(config_dict)

        self.config = config
        self.dependencies.config = config
        self.impact.config = config
        self.impact.rules.config = config

        logger.info("Impact rules config applied to running services")
        return config

    def close(self) -> None:
        if self.mongo is not None:
            self.mongo.close()


def create_engine(
    settings: Optional[Settings] = None,
    config: Optional[ImpactRulesConfig] = None,
) -> PolicyImpactEngine:
    """Engine factory — configure logging, connect (unless mock mode), wire services."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    mongo = MongoClient(settings)
    mongo.connect()

    engine = PolicyImpactEngine(mongo, config=config)
    engine.dependency_repo.ensure_indexes()

    mode = "MOCK" if settings.mock_mode else "MongoDB"
    logger.info(f"Started {settings.app_name} ({mode} persistence)")
    return engine
