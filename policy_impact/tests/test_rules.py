"""
Tests: scoring helpers, change rules and the rules config store.

Run with:
    pytest policy_impact/tests/test_rules.py -v
"""

import pytest

from policy_impact.config import Settings
from policy_impact.models.enums import DependencyStrength, DependentType, ImpactRiskLevel
from policy_impact.models.schemas import (
    AffectedModulesSummary,
    AffectedWorkflowsSummary,
    ChangeScope,
    DependencyRecord,
    RiskAssessment,
)
from policy_impact.persistence.mongo_client import MongoClient
from policy_impact.rules.change_rules import ChangeRules
from policy_impact.rules.rules_config import ImpactRulesConfig, RulesConfigStore
from policy_impact.rules.scoring import (
    clamp_score,
    default_strength_for,
    impact_radius,
    is_localized,
    local_risk_score,
    overall_risk_score,
    raw_risk_score,
    risk_level_for_score,
    round_half_up,
    strength_to_risk,
)

CONFIG = ImpactRulesConfig()


class TestScoring:
    @pytest.mark.parametrize("score,expected", [
        (0, ImpactRiskLevel.LOW),
        (29, ImpactRiskLevel.LOW),
        (29.9, ImpactRiskLevel.LOW),
        (30, ImpactRiskLevel.MEDIUM),
        (59, ImpactRiskLevel.MEDIUM),
        (60, ImpactRiskLevel.HIGH),
        (79, ImpactRiskLevel.HIGH),
        (80, ImpactRiskLevel.CRITICAL),
        (100, ImpactRiskLevel.CRITICAL),
    ])
    def test_risk_level_boundaries(self, score, expected):
        assert risk_level_for_score(score, CONFIG) == expected

    def test_round_half_up(self):
        assert round_half_up(27.5) == 28
        assert round_half_up(28.5) == 29  # round() would give 28
        assert round_half_up(2.4) == 2
        assert round_half_up(0) == 0

    def test_strength_to_risk(self):
        assert strength_to_risk(DependencyStrength.STRONG) == ImpactRiskLevel.CRITICAL
        assert strength_to_risk(DependencyStrength.MEDIUM) == ImpactRiskLevel.HIGH
        assert strength_to_risk(DependencyStrength.WEAK) == ImpactRiskLevel.MEDIUM
        assert strength_to_risk(None) == ImpactRiskLevel.LOW

    def test_default_strength(self):
        assert default_strength_for(DependentType.WORKFLOW) == DependencyStrength.STRONG
        assert default_strength_for(DependentType.DOCUMENT) == DependencyStrength.WEAK

    def test_local_score(self):
        counts = {DependencyStrength.STRONG: 1, DependencyStrength.MEDIUM: 1, DependencyStrength.WEAK: 1}
        assert local_risk_score(counts, CONFIG) == 17
        assert local_risk_score({DependencyStrength.STRONG: 11}, CONFIG) == 100
        assert local_risk_score({}, CONFIG) == 0

    def test_impact_radius(self):
        assert impact_radius(0, 0, CONFIG) == 0
        assert impact_radius(1, 3, CONFIG) == 3   # 2 + 0.6
        assert impact_radius(1, 2, CONFIG) == 2   # 2 + 0.4
        assert impact_radius(3, 11, CONFIG) == 8  # 6 + 2.2
        assert impact_radius(5, 200, CONFIG) == 10

    def test_is_localized_is_strict(self):
        assert is_localized(2, 4, CONFIG) is True
        assert is_localized(3, 1, CONFIG) is False
        assert is_localized(0, 5, CONFIG) is False

    def test_overall_score_terms_are_capped(self):
        score = overall_risk_score(
            strong_dependencies=50,
            dependency_count=50,
            critical_workflows=50,
            radius=10,
            estimated_user_impact=10_000,
            config=CONFIG,
        )
        assert score == 100

    def test_raw_score_keeps_half_points(self):
        raw = raw_risk_score(1, 4, 1, 3, 20, CONFIG)
        assert raw == 29.5
        assert clamp_score(raw, CONFIG) == 30
        assert overall_risk_score(1, 4, 1, 3, 20, CONFIG) == 30
        assert risk_level_for_score(raw, CONFIG) == ImpactRiskLevel.LOW

    def test_overall_score_zero(self):
        assert overall_risk_score(0, 0, 0, 0, 0, CONFIG) == 0

    def test_overall_score_clamped_for_custom_weights(self):
        config = ImpactRulesConfig(strong_dependency_cap=90, dependency_count_cap=90)
        assert overall_risk_score(9, 45, 0, 0, 0, config) == 100

    def test_custom_thresholds(self):
        config = ImpactRulesConfig(medium_threshold=10)
        assert risk_level_for_score(10, config) == ImpactRiskLevel.MEDIUM


def _record(strength: str, metadata=None) -> DependencyRecord:
    return DependencyRecord(
        policy_id="P",
        dependent_type="workflow",
        dependent_id="W1",
        strength=strength,
        metadata=metadata or {},
    )


class TestChangeRules:
    def test_recommended_actions_by_strength(self):
        rules = ChangeRules()
        assert rules.recommended_actions(_record("weak")) == ["Manual update required"]
        assert rules.recommended_actions(_record("strong", {"automaticUpdate": True}))[-1] == (
            "Will auto-update on policy change"
        )

    def test_low_risk_fallback(self):
        rules = ChangeRules()
        recs = rules.mitigation_recommendations(
            ImpactRiskLevel.LOW, strong_dependencies=0, critical_workflows=0, scope=ChangeScope()
        )
        assert recs == ["Low-risk change - standard review process sufficient"]

    def test_elevated_risk_adds_approval_steps(self):
        rules = ChangeRules()
        recs = rules.mitigation_recommendations(
            ImpactRiskLevel.HIGH, strong_dependencies=0, critical_workflows=0, scope=ChangeScope()
        )
        assert recs == [
            "Obtain approval from senior management before publishing",
            "Create comprehensive rollback plan",
            "Schedule change during low-usage period",
            "Notify all affected users 48 hours in advance",
        ]

    def test_checklist_threshold_is_strictly_greater(self):
        rules = ChangeRules()
        at_threshold = RiskAssessment(policy_id="P", overall_risk_score=50)
        above = RiskAssessment(policy_id="P", overall_risk_score=51)

        items_at = [c.item for c in rules.pre_publish_checklist(
            at_threshold, AffectedWorkflowsSummary(), AffectedModulesSummary()
        )]
        items_above = [c.item for c in rules.pre_publish_checklist(
            above, AffectedWorkflowsSummary(), AffectedModulesSummary()
        )]

        assert "Create rollback plan" not in items_at
        assert "Create rollback plan" in items_above
        assert "Schedule change notification" in items_above

    def test_compliance_notification_threshold(self):
        rules = ChangeRules()
        empty_wf, empty_mod = AffectedWorkflowsSummary(), AffectedModulesSummary()

        assert rules.suggest_notifications(
            empty_wf, empty_mod, RiskAssessment(policy_id="P", overall_risk_score=30)
        ) == []
        notes = rules.suggest_notifications(
            empty_wf, empty_mod, RiskAssessment(policy_id="P", overall_risk_score=31)
        )
        assert [n.recipient for n in notes] == ["Compliance Team"]

    def test_config_drives_thresholds(self):
        rules = ChangeRules(ImpactRulesConfig(compliance_review_score_threshold=5))
        notes = rules.suggest_notifications(
            AffectedWorkflowsSummary(),
            AffectedModulesSummary(),
            RiskAssessment(policy_id="P", overall_risk_score=6),
        )
        assert notes[0].recipient == "Compliance Team"


class TestRulesConfigStore:
    def test_defaults_without_mongo(self):
        store = RulesConfigStore()
        config = store.get_impact_config()
        assert config == ImpactRulesConfig()
        assert store.get_impact_config() is config  # cached

    def test_defaults_in_mock_mode(self):
        mongo = MongoClient(Settings(mock_mode=True))
        mongo.connect()
        assert RulesConfigStore(mongo).get_impact_config().users_per_workflow == 20

    def test_update_in_mock_mode(self):
        store = RulesConfigStore()
        updated = store.update_config({"users_per_workflow": 35, "high_threshold": 65})

        assert updated.users_per_workflow == 35
        assert store.get_impact_config().high_threshold == 65
        assert store.get_impact_config().medium_threshold == 30
