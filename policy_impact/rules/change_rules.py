"""
Change Rules — deterministic rule lists applied when a policy change is
assessed: per-dependency recommended actions, mitigation recommendations,
the pre-publish checklist and suggested notifications.
"""

from __future__ import annotations

import logging

from policy_impact.models.enums import (
    DependencyStrength,
    ImpactRiskLevel,
    NotificationPriority,
)
from policy_impact.models.schemas import (
    AffectedModulesSummary,
    AffectedWorkflowsSummary,
    ChangeScope,
    ChecklistItem,
    DependencyRecord,
    RiskAssessment,
    SuggestedNotification,
)
from policy_impact.rules.rules_config import ImpactRulesConfig

logger = logging.getLogger(__name__)

ELEVATED_LEVELS = (ImpactRiskLevel.CRITICAL, ImpactRiskLevel.HIGH)


class ChangeRules:
    """Rule lists driven by risk level, strength and threshold crossings."""

    def __init__(self, config: ImpactRulesConfig | None = None):
        self.config = config or ImpactRulesConfig()

    # ── Per-dependency ───────────────────────────────────

    def recommended_actions(self, dependency: DependencyRecord) -> list[str]:
        actions: list[str] = []

        if dependency.strength == DependencyStrength.STRONG:
            actions.append("Test thoroughly before publishing")
            actions.append("Notify all affected users")
            actions.append("Create rollback plan")

        if dependency.strength == DependencyStrength.MEDIUM:
            actions.append("Review dependent entity")
            actions.append("Notify team leads")

        if dependency.automatic_update:
            actions.append("Will auto-update on policy change")
        else:
            actions.append("Manual update required")

        return actions

    # ── Risk mitigation ──────────────────────────────────

    def mitigation_recommendations(
        self,
        risk_level: ImpactRiskLevel,
        strong_dependencies: int,
        critical_workflows: int,
        scope: ChangeScope,
    ) -> list[str]:
        recommendations: list[str] = []

        if risk_level in ELEVATED_LEVELS:
            recommendations.append("Obtain approval from senior management before publishing")
            recommendations.append("Create comprehensive rollback plan")
            recommendations.append("Schedule change during low-usage period")
            recommendations.append("Notify all affected users 48 hours in advance")

        if strong_dependencies > 0:
            recommendations.append(f"Review {strong_dependencies} critical dependencies carefully")
            recommendations.append("Test all strongly-coupled workflows")

        if critical_workflows > 0:
            recommendations.append(f"Test {critical_workflows} critical workflows before publishing")

        if not scope.is_localized:
            recommendations.append("System-wide impact detected - consider phased rollout")
            recommendations.append("Monitor system health closely after deployment")

        if not recommendations:
            recommendations.append("Low-risk change - standard review process sufficient")

        return recommendations

    # ── Pre-publish checklist ────────────────────────────

    def pre_publish_checklist(
        self,
        risk: RiskAssessment,
        workflows: AffectedWorkflowsSummary,
        modules: AffectedModulesSummary,
    ) -> list[ChecklistItem]:
        checklist = [
            ChecklistItem(item="Review all policy changes", required=True),
            ChecklistItem(item="Verify regulatory compliance", required=True),
        ]

        if risk.requires_approval:
            checklist.append(ChecklistItem(item="Obtain management approval", required=True))

        if workflows.critical_workflows:
            checklist.append(ChecklistItem(
                item=f"Test {len(workflows.critical_workflows)} critical workflows",
                required=True,
            ))

        if modules.critical_modules:
            checklist.append(ChecklistItem(
                item=f"Update {len(modules.critical_modules)} dependent modules",
                required=True,
            ))

        if risk.overall_risk_score > self.config.rollback_plan_score_threshold:
            checklist.append(ChecklistItem(item="Create rollback plan", required=True))
            checklist.append(ChecklistItem(item="Schedule change notification", required=True))

        checklist.append(ChecklistItem(item="Review with stakeholders", required=False))
        checklist.append(ChecklistItem(item="Update training materials", required=False))

        return checklist

    # ── Notifications ────────────────────────────────────

    def suggest_notifications(
        self,
        workflows: AffectedWorkflowsSummary,
        modules: AffectedModulesSummary,
        risk: RiskAssessment,
    ) -> list[SuggestedNotification]:
        notifications: list[SuggestedNotification] = []

        if risk.risk_level == ImpactRiskLevel.CRITICAL:
            notifications.append(SuggestedNotification(
                recipient="All Staff",
                message="Critical policy update affecting core workflows - review required",
                priority=NotificationPriority.HIGH,
            ))

        if workflows.critical_workflows:
            notifications.append(SuggestedNotification(
                recipient="Workflow Owners",
                message=f"{len(workflows.critical_workflows)} workflows require attention",
                priority=NotificationPriority.HIGH,
            ))

        if modules.critical_modules:
            notifications.append(SuggestedNotification(
                recipient="Module Administrators",
                message=f"{len(modules.critical_modules)} modules need updates",
                priority=NotificationPriority.MEDIUM,
            ))

        if risk.overall_risk_score > self.config.compliance_review_score_threshold:
            notifications.append(SuggestedNotification(
                recipient="Compliance Team",
                message="Policy change for review and approval",
                priority=NotificationPriority.MEDIUM,
            ))

        return notifications
