"""
Impact Analysis Service — answers "if this policy changes, what breaks,
how badly, and what should happen before publishing?"

Consumes DependencyService outputs and produces the risk assessment,
affected workflow/module summaries, change scope, pre-publish checklist,
suggested notifications and the rendered report.

Read-only: no method here writes to the dependency store.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from policy_impact.exceptions import UnimplementedError
from policy_impact.models.enums import (
    POLICY_NODE_TYPE,
    DependentType,
    DependencyStrength,
    ImpactRiskLevel,
    ReportFormat,
)
from policy_impact.models.schemas import (
    AffectedEntity,
    AffectedModulesSummary,
    AffectedWorkflowsSummary,
    Analyst,
    ChangeScope,
    DependencyAnalysis,
    DependencyGraph,
    DependencyRecord,
    ImpactAnalysisReport,
    PolicySummary,
    RiskAssessment,
    RiskFactors,
    zero_counts,
)
from policy_impact.rules.change_rules import ELEVATED_LEVELS, ChangeRules
from policy_impact.rules.rules_config import ImpactRulesConfig
from policy_impact.rules.scoring import (
    clamp_score,
    impact_radius,
    is_localized,
    raw_risk_score,
    risk_level_for_score,
    strength_to_risk,
)
from policy_impact.services.dependency_service import DependencyService, node_label
from policy_impact.services.report_renderer import render_html_report
from policy_impact.utils.validation import coerce_enum

logger = logging.getLogger(__name__)


class ImpactAnalysisService:
    """Risk scoring and pre-publish reporting for policy changes."""

    def __init__(
        self,
        dependency_service: DependencyService,
        config: Optional[ImpactRulesConfig] = None,
    ):
        self.dependency_service = dependency_service
        self.config = config or dependency_service.config
        self.rules = ChangeRules(self.config)

    # ── Public API ───────────────────────────────────

    def analyze_impact(
        self,
        policy_id: str,
        analyzed_by: Analyst | dict[str, Any] | None = None,
    ) -> ImpactAnalysisReport:
        """
        Full report for one policy. One dependency graph and one flat
        dependency list are built per call; every section of the report is
        derived from those two.
        """
        logger.info(f"Analyzing impact for policy {policy_id}")

        policy = self.dependency_service.get_policy(policy_id)
        graph = self.dependency_service.build_dependency_graph(policy.id)
        analysis = self.dependency_service.analyze_dependencies(policy.id)

        change_scope = self._change_scope_from_graph(graph)
        risk_assessment = self._assess(analysis, change_scope)
        affected_workflows = self._workflow_summary(analysis.all_dependencies)
        affected_modules = self._module_summary(analysis.all_dependencies)

        report = ImpactAnalysisReport(
            policy=PolicySummary(
                id=policy.id,
                title=policy.title,
                category=policy.category,
                version=policy.version,
            ),
            analyzed_by=Analyst.model_validate(analyzed_by) if analyzed_by is not None else None,
            dependency_graph=graph,
            risk_assessment=risk_assessment,
            affected_workflows=affected_workflows,
            affected_modules=affected_modules,
            change_scope=change_scope,
            pre_publish_checklist=self.rules.pre_publish_checklist(
                risk_assessment, affected_workflows, affected_modules
            ),
            notifications_suggested=self.rules.suggest_notifications(
                affected_workflows, affected_modules, risk_assessment
            ),
        )

        logger.info(
            f"Impact analysis complete: {change_scope.total_affected} entities affected, "
            f"risk level {risk_assessment.risk_level.value}"
        )
        return report

    def assess_risk(self, policy_id: str) -> RiskAssessment:
        """Overall 0-100 score, level, mitigation list and approval flag."""
        logger.info(f"Assessing risk for policy {policy_id}")

        analysis = self.dependency_service.analyze_dependencies(policy_id)
        scope = self.calculate_change_scope(policy_id)
        return self._assess(analysis, scope)

    def get_affected_workflows(self, policy_id: str) -> AffectedWorkflowsSummary:
        logger.info(f"Getting affected workflows for policy {policy_id}")
        return self._workflow_summary(self.dependency_service.get_dependencies(policy_id))

    def get_affected_modules(self, policy_id: str) -> AffectedModulesSummary:
        logger.info(f"Getting affected modules for policy {policy_id}")
        return self._module_summary(self.dependency_service.get_dependencies(policy_id))

    def calculate_change_scope(self, policy_id: str) -> ChangeScope:
        """How far and how broadly a change to this policy spreads."""
        logger.info(f"Calculating change scope for policy {policy_id}")
        graph = self.dependency_service.build_dependency_graph(policy_id)
        return self._change_scope_from_graph(graph)

    def generate_impact_report(
        self,
        policy_id: str,
        format: ReportFormat | str = ReportFormat.JSON,
        analyzed_by: Analyst | dict[str, Any] | None = None,
    ) -> ImpactAnalysisReport | str:
        """
        json → the report model as-is; html → rendered page;
        pdf → UnimplementedError (checked before any analysis runs).
        """
        report_format = coerce_enum(ReportFormat, format, "format")
        if report_format == ReportFormat.PDF:
            raise UnimplementedError(
                "PDF impact reports are not implemented",
                details={"format": report_format.value},
            )

        logger.info(f"Generating {report_format.value} impact report for policy {policy_id}")
        report = self.analyze_impact(policy_id, analyzed_by)

        if report_format == ReportFormat.HTML:
            return render_html_report(report)
        return report

    # ── Internals ────────────────────────────────────

    def _assess(self, analysis: DependencyAnalysis, scope: ChangeScope) -> RiskAssessment:
        strong = analysis.by_strength[DependencyStrength.STRONG]
        critical_workflows = sum(
            1 for dep in analysis.all_dependencies
            if dep.dependent_type == DependentType.WORKFLOW and dep.strength == DependencyStrength.STRONG
        )
        # Approximation: fixed users per critical workflow until usage data exists
        estimated_user_impact = critical_workflows * self.config.users_per_workflow

        raw_score = raw_risk_score(
            strong_dependencies=strong,
            dependency_count=analysis.total_count,
            critical_workflows=critical_workflows,
            radius=scope.impact_radius,
            estimated_user_impact=estimated_user_impact,
            config=self.config,
        )
        score = clamp_score(raw_score, self.config)
        # Thresholds apply to the unrounded sum; only the reported score is rounded
        risk_level = risk_level_for_score(raw_score, self.config)

        return RiskAssessment(
            policy_id=analysis.policy_id,
            overall_risk_score=score,
            risk_level=risk_level,
            risk_factors=RiskFactors(
                dependency_count=analysis.total_count,
                strong_dependencies=strong,
                critical_workflows=critical_workflows,
                estimated_user_impact=estimated_user_impact,
                change_scope=scope.impact_radius,
            ),
            mitigation_recommendations=self.rules.mitigation_recommendations(
                risk_level, strong, critical_workflows, scope
            ),
            requires_approval=risk_level in ELEVATED_LEVELS,
        )

    def _change_scope_from_graph(self, graph: DependencyGraph) -> ChangeScope:
        total_affected = graph.total_dependencies

        by_type = zero_counts(DependentType)
        for node in graph.nodes:
            if node.type != POLICY_NODE_TYPE:
                by_type[DependentType(node.type)] += 1

        radius = impact_radius(graph.max_depth, total_affected, self.config)

        return ChangeScope(
            total_affected=total_affected,
            by_type=by_type,
            impact_radius=radius,
            is_localized=is_localized(radius, total_affected, self.config),
            estimated_user_impact=(
                by_type[DependentType.WORKFLOW] * self.config.users_per_workflow
                + by_type[DependentType.MODULE] * self.config.users_per_module
            ),
        )

    def _affected_entities(
        self,
        records: list[DependencyRecord],
        dependent_type: DependentType,
    ) -> list[AffectedEntity]:
        entities = []
        for dep in records:
            if dep.dependent_type != dependent_type:
                continue
            entities.append(AffectedEntity(
                id=dep.dependent_id,
                type=dependent_type,
                name=node_label(dependent_type, dep.dependent_id),
                dependency_strength=dep.strength,
                risk_level=strength_to_risk(dep.strength),
                affected_user_count=(
                    self.config.users_per_workflow if dependent_type == DependentType.WORKFLOW else None
                ),
                recommended_actions=self.rules.recommended_actions(dep),
                impact_description=dep.impact_description(),
            ))
        return entities

    @staticmethod
    def _count_by_risk(entities: list[AffectedEntity]) -> dict[ImpactRiskLevel, int]:
        counts = zero_counts(ImpactRiskLevel)
        for entity in entities:
            counts[entity.risk_level] += 1
        return counts

    def _workflow_summary(self, records: list[DependencyRecord]) -> AffectedWorkflowsSummary:
        workflows = self._affected_entities(records, DependentType.WORKFLOW)
        return AffectedWorkflowsSummary(
            total_count=len(workflows),
            by_risk_level=self._count_by_risk(workflows),
            workflows=workflows,
            critical_workflows=[wf for wf in workflows if wf.risk_level in ELEVATED_LEVELS],
        )

    def _module_summary(self, records: list[DependencyRecord]) -> AffectedModulesSummary:
        modules = self._affected_entities(records, DependentType.MODULE)
        return AffectedModulesSummary(
            total_count=len(modules),
            by_risk_level=self._count_by_risk(modules),
            modules=modules,
            critical_modules=[m for m in modules if m.risk_level in ELEVATED_LEVELS],
        )
