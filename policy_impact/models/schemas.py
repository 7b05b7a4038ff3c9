"""
Data schemas for dependency records, the derived dependency graph and
the impact analysis report.

Fields are snake_case in Python; every model also carries a camelCase
alias so `model_dump(by_alias=True)` yields the report shape consumed by
the UI and notification rules (`overallRiskScore`, `prePublishChecklist`, ...).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import (
    DependentType,
    DependencyStrength,
    ImpactRiskLevel,
    NotificationPriority,
)
from policy_impact.rules.scoring import strength_to_risk


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def zero_counts(enum_cls: type[Enum]) -> dict[Any, int]:
    """Counter pre-filled with every member of the enumeration."""
    return {member: 0 for member in enum_cls}


class ApiModel(BaseModel):
    """Base model: snake_case attributes, camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Collaborators ────────────────────────────────────────


class Policy(ApiModel):
    """The subset of a policy record the engine reads."""
    id: str
    title: str
    category: str = ""
    version: str = "1.0"
    status: str = "draft"
    organization_id: Optional[str] = None


class Analyst(ApiModel):
    """User on whose behalf an impact analysis runs."""
    id: str
    name: str
    email: str = ""


# ── Dependency records ───────────────────────────────────

# Recognized keys of DependencyRecord.metadata (stored as declared)
META_IMPACT_DESCRIPTION = "impactDescription"
META_AFFECTED_SECTIONS = "affectedSections"
META_AUTOMATIC_UPDATE = "automaticUpdate"
META_MIGRATION_PATH = "migrationPath"

_DEFAULT_IMPACT_DESCRIPTIONS: dict[DependencyStrength, str] = {
    DependencyStrength.STRONG: "Dependent {type} will break if this policy changes",
    DependencyStrength.MEDIUM: "Dependent {type} will likely need adjustment",
    DependencyStrength.WEAK: "Minor or informational impact on dependent {type}",
}


class DependencyRecord(ApiModel):
    """One declared edge: policy → dependent entity."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    policy_id: str
    dependent_type: DependentType
    dependent_id: str
    strength: DependencyStrength
    metadata: dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def automatic_update(self) -> bool:
        return bool(self.metadata.get(META_AUTOMATIC_UPDATE, False))

    @property
    def affected_sections(self) -> list[str]:
        return list(self.metadata.get(META_AFFECTED_SECTIONS) or [])

    def risk_level(self) -> ImpactRiskLevel:
        return strength_to_risk(self.strength)

    def impact_description(self) -> str:
        """Declared impact text, or a default sentence derived from strength."""
        declared = self.metadata.get(META_IMPACT_DESCRIPTION)
        if declared:
            return str(declared)
        return _DEFAULT_IMPACT_DESCRIPTIONS[self.strength].format(type=self.dependent_type.value)


class DependencyRequest(ApiModel):
    """Payload for creating a dependency (single or bulk)."""
    policy_id: str
    dependent_type: DependentType
    dependent_id: str
    strength: Optional[DependencyStrength] = None  # None → heuristic default
    metadata: dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None


class DependencyUpdate(ApiModel):
    """Mutable fields of a dependency; None means unchanged."""
    strength: Optional[DependencyStrength] = None
    metadata: Optional[dict[str, Any]] = None
    notes: Optional[str] = None


class BulkCreateFailure(ApiModel):
    request: dict[str, Any]
    error: str
    error_type: str


class BulkCreateResult(ApiModel):
    """Best-effort batch outcome: created subset plus per-item failures."""
    requested: int = 0
    created: list[DependencyRecord] = []
    failures: list[BulkCreateFailure] = []

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def is_partial(self) -> bool:
        return self.created_count != self.requested


# ── Graph ────────────────────────────────────────────────


class DependencyNode(ApiModel):
    id: str
    type: str  # "policy" for the root, otherwise a DependentType value
    label: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    depth: int = 0


class DependencyEdge(ApiModel):
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    strength: Optional[DependencyStrength] = None
    risk_level: ImpactRiskLevel = ImpactRiskLevel.LOW
    metadata: dict[str, Any] = Field(default_factory=dict)


class DependencyGraph(ApiModel):
    root_policy: DependencyNode
    nodes: list[DependencyNode] = []
    edges: list[DependencyEdge] = []
    total_dependencies: int = 0
    strength_breakdown: dict[DependencyStrength, int] = Field(
        default_factory=lambda: zero_counts(DependencyStrength)
    )
    type_breakdown: dict[DependentType, int] = Field(
        default_factory=lambda: zero_counts(DependentType)
    )
    max_depth: int = 0  # deepest level actually reached


class DependencyAnalysis(ApiModel):
    """Local (non-graph) aggregate over a policy's active dependencies."""
    policy_id: str
    total_count: int = 0
    by_type: dict[DependentType, int] = Field(default_factory=lambda: zero_counts(DependentType))
    by_strength: dict[DependencyStrength, int] = Field(
        default_factory=lambda: zero_counts(DependencyStrength)
    )
    critical_dependencies: list[DependencyRecord] = []
    all_dependencies: list[DependencyRecord] = []
    risk_score: int = 0  # 0-100


# ── Impact analysis ──────────────────────────────────────


class AffectedEntity(ApiModel):
    id: str
    type: DependentType
    name: str
    dependency_strength: DependencyStrength
    risk_level: ImpactRiskLevel
    affected_user_count: Optional[int] = None  # workflows only
    recommended_actions: list[str] = []
    impact_description: str = ""


class AffectedWorkflowsSummary(ApiModel):
    total_count: int = 0
    by_risk_level: dict[ImpactRiskLevel, int] = Field(
        default_factory=lambda: zero_counts(ImpactRiskLevel)
    )
    workflows: list[AffectedEntity] = []
    critical_workflows: list[AffectedEntity] = []


class AffectedModulesSummary(ApiModel):
    total_count: int = 0
    by_risk_level: dict[ImpactRiskLevel, int] = Field(
        default_factory=lambda: zero_counts(ImpactRiskLevel)
    )
    modules: list[AffectedEntity] = []
    critical_modules: list[AffectedEntity] = []


class ChangeScope(ApiModel):
    total_affected: int = 0
    by_type: dict[DependentType, int] = Field(default_factory=lambda: zero_counts(DependentType))
    impact_radius: int = 0  # 0-10
    is_localized: bool = True
    estimated_user_impact: int = 0


class RiskFactors(ApiModel):
    dependency_count: int = 0
    strong_dependencies: int = 0
    critical_workflows: int = 0
    estimated_user_impact: int = 0
    change_scope: int = 0  # impact radius


class RiskAssessment(ApiModel):
    policy_id: str
    overall_risk_score: int = 0  # 0-100
    risk_level: ImpactRiskLevel = ImpactRiskLevel.LOW
    risk_factors: RiskFactors = Field(default_factory=RiskFactors)
    mitigation_recommendations: list[str] = []
    requires_approval: bool = False


class ChecklistItem(ApiModel):
    item: str
    completed: bool = False
    required: bool = True


class SuggestedNotification(ApiModel):
    recipient: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM


class PolicySummary(ApiModel):
    id: str
    title: str
    category: str = ""
    version: str = ""


class ImpactAnalysisReport(ApiModel):
    """Complete pre-publish impact report for one policy."""
    policy: PolicySummary
    analyzed_at: datetime = Field(default_factory=utcnow)
    analyzed_by: Optional[Analyst] = None
    dependency_graph: DependencyGraph
    risk_assessment: RiskAssessment
    affected_workflows: AffectedWorkflowsSummary
    affected_modules: AffectedModulesSummary
    change_scope: ChangeScope
    pre_publish_checklist: list[ChecklistItem] = []
    notifications_suggested: list[SuggestedNotification] = []
