"""Services — DependencyService, ImpactAnalysisService, AuditService."""

from policy_impact.services.audit_service import AuditService
from policy_impact.services.dependency_service import DependencyService
from policy_impact.services.impact_analysis_service import ImpactAnalysisService

__all__ = ["AuditService", "DependencyService", "ImpactAnalysisService"]
