"""
Pure scoring helpers shared by the dependency and impact services.
No I/O; every constant comes from ImpactRulesConfig.
"""

from __future__ import annotations

import math
from typing import Optional

from policy_impact.models.enums import DependentType, DependencyStrength, ImpactRiskLevel
from policy_impact.rules.rules_config import ImpactRulesConfig

STRENGTH_RISK: dict[DependencyStrength, ImpactRiskLevel] = {
    DependencyStrength.STRONG: ImpactRiskLevel.CRITICAL,
    DependencyStrength.MEDIUM: ImpactRiskLevel.HIGH,
    DependencyStrength.WEAK: ImpactRiskLevel.MEDIUM,
}

# Heuristic default strength when an admin has not chosen one.
# TODO: consult actual workflow definitions once usage-pattern data exists.
DEFAULT_STRENGTH_BY_TYPE: dict[DependentType, DependencyStrength] = {
    DependentType.WORKFLOW: DependencyStrength.STRONG,
    DependentType.MODULE: DependencyStrength.MEDIUM,
    DependentType.TEMPLATE: DependencyStrength.MEDIUM,
    DependentType.ASSESSMENT: DependencyStrength.MEDIUM,
    DependentType.TRAINING: DependencyStrength.WEAK,
    DependentType.DOCUMENT: DependencyStrength.WEAK,
}

# Sort rank for "strong first" ordering
STRENGTH_RANK: dict[DependencyStrength, int] = {
    DependencyStrength.STRONG: 0,
    DependencyStrength.MEDIUM: 1,
    DependencyStrength.WEAK: 2,
}


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores (round() is banker's)."""
    return int(math.floor(value + 0.5))


def strength_to_risk(strength: Optional[DependencyStrength]) -> ImpactRiskLevel:
    return STRENGTH_RISK.get(strength, ImpactRiskLevel.LOW)


def default_strength_for(dependent_type: DependentType) -> DependencyStrength:
    return DEFAULT_STRENGTH_BY_TYPE.get(dependent_type, DependencyStrength.MEDIUM)


def local_risk_score(by_strength: dict[DependencyStrength, int], config: ImpactRulesConfig) -> int:
    """Per-policy score from strength counts alone (no graph traversal)."""
    raw = (
        by_strength.get(DependencyStrength.STRONG, 0) * config.strong_weight
        + by_strength.get(DependencyStrength.MEDIUM, 0) * config.medium_weight
        + by_strength.get(DependencyStrength.WEAK, 0) * config.weak_weight
    )
    return min(config.max_score, raw)


def impact_radius(max_depth: int, total_affected: int, config: ImpactRulesConfig) -> int:
    raw = max_depth * config.radius_depth_weight + total_affected / config.radius_affected_divisor
    return min(config.max_impact_radius, round_half_up(raw))


def is_localized(radius: int, total_affected: int, config: ImpactRulesConfig) -> bool:
    return radius < config.localized_max_radius and total_affected < config.localized_max_affected


def raw_risk_score(
    strong_dependencies: int,
    dependency_count: int,
    critical_workflows: int,
    radius: int,
    estimated_user_impact: int,
    config: ImpactRulesConfig,
) -> float:
    """
    Unrounded sum of five capped terms:
      strong deps, total deps, critical workflows, impact radius, user impact.
    Risk levels are classified on this value.
    """
    return (
        min(config.strong_dependency_cap, strong_dependencies * config.strong_dependency_points)
        + min(config.dependency_count_cap, dependency_count * config.dependency_count_points)
        + min(config.critical_workflow_cap, critical_workflows * config.critical_workflow_points)
        + min(config.impact_radius_cap, radius * config.impact_radius_points)
        + min(config.user_impact_cap, estimated_user_impact / config.user_impact_divisor)
    )


def overall_risk_score(
    strong_dependencies: int,
    dependency_count: int,
    critical_workflows: int,
    radius: int,
    estimated_user_impact: int,
    config: ImpactRulesConfig,
) -> int:
    """Reported score: raw_risk_score rounded half-up, clamped to [0, max_score]."""
    raw = raw_risk_score(
        strong_dependencies, dependency_count, critical_workflows, radius, estimated_user_impact, config
    )
    return clamp_score(raw, config)


def clamp_score(raw: float, config: ImpactRulesConfig) -> int:
    return max(0, min(config.max_score, round_half_up(raw)))


def risk_level_for_score(score: float, config: ImpactRulesConfig) -> ImpactRiskLevel:
    if score >= config.critical_threshold:
        return ImpactRiskLevel.CRITICAL
    if score >= config.high_threshold:
        return ImpactRiskLevel.HIGH
    if score >= config.medium_threshold:
        return ImpactRiskLevel.MEDIUM
    return ImpactRiskLevel.LOW
