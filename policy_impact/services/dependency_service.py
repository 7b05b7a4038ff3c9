"""
Dependency Service — manages declared policy dependencies and turns them
into per-policy aggregates and a traversable dependency graph.

Graph traversal:
  - The root policy is node 0. Every active record of a traversed policy
    becomes an edge; its dependent entity becomes a node the first time
    it is seen (edges are never de-duplicated, nodes always are).
  - Only `template` dependents are traversed further: a template is
    treated as a policy that may carry dependencies of its own.
  - Recursion stops at `max_depth` and never re-enters a visited node,
    so cyclic declared data still terminates.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from policy_impact.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    PolicyImpactError,
)
from policy_impact.models.enums import POLICY_NODE_TYPE, DependentType, DependencyStrength
from policy_impact.models.schemas import (
    BulkCreateFailure,
    BulkCreateResult,
    DependencyAnalysis,
    DependencyEdge,
    DependencyGraph,
    DependencyNode,
    DependencyRecord,
    DependencyRequest,
    DependencyUpdate,
    Policy,
    utcnow,
    zero_counts,
)
from policy_impact.persistence.dependency_repository import DependencyRepository
from policy_impact.persistence.policy_repository import PolicyRepository
from policy_impact.rules.rules_config import ImpactRulesConfig
from policy_impact.rules.scoring import STRENGTH_RANK, default_strength_for, local_risk_score
from policy_impact.services.audit_service import AuditService
from policy_impact.utils.validation import coerce_enum, require_identifier

logger = logging.getLogger(__name__)


def _sort_strong_first(records: list[DependencyRecord]) -> list[DependencyRecord]:
    """Strength descending (strong first), then creation time ascending."""
    return sorted(records, key=lambda r: (STRENGTH_RANK[r.strength], r.created_at))


def node_label(dependent_type: DependentType, dependent_id: str) -> str:
    return f"{dependent_type.value.capitalize()} {dependent_id[:8]}"


class DependencyService:
    """CRUD over dependency records, local analysis and graph building."""

    def __init__(
        self,
        policies: PolicyRepository,
        dependencies: DependencyRepository,
        audit: Optional[AuditService] = None,
        config: Optional[ImpactRulesConfig] = None,
    ):
        self.policies = policies
        self.dependencies = dependencies
        self.audit = audit or AuditService()
        self.config = config or ImpactRulesConfig()

    # ── Lookups ──────────────────────────────────────────

    def get_policy(self, policy_id: str) -> Policy:
        """Policy lookup; NotFoundError when missing."""
        policy_id = require_identifier(policy_id, "policy_id")
        policy = self.policies.find_policy_by_id(policy_id)
        if policy is None:
            raise NotFoundError(f"Policy with ID {policy_id} not found", details={"policy_id": policy_id})
        return policy

    def _require_dependency(self, dependency_id: str) -> DependencyRecord:
        dependency_id = require_identifier(dependency_id, "dependency_id")
        dependency = self.dependencies.find_by_id(dependency_id)
        if dependency is None:
            raise NotFoundError(
                f"Dependency with ID {dependency_id} not found",
                details={"dependency_id": dependency_id},
            )
        return dependency

    def _active_dependencies(self, policy_id: str) -> list[DependencyRecord]:
        return _sort_strong_first(self.dependencies.find(policy_id=policy_id, is_active=True))

    # ── Create ───────────────────────────────────────────

    def create_dependency(
        self,
        policy_id: str,
        dependent_type: DependentType | str,
        dependent_id: str,
        strength: DependencyStrength | str | None = None,
        metadata: Optional[dict[str, Any]] = None,
        notes: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> DependencyRecord:
        """
        Declare a new active dependency.

        Without an explicit strength, the heuristic default for the
        dependent type is used. Raises NotFoundError for an unknown policy
        and ConflictError if the same (policy, type, entity) edge is active.
        """
        policy_id = require_identifier(policy_id, "policy_id")
        dependent_id = require_identifier(dependent_id, "dependent_id")
        dependent_type = coerce_enum(DependentType, dependent_type, "dependent_type")
        if strength is None:
            strength = self.calculate_dependency_strength(policy_id, dependent_type, dependent_id)
        else:
            strength = coerce_enum(DependencyStrength, strength, "strength")

        logger.info(f"Creating dependency: {policy_id} -> {dependent_type.value}:{dependent_id}")

        self.get_policy(policy_id)

        existing = self.dependencies.find(
            policy_id=policy_id,
            dependent_type=dependent_type,
            dependent_id=dependent_id,
            is_active=True,
        )
        if existing:
            raise ConflictError(
                "Dependency already exists for this policy and dependent entity",
                details={
                    "policy_id": policy_id,
                    "dependent_type": dependent_type.value,
                    "dependent_id": dependent_id,
                    "existing_id": existing[0].id,
                },
            )

        record = DependencyRecord(
            policy_id=policy_id,
            dependent_type=dependent_type,
            dependent_id=dependent_id,
            strength=strength,
            metadata=dict(metadata or {}),
            notes=notes,
            created_by=created_by,
            is_active=True,
        )
        saved = self.dependencies.save(record)
        self.audit.record(policy_id, saved.id, "created", actor=created_by, details=f"strength={strength.value}")

        logger.info(f"Created dependency {saved.id} with strength {saved.strength.value}")
        return saved

    def bulk_create_dependencies(
        self,
        requests: Iterable[DependencyRequest | dict[str, Any]],
        created_by: Optional[str] = None,
    ) -> BulkCreateResult:
        """
        Best-effort batch create. Each item is attempted independently;
        failures are reported in `failures`, never raised.
        """
        items = list(requests)
        logger.info(f"Bulk creating {len(items)} dependencies")

        result = BulkCreateResult(requested=len(items))
        for item in items:
            try:
                request = DependencyRequest.model_validate(item)
                created = self.create_dependency(
                    policy_id=request.policy_id,
                    dependent_type=request.dependent_type,
                    dependent_id=request.dependent_id,
                    strength=request.strength,
                    metadata=request.metadata,
                    notes=request.notes,
                    created_by=created_by,
                )
                result.created.append(created)
            except (PolicyImpactError, ValidationError) as e:
                logger.warning(f"Failed to create dependency: {e}")
                if isinstance(item, DependencyRequest):
                    raw = item.model_dump(mode="json")
                elif isinstance(item, dict):
                    raw = dict(item)
                else:
                    raw = {"value": repr(item)}
                result.failures.append(BulkCreateFailure(
                    request=raw,
                    error=str(e),
                    error_type=type(e).__name__,
                ))

        logger.info(f"Successfully created {result.created_count}/{result.requested} dependencies")
        return result

    # ── Read ─────────────────────────────────────────────

    def get_dependencies(self, policy_id: str, include_inactive: bool = False) -> list[DependencyRecord]:
        """Records for a policy, strong first then oldest first."""
        policy_id = require_identifier(policy_id, "policy_id")
        self.get_policy(policy_id)

        records = self.dependencies.find(policy_id=policy_id, is_active=None if include_inactive else True)
        records = _sort_strong_first(records)

        logger.info(f"Found {len(records)} dependencies for policy {policy_id}")
        return records

    def analyze_dependencies(self, policy_id: str) -> DependencyAnalysis:
        """Counts by type and strength, strong subset and the local risk score."""
        logger.info(f"Analyzing dependencies for policy {policy_id}")

        records = self.get_dependencies(policy_id)

        by_type = zero_counts(DependentType)
        by_strength = zero_counts(DependencyStrength)
        for dep in records:
            by_type[dep.dependent_type] += 1
            by_strength[dep.strength] += 1

        critical = [dep for dep in records if dep.strength == DependencyStrength.STRONG]
        risk_score = local_risk_score(by_strength, self.config)

        logger.info(f"Analysis complete: {len(records)} deps, risk score: {risk_score}")

        return DependencyAnalysis(
            policy_id=policy_id,
            total_count=len(records),
            by_type=by_type,
            by_strength=by_strength,
            critical_dependencies=critical,
            all_dependencies=records,
            risk_score=risk_score,
        )

    # ── Graph ────────────────────────────────────────────

    def build_dependency_graph(self, policy_id: str, max_depth: Optional[int] = None) -> DependencyGraph:
        """Traverse active dependencies from a root policy (see module docstring)."""
        policy_id = require_identifier(policy_id, "policy_id")
        if max_depth is None:
            max_depth = self.config.default_max_depth
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
            raise InvalidArgumentError(
                f"max_depth must be a non-negative integer, got {max_depth!r}",
                details={"field": "max_depth"},
            )

        logger.info(f"Building dependency graph for policy {policy_id}, max depth {max_depth}")

        policy = self.get_policy(policy_id)
        root = DependencyNode(
            id=policy.id,
            type=POLICY_NODE_TYPE,
            label=policy.title,
            metadata={"category": policy.category, "status": policy.status, "version": policy.version},
            depth=0,
        )
        graph = DependencyGraph(root_policy=root, nodes=[root])
        visited = {policy.id}

        self._traverse(graph, visited, policy.id, 0, max_depth)
        graph.total_dependencies = len(graph.edges)

        logger.info(
            f"Graph built: {len(graph.nodes)} nodes, {len(graph.edges)} edges, "
            f"max depth {graph.max_depth}"
        )
        return graph

    def _traverse(
        self,
        graph: DependencyGraph,
        visited: set[str],
        node_id: str,
        current_depth: int,
        max_depth: int,
    ) -> None:
        if current_depth >= max_depth:
            return

        for dep in self._active_dependencies(node_id):
            child_id = dep.dependent_id

            graph.strength_breakdown[dep.strength] += 1
            graph.type_breakdown[dep.dependent_type] += 1
            graph.max_depth = max(graph.max_depth, current_depth + 1)

            graph.edges.append(DependencyEdge(
                source=node_id,
                target=child_id,
                strength=dep.strength,
                risk_level=dep.risk_level(),
                metadata=dict(dep.metadata),
            ))

            if child_id in visited:
                continue
            visited.add(child_id)

            graph.nodes.append(DependencyNode(
                id=child_id,
                type=dep.dependent_type.value,
                label=node_label(dep.dependent_type, child_id),
                metadata=dict(dep.metadata),
                depth=current_depth + 1,
            ))

            if dep.dependent_type == DependentType.TEMPLATE:
                logger.debug(f"Descending into template {child_id} at depth {current_depth + 1}")
                self._traverse(graph, visited, child_id, current_depth + 1, max_depth)

    # ── Heuristics ───────────────────────────────────────

    def calculate_dependency_strength(
        self,
        policy_id: str,
        dependent_type: DependentType | str,
        dependent_id: str,
    ) -> DependencyStrength:
        """
        Suggested strength for a new dependency.

        Static lookup by dependent type only; policy_id and dependent_id are
        accepted so a usage-based analysis can replace the table later.
        """
        dependent_type = coerce_enum(DependentType, dependent_type, "dependent_type")
        return default_strength_for(dependent_type)

    # ── Update / delete ──────────────────────────────────

    def update_dependency(
        self,
        dependency_id: str,
        updates: DependencyUpdate | dict[str, Any],
        updated_by: Optional[str] = None,
    ) -> DependencyRecord:
        """Apply strength / metadata / notes changes in place."""
        dependency = self._require_dependency(dependency_id)

        if not isinstance(updates, DependencyUpdate):
            try:
                updates = DependencyUpdate.model_validate(updates)
            except ValidationError as e:
                raise InvalidArgumentError(f"Invalid dependency update: {e}") from e

        changes = updates.model_dump(exclude_none=True)
        for field, value in changes.items():
            setattr(dependency, field, value)
        dependency.updated_at = utcnow()

        saved = self.dependencies.save(dependency)
        self.audit.record(
            saved.policy_id, saved.id, "updated",
            actor=updated_by,
            details=f"fields={sorted(changes)}",
        )

        logger.info(f"Updated dependency {saved.id}")
        return saved

    def delete_dependency(
        self,
        dependency_id: str,
        hard_delete: bool = False,
        deleted_by: Optional[str] = None,
    ) -> bool:
        """Soft delete (mark inactive) by default; hard delete removes the record."""
        dependency = self._require_dependency(dependency_id)

        if hard_delete:
            self.dependencies.remove(dependency)
            self.audit.record(dependency.policy_id, dependency.id, "hard_deleted", actor=deleted_by)
            logger.info(f"Hard deleted dependency {dependency.id}")
        else:
            dependency.is_active = False
            dependency.updated_at = utcnow()
            self.dependencies.save(dependency)
            self.audit.record(dependency.policy_id, dependency.id, "soft_deleted", actor=deleted_by)
            logger.info(f"Soft deleted dependency {dependency.id}")

        return True
