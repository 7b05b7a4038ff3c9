"""Persistence — MongoClient, PolicyRepository, DependencyRepository."""

from policy_impact.persistence.mongo_client import MongoClient
from policy_impact.persistence.policy_repository import PolicyRepository
from policy_impact.persistence.dependency_repository import DependencyRepository

__all__ = ["MongoClient", "PolicyRepository", "DependencyRepository"]
