"""
Application configuration using Pydantic Settings.
All environment-specific values are centralized here.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── App ──────────────────────────────────────────────
    app_name: str = "Policy Impact Engine"
    debug: bool = False
    mock_mode: bool = True  # When True, repositories stay in-memory

    # ── MongoDB ──────────────────────────────────────────
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "policy_governance"
    mongodb_timeout_ms: int = 10000  # per-operation deadline (pymongo timeoutMS)

    policies_collection: str = "policies"
    dependencies_collection: str = "policy_dependencies"
    audit_collection: str = "dependency_audit"
    rules_config_collection: str = "rules_config"

    # ── Logging ──────────────────────────────────────────
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
