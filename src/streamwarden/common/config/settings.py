"""Configuration management - Centralized configuration for StreamWarden.

Provides environment-aware configuration with sensible defaults.
All configuration is loaded from environment variables with fallbacks.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _get_project_root() -> Path:
    """Get the project root directory."""
    # settings.py -> config -> common -> streamwarden -> src -> project_root
    current = Path(__file__).resolve()
    return current.parent.parent.parent.parent.parent


@dataclass
class Config:
    """Central configuration object for StreamWarden.

    All settings can be overridden via environment variables prefixed with
    STREAMWARDEN_.

    Example:
        STREAMWARDEN_ENVIRONMENT=production
        STREAMWARDEN_LOG_LEVEL=INFO
        STREAMWARDEN_COOLDOWN_TABLE=streamwarden-cooldowns
    """

    # Core settings
    environment: Environment = field(
        default_factory=lambda: Environment(
            os.getenv("STREAMWARDEN_ENVIRONMENT", "development")
        )
    )
    debug: bool = field(
        default_factory=lambda: os.getenv("STREAMWARDEN_DEBUG", "false").lower() == "true"
    )
    log_level: LogLevel = field(
        default_factory=lambda: LogLevel(os.getenv("STREAMWARDEN_LOG_LEVEL", "INFO"))
    )

    # Paths
    project_root: Path = field(default_factory=_get_project_root)

    # Audit settings
    audit_log_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("STREAMWARDEN_AUDIT_LOG_DIR", "./logs/audit")
        )
    )

    # AWS settings (cooldowns, confirmations, metrics)
    aws_region: str = field(
        default_factory=lambda: os.getenv("AWS_DEFAULT_REGION", "us-east-1")
    )
    cooldown_table: Optional[str] = field(
        default_factory=lambda: os.getenv("STREAMWARDEN_COOLDOWN_TABLE")
    )
    confirmation_table: Optional[str] = field(
        default_factory=lambda: os.getenv("STREAMWARDEN_CONFIRMATION_TABLE")
    )
    metrics_namespace: str = field(
        default_factory=lambda: os.getenv("STREAMWARDEN_METRICS_NAMESPACE", "StreamWarden")
    )

    # Policy settings
    policy_file: Path = field(
        default_factory=lambda: Path(
            os.getenv("STREAMWARDEN_POLICY_FILE", "./config/enforcement_policy.yaml")
        )
    )

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.audit_log_dir.mkdir(parents=True, exist_ok=True)

        # Cooldown state must survive restarts outside development
        if self.environment == Environment.PRODUCTION and not self.cooldown_table:
            raise ValueError(
                "STREAMWARDEN_COOLDOWN_TABLE must be set in production"
            )

        # Warn about debug in production
        if self.environment == Environment.PRODUCTION and self.debug:
            import warnings
            warnings.warn(
                "Debug mode is enabled in production environment",
                RuntimeWarning,
                stacklevel=2
            )

    @property
    def config_dir(self) -> Path:
        """Get the config directory path."""
        return self.project_root / "config"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT


# Singleton instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config: The global configuration singleton.
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
