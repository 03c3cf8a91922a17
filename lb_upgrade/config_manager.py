"""
Configuration Management for the Load Balancer Upgrade Tool

This module provides centralized configuration management with validation
and environment variable handling. Values come from the environment (and a
local ``.env`` file) and can be overridden by command-line options.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import colorlog
from dotenv import load_dotenv

from .exceptions import InvalidConfigurationError, MissingConfigurationError

# Load environment variables
load_dotenv()


def _set_azure_http_log_level(log_level: str) -> None:
    """Set log levels for HTTP-related loggers to reduce noise."""
    http_loggers = [
        "azure.core.pipeline.policies.http_logging_policy",
        "azure.core.pipeline",
        "azure.identity",
        "azure.mgmt",
        "azure",
        "urllib3",
        "urllib3.connectionpool",
        "msal",
    ]
    # HTTP logging should only appear at DEBUG level
    target_level = logging.DEBUG if log_level == "DEBUG" else logging.WARNING
    for name in http_loggers:
        logging.getLogger(name).setLevel(target_level)


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidConfigurationError(
            f"{name} must be an integer, got {raw!r}", config_section="retry", cause=e
        ) from e


def _env_float(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        return float(raw)
    except ValueError as e:
        raise InvalidConfigurationError(
            f"{name} must be a number, got {raw!r}", config_section="retry", cause=e
        ) from e


logger = logging.getLogger(__name__)


@dataclass
class AzureConfig:
    """Configuration for the Azure subscription and credentials."""

    subscription_id: str = field(
        default_factory=lambda: os.getenv("AZURE_SUBSCRIPTION_ID", "")
    )
    tenant_id: Optional[str] = field(default_factory=lambda: os.getenv("AZURE_TENANT_ID"))
    client_id: Optional[str] = field(default_factory=lambda: os.getenv("AZURE_CLIENT_ID"))
    client_secret: Optional[str] = field(
        default_factory=lambda: os.getenv("AZURE_CLIENT_SECRET")
    )

    def has_service_principal(self) -> bool:
        """Check if explicit service principal credentials are configured."""
        return bool(self.tenant_id and self.client_id and self.client_secret)

    def validate(self) -> None:
        if not self.subscription_id:
            raise MissingConfigurationError(
                "Azure subscription ID is required",
                missing_keys=["AZURE_SUBSCRIPTION_ID"],
            )

    def get_safe_client_id(self) -> str:
        """Get client ID for logging (masked)."""
        if self.client_id:
            return f"{self.client_id[:8]}..."
        return "Not configured"


@dataclass
class RetryConfig:
    """Bounded retries for idempotent provider calls."""

    max_retries: int = field(
        default_factory=lambda: _env_int("LB_UPGRADE_MAX_RETRIES", "3")
    )
    retry_delay: float = field(
        default_factory=lambda: _env_float("LB_UPGRADE_RETRY_DELAY", "1.0")
    )

    def __post_init__(self) -> None:
        """Validate retry configuration."""
        if self.max_retries < 1:
            raise InvalidConfigurationError(
                "Max retries must be at least 1", config_section="retry"
            )
        if self.retry_delay < 0:
            raise InvalidConfigurationError(
                "Retry delay must be non-negative", config_section="retry"
            )


@dataclass
class LoggingConfig:
    """Configuration for logging behavior."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = field(
        default_factory=lambda: os.getenv(
            "LOG_FORMAT", "%(log_color)s%(levelname)s:%(name)s:%(message)s"
        )
    )
    file_output: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))
    json_events: bool = field(
        default_factory=lambda: os.getenv("LB_UPGRADE_JSON_EVENTS", "false").lower()
        == "true"
    )

    def __post_init__(self) -> None:
        """Validate logging configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise InvalidConfigurationError(
                f"Log level must be one of: {valid_levels}", config_section="logging"
            )
        self.level = self.level.upper()

    def get_log_level(self) -> int:
        """Convert string log level to logging constant."""
        return int(getattr(logging, self.level))


@dataclass
class JournalConfig:
    """Where migration journals are written."""

    directory: Path = field(
        default_factory=lambda: Path(os.getenv("LB_UPGRADE_JOURNAL_DIR", ".lb-upgrade"))
    )

    def path_for(self, journal_name: str) -> Path:
        return self.directory / f"{journal_name}.jsonl"


@dataclass
class LoadBalancerUpgradeConfig:
    """Main configuration class that aggregates all configuration sections."""

    azure: AzureConfig = field(default_factory=AzureConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    journal: JournalConfig = field(default_factory=JournalConfig)

    @classmethod
    def from_environment(
        cls,
        subscription_id: Optional[str] = None,
        max_retries: Optional[int] = None,
        journal_dir: Optional[str] = None,
        log_level: Optional[str] = None,
    ) -> "LoadBalancerUpgradeConfig":
        """
        Create configuration from environment variables.

        Args:
            subscription_id: Overrides AZURE_SUBSCRIPTION_ID
            max_retries: Overrides LB_UPGRADE_MAX_RETRIES
            journal_dir: Overrides LB_UPGRADE_JOURNAL_DIR
            log_level: Overrides LOG_LEVEL

        Returns:
            LoadBalancerUpgradeConfig: Configured instance
        """
        config = cls()

        if subscription_id:
            config.azure.subscription_id = subscription_id
        if max_retries is not None:
            config.retry.max_retries = max_retries
        if journal_dir:
            config.journal.directory = Path(journal_dir)
        if log_level:
            config.logging.level = log_level

        return config

    def validate_all(self) -> None:
        """Validate all configuration sections."""
        try:
            self.azure.validate()
            self.retry.__post_init__()
            self.logging.__post_init__()
            logger.debug("Configuration validation successful")
        except Exception as e:
            logger.error(f"❌ Configuration validation failed: {e}")
            raise

    def log_configuration_summary(self) -> None:
        """Log a summary of the current configuration (without sensitive data)."""
        logger.info("=" * 60)
        logger.info("🔧 LOAD BALANCER UPGRADE CONFIGURATION")
        logger.info("=" * 60)
        logger.info(f"📋 Subscription: {self.azure.subscription_id}")
        if self.azure.has_service_principal():
            logger.info(f"🔑 Service principal: {self.azure.get_safe_client_id()}")
        else:
            logger.info("🔑 Credential: DefaultAzureCredential")
        logger.info(f"🔁 Max Retries: {self.retry.max_retries}")
        logger.info(f"   Retry Delay: {self.retry.retry_delay}s")
        logger.info(f"📓 Journal Directory: {self.journal.directory}")
        logger.info(f"📝 Logging Level: {self.logging.level}")
        if self.logging.file_output:
            logger.info(f"📄 Log File: {self.logging.file_output}")
        logger.info("=" * 60)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            "azure": {
                "subscription_id": self.azure.subscription_id,
                "tenant_id": self.azure.tenant_id,
                "client_id": self.azure.get_safe_client_id(),
                # Don't include client secret in serialization
            },
            "retry": {
                "max_retries": self.retry.max_retries,
                "retry_delay": self.retry.retry_delay,
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
                "json_events": self.logging.json_events,
            },
            "journal": {"directory": str(self.journal.directory)},
        }


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup logging configuration based on config.
    """
    _set_azure_http_log_level(config.level.upper())

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()  # Remove any existing handlers
    root_logger.setLevel(config.get_log_level())

    console_handler = colorlog.StreamHandler()
    console_handler.setFormatter(colorlog.ColoredFormatter(config.format))
    root_logger.addHandler(console_handler)

    # Add file handler if file output is configured
    if config.file_output:
        file_handler = logging.FileHandler(config.file_output)
        file_formatter = logging.Formatter(
            "%(asctime)s - %(levelname)s:%(name)s:%(message)s"
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    logger.debug(
        f"📝 Logging configured: level={config.level}, file={config.file_output or 'console'}"
    )


def create_config_from_env(
    subscription_id: Optional[str] = None,
    max_retries: Optional[int] = None,
    journal_dir: Optional[str] = None,
    log_level: Optional[str] = None,
) -> LoadBalancerUpgradeConfig:
    """
    Factory function to create and validate configuration from environment.

    Returns:
        LoadBalancerUpgradeConfig: Validated configuration instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    config = LoadBalancerUpgradeConfig.from_environment(
        subscription_id=subscription_id,
        max_retries=max_retries,
        journal_dir=journal_dir,
        log_level=log_level,
    )
    config.validate_all()
    return config
