"""
Core Infrastructure - Configuration, Logging, Cycle Tracking

This package provides centralized infrastructure utilities that should be used
throughout the application instead of direct library calls.

Usage:
    from copilot_metrics.core import get_config, get_logger

    config = get_config()
    ingestion = config.get_ingestion_config()

    logger = get_logger(__name__)
"""

from copilot_metrics.core.logging_config import get_logger, log_with_context, setup_logging
from copilot_metrics.secure_config import (
    ConfigurationError,
    GitHubConfig,
    IngestionConfig,
    SecureConfig,
    StoreConfig,
    get_config,
)

__all__ = [
    # Configuration
    "get_config",
    "ConfigurationError",
    "SecureConfig",
    "IngestionConfig",
    "GitHubConfig",
    "StoreConfig",
    # Logging
    "get_logger",
    "setup_logging",
    "log_with_context",
]
