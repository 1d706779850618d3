"""
Configuration for sbomlens.

Provides AnalysisConfig for holding analysis defaults, loadable from
JSON/YAML files or environment variables.
"""

from sbomlens.config.settings import (
    AnalysisConfig,
    ComplianceConfig,
    ConfigError,
    LoggingConfig,
    MatchingConfig,
    ScoringConfig,
    create_default_config,
    load_config_from_env,
)

__all__ = [
    "AnalysisConfig",
    "ComplianceConfig",
    "ConfigError",
    "LoggingConfig",
    "MatchingConfig",
    "ScoringConfig",
    "create_default_config",
    "load_config_from_env",
]
