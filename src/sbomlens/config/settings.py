"""
Analysis configuration for sbomlens.

Holds caller-side defaults for the diff threshold, scoring profile,
compliance standards and logging. The analysis functions themselves
hold no configuration; callers pass these values explicitly (or use
the factory helpers here).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO

import yaml

from sbomlens.compliance.checker import ComplianceChecker
from sbomlens.compliance.standards import ComplianceStandard
from sbomlens.diffing.engine import DiffEngine
from sbomlens.diffing.matching import DEFAULT_THRESHOLD, MatchWeights
from sbomlens.observability.logging import LOG_FORMATS, configure_logging
from sbomlens.quality.profiles import ScoringProfile
from sbomlens.quality.scorer import DEFAULT_RECOMMENDATION_THRESHOLD, QualityScorer


class ConfigError(Exception):
    """Raised for unreadable or invalid configuration."""


@dataclass
class MatchingConfig:
    """Fuzzy matching settings."""

    threshold: float = DEFAULT_THRESHOLD
    weights: MatchWeights = field(default_factory=MatchWeights)
    match_synthetic: bool = False

    def validate(self) -> None:
        if not 0.0 <= self.threshold <= 1.0:
            raise ConfigError(f"Match threshold must be in [0, 1], got {self.threshold}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "threshold": self.threshold,
            "weights": self.weights.to_dict(),
            "match_synthetic": self.match_synthetic,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MatchingConfig:
        """Create from dictionary."""
        try:
            weights = MatchWeights.from_dict(data.get("weights", {}))
        except ValueError as e:
            raise ConfigError(str(e)) from e
        return cls(
            threshold=float(data.get("threshold", DEFAULT_THRESHOLD)),
            weights=weights,
            match_synthetic=bool(data.get("match_synthetic", False)),
        )


@dataclass
class ScoringConfig:
    """Quality scoring settings."""

    profile: ScoringProfile = ScoringProfile.STANDARD
    recommendation_threshold: float = DEFAULT_RECOMMENDATION_THRESHOLD

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "profile": self.profile.value,
            "recommendation_threshold": self.recommendation_threshold,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScoringConfig:
        """Create from dictionary."""
        return cls(
            profile=_parse_profile(data.get("profile", ScoringProfile.STANDARD.value)),
            recommendation_threshold=float(
                data.get("recommendation_threshold", DEFAULT_RECOMMENDATION_THRESHOLD)
            ),
        )


@dataclass
class ComplianceConfig:
    """Compliance standards to check."""

    standards: list[ComplianceStandard] = field(
        default_factory=lambda: [ComplianceStandard.NTIA_MINIMUM]
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"standards": [s.value for s in self.standards]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ComplianceConfig:
        """Create from dictionary."""
        names = data.get("standards", [ComplianceStandard.NTIA_MINIMUM.value])
        return cls(standards=[_parse_standard(name) for name in names])


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "WARNING"
    format: str = "human"

    def validate(self) -> None:
        if self.format not in LOG_FORMATS:
            raise ConfigError(f"Unknown log format: {self.format}")
        if self.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"Unknown log level: {self.level}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"level": self.level, "format": self.format}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoggingConfig:
        """Create from dictionary."""
        return cls(level=data.get("level", "WARNING"), format=data.get("format", "human"))


@dataclass
class AnalysisConfig:
    """
    Complete analysis configuration.

    Example:
        config = AnalysisConfig.from_file("sbomlens.yaml")
        result = config.diff_engine().diff(old_sbom, new_sbom)
        report = config.quality_scorer().score(new_sbom)
    """

    name: str = "default"
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    compliance: ComplianceConfig = field(default_factory=ComplianceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ConfigError: If a value is out of range
        """
        self.matching.validate()
        self.logging.validate()

    def diff_engine(self) -> DiffEngine:
        """Build a DiffEngine with the configured matching settings."""
        return DiffEngine(
            threshold=self.matching.threshold,
            weights=self.matching.weights,
            match_synthetic=self.matching.match_synthetic,
        )

    def quality_scorer(self) -> QualityScorer:
        """Build a QualityScorer with the configured profile."""
        return QualityScorer(
            profile=self.scoring.profile,
            recommendation_threshold=self.scoring.recommendation_threshold,
        )

    def compliance_checkers(self) -> list[ComplianceChecker]:
        """Build one ComplianceChecker per configured standard."""
        return [ComplianceChecker(standard) for standard in self.compliance.standards]

    def configure_logging(self, output: str | TextIO = "stderr") -> None:
        """
        Apply the logging section to the "sbomlens" logger.

        Args:
            output: Output destination (stderr, stdout) or a stream
        """
        configure_logging(level=self.logging.level, format=self.logging.format, output=output)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "matching": self.matching.to_dict(),
            "scoring": self.scoring.to_dict(),
            "compliance": self.compliance.to_dict(),
            "logging": self.logging.to_dict(),
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisConfig:
        """
        Create from dictionary.

        Raises:
            ConfigError: If the data is not a mapping or holds invalid values
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")
        try:
            config = cls(
                name=data.get("name", "default"),
                matching=MatchingConfig.from_dict(data.get("matching", {})),
                scoring=ScoringConfig.from_dict(data.get("scoring", {})),
                compliance=ComplianceConfig.from_dict(data.get("compliance", {})),
                logging=LoggingConfig.from_dict(data.get("logging", {})),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
        config.validate()
        return config

    @classmethod
    def from_json(cls, json_str: str) -> AnalysisConfig:
        """Create from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON configuration: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> AnalysisConfig:
        """
        Load configuration from a JSON or YAML file.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        path = Path(path).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {path}: {e}") from e

        if path.suffix == ".json":
            return cls.from_json(text)

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML configuration in {path}: {e}") from e
        return cls.from_dict(data or {})

    def save(self, path: str | Path) -> None:
        """Save configuration to file (JSON or YAML by extension)."""
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.suffix == ".json":
            path.write_text(self.to_json(), encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(self.to_dict(), sort_keys=False), encoding="utf-8")


def _parse_profile(value: str) -> ScoringProfile:
    try:
        return ScoringProfile.from_string(value)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def _parse_standard(value: str) -> ComplianceStandard:
    try:
        return ComplianceStandard.from_string(value)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def load_config_from_env() -> AnalysisConfig:
    """
    Load configuration from environment variables.

    Environment variables:
        SBOMLENS_CONFIG_FILE: Path to configuration file
        SBOMLENS_MATCH_THRESHOLD: Fuzzy matching threshold
        SBOMLENS_SCORING_PROFILE: Scoring profile name
        SBOMLENS_STANDARDS: Comma-separated compliance standards
        SBOMLENS_LOG_LEVEL: Log level
        SBOMLENS_LOG_FORMAT: Log format (human, json)

    Returns:
        AnalysisConfig instance

    Raises:
        ConfigError: If a variable holds an invalid value
    """
    config_file = os.getenv("SBOMLENS_CONFIG_FILE")
    if config_file and os.path.exists(config_file):
        return AnalysisConfig.from_file(config_file)

    config = AnalysisConfig()

    threshold = os.getenv("SBOMLENS_MATCH_THRESHOLD")
    if threshold:
        try:
            config.matching.threshold = float(threshold)
        except ValueError as e:
            raise ConfigError(f"Invalid SBOMLENS_MATCH_THRESHOLD: {threshold}") from e

    profile = os.getenv("SBOMLENS_SCORING_PROFILE")
    if profile:
        config.scoring.profile = _parse_profile(profile)

    standards = os.getenv("SBOMLENS_STANDARDS")
    if standards:
        config.compliance.standards = [
            _parse_standard(name) for name in standards.split(",") if name.strip()
        ]

    config.logging.level = os.getenv("SBOMLENS_LOG_LEVEL", config.logging.level)
    config.logging.format = os.getenv("SBOMLENS_LOG_FORMAT", config.logging.format)

    config.validate()
    return config


def create_default_config() -> AnalysisConfig:
    """
    Create a default analysis configuration.

    Returns:
        AnalysisConfig with sensible defaults
    """
    return AnalysisConfig(
        name="default",
        matching=MatchingConfig(threshold=DEFAULT_THRESHOLD),
        scoring=ScoringConfig(profile=ScoringProfile.STANDARD),
        compliance=ComplianceConfig(
            standards=[ComplianceStandard.NTIA_MINIMUM, ComplianceStandard.CRA_PHASE_1]
        ),
        logging=LoggingConfig(),
    )
