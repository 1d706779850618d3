"""
Unit tests for analysis configuration.

Tests cover:
- Section defaults and dictionary conversion
- Loading from JSON and YAML files
- Loading from environment variables
- Validation errors
- Building engines from configuration
- Applying the logging section
"""

from __future__ import annotations

import io
import json
import logging

import pytest

from sbomlens.compliance import ComplianceStandard
from sbomlens.config import (
    AnalysisConfig,
    ComplianceConfig,
    ConfigError,
    LoggingConfig,
    MatchingConfig,
    ScoringConfig,
    create_default_config,
    load_config_from_env,
)
from sbomlens.diffing import DEFAULT_THRESHOLD, MatchWeights
from sbomlens.quality import ScoringProfile


ENV_VARS = (
    "SBOMLENS_CONFIG_FILE",
    "SBOMLENS_MATCH_THRESHOLD",
    "SBOMLENS_SCORING_PROFILE",
    "SBOMLENS_STANDARDS",
    "SBOMLENS_LOG_LEVEL",
    "SBOMLENS_LOG_FORMAT",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove sbomlens variables from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# =============================================================================
# Section Tests
# =============================================================================


class TestMatchingConfig:
    """Tests for MatchingConfig."""

    def test_defaults(self):
        """Test default matching settings."""
        config = MatchingConfig()
        assert config.threshold == DEFAULT_THRESHOLD == 0.85
        assert config.weights == MatchWeights(0.6, 0.2, 0.2)
        assert config.match_synthetic is False

    def test_from_dict(self):
        """Test creation from a dictionary."""
        config = MatchingConfig.from_dict(
            {"threshold": 0.7, "weights": {"name": 0.8, "ecosystem": 0.1, "version": 0.1}}
        )
        assert config.threshold == 0.7
        assert config.weights.name == 0.8

    def test_invalid_weights(self):
        """Test weights that do not sum to 1 are rejected."""
        with pytest.raises(ConfigError, match="sum to 1.0"):
            MatchingConfig.from_dict({"weights": {"name": 0.9}})

    def test_validate_threshold(self):
        """Test out-of-range thresholds are rejected."""
        with pytest.raises(ConfigError):
            MatchingConfig(threshold=1.1).validate()


class TestScoringConfig:
    """Tests for ScoringConfig."""

    def test_from_dict(self):
        """Test profile spellings are accepted."""
        config = ScoringConfig.from_dict({"profile": "license-compliance"})
        assert config.profile == ScoringProfile.LICENSE_COMPLIANCE

    def test_unknown_profile(self):
        """Test unknown profiles raise ConfigError."""
        with pytest.raises(ConfigError, match="Unknown scoring profile"):
            ScoringConfig.from_dict({"profile": "strict"})


class TestComplianceConfig:
    """Tests for ComplianceConfig."""

    def test_defaults(self):
        """Test NTIA is checked by default."""
        assert ComplianceConfig().standards == [ComplianceStandard.NTIA_MINIMUM]

    def test_from_dict_aliases(self):
        """Test standard aliases are accepted."""
        config = ComplianceConfig.from_dict({"standards": ["ntia", "cra1", "fda"]})
        assert config.standards == [
            ComplianceStandard.NTIA_MINIMUM,
            ComplianceStandard.CRA_PHASE_1,
            ComplianceStandard.FDA_MEDICAL_DEVICE,
        ]

    def test_unknown_standard(self):
        """Test unknown standards raise ConfigError."""
        with pytest.raises(ConfigError):
            ComplianceConfig.from_dict({"standards": ["iso-5230"]})


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_defaults(self):
        """Test default logging settings."""
        config = LoggingConfig()
        assert config.level == "WARNING"
        assert config.format == "human"
        config.validate()

    @pytest.mark.parametrize(
        "level,fmt",
        [("LOUD", "human"), ("INFO", "xml")],
    )
    def test_invalid(self, level, fmt):
        """Test unknown levels and formats are rejected."""
        with pytest.raises(ConfigError):
            LoggingConfig(level=level, format=fmt).validate()


# =============================================================================
# AnalysisConfig Tests
# =============================================================================


class TestAnalysisConfig:
    """Tests for AnalysisConfig."""

    def test_to_dict(self):
        """Test dictionary conversion."""
        data = AnalysisConfig().to_dict()
        assert data["name"] == "default"
        assert data["matching"]["threshold"] == 0.85
        assert data["scoring"]["profile"] == "standard"
        assert data["compliance"]["standards"] == ["ntia_minimum"]
        assert data["logging"] == {"level": "WARNING", "format": "human"}

    def test_from_dict_empty(self):
        """Test an empty mapping gives the defaults."""
        assert AnalysisConfig.from_dict({}).to_dict() == AnalysisConfig().to_dict()

    def test_from_dict_not_mapping(self):
        """Test non-mapping data is rejected."""
        with pytest.raises(ConfigError, match="must be a mapping"):
            AnalysisConfig.from_dict(["threshold", 0.9])

    def test_from_dict_bad_threshold_type(self):
        """Test non-numeric thresholds are rejected."""
        with pytest.raises(ConfigError, match="Invalid configuration"):
            AnalysisConfig.from_dict({"matching": {"threshold": "high"}})

    def test_from_dict_threshold_out_of_range(self):
        """Test thresholds outside [0, 1] are rejected."""
        with pytest.raises(ConfigError):
            AnalysisConfig.from_dict({"matching": {"threshold": 2}})

    def test_from_json(self):
        """Test JSON parsing."""
        data = {"name": "ci", "matching": {"threshold": 0.9}}
        config = AnalysisConfig.from_json(json.dumps(data))
        assert config.name == "ci"
        assert config.matching.threshold == 0.9

    def test_from_json_invalid(self):
        """Test malformed JSON raises ConfigError."""
        with pytest.raises(ConfigError, match="Invalid JSON"):
            AnalysisConfig.from_json("{not json")

    def test_from_yaml_file(self, tmp_path):
        """Test loading a YAML file."""
        path = tmp_path / "sbomlens.yaml"
        path.write_text(
            "name: release\n"
            "matching:\n"
            "  threshold: 0.75\n"
            "scoring:\n"
            "  profile: security\n"
            "compliance:\n"
            "  standards: [ntia, cra]\n"
            "logging:\n"
            "  level: DEBUG\n"
            "  format: json\n"
        )
        config = AnalysisConfig.from_file(path)
        assert config.name == "release"
        assert config.matching.threshold == 0.75
        assert config.scoring.profile == ScoringProfile.SECURITY
        assert config.compliance.standards == [
            ComplianceStandard.NTIA_MINIMUM,
            ComplianceStandard.CRA_PHASE_2,
        ]
        assert config.logging.format == "json"

    def test_empty_yaml_file(self, tmp_path):
        """Test an empty YAML file gives the defaults."""
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert AnalysisConfig.from_file(path).name == "default"

    def test_invalid_yaml_file(self, tmp_path):
        """Test malformed YAML raises ConfigError."""
        path = tmp_path / "bad.yaml"
        path.write_text("matching: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            AnalysisConfig.from_file(path)

    def test_missing_file(self, tmp_path):
        """Test a missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="Cannot read"):
            AnalysisConfig.from_file(tmp_path / "missing.yaml")

    @pytest.mark.parametrize("filename", ["config.json", "config.yaml"])
    def test_save_and_load(self, tmp_path, filename):
        """Test saving and reloading a configuration."""
        config = create_default_config()
        config.matching.threshold = 0.9
        path = tmp_path / "nested" / filename
        config.save(path)
        assert AnalysisConfig.from_file(path).to_dict() == config.to_dict()

    def test_diff_engine(self):
        """Test the engine takes the configured matching settings."""
        config = AnalysisConfig(matching=MatchingConfig(threshold=0.6, match_synthetic=True))
        engine = config.diff_engine()
        assert engine.matcher.threshold == 0.6
        assert engine.matcher.match_synthetic is True

    def test_quality_scorer(self):
        """Test the scorer takes the configured profile."""
        config = AnalysisConfig(scoring=ScoringConfig(profile=ScoringProfile.CRA))
        assert config.quality_scorer().profile == ScoringProfile.CRA

    def test_compliance_checkers(self):
        """Test one checker is built per standard."""
        checkers = create_default_config().compliance_checkers()
        assert [c.standard for c in checkers] == [
            ComplianceStandard.NTIA_MINIMUM,
            ComplianceStandard.CRA_PHASE_1,
        ]

    def test_configure_logging(self, restore_logging):
        """Test the logging section is applied to the package logger."""
        config = AnalysisConfig(logging=LoggingConfig(level="INFO", format="json"))
        stream = io.StringIO()
        config.configure_logging(output=stream)
        assert restore_logging.level == logging.INFO

        logging.getLogger("sbomlens.config").info("configured")
        assert json.loads(stream.getvalue().strip())["message"] == "configured"

        logging.getLogger("sbomlens.config").debug("hidden")
        assert len(stream.getvalue().strip().splitlines()) == 1

    def test_default_config(self):
        """Test the default configuration factory."""
        config = create_default_config()
        assert config.compliance.standards == [
            ComplianceStandard.NTIA_MINIMUM,
            ComplianceStandard.CRA_PHASE_1,
        ]


# =============================================================================
# Environment Tests
# =============================================================================


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env."""

    def test_defaults(self, clean_env):
        """Test no variables gives the defaults."""
        assert load_config_from_env().to_dict() == AnalysisConfig().to_dict()

    def test_variables(self, clean_env):
        """Test each variable is applied."""
        clean_env.setenv("SBOMLENS_MATCH_THRESHOLD", "0.7")
        clean_env.setenv("SBOMLENS_SCORING_PROFILE", "comprehensive")
        clean_env.setenv("SBOMLENS_STANDARDS", "ntia, fda,")
        clean_env.setenv("SBOMLENS_LOG_LEVEL", "INFO")
        clean_env.setenv("SBOMLENS_LOG_FORMAT", "json")

        config = load_config_from_env()
        assert config.matching.threshold == 0.7
        assert config.scoring.profile == ScoringProfile.COMPREHENSIVE
        assert config.compliance.standards == [
            ComplianceStandard.NTIA_MINIMUM,
            ComplianceStandard.FDA_MEDICAL_DEVICE,
        ]
        assert config.logging.level == "INFO"
        assert config.logging.format == "json"

    def test_config_file(self, clean_env, tmp_path):
        """Test a configuration file takes precedence."""
        path = tmp_path / "sbomlens.json"
        path.write_text(json.dumps({"name": "from-file"}))
        clean_env.setenv("SBOMLENS_CONFIG_FILE", str(path))
        clean_env.setenv("SBOMLENS_MATCH_THRESHOLD", "0.1")
        config = load_config_from_env()
        assert config.name == "from-file"
        assert config.matching.threshold == 0.85

    def test_invalid_threshold(self, clean_env):
        """Test a non-numeric threshold raises ConfigError."""
        clean_env.setenv("SBOMLENS_MATCH_THRESHOLD", "high")
        with pytest.raises(ConfigError, match="SBOMLENS_MATCH_THRESHOLD"):
            load_config_from_env()

    def test_out_of_range_threshold(self, clean_env):
        """Test an out-of-range threshold fails validation."""
        clean_env.setenv("SBOMLENS_MATCH_THRESHOLD", "1.5")
        with pytest.raises(ConfigError):
            load_config_from_env()

    def test_invalid_format(self, clean_env):
        """Test an unknown log format fails validation."""
        clean_env.setenv("SBOMLENS_LOG_FORMAT", "xml")
        with pytest.raises(ConfigError, match="Unknown log format"):
            load_config_from_env()
