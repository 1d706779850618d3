"""
Compliance standards.
"""

from __future__ import annotations

from enum import Enum


class ComplianceStandard(Enum):
    """Named compliance rule sets."""

    MINIMUM = "minimum"
    STANDARD = "standard"
    NTIA_MINIMUM = "ntia_minimum"
    CRA_PHASE_1 = "cra_phase_1"
    CRA_PHASE_2 = "cra_phase_2"
    FDA_MEDICAL_DEVICE = "fda_medical_device"
    COMPREHENSIVE = "comprehensive"

    @classmethod
    def from_string(cls, value: str) -> ComplianceStandard:
        """
        Get standard from string.

        Accepts "ntia", "cra", "fda" shorthands and dashed spellings.

        Raises:
            ValueError: If the standard is unknown
        """
        normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
        normalized = STANDARD_ALIASES.get(normalized, normalized)
        for standard in cls:
            if standard.value == normalized:
                return standard
        raise ValueError(f"Unknown compliance standard: {value}")

    @property
    def display_name(self) -> str:
        return STANDARD_NAMES[self]

    @property
    def is_cra(self) -> bool:
        return self in (ComplianceStandard.CRA_PHASE_1, ComplianceStandard.CRA_PHASE_2)


STANDARD_ALIASES = {
    "ntia": "ntia_minimum",
    "cra": "cra_phase_2",
    "cra1": "cra_phase_1",
    "cra2": "cra_phase_2",
    "cra_phase1": "cra_phase_1",
    "cra_phase2": "cra_phase_2",
    "fda": "fda_medical_device",
}

STANDARD_NAMES = {
    ComplianceStandard.MINIMUM: "Minimum",
    ComplianceStandard.STANDARD: "Standard",
    ComplianceStandard.NTIA_MINIMUM: "NTIA Minimum Elements",
    ComplianceStandard.CRA_PHASE_1: "EU CRA Phase 1 (2027)",
    ComplianceStandard.CRA_PHASE_2: "EU CRA Phase 2 (2029)",
    ComplianceStandard.FDA_MEDICAL_DEVICE: "FDA Medical Device",
    ComplianceStandard.COMPREHENSIVE: "Comprehensive",
}
