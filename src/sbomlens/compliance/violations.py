"""
Compliance violation types and remediation guidance.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ViolationSeverity(Enum):
    """Severity of a compliance violation."""

    ERROR = "error"  # must be fixed for compliance
    WARNING = "warning"  # should be fixed
    INFO = "info"  # recommendation

    @property
    def penalty(self) -> int:
        """Score penalty for one violation of this severity."""
        return SEVERITY_PENALTIES[self]


SEVERITY_PENALTIES = {
    ViolationSeverity.ERROR: 10,
    ViolationSeverity.WARNING: 5,
    ViolationSeverity.INFO: 1,
}


class ViolationCategory(Enum):
    """Area of the SBOM a violation concerns."""

    DOCUMENT_METADATA = "document_metadata"
    COMPONENT_IDENTIFICATION = "component_identification"
    DEPENDENCY_INFO = "dependency_info"
    LICENSE_INFO = "license_info"
    SUPPLIER_INFO = "supplier_info"
    INTEGRITY_INFO = "integrity_info"
    SECURITY_INFO = "security_info"
    FORMAT_SPECIFIC = "format_specific"


DATA_QUALITY = "DATA-QUALITY"
DEFAULT_REMEDIATION = (
    "Review the requirement and update the SBOM accordingly. Consult the "
    "text of the applicable standard for detailed guidance."
)

# Remediation guidance keyed by requirement id
REMEDIATION: dict[str, str] = {
    "DOC-CREATOR": (
        "Record the tool and organization that produced the SBOM. CycloneDX: "
        "metadata.tools and metadata.manufacturer. SPDX: creationInfo.creators."
    ),
    "DOC-SERIAL": (
        "Give the document a unique identifier. CycloneDX: serialNumber "
        "(urn:uuid). SPDX: documentNamespace."
    ),
    "COMP-NAME": "Every component must carry a name.",
    "NTIA-VERSION": (
        "Every component must have a version string. Use the actual release "
        "version (e.g. '1.2.3'), not a range or placeholder."
    ),
    "FDA-VERSION": (
        "Every component must have a version string. Use the actual release "
        "version (e.g. '1.2.3'), not a range or placeholder."
    ),
    "CRA-13.12-VERSION": (
        "Every component must have a version string. Use the actual release "
        "version (e.g. '1.2.3'), not a range or placeholder."
    ),
    "STD-IDENTIFIER": (
        "Add a PURL or CPE to each component for unique identification. "
        "PURLs are preferred (e.g. pkg:npm/lodash@4.17.21)."
    ),
    "FDA-IDENTIFIER": (
        "Add a PURL or CPE to each component for unique identification. "
        "PURLs are preferred (e.g. pkg:npm/lodash@4.17.21)."
    ),
    "CRA-ANNEX-I-IDENTIFIER": (
        "Add a PURL or CPE to each component for unique identification. "
        "PURLs are preferred (e.g. pkg:npm/lodash@4.17.21)."
    ),
    "NTIA-SUPPLIER": (
        "Name the supplier of each component. "
        "CycloneDX: component.supplier. SPDX: PackageSupplier."
    ),
    "FDA-SUPPLIER": (
        "Name the supplier of each component. "
        "CycloneDX: component.supplier. SPDX: PackageSupplier."
    ),
    "CRA-13.15-SUPPLIER": (
        "Identify the manufacturer/supplier. CycloneDX: set metadata.manufacturer "
        "or component.supplier. SPDX: set PackageSupplier."
    ),
    "STD-LICENSE": "Declare licenses using SPDX license expressions.",
    "STD-HASH": "Add cryptographic hashes (SHA-256 or stronger) to components.",
    "FDA-HASH": "Add cryptographic hashes (SHA-256 or stronger) to components.",
    "FDA-STRONG-HASH": "Replace MD5/SHA-1 digests with SHA-256 or stronger.",
    "CRA-ANNEX-I-HASH": (
        "Add cryptographic hashes (SHA-256 or stronger) to components for "
        "integrity verification."
    ),
    "NTIA-DEPENDENCIES": (
        "Add dependency relationships between components. CycloneDX: use the "
        "dependencies array. SPDX: use DEPENDS_ON relationships."
    ),
    "CRA-ANNEX-I-DEPENDENCIES": (
        "Add dependency relationships between components. CycloneDX: use the "
        "dependencies array. SPDX: use DEPENDS_ON relationships."
    ),
    "CRA-ANNEX-I-ROOTS": (
        "Identify the top-level product component. CycloneDX: set "
        "metadata.component. SPDX: use documentDescribes."
    ),
    "CRA-13.15-MANUFACTURER": (
        "Identify the manufacturer. CycloneDX: set metadata.manufacturer. "
        "SPDX: add an Organization creator."
    ),
    "CRA-13.15-CONTACT": (
        "Provide a valid contact email for the manufacturer. The email must "
        "contain an @ sign with valid local and domain parts."
    ),
    "CRA-13.12-PRODUCT": (
        "The SBOM must identify the product by name. CycloneDX: set "
        "metadata.component.name. SPDX: set the document name."
    ),
    "CRA-13.6-CONTACT": (
        "Add a security contact or vulnerability disclosure URL. CycloneDX: add "
        "an externalReference of type 'security-contact'. SPDX: add a SECURITY "
        "external reference."
    ),
    "CRA-ANNEX-I-PRIMARY": (
        "Identify the top-level product component. CycloneDX: set "
        "metadata.component. SPDX: use documentDescribes to point to the "
        "primary package."
    ),
    "CRA-13.8-SUPPORT": (
        "Specify when security updates will no longer be provided, as an ISO "
        "date (YYYY-MM-DD)."
    ),
    "CRA-13.4-FORMAT": (
        "Produce the SBOM in CycloneDX 1.4+ or SPDX 2.3+. Older format versions "
        "may not be recognized as machine-readable."
    ),
    "CRA-ANNEX-I-TRACEABILITY": (
        "The primary product component needs a stable unique identifier (PURL "
        "or CPE) that persists across software updates."
    ),
    "CRA-13.7-DISCLOSURE": (
        "Reference a coordinated vulnerability disclosure policy. CycloneDX: add "
        "an externalReference of type 'advisories'."
    ),
    "CRA-13.11-LIFECYCLE": (
        "Include lifecycle or end-of-support metadata for components."
    ),
    "CRA-ANNEX-VII-DOC": (
        "Reference the EU Declaration of Conformity. CycloneDX: add an "
        "externalReference of type 'attestation' or 'certification'."
    ),
    "CRA-13.6-VULN-METADATA": (
        "Add a severity or CVSS score to each vulnerability entry. CycloneDX: "
        "use vulnerability.ratings[].score."
    ),
    "FDA-MANUFACTURER": "Add the device manufacturer as an Organization creator.",
    "FDA-CONTACT": "Include a contact email for at least one creator.",
    "FDA-DOCUMENT-NAME": "Give the SBOM document a name or title.",
    "CDX-VERSION": "Upgrade to CycloneDX 1.5 or later.",
    "CDX-BOM-REF": "Assign a unique bom-ref to every component.",
    "SPDX-VERSION": "Use a released SPDX version (2.x or 3.x).",
    "SPDX-ID": "Use SPDXRef- prefixed identifiers for every package.",
    DATA_QUALITY: (
        "A rule could not be evaluated because a field holds malformed data. "
        "Correct the value named in the message."
    ),
}


@dataclass(frozen=True)
class Violation:
    """
    A compliance violation.

    Attributes:
        severity: Error, warning or info
        category: Area of the SBOM concerned
        requirement: Requirement id the violation is reported against
        message: Human-readable message
        element: Offending element (canonical id), if applicable
    """

    severity: ViolationSeverity
    category: ViolationCategory
    requirement: str
    message: str
    element: str | None = None

    @property
    def remediation(self) -> str:
        """Canned remediation guidance for the requirement."""
        return REMEDIATION.get(self.requirement, DEFAULT_REMEDIATION)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "severity": self.severity.value,
            "category": self.category.value,
            "requirement": self.requirement,
            "message": self.message,
            "element": self.element,
            "remediation": self.remediation,
        }
