"""
Compliance rules.

Each rule is a plain function taking the SBOM and the standard being
checked and returning at most one Violation. Rules that examine every
component aggregate their findings: the message carries the affected
count and the element names the first offending component by canonical
id. RULES maps each standard to its fixed rule list.
"""

from __future__ import annotations

from typing import Callable, Iterable

from sbomlens.compliance.standards import ComplianceStandard
from sbomlens.compliance.violations import Violation, ViolationCategory, ViolationSeverity
from sbomlens.models.component import Component, Severity
from sbomlens.models.sbom import NormalizedSbom, SbomFormat

Rule = Callable[[NormalizedSbom, ComplianceStandard], "Violation | None"]

CRA = (ComplianceStandard.CRA_PHASE_1, ComplianceStandard.CRA_PHASE_2)
FDA = ComplianceStandard.FDA_MEDICAL_DEVICE

SECURITY_CONTACT_REFS = frozenset({"security-contact", "support", "advisories"})
CONFORMITY_REFS = frozenset({"attestation", "certification", "declaration-of-conformity"})


def is_valid_email(email: str) -> bool:
    """Basic structural email check (not full RFC 5322)."""
    if not email or " " in email:
        return False
    parts = email.split("@")
    if len(parts) != 2:
        return False
    local, domain = parts
    if not local:
        return False
    return "." in domain and not domain.startswith(".") and not domain.endswith(".")


def _component_violation(
    offenders: Iterable[Component],
    severity: ViolationSeverity,
    category: ViolationCategory,
    requirement: str,
    problem: str,
    prefix: str = "",
) -> Violation | None:
    offenders = sorted(offenders, key=lambda c: c.canonical_id)
    if not offenders:
        return None
    first = offenders[0]
    if len(offenders) == 1:
        message = f"{prefix}Component '{first.name}' {problem}"
    else:
        message = f"{prefix}{len(offenders)} components {problem} (first: '{first.name}')"
    return Violation(severity, category, requirement, message, element=first.canonical_id.value)


def _has_ref(sbom: NormalizedSbom, ref_types: frozenset[str]) -> bool:
    return any(
        ref.ref_type.lower() in ref_types for component in sbom for ref in component.external_refs
    )


# Document metadata


def creator_info(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if sbom.metadata.creators:
        return None
    severity = (
        ViolationSeverity.WARNING
        if standard is ComplianceStandard.MINIMUM
        else ViolationSeverity.ERROR
    )
    return Violation(
        severity,
        ViolationCategory.DOCUMENT_METADATA,
        "DOC-CREATOR",
        "SBOM must have creator/tool information",
    )


def serial_number(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if sbom.metadata.serial_number:
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.DOCUMENT_METADATA,
        "DOC-SERIAL",
        "SBOM should have a serial number/unique identifier",
    )


def cra_manufacturer(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if sbom.metadata.organizations:
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.DOCUMENT_METADATA,
        "CRA-13.15-MANUFACTURER",
        "[CRA Art. 13(15)] SBOM should identify the manufacturer (organization)",
    )


def cra_manufacturer_email(
    sbom: NormalizedSbom, standard: ComplianceStandard
) -> Violation | None:
    invalid = [
        creator.email
        for creator in sbom.metadata.organizations
        if creator.email is not None and not is_valid_email(creator.email)
    ]
    if not invalid:
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.DOCUMENT_METADATA,
        "CRA-13.15-CONTACT",
        f"[CRA Art. 13(15)] Manufacturer email '{invalid[0]}' appears invalid",
    )


def cra_product_name(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if sbom.metadata.name:
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.DOCUMENT_METADATA,
        "CRA-13.12-PRODUCT",
        "[CRA Art. 13(12)] SBOM should include the product name",
    )


def cra_security_contact(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    metadata = sbom.metadata
    if metadata.security_contact or metadata.vulnerability_disclosure_url:
        return None
    if _has_ref(sbom, SECURITY_CONTACT_REFS):
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.SECURITY_INFO,
        "CRA-13.6-CONTACT",
        "[CRA Art. 13(6)] SBOM should include a security contact or "
        "vulnerability disclosure reference",
    )


def cra_primary_component(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if sbom.primary_component_id is not None or len(sbom) <= 1:
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.DOCUMENT_METADATA,
        "CRA-ANNEX-I-PRIMARY",
        "[CRA Annex I] SBOM should identify the primary product component",
    )


def cra_support_end_date(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    # Raises ValueError on a malformed date; the checker reports that separately
    if sbom.metadata.parsed_support_end_date() is not None:
        return None
    return Violation(
        ViolationSeverity.INFO,
        ViolationCategory.SECURITY_INFO,
        "CRA-13.8-SUPPORT",
        "[CRA Art. 13(8)] Consider specifying a support end date for security updates",
    )


def cra_format_version(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    metadata = sbom.metadata
    version = metadata.spec_version or ""
    if metadata.format is SbomFormat.CYCLONEDX:
        format_ok = bool(version) and not version.startswith(("1.0", "1.1", "1.2", "1.3"))
    elif metadata.format is SbomFormat.SPDX:
        format_ok = version.startswith(("2.3", "3."))
    else:
        format_ok = False
    if format_ok:
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.FORMAT_SPECIFIC,
        "CRA-13.4-FORMAT",
        f"[CRA Art. 13(4)] SBOM format version {metadata.format.value} {version or '?'} "
        "may not meet machine-readable requirements; use CycloneDX 1.4+ or SPDX 2.3+",
    )


def cra_traceability(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    primary = sbom.primary_component()
    if primary is None or primary.purl or primary.cpe:
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.COMPONENT_IDENTIFICATION,
        "CRA-ANNEX-I-TRACEABILITY",
        f"[CRA Annex I, Part II] Primary component '{primary.name}' missing unique "
        "identifier (PURL/CPE) for cross-update traceability",
        element=primary.canonical_id.value,
    )


def cra_disclosure_policy(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if sbom.metadata.vulnerability_disclosure_url or _has_ref(sbom, frozenset({"advisories"})):
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.SECURITY_INFO,
        "CRA-13.7-DISCLOSURE",
        "[CRA Art. 13(7)] SBOM should reference a coordinated vulnerability "
        "disclosure policy (advisories URL or disclosure URL)",
    )


def cra_lifecycle(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if sbom.metadata.support_end_date or any(c.lifecycle is not None for c in sbom):
        return None
    return Violation(
        ViolationSeverity.INFO,
        ViolationCategory.SECURITY_INFO,
        "CRA-13.11-LIFECYCLE",
        "[CRA Art. 13(11)] Consider including component lifecycle/end-of-support information",
    )


def cra_conformity(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if _has_ref(sbom, CONFORMITY_REFS):
        return None
    return Violation(
        ViolationSeverity.INFO,
        ViolationCategory.DOCUMENT_METADATA,
        "CRA-ANNEX-VII-DOC",
        "[CRA Annex VII] Consider including a reference to the EU Declaration of Conformity",
    )


def fda_manufacturer(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if sbom.metadata.organizations:
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.DOCUMENT_METADATA,
        "FDA-MANUFACTURER",
        "FDA: SBOM should have manufacturer (organization) as creator",
    )


def fda_contact(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if any(creator.email for creator in sbom.metadata.creators):
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.DOCUMENT_METADATA,
        "FDA-CONTACT",
        "FDA: SBOM creators should include contact email",
    )


def fda_document_name(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if sbom.metadata.name:
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.DOCUMENT_METADATA,
        "FDA-DOCUMENT-NAME",
        "FDA: SBOM should have a document name/title",
    )


# Components


def component_name(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    return _component_violation(
        (c for c in sbom if not c.name.strip()),
        ViolationSeverity.ERROR,
        ViolationCategory.COMPONENT_IDENTIFICATION,
        "COMP-NAME",
        "must have a name",
    )


def component_version(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if standard is FDA:
        requirement, prefix = "FDA-VERSION", ""
    elif standard in CRA:
        requirement, prefix = "CRA-13.12-VERSION", "[CRA Art. 13(12)] "
    else:
        requirement, prefix = "NTIA-VERSION", ""
    return _component_violation(
        (c for c in sbom if not c.version),
        ViolationSeverity.ERROR,
        ViolationCategory.COMPONENT_IDENTIFICATION,
        requirement,
        "missing version",
        prefix=prefix,
    )


def component_identifier(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if standard is FDA:
        requirement, prefix = "FDA-IDENTIFIER", ""
    elif standard in CRA:
        requirement, prefix = "CRA-ANNEX-I-IDENTIFIER", "[CRA Annex I] "
    else:
        requirement, prefix = "STD-IDENTIFIER", ""
    severity = (
        ViolationSeverity.ERROR if standard is FDA or standard in CRA else ViolationSeverity.WARNING
    )
    return _component_violation(
        (c for c in sbom if not c.purl and not c.cpe),
        severity,
        ViolationCategory.COMPONENT_IDENTIFICATION,
        requirement,
        "missing unique identifier (PURL/CPE)",
        prefix=prefix,
    )


def component_supplier(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if standard is FDA:
        requirement, prefix = "FDA-SUPPLIER", ""
    elif standard in CRA:
        requirement, prefix = "CRA-13.15-SUPPLIER", "[CRA Art. 13(15)] "
    else:
        requirement, prefix = "NTIA-SUPPLIER", ""
    severity = ViolationSeverity.WARNING if standard in CRA else ViolationSeverity.ERROR
    return _component_violation(
        (c for c in sbom if not c.supplier and not c.author),
        severity,
        ViolationCategory.SUPPLIER_INFO,
        requirement,
        "missing supplier/manufacturer",
        prefix=prefix,
    )


def component_license(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    return _component_violation(
        (c for c in sbom if not c.licenses),
        ViolationSeverity.WARNING,
        ViolationCategory.LICENSE_INFO,
        "STD-LICENSE",
        "should have license information",
    )


def component_hash(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if standard is FDA:
        severity, requirement = ViolationSeverity.ERROR, "FDA-HASH"
    else:
        severity, requirement = ViolationSeverity.WARNING, "STD-HASH"
    return _component_violation(
        (c for c in sbom if not c.hashes),
        severity,
        ViolationCategory.INTEGRITY_INFO,
        requirement,
        "missing cryptographic hash",
    )


def fda_strong_hash(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    return _component_violation(
        (c for c in sbom if c.hashes and not c.has_strong_hash),
        ViolationSeverity.WARNING,
        ViolationCategory.INTEGRITY_INFO,
        "FDA-STRONG-HASH",
        "has only weak hash algorithm (use SHA-256+)",
    )


def cra_component_hash(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    return _component_violation(
        (c for c in sbom if not c.hashes),
        ViolationSeverity.INFO,
        ViolationCategory.INTEGRITY_INFO,
        "CRA-ANNEX-I-HASH",
        "missing cryptographic hash (recommended for integrity)",
        prefix="[CRA Annex I] ",
    )


# Dependencies


def dependency_relationships(
    sbom: NormalizedSbom, standard: ComplianceStandard
) -> Violation | None:
    if len(sbom) <= 1 or sbom.edges:
        return None
    if standard in CRA:
        requirement, prefix = "CRA-ANNEX-I-DEPENDENCIES", "[CRA Annex I] "
    else:
        requirement, prefix = "NTIA-DEPENDENCIES", ""
    return Violation(
        ViolationSeverity.ERROR,
        ViolationCategory.DEPENDENCY_INFO,
        requirement,
        f"{prefix}SBOM with multiple components must include dependency relationships",
    )


def cra_multiple_roots(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if len(sbom) <= 1 or sbom.primary_component_id is not None:
        return None
    with_parents = {edge.to_id for edge in sbom.edges}
    if len(sbom.ids - with_parents) <= 1:
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.DEPENDENCY_INFO,
        "CRA-ANNEX-I-ROOTS",
        "[CRA Annex I] SBOM appears to have multiple root components; identify a "
        "primary product component for top-level dependencies",
    )


# Vulnerabilities


def cra_vulnerability_metadata(
    sbom: NormalizedSbom, standard: ComplianceStandard
) -> Violation | None:
    lacking = [
        (component, vuln)
        for component, vuln in sbom.all_vulnerabilities()
        if vuln.severity is Severity.UNKNOWN and vuln.cvss_score is None
    ]
    if not lacking:
        return None
    component, vuln = lacking[0]
    if len(lacking) == 1:
        message = (
            f"[CRA Art. 13(6)] Vulnerability '{vuln.id}' in '{component.name}' "
            "lacks severity or CVSS score"
        )
    else:
        message = (
            f"[CRA Art. 13(6)] {len(lacking)} vulnerabilities lack severity or CVSS "
            f"score (first: '{vuln.id}' in '{component.name}')"
        )
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.SECURITY_INFO,
        "CRA-13.6-VULN-METADATA",
        message,
        element=component.canonical_id.value,
    )


# Format specific


def cyclonedx_version(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    version = sbom.metadata.spec_version or ""
    if sbom.metadata.format is not SbomFormat.CYCLONEDX or not version.startswith(("1.2", "1.3")):
        return None
    return Violation(
        ViolationSeverity.INFO,
        ViolationCategory.FORMAT_SPECIFIC,
        "CDX-VERSION",
        f"CycloneDX {version} is outdated, consider upgrading to 1.5+",
    )


def cyclonedx_bom_ref(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if sbom.metadata.format is not SbomFormat.CYCLONEDX:
        return None
    return _component_violation(
        (c for c in sbom if not c.format_id or c.format_id == c.name),
        ViolationSeverity.INFO,
        ViolationCategory.FORMAT_SPECIFIC,
        "CDX-BOM-REF",
        "may be missing bom-ref",
    )


def spdx_version(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    version = sbom.metadata.spec_version or ""
    if sbom.metadata.format is not SbomFormat.SPDX or version.startswith(("2.", "3.")):
        return None
    return Violation(
        ViolationSeverity.WARNING,
        ViolationCategory.FORMAT_SPECIFIC,
        "SPDX-VERSION",
        f"Unknown SPDX version: {version or '?'}",
    )


def spdx_ids(sbom: NormalizedSbom, standard: ComplianceStandard) -> Violation | None:
    if sbom.metadata.format is not SbomFormat.SPDX:
        return None
    return _component_violation(
        (c for c in sbom if not (c.format_id or "").startswith("SPDXRef-")),
        ViolationSeverity.INFO,
        ViolationCategory.FORMAT_SPECIFIC,
        "SPDX-ID",
        "has non-standard SPDXID format",
    )


FORMAT_RULES: tuple[Rule, ...] = (cyclonedx_version, cyclonedx_bom_ref, spdx_version, spdx_ids)

CRA_PHASE_1_RULES: tuple[Rule, ...] = (
    creator_info,
    cra_manufacturer,
    cra_manufacturer_email,
    cra_product_name,
    cra_security_contact,
    cra_primary_component,
    cra_support_end_date,
    cra_format_version,
    cra_traceability,
    serial_number,
    component_name,
    component_version,
    component_identifier,
    component_supplier,
    cra_component_hash,
    dependency_relationships,
    cra_multiple_roots,
)

RULES: dict[ComplianceStandard, tuple[Rule, ...]] = {
    ComplianceStandard.MINIMUM: (creator_info, component_name) + FORMAT_RULES,
    ComplianceStandard.STANDARD: (
        creator_info,
        serial_number,
        component_name,
        component_version,
        component_identifier,
        component_license,
    )
    + FORMAT_RULES,
    ComplianceStandard.NTIA_MINIMUM: (
        creator_info,
        component_name,
        component_version,
        component_supplier,
        dependency_relationships,
    )
    + FORMAT_RULES,
    ComplianceStandard.CRA_PHASE_1: CRA_PHASE_1_RULES + FORMAT_RULES,
    ComplianceStandard.CRA_PHASE_2: CRA_PHASE_1_RULES
    + (cra_disclosure_policy, cra_lifecycle, cra_conformity, cra_vulnerability_metadata)
    + FORMAT_RULES,
    ComplianceStandard.FDA_MEDICAL_DEVICE: (
        creator_info,
        fda_manufacturer,
        fda_contact,
        fda_document_name,
        serial_number,
        component_name,
        component_version,
        component_identifier,
        component_supplier,
        component_hash,
        fda_strong_hash,
        dependency_relationships,
    )
    + FORMAT_RULES,
    ComplianceStandard.COMPREHENSIVE: (
        creator_info,
        serial_number,
        component_name,
        component_version,
        component_identifier,
        component_supplier,
        component_license,
        component_hash,
        dependency_relationships,
    )
    + FORMAT_RULES,
}
