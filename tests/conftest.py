"""
Pytest configuration and fixtures for sbomlens tests.

This module provides component and SBOM factories plus a small sample
application SBOM used across the unit tests.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable

import pytest

from sbomlens.identity import ComponentRecord, IdentityResolver
from sbomlens.models import (
    Component,
    Creator,
    CreatorType,
    DependencyEdge,
    DocumentMetadata,
    Hash,
    HashAlgorithm,
    NormalizedSbom,
    SbomFormat,
    Severity,
    VulnerabilityRef,
)

_AUTO = object()

TODAY = date(2026, 3, 1)

SHA256_DIGEST = "a" * 64


@pytest.fixture
def today() -> date:
    """Return a fixed reference day."""
    return TODAY


@pytest.fixture
def make_component() -> Callable[..., Component]:
    """
    Return a factory for resolved components.

    The purl is derived from ecosystem, name and version unless given
    explicitly (pass purl=None for a component without one).
    """

    def _make(
        name: str,
        version: str | None = "1.0.0",
        ecosystem: str = "npm",
        purl: Any = _AUTO,
        cpe: str | None = None,
        supplier: str | None = "Acme Corp",
        format_id: str | None = None,
        group: str | None = None,
        **fields: Any,
    ) -> Component:
        if purl is _AUTO:
            purl = f"pkg:{ecosystem}/{name}@{version}" if version else f"pkg:{ecosystem}/{name}"
        record = ComponentRecord(
            name=name,
            version=version,
            ecosystem=ecosystem,
            group=group,
            purl=purl,
            cpe=cpe,
            supplier=supplier,
            format_id=format_id,
        )
        fields.setdefault("licenses", ("MIT",))
        return IdentityResolver().build_component(record, **fields)

    return _make


@pytest.fixture
def make_sbom() -> Callable[..., NormalizedSbom]:
    """
    Return a factory for NormalizedSbom instances.

    Edges are given as (parent, child) component pairs.
    """

    def _make(
        components: Iterable[Component],
        edges: Iterable[tuple[Component, Component]] = (),
        metadata: DocumentMetadata | None = None,
        primary: Component | None = None,
    ) -> NormalizedSbom:
        return NormalizedSbom.build(
            components,
            edges=[DependencyEdge(a.canonical_id, b.canonical_id) for a, b in edges],
            metadata=metadata,
            primary_component_id=primary.canonical_id if primary else None,
        )

    return _make


@pytest.fixture
def full_metadata() -> DocumentMetadata:
    """Return document metadata with every optional field populated."""
    return DocumentMetadata(
        name="webapp",
        creators=(
            Creator(CreatorType.TOOL, "syft"),
            Creator(CreatorType.ORGANIZATION, "Acme Corp", "security@acme.example"),
        ),
        timestamp=datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc),
        serial_number="urn:uuid:3e671687-395b-41f5-a30f-a58921a69b79",
        format=SbomFormat.CYCLONEDX,
        spec_version="1.5",
        security_contact="security@acme.example",
        vulnerability_disclosure_url="https://acme.example/security",
        support_end_date="2030-12-31",
    )


@pytest.fixture
def strong_hash() -> Hash:
    """Return a SHA-256 hash."""
    return Hash(HashAlgorithm.SHA256, SHA256_DIGEST)


@pytest.fixture
def critical_vuln() -> VulnerabilityRef:
    """Return a critical vulnerability with full metadata."""
    return VulnerabilityRef(
        id="CVE-2026-0001",
        severity=Severity.CRITICAL,
        cvss_score=9.8,
        cwes=("CWE-79",),
        published=date(2026, 1, 1),
        fixed_version="4.18.3",
    )


@pytest.fixture
def app_components(make_component, strong_hash) -> dict[str, Component]:
    """
    Return the components of a small web application.

    webapp -> express -> body-parser, webapp -> lodash
    """
    return {
        "webapp": make_component(
            "webapp", "2.0.0", format_id="webapp-ref", hashes=(strong_hash,)
        ),
        "express": make_component(
            "express", "4.18.2", format_id="express-ref", hashes=(strong_hash,)
        ),
        "body-parser": make_component(
            "body-parser", "1.20.1", format_id="body-parser-ref", hashes=(strong_hash,)
        ),
        "lodash": make_component(
            "lodash", "4.17.21", format_id="lodash-ref", hashes=(strong_hash,)
        ),
    }


@pytest.fixture
def app_sbom(make_sbom, app_components, full_metadata) -> NormalizedSbom:
    """Return the sample application SBOM."""
    c = app_components
    return make_sbom(
        c.values(),
        edges=[
            (c["webapp"], c["express"]),
            (c["express"], c["body-parser"]),
            (c["webapp"], c["lodash"]),
        ],
        metadata=full_metadata,
        primary=c["webapp"],
    )


@pytest.fixture
def empty_sbom() -> NormalizedSbom:
    """Return an SBOM with no components."""
    return NormalizedSbom.build([])


@pytest.fixture
def restore_logging():
    """Restore the package logger configuration after a test."""
    package_logger = logging.getLogger("sbomlens")
    level = package_logger.level
    handlers = list(package_logger.handlers)
    yield package_logger
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
