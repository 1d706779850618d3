"""
Component identity resolution.

Maps a raw parsed component record to the CanonicalId used as the sole
matching key everywhere else. The chain is tried in order:

1. package-URL, normalized per purl type
2. CPE 2.3 formatted string, lowercased
3. composite of ecosystem, group, name and version
4. synthetic id from a hash of whatever free text is available

Invalid purl/cpe syntax degrades to the next tier. Resolution never
raises.
"""

from __future__ import annotations

import hashlib
import logging
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Iterable

from packageurl import PackageURL

from sbomlens.models.component import Component
from sbomlens.models.identifiers import CanonicalId, Ecosystem, IdSource

logger = logging.getLogger(__name__)

CPE23_PREFIX = "cpe:2.3:"
CPE23_FIELD_COUNT = 13
CPE_PARTS = ("a", "o", "h", "*", "-")

# Split on colons that are not backslash-escaped
_CPE_SPLIT = re.compile(r"(?<!\\):")
_PYPI_SEPARATORS = re.compile(r"[-_.]+")


@dataclass
class ComponentRecord:
    """
    A component as delivered by a format parser, before identity resolution.

    Only the fields that take part in identity are modelled here; anything
    else is passed through to build_component() as keyword arguments.
    """

    name: str | None = None
    version: str | None = None
    ecosystem: str | None = None
    group: str | None = None
    purl: str | None = None
    cpe: str | None = None
    format_id: str | None = None
    description: str | None = None
    supplier: str | None = None


def parse_purl(purl: str | None) -> PackageURL | None:
    """Parse a package-URL, returning None if it is not valid."""
    if not purl or not purl.strip().startswith("pkg:") or "/" not in purl:
        return None
    try:
        return PackageURL.from_string(purl.strip())
    except ValueError as e:
        logger.debug(f"Invalid package-URL {purl!r}: {e}")
        return None


def normalize_purl(purl: str | None) -> str | None:
    """
    Normalize a package-URL to its canonical text form.

    Type and namespace are lowercased, PyPI names are canonicalized
    (runs of "-", "_" and "." become "-"), and npm scopes keep a literal
    "@". Qualifiers come out sorted.

    Returns:
        Normalized purl, or None if the input is not a valid purl
    """
    parsed = parse_purl(purl)
    if parsed is None:
        return None

    purl_type = parsed.type.lower()
    namespace = parsed.namespace
    name = parsed.name

    if purl_type == "pypi":
        name = _PYPI_SEPARATORS.sub("-", name).lower()
    elif purl_type in ("npm", "github", "golang", "cargo", "gem", "nuget"):
        name = name.lower()
    if namespace and purl_type != "maven":
        namespace = namespace.lower()

    normalized = PackageURL(
        type=purl_type,
        namespace=namespace,
        name=name,
        version=parsed.version,
        qualifiers=parsed.qualifiers,
        subpath=parsed.subpath,
    ).to_string()

    if purl_type == "npm":
        normalized = normalized.replace("%40", "@")
    return normalized


def is_valid_purl(purl: str | None) -> bool:
    """Whether a package-URL is syntactically valid."""
    return parse_purl(purl) is not None


def normalize_cpe(cpe: str | None) -> str | None:
    """
    Normalize a CPE 2.3 formatted string.

    Legacy "cpe:/" URIs are not accepted.

    Returns:
        Lowercased CPE, or None if the input is not a valid CPE 2.3 string
    """
    if not cpe:
        return None
    candidate = cpe.strip().lower()
    if not candidate.startswith(CPE23_PREFIX):
        return None

    fields = _CPE_SPLIT.split(candidate)
    if len(fields) != CPE23_FIELD_COUNT:
        return None

    part, vendor, product = fields[2], fields[3], fields[4]
    if part not in CPE_PARTS:
        return None
    if not vendor or not product or product in ("*", "-"):
        return None
    if any(field == "" for field in fields):
        return None
    return candidate


def is_valid_cpe(cpe: str | None) -> bool:
    """Whether a CPE string is a valid CPE 2.3 formatted string."""
    return normalize_cpe(cpe) is not None


def ecosystem_from_purl(purl: str | None) -> Ecosystem | None:
    """Ecosystem of a valid package-URL."""
    parsed = parse_purl(purl)
    if parsed is None:
        return None
    return Ecosystem.from_purl_type(parsed.type)


class IdentityResolver:
    """
    Resolves raw component records to canonical ids.

    The resolver owns the synthetic-id disambiguation counter, so ids
    produced by one resolver instance are unique across everything it has
    resolved, and deterministic for the same sequence of inputs.
    """

    def __init__(self):
        """Initialize the resolver."""
        self._synthetic_counts: Counter[str] = Counter()

    def resolve(self, record: ComponentRecord) -> CanonicalId:
        """
        Resolve a record to a canonical id.

        Args:
            record: Raw component record

        Returns:
            CanonicalId from the most reliable tier that applies
        """
        purl = normalize_purl(record.purl)
        if purl:
            return CanonicalId(purl, IdSource.PURL)
        if record.purl:
            logger.debug(f"Falling back from invalid purl {record.purl!r}")

        cpe = normalize_cpe(record.cpe)
        if cpe:
            return CanonicalId(cpe, IdSource.CPE)
        if record.cpe:
            logger.debug(f"Falling back from invalid cpe {record.cpe!r}")

        composite = self._composite(record)
        if composite:
            return CanonicalId(composite, IdSource.COMPOSITE)

        return self._synthetic(record)

    def resolve_many(self, records: Iterable[ComponentRecord]) -> list[CanonicalId]:
        """Resolve records in order."""
        return [self.resolve(record) for record in records]

    def build_component(self, record: ComponentRecord, **fields: Any) -> Component:
        """
        Build a model Component for a record with its resolved id.

        Args:
            record: Raw component record
            **fields: Additional Component fields (licenses, hashes, ...)

        Returns:
            Component
        """
        canonical_id = self.resolve(record)
        ecosystem = ecosystem_from_purl(record.purl) or Ecosystem.from_string(
            record.ecosystem
        )
        name = (record.name or "").strip() or record.format_id or canonical_id.value
        return Component(
            canonical_id=canonical_id,
            name=name,
            version=(record.version or "").strip() or None,
            ecosystem=ecosystem,
            supplier=record.supplier,
            group=record.group,
            description=record.description,
            purl=record.purl,
            cpe=record.cpe,
            format_id=record.format_id,
            **fields,
        )

    def _composite(self, record: ComponentRecord) -> str | None:
        """Composite id: "{ecosystem}:{group/}{name}@{version}"."""
        name = (record.name or "").strip()
        if not name:
            return None

        ecosystem = Ecosystem.from_string(record.ecosystem)
        name = name.lower()
        if ecosystem is Ecosystem.PYPI:
            name = _PYPI_SEPARATORS.sub("-", name)

        group = (record.group or "").strip().lower()
        prefix = f"{group}/" if group else ""
        # An empty version still renders "@" so it never collides with a
        # concrete version of the same name.
        version = (record.version or "").strip()
        return f"{ecosystem.value}:{prefix}{name}@{version}"

    def _synthetic(self, record: ComponentRecord) -> CanonicalId:
        """Synthetic id: stable hash of free text plus a disambiguator."""
        text = "|".join(
            value.strip()
            for value in (
                record.format_id,
                record.description,
                record.supplier,
                record.version,
                record.ecosystem,
                record.group,
            )
            if value and value.strip()
        )
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]
        index = self._synthetic_counts[digest]
        self._synthetic_counts[digest] += 1
        logger.debug(f"Assigned synthetic id for record with no identifying fields: {digest}")
        return CanonicalId(f"synthetic:{digest}:{index}", IdSource.SYNTHETIC)


def resolve_identity(
    name: str | None = None,
    version: str | None = None,
    ecosystem: str | None = None,
    purl: str | None = None,
    cpe: str | None = None,
    group: str | None = None,
    resolver: IdentityResolver | None = None,
) -> CanonicalId:
    """
    Convenience function to resolve a single component identity.

    A fresh resolver is used when none is given, so synthetic ids from
    separate calls are not disambiguated against each other.
    """
    resolver = resolver or IdentityResolver()
    return resolver.resolve(
        ComponentRecord(
            name=name,
            version=version,
            ecosystem=ecosystem,
            purl=purl,
            cpe=cpe,
            group=group,
        )
    )
