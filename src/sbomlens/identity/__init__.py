"""
Component identity resolution for sbomlens.

Turns raw component records into CanonicalId keys using the
purl -> cpe -> composite -> synthetic priority chain.
"""

from sbomlens.identity.resolver import (
    ComponentRecord,
    IdentityResolver,
    ecosystem_from_purl,
    is_valid_cpe,
    is_valid_purl,
    normalize_cpe,
    normalize_purl,
    parse_purl,
    resolve_identity,
)

__all__ = [
    "ComponentRecord",
    "IdentityResolver",
    "ecosystem_from_purl",
    "is_valid_cpe",
    "is_valid_purl",
    "normalize_cpe",
    "normalize_purl",
    "parse_purl",
    "resolve_identity",
]
