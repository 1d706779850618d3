"""
SPDX license expression helpers.

Recognizes common SPDX license identifiers and validates simple SPDX
license expressions ("MIT OR Apache-2.0", "GPL-2.0-only WITH
Classpath-exception-2.0", "LicenseRef-custom"). Used by the license
quality metrics.
"""

from __future__ import annotations

import re
from enum import Enum


class LicenseCategory(Enum):
    """License category classification."""

    PERMISSIVE = "permissive"  # MIT, BSD, Apache
    WEAK_COPYLEFT = "weak_copyleft"  # LGPL, MPL
    STRONG_COPYLEFT = "strong_copyleft"  # GPL, AGPL
    PUBLIC_DOMAIN = "public_domain"  # Unlicense, CC0
    UNKNOWN = "unknown"


# Known SPDX identifiers and their category
SPDX_LICENSES: dict[str, LicenseCategory] = {
    # Permissive
    "MIT": LicenseCategory.PERMISSIVE,
    "MIT-0": LicenseCategory.PERMISSIVE,
    "Apache-1.1": LicenseCategory.PERMISSIVE,
    "Apache-2.0": LicenseCategory.PERMISSIVE,
    "BSD-1-Clause": LicenseCategory.PERMISSIVE,
    "BSD-2-Clause": LicenseCategory.PERMISSIVE,
    "BSD-3-Clause": LicenseCategory.PERMISSIVE,
    "BSD-3-Clause-Clear": LicenseCategory.PERMISSIVE,
    "0BSD": LicenseCategory.PERMISSIVE,
    "ISC": LicenseCategory.PERMISSIVE,
    "Zlib": LicenseCategory.PERMISSIVE,
    "BSL-1.0": LicenseCategory.PERMISSIVE,
    "Artistic-2.0": LicenseCategory.PERMISSIVE,
    "PSF-2.0": LicenseCategory.PERMISSIVE,
    "Python-2.0": LicenseCategory.PERMISSIVE,
    "PostgreSQL": LicenseCategory.PERMISSIVE,
    "X11": LicenseCategory.PERMISSIVE,
    "Unicode-DFS-2016": LicenseCategory.PERMISSIVE,
    "Unicode-3.0": LicenseCategory.PERMISSIVE,
    "CC-BY-3.0": LicenseCategory.PERMISSIVE,
    "CC-BY-4.0": LicenseCategory.PERMISSIVE,
    "OpenSSL": LicenseCategory.PERMISSIVE,
    "NCSA": LicenseCategory.PERMISSIVE,
    "WTFPL": LicenseCategory.PERMISSIVE,
    "BlueOak-1.0.0": LicenseCategory.PERMISSIVE,
    "Ruby": LicenseCategory.PERMISSIVE,
    # Public domain
    "Unlicense": LicenseCategory.PUBLIC_DOMAIN,
    "CC0-1.0": LicenseCategory.PUBLIC_DOMAIN,
    # Weak copyleft
    "LGPL-2.0-only": LicenseCategory.WEAK_COPYLEFT,
    "LGPL-2.0-or-later": LicenseCategory.WEAK_COPYLEFT,
    "LGPL-2.1": LicenseCategory.WEAK_COPYLEFT,
    "LGPL-2.1-only": LicenseCategory.WEAK_COPYLEFT,
    "LGPL-2.1-or-later": LicenseCategory.WEAK_COPYLEFT,
    "LGPL-3.0": LicenseCategory.WEAK_COPYLEFT,
    "LGPL-3.0-only": LicenseCategory.WEAK_COPYLEFT,
    "LGPL-3.0-or-later": LicenseCategory.WEAK_COPYLEFT,
    "MPL-1.1": LicenseCategory.WEAK_COPYLEFT,
    "MPL-2.0": LicenseCategory.WEAK_COPYLEFT,
    "EPL-1.0": LicenseCategory.WEAK_COPYLEFT,
    "EPL-2.0": LicenseCategory.WEAK_COPYLEFT,
    "CDDL-1.0": LicenseCategory.WEAK_COPYLEFT,
    "CDDL-1.1": LicenseCategory.WEAK_COPYLEFT,
    "CPL-1.0": LicenseCategory.WEAK_COPYLEFT,
    "EUPL-1.2": LicenseCategory.WEAK_COPYLEFT,
    "CC-BY-SA-4.0": LicenseCategory.WEAK_COPYLEFT,
    # Strong copyleft
    "GPL-2.0": LicenseCategory.STRONG_COPYLEFT,
    "GPL-2.0-only": LicenseCategory.STRONG_COPYLEFT,
    "GPL-2.0-or-later": LicenseCategory.STRONG_COPYLEFT,
    "GPL-3.0": LicenseCategory.STRONG_COPYLEFT,
    "GPL-3.0-only": LicenseCategory.STRONG_COPYLEFT,
    "GPL-3.0-or-later": LicenseCategory.STRONG_COPYLEFT,
    "AGPL-3.0": LicenseCategory.STRONG_COPYLEFT,
    "AGPL-3.0-only": LicenseCategory.STRONG_COPYLEFT,
    "AGPL-3.0-or-later": LicenseCategory.STRONG_COPYLEFT,
    "SSPL-1.0": LicenseCategory.STRONG_COPYLEFT,
    "OSL-3.0": LicenseCategory.STRONG_COPYLEFT,
}

SPDX_EXCEPTIONS = frozenset(
    {
        "classpath-exception-2.0",
        "llvm-exception",
        "gcc-exception-3.1",
        "autoconf-exception-3.0",
        "bison-exception-2.2",
        "openssl-exception",
        "font-exception-2.0",
    }
)

NOASSERTION_VALUES = frozenset({"NOASSERTION", "NONE"})

_OPERATORS = frozenset({"AND", "OR", "WITH"})
_TOKEN = re.compile(r"\(|\)|[^\s()]+")
_SPDX_LOOKUP = {key.lower(): key for key in SPDX_LICENSES}


def is_noassertion(expression: str) -> bool:
    """Whether a license value is NOASSERTION/NONE."""
    return expression.strip().upper() in NOASSERTION_VALUES


def _is_license_ref(token: str) -> bool:
    return token.startswith("LicenseRef-") or token.startswith("DocumentRef-")


def is_spdx_id(token: str) -> bool:
    """Whether a single token is a known SPDX id (an "or later" "+" is allowed)."""
    return _is_license_ref(token) or token.rstrip("+").lower() in _SPDX_LOOKUP


def is_spdx_expression(expression: str) -> bool:
    """
    Whether a license value is a well-formed SPDX expression.

    Operands must be known SPDX ids or LicenseRef-/DocumentRef- refs,
    joined by AND/OR, with WITH followed by a known exception.
    NOASSERTION and NONE are not considered valid declarations.
    """
    if not expression or is_noassertion(expression):
        return False

    tokens = _TOKEN.findall(expression)
    depth = 0
    expect_operand = True
    after_with = False

    for token in tokens:
        if token == "(":
            if not expect_operand:
                return False
            depth += 1
            continue
        if token == ")":
            if expect_operand or depth == 0:
                return False
            depth -= 1
            continue

        upper = token.upper()
        if upper in _OPERATORS:
            if expect_operand:
                return False
            after_with = upper == "WITH"
            expect_operand = True
            continue

        if not expect_operand:
            return False
        if after_with:
            if token.lower() not in SPDX_EXCEPTIONS and not _is_license_ref(token):
                return False
            after_with = False
        elif not is_spdx_id(token):
            return False
        expect_operand = False

    return depth == 0 and not expect_operand


def license_ids(expression: str) -> list[str]:
    """License operands of an expression, canonical-cased where known."""
    ids = []
    after_with = False
    for token in _TOKEN.findall(expression):
        upper = token.upper()
        if token in ("(", ")"):
            continue
        if upper in _OPERATORS:
            after_with = upper == "WITH"
            continue
        if after_with:
            after_with = False
            continue
        ids.append(_SPDX_LOOKUP.get(token.rstrip("+").lower(), token))
    return ids


def license_category(expression: str) -> LicenseCategory:
    """
    Most restrictive category among the operands of an expression.

    Unknown when no operand is a known SPDX id.
    """
    order = [
        LicenseCategory.STRONG_COPYLEFT,
        LicenseCategory.WEAK_COPYLEFT,
        LicenseCategory.PERMISSIVE,
        LicenseCategory.PUBLIC_DOMAIN,
    ]
    found = {SPDX_LICENSES.get(i, LicenseCategory.UNKNOWN) for i in license_ids(expression)}
    for category in order:
        if category in found:
            return category
    return LicenseCategory.UNKNOWN
