"""
Observability for sbomlens.

Structured and human-readable log formatting plus analysis event
logging.
"""

from sbomlens.observability.logging import (
    HumanReadableFormatter,
    SbomLensLogger,
    StructuredFormatter,
    configure_logging,
    get_logger,
)

__all__ = [
    "HumanReadableFormatter",
    "SbomLensLogger",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
]
