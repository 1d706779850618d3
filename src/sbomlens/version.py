"""
Version information for sbomlens.

ENGINE_VERSION tags every analysis result so that consumers can tell
which scoring/matching rules produced it. It is a plain constant and is
passed explicitly into each result object.
"""

from __future__ import annotations

__version__ = "0.4.0"

ENGINE_VERSION = "sbomlens-engine/1.2"
