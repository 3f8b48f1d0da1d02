"""
Package initializer for edss.
"""

__version__ = "1.0.0"

# Version metadata — included in all output artifacts
ENGINE_VERSION = __version__
TABLE_VERSION = "neurostatus_kappos_v1"

from edss.scoring.engine import calculate, evaluate  # noqa: E402

__all__ = ["__version__", "ENGINE_VERSION", "TABLE_VERSION", "calculate", "evaluate"]
