"""
==============================================================================
Utilities Package
==============================================================================

Utility classes for the application.

Modules:
--------
- validators: Symbology normalization and payload validation

==============================================================================
"""

from .validators import PayloadValidator, SymbologyValidator

__all__ = [
    "PayloadValidator",
    "SymbologyValidator",
]
