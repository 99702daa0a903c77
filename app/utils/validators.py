"""
==============================================================================
Validation Utilities Module
==============================================================================

Validation classes for decode events.

This module implements:
- SymbologyValidator: Normalizes decoder symbology spellings to one tag
- PayloadValidator: Validates raw decoded payload strings

Normalization Rules for Symbologies:
-----------------------------------
- Platform prefixes are dropped ("org.iso.QRCode" -> "qrcode")
- Case, spaces, hyphens and underscores are ignored
- Known aliases map to the canonical Symbology value
- Unknown tags are kept, lowercased, so the store still logs them

==============================================================================
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

from app.db.models import Symbology


class SymbologyValidator:
    """
    Validator and normalizer for symbology tags.

    Example:
        >>> validator = SymbologyValidator()
        >>> validator.normalize("org.iso.QRCode")
        'qr'
        >>> validator.normalize("CODE_128")
        'code128'
    """

    ALIASES: Dict[str, str] = {
        "qr": Symbology.QR.value,
        "qrcode": Symbology.QR.value,
        "code128": Symbology.CODE128.value,
        "datamatrix": Symbology.DATAMATRIX.value,
        "aztec": Symbology.AZTEC.value,
        "aztecode": Symbology.AZTEC.value,
        "ean13": Symbology.EAN13.value,
        "ean8": Symbology.EAN8.value,
        "upca": Symbology.UPC_A.value,
        "upce": Symbology.UPC_E.value,
        "code39": Symbology.CODE39.value,
        "code39mod43": Symbology.CODE39.value,
        "code93": Symbology.CODE93.value,
        "codabar": Symbology.CODABAR.value,
        "itf14": Symbology.ITF14.value,
        "interleaved2of5": Symbology.ITF14.value,
        "pdf417": Symbology.PDF417.value,
    }

    MAX_LENGTH = 32

    _SEPARATORS = re.compile(r"[\s_\-]+")

    def normalize(self, symbology: str) -> str:
        """
        Map a raw symbology string to its canonical tag.

        Args:
            symbology: Tag as reported by the decoder

        Returns:
            Canonical tag, or the cleaned lowercase tag if unknown
        """
        raw = (symbology or "").strip()
        if "." in raw:
            raw = raw.rsplit(".", 1)[-1]

        key = self._SEPARATORS.sub("", raw).lower()
        if key in self.ALIASES:
            return self.ALIASES[key]

        return self._SEPARATORS.sub("_", raw.strip()).lower()

    def validate(self, symbology: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate and normalize a symbology tag.

        Returns:
            Tuple of (is_valid, normalized_tag, error_message)
        """
        if not symbology or not symbology.strip():
            return False, None, "Symbology is required"

        normalized = self.normalize(symbology)
        if not normalized:
            return False, None, "Symbology is required"

        if len(normalized) > self.MAX_LENGTH:
            return False, None, f"Symbology must be at most {self.MAX_LENGTH} characters"

        return True, normalized, None

    def is_known(self, symbology: str) -> bool:
        """Check whether the tag normalizes to a canonical Symbology."""
        return self.normalize(symbology) in Symbology.values()


class PayloadValidator:
    """
    Validator for raw decoded payloads.

    Payloads are stored verbatim; only emptiness and size are checked.
    """

    MAX_LENGTH = 4096

    def validate(self, payload: str) -> Tuple[bool, Optional[str]]:
        """
        Validate a decoded payload.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if payload is None or payload == "":
            return False, "Payload is required"

        if len(payload) > self.MAX_LENGTH:
            return False, f"Payload must be at most {self.MAX_LENGTH} characters"

        return True, None
