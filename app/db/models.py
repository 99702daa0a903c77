"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

ORM models for the local scan store.

This module defines:
- Symbology: Enum of canonical barcode/QR encoding tags
- ScannedCode: One persisted scan record

Database Schema:
---------------

    ┌─────────────────────────────────────────────────────────────────┐
    │                        scanned_codes                             │
    ├─────────────────────────────────────────────────────────────────┤
    │ seq (INTEGER, PK, AUTO INCREMENT)                               │
    │ id (VARCHAR(36), UNIQUE, NOT NULL)                              │
    │ data (TEXT, NOT NULL, INDEXED)                                  │
    │ type (VARCHAR(32), NOT NULL)                                    │
    │ timestamp (BIGINT, NOT NULL)  -- ms since epoch                 │
    └─────────────────────────────────────────────────────────────────┘

Records are written once and never updated. 'seq' only breaks ties
between records inserted within the same millisecond.

=============================================================================
"""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import BigInteger, Column, Integer, String, Text

from app.db.database import Base


# =============================================================================
# ENUMS
# =============================================================================

class Symbology(str, enum.Enum):
    """
    Canonical barcode/QR symbology tags.

    The enum inherits from str to enable JSON serialization. Records may
    still carry tags outside this list when the decoder reports one.
    """

    QR = "qr"
    CODE128 = "code128"
    DATAMATRIX = "datamatrix"
    AZTEC = "aztec"
    EAN13 = "ean13"
    EAN8 = "ean8"
    UPC_A = "upc_a"
    UPC_E = "upc_e"
    CODE39 = "code39"
    CODE93 = "code93"
    CODABAR = "codabar"
    ITF14 = "itf14"
    PDF417 = "pdf417"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def values(cls) -> list:
        """All canonical tags, in declaration order."""
        return [member.value for member in cls]


# =============================================================================
# MODELS
# =============================================================================

def generate_uuid() -> str:
    """Generate a new UUID4 string identifier."""
    return str(uuid.uuid4())


class ScannedCode(Base):
    """
    A single accepted scan, as persisted by the ScanStore.

    Attributes:
        seq: Insertion sequence (internal ordering only)
        id: Store-assigned unique identifier
        data: Raw decoded payload
        type: Symbology tag
        timestamp: Insertion time in milliseconds since epoch
    """

    __tablename__ = "scanned_codes"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), unique=True, nullable=False, default=generate_uuid)
    data = Column(Text, nullable=False, index=True)
    type = Column(String(32), nullable=False)
    timestamp = Column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return f"<ScannedCode(id={self.id!r}, type={self.type!r}, data={self.data!r})>"
