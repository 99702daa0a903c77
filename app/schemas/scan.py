"""
==============================================================================
Scan Schemas Module
==============================================================================

Request and response schemas for scan records, decode events,
aggregate statistics and sync results.

==============================================================================
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# RECORD SCHEMAS
# =============================================================================

class ScanRecord(BaseModel):
    """Immutable view of a persisted scan."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    data: str
    type: str
    timestamp: int = Field(..., ge=0, description="Milliseconds since epoch")

    def to_sync_body(self) -> dict:
        """JSON body posted to the remote /codigos endpoint."""
        return {"data": self.data, "type": self.type, "timestamp": self.timestamp}


class AggregateStats(BaseModel):
    """Statistics derived from the store contents."""
    model_config = ConfigDict(frozen=True)

    total: int = Field(..., ge=0)
    by_type: Dict[str, int] = Field(default_factory=dict)
    last_scanned_at: Optional[int] = Field(default=None)

    @model_validator(mode="after")
    def check_counts(self) -> "AggregateStats":
        if any(count < 0 for count in self.by_type.values()):
            raise ValueError("Type counts cannot be negative")
        if sum(self.by_type.values()) != self.total:
            raise ValueError("Type counts must add up to total")
        return self


# =============================================================================
# DECODE EVENT SCHEMAS
# =============================================================================

class DecodeEvent(BaseModel):
    """A raw decoded payload reported by a scanning sensor."""
    data: str = Field(..., min_length=1, max_length=4096)
    type: str = Field(default="qr", min_length=1, max_length=64)
    timestamp: Optional[int] = Field(
        default=None,
        ge=0,
        description="Decode time in ms since epoch (server time if omitted)"
    )

    @field_validator("type")
    @classmethod
    def strip_type(cls, v: str) -> str:
        return v.strip()


class ScanOutcomeResponse(BaseModel):
    """Result of feeding one decode event through the scan pipeline."""
    success: bool = Field(default=True)
    decision: str
    status: str
    message: Optional[str] = None
    record: Optional[ScanRecord] = None
    stats: Optional[AggregateStats] = None


# =============================================================================
# LIST / STATS RESPONSES
# =============================================================================

class ScanListResponse(BaseModel):
    """Stored scans, most recent first."""
    success: bool = Field(default=True)
    total: int = Field(ge=0)
    scans: List[ScanRecord]


class StatsResponse(BaseModel):
    success: bool = Field(default=True)
    stats: AggregateStats


class ExistsResponse(BaseModel):
    success: bool = Field(default=True)
    data: str
    exists: bool


# =============================================================================
# SYNC RESPONSES
# =============================================================================

class SyncResponse(BaseModel):
    """Outcome of a sync attempt."""
    success: bool
    status: str
    count: int = Field(ge=0)
    message: str
