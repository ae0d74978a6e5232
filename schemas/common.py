"""
schemas/common.py

- Shared schemas reused across the project (Pydantic v2)
- Contents:
  1) Error response standard: ErrorDetail, ErrorResponse
  2) School domain enums: YearLevel, Strand, Quarter, AttendanceStatus, Role
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


# =========================================================
# 1) Error response standard
# =========================================================

class ErrorDetail(BaseModel):
    """Smallest unit carrying an error code/message"""
    code: str = Field(..., description="Error code (e.g. INTERNAL_ERROR, DATA_STORE_ERROR)")
    message: str = Field(..., description="Human readable error message")

class ErrorResponse(BaseModel):
    """
    Standard error body returned by the global error handlers
    - middlewares/error_handler.py builds its responses from this schema
    """
    error: ErrorDetail
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Response generation time (UTC)"
    )
    latency_ms: Optional[int] = Field(
        default=None, ge=0, description="Request processing time (ms), filled by the timing middleware"
    )
    trace_id: Optional[str] = Field(
        default=None, description="Request trace id (copied from X-Request-ID when present)"
    )

    model_config = ConfigDict(extra="ignore")


# =========================================================
# 2) School domain enums
# =========================================================

class YearLevel(str, Enum):
    G7 = "7"
    G8 = "8"
    G9 = "9"
    G10 = "10"
    G11 = "11"
    G12 = "12"

    @property
    def is_junior_high(self) -> bool:
        return self in JUNIOR_HIGH

    @property
    def is_senior_high(self) -> bool:
        return not self.is_junior_high


JUNIOR_HIGH = frozenset({YearLevel.G7, YearLevel.G8, YearLevel.G9, YearLevel.G10})


class Strand(str, Enum):
    """Senior-high specialization tracks"""
    HUMMS = "humms"
    STEM = "stem"
    GAS = "gas"
    ABM = "abm"
    ICT = "ict"


class Quarter(str, Enum):
    Q1 = "1st"
    Q2 = "2nd"
    Q3 = "3rd"
    Q4 = "4th"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class Role(str, Enum):
    ADMIN = "admin"
    ADVISOR = "advisor"
