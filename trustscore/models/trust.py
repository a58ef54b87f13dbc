from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class VerificationLevel(str, Enum):
    NONE = "none"
    BASIC = "basic"
    ADVANCED = "advanced"
    PREMIUM = "premium"


class TrustLevel(str, Enum):
    """Qualitative trust bands, in ascending order."""

    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"


class TrustTrend(str, Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TrustFactors(BaseModel):
    """Raw inputs for one trust score computation.

    Supplied by the profile store. Types are checked and non-finite
    numbers rejected; ranges are not checked.
    """

    successful_transactions: int = Field(alias="successfulTransactions")
    feedback_quality: float = Field(alias="feedbackQuality")
    report_history: int = Field(alias="reportHistory")
    time_in_community: float = Field(alias="timeInCommunity")
    verification_level: VerificationLevel = Field(alias="verificationLevel")
    vouch_count: int = Field(alias="vouchCount")
    devouch_count: int = Field(alias="devouchCount")
    ai_risk_score: float | None = Field(default=None, alias="aiRiskScore")

    model_config = {"populate_by_name": True, "frozen": True, "allow_inf_nan": False}


class RiskAssessment(BaseModel):
    level: RiskLevel
    reasons: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class TrustScore(BaseModel):
    """Snapshot produced by the scoring engine. Never mutated in place."""

    score: int
    level: TrustLevel
    factors: TrustFactors
    last_updated: datetime = Field(serialization_alias="lastUpdated")
    next_update: datetime = Field(serialization_alias="nextUpdate")
    trend: TrustTrend
    risk_assessment: RiskAssessment = Field(serialization_alias="riskAssessment")

    model_config = {"populate_by_name": True, "frozen": True}


class FactorUpdateRequest(BaseModel):
    """API request body for recomputing from a partial factor update."""

    factors: TrustFactors | None = None
    updates: dict[str, int | float | str | None] = Field(default_factory=dict)
    previous_score: int | None = Field(default=None, alias="previousScore", ge=0, le=100)

    model_config = {"populate_by_name": True}


class DueCheckRequest(BaseModel):
    last_update: datetime = Field(alias="lastUpdate")

    model_config = {"populate_by_name": True}


class DueCheckResponse(BaseModel):
    due: bool
    next_update: datetime = Field(serialization_alias="nextUpdate")

    model_config = {"populate_by_name": True}


class InsurableLevelsResponse(BaseModel):
    levels: list[TrustLevel]


class InsurabilityResponse(BaseModel):
    level: TrustLevel
    insurable: bool
