"""Trust score engine: weighted factors around a neutral baseline of 50.

    raw   = 50 + transactions*0.25 + feedback*0.20 - reports*0.30
               + tenure*0.15 + verification*0.10 + vouches*0.10
    raw  *= verification multiplier (none 1.0 .. premium 1.5)
    raw  *= 1 + (1 - aiRiskScore/100) * 0.1      (only when aiRiskScore is set)
    score = round(clamp(raw, 0, 100))

Level and trend are both derived from the rounded score.
"""

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any

from trustscore.models.trust import (
    RiskAssessment,
    RiskLevel,
    TrustFactors,
    TrustLevel,
    TrustScore,
    TrustTrend,
    VerificationLevel,
)

logger = logging.getLogger(__name__)

BASELINE_SCORE = 50.0
MIN_SCORE = 0.0
MAX_SCORE = 100.0

TRANSACTION_WEIGHT = 0.25
FEEDBACK_WEIGHT = 0.20
REPORT_WEIGHT = -0.30
TENURE_WEIGHT = 0.15
VERIFICATION_WEIGHT = 0.10
VOUCH_WEIGHT = 0.10

TRANSACTION_POINTS = 2
TRANSACTION_CAP = 25
FEEDBACK_SCALE = 20
REPORT_POINTS = 10
REPORT_CAP = 30
TENURE_DAYS_PER_POINT = 30
TENURE_CAP = 15
VERIFICATION_RAW = 10
VOUCH_POINTS = 2
VOUCH_CAP = 10

VERIFICATION_MULTIPLIERS: Mapping[VerificationLevel, float] = MappingProxyType(
    {
        VerificationLevel.NONE: 1.0,
        VerificationLevel.BASIC: 1.1,
        VerificationLevel.ADVANCED: 1.25,
        VerificationLevel.PREMIUM: 1.5,
    }
)

AI_RISK_MAX_BOOST = 0.1

# Inclusive upper bound of each band, ascending.
LEVEL_BANDS: tuple[tuple[int, TrustLevel], ...] = (
    (20, TrustLevel.BRONZE),
    (40, TrustLevel.SILVER),
    (65, TrustLevel.GOLD),
    (85, TrustLevel.PLATINUM),
    (100, TrustLevel.DIAMOND),
)

TREND_INCREASING_ABOVE = 60
TREND_DECREASING_BELOW = 40

UPDATE_INTERVAL = timedelta(hours=24)

INSURABLE_LEVELS: tuple[TrustLevel, ...] = (
    TrustLevel.SILVER,
    TrustLevel.GOLD,
    TrustLevel.PLATINUM,
    TrustLevel.DIAMOND,
)

CRITICAL_AI_RISK_ABOVE = 80
HIGH_RISK_REPORTS_ABOVE = 5
MEDIUM_RISK_SCORE_BELOW = 40

DEFAULT_FACTORS = TrustFactors(
    successful_transactions=0,
    feedback_quality=0,
    report_history=0,
    time_in_community=0,
    verification_level=VerificationLevel.NONE,
    vouch_count=0,
    devouch_count=0,
)


class UnknownFactorError(ValueError):
    """Raised when a partial update names a factor that does not exist."""

    def __init__(self, name: str):
        super().__init__(f"Unknown trust factor: {name}")
        self.name = name


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def transaction_contribution(successful_transactions: int) -> float:
    return min(successful_transactions * TRANSACTION_POINTS, TRANSACTION_CAP) * TRANSACTION_WEIGHT


def feedback_contribution(feedback_quality: float) -> float:
    return (feedback_quality / 100) * FEEDBACK_SCALE * FEEDBACK_WEIGHT


def report_penalty(report_history: int) -> float:
    """Negative (or zero) contribution from reports."""
    return min(report_history * REPORT_POINTS, REPORT_CAP) * REPORT_WEIGHT


def tenure_contribution(time_in_community: float) -> float:
    """Days in community, one raw point per 30 days, capped at 15."""
    return min(time_in_community / TENURE_DAYS_PER_POINT, TENURE_CAP) * TENURE_WEIGHT


def vouch_contribution(vouch_count: int, devouch_count: int) -> float:
    balance = max(0, vouch_count - devouch_count)
    return min(balance * VOUCH_POINTS, VOUCH_CAP) * VOUCH_WEIGHT


def ai_risk_multiplier(ai_risk_score: float | None) -> float:
    """1.0 when absent or at risk 100, up to 1.1 at risk 0."""
    if ai_risk_score is None:
        return 1.0
    return 1 + (1 - ai_risk_score / 100) * AI_RISK_MAX_BOOST


def raw_trust_score(factors: TrustFactors) -> float:
    """Clamped but unrounded score. A NaN result counts as the minimum."""
    raw = BASELINE_SCORE
    raw += transaction_contribution(factors.successful_transactions)
    raw += feedback_contribution(factors.feedback_quality)
    raw += report_penalty(factors.report_history)
    raw += tenure_contribution(factors.time_in_community)
    raw += VERIFICATION_RAW * VERIFICATION_WEIGHT
    raw += vouch_contribution(factors.vouch_count, factors.devouch_count)

    raw *= VERIFICATION_MULTIPLIERS[factors.verification_level]
    raw *= ai_risk_multiplier(factors.ai_risk_score)

    # NaN compares false both ways and would slip through min/max as 100.
    if math.isnan(raw):
        return MIN_SCORE
    return max(MIN_SCORE, min(MAX_SCORE, raw))


def trust_level(score: float) -> TrustLevel:
    """Map a score in [0, 100] to its band."""
    for upper, level in LEVEL_BANDS:
        if score <= upper:
            return level
    return LEVEL_BANDS[-1][1]


def trust_trend(score: int, previous_score: int | None = None) -> TrustTrend:
    """Classify the trend of a score.

    Without a previous score this is a coarse reading of the current score
    alone: above 60 is increasing, below 40 is decreasing. With one, the
    direction of the change is reported.
    """
    if previous_score is not None:
        if score > previous_score:
            return TrustTrend.INCREASING
        if score < previous_score:
            return TrustTrend.DECREASING
        return TrustTrend.STABLE

    if score > TREND_INCREASING_ABOVE:
        return TrustTrend.INCREASING
    if score < TREND_DECREASING_BELOW:
        return TrustTrend.DECREASING
    return TrustTrend.STABLE


def assess_risk(score: int, factors: TrustFactors) -> RiskAssessment:
    """First matching rule wins: AI risk, then reports, then low score."""
    if factors.ai_risk_score is not None and factors.ai_risk_score > CRITICAL_AI_RISK_ABOVE:
        return RiskAssessment(level=RiskLevel.CRITICAL, reasons=["High AI risk score detected"])
    if factors.report_history > HIGH_RISK_REPORTS_ABOVE:
        return RiskAssessment(level=RiskLevel.HIGH, reasons=["Multiple negative reports"])
    if score < MEDIUM_RISK_SCORE_BELOW:
        return RiskAssessment(level=RiskLevel.MEDIUM, reasons=["Low trust score"])
    return RiskAssessment(level=RiskLevel.LOW)


def compute_trust_score(
    factors: TrustFactors,
    now: datetime | None = None,
    previous_score: int | None = None,
) -> TrustScore:
    """Compute a fresh TrustScore snapshot for the given factors."""
    now = _as_utc(now) if now is not None else _utcnow()

    score = _round_half_up(raw_trust_score(factors))
    level = trust_level(score)
    trend = trust_trend(score, previous_score)

    logger.debug("trust score computed: score=%d level=%s trend=%s", score, level.value, trend.value)

    return TrustScore(
        score=score,
        level=level,
        factors=factors,
        last_updated=now,
        next_update=now + UPDATE_INTERVAL,
        trend=trend,
        risk_assessment=assess_risk(score, factors),
    )


def _factor_names() -> dict[str, str]:
    names: dict[str, str] = {}
    for name, field in TrustFactors.model_fields.items():
        names[name] = name
        if field.alias:
            names[field.alias] = name
    return names


def apply_factor_updates(
    existing: TrustFactors,
    updates: Mapping[str, Any],
) -> TrustFactors:
    """Return a new TrustFactors with ``updates`` (by name or alias) applied."""
    names = _factor_names()
    data = existing.model_dump()
    for key, value in updates.items():
        if key not in names:
            raise UnknownFactorError(key)
        data[names[key]] = value
    return TrustFactors.model_validate(data)


def update_trust_score(
    updates: Mapping[str, Any],
    existing: TrustFactors | None = None,
    now: datetime | None = None,
    previous_score: int | None = None,
) -> TrustScore:
    """Recompute after a partial factor change.

    Factors not named in ``updates`` come from ``existing``, or from
    DEFAULT_FACTORS when the caller has none stored yet.
    """
    factors = apply_factor_updates(existing or DEFAULT_FACTORS, updates)
    return compute_trust_score(factors, now=now, previous_score=previous_score)


def is_update_due(last_update: datetime, now: datetime | None = None) -> bool:
    """True once at least 24h have elapsed since ``last_update``."""
    now = _as_utc(now) if now is not None else _utcnow()
    return now - _as_utc(last_update) >= UPDATE_INTERVAL


def next_update_at(last_update: datetime) -> datetime:
    return _as_utc(last_update) + UPDATE_INTERVAL


def insurable_levels() -> tuple[TrustLevel, ...]:
    """Levels eligible for platform-backed transaction guarantees."""
    return INSURABLE_LEVELS


def is_insurable(level: TrustLevel) -> bool:
    return level in INSURABLE_LEVELS
