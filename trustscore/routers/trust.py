import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError

from trustscore.dependencies import get_now
from trustscore.middleware.validation import error_response, validate_trust_level
from trustscore.models.trust import (
    DueCheckRequest,
    DueCheckResponse,
    FactorUpdateRequest,
    InsurabilityResponse,
    InsurableLevelsResponse,
    TrustFactors,
    TrustScore,
)
from trustscore.routers.metrics import computations_total
from trustscore.services.trust_service import (
    UnknownFactorError,
    compute_trust_score,
    insurable_levels,
    is_insurable,
    is_update_due,
    next_update_at,
    update_trust_score,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trust", tags=["trust"])


def _score_payload(result: TrustScore) -> dict:
    computations_total.labels(level=result.level.value).inc()
    return result.model_dump(by_alias=True, mode="json")


@router.post("/score")
async def compute_score(
    factors: TrustFactors,
    now: Annotated[datetime, Depends(get_now)],
    previous_score: Annotated[int | None, Query(alias="previousScore", ge=0, le=100)] = None,
):
    try:
        result = compute_trust_score(factors, now=now, previous_score=previous_score)
    except Exception:
        logger.exception("Failed to compute trust score")
        return error_response(500, "INTERNAL_ERROR", "Failed to compute trust score")

    return _score_payload(result)


@router.post("/score/update")
async def update_score(
    body: FactorUpdateRequest,
    now: Annotated[datetime, Depends(get_now)],
):
    try:
        result = update_trust_score(
            body.updates,
            existing=body.factors,
            now=now,
            previous_score=body.previous_score,
        )
    except UnknownFactorError as exc:
        return error_response(400, "INVALID_FIELD", str(exc))
    except ValidationError as exc:
        err = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in err.get("loc", ()))
        return error_response(400, "INVALID_FIELD", f"{field}: {err.get('msg', 'invalid value')}")
    except Exception:
        logger.exception("Failed to update trust score")
        return error_response(500, "INTERNAL_ERROR", "Failed to update trust score")

    return _score_payload(result)


@router.post("/due")
async def check_due(
    body: DueCheckRequest,
    now: Annotated[datetime, Depends(get_now)],
):
    resp = DueCheckResponse(
        due=is_update_due(body.last_update, now=now),
        next_update=next_update_at(body.last_update),
    )
    return resp.model_dump(by_alias=True, mode="json")


@router.get("/insurable-levels")
async def get_insurable_levels():
    resp = InsurableLevelsResponse(levels=list(insurable_levels()))
    return resp.model_dump(mode="json")


@router.get("/levels/{level}/insurable")
async def get_level_insurability(level: str):
    trust_level, err = validate_trust_level(level)
    if err:
        return error_response(400, "INVALID_FIELD", err)

    resp = InsurabilityResponse(level=trust_level, insurable=is_insurable(trust_level))
    return resp.model_dump(mode="json")
