"""Standard API error responses and request validation handling."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from trustscore.models.trust import TrustLevel


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """Return a standard API error response."""
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def _describe(errors: list[dict]) -> str:
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    msg = first.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed bodies (bad types, unknown enum tokens) with 400."""
    return error_response(400, "INVALID_FIELD", _describe(exc.errors()))


def validate_trust_level(level: str) -> tuple[TrustLevel | None, str | None]:
    """Validate a trust level token. Returns (level, error_message)."""
    level = level.strip().lower() if level else ""
    if not level:
        return None, "level is required"
    try:
        return TrustLevel(level), None
    except ValueError:
        allowed = ", ".join(t.value for t in TrustLevel)
        return None, f"level must be one of: {allowed}"
