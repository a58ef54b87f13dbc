import re

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from trustscore.config import settings
from trustscore.middleware.logging import StructuredLoggingMiddleware, configure_logging
from trustscore.middleware.validation import validation_exception_handler
from trustscore.routers import health, metrics, trust

# Initialize structured logging (must be before any logger usage)
configure_logging(log_level=settings.log_level, service=settings.service_name)
logger = structlog.get_logger()

app = FastAPI(title="Trust Score API", version="0.1.0")
app.add_exception_handler(RequestValidationError, validation_exception_handler)

# Middleware stack (order matters, last added is outermost).
# Exact origins go to allow_origins; wildcard patterns
# (e.g. "http://localhost:*") become a regex.
_cors_exact: list[str] = []
_cors_patterns: list[str] = []
for _o in settings.cors_origins.split(","):
    _o = _o.strip()
    if not _o:
        continue
    if _o.endswith("*"):
        _cors_patterns.append(re.escape(_o.removesuffix("*")) + ".*")
    else:
        _cors_exact.append(_o)

_cors_regex = "|".join(_cors_patterns) if _cors_patterns else None
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_exact if _cors_exact else (["*"] if settings.cors_origins == "*" else []),
    allow_origin_regex=_cors_regex,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Origin", "Content-Type", "Accept"],
    max_age=86400,
)
app.add_middleware(StructuredLoggingMiddleware)
app.add_middleware(metrics.PrometheusMiddleware)

if settings.environment == "production" and settings.cors_origins == "*":
    logger.warning("CORS_ORIGINS is set to '*' in production")

app.include_router(health.router)
app.include_router(trust.router)
app.include_router(metrics.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "trustscore.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=(settings.environment == "development"),
    )
