"""
w3loot Web API

FastAPI application for Warcraft III replay loot extraction.

This package exposes:
- app: The FastAPI application (used by uvicorn and server.py)
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from w3loot.api.shared import (
    IS_PRODUCTION,
    SHOULD_ENABLE_RATE_LIMITING,
    __version__,
    get_real_client_ip,
)
from w3loot.infra.reference import load_reference_data

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan: reference data is loaded once and shared by every request
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if getattr(app.state, "reference", None) is None:
        app.state.reference = await run_in_threadpool(load_reference_data)
        logger.info(f"Reference data loaded: {app.state.reference.status()}")
    yield


# =============================================================================
# FastAPI App Creation
# =============================================================================

app = FastAPI(
    title="w3loot API",
    description="Warcraft III replay parser - container loot, chat, players and map checks",
    version=__version__,
    lifespan=lifespan,
)
app.state.reference = None

# =============================================================================
# CORS Configuration
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================================
# GZip Middleware
# =============================================================================

app.add_middleware(GZipMiddleware, minimum_size=1000)

# =============================================================================
# Security Middleware
# =============================================================================


@app.middleware("http")
async def security_headers_middleware(request: Request, call_next) -> Response:
    """Add security headers to all responses."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if request.url.path == "/parse-w3g":
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
    return response


# =============================================================================
# Rate Limiting Setup
# =============================================================================

import w3loot.api.shared as _shared  # noqa: E402

if not SHOULD_ENABLE_RATE_LIMITING:
    _shared.RATE_LIMITING_ENABLED = False
    _shared.limiter = None
    logger.info("Rate limiting disabled (development mode)")
else:
    try:
        from slowapi import Limiter, _rate_limit_exceeded_handler
        from slowapi.errors import RateLimitExceeded

        _limiter = Limiter(key_func=get_real_client_ip)
        app.state.limiter = _limiter
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
        _shared.RATE_LIMITING_ENABLED = True
        _shared.limiter = _limiter
        logger.info(f"Rate limiting enabled (upload: {_shared.RATE_LIMIT_UPLOAD})")
    except ImportError as e:
        if IS_PRODUCTION:
            raise RuntimeError(
                "slowapi is required for rate limiting in production. "
                "Install with: pip install w3loot[ratelimit]"
            ) from e
        _shared.RATE_LIMITING_ENABLED = False
        _shared.limiter = None
        logger.warning("slowapi not installed - rate limiting DISABLED")

# =============================================================================
# Global Exception Handler
# =============================================================================


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler to prevent information disclosure."""
    logger.exception(f"Unhandled exception for {request.method} {request.url.path}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred. Please try again later.",
        },
    )


# =============================================================================
# Root
# =============================================================================

INDEX_HTML = """<!doctype html>
<html>
<head><title>w3loot</title></head>
<body>
<h1>w3loot</h1>
<form action="/parse-w3g" method="post" enctype="multipart/form-data">
  <input type="file" name="file" accept=".w3g">
  <input type="text" name="username" placeholder="Player name (optional)">
  <button type="submit">Parse replay</button>
</form>
</body>
</html>
"""


@app.get("/", response_class=HTMLResponse)
async def root() -> HTMLResponse:
    """Serve the upload form."""
    return HTMLResponse(content=INDEX_HTML, status_code=200, headers={"cache-control": "no-cache"})


# =============================================================================
# Include Route Modules
# =============================================================================

from w3loot.api.routes_analysis import router as analysis_router  # noqa: E402
from w3loot.api.routes_misc import router as misc_router  # noqa: E402

app.include_router(analysis_router)
app.include_router(misc_router)
