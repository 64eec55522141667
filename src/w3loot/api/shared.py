"""
Shared utilities for the w3loot API.

Contains upload limits, rate limiting, the reference data accessor and the
request/response models used across route modules.
"""

import logging
import os
from typing import Any

from fastapi import Request
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from w3loot import __version__
from w3loot.core.config import get_config
from w3loot.infra.reference import ReferenceData, load_reference_data

logger = logging.getLogger(__name__)

# =============================================================================
# Upload Limits
# =============================================================================

MAX_FILE_SIZE_MB = get_config().server.max_file_size_mb
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024
ALLOWED_EXTENSIONS = tuple(ext.lower() for ext in get_config().server.allowed_extensions)

# =============================================================================
# Reference Data Accessor
# =============================================================================


async def get_reference(request: Request) -> ReferenceData:
    """
    Return the reference data loaded by the lifespan handler.

    Falls back to loading it on first use when the app was started without
    running the lifespan (e.g. a bare TestClient).
    """
    reference = getattr(request.app.state, "reference", None)
    if reference is None:
        logger.warning("Reference data not loaded at startup, loading now")
        reference = await run_in_threadpool(load_reference_data)
        request.app.state.reference = reference
    return reference


# =============================================================================
# Pydantic Response Models
# =============================================================================


class HealthResponse(BaseModel):
    status: str
    version: str
    reference: dict[str, Any] = Field(..., description="Catalog and allowlist status")


class ParseResponse(BaseModel):
    """Response model for a parsed replay."""

    game_data: dict[str, Any] = Field(..., alias="gameData")
    player_data: list[dict[str, Any]] = Field(..., alias="playerData")
    chat_data: list[dict[str, Any]] = Field(..., alias="chatData")
    loots: list[dict[str, Any]]


# =============================================================================
# Rate Limiting Configuration
# =============================================================================

IS_PRODUCTION = os.getenv("PRODUCTION") == "true"

RATE_LIMIT_UPLOAD = os.getenv("RATE_LIMIT_UPLOAD", get_config().server.rate_limit_upload)
RATE_LIMIT_API = os.getenv("RATE_LIMIT_API", "120/minute")

FORCE_ENABLE = os.getenv("ENABLE_RATE_LIMITING", "").lower() == "true"
FORCE_DISABLE = os.getenv("DISABLE_RATE_LIMITING", "").lower() == "true"

SHOULD_ENABLE_RATE_LIMITING = (IS_PRODUCTION or FORCE_ENABLE) and not FORCE_DISABLE


def get_real_client_ip(request: Request) -> str:
    """
    Get real client IP from X-Forwarded-For header (for reverse proxies).
    """
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        client_ip = forwarded.split(",")[0].strip()
        if client_ip:
            return client_ip

    real_ip = request.headers.get("X-Real-IP", "")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


# Rate limiter instance (set up in __init__.py where app exists)
RATE_LIMITING_ENABLED = False
limiter = None


def rate_limit(limit_string: str):
    """Decorator for rate limiting. No-op if slowapi not available (dev only)."""
    if RATE_LIMITING_ENABLED and limiter:
        return limiter.limit(limit_string)

    def identity(func):
        return func

    return identity
