"""
Miscellaneous route handlers.

Endpoints:
- GET /health - health check with reference data status
"""

import logging

from fastapi import APIRouter, Request

from w3loot.api.shared import HealthResponse, __version__, get_reference

logger = logging.getLogger(__name__)

router = APIRouter(tags=["misc"])


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Health check endpoint."""
    reference = await get_reference(request)
    status = "ok" if reference.catalog.available and reference.allowlist.available else "degraded"
    return HealthResponse(status=status, version=__version__, reference=reference.status())
