"""
Replay analysis route handlers.

Endpoints:
- POST /parse-w3g - upload a replay and return loot, chat, players and metadata
"""

import logging
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from w3loot.api.shared import (
    ALLOWED_EXTENSIONS,
    MAX_FILE_SIZE_BYTES,
    RATE_LIMIT_UPLOAD,
    ParseResponse,
    get_reference,
    rate_limit,
)
from w3loot.core.errors import AllowlistUnavailableError, ReplayDecodeError
from w3loot.pipeline.orchestrator import analyze_replay_file

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])

CHUNK_SIZE = 1024 * 1024  # 1MB chunks


async def _store_upload(file: UploadFile) -> tuple[Path, int]:
    """Write the upload to a temp file in chunks. Caller owns the returned path."""
    tmp = NamedTemporaryFile(suffix=".w3g", delete=False)
    path = Path(tmp.name)
    size = 0
    try:
        while chunk := await file.read(CHUNK_SIZE):
            size += len(chunk)
            if size > MAX_FILE_SIZE_BYTES:
                raise HTTPException(
                    status_code=413,
                    detail=f"File too large: more than {MAX_FILE_SIZE_BYTES // (1024 * 1024)}MB",
                )
            tmp.write(chunk)
        tmp.flush()
    except BaseException:
        tmp.close()
        path.unlink(missing_ok=True)
        raise
    tmp.close()
    return path, size


@router.post("/parse-w3g", response_model=ParseResponse, response_model_by_alias=True)
@rate_limit(RATE_LIMIT_UPLOAD)
async def parse_w3g(
    request: Request,
    file: UploadFile = File(...),
    username: str | None = Form(None),
) -> dict[str, Any]:
    """
    Parse an uploaded Warcraft III replay.

    Returns `{gameData, playerData, chatData, loots}`. When `username` is given,
    only loot lines of matching players are returned.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded.")

    if not file.filename.lower().endswith(ALLOWED_EXTENSIONS):
        raise HTTPException(
            status_code=400,
            detail=f"File must be a {' or '.join(ALLOWED_EXTENSIONS)} file. Got: {file.filename}",
        )

    reference = await get_reference(request)
    replay_path, size = await _store_upload(file)
    try:
        if size == 0:
            raise HTTPException(status_code=400, detail="Empty file uploaded")

        logger.info(f"Parsing upload {file.filename} ({size} bytes)")
        result = await run_in_threadpool(
            analyze_replay_file, replay_path, reference, username or None
        )
    except ReplayDecodeError as e:
        logger.warning(f"Could not decode {file.filename}: {e}")
        raise HTTPException(status_code=422, detail=f"Error parsing replay: {e}") from e
    except AllowlistUnavailableError as e:
        logger.error(f"Map allowlist unavailable: {e}")
        raise HTTPException(status_code=503, detail=f"Map allowlist unavailable: {e}") from e
    finally:
        replay_path.unlink(missing_ok=True)

    return result.to_dict()
