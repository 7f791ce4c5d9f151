"""
Troubleshooting endpoints.

These decrypt the payload but skip JSON recovery entirely, so they keep
working on plaintext the recovery engine cannot parse. They are meant for
locating the bytes that break the producer's JSON.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from app.errors import DecryptServiceError
from app.models.decrypt import (
    DebugDecryptRequest,
    DebugDecryptResponse,
    DebugErrorPositionRequest,
    EchoResponse,
    ErrorPositionAnalysis,
    ErrorResponse,
)
from app.services.decrypt_pipeline import (
    analyze_error_position,
    analyze_plaintext,
    decrypt_to_text,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _debug_failure(exc: Exception) -> JSONResponse:
    details = exc.details if isinstance(exc, DecryptServiceError) else str(exc)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Debug failed", details=details).model_dump(exclude_none=True),
    )


@router.post("/test", response_model=EchoResponse)
async def echo_request(payload: Any = Body(default=None)) -> EchoResponse:
    """Echo back whether a body arrived and its serialized size."""
    serialized = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    logger.info("=== Test endpoint ===")
    logger.info("Body received: %s", serialized)
    return EchoResponse(body_size=len(serialized))


@router.post(
    "/debug-decrypt",
    response_model=DebugDecryptResponse,
    responses={500: {"model": ErrorResponse}},
)
async def debug_decrypt(body: DebugDecryptRequest):
    """
    Decrypt and describe the raw plaintext: length, first/last 100
    characters and the character codes in ``[start, end)``.
    """
    try:
        text = decrypt_to_text(body.jwe, body.private_key)
        analysis = analyze_plaintext(text, body.start, body.end)
    except Exception as exc:
        logger.error(f"Debug decrypt failed: {exc}")
        return _debug_failure(exc)

    return DebugDecryptResponse(analysis=analysis)


@router.post(
    "/debug-error-position",
    response_model=ErrorPositionAnalysis,
    responses={500: {"model": ErrorResponse}},
)
async def debug_error_position(body: DebugErrorPositionRequest):
    """
    Decrypt and break down the text around ``errorPosition`` (default 6801):
    ±200 characters of context, per-character codes for ±10 characters and
    a ±50 character window of the surrounding JSON.
    """
    try:
        text = decrypt_to_text(body.jwe, body.private_key)
        analysis = analyze_error_position(text, body.error_position)
    except Exception as exc:
        logger.error(f"Debug error-position failed: {exc}")
        return _debug_failure(exc)

    return analysis
