"""
JWE decryption endpoint.
"""

import logging

from fastapi import APIRouter

from app.errors import DecryptionError, DecryptServiceError
from app.models.decrypt import DecryptRequest, DecryptResponse, ErrorResponse
from app.services.decrypt_pipeline import handle_decrypt

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/decrypt",
    response_model=DecryptResponse,
    responses={
        200: {
            "description": "Decrypted and parsed messages",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "messages": [
                            {"id": "msg-1", "text": "Hello\nworld", "type": "text"},
                            {"id": "msg-2", "caption": "Invoice", "type": "document"},
                        ],
                        "count": 2,
                    }
                }
            },
        },
        400: {"model": ErrorResponse, "description": "Missing jwe/privateKey or unusable key"},
        500: {"model": ErrorResponse, "description": "Decryption failed or JSON could not be recovered"},
    },
)
async def decrypt_messages(body: DecryptRequest) -> DecryptResponse:
    """
    Decrypt a compact JWE with the supplied private JWK and return its
    messages.

    The plaintext is expected to be a JSON array of message objects. When it
    is malformed, the recovery engine tries progressively more aggressive
    repairs before giving up. The ``text``, ``content`` and ``caption`` fields
    of each message are stripped of control characters and trimmed.

    A payload that is valid JSON but not an array is returned as-is with
    ``count`` 0.
    """
    logger.info("=== Decrypt request received ===")
    logger.info("JWE received: %s (%d chars)", bool(body.jwe), len(body.jwe or ""))
    logger.info("Private key received: %s", bool(body.private_key))

    try:
        outcome = handle_decrypt(body.jwe, body.private_key)
    except DecryptServiceError as exc:
        logger.warning(f"Decrypt request failed [{exc.kind}]: {exc.details}")
        raise
    except Exception as exc:
        logger.error(f"Unexpected error while decrypting: {exc}", exc_info=True)
        raise DecryptionError(str(exc) or type(exc).__name__) from exc

    logger.info(f"Success: {outcome.count} messages processed")
    return DecryptResponse(messages=outcome.messages, count=outcome.count)
