"""
Decrypt Service API
FastAPI application that decrypts JWE message payloads and recovers their JSON.
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import config
from app.errors import DecryptServiceError
from app.models.decrypt import ServiceStatus
from app.routers import debug, decrypt

# Configure logging to output to console
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

ENDPOINTS = [
    "GET  / - Service status",
    "GET  /health - Health check",
    "POST /decrypt - Decrypt JWE",
    "POST /test - Request echo test",
    "POST /debug-decrypt - Detailed plaintext analysis",
    "POST /debug-error-position - Analysis around a parse error position",
]

app = FastAPI(
    title=config.SERVICE_NAME,
    description="Decrypts JWE message payloads and recovers malformed JSON",
    version=config.SERVICE_VERSION,
)

# CORS configuration: origins are resolved at startup from environment.
# Credentials cannot be combined with the "*" wildcard.
_cors_origins = config.get_cors_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=_cors_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _payload_too_large(path: str, size: str) -> JSONResponse:
    logger.warning(f"Rejected {size} body on {path}")
    return JSONResponse(
        status_code=413,
        content={
            "error": "Payload too large",
            "details": f"Request body exceeds {config.MAX_BODY_BYTES} bytes",
        },
    )


@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    """
    Reject bodies larger than MAX_BODY_BYTES with 413.

    A declared Content-Length is checked up front. Bodies sent without one
    (chunked or streamed) are read here with a running byte count and, when
    they fit, handed on to the route unchanged.
    """
    limit = config.MAX_BODY_BYTES
    content_length = request.headers.get("content-length")
    if content_length is not None:
        if content_length.isdigit() and int(content_length) > limit:
            return _payload_too_large(request.url.path, f"{content_length}-byte")
        return await call_next(request)

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            return _payload_too_large(request.url.path, f"streamed >{limit}-byte")
        chunks.append(chunk)

    # Cache the body so the route reads it instead of the exhausted stream
    request._body = b"".join(chunks)
    return await call_next(request)


@app.exception_handler(DecryptServiceError)
async def decrypt_service_error_handler(request: Request, exc: DecryptServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


# Include routers
app.include_router(decrypt.router, tags=["decrypt"])
app.include_router(debug.router, tags=["debug"])


@app.on_event("startup")
async def log_startup() -> None:
    """
    Log where the API listens and which endpoints it serves.

    The port shown is taken from the ``HOST_PORT`` environment variable so
    that Docker-mapped ports are reported correctly. Defaults to 8000.
    """
    host_port = os.getenv("HOST_PORT", "8000")
    logger.info(
        "%s running on port %s\nAvailable endpoints:\n  %s",
        config.SERVICE_NAME,
        host_port,
        "\n  ".join(ENDPOINTS),
    )


@app.get("/", response_model=ServiceStatus)
async def root():
    return ServiceStatus(
        service=config.SERVICE_NAME,
        status="running",
        version=config.SERVICE_VERSION,
        endpoints=ENDPOINTS,
    )


@app.get("/health")
async def health():
    return {"status": "ok"}
