"""
Pydantic models for the decrypt endpoints.

Field names follow the JSON the service's callers already consume
(camelCase: privateKey, errorPosition, ...); Python attributes are
snake_case with aliases.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class DecryptRequest(BaseModel):
    """
    Request body for POST /decrypt.

    Both fields are optional at the schema level so that a missing value
    is reported as MissingInput (400) by the pipeline instead of a 422.
    """
    model_config = {"extra": "ignore", "populate_by_name": True}

    jwe: Optional[str] = None
    private_key: Optional[Dict[str, Any]] = Field(default=None, alias="privateKey")


class DebugDecryptRequest(DecryptRequest):
    """Request body for POST /debug-decrypt (character range is optional)."""
    start: int = 220
    end: int = 240


class DebugErrorPositionRequest(DecryptRequest):
    """Request body for POST /debug-error-position."""
    error_position: int = Field(default=6801, alias="errorPosition")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class DecryptResponse(BaseModel):
    """Successful POST /decrypt response."""
    success: bool = True
    messages: Any
    count: int


class ErrorResponse(BaseModel):
    """
    Failure body for every endpoint.

    position, sample, charCode and suggestion are only set for JSON recovery
    failures. charCode is the code point at position, absent past the end.
    """
    error: str
    details: str
    type: Optional[str] = None
    position: Optional[int] = None
    sample: Optional[str] = None
    char_code: Optional[int] = Field(default=None, alias="charCode")
    suggestion: Optional[str] = None

    model_config = {"populate_by_name": True}


class CharacterInfo(BaseModel):
    position: int
    char: str
    code: int
    hex: str
    type: str


class DecryptAnalysis(BaseModel):
    """Plaintext overview returned by POST /debug-decrypt."""
    model_config = {"populate_by_name": True}

    length: int
    first_chars: str = Field(alias="firstChars")
    last_chars: str = Field(alias="lastChars")
    char_codes: List[CharacterInfo] = Field(default_factory=list, alias="charCodes")


class DebugDecryptResponse(BaseModel):
    success: bool = True
    analysis: DecryptAnalysis
    tip: str = "Look for characters with code < 32 or > 126 - these are the problematic ones"


class ErrorContext(BaseModel):
    before: str
    at: str
    after: str


class ErrorPositionAnalysis(BaseModel):
    """Breakdown returned by POST /debug-error-position."""
    model_config = {"populate_by_name": True}

    total_length: int = Field(alias="totalLength")
    error_position: int = Field(alias="errorPosition")
    context: ErrorContext
    character_analysis: List[CharacterInfo] = Field(default_factory=list, alias="characterAnalysis")
    json_pattern: str = Field(alias="jsonPattern")
    suggestion: str


class ServiceStatus(BaseModel):
    service: str
    status: str
    version: str
    endpoints: List[str]


class EchoResponse(BaseModel):
    """Response of POST /test."""
    model_config = {"populate_by_name": True}

    received: bool = True
    body_size: int = Field(alias="bodySize")
