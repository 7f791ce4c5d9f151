"""
Error taxonomy for the decrypt pipeline.

Every failure the service reports is one of these exceptions. Each carries
the HTTP status and the stable ``error`` label it is rendered with, so the
exception handler in app.main can build the response without knowing which
stage failed.
"""

from typing import Any, Dict, Optional


class DecryptServiceError(Exception):
    """Base class for failures surfaced to the caller."""

    status_code: int = 500
    error: str = "Decryption failed"

    def __init__(self, details: str):
        super().__init__(details)
        self.details = details

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_response(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "details": self.details,
            "type": self.kind,
        }


class MissingInput(DecryptServiceError):
    """Request body lacks jwe or privateKey."""

    status_code = 400
    error = "Missing jwe or privateKey"


class KeyImportError(DecryptServiceError):
    """The JWK could not be turned into a key for its algorithm."""

    status_code = 400
    error = "Key import failed"


class DecryptionError(DecryptServiceError):
    """Ciphertext/key mismatch, tampering, or a malformed compact JWE."""

    status_code = 500
    error = "Decryption failed"


class JsonRecoveryFailed(DecryptServiceError):
    """
    Every recovery strategy failed on the decrypted plaintext.

    ``failure`` is the ParseFailure from app.services.json_recovery; its
    offset and sample are added to the response so an operator can find
    the broken spot in the producer's output.
    """

    status_code = 500
    error = "JSON Parse Failed"
    suggestion = "The decrypted data contains invalid JSON. Check logs for details."

    def __init__(self, details: str, failure: Optional[Any] = None):
        super().__init__(details)
        self.failure = failure

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        if self.failure is not None:
            body["position"] = self.failure.position
            body["sample"] = self.failure.window.sample
            if self.failure.char_code is not None:
                body["charCode"] = self.failure.char_code
        body["suggestion"] = self.suggestion
        return body
