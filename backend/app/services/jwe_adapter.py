"""
JWE decryption adapter.

Thin wrapper around python-jose. Key import and compact decryption are the
library's job; this module only maps its failures onto the service's error
taxonomy (KeyImportError / DecryptionError) so the pipeline never sees a
raw JOSE exception.

Supported algorithms are whatever python-jose supports for JWE key
management: RSA1_5, RSA-OAEP, RSA-OAEP-256, the AES key wrap family and
``dir`` (symmetric ``oct`` keys).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from jose import jwe, jwk
from jose.backends.base import Key
from jose.constants import ALGORITHMS
from jose.utils import base64url_decode

from app.errors import DecryptionError, KeyImportError

logger = logging.getLogger(__name__)


@dataclass
class ImportedKey:
    """
    A JWK validated against its algorithm.

    ``key_data`` is what python-jose receives at decrypt time: the JWK dict
    itself, or the raw secret bytes for ``dir``.
    """

    algorithm: str
    key_data: Union[Dict[str, Any], bytes]
    key: Key


def _direct_key_bytes(jwk_data: Dict[str, Any]) -> bytes:
    if jwk_data.get("kty") != "oct" or not isinstance(jwk_data.get("k"), str):
        raise KeyImportError("'dir' requires a symmetric JWK with kty 'oct' and a 'k' value")
    try:
        return base64url_decode(jwk_data["k"].encode("ascii"))
    except (ValueError, UnicodeEncodeError) as exc:
        raise KeyImportError(f"Invalid 'k' value: {exc}") from exc


def import_key(jwk_data: Any, alg: Optional[str] = None) -> ImportedKey:
    """
    Import a private JWK for the given algorithm.

    Args:
        jwk_data: JWK as a dict (e.g. {"kty": "RSA", "n": ..., "d": ..., "alg": "RSA-OAEP"})
        alg: Algorithm to import for. Falls back to the JWK's own ``alg``.

    Raises:
        KeyImportError: malformed key, missing algorithm, or key/algorithm mismatch.
    """
    if not isinstance(jwk_data, dict):
        raise KeyImportError("privateKey must be a JWK object")

    algorithm = alg or jwk_data.get("alg")
    if not algorithm:
        raise KeyImportError("JWK has no 'alg' and no algorithm was given")

    key_data: Union[Dict[str, Any], bytes] = jwk_data
    if algorithm == ALGORITHMS.DIR:
        key_data = _direct_key_bytes(jwk_data)

    try:
        key = jwk.construct(key_data, algorithm)
    except Exception as exc:
        raise KeyImportError(str(exc) or type(exc).__name__) from exc

    return ImportedKey(algorithm=algorithm, key_data=key_data, key=key)


def decrypt(compact_jwe: str, key: ImportedKey) -> bytes:
    """
    Decrypt a compact-serialized JWE and return the plaintext bytes.

    Raises:
        DecryptionError: malformed token, algorithm mismatch, wrong key or
            failed integrity check.
    """
    try:
        header = jwe.get_unverified_header(compact_jwe)
    except Exception as exc:
        raise DecryptionError(f"Invalid JWE: {exc}") from exc

    header_alg = header.get("alg")
    if header_alg != key.algorithm:
        raise DecryptionError(
            f"JWE alg {header_alg!r} does not match key alg {key.algorithm!r}"
        )

    logger.debug("Decrypting JWE (alg=%s, enc=%s)", header_alg, header.get("enc"))

    try:
        plaintext = jwe.decrypt(compact_jwe, key.key_data)
    except Exception as exc:
        raise DecryptionError(str(exc) or type(exc).__name__) from exc

    if plaintext is None:
        raise DecryptionError("JWE decryption produced no plaintext")

    return plaintext
