"""
Unit tests for the python-jose decryption adapter.

Tokens are produced with python-jose itself using direct symmetric
encryption ("dir" + A128GCM), so no RSA key generation is needed.
"""

import pytest
from jose import jwe
from jose.utils import base64url_encode

from app.errors import DecryptionError, KeyImportError
from app.services.jwe_adapter import ImportedKey, decrypt, import_key

SECRET = b"asecret128bitkey"  # 16 bytes -> A128GCM
OTHER_SECRET = b"anothersecretkey"


def _oct_jwk(secret: bytes = SECRET, alg: str = "dir") -> dict:
    return {"kty": "oct", "k": base64url_encode(secret).decode("ascii"), "alg": alg}


def _encrypt(plaintext: bytes, secret: bytes = SECRET, algorithm: str = "dir") -> str:
    token = jwe.encrypt(plaintext, secret, encryption="A128GCM", algorithm=algorithm)
    return token.decode("ascii") if isinstance(token, bytes) else token


# ---------------------------------------------------------------------------
# import_key
# ---------------------------------------------------------------------------

class TestImportKey:

    def test_direct_key_imported_as_raw_bytes(self):
        key = import_key(_oct_jwk(), "dir")
        assert isinstance(key, ImportedKey)
        assert key.algorithm == "dir"
        assert key.key_data == SECRET

    def test_algorithm_falls_back_to_jwk_alg(self):
        key = import_key(_oct_jwk())
        assert key.algorithm == "dir"

    def test_non_dict_rejected(self):
        with pytest.raises(KeyImportError, match="JWK object"):
            import_key("not-a-jwk", "dir")

    def test_missing_algorithm_rejected(self):
        jwk_data = _oct_jwk()
        del jwk_data["alg"]
        with pytest.raises(KeyImportError, match="no 'alg'"):
            import_key(jwk_data)

    def test_direct_requires_oct_key(self):
        with pytest.raises(KeyImportError, match="kty 'oct'"):
            import_key({"kty": "RSA", "n": "abc", "e": "AQAB"}, "dir")

    def test_invalid_direct_secret_encoding(self):
        with pytest.raises(KeyImportError, match="Invalid 'k'"):
            import_key({"kty": "oct", "k": "abcde"}, "dir")

    def test_unknown_algorithm_rejected(self):
        with pytest.raises(KeyImportError):
            import_key({"kty": "oct", "k": "abc"}, "NOT-AN-ALG")


# ---------------------------------------------------------------------------
# decrypt
# ---------------------------------------------------------------------------

class TestDecrypt:

    def test_round_trip(self):
        plaintext = '[{"text":"olá\nmundo"}]'.encode("utf-8")
        token = _encrypt(plaintext)

        assert decrypt(token, import_key(_oct_jwk(), "dir")) == plaintext

    def test_wrong_key_fails_integrity_check(self):
        token = _encrypt(b"[]")
        with pytest.raises(DecryptionError):
            decrypt(token, import_key(_oct_jwk(OTHER_SECRET), "dir"))

    def test_tampered_ciphertext_fails(self):
        token = _encrypt(b'[{"text":"hello"}]')
        header, encrypted_key, iv, ciphertext, tag = token.split(".")
        flipped = ("A" if ciphertext[0] != "A" else "B") + ciphertext[1:]
        tampered = ".".join([header, encrypted_key, iv, flipped, tag])

        with pytest.raises(DecryptionError):
            decrypt(tampered, import_key(_oct_jwk(), "dir"))

    def test_malformed_token(self):
        with pytest.raises(DecryptionError, match="Invalid JWE"):
            decrypt("not.a.jwe", import_key(_oct_jwk(), "dir"))

    def test_algorithm_mismatch(self):
        token = _encrypt(b"[]", algorithm="A128KW")
        with pytest.raises(DecryptionError, match="does not match"):
            decrypt(token, import_key(_oct_jwk(), "dir"))
