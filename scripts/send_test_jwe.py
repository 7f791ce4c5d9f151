#!/usr/bin/env python3
"""
Dev helper: encrypt a message payload as a JWE and send it to the local
Decrypt Service.

Builds a compact JWE with python-jose, pairs it with the matching private
JWK, and POST-s {jwe, privateKey} to /decrypt (or one of the debug
endpoints).

Usage
-----
# Basic: generated sample payload (with a raw newline inside a string, so
# the recovery engine has something to repair), random 'dir' key
python scripts/send_test_jwe.py

# Send a specific plaintext file
python scripts/send_test_jwe.py --file path/to/messages.json

# Use an existing private JWK (JSON file). Its "alg" selects the key
# management algorithm; RSA keys are encrypted to their public part.
python scripts/send_test_jwe.py --jwk path/to/private_jwk.json

# Hit a debug endpoint instead
python scripts/send_test_jwe.py --endpoint debug-error-position --error-position 12

# Target a different backend URL
python scripts/send_test_jwe.py --url http://staging.example.com

Environment / .env
------------------
DECRYPT_SERVICE_URL   Default for --url (http://localhost:8000).
"""

import argparse
import json
import os
import secrets
import sys
import textwrap
from pathlib import Path

import httpx
from dotenv import load_dotenv
from jose import jwe
from jose.utils import base64url_decode, base64url_encode

# Fields that make up the private part of an RSA JWK
_RSA_PRIVATE_FIELDS = ("d", "p", "q", "dp", "dq", "qi")


# ---------------------------------------------------------------------------
# Sample payload
# ---------------------------------------------------------------------------

def _make_sample_payload() -> bytes:
    """Return a message array with a raw line break inside a string."""
    return (
        '[{"id":"msg-1","type":"text","text":"Hello,\nthis line break is not escaped"},'
        '{"id":"msg-2","type":"image","caption":"  Photo\x01 caption  "}]'
    ).encode("utf-8")


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------

def _generate_dir_jwk() -> dict:
    """Random 128-bit symmetric key for 'dir' + A128GCM."""
    secret = secrets.token_bytes(16)
    return {"kty": "oct", "k": base64url_encode(secret).decode("ascii"), "alg": "dir"}


def _encryption_key(private_jwk: dict):
    """Return what python-jose needs to encrypt for the given private JWK."""
    if private_jwk.get("alg") == "dir":
        return base64url_decode(private_jwk["k"].encode("ascii"))
    if private_jwk.get("kty") == "RSA":
        return {k: v for k, v in private_jwk.items() if k not in _RSA_PRIVATE_FIELDS}
    return private_jwk


def _encrypt(plaintext: bytes, private_jwk: dict, encryption: str) -> str:
    token = jwe.encrypt(
        plaintext,
        _encryption_key(private_jwk),
        encryption=encryption,
        algorithm=private_jwk["alg"],
    )
    return token.decode("ascii") if isinstance(token, bytes) else token


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        body = response.json()
        print(json.dumps(body, indent=2, ensure_ascii=False))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    # Locate project root (scripts/ lives one level below the root)
    script_dir = Path(__file__).resolve().parent
    project_root = script_dir.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_jwe.py",
        description=textwrap.dedent("""\
            Encrypt a payload as a JWE and send it to the Decrypt Service.
        """),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_jwe.py
              python scripts/send_test_jwe.py --file messages.json
              python scripts/send_test_jwe.py --jwk private_jwk.json
              python scripts/send_test_jwe.py --endpoint debug-decrypt
        """),
    )
    parser.add_argument(
        "--url",
        default=os.getenv("DECRYPT_SERVICE_URL", "http://localhost:8000"),
        help="Service base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--endpoint",
        default="decrypt",
        choices=["decrypt", "debug-decrypt", "debug-error-position"],
        help="Endpoint to call (default: decrypt)",
    )
    parser.add_argument(
        "--file",
        default=None,
        metavar="PATH",
        help="Plaintext file to encrypt. A sample message array is used if omitted.",
    )
    parser.add_argument(
        "--jwk",
        default=None,
        metavar="PATH",
        help="Private JWK (JSON) to use. A random 'dir' key is generated if omitted.",
    )
    parser.add_argument(
        "--enc",
        default="A128GCM",
        help="Content encryption algorithm (default: A128GCM)",
    )
    parser.add_argument(
        "--error-position",
        type=int,
        default=None,
        help="errorPosition for the debug-error-position endpoint",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the request body without sending it.",
    )

    args = parser.parse_args()

    if args.file:
        file_path = Path(args.file)
        if not file_path.exists():
            print(f"ERROR: File not found: {file_path}", file=sys.stderr)
            return 1
        plaintext = file_path.read_bytes()
        print(f"Encrypting file: {file_path} ({len(plaintext):,} bytes)")
    else:
        plaintext = _make_sample_payload()
        print(f"No --file specified; using generated sample payload ({len(plaintext)} bytes)")

    if args.jwk:
        jwk_path = Path(args.jwk)
        if not jwk_path.exists():
            print(f"ERROR: JWK file not found: {jwk_path}", file=sys.stderr)
            return 1
        private_jwk = json.loads(jwk_path.read_text())
        if not private_jwk.get("alg"):
            print("ERROR: JWK has no 'alg' field", file=sys.stderr)
            return 1
    else:
        private_jwk = _generate_dir_jwk()

    token = _encrypt(plaintext, private_jwk, args.enc)

    body = {"jwe": token, "privateKey": private_jwk}
    if args.error_position is not None:
        body["errorPosition"] = args.error_position

    endpoint = f"{args.url.rstrip('/')}/{args.endpoint}"

    print(f"\nEndpoint  : {endpoint}")
    print(f"Algorithm : {private_jwk['alg']} / {args.enc}")
    print(f"JWE       : {len(token)} chars")

    if args.dry_run:
        print("\n[DRY RUN] Body:")
        print(json.dumps(body, indent=2))
        return 0

    try:
        response = httpx.post(endpoint, json=body, timeout=30)
    except httpx.HTTPError as exc:
        print(f"\nERROR: Request failed: {exc}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
