# Webhook body signatures (HMAC-SHA256 over the raw body).

import base64
import binascii
import hashlib
import hmac

SIGNATURE_PREFIX = "hmac-sha256="


def decode_secret(secret: str) -> bytes:
    """Webhook secrets are issued base64 encoded; fall back to raw bytes."""
    try:
        return base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError):
        return secret.encode("utf-8")


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(decode_secret(secret), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, header_value: str | None) -> bool:
    """Constant-time check of ``header_value`` (prefix optional) against the body."""
    if not header_value:
        return False
    received = header_value.strip()
    if received.startswith(SIGNATURE_PREFIX):
        received = received[len(SIGNATURE_PREFIX):]
    expected = compute_signature(secret, body)
    return hmac.compare_digest(received.lower().encode("utf-8"), expected.encode("utf-8"))
