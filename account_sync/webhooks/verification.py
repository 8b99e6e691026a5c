"""Webhook signature verification: Svix scheme, constant-time HMAC.

Security contract:
- All comparisons use hmac.compare_digest() (constant-time, no timing attacks)
- Verification failure -> 400 from the handler, payload never parsed
- Failure reason is logged here, never returned to the caller
- Timestamp tolerance: 300s (5 min) by default to prevent replay

Svix signs ``{svix-id}.{svix-timestamp}.{body}`` with HMAC-SHA256 keyed by the
base64-decoded part of the ``whsec_`` secret. The ``svix-signature`` header is a
space-separated list of ``v1,<base64 signature>`` entries (several during key
rotation).
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import time

logger = logging.getLogger(__name__)

SECRET_PREFIX = "whsec_"
DEFAULT_TOLERANCE_SECONDS = 300

# Header names (lowercase, as read from the request)
HEADER_ID = "svix-id"
HEADER_TIMESTAMP = "svix-timestamp"
HEADER_SIGNATURE = "svix-signature"


def decode_secret(secret: str) -> bytes | None:
    """Return the raw HMAC key for a ``whsec_`` secret, or None if malformed."""
    if secret.startswith(SECRET_PREFIX):
        secret = secret[len(SECRET_PREFIX):]
    try:
        return base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError):
        return None


def _compute_signature(key: bytes, msg_id: str, timestamp: str, body: bytes) -> str:
    signed_content = f"{msg_id}.{timestamp}.".encode("utf-8") + body
    digest = hmac.new(key, signed_content, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def sign(secret: str, msg_id: str, timestamp: int | str, body: bytes) -> str:
    """Produce a ``svix-signature`` header value for a payload.

    Raises:
        ValueError: if the secret is not valid base64.
    """
    key = decode_secret(secret)
    if key is None:
        raise ValueError("Webhook secret is not valid base64")
    return f"v1,{_compute_signature(key, msg_id, str(timestamp), body)}"


def verify_svix(
    secret: str,
    body: bytes,
    msg_id: str | None,
    timestamp_header: str | None,
    signature_header: str | None,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
) -> bool:
    """Verify a Svix-signed webhook.

    Args:
        secret: Shared signing secret (``whsec_...``)
        body: Raw request body bytes
        msg_id: Value of svix-id header
        timestamp_header: Value of svix-timestamp header (unix seconds)
        signature_header: Value of svix-signature header
        tolerance: Allowed clock skew in seconds, past or future

    Returns:
        True if one of the v1 signatures matches and the timestamp is fresh
    """
    if not (msg_id and timestamp_header and signature_header):
        logger.warning("Webhook verification failed: missing svix headers")
        return False

    key = decode_secret(secret)
    if key is None:
        logger.warning("Webhook verification failed: signing secret is not valid base64")
        return False

    try:
        timestamp = int(timestamp_header)
    except (ValueError, TypeError):
        logger.warning("Webhook verification failed: invalid timestamp %r", timestamp_header)
        return False

    # Replay protection
    if abs(time.time() - timestamp) > tolerance:
        logger.warning("Webhook timestamp too old/future: %s (id=%s)", timestamp, msg_id)
        return False

    candidates = []
    for entry in signature_header.split():
        version, _, sig = entry.partition(",")
        if version == "v1" and sig:
            candidates.append(sig)
    if not candidates:
        logger.warning("Webhook verification failed: no v1 signatures (id=%s)", msg_id)
        return False

    # Compare bytes: header values may carry non-ASCII (latin-1 decoded) text
    expected = _compute_signature(key, msg_id, timestamp_header, body).encode("ascii")
    if any(
        hmac.compare_digest(expected, sig.encode("utf-8", "surrogateescape"))
        for sig in candidates
    ):
        return True

    logger.warning("Webhook verification failed: signature mismatch (id=%s)", msg_id)
    return False
