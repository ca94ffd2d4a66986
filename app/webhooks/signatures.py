"""Webhook signature verification for the identity directory.

Clerk signs notifications with the Svix scheme:
- headers svix-id, svix-timestamp, svix-signature
- secret is "whsec_" + base64 key
- signature = base64(HMAC-SHA256(key, "{id}.{timestamp}.{raw body}"))
- the signature header may list several "v1,<sig>" entries (key rotation)

Payment ledger signatures are checked by the Razorpay SDK, see
app/clients/payments.py.
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time
from typing import List, Mapping, Optional

logger = logging.getLogger(__name__)

SVIX_ID_HEADER = "svix-id"
SVIX_TIMESTAMP_HEADER = "svix-timestamp"
SVIX_SIGNATURE_HEADER = "svix-signature"

_SECRET_PREFIX = "whsec_"


def _decode_secret(secret: str) -> Optional[bytes]:
    if secret.startswith(_SECRET_PREFIX):
        secret = secret[len(_SECRET_PREFIX):]
    try:
        return base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError):
        return None


def _v1_signatures(signature_header: str) -> List[str]:
    signatures = []
    for item in signature_header.split():
        version, _, value = item.partition(",")
        if version == "v1" and value:
            signatures.append(value)
    return signatures


def sign_svix(secret: str, msg_id: str, timestamp: str, body: bytes) -> str:
    """Compute the v1 signature for a message (used by tests and local tooling)"""
    key = _decode_secret(secret)
    if key is None:
        raise ValueError("Invalid webhook secret")
    signed_content = f"{msg_id}.{timestamp}.".encode("utf-8") + body
    digest = hmac.new(key, signed_content, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_svix(
    secret: Optional[str],
    body: bytes,
    headers: Mapping[str, str],
    tolerance_seconds: int = 300,
    now: Optional[float] = None,
) -> bool:
    """Verify a Svix-signed notification against the exact raw body"""
    if not secret:
        logger.warning("CLERK_WEBHOOK_SECRET not set, rejecting webhook")
        return False

    msg_id = headers.get(SVIX_ID_HEADER)
    timestamp = headers.get(SVIX_TIMESTAMP_HEADER)
    signature_header = headers.get(SVIX_SIGNATURE_HEADER)
    if not msg_id or not timestamp or not signature_header:
        return False

    try:
        ts = int(timestamp)
    except ValueError:
        return False

    current = time.time() if now is None else now
    if abs(current - ts) > tolerance_seconds:
        logger.warning("Identity webhook timestamp outside tolerance: %s", ts)
        return False

    key = _decode_secret(secret)
    if key is None:
        logger.warning("CLERK_WEBHOOK_SECRET is not valid base64, rejecting webhook")
        return False

    signed_content = f"{msg_id}.{timestamp}.".encode("utf-8") + body
    expected = base64.b64encode(hmac.new(key, signed_content, hashlib.sha256).digest()).decode("utf-8")

    return any(hmac.compare_digest(expected, sig) for sig in _v1_signatures(signature_header))
