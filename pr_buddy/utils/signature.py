# pr_buddy/utils/signature.py

"""GitHub webhook signature verification

GitHub signs every delivery with HMAC-SHA256 over the raw request body and
sends it as ``X-Hub-Signature-256: sha256=<hex_digest>``.
"""

from typing import Optional
import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def sign_payload(payload_body: bytes, secret: str) -> str:
    """
    Compute the X-Hub-Signature-256 header value for a body

    Args:
        payload_body: Raw request body
        secret: Shared webhook secret

    Returns:
        Signature in the form "sha256=<hex_digest>"
    """
    mac = hmac.new(secret.encode(), msg=payload_body, digestmod=hashlib.sha256)
    return f"{SIGNATURE_PREFIX}{mac.hexdigest()}"


def verify_github_signature(
    payload_body: bytes,
    signature_header: Optional[str],
    secret: str
) -> bool:
    """
    Verify GitHub webhook signature using HMAC

    Must be given the body bytes exactly as received; a re-serialized body
    will not match.

    Args:
        payload_body: Raw request body
        signature_header: X-Hub-Signature-256 header value
        secret: Shared webhook secret ("" disables verification)

    Returns:
        True if signature is valid
    """
    if not signature_header:
        return False

    if not secret:
        logger.warning("GITHUB_WEBHOOK_SECRET not set - skipping signature verification")
        return True

    expected_signature = sign_payload(payload_body, secret)

    if len(signature_header) != len(expected_signature):
        return False

    # Constant-time comparison to prevent timing attacks
    return hmac.compare_digest(signature_header.encode(), expected_signature.encode())
