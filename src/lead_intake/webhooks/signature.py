"""
Framer webhook signature verification.

Framer signs each submission with HMAC-SHA256 over the raw request body
followed by the submission id, and sends the result in the
``Framer-Signature`` header as ``sha256=<64 lowercase hex chars>``.
"""

import hashlib
import hmac

from loguru import logger

SIGNATURE_PREFIX = "sha256="
SIGNATURE_LENGTH = len(SIGNATURE_PREFIX) + 64

SIGNATURE_HEADER = "Framer-Signature"
SUBMISSION_ID_HEADER = "framer-webhook-submission-id"


def compute_signature(secret: str, submission_id: str, payload: bytes) -> str:
    """
    Compute the signature header value Framer would send.

    Args:
        secret: Shared webhook secret
        submission_id: Framer submission identifier
        payload: Exact request body bytes

    Returns:
        ``sha256=`` followed by the lowercase hex digest
    """
    mac = hmac.new(secret.encode("utf-8"), digestmod=hashlib.sha256)
    mac.update(payload)
    mac.update(submission_id.encode("utf-8"))
    return f"{SIGNATURE_PREFIX}{mac.hexdigest()}"


def verify_signature(
    secret: str, submission_id: str, payload: bytes, signature: str
) -> bool:
    """
    Check that a webhook was signed with the shared secret.

    The length check runs before any MAC is computed. Never raises.

    Args:
        secret: Shared webhook secret
        submission_id: Value of the submission id header
        payload: Exact request body bytes, not re-encoded
        signature: Value of the signature header

    Returns:
        True if the signature matches, False otherwise
    """
    if not isinstance(signature, str) or len(signature) != SIGNATURE_LENGTH:
        logger.warning(
            f"❌ Invalid signature length: {len(signature) if isinstance(signature, str) else 'n/a'} "
            f"(expected {SIGNATURE_LENGTH})"
        )
        return False

    if not secret:
        logger.error("❌ No webhook secret available for signature verification")
        return False

    expected = compute_signature(secret, submission_id, payload)
    is_valid = hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8"))

    logger.debug(f"🔍 Signature comparison: provided={signature[:20]}..., match={is_valid}")
    return is_valid
