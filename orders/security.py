"""
Webhook security utilities: HMAC-SHA256 signature verification for Shopify webhooks.
"""
import base64
import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

# Checked in order; the first one present on the request is used
SIGNATURE_HEADERS = ("X-Signature", "X-Shopify-Hmac-Sha256")


def compute_signature(request_body, secret):
    """Base64-encoded HMAC-SHA256 of ``request_body`` keyed with ``secret``."""
    digest = hmac.new(secret.encode("utf-8"), request_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_webhook_signature(request_body, signature_header, secret):
    """
    Verify the signature Shopify sends with each webhook.

    The hash must be computed over the raw request bytes exactly as received;
    a body that has been parsed and re-serialized will not match.

    Args:
        request_body: Raw request body (bytes)
        signature_header: Base64 signature from X-Signature / X-Shopify-Hmac-Sha256
        secret: Shared webhook secret

    Returns:
        bool: True if signature is valid, False otherwise (including when the
        signature or the secret is missing)
    """
    if not secret:
        logger.error("WEBHOOK_SECRET not configured - rejecting webhook")
        return False

    if not signature_header:
        logger.warning("No signature header provided")
        return False

    if isinstance(request_body, str):
        request_body = request_body.encode("utf-8")

    expected_signature = compute_signature(request_body, secret)

    # Constant-time comparison; both sides are ASCII so encode before comparing
    is_valid = hmac.compare_digest(
        expected_signature.encode("ascii"), signature_header.encode("utf-8", "replace")
    )

    if not is_valid:
        logger.warning(f"Invalid webhook signature. Got: {signature_header[:10]}...")

    return is_valid


def signature_from_headers(headers):
    """Return the first webhook signature header present, or None."""
    for name in SIGNATURE_HEADERS:
        value = headers.get(name)
        if value:
            return value.strip()
    return None


def generate_webhook_signature(payload, secret):
    """
    Generate a Shopify-style signature for a payload, e.g. to sign test webhooks.

    Args:
        payload: String or bytes payload
        secret: Secret key

    Returns:
        str: Base64-encoded signature
    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")

    return compute_signature(payload, secret)
