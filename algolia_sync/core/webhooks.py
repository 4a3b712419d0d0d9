"""
Webhook signature verification.

Kontent.ai signs each delivery with HMAC-SHA256 over the raw request body,
base64-encoded into the ``x-kontent-ai-signature`` header.
"""

from __future__ import annotations

import base64
import hmac
from hashlib import sha256
from typing import Optional

import structlog
from fastapi import HTTPException

logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "x-kontent-ai-signature"


def compute_kontent_signature(payload: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), payload, sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_kontent_signature(
    signature: Optional[str],
    payload: bytes,
    secret: Optional[str],
) -> None:
    """
    Verify a Kontent.ai webhook signature; raise HTTPException(401) on failure.
    """
    if not secret:
        logger.warning("webhook.secret_not_configured")
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not signature:
        logger.warning("webhook.signature_missing")
        raise HTTPException(status_code=401, detail="Unauthorized")

    expected = compute_kontent_signature(payload, secret)
    if not hmac.compare_digest(expected.encode("ascii"), signature.strip().encode()):
        logger.warning("webhook.signature_mismatch")
        raise HTTPException(status_code=401, detail="Unauthorized")
