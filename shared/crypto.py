"""
Hashing helpers.

SHA-256 is used for every derived key so raw client addresses never reach
storage outside the click event itself.
"""

from __future__ import annotations

import hashlib
from datetime import datetime

from schemas.models.base import as_utc


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def visitor_key(subject_id: str, source_address: str, at: datetime) -> str:
    """Return the de-duplication key for one visitor of one subject on one UTC day.

    Two clicks map to the same key exactly when they hit the same subject,
    from the same address, on the same UTC calendar day.
    """
    day = as_utc(at).strftime("%Y-%m-%d")
    return hash_token(f"{subject_id}|{source_address}|{day}")
