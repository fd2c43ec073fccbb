"""
Caller identity.

The upstream auth middleware resolves the caller and stores a
``CallerIdentity`` on ``request.state.user`` before any analytics route runs.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CallerIdentity:
    user_id: str
    is_admin: bool = False
