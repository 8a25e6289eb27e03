from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Read-only view of a marketplace account."""

    id: int
    username: str
    full_name: str | None
    user_type: str
    avatar_url: str | None
