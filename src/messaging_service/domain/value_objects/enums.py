from __future__ import annotations

from enum import StrEnum


class UserType(StrEnum):
    CLIENT = "client"
    VENDOR = "vendor"
    ADMIN = "admin"
