from __future__ import annotations

import os
from typing import Any

import bcrypt

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _seed_users() -> None:
    """Pre-seed demo accounts on import."""
    _users["user"] = {
        "password_hash": _hash_password(os.getenv("PAWMAP_USER_PASSWORD", "user123")),
        "role": "user",
        "display_name": "Demo Walker",
    }
    _users["admin"] = {
        "password_hash": _hash_password(os.getenv("PAWMAP_ADMIN_PASSWORD", "admin123")),
        "role": "admin",
        "display_name": "PawMap Admin",
    }


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{username, display_name, role}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return {
            "username": username,
            "display_name": record["display_name"],
            "role": record["role"],
        }
    return None


_seed_users()
