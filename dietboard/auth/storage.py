# -*- coding: utf-8 -*-
"""Auth — DB storage helpers."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException

from ..app_db import db_conn
from ..config import settings


def get_user_by_username(username: str) -> Optional[Dict[str, Any]]:
    with db_conn(settings.db_path) as conn:
        row = conn.execute("SELECT * FROM users WHERE username = ?", (username.strip(),)).fetchone()
        return dict(row) if row else None


def get_user_by_credentials(username: str, password: str) -> Optional[Dict[str, Any]]:
    # Plaintext comparison; the seeded household accounts carry no hash.
    with db_conn(settings.db_path) as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE username = ? AND password = ?",
            (username.strip(), password),
        ).fetchone()
        return dict(row) if row else None


def require_username(username: Optional[str]) -> str:
    value = (username or "").strip()
    if not value:
        raise HTTPException(status_code=400, detail="Username is required")
    return value


def require_user(username: Optional[str]) -> Dict[str, Any]:
    row = get_user_by_username(require_username(username))
    if not row:
        raise HTTPException(status_code=404, detail="User not found")
    return row
