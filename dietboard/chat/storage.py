# -*- coding: utf-8 -*-
"""Chat — DB storage helpers (append-only message log per user)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..app_db import db_conn, utc_now
from ..config import settings


def append_message(*, user_id: int, role: str, content: str) -> Dict[str, Any]:
    now = utc_now()
    with db_conn(settings.db_path) as conn:
        cur = conn.execute(
            "INSERT INTO chat_messages (user_id, role, content, created_at) VALUES (?, ?, ?, ?)",
            (int(user_id), role, content, now),
        )
        msg_id = cur.lastrowid
    return {"id": msg_id, "user_id": int(user_id), "role": role, "content": content, "created_at": now}


def list_messages(*, user_id: int, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    sql = "SELECT * FROM chat_messages WHERE user_id = ? ORDER BY id ASC"
    params: list[Any] = [int(user_id)]
    if limit is not None:
        sql += " LIMIT ?"
        params.append(int(limit))
    with db_conn(settings.db_path) as conn:
        rows = conn.execute(sql, tuple(params)).fetchall()
        return [dict(r) for r in rows]


def recent_messages(*, user_id: int, limit: int = 6) -> List[Dict[str, Any]]:
    """Last ``limit`` messages, oldest first."""
    with db_conn(settings.db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM chat_messages WHERE user_id = ? ORDER BY id DESC LIMIT ?",
            (int(user_id), int(limit)),
        ).fetchall()
        return [dict(r) for r in reversed(rows)]
