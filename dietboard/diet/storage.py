# -*- coding: utf-8 -*-
"""Diet — DB storage helpers (one plan per user)."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..app_db import db_conn, utc_now
from ..config import settings


def save_diet_plan(*, user_id: int, content: str) -> Dict[str, Any]:
    now = utc_now()
    with db_conn(settings.db_path) as conn:
        conn.execute(
            """
            INSERT INTO diet_plans (user_id, content, created_at, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET content = excluded.content, updated_at = excluded.updated_at
            """,
            (int(user_id), content, now, now),
        )
        row = conn.execute("SELECT * FROM diet_plans WHERE user_id = ?", (int(user_id),)).fetchone()
        return dict(row)


def get_diet_plan(*, user_id: int) -> Optional[Dict[str, Any]]:
    with db_conn(settings.db_path) as conn:
        row = conn.execute("SELECT * FROM diet_plans WHERE user_id = ?", (int(user_id),)).fetchone()
        return dict(row) if row else None
