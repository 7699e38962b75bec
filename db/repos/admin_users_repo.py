from __future__ import annotations

import sqlite3
import uuid
from typing import Optional, Tuple


class AdminUsersRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def add(self, email: str, password_hash: str) -> str:
        """Insert an admin account; returns its id. Emails are unique (case-insensitive)."""
        user_id = uuid.uuid4().hex
        with self.conn:
            self.conn.execute(
                "INSERT INTO admin_users (id, email, password_hash) VALUES (?, ?, ?);",
                (user_id, email.strip().lower(), password_hash),
            )
        return user_id

    def find_by_email(self, email: str) -> Optional[Tuple[str, str, str]]:
        """(id, email, password_hash) or None."""
        row = self.conn.execute(
            "SELECT id, email, password_hash FROM admin_users WHERE email = ?;",
            (email.strip().lower(),),
        ).fetchone()
        return (row[0], row[1], row[2]) if row else None

    def get(self, user_id: str) -> Optional[Tuple[str, str]]:
        row = self.conn.execute(
            "SELECT id, email FROM admin_users WHERE id = ?;", (user_id,)
        ).fetchone()
        return (row[0], row[1]) if row else None
