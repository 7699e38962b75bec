from __future__ import annotations

import sqlite3


def bootstrap(conn: sqlite3.Connection) -> None:
    """Create the local backend's tables (idempotent)."""
    cur = conn.cursor()

    # Schemaless documents, one JSON object per row
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS documents (\n"
            "  collection TEXT NOT NULL,\n"
            "  id TEXT NOT NULL,\n"
            "  data_json TEXT NOT NULL,\n"
            "  PRIMARY KEY (collection, id)\n"
            ")"
        )
    )

    # Admin accounts for the local identity provider
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS admin_users (\n"
            "  id TEXT PRIMARY KEY,\n"
            "  email TEXT NOT NULL UNIQUE,\n"
            "  password_hash TEXT NOT NULL,\n"
            "  created_at TEXT NOT NULL DEFAULT (datetime('now'))\n"
            ")"
        )
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_admin_users_email ON admin_users(email);")

    conn.commit()
