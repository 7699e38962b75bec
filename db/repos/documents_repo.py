from __future__ import annotations

import json
import sqlite3
import uuid
from typing import Any, Dict, List, Optional, Tuple

from services.errors import BackendError


class DocumentsRepo:
    """DocumentStorePort over the local SQLite ``documents`` table."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def list_documents(self, collection: str) -> List[Tuple[str, Dict[str, Any]]]:
        try:
            cur = self.conn.execute(
                "SELECT id, data_json FROM documents WHERE collection = ? ORDER BY rowid;",
                (collection,),
            )
            rows = cur.fetchall()
        except sqlite3.Error as exc:
            raise BackendError(str(exc)) from exc
        return [(row[0], json.loads(row[1])) for row in rows]

    def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        row = self.conn.execute(
            "SELECT data_json FROM documents WHERE collection = ? AND id = ?;",
            (collection, doc_id),
        ).fetchone()
        return json.loads(row[0]) if row else None

    def write_document(
        self,
        collection: str,
        doc_id: Optional[str],
        fields: Dict[str, Any],
        merge: bool = False,
    ) -> str:
        if doc_id is None:
            doc_id = uuid.uuid4().hex[:20]
        try:
            with self.conn:
                if merge:
                    current = self.get_document(collection, doc_id)
                    if current is None:
                        raise BackendError(f"No document to update: {collection}/{doc_id}", 404)
                    # Top-level fields only, as a Firestore update mask does
                    current.update(fields)
                    fields = current
                self.conn.execute(
                    "INSERT INTO documents (collection, id, data_json) VALUES (?, ?, ?) "
                    "ON CONFLICT(collection, id) DO UPDATE SET data_json = excluded.data_json;",
                    (collection, doc_id, json.dumps(fields, ensure_ascii=False)),
                )
        except sqlite3.Error as exc:
            raise BackendError(str(exc)) from exc
        return doc_id

    def delete_document(self, collection: str, doc_id: str) -> None:
        try:
            with self.conn:
                self.conn.execute(
                    "DELETE FROM documents WHERE collection = ? AND id = ?;",
                    (collection, doc_id),
                )
        except sqlite3.Error as exc:
            raise BackendError(str(exc)) from exc
