from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from backends.firestore_codec import decode_fields, encode_fields, quote_field_path
from backends.http import send
from config.endpoints import ENDPOINTS
from config.settings import FirebaseConfig
from services.errors import BackendError

logger = logging.getLogger(__name__)


def _doc_id(name: str) -> str:
    return name.rsplit("/", 1)[-1]


class FirestoreClient:
    """Document store over the Cloud Firestore REST API."""

    def __init__(
        self,
        config: FirebaseConfig,
        token_provider: Callable[[], Optional[str]],
        *,
        http: Any = None,
        timeout: float = 30,
    ) -> None:
        route = ENDPOINTS["firestore"]
        self.api_key = config.api_key
        self.base_url = f"{route['base_url']}/{route['documents'].format(project_id=config.project_id)}"
        self.page_size = route["page_size"]
        self.token_provider = token_provider
        self.http = http or requests.Session()
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        token = self.token_provider()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def list_documents(self, collection: str) -> List[Tuple[str, Dict[str, Any]]]:
        out: List[Tuple[str, Dict[str, Any]]] = []
        page_token: Optional[str] = None
        while True:
            params: Dict[str, Any] = {"key": self.api_key, "pageSize": self.page_size}
            if page_token:
                params["pageToken"] = page_token
            resp = send(
                self.http, "GET", f"{self.base_url}/{collection}",
                backend="firebase", operation="firestore.list", target=collection,
                timeout=self.timeout, params=params, headers=self._headers(),
            )
            payload = resp.json() or {}
            for doc in payload.get("documents", []):
                out.append((_doc_id(doc["name"]), decode_fields(doc.get("fields", {}))))
            page_token = payload.get("nextPageToken")
            if not page_token:
                break
        logger.debug("Listed %d documents from %s", len(out), collection)
        return out

    def write_document(
        self,
        collection: str,
        doc_id: Optional[str],
        fields: Dict[str, Any],
        merge: bool = False,
    ) -> str:
        body = {"fields": encode_fields(fields)}
        if doc_id is None:
            resp = send(
                self.http, "POST", f"{self.base_url}/{collection}",
                backend="firebase", operation="firestore.create", target=collection,
                timeout=self.timeout, params={"key": self.api_key}, json=body, headers=self._headers(),
            )
            name = (resp.json() or {}).get("name")
            if not name:
                raise BackendError("Document store did not return the new document id")
            return _doc_id(name)

        params: List[Tuple[str, str]] = [("key", self.api_key or "")]
        if merge:
            if not fields:
                return doc_id
            params.extend(("updateMask.fieldPaths", quote_field_path(k)) for k in fields)
            # A merge must not resurrect a document deleted elsewhere
            params.append(("currentDocument.exists", "true"))
        send(
            self.http, "PATCH", f"{self.base_url}/{collection}/{doc_id}",
            backend="firebase", operation="firestore.merge" if merge else "firestore.set",
            target=f"{collection}/{doc_id}", timeout=self.timeout,
            params=params, json=body, headers=self._headers(),
        )
        return doc_id

    def delete_document(self, collection: str, doc_id: str) -> None:
        send(
            self.http, "DELETE", f"{self.base_url}/{collection}/{doc_id}",
            backend="firebase", operation="firestore.delete", target=f"{collection}/{doc_id}",
            timeout=self.timeout, params={"key": self.api_key}, headers=self._headers(),
        )
