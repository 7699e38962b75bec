from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, Optional
from urllib.parse import quote

import requests

from backends.http import send
from config.endpoints import ENDPOINTS
from config.settings import FirebaseConfig
from models.upload import TransferSnapshot
from services.errors import BackendError

logger = logging.getLogger(__name__)


class FirebaseStorageClient:
    """Object store over the Firebase Storage REST API, using resumable uploads.

    An upload is one ``start`` request that returns a session URL, followed by
    one request per chunk; the last chunk carries the ``finalize`` command and
    its response is the stored object's metadata.
    """

    def __init__(
        self,
        config: FirebaseConfig,
        token_provider: Callable[[], Optional[str]],
        *,
        http: Any = None,
        timeout: float = 30,
        chunk_bytes: int = 256 * 1024,
    ) -> None:
        route = ENDPOINTS["storage"]
        self.bucket = config.storage_bucket
        self.base_url = f"{route['base_url']}/{route['objects'].format(bucket=self.bucket)}"
        self.token_provider = token_provider
        self.http = http or requests.Session()
        self.timeout = timeout
        self.chunk_bytes = chunk_bytes
        self._download_tokens: Dict[str, str] = {}

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Firebase {token}"
        if extra:
            headers.update(extra)
        return headers

    def _object_url(self, name: str) -> str:
        return f"{self.base_url}/{quote(name, safe='')}"

    def put_streaming(self, path: str, data: bytes, content_type: str) -> Iterator[TransferSnapshot]:
        total = len(data)
        start = send(
            self.http, "POST", self.base_url,
            backend="firebase", operation="storage.upload_start", target=path, timeout=self.timeout,
            params={"name": path},
            json={"name": path, "contentType": content_type},
            headers=self._headers({
                "X-Goog-Upload-Protocol": "resumable",
                "X-Goog-Upload-Command": "start",
                "X-Goog-Upload-Header-Content-Length": str(total),
                "X-Goog-Upload-Header-Content-Type": content_type,
            }),
        )
        upload_url = start.headers.get("X-Goog-Upload-URL")
        if not upload_url:
            raise BackendError("Storage did not return an upload session URL")

        offset = 0
        while True:
            chunk = data[offset:offset + self.chunk_bytes]
            last = offset + len(chunk) >= total
            resp = send(
                self.http, "POST", upload_url,
                backend="firebase", operation="storage.upload_chunk", target=path, timeout=self.timeout,
                data=chunk,
                headers=self._headers({
                    "X-Goog-Upload-Command": "upload, finalize" if last else "upload",
                    "X-Goog-Upload-Offset": str(offset),
                }),
            )
            offset += len(chunk)
            if not last:
                yield TransferSnapshot(bytes_transferred=offset, total_bytes=total)
                continue
            metadata = resp.json() or {}
            name = metadata.get("name") or path
            tokens = metadata.get("downloadTokens")
            if tokens:
                self._download_tokens[name] = str(tokens).split(",")[0]
            logger.info("Stored %s (%d bytes)", name, total,
                        extra={"op": "storage.upload", "status": "ok", "backend": "firebase"})
            yield TransferSnapshot(bytes_transferred=total, total_bytes=total, ref=name)
            return

    def resolve_url(self, ref: str) -> str:
        token = self._download_tokens.get(ref)
        if not token:
            resp = send(
                self.http, "GET", self._object_url(ref),
                backend="firebase", operation="storage.metadata", target=ref, timeout=self.timeout,
                headers=self._headers(),
            )
            tokens = (resp.json() or {}).get("downloadTokens")
            if not tokens:
                raise BackendError(f"No download token available for {ref}")
            token = str(tokens).split(",")[0]
            self._download_tokens[ref] = token
        return f"{self._object_url(ref)}?alt=media&token={token}"
