from __future__ import annotations

import logging
import time
from typing import Any, Optional

import requests

from services.errors import BackendError
from utils.call_logger import log_call

logger = logging.getLogger(__name__)


def error_message(resp: requests.Response) -> str:
    """Best human-readable message from a Google/Firebase error response."""
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        err = payload.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str):
            return str(payload.get("error_description") or err)
    text = (resp.text or "").strip()
    return text[:300] or f"HTTP {resp.status_code}"


def send(
    http: Any,
    method: str,
    url: str,
    *,
    backend: str,
    operation: str,
    timeout: float,
    target: Optional[str] = None,
    **kwargs: Any,
) -> requests.Response:
    """Issue one request; raise BackendError for transport errors and 4xx/5xx."""
    t0 = time.time()
    try:
        resp = http.request(method, url, timeout=timeout, **kwargs)
    except requests.exceptions.RequestException as exc:
        dt = int((time.time() - t0) * 1000)
        log_call(caller=f"http.{method.lower()}", backend=backend, operation=operation, target=target,
                 duration_ms=dt, status="error", error=str(exc))
        logger.warning("%s failed", operation,
                       extra={"op": operation, "status": "error", "duration_ms": dt, "backend": backend, "error": str(exc)})
        raise BackendError(f"Network error: {exc}") from exc

    dt = int((time.time() - t0) * 1000)
    if resp.status_code >= 400:
        message = error_message(resp)
        log_call(caller=f"http.{method.lower()}", backend=backend, operation=operation, target=target,
                 duration_ms=dt, status="error", http_status=resp.status_code, error=message)
        logger.warning("%s rejected (HTTP %s)", operation, resp.status_code,
                       extra={"op": operation, "status": "error", "duration_ms": dt, "backend": backend, "error": message})
        raise BackendError(message, resp.status_code)

    log_call(caller=f"http.{method.lower()}", backend=backend, operation=operation, target=target,
             duration_ms=dt, status="ok", http_status=resp.status_code)
    logger.debug("%s ok", operation,
                 extra={"op": operation, "status": "ok", "duration_ms": dt, "backend": backend})
    return resp
