from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import requests

from backends.http import send
from backends.session_file import clear_session, load_session, save_session
from config.endpoints import ENDPOINTS
from config.settings import FirebaseConfig
from models.identity import Identity
from ports.identity import IdentityListener
from services.errors import BackendError

logger = logging.getLogger(__name__)

# Refresh a little before the provider's stated expiry
_EXPIRY_SKEW_SECONDS = 60


class FirebaseAuthClient:
    """Email/password sign-in against the Firebase Identity Toolkit REST API."""

    def __init__(
        self,
        config: FirebaseConfig,
        *,
        session_path: Optional[str] = None,
        http: Any = None,
        timeout: float = 30,
    ) -> None:
        self.api_key = config.api_key
        self.http = http or requests.Session()
        self.timeout = timeout
        self.session_path = Path(session_path) if session_path else None
        self._listeners: List[IdentityListener] = []
        self._identity: Optional[Identity] = None
        self._id_token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._expires_at: float = 0.0
        self._restore()

    # --- session bookkeeping ---
    def _restore(self) -> None:
        data = load_session(self.session_path)
        if not data or data.get("backend") != "firebase":
            return
        try:
            self._identity = Identity(email=data.get("email"), id=data["uid"])
        except (KeyError, ValueError):
            return
        self._id_token = data.get("id_token")
        self._refresh_token = data.get("refresh_token")
        self._expires_at = float(data.get("expires_at") or 0)

    def _store_tokens(self, id_token: str, refresh_token: Optional[str], expires_in: Any) -> None:
        self._id_token = id_token
        if refresh_token:
            self._refresh_token = refresh_token
        try:
            ttl = int(expires_in)
        except (TypeError, ValueError):
            ttl = 3600
        self._expires_at = time.time() + ttl - _EXPIRY_SKEW_SECONDS

    def _persist(self) -> None:
        if self._identity is None:
            clear_session(self.session_path)
            return
        save_session(self.session_path, {
            "backend": "firebase",
            "uid": self._identity.id,
            "email": self._identity.email,
            "id_token": self._id_token,
            "refresh_token": self._refresh_token,
            "expires_at": self._expires_at,
        })

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._identity)

    def _clear(self) -> None:
        self._identity = None
        self._id_token = None
        self._refresh_token = None
        self._expires_at = 0.0
        clear_session(self.session_path)

    # --- IdentityProviderPort ---
    def sign_in(self, email: str, password: str) -> Identity:
        route = ENDPOINTS["auth"]
        resp = send(
            self.http,
            "POST",
            f"{route['base_url']}/{route['sign_in']}",
            backend="firebase",
            operation=route["operation"],
            timeout=self.timeout,
            params={"key": self.api_key},
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        data: Dict[str, Any] = resp.json()
        if not data.get("idToken") or not data.get("localId"):
            raise BackendError("Identity provider returned no session")
        self._store_tokens(data["idToken"], data.get("refreshToken"), data.get("expiresIn"))
        self._identity = Identity(email=data.get("email") or email, id=data["localId"])
        self._persist()
        logger.info("Signed in %s", self._identity.email, extra={"op": "auth.sign_in", "status": "ok", "backend": "firebase"})
        self._notify()
        return self._identity

    def sign_out(self) -> None:
        # Tokens are bearer credentials; forgetting them is the sign-out.
        self._clear()
        self._notify()

    def on_change(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self._identity)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def id_token(self) -> Optional[str]:
        if self._identity is None:
            return None
        if self._id_token and time.time() < self._expires_at:
            return self._id_token
        if not self._refresh_token:
            return self._id_token
        try:
            self._refresh()
        except BackendError as exc:
            logger.warning("Session refresh failed; signing out: %s", exc.message,
                           extra={"op": "auth.refresh", "status": "error", "backend": "firebase", "error": exc.message})
            self._clear()
            self._notify()
            return None
        return self._id_token

    def _refresh(self) -> None:
        route = ENDPOINTS["token"]
        resp = send(
            self.http,
            "POST",
            f"{route['base_url']}/{route['refresh']}",
            backend="firebase",
            operation=route["operation"],
            timeout=self.timeout,
            params={"key": self.api_key},
            data={"grant_type": "refresh_token", "refresh_token": self._refresh_token},
        )
        data = resp.json()
        if not data.get("id_token"):
            raise BackendError("Token refresh returned no id token")
        self._store_tokens(data["id_token"], data.get("refresh_token"), data.get("expires_in"))
        self._persist()
