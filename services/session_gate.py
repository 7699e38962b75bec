from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from models.identity import Identity, SessionState
from services.errors import (
    AuthFailure,
    AuthRequired,
    BackendError,
    ConfigurationMissing,
    SessionNotReady,
    ValidationFailure,
)
from services.remote import Disabled, InitResult, Ready, RemoteServices

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionState], None]


class SessionGate:
    """Single authority on whether profile data may be read or written.

    ``ready`` flips once, on the identity provider's first notification, and
    never back. A disabled backend makes the gate ready at once with no
    identity, and every data operation then fails with ConfigurationMissing.
    """

    def __init__(self, init_result: InitResult) -> None:
        self._lock = threading.Lock()
        self._ready = False
        self._identity: Optional[Identity] = None
        self._listeners: List[SessionListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.services: Optional[RemoteServices] = None
        self.disabled_reason: Optional[ConfigurationMissing] = None

        if isinstance(init_result, Disabled):
            self.disabled_reason = init_result.reason
            self._ready = True
            logger.error("Session disabled: %s", init_result.reason.message,
                         extra={"op": "session.init", "status": "disabled"})
        elif isinstance(init_result, Ready):
            self.services = init_result.services
            self._unsubscribe = self.services.identity.on_change(self._on_identity)
        else:
            raise TypeError(f"Unexpected init result: {init_result!r}")

    # --- provider callback ---
    def _on_identity(self, identity: Optional[Identity]) -> None:
        with self._lock:
            first = not self._ready
            changed = identity != self._identity
            self._ready = True
            self._identity = identity
        if first or changed:
            logger.debug("Identity is now %s", identity.email if identity else None,
                         extra={"op": "session.change"})
            state = self.state
            for listener in list(self._listeners):
                listener(state)

    # --- read side ---
    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def state(self) -> SessionState:
        return SessionState(
            ready=self._ready,
            identity=self._identity,
            disabled_reason=self.disabled_reason.message if self.disabled_reason else None,
        )

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def require_access(self) -> RemoteServices:
        """Return the service handle if data operations are allowed, else raise."""
        if not self._ready:
            raise SessionNotReady()
        if self.disabled_reason is not None or self.services is None:
            reason = self.disabled_reason
            raise ConfigurationMissing(reason.missing if reason else None, reason.message if reason else None)
        if self._identity is None:
            raise AuthRequired()
        return self.services

    # --- actions ---
    def sign_in(self, email: str, password: str) -> Identity:
        if not self._ready:
            raise SessionNotReady()
        if self.services is None:
            reason = self.disabled_reason
            raise ConfigurationMissing(reason.missing if reason else None, reason.message if reason else None)
        errors = []
        if not (email or "").strip():
            errors.append("Email is required")
        if not password:
            errors.append("Password is required")
        if errors:
            raise ValidationFailure(errors)
        try:
            return self.services.identity.sign_in(email.strip(), password)
        except BackendError as exc:
            logger.warning("Sign-in rejected", extra={"op": "session.sign_in", "status": "error", "error": exc.message})
            raise AuthFailure(exc.message) from exc

    def sign_out(self) -> None:
        if self.services is None:
            return
        self.services.identity.sign_out()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()
