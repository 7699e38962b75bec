from __future__ import annotations

from typing import Callable, Optional, Protocol

from models.identity import Identity


IdentityListener = Callable[[Optional[Identity]], None]


class IdentityProviderPort(Protocol):
    def sign_in(self, email: str, password: str) -> Identity:
        ...

    def sign_out(self) -> None:
        ...

    def on_change(self, listener: IdentityListener) -> Callable[[], None]:
        """Register ``listener``; it is told the current identity at least once.

        Returns a callable that removes the listener.
        """
        ...

    def id_token(self) -> Optional[str]:
        ...
