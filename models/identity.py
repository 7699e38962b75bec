from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Identity(BaseModel):
    """Signed-in admin as reported by the identity provider."""

    email: Optional[str] = None
    id: str

    model_config = ConfigDict(frozen=True, extra="ignore")


class SessionState(BaseModel):
    """Snapshot of the Session Gate; consumers read it, never write it."""

    ready: bool = False
    identity: Optional[Identity] = None
    disabled_reason: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None
