from __future__ import annotations

from typing import List, Optional


class HcpAdminError(Exception):
    """Base for failures that end up as a message next to a form or list."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationMissing(HcpAdminError):
    def __init__(self, missing: Optional[List[str]] = None, message: Optional[str] = None) -> None:
        self.missing = list(missing or [])
        if message is None:
            names = ", ".join(self.missing) or "backend settings"
            message = f"Backend is not configured (missing: {names}). Data operations are disabled."
        super().__init__(message)


class SessionNotReady(HcpAdminError):
    def __init__(self) -> None:
        super().__init__("Session is still initializing; try again in a moment.")


class AuthFailure(HcpAdminError):
    pass


class AuthRequired(AuthFailure):
    def __init__(self) -> None:
        super().__init__("Sign in required.")


class StorageUnavailable(HcpAdminError):
    def __init__(self) -> None:
        super().__init__("File storage is not initialized. Cannot upload.")


class NoFileSelected(HcpAdminError):
    def __init__(self) -> None:
        super().__init__("Please select a file first.")


class TransferFailed(HcpAdminError):
    pass


class PersistenceFailed(HcpAdminError):
    pass


class ValidationFailure(HcpAdminError):
    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid input")


class BackendError(Exception):
    """Raised by backends; ``message`` is the remote service's own wording."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
