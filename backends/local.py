"""Local backend: SQLite documents and admin accounts, files on disk.

Used for development and tests. It keeps the same contracts as the Firebase
adapters, including provider-style error messages.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import os
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from backends.registry import register
from backends.session_file import clear_session, load_session, save_session
from config.settings import Settings
from db.connection import get_connection
from db.repos.admin_users_repo import AdminUsersRepo
from db.repos.documents_repo import DocumentsRepo
from db.schema import bootstrap
from models.identity import Identity
from models.upload import TransferSnapshot
from ports.identity import IdentityListener
from services.errors import BackendError
from services.remote import RemoteServices

logger = logging.getLogger(__name__)

_PBKDF2_ITERATIONS = 200_000


def hash_password(password: str, *, salt: Optional[bytes] = None, iterations: int = _PBKDF2_ITERATIONS) -> str:
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"pbkdf2_sha256${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        _, iterations, salt_hex, digest_hex = encoded.split("$")
        expected = hash_password(password, salt=bytes.fromhex(salt_hex), iterations=int(iterations))
    except ValueError:
        return False
    return hmac.compare_digest(expected.split("$")[-1], digest_hex)


class LocalIdentityProvider:
    """Email/password accounts stored in the ``admin_users`` table."""

    def __init__(self, users: AdminUsersRepo, *, session_path: Optional[str] = None) -> None:
        self.users = users
        self.session_path = Path(session_path) if session_path else None
        self._listeners: List[IdentityListener] = []
        self._identity: Optional[Identity] = None
        self._restore()

    def _restore(self) -> None:
        data = load_session(self.session_path)
        if not data or data.get("backend") != "local":
            return
        row = self.users.get(str(data.get("uid") or ""))
        if row is None:
            clear_session(self.session_path)
            return
        self._identity = Identity(id=row[0], email=row[1])

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._identity)

    def add_admin(self, email: str, password: str) -> str:
        if not email.strip() or not password:
            raise BackendError("MISSING_EMAIL_OR_PASSWORD", 400)
        if self.users.find_by_email(email) is not None:
            raise BackendError("EMAIL_EXISTS", 400)
        return self.users.add(email, hash_password(password))

    def sign_in(self, email: str, password: str) -> Identity:
        row = self.users.find_by_email(email)
        if row is None or not verify_password(password, row[2]):
            raise BackendError("INVALID_LOGIN_CREDENTIALS", 400)
        self._identity = Identity(id=row[0], email=row[1])
        save_session(self.session_path, {"backend": "local", "uid": row[0], "email": row[1]})
        logger.info("Signed in %s", row[1], extra={"op": "auth.sign_in", "status": "ok", "backend": "local"})
        self._notify()
        return self._identity

    def sign_out(self) -> None:
        self._identity = None
        clear_session(self.session_path)
        self._notify()

    def on_change(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self._identity)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def id_token(self) -> Optional[str]:
        return f"local:{self._identity.id}" if self._identity else None


class LocalObjectStore:
    """Objects as files under ``root``; URLs are ``file://`` URIs."""

    def __init__(self, root: str, *, chunk_bytes: int = 256 * 1024) -> None:
        self.root = Path(root).expanduser().resolve()
        self.chunk_bytes = chunk_bytes

    def _target(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root not in target.parents:
            raise BackendError(f"Invalid object path: {path}", 400)
        return target

    def put_streaming(self, path: str, data: bytes, content_type: str) -> Iterator[TransferSnapshot]:
        target = self._target(path)
        total = len(data)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as fh:
                offset = 0
                while offset < total:
                    chunk = data[offset:offset + self.chunk_bytes]
                    fh.write(chunk)
                    offset += len(chunk)
                    if offset < total:
                        yield TransferSnapshot(bytes_transferred=offset, total_bytes=total)
        except OSError as exc:
            raise BackendError(f"Could not write {path}: {exc}") from exc
        logger.info("Stored %s (%d bytes, %s)", path, total, content_type,
                    extra={"op": "storage.upload", "status": "ok", "backend": "local"})
        yield TransferSnapshot(bytes_transferred=total, total_bytes=total, ref=path)

    def resolve_url(self, ref: str) -> str:
        target = self._target(ref)
        if not target.exists():
            raise BackendError(f"Object not found: {ref}", 404)
        return target.as_uri()


def build_local_services(settings: Settings) -> RemoteServices:
    conn = get_connection(settings.db_path)
    bootstrap(conn)
    identity = LocalIdentityProvider(AdminUsersRepo(conn), session_path=settings.session_path)
    return RemoteServices(
        backend="local",
        identity=identity,
        documents=DocumentsRepo(conn),
        objects=LocalObjectStore(settings.blob_dir, chunk_bytes=settings.upload_chunk_bytes),
    )


def _register():
    register("local", build_local_services)


_register()
