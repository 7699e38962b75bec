from __future__ import annotations

import logging
import re
import uuid
from typing import Callable, Iterator, List, Optional, Tuple

from models.upload import (
    LocalFile,
    UploadEvent,
    UploadFailed,
    UploadProgress,
    UploadSession,
    UploadSucceeded,
)
from ports.objects import ObjectStorePort
from services.errors import (
    BackendError,
    HcpAdminError,
    NoFileSelected,
    StorageUnavailable,
    TransferFailed,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

# Until the store confirms the object, progress stays below 100
_PENDING_CAP = 99.9
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_file_name(name: str) -> str:
    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_NAME_CHARS.sub("_", base).strip("._")
    return cleaned or "file"


class UploadWorkflow:
    """Turns one picked local file into a retrieval URL, reporting progress.

    ``start()`` returns an iterator of events: zero or more UploadProgress
    with non-decreasing percent, then exactly one UploadSucceeded or
    UploadFailed. The session's ``result_url`` and ``error`` are never both set.
    """

    def __init__(
        self,
        objects: Optional[ObjectStorePort],
        *,
        prefix: str = "hcp_profile_pictures",
        max_bytes: Optional[int] = 5 * 1024 * 1024,
        allowed_types: Tuple[str, ...] = ("image/",),
    ) -> None:
        self.objects = objects
        self.prefix = prefix.strip("/")
        self.max_bytes = max_bytes
        self.allowed_types = allowed_types
        self.session = UploadSession()
        self.uploading = False

    def pick(self, local_file: LocalFile) -> UploadSession:
        """Discard any previous attempt and reference ``local_file``. Does not transfer."""
        self.session = UploadSession(local_file=local_file, total_bytes=local_file.size)
        return self.session

    def reset(self) -> None:
        self.session = UploadSession()

    def destination_key(self, local_file: LocalFile) -> str:
        return f"{self.prefix}/{uuid.uuid4().hex}_{sanitize_file_name(local_file.name)}"

    def policy_errors(self, local_file: LocalFile) -> List[str]:
        errors: List[str] = []
        if self.allowed_types and not local_file.content_type.startswith(self.allowed_types):
            errors.append(f"Only image files can be uploaded (got {local_file.content_type})")
        if local_file.size == 0:
            errors.append("The selected file is empty")
        if self.max_bytes is not None and local_file.size > self.max_bytes:
            errors.append(f"File is larger than the {self.max_bytes // (1024 * 1024)} MB limit")
        return errors

    def _check_start(self) -> None:
        if self.uploading:
            raise TransferFailed("An upload is already in progress.")
        if self.session.local_file is None:
            raise NoFileSelected()
        if self.objects is None:
            raise StorageUnavailable()
        errors = self.policy_errors(self.session.local_file)
        if errors:
            raise ValidationFailure(errors)

    def start(self) -> Iterator[UploadEvent]:
        try:
            self._check_start()
        except HcpAdminError as exc:
            # Preconditions fail before any network call; an in-flight session keeps its state
            if not self.uploading:
                self.session.error = exc.message
            logger.warning("Upload not started: %s", exc.message, extra={"op": "upload.start", "status": "error"})
            return iter([UploadFailed(exc.message)])
        self.session.bytes_transferred = 0
        self.session.result_url = None
        self.session.error = None
        return self._transfer(self.session)

    def _transfer(self, session: UploadSession) -> Iterator[UploadEvent]:
        # Only a started transfer counts as in progress
        self.uploading = True
        local_file = session.local_file
        key = self.destination_key(local_file)
        last_percent = 0.0
        ref: Optional[str] = None
        try:
            for snap in self.objects.put_streaming(key, local_file.data, local_file.content_type):
                session.total_bytes = snap.total_bytes or session.total_bytes
                session.bytes_transferred = max(session.bytes_transferred, snap.bytes_transferred)
                if snap.ref is not None:
                    ref = snap.ref
                    continue
                percent = min(_PENDING_CAP, session.progress)
                if percent > last_percent:
                    last_percent = percent
                    yield UploadProgress(session.bytes_transferred, session.total_bytes, percent)
            if ref is None:
                raise BackendError("Object store finished without a reference")
            url = self.objects.resolve_url(ref)
        except BackendError as exc:
            self.uploading = False
            session.error = f"Upload failed: {exc.message}"
            session.result_url = None
            logger.warning("Upload of %s failed", local_file.name,
                           extra={"op": "upload.transfer", "status": "error", "error": exc.message})
            yield UploadFailed(session.error)
            return
        finally:
            self.uploading = False

        session.bytes_transferred = session.total_bytes
        session.result_url = url
        logger.info("Uploaded %s to %s", local_file.name, key, extra={"op": "upload.transfer", "status": "ok"})
        yield UploadProgress(session.total_bytes, session.total_bytes, 100.0)
        yield UploadSucceeded(url)

    def run(self, on_progress: Optional[Callable[[UploadEvent], None]] = None) -> UploadSession:
        """Drain ``start()`` and return the finished session."""
        session = self.session
        for event in self.start():
            if on_progress is not None:
                on_progress(event)
        return session
