from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class LocalFile:
    name: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Union[str, Path], content_type: Optional[str] = None) -> "LocalFile":
        p = Path(path)
        guessed, _ = mimetypes.guess_type(p.name)
        return cls(
            name=p.name,
            content_type=content_type or guessed or "application/octet-stream",
            data=p.read_bytes(),
        )


@dataclass
class UploadSession:
    """Transient state of one upload attempt."""

    local_file: Optional[LocalFile] = None
    bytes_transferred: int = 0
    total_bytes: int = 0
    result_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def progress(self) -> float:
        if self.result_url is not None:
            return 100.0
        if self.total_bytes <= 0:
            return 0.0
        return min(100.0, 100.0 * self.bytes_transferred / self.total_bytes)


@dataclass(frozen=True)
class TransferSnapshot:
    """One progress report from an object store; ``ref`` is set on the final one."""

    bytes_transferred: int
    total_bytes: int
    ref: Optional[str] = None


@dataclass(frozen=True)
class UploadProgress:
    bytes_transferred: int
    total_bytes: int
    percent: float


@dataclass(frozen=True)
class UploadSucceeded:
    url: str


@dataclass(frozen=True)
class UploadFailed:
    error: str


UploadEvent = Union[UploadProgress, UploadSucceeded, UploadFailed]
