from __future__ import annotations

from typing import Iterator, Protocol

from models.upload import TransferSnapshot


class ObjectStorePort(Protocol):
    def put_streaming(self, path: str, data: bytes, content_type: str) -> Iterator[TransferSnapshot]:
        """Upload ``data`` to ``path``, yielding a snapshot per transferred chunk.

        The last snapshot carries the stored object's ``ref``.
        """
        ...

    def resolve_url(self, ref: str) -> str:
        ...
