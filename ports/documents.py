from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Tuple


class DocumentStorePort(Protocol):
    def list_documents(self, collection: str) -> List[Tuple[str, Dict[str, Any]]]:
        ...

    def write_document(
        self,
        collection: str,
        doc_id: Optional[str],
        fields: Dict[str, Any],
        merge: bool = False,
    ) -> str:
        """Create (``doc_id`` None, id assigned by the store) or write a document.

        With ``merge`` only the supplied top-level fields change. Returns the id.
        """
        ...

    def delete_document(self, collection: str, doc_id: str) -> None:
        ...
