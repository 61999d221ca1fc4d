"""In-memory storage for indexed documents."""

from collections.abc import Iterator
from datetime import datetime
from typing import Protocol

from projiki_search.index.models import Document


class IndexStore(Protocol):
    """Storage strategy for documents, keyed by id."""

    built_at: datetime | None

    def clear(self) -> None: ...

    def upsert(self, document: Document) -> None: ...

    def remove(self, document_id: str) -> bool: ...

    def get(self, document_id: str) -> Document | None: ...

    def all(self) -> Iterator[tuple[str, Document]]: ...

    def size(self) -> int: ...


class MemoryIndexStore:
    """Dict-backed IndexStore.

    ``all()`` iterates over a snapshot, so upserts and removals made while a
    caller is scanning do not disturb the scan. The store is volatile and is
    rebuilt from the record store on demand.
    """

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        # Set once a full rebuild has populated this store
        self.built_at: datetime | None = None

    def clear(self) -> None:
        """Drop all documents."""
        self._documents.clear()

    def upsert(self, document: Document) -> None:
        """Insert or replace a document by id."""
        if not document.id or not document.type:
            raise ValueError("Documents need a non-empty id and type")
        self._documents[document.id] = document

    def remove(self, document_id: str) -> bool:
        """Delete a document. Returns False if it was not present."""
        return self._documents.pop(document_id, None) is not None

    def get(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    def all(self) -> Iterator[tuple[str, Document]]:
        """Iterate (id, document) pairs in insertion order."""
        return iter(list(self._documents.items()))

    def size(self) -> int:
        return len(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._documents
