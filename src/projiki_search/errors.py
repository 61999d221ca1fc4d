"""Exceptions raised by the search core."""


class SearchIndexError(Exception):
    """Base class for search index errors."""

    pass


class RecordReadError(SearchIndexError):
    """Raised when the record store cannot supply projects or items."""

    pass


class RecordNotFoundError(RecordReadError):
    """Raised when a single requested record does not exist."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class MalformedRecordError(SearchIndexError):
    """Raised when a source record lacks the fields needed to index it."""

    def __init__(self, message: str, record_id: str | None = None):
        super().__init__(message)
        self.record_id = record_id


class IndexRebuildError(SearchIndexError):
    """Raised when a rebuild fails and there is no earlier index to fall back on."""

    pass
