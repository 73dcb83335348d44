"""Protocols for dependency injection in the search surfaces."""

from typing import Protocol, runtime_checkable

from outline_search.models.document import SourceDocument


@runtime_checkable
class DocumentSourceProtocol(Protocol):
    """Protocol for document stores feeding the search core."""

    def load_documents(self) -> list[SourceDocument]:
        """Return a fresh snapshot of every document."""
        ...
