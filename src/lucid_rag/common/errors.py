"""lucid_rag.common.errors

Exception hierarchy for the RAG core.

Classes
-------
RAGError
    Base class for every error raised by the RAG core.
InvalidQueryError
    The query is empty; the caller can correct it.
ProviderError
    An embedding or generation provider call failed.
StoreError
    A chunk-store operation failed.

Notes
-----
There is no "not configured" error: a pipeline without providers answers
with a degraded :class:`~lucid_rag.common.schemas.Response` instead of raising.
"""


class RAGError(Exception):
    """Base class for RAG core errors."""


class InvalidQueryError(RAGError, ValueError):
    """Raised when a query has no text."""


class ProviderError(RAGError):
    """Raised when an embedding or chat-completion call fails."""


class StoreError(RAGError):
    """Raised when inserting, deleting or searching chunks fails."""


__all__ = [
    "RAGError",
    "InvalidQueryError",
    "ProviderError",
    "StoreError",
]
