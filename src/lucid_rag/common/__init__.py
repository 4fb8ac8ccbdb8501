"""
Common building blocks shared across the RAG stack.

This package provides small, widely-used primitives (chunk and query schemas,
ID aliases and the error hierarchy) intended to be imported by multiple
layers of the system.

Classes
-------
Chunk
    Document chunk with its embedding.
ChunkWithPosition
    Chunk text paired with its index.
Query
    Retrieval request.
Response
    RAG answer.
ScoredItem
    Ranked index/score pair.

Attributes
----------
DocId : TypeAlias
    Type alias for document identifiers.
ChunkId : TypeAlias
    Type alias for chunk identifiers.

See Also
--------
lucid_rag.common.schemas
    Dataclass definitions.
lucid_rag.common.errors
    Error hierarchy.
"""
from __future__ import annotations
from typing import TypeAlias

from .schemas import (
    Chunk,
    ChunkWithPosition,
    Query,
    Response,
    ScoredItem,
)
from .errors import (
    RAGError,
    InvalidQueryError,
    ProviderError,
    StoreError,
)

DocId: TypeAlias = str
ChunkId: TypeAlias = str

__all__ = [
    "Chunk",
    "ChunkWithPosition",
    "Query",
    "Response",
    "ScoredItem",
    "RAGError",
    "InvalidQueryError",
    "ProviderError",
    "StoreError",
    "DocId",
    "ChunkId",
]
