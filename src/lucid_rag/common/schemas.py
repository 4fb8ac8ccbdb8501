"""lucid_rag.common.schemas

Core data schemas shared across the RAG pipeline.

These lightweight dataclasses describe the canonical shapes passed between
chunking, embedding, storage, retrieval, and generation components.

Classes
-------
Chunk
    A bounded slice of a document's text stored with its own embedding.
ChunkWithPosition
    Chunk text paired with its zero-based position in the source document.
Query
    A transient retrieval request.
Response
    A transient answer produced by the RAG pipeline.
ScoredItem
    Index/score pair produced by similarity ranking.

Notes
-----
Chunks are immutable once created: they are never edited in place, only
created or deleted together with the rest of their document's chunks.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class Chunk:
    """A contiguous slice of a document's text and its embedding.

    Attributes
    ----------
    document_id : str
        Identifier of the document that produced this chunk.
    chunk_index : int
        Zero-based, sequential position of the chunk within its document.
    content : str
        Chunk text content.
    embedding : list[float]
        Embedding vector for ``content``. Its length is fixed by the embedding
        model and must match across all chunks searched together.
    id : str or None
        Unique identifier. Assigned by the chunk store on insert when missing.
    created_at : datetime or None
        Creation timestamp. Assigned by the chunk store on insert when missing.
    """
    document_id: str
    chunk_index: int
    content: str
    embedding: List[float] = field(default_factory=list)
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the wire representation of the chunk.

        Returns
        -------
        dict[str, Any]
            Mapping with ``id``, ``document_id``, ``chunk_index``, ``content``,
            ``embedding`` and ``created_at`` (ISO-8601 string or ``None``).
        """
        return {
            "id": self.id,
            "document_id": self.document_id,
            "chunk_index": self.chunk_index,
            "content": self.content,
            "embedding": list(self.embedding),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class ChunkWithPosition:
    """Chunk text with its zero-based index in the chunk sequence."""
    content: str
    index: int


@dataclass
class Query:
    """A retrieval request.

    Attributes
    ----------
    text : str
        Natural-language question.
    top_k : int
        Maximum number of chunks to retrieve. Values ``<= 0`` select the
        pipeline default.
    threshold : float
        Minimum cosine similarity for a chunk to be considered relevant.
        Values ``<= 0`` select the pipeline default.
    """
    text: str
    top_k: int = 0
    threshold: float = 0.0


@dataclass
class Response:
    """Answer produced by the RAG pipeline.

    Attributes
    ----------
    answer : str
        Generated (or degraded-mode) answer text.
    relevant_chunks : list[Chunk]
        Retrieved chunks in ranked order.
    confidence_score : float
        Heuristic support indicator; not a calibrated probability.
    processing_time_ms : int
        Wall-clock time spent answering the query.
    """
    answer: str
    relevant_chunks: List[Chunk] = field(default_factory=list)
    confidence_score: float = 0.0
    processing_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "relevant_chunks": [c.to_dict() for c in self.relevant_chunks],
            "confidence_score": self.confidence_score,
            "processing_time_ms": self.processing_time_ms,
        }


@dataclass(frozen=True)
class ScoredItem:
    """Position of a vector in the searched sequence and its similarity score."""
    index: int
    score: float
