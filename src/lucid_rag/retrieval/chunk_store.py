"""lucid_rag.retrieval.chunk_store

Chunk persistence and similarity search for the retrieval layer.

This module defines the chunk-store contract used by the RAG pipeline and two
backends for it. Search is an exact brute-force scan: every stored chunk is
scored against the query embedding with
:func:`~lucid_rag.retrieval.similarity.top_k_by_similarity`. The contract only
promises ranked chunks for a query embedding, so an approximate index can be
substituted behind :meth:`BaseChunkStore.search` without changing callers.

Classes
-------
BaseChunkStore
    Abstract chunk-store contract.
InMemoryChunkStore
    Process-local store guarded by a lock.
QdrantChunkStore
    Store persisting chunks as points in a Qdrant collection.

Functions
---------
create_chunk_store
    Create a chunk store implementation from a configuration mapping.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence
from uuid import uuid4
import logging
import threading

from lucid_rag.common import Chunk, StoreError
from lucid_rag.retrieval.similarity import top_k_by_similarity

logger = logging.getLogger(__name__)


def _stamp(chunk: Chunk, now: datetime) -> Chunk:
    """Return ``chunk`` with an id and creation time, filling only missing ones."""
    return replace(
        chunk,
        id=chunk.id or str(uuid4()),
        created_at=chunk.created_at or now,
        embedding=[float(x) for x in chunk.embedding],
    )


def _rank(chunks: Sequence[Chunk], query_embedding: Sequence[float], top_k: int, threshold: float) -> list[Chunk]:
    vectors = [c.embedding for c in chunks]
    return [chunks[item.index] for item in top_k_by_similarity(query_embedding, vectors, top_k, threshold)]


class BaseChunkStore(ABC):
    """Abstract interface for chunk persistence and retrieval.

    Chunks of a document are created and deleted as a whole; they are never
    updated in place.
    """

    @abstractmethod
    def create_batch(self, chunks: Sequence[Chunk]) -> None:
        """Insert ``chunks``, assigning ids and timestamps where missing.

        An empty batch is a no-op.

        Raises
        ------
        StoreError
            If the batch cannot be stored. A failure is reported once for the
            whole batch.
        """

    @abstractmethod
    def get_by_document_id(self, document_id: str) -> list[Chunk]:
        """Return the chunks of ``document_id`` ordered by ``chunk_index``.

        Returns an empty list when the document has no chunks.
        """

    @abstractmethod
    def delete_by_document_id(self, document_id: str) -> None:
        """Delete every chunk of ``document_id``. Idempotent."""

    @abstractmethod
    def search(self, query_embedding: Sequence[float], top_k: int, threshold: float) -> list[Chunk]:
        """Return up to ``top_k`` chunks scoring at least ``threshold``.

        Parameters
        ----------
        query_embedding : Sequence[float]
            Embedding of the query text.
        top_k : int
            Maximum number of chunks to return.
        threshold : float
            Minimum cosine similarity.

        Returns
        -------
        list[Chunk]
            Chunks in descending similarity order.
        """

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored chunks."""


class InMemoryChunkStore(BaseChunkStore):
    """Chunk store held in process memory.

    All chunks of a store must share one embedding dimension; the dimension is
    fixed by the first stored chunk and released once the store is empty.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._chunks: list[Chunk] = []

    @classmethod
    def from_config_dict(cls, config: Mapping[str, Any]) -> "InMemoryChunkStore":
        return cls()

    def _dimension(self) -> Optional[int]:
        return len(self._chunks[0].embedding) if self._chunks else None

    def create_batch(self, chunks: Sequence[Chunk]) -> None:
        if not chunks:
            return

        now = datetime.now(timezone.utc)
        stamped = [_stamp(c, now) for c in chunks]

        with self._lock:
            dimension = self._dimension() or len(stamped[0].embedding)
            for chunk in stamped:
                if not chunk.document_id:
                    raise StoreError("chunk batch rejected: chunk without document_id")
                if len(chunk.embedding) != dimension:
                    raise StoreError(
                        f"chunk batch rejected: embedding dimension {len(chunk.embedding)} "
                        f"does not match store dimension {dimension}"
                    )
            self._chunks.extend(stamped)

        logger.debug("Stored %d chunks in memory", len(stamped))

    def get_by_document_id(self, document_id: str) -> list[Chunk]:
        with self._lock:
            found = [c for c in self._chunks if c.document_id == document_id]
        return sorted(found, key=lambda c: c.chunk_index)

    def delete_by_document_id(self, document_id: str) -> None:
        with self._lock:
            self._chunks = [c for c in self._chunks if c.document_id != document_id]

    def search(self, query_embedding: Sequence[float], top_k: int, threshold: float) -> list[Chunk]:
        with self._lock:
            snapshot = list(self._chunks)
        if not snapshot:
            return []
        return _rank(snapshot, query_embedding, top_k, threshold)

    def count(self) -> int:
        with self._lock:
            return len(self._chunks)


class QdrantChunkStore(BaseChunkStore):
    """Chunk store backed by a Qdrant collection.

    Each chunk is one point: the point id is the chunk id, the vector is the
    embedding, and the payload carries ``document_id``, ``chunk_index``,
    ``content`` and ``created_at``. The collection is created on the first
    insert, sized to that batch's embedding dimension.

    Search scrolls the whole collection and ranks it locally, so results match
    :class:`InMemoryChunkStore` exactly. Qdrant normalises vectors stored in a
    cosine collection; cosine scores are unaffected.

    Parameters
    ----------
    client : qdrant_client.QdrantClient
        Connected client (remote or local mode).
    collection_name : str, optional
        Name of the collection holding the chunks. Defaults to ``"chunks"``.
    scroll_batch_size : int, optional
        Points fetched per scroll request. Defaults to ``256``.
    """

    def __init__(
            self,
            client,
            *,
            collection_name: str = "chunks",
            scroll_batch_size: int = 256,
        ):
        self.client = client
        self.collection_name = collection_name
        self.scroll_batch_size = max(1, int(scroll_batch_size))
        self._lock = threading.Lock()

    @classmethod
    def from_config_dict(cls, config: Mapping[str, Any]) -> "QdrantChunkStore":
        """Create a Qdrant-backed store from a configuration mapping.

        Parameters
        ----------
        config : Mapping[str, Any]
            Expected keys include:
            - ``location`` (str, optional): e.g. ``":memory:"`` for local mode
            - ``url`` (str, optional): full server URL
            - ``host`` (str, optional): server host (default ``"localhost"``)
            - ``port`` (int, optional): server port (default ``6333``)
            - ``api_key`` (str, optional)
            - ``collection_name`` (str, optional): default ``"chunks"``
            - ``scroll_batch_size`` (int, optional): default ``256``

        Returns
        -------
        QdrantChunkStore
            Initialised store.
        """
        from qdrant_client import QdrantClient

        if config.get("location"):
            client = QdrantClient(location=config["location"])
        elif config.get("url"):
            client = QdrantClient(url=config["url"], api_key=config.get("api_key"))
        else:
            client = QdrantClient(
                host=config.get("host", "localhost"),
                port=int(config.get("port", 6333)),
                api_key=config.get("api_key"),
            )

        return cls(
            client,
            collection_name=config.get("collection_name", "chunks"),
            scroll_batch_size=int(config.get("scroll_batch_size", 256)),
        )

    def _collection_exists(self) -> bool:
        return self.client.collection_exists(self.collection_name)

    def _ensure_collection(self, dimension: int) -> None:
        from qdrant_client import models

        with self._lock:
            if self._collection_exists():
                return
            self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=models.VectorParams(size=dimension, distance=models.Distance.COSINE),
            )
            self.client.create_payload_index(
                collection_name=self.collection_name,
                field_name="document_id",
                field_schema=models.PayloadSchemaType.KEYWORD,
            )
            logger.info("Created Qdrant collection %r (dimension=%d)", self.collection_name, dimension)

    @staticmethod
    def _document_filter(document_id: str):
        from qdrant_client import models

        return models.Filter(
            must=[models.FieldCondition(key="document_id", match=models.MatchValue(value=document_id))]
        )

    @staticmethod
    def _to_chunk(point) -> Chunk:
        payload = point.payload or {}
        created_at = payload.get("created_at")
        return Chunk(
            id=str(point.id),
            document_id=payload.get("document_id", ""),
            chunk_index=int(payload.get("chunk_index", 0)),
            content=payload.get("content", ""),
            embedding=list(point.vector or []),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
        )

    def _scroll(self, scroll_filter=None) -> list[Chunk]:
        chunks: list[Chunk] = []
        offset = None
        while True:
            points, offset = self.client.scroll(
                collection_name=self.collection_name,
                scroll_filter=scroll_filter,
                limit=self.scroll_batch_size,
                offset=offset,
                with_payload=True,
                with_vectors=True,
            )
            chunks.extend(self._to_chunk(p) for p in points)
            if offset is None:
                return chunks

    def create_batch(self, chunks: Sequence[Chunk]) -> None:
        if not chunks:
            return

        from qdrant_client import models

        now = datetime.now(timezone.utc)
        stamped = [_stamp(c, now) for c in chunks]
        points = [
            models.PointStruct(
                id=c.id,
                vector=c.embedding,
                payload={
                    "document_id": c.document_id,
                    "chunk_index": c.chunk_index,
                    "content": c.content,
                    "created_at": c.created_at.isoformat(),
                },
            )
            for c in stamped
        ]

        try:
            self._ensure_collection(len(stamped[0].embedding))
            self.client.upsert(collection_name=self.collection_name, points=points, wait=True)
        except Exception as exc:
            raise StoreError(f"failed to insert {len(points)} chunks into {self.collection_name!r}: {exc}") from exc

    def get_by_document_id(self, document_id: str) -> list[Chunk]:
        try:
            if not self._collection_exists():
                return []
            found = self._scroll(self._document_filter(document_id))
        except Exception as exc:
            raise StoreError(f"failed to load chunks of document {document_id!r}: {exc}") from exc
        return sorted(found, key=lambda c: c.chunk_index)

    def delete_by_document_id(self, document_id: str) -> None:
        from qdrant_client import models

        try:
            if not self._collection_exists():
                return
            self.client.delete(
                collection_name=self.collection_name,
                points_selector=models.FilterSelector(filter=self._document_filter(document_id)),
                wait=True,
            )
        except Exception as exc:
            raise StoreError(f"failed to delete chunks of document {document_id!r}: {exc}") from exc

    def search(self, query_embedding: Sequence[float], top_k: int, threshold: float) -> list[Chunk]:
        try:
            if not self._collection_exists():
                return []
            corpus = self._scroll()
        except Exception as exc:
            raise StoreError(f"failed to scan {self.collection_name!r}: {exc}") from exc
        if not corpus:
            return []
        return _rank(corpus, query_embedding, top_k, threshold)

    def count(self) -> int:
        try:
            if not self._collection_exists():
                return 0
            return self.client.count(collection_name=self.collection_name, exact=True).count
        except Exception as exc:
            raise StoreError(f"failed to count {self.collection_name!r}: {exc}") from exc


def _get_chunk_store_kind(cfg: Mapping[str, Any]) -> Optional[str]:
    for key in ("kind", "type", "provider", "backend", "impl"):
        val = cfg.get(key)
        if val is not None:
            return val
    return None


def _normalize_chunk_store_kind(kind) -> str:
    """Normalise a store kind to a registry key (defaults to ``"memory"``)."""
    if not kind:
        return "memory"
    k = str(kind).lower().replace("-", "_")
    if k in {"memory", "in_memory", "inmemory", "inmemorychunkstore"}:
        return "memory"
    if k in {"qdrant", "qdrantchunkstore", "qdrant_chunk_store"}:
        return "qdrant"
    return k


def create_chunk_store(config: Optional[Mapping[str, Any]] = None) -> BaseChunkStore:
    """Create a chunk store implementation from a configuration mapping.

    Parameters
    ----------
    config : Mapping[str, Any] or None, optional
        Configuration mapping. The backend is selected with one of the
        discriminator keys ``kind``, ``type``, ``provider``, ``backend`` or
        ``impl``; the default is the in-memory store.

    Returns
    -------
    BaseChunkStore
        Initialised chunk store.

    Raises
    ------
    ValueError
        If the requested backend kind is not supported.
    """
    config = config or {}
    kind = _normalize_chunk_store_kind(_get_chunk_store_kind(config))
    if kind == "memory":
        return InMemoryChunkStore.from_config_dict(config)
    if kind == "qdrant":
        return QdrantChunkStore.from_config_dict(config)
    raise ValueError(f"Unknown chunk store kind: {kind!r}")


__all__ = [
    "BaseChunkStore",
    "InMemoryChunkStore",
    "QdrantChunkStore",
    "create_chunk_store",
]
