from datetime import datetime, timezone

import pytest
from qdrant_client import QdrantClient

from lucid_rag.common import Chunk, StoreError
from lucid_rag.retrieval.chunk_store import (
    InMemoryChunkStore,
    QdrantChunkStore,
    create_chunk_store,
)


@pytest.fixture(params=["memory", "qdrant"])
def chunk_store(request):
    """Every contract test runs against both backends; Qdrant in local in-process mode."""
    if request.param == "memory":
        return InMemoryChunkStore()
    return QdrantChunkStore(QdrantClient(location=":memory:"), collection_name="test_chunks", scroll_batch_size=2)


def _chunk(document_id, chunk_index, embedding, content=None):
    return Chunk(
        document_id=document_id,
        chunk_index=chunk_index,
        content=content or f"{document_id} part {chunk_index}",
        embedding=embedding,
    )


def test_create_batch_assigns_ids_and_timestamps(chunk_store):
    chunk_store.create_batch([_chunk("doc-1", 0, [1.0, 0.0]), _chunk("doc-1", 1, [0.0, 1.0])])

    stored = chunk_store.get_by_document_id("doc-1")

    assert len(stored) == 2
    assert all(c.id for c in stored)
    assert len({c.id for c in stored}) == 2
    assert all(isinstance(c.created_at, datetime) for c in stored)


def test_create_batch_keeps_existing_id_and_timestamp():
    store = InMemoryChunkStore()
    created_at = datetime(2024, 5, 1, tzinfo=timezone.utc)
    original = Chunk("doc-1", 0, "hello", [1.0], id="fixed-id", created_at=created_at)

    store.create_batch([original])

    (stored,) = store.get_by_document_id("doc-1")
    assert stored.id == "fixed-id"
    assert stored.created_at == created_at
    assert original.id == "fixed-id"


def test_empty_batch_is_a_noop(chunk_store):
    chunk_store.create_batch([])
    assert chunk_store.count() == 0


def test_get_by_document_id_orders_by_chunk_index(chunk_store):
    chunk_store.create_batch([
        _chunk("doc-1", 2, [1.0, 2.0]),
        _chunk("doc-2", 0, [2.0, 1.0]),
        _chunk("doc-1", 0, [1.0, 0.0]),
        _chunk("doc-1", 1, [0.0, 1.0]),
    ])

    stored = chunk_store.get_by_document_id("doc-1")

    assert [c.chunk_index for c in stored] == [0, 1, 2]
    assert all(c.document_id == "doc-1" for c in stored)
    assert chunk_store.get_by_document_id("missing") == []


def test_delete_by_document_id_is_idempotent(chunk_store):
    chunk_store.delete_by_document_id("never-indexed")

    chunk_store.create_batch([_chunk("doc-1", 0, [1.0, 0.0]), _chunk("doc-2", 0, [1.0, 0.1])])
    chunk_store.delete_by_document_id("doc-1")
    chunk_store.delete_by_document_id("doc-1")

    assert chunk_store.get_by_document_id("doc-1") == []
    assert [c.document_id for c in chunk_store.search([1.0, 0.0], 10, 0.0)] == ["doc-2"]
    assert chunk_store.count() == 1


def test_search_ranks_by_similarity_and_applies_threshold(chunk_store):
    chunk_store.create_batch([
        _chunk("doc-1", 0, [0.0, 1.0], content="orthogonal"),
        _chunk("doc-1", 1, [1.0, 1.0], content="diagonal"),
        _chunk("doc-2", 0, [1.0, 0.0], content="aligned"),
    ])

    results = chunk_store.search([1.0, 0.0], top_k=5, threshold=0.5)

    assert [c.content for c in results] == ["aligned", "diagonal"]
    assert [c.content for c in chunk_store.search([1.0, 0.0], top_k=1, threshold=0.5)] == ["aligned"]
    assert chunk_store.search([1.0, 0.0], top_k=0, threshold=0.0) == []


def test_search_on_empty_store_returns_nothing(chunk_store):
    assert chunk_store.search([1.0, 0.0], top_k=5, threshold=0.0) == []
    assert chunk_store.count() == 0


def test_qdrant_store_scrolls_past_one_page():
    store = QdrantChunkStore(QdrantClient(location=":memory:"), scroll_batch_size=3)
    store.create_batch([_chunk("doc-1", i, [1.0, float(i)]) for i in range(8)])

    assert [c.chunk_index for c in store.get_by_document_id("doc-1")] == list(range(8))
    assert len(store.search([1.0, 0.0], top_k=8, threshold=-1.0)) == 8
    assert store.count() == 8


def test_memory_store_rejects_mismatched_dimension_as_one_batch_error():
    store = InMemoryChunkStore()
    store.create_batch([_chunk("doc-1", 0, [1.0, 0.0])])

    with pytest.raises(StoreError):
        store.create_batch([_chunk("doc-2", 0, [1.0, 0.0]), _chunk("doc-2", 1, [1.0, 0.0, 0.0])])

    assert store.get_by_document_id("doc-2") == []
    assert store.count() == 1


def test_memory_store_rejects_chunk_without_document_id():
    store = InMemoryChunkStore()
    with pytest.raises(StoreError):
        store.create_batch([_chunk("", 0, [1.0])])


def test_to_dict_renders_wire_fields():
    store = InMemoryChunkStore()
    store.create_batch([_chunk("doc-1", 0, [0.5, 0.5], content="hello")])

    (stored,) = store.get_by_document_id("doc-1")
    payload = stored.to_dict()

    assert set(payload) == {"id", "document_id", "chunk_index", "content", "embedding", "created_at"}
    assert payload["embedding"] == [0.5, 0.5]
    assert datetime.fromisoformat(payload["created_at"]) == stored.created_at


def test_create_chunk_store_selects_backend():
    assert isinstance(create_chunk_store(), InMemoryChunkStore)
    assert isinstance(create_chunk_store({"kind": "in-memory"}), InMemoryChunkStore)

    qdrant_store = create_chunk_store({"kind": "qdrant", "location": ":memory:", "collection_name": "kb"})
    assert isinstance(qdrant_store, QdrantChunkStore)
    assert qdrant_store.collection_name == "kb"

    with pytest.raises(ValueError):
        create_chunk_store({"kind": "faiss"})
