from datetime import datetime
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from lucid_rag.app.api import create_app
from lucid_rag.common import ProviderError
from lucid_rag.pipelines.rag_pipeline import NOT_CONFIGURED_ANSWER


class ExplodingPipeline:
    def query(self, query):
        raise ProviderError("generate answer: upstream returned 502 with secret-token-123")


def _client(pipeline) -> TestClient:
    return TestClient(create_app(SimpleNamespace(pipeline=pipeline)))


@pytest.fixture
def indexed_pipeline(make_pipeline):
    pipeline = make_pipeline()
    pipeline.index_document("doc-1", "apple apple apple apple cherry cherry cherry")
    return pipeline


def test_health(indexed_pipeline):
    response = _client(indexed_pipeline).get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_query_returns_wire_contract(indexed_pipeline):
    response = _client(indexed_pipeline).post("/v1/rag/query", json={"query": "apple", "top_k": 2})

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"answer", "relevant_chunks", "confidence_score", "processing_time_ms"}
    assert body["answer"] == "Apples are in aisle three."
    assert body["confidence_score"] == pytest.approx(0.85)
    assert isinstance(body["processing_time_ms"], int)

    (chunk,) = body["relevant_chunks"]
    assert set(chunk) == {"id", "document_id", "chunk_index", "content", "embedding", "created_at"}
    assert chunk["document_id"] == "doc-1"
    assert chunk["chunk_index"] == 0
    assert chunk["content"] == "apple apple apple apple"
    assert chunk["embedding"] == [4.0, 0.0, 0.0, 0.0, 0.0]
    datetime.fromisoformat(chunk["created_at"])


def test_threshold_is_forwarded(indexed_pipeline):
    body = _client(indexed_pipeline).post("/v1/rag/query", json={"query": "apple", "threshold": 0.1}).json()
    assert [c["chunk_index"] for c in body["relevant_chunks"]] == [0, 1]


def test_empty_query_is_a_client_error(indexed_pipeline):
    response = _client(indexed_pipeline).post("/v1/rag/query", json={"query": ""})
    assert response.status_code == 400


def test_malformed_request_is_rejected(indexed_pipeline):
    response = _client(indexed_pipeline).post("/v1/rag/query", json={"top_k": 3})
    assert response.status_code == 422


def test_not_configured_is_a_successful_response(make_pipeline):
    response = _client(make_pipeline(embedder=None)).post("/v1/rag/query", json={"query": "apple"})

    assert response.status_code == 200
    assert response.json()["answer"] == NOT_CONFIGURED_ANSWER
    assert response.json()["confidence_score"] == 0.0
    assert response.json()["relevant_chunks"] == []


def test_pipeline_failure_is_a_server_error_without_details(caplog):
    response = _client(ExplodingPipeline()).post("/v1/rag/query", json={"query": "apple"})

    assert response.status_code == 500
    assert "secret-token-123" not in response.text
    assert "Error while handling /v1/rag/query" in caplog.text
