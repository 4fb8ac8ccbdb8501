import threading

import pytest

from lucid_rag.generation.llm_interface import BaseLLM
from lucid_rag.pipelines.rag_pipeline import RAGPipeline, RAGSettings
from lucid_rag.retrieval.chunk_store import InMemoryChunkStore
from lucid_rag.retrieval.embedder import BaseEmbedder
from lucid_rag.retrieval.text_splitter import WordChunker

VOCABULARY = ["apple", "banana", "cherry", "delivery", "refund"]


class DummyEmbedder(BaseEmbedder):
    """
    Keyword-count embedder for tests:
    - one dimension per VOCABULARY word, holding its count in the text
    - raises for any text containing the word "FAIL"
    """

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()

    @classmethod
    def from_config_dict(cls, config, callback_manager=None):
        return cls()

    def create_embedding(self, text, model_name=None):
        with self._lock:
            self.calls.append((text, model_name))
        words = text.lower().split()
        if "fail" in words:
            raise RuntimeError("embedding endpoint unavailable")
        return [float(words.count(w)) for w in VOCABULARY]


class DummyLLM(BaseLLM):
    """Chat model stub that records the messages it receives."""

    def __init__(self, answer="Apples are in aisle three."):
        self.answer = answer
        self.calls = []

    @classmethod
    def from_config_dict(cls, config, callback_manager=None):
        return cls()

    def create_chat_completion(self, messages, model_name=None, options=None):
        self.calls.append({"messages": list(messages), "model_name": model_name})
        return self.answer


@pytest.fixture
def embedder():
    return DummyEmbedder()


@pytest.fixture
def llm():
    return DummyLLM()


@pytest.fixture
def store():
    return InMemoryChunkStore()


@pytest.fixture
def make_pipeline(embedder, llm, store):
    """Build a pipeline over the dummy providers; keyword arguments override components."""

    def _make(chunk_size=4, chunk_overlap=1, **overrides):
        components = {
            "embedder": embedder,
            "llm": llm,
            "chunk_store": store,
            "chunker": WordChunker(chunk_size=chunk_size, chunk_overlap=chunk_overlap),
            "settings": RAGSettings(),
        }
        components.update(overrides)
        return RAGPipeline(**components)

    return _make
