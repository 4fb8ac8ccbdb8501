import pytest

from lucid_rag.retrieval.embedder import OpenAILikeEmbedder, create_embedder


class DummyLlamaEmbedding:
    """Stands in for OpenAILikeEmbedding; embeds text as [len(text), model name length]."""

    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        DummyLlamaEmbedding.instances.append(self)

    def get_text_embedding(self, text):
        return (float(len(text)), float(len(self.kwargs["model_name"])))


@pytest.fixture(autouse=True)
def patch_openai_like_embedding(monkeypatch):
    DummyLlamaEmbedding.instances = []
    monkeypatch.setattr("llama_index.embeddings.openai_like.OpenAILikeEmbedding", DummyLlamaEmbedding)
    yield


def test_create_embedding_returns_a_list_per_model():
    embedder = OpenAILikeEmbedder(api_key="sk-test", timeout=3.0, max_retries=0)

    assert embedder.create_embedding("abc") == [3.0, float(len("text-embedding-ada-002"))]
    assert embedder.create_embedding("abc", "m1") == [3.0, 2.0]
    assert embedder.create_embedding("abcd", "m1") == [4.0, 2.0]

    default, other = DummyLlamaEmbedding.instances
    assert default.kwargs["timeout"] == 3.0
    assert default.kwargs["max_retries"] == 0
    assert other.kwargs["model_name"] == "m1"
    assert embedder.embedder is default


@pytest.mark.parametrize("kind", ["OpenAILike", "openai-like", "openai", None])
def test_create_embedder_accepts_kind_aliases(kind):
    config = {"model_name": "text-embedding-3-small", "api_key": "sk-test"}
    if kind is not None:
        config["kind"] = kind

    embedder = create_embedder(config)

    assert isinstance(embedder, OpenAILikeEmbedder)
    assert embedder.model_name == "text-embedding-3-small"


def test_create_embedder_rejects_unknown_kind():
    with pytest.raises(ValueError):
        create_embedder({"kind": "sentence-transformers"})
