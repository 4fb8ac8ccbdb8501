import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from lucid_rag.generation.llm_interface import (
    OpenAIChatLikeLLM,
    create_llm,
    to_langchain_messages,
)


class DummyChatOpenAI:
    """Stands in for ChatOpenAI; records constructor kwargs and invocations."""

    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.invocations = []
        DummyChatOpenAI.instances.append(self)

    def invoke(self, messages, **options):
        self.invocations.append((messages, options))
        return AIMessage(content=f"reply from {self.kwargs['model']}")


@pytest.fixture(autouse=True)
def patch_chat_openai(monkeypatch):
    DummyChatOpenAI.instances = []
    monkeypatch.setattr("lucid_rag.generation.llm_interface.ChatOpenAI", DummyChatOpenAI)
    yield


def test_to_langchain_messages_maps_roles():
    converted = to_langchain_messages([
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
    ])

    assert [type(m) for m in converted] == [SystemMessage, HumanMessage, AIMessage]
    assert [m.content for m in converted] == ["be brief", "hi", "hello"]

    with pytest.raises(ValueError):
        to_langchain_messages([{"role": "tool", "content": "x"}])


def test_create_chat_completion_returns_text_and_caches_clients():
    llm = OpenAIChatLikeLLM(api_key="sk-test", timeout=5.0, max_retries=1, temperature=0.0)

    assert llm.create_chat_completion([{"role": "user", "content": "hi"}]) == "reply from gpt-3.5-turbo"
    assert llm.create_chat_completion([{"role": "user", "content": "hi"}], "gpt-4o-mini") == "reply from gpt-4o-mini"
    llm.create_chat_completion([{"role": "user", "content": "again"}], "gpt-4o-mini", {"max_tokens": 10})

    default_client, other_client = DummyChatOpenAI.instances
    assert default_client.kwargs["timeout"] == 5.0
    assert default_client.kwargs["max_retries"] == 1
    assert default_client.kwargs["temperature"] == 0.0
    assert len(other_client.invocations) == 2
    assert other_client.invocations[-1][1] == {"max_tokens": 10}
    assert llm.llm is default_client


def test_create_llm_reads_config_and_rejects_unknown_kinds():
    llm = create_llm({
        "kind": "openai",
        "model_name": "gpt-4o-mini",
        "api_key": "sk-test",
        "model_kwargs": {"temperature": 0.3},
    })

    assert isinstance(llm, OpenAIChatLikeLLM)
    assert llm.model_name == "gpt-4o-mini"
    assert llm.llm.kwargs["temperature"] == 0.3
    assert llm.create_chat_completion([{"role": "user", "content": "hello"}]) == "reply from gpt-4o-mini"

    with pytest.raises(ValueError):
        create_llm({"kind": "anthropic-bedrock"})
    with pytest.raises(TypeError):
        create_llm(["not", "a", "mapping"])
