import json

import pytest

from lucid_rag.common import Chunk
from lucid_rag.generation.prompt_builder import (
    GROUNDED_ANSWER_PROMPT,
    PromptBuilder,
    build_context_block,
)


def test_context_block_numbers_sources_from_one():
    chunks = [Chunk("doc-1", 0, "first"), Chunk("doc-2", 3, "second")]
    assert build_context_block(chunks) == "[Source 1]\nfirst\n\n[Source 2]\nsecond\n\n"
    assert build_context_block([]) == ""


def test_grounded_answer_prompt_renders_system_and_user_turns():
    messages = PromptBuilder.with_defaults().build_messages(
        GROUNDED_ANSWER_PROMPT, context="[Source 1]\nOpen 9-5.\n\n", question="When are you open?"
    )

    system, user = messages
    assert system["role"] == "system"
    assert "based ONLY on the provided context" in system["content"]
    assert user == {
        "role": "user",
        "content": "Context:\n[Source 1]\nOpen 9-5.\n\n\nQuestion: When are you open?",
    }


def test_register_from_file_resolves_relative_paths(tmp_path):
    (tmp_path / "prompts.json").write_text(json.dumps([
        {"name": "plain", "user": "{{ question }}"},
        {"name": "with_system", "system": "Be kind.", "user": "{{ question }}?"},
    ]))

    builder = PromptBuilder()
    registered = builder.register_from_file("prompts.json", base_dir=tmp_path)

    assert registered == ["plain", "with_system"]
    assert builder.build_messages("plain", question="hi") == [{"role": "user", "content": "hi"}]
    assert builder.build_messages("with_system", question="hi") == [
        {"role": "system", "content": "Be kind."},
        {"role": "user", "content": "hi?"},
    ]


def test_register_from_file_errors(tmp_path):
    builder = PromptBuilder()
    with pytest.raises(FileNotFoundError):
        builder.register_from_file(tmp_path / "missing.json")

    (tmp_path / "prompts.yaml").write_text("name: x")
    with pytest.raises(ValueError):
        builder.register_from_file(tmp_path / "prompts.yaml")


def test_unknown_template_lists_available_names():
    with pytest.raises(KeyError, match="grounded_answer"):
        PromptBuilder.with_defaults().get_template("nope")
