"""lucid_rag.generation.prompt_builder

Prompt template definitions and rendering utilities.

This module provides lightweight abstractions for defining, registering,
and rendering named chat prompt templates. Each template renders into an
ordered list of ``{"role", "content"}`` messages; template text is rendered
with Jinja2.

Classes
-------
PromptTemplate
    Represents a single named chat prompt template.
PromptBuilder
    Registry and factory for prompt templates.

Functions
---------
build_context_block
    Render retrieved chunks as numbered ``[Source i]`` blocks.
"""
from typing import Optional, List, Dict, Any, Iterable, Union
from pathlib import Path
import json
import warnings

from jinja2 import Template

from lucid_rag.common import Chunk

GROUNDED_ANSWER_PROMPT = "grounded_answer"

DEFAULT_TEMPLATES: List[Dict[str, str]] = [
    {
        "name": GROUNDED_ANSWER_PROMPT,
        "system": (
            "You are a helpful assistant for a store. Answer questions based ONLY on the provided context.\n"
            "If the context doesn't contain enough information to answer the question, say so honestly.\n"
            "Be concise and helpful in your responses."
        ),
        "user": "Context:\n{{ context }}\nQuestion: {{ question }}",
    },
]


def build_context_block(chunks: Iterable[Chunk]) -> str:
    """Render chunks as numbered context sources.

    Parameters
    ----------
    chunks : Iterable[Chunk]
        Retrieved chunks in ranked order.

    Returns
    -------
    str
        Concatenation of ``"[Source i]\\n<content>\\n\\n"`` for each chunk,
        numbered from 1.
    """
    return "".join(
        f"[Source {i}]\n{chunk.content}\n\n" for i, chunk in enumerate(chunks, start=1)
    )


class PromptTemplate:
    """Represents a single named chat prompt template.

    Parameters
    ----------
    name : str
        Name of the template.
    system : str or None, optional
        System instruction template.
    user : str, optional
        User turn template.
    """

    def __init__(self,
                 name: str,
                 system: Optional[str] = None,
                 user: Optional[str] = ''
        ):
        self.name = name
        self.system = system
        self.user = user or ''

    def render_messages(self, **kwargs) -> List[Dict[str, str]]:
        """Render the template into chat messages.

        Parameters
        ----------
        **kwargs : Any
            Variables substituted into the system and user templates.

        Returns
        -------
        list[dict[str, str]]
            A system message (when the template has one) followed by the user
            message.
        """
        messages = []
        if self.system:
            messages.append({"role": "system", "content": Template(self.system).render(**kwargs)})
        messages.append({"role": "user", "content": Template(self.user).render(**kwargs)})
        return messages


class PromptBuilder:
    """Registry and factory for prompt templates."""

    def __init__(self):
        self.templates: Dict[str, PromptTemplate] = {}

    @classmethod
    def with_defaults(cls) -> "PromptBuilder":
        """Return a builder with the bundled templates registered."""
        builder = cls()
        for data in DEFAULT_TEMPLATES:
            builder.register_from_dict(data)
        return builder

    def register_from_dict(self, data: Dict[str, Any]):
        """Register a new template from a dictionary.

        Parameters
        ----------
        data : dict[str, Any]
            Mapping with keys ``"name"``, ``"system"`` and ``"user"``.

        Raises
        ------
        KeyError
            If ``"name"`` is missing from ``data``.
        TypeError
            If fields are of invalid types.
        ValueError
            If ``"name"`` is empty.
        """
        if "name" not in data:
            raise KeyError("Template definition missing required key: 'name'")
        name = data["name"]
        if not isinstance(name, str):
            raise TypeError(f"Template 'name' must be a str, got {type(name)!r}")
        if not name.strip():
            raise ValueError("Template 'name' must be a non-empty string")

        system = data.get("system")
        if system is not None and not isinstance(system, str):
            raise TypeError(f"Template 'system' must be a str or None, got {type(system)!r}")
        user = data.get("user") or ""

        if name in self.templates:
            warnings.warn(f"Overwriting existing prompt template: {name}")
        self.templates[name] = PromptTemplate(name=name, system=system, user=user)

    def register_from_file(self, path: Union[Path, str], base_dir: Optional[Path] = None) -> List[str]:
        """Load and register templates from a JSON file.

        Parameters
        ----------
        path : Path | str
            Path to a JSON file containing one template object or a list of them.
        base_dir : Path | None, optional
            If provided and ``path`` is relative, resolve it relative to this directory.

        Returns
        -------
        list[str]
            Names of templates registered from this file.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        ValueError
            If the file extension is not supported.
        """
        p = Path(path)
        if not p.is_absolute() and base_dir is not None:
            p = base_dir / p
        p = p.resolve()
        if not p.exists():
            raise FileNotFoundError(f"Prompt file not found: {p}")
        if p.suffix.lower() != ".json":
            raise ValueError(f"Unsupported file type: {p.suffix}")

        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)

        items = data if isinstance(data, list) else [data]
        registered: List[str] = []
        for item in items:
            if not isinstance(item, dict):
                raise TypeError(f"Prompt file must contain an object or list of objects, got {type(item)!r}")
            self.register_from_dict(item)
            registered.append(item["name"])

        return registered

    def list_prompts(self) -> List[str]:
        """Return a sorted list of registered prompt template names."""
        return sorted(self.templates.keys())

    def has_prompt(self, name: str) -> bool:
        return name in self.templates

    def get_template(self, name: str) -> PromptTemplate:
        """Get a registered PromptTemplate by name.

        Raises
        ------
        KeyError
            If no template is registered under ``name``.
        """
        if name not in self.templates:
            available = ", ".join(self.list_prompts())
            raise KeyError(f"No template registered under name: {name}. Available: [{available}]")
        return self.templates[name]

    def build_messages(self, name: str, **kwargs) -> List[Dict[str, str]]:
        """Render a registered template into chat messages by name."""
        return self.get_template(name).render_messages(**kwargs)


__all__ = [
    "GROUNDED_ANSWER_PROMPT",
    "PromptTemplate",
    "PromptBuilder",
    "build_context_block",
]
