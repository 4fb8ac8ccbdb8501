"""lucid_rag.app.container

Composition root for the Lucid RAG core.

This module is the single place where concrete implementations are wired
together from configuration (embedder, chat LLM, chunk store, chunker, prompt
builder, and the RAG pipeline). Components are constructed lazily and cached
on first access to avoid repeated expensive initialisation.

Notes
-----
- Keep this module importable with minimal side effects:
  - do not perform network calls at import time
  - do not read files at import time
  - construct expensive objects lazily (cached on first access)

- A provider section without an API key resolves to ``None`` rather than a
  client. The pipeline turns missing providers into its "not configured"
  mode, so the service still starts and answers queries with an explanatory
  message.

Examples
--------
>>> from lucid_rag.config import GlobalConfig
>>> from lucid_rag.app.container import build_container
>>> cfg = GlobalConfig.load("config.yaml")
>>> c = build_container(cfg)
>>> response = c.pipeline.run("What are your opening hours?")
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any, Mapping
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LucidContainer:
    """Holds the configured, cached runtime components for the application.

    Parameters
    ----------
    config : Any
        Loaded global configuration object (typically :class:`lucid_rag.config.GlobalConfig`).
    """

    config: Any

    @cached_property
    def embedder(self) -> Any:
        """Return the embedding provider, or ``None`` when not configured."""
        from lucid_rag.retrieval.embedder import create_embedder

        section = _as_mapping(getattr(self.config, "embedder", None) or {})
        if not _is_configured(section):
            logger.warning("Embedder is not configured (missing api_key)")
            return None
        return create_embedder(dict(section))

    @cached_property
    def generator_llm(self) -> Any:
        """Return the LLM used to generate final answers, or ``None`` when not configured."""
        from lucid_rag.generation.llm_interface import create_llm

        section = _as_mapping(getattr(self.config, "generator_llm", None) or {})
        if not _is_configured(section):
            logger.warning("Generator LLM is not configured (missing api_key)")
            return None
        return create_llm(dict(section))

    @cached_property
    def chunk_store(self) -> Any:
        """Return the chunk store (in-memory unless configured otherwise)."""
        from lucid_rag.retrieval.chunk_store import create_chunk_store

        section = _as_mapping(getattr(self.config, "chunk_store", None) or {})
        return create_chunk_store(dict(section))

    @cached_property
    def chunker(self) -> Any:
        """Return the word chunker configured from ``chunking``."""
        from lucid_rag.retrieval.text_splitter import WordChunker

        section = _as_mapping(getattr(self.config, "chunking", None) or {})
        return WordChunker.from_config_dict(dict(section))

    @cached_property
    def prompt_builder(self) -> Any:
        """Return the prompt builder.

        The builder always carries the bundled templates; files listed in
        ``rag.prompts`` are registered on top of them.

        Notes
        -----
        To be packaging- and Docker-friendly, prompt files are resolved
        relative to the loaded config file directory (when available), not the
        current working directory.
        """
        from lucid_rag.generation.prompt_builder import PromptBuilder

        builder = PromptBuilder.with_defaults()
        prompts = getattr(self.config, "prompts", None)
        if prompts is None:
            return builder

        cfg_path = getattr(self.config, "config_path", None)
        base_dir = Path(cfg_path).expanduser().resolve().parent if cfg_path else None

        if isinstance(prompts, str):
            sources = [prompts]
        elif isinstance(prompts, (list, tuple)):
            sources = [str(p) for p in prompts]
        else:
            raise TypeError(f"rag.prompts must be a str or list[str], got {type(prompts)!r}")

        for src in sources:
            builder.register_from_file(src, base_dir=base_dir)

        return builder

    @cached_property
    def settings(self) -> Any:
        """Return the pipeline settings.

        Raises
        ------
        ValueError
            If the configured ``prompt_name`` is not registered.
        """
        from lucid_rag.pipelines.rag_pipeline import RAGSettings

        rag = _as_mapping(getattr(self.config, "rag", None) or {})
        embedder_cfg = _as_mapping(getattr(self.config, "embedder", None) or {})
        llm_cfg = _as_mapping(getattr(self.config, "generator_llm", None) or {})

        settings = RAGSettings.from_config_dict(
            dict(rag),
            embedding_model=embedder_cfg.get("model_name"),
            chat_model=llm_cfg.get("model_name"),
        )

        if not self.prompt_builder.has_prompt(settings.prompt_name):
            available = ", ".join(self.prompt_builder.list_prompts())
            raise ValueError(
                f"Configured prompt_name {settings.prompt_name!r} was not found in loaded prompts. "
                f"Available: [{available}]"
            )

        return settings

    @cached_property
    def pipeline(self) -> Any:
        """Return the fully wired RAG pipeline."""
        from lucid_rag.pipelines.rag_pipeline import RAGPipeline

        return RAGPipeline(
            embedder=self.embedder,
            chunk_store=self.chunk_store,
            llm=self.generator_llm,
            chunker=self.chunker,
            prompt_builder=self.prompt_builder,
            settings=self.settings,
        )

    @cached_property
    def document_sync(self) -> Any:
        """Return the document lifecycle hooks bound to :attr:`pipeline`."""
        from lucid_rag.pipelines.document_sync import DocumentIndexSync

        return DocumentIndexSync(self.pipeline)


def build_container(config: Any) -> LucidContainer:
    """Create a :class:`~lucid_rag.app.container.LucidContainer`.

    Single entry point for the FastAPI startup hook, CLI scripts, and tests.

    Parameters
    ----------
    config : Any
        Loaded global configuration object (typically :class:`lucid_rag.config.GlobalConfig`).

    Returns
    -------
    LucidContainer
        Container instance with cached component accessors.
    """

    return LucidContainer(config=config)

def _is_configured(section: Mapping[str, Any]) -> bool:
    """Return whether a provider section carries a usable API key.

    An ``api_key`` that still looks like an environment reference (the
    variable was unset when the config was loaded) counts as missing.
    """
    api_key = section.get("api_key")
    if not isinstance(api_key, str):
        return False
    api_key = api_key.strip()
    return bool(api_key) and not api_key.startswith("$")

def _as_mapping(obj: Any) -> Mapping[str, Any]:
    """Coerce an object into a mapping.

    Parameters
    ----------
    obj : Any
        Object to interpret as a mapping. If ``obj`` is already a mapping it is
        returned as-is. If it has a ``__dict__``, that dictionary is returned.

    Returns
    -------
    Mapping[str, Any]
        A dictionary-like view of ``obj``.

    Raises
    ------
    TypeError
        If ``obj`` cannot be interpreted as a mapping.
    """
    if isinstance(obj, Mapping):
        return obj

    if hasattr(obj, "__dict__"):
        return dict(vars(obj))

    raise TypeError(f"Expected mapping type but got {type(obj)}")


__all__ = ["LucidContainer", "build_container"]
