"""lucid_rag

Lucid RAG core package.

This package contains the building blocks of a Retrieval-Augmented Generation
(RAG) service for answering questions from a knowledge base of documents,
including configuration, retrieval components, prompt/generation utilities,
and end-to-end pipeline orchestration.

Attributes
----------
__version__ : str
    Package version string. Defaults to ``"0.0.0-dev"`` when package metadata is
    unavailable.

Modules
-------
config
    Global configuration loader and cached accessors.
app
    Application container and HTTP API.
pipelines
    Pipeline orchestration (indexing, retrieval → prompting → generation).
retrieval
    Chunking, embedding, similarity and chunk stores.
generation
    LLM and prompt-building interfaces and factories.
common
    Shared schemas and the error hierarchy.

Exports
-------
GlobalConfig
    Global configuration loader and accessor.
LucidContainer
    Cached runtime component container for applications.
build_container
    Factory function to construct a configured :class:`~lucid_rag.app.container.LucidContainer`.
RAGPipeline
    End-to-end Retrieval-Augmented Generation pipeline.
RAGSettings
    Pipeline configuration.
DocumentIndexSync
    Document lifecycle hooks.
Chunk, Query, Response
    Core schemas.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("lucid-rag")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from .config import GlobalConfig
from .app.container import LucidContainer, build_container
from .pipelines.rag_pipeline import RAGPipeline, RAGSettings
from .pipelines.document_sync import DocumentIndexSync
from .common import Chunk, Query, Response

__all__ = [
    "__version__",
    "GlobalConfig",
    "LucidContainer",
    "build_container",
    "RAGPipeline",
    "RAGSettings",
    "DocumentIndexSync",
    "Chunk",
    "Query",
    "Response",
]
