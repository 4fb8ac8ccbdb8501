"""lucid_rag.pipelines.rag_pipeline

End-to-end Retrieval-Augmented Generation (RAG) pipeline orchestration.

This module defines the :class:`RAGPipeline`, which coordinates indexing a
document's content into embedded chunks, removing a document's chunks, and
answering questions from the indexed chunks.

Classes
-------
RAGSettings
    Explicit configuration for the pipeline.
RAGPipeline
    Orchestrates chunking → embedding → storage, and retrieval → prompting →
    generation.

Notes
-----
Whether the pipeline can answer queries or index documents is decided once, at
construction, from the components it is given. A pipeline that lacks a
component answers queries with a fixed "not configured" response and skips
indexing instead of failing.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence
import logging
import time

from lucid_rag.common import (
    Chunk,
    InvalidQueryError,
    ProviderError,
    Query,
    Response,
    StoreError,
)
from lucid_rag.generation.llm_interface import BaseLLM
from lucid_rag.generation.prompt_builder import GROUNDED_ANSWER_PROMPT, PromptBuilder, build_context_block
from lucid_rag.retrieval.chunk_store import BaseChunkStore
from lucid_rag.retrieval.embedder import BaseEmbedder
from lucid_rag.retrieval.text_splitter import WordChunker

logger = logging.getLogger(__name__)

NOT_CONFIGURED_ANSWER = "RAG service is not configured. Please set OPENAI_API_KEY."
NO_RESULTS_ANSWER = "I couldn't find any relevant information in the knowledge base to answer your question."

HIGH_CONFIDENCE = 0.85
LOW_CONFIDENCE = 0.60


@dataclass(frozen=True)
class RAGSettings:
    """Configuration for :class:`RAGPipeline`.

    Attributes
    ----------
    embedding_model : str
        Model used for chunk and query embeddings.
    chat_model : str
        Model used to generate answers.
    top_k : int
        Default number of chunks retrieved per query.
    threshold : float
        Default minimum cosine similarity for retrieved chunks.
    embed_workers : int
        Concurrent embedding calls while indexing. ``1`` embeds sequentially.
    prompt_name : str
        Name of the prompt template used to build the chat messages.
    not_configured_answer : str
        Answer returned when the pipeline lacks a provider or store.
    no_results_answer : str
        Answer returned when no chunk clears the threshold.
    """
    embedding_model: str = "text-embedding-ada-002"
    chat_model: str = "gpt-3.5-turbo"
    top_k: int = 5
    threshold: float = 0.7
    embed_workers: int = 1
    prompt_name: str = GROUNDED_ANSWER_PROMPT
    not_configured_answer: str = NOT_CONFIGURED_ANSWER
    no_results_answer: str = NO_RESULTS_ANSWER

    @classmethod
    def from_config_dict(
            cls,
            config: Optional[Mapping[str, Any]] = None,
            *,
            embedding_model: Optional[str] = None,
            chat_model: Optional[str] = None,
        ) -> "RAGSettings":
        """Build settings from the ``rag`` configuration section.

        Parameters
        ----------
        config : Mapping[str, Any] or None, optional
            The ``rag`` section. Missing keys keep their defaults.
        embedding_model : str or None, optional
            Embedding model name, usually taken from the ``embedder`` section.
        chat_model : str or None, optional
            Chat model name, usually taken from the ``generator_llm`` section.

        Returns
        -------
        RAGSettings
            Settings instance.
        """
        config = dict(config or {})
        defaults = cls()
        return cls(
            embedding_model=embedding_model or config.get("embedding_model") or defaults.embedding_model,
            chat_model=chat_model or config.get("chat_model") or defaults.chat_model,
            top_k=int(config.get("top_k", defaults.top_k)),
            threshold=float(config.get("threshold", defaults.threshold)),
            embed_workers=max(1, int(config.get("embed_workers", defaults.embed_workers))),
            prompt_name=config.get("prompt_name") or defaults.prompt_name,
            not_configured_answer=config.get("not_configured_answer") or defaults.not_configured_answer,
            no_results_answer=config.get("no_results_answer") or defaults.no_results_answer,
        )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class RAGPipeline:
    """Retrieval-Augmented Generation (RAG) orchestrator.

    This class wires together:
    - a chunker that splits document content into overlapping chunks
    - an embedder that turns chunks and queries into vectors
    - a chunk store that persists chunks and ranks them against a query
    - an LLM that answers the question from the retrieved context

    The pipeline keeps no state of its own beyond its components, making it
    safe to reuse across requests. Concurrent access is only as safe as the
    chunk store it wraps.

    Parameters
    ----------
    embedder : BaseEmbedder or None
        Embedding provider.
    chunk_store : BaseChunkStore or None
        Chunk persistence and search.
    llm : BaseLLM or None
        Chat-completion provider.
    chunker : WordChunker or None, optional
        Text splitter used while indexing. Defaults to ``WordChunker()``.
    prompt_builder : PromptBuilder or None, optional
        Prompt registry. Defaults to the bundled templates.
    settings : RAGSettings or None, optional
        Pipeline configuration. Defaults to ``RAGSettings()``.
    """

    def __init__(
            self,
            *,
            embedder: Optional[BaseEmbedder],
            chunk_store: Optional[BaseChunkStore],
            llm: Optional[BaseLLM],
            chunker: Optional[WordChunker] = None,
            prompt_builder: Optional[PromptBuilder] = None,
            settings: Optional[RAGSettings] = None,
        ):
        self.embedder = embedder
        self.chunk_store = chunk_store
        self.llm = llm
        self.chunker = chunker if chunker is not None else WordChunker()
        self.prompt_builder = prompt_builder or PromptBuilder.with_defaults()
        self.settings = settings or RAGSettings()

        self.can_query = embedder is not None and chunk_store is not None and llm is not None
        self.can_index = embedder is not None and chunk_store is not None
        self.can_delete = chunk_store is not None

        if not self.can_query:
            logger.warning(
                "RAG pipeline is not fully configured (embedder=%s, chunk_store=%s, llm=%s); "
                "queries will return a degraded response",
                embedder is not None, chunk_store is not None, llm is not None,
            )

    # ----------------------------------------------------------------- query

    def query(self, query: Query) -> Response:
        """Answer ``query`` from the indexed chunks.

        Parameters
        ----------
        query : Query
            The question and its retrieval parameters. ``top_k <= 0`` and
            ``threshold <= 0`` select the configured defaults.

        Returns
        -------
        Response
            The answer with its supporting chunks. When the pipeline is not
            configured or nothing relevant is found, a fixed answer with zero
            confidence and no chunks is returned.

        Raises
        ------
        InvalidQueryError
            If the query text is empty.
        ProviderError
            If embedding the query or generating the answer fails.
        StoreError
            If the chunk search fails.
        """
        start = time.perf_counter()

        if not query.text:
            raise InvalidQueryError("invalid query: query text is empty")

        top_k = query.top_k if query.top_k > 0 else self.settings.top_k
        threshold = query.threshold if query.threshold > 0 else self.settings.threshold

        if not self.can_query:
            return Response(
                answer=self.settings.not_configured_answer,
                relevant_chunks=[],
                confidence_score=0.0,
                processing_time_ms=_elapsed_ms(start),
            )

        query_embedding = self._embed(query.text, what="query")

        try:
            relevant_chunks = self.chunk_store.search(query_embedding, top_k, threshold)
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"search chunks: {exc}") from exc

        if not relevant_chunks:
            logger.info("No chunk cleared threshold %.2f for query of length %d", threshold, len(query.text))
            return Response(
                answer=self.settings.no_results_answer,
                relevant_chunks=[],
                confidence_score=0.0,
                processing_time_ms=_elapsed_ms(start),
            )

        messages = self.prompt_builder.build_messages(
            self.settings.prompt_name,
            context=build_context_block(relevant_chunks),
            question=query.text,
        )

        try:
            answer = self.llm.create_chat_completion(messages, self.settings.chat_model)
        except Exception as exc:
            raise ProviderError(f"generate answer: {exc}") from exc

        confidence_score = HIGH_CONFIDENCE
        if len(relevant_chunks) < top_k // 2:
            confidence_score = LOW_CONFIDENCE

        response = Response(
            answer=answer,
            relevant_chunks=list(relevant_chunks),
            confidence_score=confidence_score,
            processing_time_ms=_elapsed_ms(start),
        )
        logger.info(
            "RAG query answered (query_length=%d, chunks=%d, confidence=%.2f, processing_time_ms=%d)",
            len(query.text), len(relevant_chunks), confidence_score, response.processing_time_ms,
        )
        return response

    def run(self, query: str, *, top_k: int = 0, threshold: float = 0.0) -> Response:
        """Answer a question given as plain text.

        Convenience wrapper around :meth:`query`.
        """
        return self.query(Query(text=query, top_k=top_k, threshold=threshold))

    def __call__(self, query: str, **kwargs) -> Response:
        return self.run(query, **kwargs)

    # -------------------------------------------------------------- indexing

    def index_document(self, document_id: str, content: str) -> int:
        """Chunk, embed and store ``content`` as the chunks of ``document_id``.

        Chunks whose embedding fails are logged and skipped; the remaining
        chunks are stored with sequential ``chunk_index`` values starting at 0.
        Existing chunks of the document are not touched; callers replacing a
        document's content delete its chunks first.

        Parameters
        ----------
        document_id : str
            Identifier of the document being indexed.
        content : str
            Document text.

        Returns
        -------
        int
            Number of chunks stored. ``0`` when indexing is not configured,
            the content is empty, or every embedding failed.

        Raises
        ------
        StoreError
            If storing the chunk batch fails.
        """
        if not self.can_index or not content:
            return 0

        texts = self.chunker.chunk(content)
        if not texts:
            return 0

        embeddings = self._embed_chunks(document_id, texts)

        chunks = []
        for text, embedding in zip(texts, embeddings):
            if embedding is None:
                continue
            chunks.append(Chunk(
                document_id=document_id,
                chunk_index=len(chunks),
                content=text,
                embedding=embedding,
            ))

        if not chunks:
            logger.warning("No chunk of document %s could be embedded; nothing stored", document_id)
            return 0

        try:
            self.chunk_store.create_batch(chunks)
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"create chunk batch: {exc}") from exc

        logger.info(
            "Indexed document %s (chunks=%d, stored=%d)", document_id, len(texts), len(chunks)
        )
        return len(chunks)

    def delete_document_chunks(self, document_id: str) -> None:
        """Remove every chunk of ``document_id``.

        A no-op when no chunk store is configured.

        Raises
        ------
        StoreError
            If the chunk store fails to delete.
        """
        if not self.can_delete:
            return

        try:
            self.chunk_store.delete_by_document_id(document_id)
        except StoreError:
            raise
        except Exception as exc:
            raise StoreError(f"delete document chunks: {exc}") from exc

        logger.debug("Deleted chunks of document %s", document_id)

    def reindex_document(self, document_id: str, content: str) -> int:
        """Replace the chunks of ``document_id`` with chunks of ``content``.

        The old chunks are deleted first; if that fails nothing is indexed,
        so old and new chunks never coexist under one document.

        Returns
        -------
        int
            Number of chunks stored for the new content.

        Raises
        ------
        StoreError
            If deleting the old chunks or storing the new ones fails.
        """
        self.delete_document_chunks(document_id)
        return self.index_document(document_id, content)

    # --------------------------------------------------------------- helpers

    def _embed(self, text: str, *, what: str) -> list[float]:
        try:
            return self.embedder.create_embedding(text, self.settings.embedding_model)
        except Exception as exc:
            raise ProviderError(f"generate {what} embedding: {exc}") from exc

    def _embed_chunk_or_none(self, document_id: str, chunk_index: int, text: str) -> Optional[list[float]]:
        try:
            return self._embed(text, what="chunk")
        except ProviderError as exc:
            logger.warning(
                "Failed to create embedding for chunk (document_id=%s, chunk_index=%d): %s",
                document_id, chunk_index, exc,
            )
            return None

    def _embed_chunks(self, document_id: str, texts: Sequence[str]) -> list[Optional[list[float]]]:
        """Embed ``texts`` in order, yielding ``None`` for failed chunks."""
        workers = min(self.settings.embed_workers, len(texts))
        if workers <= 1:
            return [self._embed_chunk_or_none(document_id, i, t) for i, t in enumerate(texts)]

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="lucid-rag-embed") as pool:
            return list(pool.map(
                lambda item: self._embed_chunk_or_none(document_id, item[0], item[1]),
                enumerate(texts),
            ))


__all__ = [
    "NOT_CONFIGURED_ANSWER",
    "NO_RESULTS_ANSWER",
    "RAGSettings",
    "RAGPipeline",
]
