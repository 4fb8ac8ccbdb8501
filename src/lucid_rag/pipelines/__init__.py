"""lucid_rag.pipelines

Pipeline orchestration components for the Lucid RAG core.

This package contains the high-level orchestration that coordinates chunking,
embedding, chunk storage, prompt construction, and language model generation.
Pipelines are intentionally lightweight and stateless beyond their configured
components, making them safe to reuse across requests and execution
contexts.

Modules
-------
rag_pipeline
    End-to-end Retrieval-Augmented Generation (RAG) pipeline.
document_sync
    Document lifecycle hooks that keep the chunk index up to date.
"""
