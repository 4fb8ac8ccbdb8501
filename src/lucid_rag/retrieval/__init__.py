"""
Retrieval layer of the RAG core.

This package covers everything needed to turn document text into searchable
vectors and to fetch the most relevant chunks for a query: text splitting,
embedding model wrappers, vector similarity primitives and chunk stores.

Submodules
----------
text_splitter
    Word-based chunking of documents into overlapping pieces.
embedder
    Embedding model wrappers and their factory.
similarity
    Cosine similarity, distances and top-k ranking.
chunk_store
    Chunk persistence and brute-force similarity search.
"""
