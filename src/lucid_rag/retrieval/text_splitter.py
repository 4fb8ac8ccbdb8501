"""lucid_rag.retrieval.text_splitter

Text splitting and chunking utilities for the retrieval layer.

This module converts raw document text into overlapping, word-based chunks
suitable for embedding. Splitting is deterministic and side-effect free:
identical text and configuration always produce identical chunks.

Classes
-------
WordChunker
    Sliding-window splitter over whitespace-delimited words.

Functions
---------
tokenize
    Split text into words on runs of Unicode whitespace.
"""

import re
from typing import List

from lucid_rag.common import ChunkWithPosition

DEFAULT_CHUNK_SIZE = 512
DEFAULT_OVERLAP = 50

# Unicode whitespace minus the U+001C..U+001F separators that str.split() also splits on
_WHITESPACE = re.compile(r"[^\S\x1c-\x1f]+")


def tokenize(text: str) -> List[str]:
    """Split ``text`` into words.

    Any run of Unicode whitespace is a single separator. Every other
    character, including punctuation, non-Latin scripts and the ASCII
    information separators U+001C..U+001F, belongs to a word.

    Parameters
    ----------
    text : str
        Text to split.

    Returns
    -------
    list[str]
        Words in order of appearance. Empty for empty or whitespace-only text.
    """
    if not text:
        return []
    return [word for word in _WHITESPACE.split(text) if word]


class WordChunker:
    """Split text into overlapping chunks of ``chunk_size`` words.

    Consecutive chunks start ``chunk_size - chunk_overlap`` words apart, so the
    last ``chunk_overlap`` words of a chunk are repeated at the start of the
    next one.

    Parameters
    ----------
    chunk_size : int, optional
        Words per chunk. Values ``<= 0`` fall back to ``512``.
    chunk_overlap : int, optional
        Words shared by consecutive chunks. Negative values become ``0``;
        values ``>= chunk_size`` are clamped to ``chunk_size // 4``.
    """

    def __init__(
            self,
            chunk_size: int = DEFAULT_CHUNK_SIZE,
            chunk_overlap: int = DEFAULT_OVERLAP,
        ):
        if chunk_size <= 0:
            chunk_size = DEFAULT_CHUNK_SIZE
        if chunk_overlap < 0:
            chunk_overlap = 0
        if chunk_overlap >= chunk_size:
            chunk_overlap = chunk_size // 4

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    @classmethod
    def from_config_dict(cls, config: dict) -> "WordChunker":
        """Create a chunker from a ``chunking`` configuration mapping.

        Parameters
        ----------
        config : dict
            Mapping with optional ``chunk_size`` and ``chunk_overlap`` keys.

        Returns
        -------
        WordChunker
            Configured chunker.
        """
        config = config or {}
        return cls(
            chunk_size=int(config.get("chunk_size", DEFAULT_CHUNK_SIZE)),
            chunk_overlap=int(config.get("chunk_overlap", DEFAULT_OVERLAP)),
        )

    @property
    def step(self) -> int:
        """Number of words between the starts of consecutive chunks."""
        return max(1, self.chunk_size - self.chunk_overlap)

    def chunk(self, text: str) -> List[str]:
        """Split ``text`` into overlapping chunks.

        Parameters
        ----------
        text : str
            Raw document text.

        Returns
        -------
        list[str]
            Chunks of words joined by single spaces. Empty for empty or
            whitespace-only text.

        Examples
        --------
        >>> WordChunker(chunk_size=3, chunk_overlap=1).chunk("a b c d e")
        ['a b c', 'c d e']
        """
        words = tokenize(text)
        if not words:
            return []

        chunks: List[str] = []
        n_words = len(words)
        for start in range(0, n_words, self.step):
            end = min(start + self.chunk_size, n_words)
            chunks.append(" ".join(words[start:end]))
            if end == n_words:
                break

        return chunks

    def chunk_with_positions(self, text: str) -> List[ChunkWithPosition]:
        """Split ``text`` and attach each chunk's zero-based index."""
        return [
            ChunkWithPosition(content=content, index=i)
            for i, content in enumerate(self.chunk(text))
        ]

    def __repr__(self) -> str:
        return f"WordChunker(chunk_size={self.chunk_size}, chunk_overlap={self.chunk_overlap})"


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_OVERLAP",
    "WordChunker",
    "tokenize",
]
