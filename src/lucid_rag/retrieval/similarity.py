"""lucid_rag.retrieval.similarity

Vector comparison primitives used by chunk stores.

All functions treat embeddings as opaque fixed-length numeric arrays and are
safe on degenerate input: mismatched lengths, empty vectors and zero vectors
never raise.

Functions
---------
cosine_similarity
    Angular closeness of two vectors in ``[-1, 1]``.
euclidean_distance
    L2 distance between two vectors.
normalize
    Scale a vector to unit L2 norm.
top_k_by_similarity
    Rank vectors against a query by cosine similarity.
"""

import sys
from typing import List, Sequence

import numpy as np

from lucid_rag.common import ScoredItem

# Returned by euclidean_distance for vectors that cannot be compared.
INCOMPARABLE_DISTANCE = sys.float_info.max


def _as_array(v: Sequence[float]) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).ravel()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity of ``a`` and ``b``.

    Parameters
    ----------
    a, b : Sequence[float]
        Vectors to compare.

    Returns
    -------
    float
        ``dot(a, b) / (|a| * |b|)`` clamped to ``[-1, 1]``, or ``0.0`` if the
        lengths differ, the vectors are empty, or either has zero magnitude.
    """
    va, vb = _as_array(a), _as_array(b)
    if va.size != vb.size or va.size == 0:
        return 0.0

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    # Rounding can push parallel vectors slightly past 1
    return float(np.clip(np.dot(va, vb) / (norm_a * norm_b), -1.0, 1.0))


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the L2 distance between ``a`` and ``b``.

    Returns :data:`INCOMPARABLE_DISTANCE` when the lengths differ or the
    vectors are empty.
    """
    va, vb = _as_array(a), _as_array(b)
    if va.size != vb.size or va.size == 0:
        return INCOMPARABLE_DISTANCE
    return float(np.linalg.norm(va - vb))


def normalize(v: Sequence[float]) -> List[float]:
    """Return ``v`` scaled to unit L2 norm.

    Empty and all-zero vectors are returned unchanged (as a list).
    """
    arr = _as_array(v)
    if arr.size == 0:
        return list(v)

    norm = np.linalg.norm(arr)
    if norm == 0:
        return list(v)

    return (arr / norm).tolist()


def top_k_by_similarity(
        query: Sequence[float],
        vectors: Sequence[Sequence[float]],
        k: int,
        threshold: float,
    ) -> List[ScoredItem]:
    """Rank ``vectors`` by cosine similarity to ``query``.

    Parameters
    ----------
    query : Sequence[float]
        Query embedding.
    vectors : Sequence[Sequence[float]]
        Candidate embeddings. Candidates whose length differs from the query
        score ``0.0``.
    k : int
        Maximum number of results.
    threshold : float
        Minimum score a candidate needs to be kept.

    Returns
    -------
    list[ScoredItem]
        At most ``k`` items, sorted by descending score with ties broken by
        ascending original index. Empty when ``k <= 0`` or ``vectors`` is
        empty.
    """
    if k <= 0 or len(vectors) == 0:
        return []

    scored = []
    for i, vector in enumerate(vectors):
        score = cosine_similarity(query, vector)
        if score >= threshold:
            scored.append(ScoredItem(index=i, score=score))

    scored.sort(key=lambda item: (-item.score, item.index))
    return scored[:k]


__all__ = [
    "INCOMPARABLE_DISTANCE",
    "cosine_similarity",
    "euclidean_distance",
    "normalize",
    "top_k_by_similarity",
]
