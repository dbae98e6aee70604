"""
Similarity and ranking engine.
Candidates arrive pre-filtered by tech stack; success rate is the primary sort key.
"""

from typing import Iterable, List, Optional

import numpy as np

from .similarity import cosine_similarity
from .types import RankedRecord
from ..core.errors import ValidationError
from ..core.schema import LearnedRecord


def score_candidates(query: np.ndarray, candidates: Iterable[LearnedRecord]) -> List[RankedRecord]:
    """Pair each candidate with its cosine similarity to the query."""
    return [
        RankedRecord(record=candidate, similarity=cosine_similarity(query, candidate.embedding))
        for candidate in candidates
    ]


def rank_key(ranked: RankedRecord):
    """Success rate descending, then similarity descending, then id for a total order."""
    return (-ranked.record.success_rate, -ranked.similarity, ranked.record.id)


def rank_candidates(query: np.ndarray, candidates: Iterable[LearnedRecord], limit: int,
                    min_similarity: Optional[float] = None) -> List[RankedRecord]:
    """Order tech-stack candidates and keep at most `limit` of them.

    Args:
        query: Query embedding, already validated against the store dimension
        candidates: Records sharing the query's tech stack
        limit: Maximum number of results (must be positive)
        min_similarity: Optional pre-filter; candidates scoring below it are dropped

    Returns:
        Ranked records, best first
    """
    if limit < 1:
        raise ValidationError(f"limit must be positive, got {limit}")

    scored = score_candidates(query, candidates)
    if min_similarity is not None:
        scored = [ranked for ranked in scored if ranked.similarity >= min_similarity]

    scored.sort(key=rank_key)
    return scored[:limit]
