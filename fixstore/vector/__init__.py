"""
Similarity and ranking over stored embeddings.
"""

# Package initialization for vector module
from .types import RankedRecord
from .similarity import as_vector, check_dimension, cosine_similarity
from .ranking import rank_candidates, rank_key, score_candidates

__all__ = [
    'RankedRecord',
    'as_vector',
    'check_dimension',
    'cosine_similarity',
    'rank_candidates',
    'rank_key',
    'score_candidates'
]
