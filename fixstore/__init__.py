"""
fixstore - error-fix knowledge store.

Records error message to fix pairs, retrieves prior fixes for a new error by
tech stack, success rate and embedding similarity, and learns each fix's
success rate from outcome feedback.
"""

from .core.config import VERSION
from .core.errors import (
    DimensionMismatchError,
    DuplicateKeyError,
    FixStoreError,
    NotFoundError,
    StoreClosedError,
    ValidationError,
)
from .core.repository import ErrorFixRepository, KnowledgeStore, PatternRepository
from .core.schema import CodePattern, FixRecord
from .vector import RankedRecord

__version__ = VERSION

__all__ = [
    'CodePattern',
    'DimensionMismatchError',
    'DuplicateKeyError',
    'ErrorFixRepository',
    'FixRecord',
    'FixStoreError',
    'KnowledgeStore',
    'NotFoundError',
    'PatternRepository',
    'RankedRecord',
    'StoreClosedError',
    'ValidationError',
]
