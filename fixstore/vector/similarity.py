"""
Vector validation and cosine similarity.
"""

from typing import Sequence, Union

import numpy as np

from ..core.errors import DimensionMismatchError, ValidationError

VectorLike = Union[Sequence[float], np.ndarray]


def as_vector(values: VectorLike) -> np.ndarray:
    """Convert input to a finite 1-D float64 array."""
    if isinstance(values, (str, bytes)):
        raise ValidationError("Embedding must be a sequence of numbers")
    try:
        vector = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Embedding must be a sequence of numbers: {e}") from e

    if vector.ndim != 1 or vector.size == 0:
        raise ValidationError(f"Embedding must be a non-empty 1-D vector, got shape {vector.shape}")
    if not np.all(np.isfinite(vector)):
        raise ValidationError("Embedding values must be finite")
    return vector


def check_dimension(vector: np.ndarray, dimension: int) -> None:
    """Fail fast when a vector does not have the store's dimension."""
    if len(vector) != dimension:
        raise DimensionMismatchError(expected=dimension, actual=len(vector))


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine of the angle between two equal-length vectors.

    A zero-magnitude vector has no direction, so its similarity to anything is 0.0.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        raise DimensionMismatchError(expected=len(a), actual=len(b))

    norm = np.linalg.norm(a) * np.linalg.norm(b)
    if norm == 0:
        return 0.0

    similarity = float(np.dot(a, b) / norm)
    # Rounding can push parallel vectors just past the unit bounds
    return max(-1.0, min(1.0, similarity))
