"""
Vector math operations for cosine similarity scoring.
"""

from typing import Optional, Sequence, Union
import numpy as np

from ..core.errors import DimensionMismatchError

VectorLike = Union[np.ndarray, Sequence[float]]

DTYPE = np.float64


def as_vector(vector: VectorLike, dimension: Optional[int] = None, position: Optional[int] = None,
              what: str = "Vector") -> np.ndarray:
    """
    Convert input into a 1-D float64 array and check its length.

    Args:
        vector: Sequence of floats or numpy array
        dimension: Expected length, or None to skip the check
        position: Batch position reported in the error, if any
        what: Label used in the error message

    Returns:
        A new 1-D numpy array

    Raises:
        DimensionMismatchError: if the input is not 1-D or has the wrong length
    """
    array = np.array(vector, dtype=DTYPE)
    if array.ndim != 1:
        actual = array.size if array.ndim == 0 else array.shape[-1]
        raise DimensionMismatchError(dimension if dimension is not None else actual, actual, position, what)
    if dimension is not None and array.shape[0] != dimension:
        raise DimensionMismatchError(dimension, array.shape[0], position, what)
    return array


def norm(vector: VectorLike) -> float:
    """L2 norm of a vector."""
    return float(np.sqrt(np.dot(vector, vector)))


def normalize(vector: VectorLike) -> np.ndarray:
    """Scale a vector to unit length. Zero vectors are returned as a zero copy."""
    array = np.array(vector, dtype=DTYPE)
    length = norm(array)
    if length == 0:
        return array
    return array / length


def dot(a: VectorLike, b: VectorLike) -> float:
    """Dot product. Both vectors must already have the same length."""
    return float(np.dot(a, b))


def fast_cosine_similarity(normalized_a: VectorLike, normalized_b: VectorLike) -> float:
    """Cosine similarity of two vectors that are already unit length."""
    return dot(normalized_a, normalized_b)


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine similarity of two arbitrary vectors; 0 when either has zero norm."""
    norm_a = norm(a)
    norm_b = norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot(a, b) / (norm_a * norm_b)
