"""Vector primitives shared by the clustering, projection and outlier code."""

from typing import Sequence

import numpy as np

from ..errors import DimensionMismatchError


def _check_dimensions(a: np.ndarray, b: np.ndarray) -> None:
    if a.shape[-1] != b.shape[-1]:
        raise DimensionMismatchError(
            f"Cannot compare vectors of dimension {a.shape[-1]} and {b.shape[-1]}"
        )


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero norm."""
    v1 = np.asarray(a, dtype=np.float64)
    v2 = np.asarray(b, dtype=np.float64)
    _check_dimensions(v1, v2)
    n1 = np.linalg.norm(v1)
    n2 = np.linalg.norm(v2)
    if n1 == 0 or n2 == 0:
        return 0.0
    return float(np.dot(v1, v2) / (n1 * n2))


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """L2 norm of ``a - b``."""
    v1 = np.asarray(a, dtype=np.float64)
    v2 = np.asarray(b, dtype=np.float64)
    _check_dimensions(v1, v2)
    return float(np.linalg.norm(v1 - v2))


def cosine_similarity_matrix(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Pairwise cosine similarity between the rows of ``a`` and ``b``.

    Rows with zero norm have similarity 0 with everything.
    """
    a = np.atleast_2d(np.asarray(a, dtype=np.float64))
    b = np.atleast_2d(np.asarray(b, dtype=np.float64))
    _check_dimensions(a, b)

    a_norms = np.linalg.norm(a, axis=1, keepdims=True)
    b_norms = np.linalg.norm(b, axis=1, keepdims=True)
    a_normalized = a / np.where(a_norms == 0, 1, a_norms)
    b_normalized = b / np.where(b_norms == 0, 1, b_norms)
    return a_normalized @ b_normalized.T


def pairwise_similarity(vectors: np.ndarray) -> np.ndarray:
    """Square cosine similarity matrix whose diagonal is exactly 1.0."""
    vectors = np.asarray(vectors, dtype=np.float64)
    if vectors.size == 0:
        return np.zeros((0, 0))
    matrix = cosine_similarity_matrix(vectors, vectors)
    np.fill_diagonal(matrix, 1.0)
    return matrix


def mean_and_std(values: Sequence[float]) -> tuple[float, float]:
    """Population mean and standard deviation."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return 0.0, 0.0
    return float(arr.mean()), float(arr.std())
