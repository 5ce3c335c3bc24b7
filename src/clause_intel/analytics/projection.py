"""
2-D projection of embeddings via the Gram matrix.

With fewer items than embedding dimensions it is far cheaper to find the
leading eigenpairs of the n x n Gram matrix of centered vectors than of the
d x d covariance matrix; both yield the same principal coordinates.
"""

from typing import Sequence

import numpy as np

from .types import Projection
from ..errors import DimensionMismatchError

# Below this the iterate is treated as collapsed
DEGENERATE_NORM = 1e-10


def power_iteration(
    matrix: np.ndarray,
    max_iter: int = 200,
    rng: np.random.Generator | None = None,
) -> tuple[np.ndarray, float]:
    """
    Estimate the dominant eigenvector and eigenvalue of a symmetric matrix.

    Starts from a random unit vector and repeatedly multiplies and
    renormalizes. The Rayleigh quotient after each multiply is the running
    eigenvalue estimate. Stops early if the product collapses to ~0.

    Returns:
        Tuple of (unit eigenvector, eigenvalue)
    """
    rng = rng if rng is not None else np.random.default_rng()
    n = matrix.shape[0]

    v = rng.random(n) - 0.5
    norm = np.linalg.norm(v)
    if norm == 0:
        v = np.ones(n)
        norm = np.linalg.norm(v)
    v = v / norm

    eigenvalue = 0.0
    for _ in range(max_iter):
        mv = matrix @ v
        eigenvalue = float(mv @ v)
        norm = np.linalg.norm(mv)
        if norm < DEGENERATE_NORM:
            break
        v = mv / norm

    return v, eigenvalue


def pca_2d(
    vectors: Sequence[Sequence[float]],
    max_iter: int = 200,
    rng: np.random.Generator | None = None,
) -> Projection:
    """
    Project vectors onto their first two principal directions.

    Each axis is scaled independently into [-1, 1].
    """
    n = len(vectors)
    if n == 0:
        return Projection()
    if n == 1:
        return Projection(x=[0.0], y=[0.0])

    if len({len(v) for v in vectors}) > 1:
        raise DimensionMismatchError("Cannot project embeddings of differing dimensions")

    rng = rng if rng is not None else np.random.default_rng()
    data = np.asarray(vectors, dtype=np.float64)

    centered = data - data.mean(axis=0)
    gram = centered @ centered.T

    v1, value1 = power_iteration(gram, max_iter=max_iter, rng=rng)

    # Deflate to expose the second eigenpair
    deflated = gram - value1 * np.outer(v1, v1)
    v2, value2 = power_iteration(deflated, max_iter=max_iter, rng=rng)

    raw_x = v1 * np.sqrt(abs(value1))
    raw_y = v2 * np.sqrt(abs(value2))

    max_x = max(float(np.max(np.abs(raw_x))), DEGENERATE_NORM)
    max_y = max(float(np.max(np.abs(raw_y))), DEGENERATE_NORM)

    return Projection(
        x=(raw_x / max_x).tolist(),
        y=(raw_y / max_y).tolist(),
    )
