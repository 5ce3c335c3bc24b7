"""
K-means clustering of clause embeddings.

Seeding spreads the initial centroids with k-means++ over squared Euclidean
distance; assignment then uses cosine similarity, since embeddings are
compared by orientation rather than magnitude.
"""

from typing import Sequence

import numpy as np
import structlog

from .types import ClusterAssignment
from .vector_math import cosine_similarity_matrix
from ..errors import DimensionMismatchError

logger = structlog.get_logger(__name__)


def _as_matrix(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    lengths = {len(v) for v in vectors}
    if len(lengths) > 1:
        raise DimensionMismatchError(
            f"Embeddings have differing dimensions: {sorted(lengths)}"
        )
    return np.asarray(vectors, dtype=np.float64)


def choose_cluster_count(n: int, min_k: int = 5, max_k: int = 15) -> int:
    """Cluster count heuristic: round(sqrt(n / 2)) clamped to [min_k, max_k]."""
    raw = int(np.floor(np.sqrt(n / 2) + 0.5))
    return min(max(raw, min_k), max_k)


def kmeans_plus_plus(
    data: np.ndarray,
    k: int,
    rng: np.random.Generator,
) -> list[int]:
    """
    Pick ``k`` distinct seed indices with k-means++.

    Each new seed is drawn with probability proportional to its squared
    Euclidean distance to the nearest seed chosen so far.

    Args:
        data: (n, d) matrix of vectors, n > k
        k: Number of seeds
        rng: Random source

    Returns:
        List of k row indices into ``data``
    """
    n = data.shape[0]
    chosen = [int(rng.integers(n))]

    # Squared distance of every point to its nearest chosen seed
    nearest = np.sum((data - data[chosen[0]]) ** 2, axis=1)

    while len(chosen) < k:
        weights = nearest.copy()
        weights[chosen] = 0.0
        total = float(weights.sum())

        pick = None
        if total > 0:
            r = rng.random() * total
            cumulative = np.cumsum(weights)
            idx = int(np.searchsorted(cumulative, r, side="left"))
            if idx < n and weights[idx] > 0:
                pick = idx

        if pick is None:
            # Roulette overshot or every remaining point coincides with a seed
            remaining = np.setdiff1d(np.arange(n), chosen)
            pick = int(rng.choice(remaining))

        chosen.append(pick)
        nearest = np.minimum(nearest, np.sum((data - data[pick]) ** 2, axis=1))

    return chosen


def k_means(
    vectors: Sequence[Sequence[float]],
    k: int,
    max_iter: int = 50,
    rng: np.random.Generator | None = None,
) -> ClusterAssignment:
    """
    Cluster vectors into ``k`` groups.

    Args:
        vectors: Embeddings sharing one dimension
        k: Number of clusters
        max_iter: Maximum assignment/update rounds
        rng: Random source for seeding; a fresh generator when omitted

    Returns:
        ClusterAssignment with one cluster id per vector and k centroids
    """
    n = len(vectors)
    if n == 0:
        return ClusterAssignment()

    if n <= k:
        return ClusterAssignment(
            assignments=list(range(n)),
            centroids=[list(map(float, v)) for v in vectors],
        )

    rng = rng if rng is not None else np.random.default_rng()
    data = _as_matrix(vectors)

    seeds = kmeans_plus_plus(data, k, rng)
    centroids = data[seeds].copy()
    assignments = np.zeros(n, dtype=int)

    iterations = 0
    for iterations in range(1, max_iter + 1):
        # argmax keeps the lowest centroid index on ties
        new_assignments = np.argmax(cosine_similarity_matrix(data, centroids), axis=1)

        if np.array_equal(new_assignments, assignments):
            break
        assignments = new_assignments

        for j in range(k):
            members = data[assignments == j]
            if len(members) > 0:
                centroids[j] = members.mean(axis=0)

    logger.debug("kmeans_finished", n=n, k=k, iterations=iterations)

    return ClusterAssignment(
        assignments=[int(a) for a in assignments],
        centroids=centroids.tolist(),
    )
