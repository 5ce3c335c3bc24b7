"""Outlier scoring relative to each item's own cluster centroid."""

from typing import Sequence

from .types import ClusterAssignment, OutlierReport
from .vector_math import cosine_similarity, mean_and_std

# Fixed multiplier on the standard deviation; the threshold itself is
# recomputed from every run's score distribution.
OUTLIER_STDDEV_MULTIPLIER = 1.5


def outlier_threshold(scores: Sequence[float]) -> tuple[float, float, float]:
    """Return (threshold, mean, std) for a set of outlier scores."""
    mean, std = mean_and_std(scores)
    return mean + OUTLIER_STDDEV_MULTIPLIER * std, mean, std


def score_outliers(
    vectors: Sequence[Sequence[float]],
    assignment: ClusterAssignment,
) -> OutlierReport:
    """
    Score each vector by its cosine distance from its cluster centroid.

    ``score = 1 - cos(vector, centroid)``; a vector is an outlier when its
    score is strictly above ``mean + 1.5 * std`` of all scores.
    """
    if not vectors:
        return OutlierReport()

    scores = [
        1.0 - cosine_similarity(vector, assignment.centroids[cluster_id])
        for vector, cluster_id in zip(vectors, assignment.assignments)
    ]
    threshold, mean, std = outlier_threshold(scores)

    return OutlierReport(
        scores=scores,
        flags=[s > threshold for s in scores],
        threshold=threshold,
        mean_score=mean,
        std_score=std,
    )
