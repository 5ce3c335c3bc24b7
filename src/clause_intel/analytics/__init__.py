"""Embedding analytics: clustering, projection, outliers and insights."""

from .vector_math import (
    cosine_similarity,
    cosine_similarity_matrix,
    euclidean_distance,
    mean_and_std,
    pairwise_similarity,
)
from .clustering import choose_cluster_count, k_means, kmeans_plus_plus
from .projection import pca_2d, power_iteration
from .outliers import OUTLIER_STDDEV_MULTIPLIER, outlier_threshold, score_outliers
from .types import (
    AnalysisOutput,
    ClusterAssignment,
    ClusterSummary,
    Insight,
    OutlierDetail,
    OutlierReport,
    Projection,
)

__all__ = [
    # Vector math
    "cosine_similarity",
    "cosine_similarity_matrix",
    "euclidean_distance",
    "mean_and_std",
    "pairwise_similarity",
    # Algorithms
    "choose_cluster_count",
    "k_means",
    "kmeans_plus_plus",
    "pca_2d",
    "power_iteration",
    "OUTLIER_STDDEV_MULTIPLIER",
    "outlier_threshold",
    "score_outliers",
    # Types
    "AnalysisOutput",
    "ClusterAssignment",
    "ClusterSummary",
    "Insight",
    "OutlierDetail",
    "OutlierReport",
    "Projection",
]
