"""Data types produced by the analytics engine.

Ephemeral per-run structures (assignments, projections, outlier reports)
and the summary records that end up inside stored analysis payloads.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class ClusterAssignment:
    """Cluster id per input vector plus the centroid of each cluster."""
    assignments: list[int] = field(default_factory=list)
    centroids: list[list[float]] = field(default_factory=list)

    @property
    def k(self) -> int:
        return len(self.centroids)

    def members(self, cluster_id: int) -> list[int]:
        """Indices of the vectors assigned to ``cluster_id``."""
        return [i for i, c in enumerate(self.assignments) if c == cluster_id]

    def to_dict(self) -> dict:
        return {
            "assignments": self.assignments,
            "centroids": self.centroids,
        }


@dataclass
class Projection:
    """2-D coordinates, one (x, y) pair per input vector."""
    x: list[float] = field(default_factory=list)
    y: list[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.x)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass
class OutlierReport:
    """Outlier scores and flags for one run."""
    scores: list[float] = field(default_factory=list)
    flags: list[bool] = field(default_factory=list)
    threshold: float = 0.0
    mean_score: float = 0.0
    std_score: float = 0.0

    @property
    def outlier_count(self) -> int:
        return sum(1 for f in self.flags if f)

    def to_dict(self) -> dict:
        return {
            "scores": self.scores,
            "flags": self.flags,
            "threshold": self.threshold,
            "mean_score": self.mean_score,
            "std_score": self.std_score,
        }


@dataclass
class ClusterSummary:
    """Human-readable summary of one clause cluster."""
    cluster_id: int
    size: int
    dominant_type: str
    agreements: list[str] = field(default_factory=list)
    avg_risk: str = "N/A"
    types: dict[str, int] = field(default_factory=dict)
    sample_titles: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "cluster_id": self.cluster_id,
            "size": self.size,
            "dominant_type": self.dominant_type,
            "agreements": self.agreements,
            "avg_risk": self.avg_risk,
            "types": self.types,
            "sample_titles": self.sample_titles,
        }


@dataclass
class OutlierDetail:
    """A clause flagged as an outlier."""
    clause_id: str
    title: str
    agreement_name: str
    clause_type: str
    outlier_score: float
    is_outlier: bool = True

    def to_dict(self) -> dict:
        return {
            "clause_id": self.clause_id,
            "title": self.title,
            "agreement_name": self.agreement_name,
            "clause_type": self.clause_type,
            "outlier_score": self.outlier_score,
            "is_outlier": self.is_outlier,
        }


@dataclass
class Insight:
    """A short finding about the corpus."""
    type: str
    title: str
    description: str
    importance: str = "medium"  # high, medium, low
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "importance": self.importance,
            "details": self.details,
        }


@dataclass
class AnalysisOutput:
    """Counts returned to the caller of a full analysis run."""
    run_id: str
    clauses_analyzed: int
    agreements_analyzed: int
    clusters_found: int
    outliers_detected: int
    insights_generated: int
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "clauses_analyzed": self.clauses_analyzed,
            "agreements_analyzed": self.agreements_analyzed,
            "clusters_found": self.clusters_found,
            "outliers_detected": self.outliers_detected,
            "insights_generated": self.insights_generated,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
        }
