"""
Analysis result snapshots.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AnalysisType(str, Enum):
    """Kinds of snapshot appended by each analysis run."""

    CLUSTERS = "clusters"
    SIMILARITY_MATRIX = "similarity_matrix"
    OUTLIERS = "outliers"
    INSIGHTS = "insights"
    RISK_ANALYSIS = "risk_analysis"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisResult(BaseModel):
    """
    Append-only, typed snapshot of one part of an analysis run.

    Every run appends one row per ``AnalysisType``; earlier rows are kept
    as history and readers pick the most recent row per type.
    """

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int | None = None
    analysis_type: AnalysisType
    title: str
    description: str = ""
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
