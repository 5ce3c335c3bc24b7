"""
Pydantic models for Clause Intel.

- Corpus models for agreements, clauses and their analysis writebacks
- Analysis result snapshots appended by each run
"""

from clause_intel.models.corpus import (
    AgreementItem,
    AgreementPatch,
    AgreementView,
    ClauseItem,
    ClausePatch,
    ClauseView,
    Favorability,
    RiskLevel,
)
from clause_intel.models.analysis import AnalysisResult, AnalysisType

__all__ = [
    # Corpus models
    "AgreementItem",
    "AgreementPatch",
    "AgreementView",
    "ClauseItem",
    "ClausePatch",
    "ClauseView",
    "Favorability",
    "RiskLevel",
    # Analysis models
    "AnalysisResult",
    "AnalysisType",
]
