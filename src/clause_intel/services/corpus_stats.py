"""
Corpus overview statistics and analysis result reads.
"""

from functools import lru_cache

from pydantic import BaseModel, Field

from clause_intel.models.analysis import AnalysisResult, AnalysisType
from clause_intel.models.corpus import AgreementView, ClauseView, Favorability, RiskLevel
from clause_intel.storage.base import CorpusStore
from clause_intel.storage.sql import get_corpus_store


class CorpusStatistics(BaseModel):
    """Counts and distributions over the stored corpus."""

    agreement_count: int = 0
    clause_count: int = 0
    cluster_count: int = 0
    outlier_count: int = 0
    clause_type_distribution: dict[str, int] = Field(default_factory=dict)
    risk_distribution: dict[str, int] = Field(default_factory=dict)
    favorability_distribution: dict[str, int] = Field(default_factory=dict)
    providers: list[str] = Field(default_factory=list)
    has_analysis: bool = False


class CorpusStatsService:
    """Read-side views over the corpus and its analysis history."""

    def __init__(self, store: CorpusStore | None = None):
        self._store = store

    @property
    def store(self) -> CorpusStore:
        if self._store is None:
            self._store = get_corpus_store()
        return self._store

    def get_statistics(self) -> CorpusStatistics:
        """Compute overview statistics for the whole corpus."""
        agreements = self.store.list_agreements()
        clauses = self.store.list_clauses()

        clause_types: dict[str, int] = {}
        risk = {level.value: 0 for level in RiskLevel}
        favorability = {f.value: 0 for f in Favorability}
        cluster_count = 0

        for clause in clauses:
            clause_types[clause.clause_type] = clause_types.get(clause.clause_type, 0) + 1
            if clause.risk_level in risk:
                risk[clause.risk_level] += 1
            if clause.favorability in favorability:
                favorability[clause.favorability] += 1
            if clause.cluster_id is not None:
                cluster_count = max(cluster_count, clause.cluster_id + 1)

        return CorpusStatistics(
            agreement_count=len(agreements),
            clause_count=len(clauses),
            cluster_count=cluster_count,
            outlier_count=sum(1 for c in clauses if c.is_outlier),
            clause_type_distribution=clause_types,
            risk_distribution=risk,
            favorability_distribution=favorability,
            providers=[a.provider for a in agreements],
            has_analysis=bool(self.store.latest_results()),
        )

    def list_agreements(self) -> list[AgreementView]:
        """Every agreement with its map coordinates."""
        return [AgreementView.model_validate(a) for a in self.store.list_agreements()]

    def list_clauses(
        self,
        clause_type: str | None = None,
        agreement_id: str | None = None,
    ) -> list[ClauseView]:
        """
        Clauses with their map coordinates, cluster and outlier flag.

        Args:
            clause_type: Only clauses of this type
            agreement_id: Only clauses of this agreement
        """
        clauses = self.store.list_clauses()
        if clause_type:
            clauses = [c for c in clauses if c.clause_type == clause_type]
        if agreement_id:
            clauses = [c for c in clauses if c.agreement_id == agreement_id]
        return [ClauseView.model_validate(c) for c in clauses]

    def latest(self) -> dict[str, AnalysisResult]:
        """Most recent result per analysis type."""
        return self.store.latest_results()

    def latest_of(self, analysis_type: AnalysisType | str) -> AnalysisResult | None:
        """Most recent result of one type, or None before the first run."""
        key = analysis_type.value if isinstance(analysis_type, AnalysisType) else analysis_type
        return self.store.latest_results().get(key)

    def history(self, analysis_type: AnalysisType | str | None = None) -> list[AnalysisResult]:
        """Every stored result, oldest first."""
        if isinstance(analysis_type, AnalysisType):
            analysis_type = analysis_type.value
        return self.store.list_results(analysis_type)


@lru_cache()
def get_corpus_stats_service() -> CorpusStatsService:
    """Get cached stats service singleton."""
    return CorpusStatsService()
