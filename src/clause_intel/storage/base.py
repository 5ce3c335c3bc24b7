"""Storage protocol the analytics engine reads from and writes back to."""

from typing import Protocol, Sequence

from clause_intel.models.analysis import AnalysisResult
from clause_intel.models.corpus import AgreementItem, AgreementPatch, ClauseItem, ClausePatch


class CorpusStore(Protocol):
    """Protocol for corpus storage backends."""

    def list_agreements(self) -> list[AgreementItem]: ...
    def list_clauses(self) -> list[ClauseItem]: ...

    def apply_analysis(
        self,
        clause_patches: Sequence[ClausePatch],
        agreement_patches: Sequence[AgreementPatch],
        results: Sequence[AnalysisResult],
    ) -> list[AnalysisResult]:
        """Write every patch and append every result as one unit."""
        ...

    def list_results(self, analysis_type: str | None = None) -> list[AnalysisResult]: ...
    def latest_results(self) -> dict[str, AnalysisResult]: ...

    def add_agreement(self, agreement: AgreementItem) -> AgreementItem: ...
    def add_clause(self, clause: ClauseItem) -> ClauseItem: ...
    def clear_all(self) -> dict[str, int]: ...
    def health_check(self) -> bool: ...
