"""In-memory corpus store, used for tests and one-off runs over loaded files."""

import threading
from typing import Sequence

import structlog

from clause_intel.models.analysis import AnalysisResult
from clause_intel.models.corpus import AgreementItem, AgreementPatch, ClauseItem, ClausePatch

logger = structlog.get_logger(__name__)


class InMemoryCorpusStore:
    """
    Dict-backed corpus store.

    ``apply_analysis`` builds every updated record before touching the
    stored ones, so an unknown id leaves the corpus unchanged.
    """

    def __init__(self):
        self._agreements: dict[str, AgreementItem] = {}
        self._clauses: dict[str, ClauseItem] = {}
        self._results: list[AnalysisResult] = []
        self._next_result_id = 1
        self._lock = threading.Lock()

    # =========================================================================
    # Corpus
    # =========================================================================

    def add_agreement(self, agreement: AgreementItem) -> AgreementItem:
        with self._lock:
            self._agreements[agreement.id] = agreement.model_copy(deep=True)
        return agreement

    def add_clause(self, clause: ClauseItem) -> ClauseItem:
        with self._lock:
            self._clauses[clause.id] = clause.model_copy(deep=True)
        return clause

    def list_agreements(self) -> list[AgreementItem]:
        with self._lock:
            return [a.model_copy(deep=True) for a in self._agreements.values()]

    def list_clauses(self) -> list[ClauseItem]:
        with self._lock:
            return [c.model_copy(deep=True) for c in self._clauses.values()]

    # =========================================================================
    # Analysis Writeback
    # =========================================================================

    def apply_analysis(
        self,
        clause_patches: Sequence[ClausePatch],
        agreement_patches: Sequence[AgreementPatch],
        results: Sequence[AnalysisResult],
    ) -> list[AnalysisResult]:
        with self._lock:
            updated_clauses = {}
            for patch in clause_patches:
                if patch.clause_id not in self._clauses:
                    raise KeyError(f"Unknown clause: {patch.clause_id}")
                updated_clauses[patch.clause_id] = self._clauses[patch.clause_id].model_copy(
                    update={
                        "x": patch.x,
                        "y": patch.y,
                        "cluster_id": patch.cluster_id,
                        "is_outlier": patch.is_outlier,
                    }
                )

            updated_agreements = {}
            for patch in agreement_patches:
                if patch.agreement_id not in self._agreements:
                    raise KeyError(f"Unknown agreement: {patch.agreement_id}")
                updated_agreements[patch.agreement_id] = self._agreements[
                    patch.agreement_id
                ].model_copy(update={"x": patch.x, "y": patch.y})

            stored = []
            for offset, result in enumerate(results):
                stored.append(result.model_copy(update={"id": self._next_result_id + offset}))

            self._clauses.update(updated_clauses)
            self._agreements.update(updated_agreements)
            self._results.extend(stored)
            self._next_result_id += len(stored)

        logger.info(
            "analysis_applied",
            clauses=len(clause_patches),
            agreements=len(agreement_patches),
            results=len(stored),
        )
        return stored

    # =========================================================================
    # Analysis Reads
    # =========================================================================

    def list_results(self, analysis_type: str | None = None) -> list[AnalysisResult]:
        with self._lock:
            return [
                r for r in self._results
                if analysis_type is None or r.analysis_type == analysis_type
            ]

    def latest_results(self) -> dict[str, AnalysisResult]:
        latest: dict[str, AnalysisResult] = {}
        for result in self.list_results():
            latest[result.analysis_type] = result
        return latest

    def clear_all(self) -> dict[str, int]:
        with self._lock:
            deleted = {
                "agreements": len(self._agreements),
                "clauses": len(self._clauses),
                "analysis_results": len(self._results),
            }
            self._agreements.clear()
            self._clauses.clear()
            self._results.clear()
        return deleted

    def health_check(self) -> bool:
        return True
