"""
Corpus overview and listing routes.
"""

from typing import Optional

from fastapi import APIRouter, Query

from clause_intel.models.corpus import AgreementView, ClauseView
from clause_intel.services.corpus_stats import CorpusStatistics, get_corpus_stats_service

router = APIRouter()


@router.get("/stats", response_model=CorpusStatistics)
def corpus_statistics() -> CorpusStatistics:
    """Counts and distributions over the stored corpus."""
    return get_corpus_stats_service().get_statistics()


@router.get("/agreements", response_model=list[AgreementView])
def list_agreements() -> list[AgreementView]:
    """Every agreement with its 2-D map position."""
    return get_corpus_stats_service().list_agreements()


@router.get("/clauses", response_model=list[ClauseView])
def list_clauses(
    clause_type: Optional[str] = Query(None, description="Only clauses of this type"),
    agreement_id: Optional[str] = Query(None, description="Only clauses of this agreement"),
) -> list[ClauseView]:
    """Clauses with map position, cluster id and outlier flag."""
    return get_corpus_stats_service().list_clauses(
        clause_type=clause_type, agreement_id=agreement_id,
    )
