"""
Embedding similarity search routes.
"""

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from clause_intel.errors import DimensionMismatchError
from clause_intel.services.search_service import ClauseMarketInsight, get_search_service

logger = structlog.get_logger(__name__)
router = APIRouter()


class EmbeddingSearchRequest(BaseModel):
    """Similarity search request over a precomputed embedding."""
    embedding: list[float] = Field(..., min_length=1)
    limit: int | None = Field(default=None, ge=1, le=100)
    clause_type: str | None = None


@router.post("/clauses")
def search_clauses(request: EmbeddingSearchRequest) -> dict[str, Any]:
    """Clauses most similar to the supplied embedding."""
    service = get_search_service()

    try:
        results = service.search_similar_clauses(
            request.embedding,
            limit=request.limit,
            clause_type=request.clause_type,
        )
    except DimensionMismatchError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "results": [
            {**clause.model_dump(exclude={"embedding"}), "similarity": score}
            for clause, score in results
        ],
        "count": len(results),
    }


@router.post("/agreements")
def search_agreements(request: EmbeddingSearchRequest) -> dict[str, Any]:
    """Agreements most similar to the supplied embedding."""
    service = get_search_service()

    try:
        results = service.search_similar_agreements(request.embedding, limit=request.limit)
    except DimensionMismatchError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "results": [
            {**agreement.model_dump(exclude={"embedding"}), "similarity": score}
            for agreement, score in results
        ],
        "count": len(results),
    }


@router.post("/clause-insights", response_model=ClauseMarketInsight)
def clause_insights(request: EmbeddingSearchRequest) -> ClauseMarketInsight:
    """How a clause compares with its nearest neighbours in the corpus."""
    service = get_search_service()

    try:
        return service.clause_insights(request.embedding, clause_type=request.clause_type)
    except DimensionMismatchError as e:
        logger.warning("clause_insights_rejected", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))
