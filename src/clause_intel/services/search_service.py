"""
Similarity search over stored clause and agreement embeddings.

Query embeddings come from the external embedding service; this module
only ranks stored records against them.
"""

from functools import lru_cache
from typing import Any, Sequence

import numpy as np
import structlog
from pydantic import BaseModel, Field

from clause_intel.analytics.insights import rank_counts
from clause_intel.analytics.vector_math import cosine_similarity_matrix
from clause_intel.config import get_settings
from clause_intel.errors import DimensionMismatchError
from clause_intel.models.corpus import AgreementItem, ClauseItem, Favorability, RiskLevel
from clause_intel.storage.base import CorpusStore
from clause_intel.storage.sql import get_corpus_store

logger = structlog.get_logger(__name__)

# Average-similarity cut-offs for the market position label
MARKET_STANDARD_THRESHOLD = 0.85
MARKET_ALIGNED_THRESHOLD = 0.7


class ClauseMarketInsight(BaseModel):
    """How a clause compares with the most similar clauses in the corpus."""

    similar_clauses: list[dict[str, Any]] = Field(default_factory=list)
    market_position: str
    risk_assessment: str
    avg_similarity: float | None = None
    risk_distribution: dict[str, int] = Field(default_factory=dict)
    favorability_distribution: dict[str, int] = Field(default_factory=dict)


def _rank(
    query_embedding: Sequence[float],
    embeddings: list[list[float]],
    limit: int,
) -> list[tuple[int, float]]:
    """
    Indices and cosine scores of the closest embeddings, best first.

    Stored embeddings whose length differs from the query are skipped.

    Raises:
        DimensionMismatchError: No stored embedding has the query's length
    """
    if not embeddings or limit <= 0:
        return []

    query = np.asarray(query_embedding, dtype=np.float64)
    if np.linalg.norm(query) == 0:
        return []

    candidates = [i for i, e in enumerate(embeddings) if len(e) == len(query)]
    if not candidates:
        dimensions = sorted({len(e) for e in embeddings})
        raise DimensionMismatchError(
            f"Query embedding has dimension {len(query)}, stored embeddings have {dimensions}"
        )
    if len(candidates) < len(embeddings):
        logger.warning(
            "search_skipped_mismatched_embeddings",
            skipped=len(embeddings) - len(candidates),
            dimension=len(query),
        )

    matrix = np.asarray([embeddings[i] for i in candidates], dtype=np.float64)
    scores = cosine_similarity_matrix(matrix, query)[:, 0]
    order = np.argsort(-scores, kind="stable")[:limit]
    return [(candidates[i], float(scores[i])) for i in order]


def market_position(avg_similarity: float) -> str:
    """Label how standard a clause's language is from its neighbours' similarity."""
    if avg_similarity > MARKET_STANDARD_THRESHOLD:
        return "Very similar to market standard language"
    if avg_similarity > MARKET_ALIGNED_THRESHOLD:
        return "Moderately aligned with market standards"
    return "Deviates significantly from typical market language"


class SearchService:
    """Brute-force cosine search over the stored corpus."""

    def __init__(self, store: CorpusStore | None = None):
        self.settings = get_settings()
        self._store = store

    @property
    def store(self) -> CorpusStore:
        if self._store is None:
            self._store = get_corpus_store()
        return self._store

    def search_similar_clauses(
        self,
        query_embedding: Sequence[float],
        limit: int | None = None,
        clause_type: str | None = None,
    ) -> list[tuple[ClauseItem, float]]:
        """
        Find the stored clauses closest to an embedding.

        Args:
            query_embedding: Embedding of the text to compare
            limit: Maximum results (defaults to settings)
            clause_type: Only consider clauses of this type

        Returns:
            List of (clause, similarity) tuples, best first
        """
        limit = limit or self.settings.similar_clauses_limit
        clauses = [c for c in self.store.list_clauses() if c.embedding]
        if clause_type:
            clauses = [c for c in clauses if c.clause_type == clause_type]

        ranked = _rank(query_embedding, [c.embedding for c in clauses], limit)
        logger.debug("clause_search", candidates=len(clauses), results=len(ranked))
        return [(clauses[i], score) for i, score in ranked]

    def search_similar_agreements(
        self,
        query_embedding: Sequence[float],
        limit: int | None = None,
    ) -> list[tuple[AgreementItem, float]]:
        """Find the stored agreements closest to an embedding."""
        limit = limit or self.settings.similar_agreements_limit
        agreements = [a for a in self.store.list_agreements() if a.embedding]
        ranked = _rank(query_embedding, [a.embedding for a in agreements], limit)
        return [(agreements[i], score) for i, score in ranked]

    def clause_insights(
        self,
        query_embedding: Sequence[float],
        clause_type: str | None = None,
    ) -> ClauseMarketInsight:
        """Compare a clause with its nearest neighbours in the corpus."""
        results = self.search_similar_clauses(
            query_embedding, limit=self.settings.similar_clauses_limit, clause_type=clause_type,
        )

        if not results:
            return ClauseMarketInsight(
                market_position="No comparison data available",
                risk_assessment="Unable to assess - no similar clauses in the corpus",
            )

        risk_order = [level.value for level in RiskLevel]
        favorability_order = [f.value for f in Favorability]
        risk_ranking = rank_counts(
            (c.risk_level for c, _ in results if c.risk_level in risk_order), seed=risk_order,
        )
        favorability_ranking = rank_counts(
            (c.favorability for c, _ in results if c.favorability in favorability_order),
            seed=favorability_order,
        )

        avg_similarity = sum(score for _, score in results) / len(results)
        dominant_risk = risk_ranking[0][0]
        dominant_favorability = favorability_ranking[0][0]

        return ClauseMarketInsight(
            similar_clauses=[
                {
                    "title": clause.title,
                    "agreement_name": clause.agreement_name,
                    "clause_type": clause.clause_type,
                    "summary": clause.summary,
                    "risk_level": clause.risk_level,
                    "favorability": clause.favorability,
                    "similarity": score,
                }
                for clause, score in results
            ],
            market_position=market_position(avg_similarity),
            risk_assessment=(
                f"Most similar clauses in the corpus are rated {dominant_risk} risk and "
                f"{dominant_favorability}. Average similarity: {avg_similarity * 100:.1f}%."
            ),
            avg_similarity=avg_similarity,
            risk_distribution={key: count for key, count in risk_ranking},
            favorability_distribution={key: count for key, count in favorability_ranking},
        )


@lru_cache()
def get_search_service() -> SearchService:
    """Get cached search service singleton."""
    return SearchService()
