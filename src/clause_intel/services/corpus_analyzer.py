"""
Corpus Analyzer

Runs the full embedding analysis over every agreement and clause in the
store and writes the results back.
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Sequence
from uuid import uuid4

import numpy as np
import structlog

from clause_intel.analytics.clustering import choose_cluster_count, k_means
from clause_intel.analytics.insights import (
    build_insights,
    build_risk_breakdown,
    collect_outliers,
    summarize_clusters,
)
from clause_intel.analytics.outliers import score_outliers
from clause_intel.analytics.projection import pca_2d
from clause_intel.analytics.types import AnalysisOutput
from clause_intel.analytics.vector_math import pairwise_similarity
from clause_intel.config import Settings, get_settings
from clause_intel.errors import EmptyCorpusError, MalformedEmbeddingError
from clause_intel.models.analysis import AnalysisResult, AnalysisType
from clause_intel.models.corpus import AgreementItem, AgreementPatch, ClauseItem, ClausePatch
from clause_intel.storage.base import CorpusStore
from clause_intel.storage.sql import get_corpus_store

logger = structlog.get_logger(__name__)


class CorpusAnalyzer:
    """
    Orchestrates one analysis run over the whole corpus.

    Sequence:
    1. Fetch agreements and clauses
    2. Cluster clause embeddings
    3. Score outliers against cluster centroids
    4. Project clauses and agreements to 2-D (independently)
    5. Compute the agreement similarity matrix
    6. Summarize clusters and derive insights
    7. Persist patches and result snapshots in one batch
    """

    def __init__(
        self,
        store: CorpusStore | None = None,
        settings: Settings | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.settings = settings or get_settings()
        self._store = store
        self._rng = rng

    @property
    def store(self) -> CorpusStore:
        if self._store is None:
            self._store = get_corpus_store()
        return self._store

    def _new_rng(self) -> np.random.Generator:
        if self._rng is not None:
            return self._rng
        return np.random.default_rng(self.settings.random_seed)

    # =========================================================================
    # Main Run
    # =========================================================================

    def run_full_analysis(self, rng: np.random.Generator | None = None) -> AnalysisOutput:
        """
        Run the full analysis and write every derived field back.

        Args:
            rng: Random source for this run only; defaults to the analyzer's own

        Returns:
            AnalysisOutput with counts for the run

        Raises:
            EmptyCorpusError: No clauses in the store
            MalformedEmbeddingError: A record's embedding is missing or of the wrong size
        """
        run_id = str(uuid4())
        started_at = datetime.now(timezone.utc)
        log = logger.bind(run_id=run_id)

        agreements = self.store.list_agreements()
        clauses = self.store.list_clauses()

        if not clauses:
            raise EmptyCorpusError("No clauses found in the corpus. Load agreements first.")

        self._validate_embeddings(agreements, clauses)

        log.info("analysis_started", agreements=len(agreements), clauses=len(clauses))
        rng = rng if rng is not None else self._new_rng()

        # Clause clustering
        clause_embeddings = [c.embedding for c in clauses]
        k = choose_cluster_count(
            len(clauses),
            min_k=self.settings.min_clusters,
            max_k=self.settings.max_clusters,
        )
        assignment = k_means(
            clause_embeddings, k, max_iter=self.settings.kmeans_max_iter, rng=rng,
        )
        log.info("clusters_computed", k=k)

        # Outlier detection
        report = score_outliers(clause_embeddings, assignment)
        log.info("outliers_detected", outliers=report.outlier_count, threshold=report.threshold)

        # 2-D projections, one coordinate space each
        clause_coords = pca_2d(
            clause_embeddings, max_iter=self.settings.power_iteration_max_iter, rng=rng,
        )
        agreement_coords = pca_2d(
            [a.embedding for a in agreements],
            max_iter=self.settings.power_iteration_max_iter,
            rng=rng,
        )
        log.info("projections_computed")

        # Agreement similarity matrix
        if agreements:
            matrix = pairwise_similarity(np.asarray([a.embedding for a in agreements]))
        else:
            matrix = np.zeros((0, 0))

        # Summaries and insights
        summaries = summarize_clusters(
            clauses, assignment, k, sample_size=self.settings.sample_titles_per_cluster,
        )
        outliers = collect_outliers(clauses, report)
        insights = build_insights(
            agreements, clauses, matrix, summaries, outliers, k,
            top_types=self.settings.top_clause_types,
        )

        clause_patches = [
            ClausePatch(
                clause_id=clause.id,
                x=clause_coords.x[i],
                y=clause_coords.y[i],
                cluster_id=assignment.assignments[i],
                is_outlier=report.flags[i],
            )
            for i, clause in enumerate(clauses)
        ]
        agreement_patches = [
            AgreementPatch(
                agreement_id=agreement.id,
                x=agreement_coords.x[i],
                y=agreement_coords.y[i],
            )
            for i, agreement in enumerate(agreements)
        ]

        results = [
            AnalysisResult(
                analysis_type=AnalysisType.CLUSTERS,
                title="Clause Clusters",
                description=f"{k} clusters identified across {len(clauses)} clauses",
                data={"clusters": [s.to_dict() for s in summaries], "k": k},
            ),
            AnalysisResult(
                analysis_type=AnalysisType.SIMILARITY_MATRIX,
                title="Agreement Similarity Matrix",
                description=f"Pairwise cosine similarity between {len(agreements)} agreements",
                data={
                    "matrix": matrix.tolist(),
                    "labels": [a.name for a in agreements],
                    "providers": [a.provider for a in agreements],
                },
            ),
            AnalysisResult(
                analysis_type=AnalysisType.OUTLIERS,
                title="Outlier Analysis",
                description=f"{len(outliers)} unusual clauses identified",
                data={
                    "outliers": [o.to_dict() for o in outliers],
                    "threshold": report.threshold,
                    "mean_score": report.mean_score,
                    "std_score": report.std_score,
                },
            ),
            AnalysisResult(
                analysis_type=AnalysisType.INSIGHTS,
                title="Key Insights",
                description="Insights derived from agreement and clause embeddings",
                data={"insights": [i.to_dict() for i in insights]},
            ),
            AnalysisResult(
                analysis_type=AnalysisType.RISK_ANALYSIS,
                title="Risk Analysis",
                description="Risk distribution across agreements and clause types",
                data=build_risk_breakdown(agreements, clauses),
            ),
        ]

        self.store.apply_analysis(clause_patches, agreement_patches, results)

        completed_at = datetime.now(timezone.utc)
        output = AnalysisOutput(
            run_id=run_id,
            clauses_analyzed=len(clauses),
            agreements_analyzed=len(agreements),
            clusters_found=k,
            outliers_detected=len(outliers),
            insights_generated=len(insights),
            started_at=started_at,
            completed_at=completed_at,
        )

        log.info(
            "analysis_completed",
            clusters=k,
            outliers=len(outliers),
            duration_seconds=output.duration_seconds,
        )
        return output

    # =========================================================================
    # Validation
    # =========================================================================

    def _validate_embeddings(
        self,
        agreements: Sequence[AgreementItem],
        clauses: Sequence[ClauseItem],
    ) -> None:
        """Every embedding must be present and share the first clause's dimension."""
        dimension = len(clauses[0].embedding)
        records = [("clause", c.id, c.embedding) for c in clauses]
        records += [("agreement", a.id, a.embedding) for a in agreements]

        for kind, record_id, embedding in records:
            if not embedding:
                raise MalformedEmbeddingError(f"{kind} {record_id} has no embedding")
            if len(embedding) != dimension:
                raise MalformedEmbeddingError(
                    f"{kind} {record_id} has embedding dimension {len(embedding)}, "
                    f"expected {dimension}"
                )


@lru_cache()
def get_corpus_analyzer() -> CorpusAnalyzer:
    """Get cached corpus analyzer singleton."""
    return CorpusAnalyzer()
