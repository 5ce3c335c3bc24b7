"""Tests for clause_intel/storage/sql.py: SqlCorpusStore on in-memory SQLite."""

import pytest

from clause_intel.models.analysis import AnalysisResult, AnalysisType
from clause_intel.models.corpus import AgreementPatch, ClausePatch


@pytest.fixture
def filled_sql_store(sql_store, sample_corpus):
    agreements, clauses = sample_corpus
    for agreement in agreements:
        sql_store.add_agreement(agreement)
    for clause in clauses:
        sql_store.add_clause(clause)
    return sql_store


class TestCorpusRoundTrip:

    def test_health_check(self, sql_store):
        assert sql_store.health_check() is True

    def test_agreements_round_trip(self, filled_sql_store, sample_corpus):
        agreements, _ = sample_corpus
        stored = filled_sql_store.list_agreements()
        assert [a.id for a in stored] == sorted(a.id for a in agreements)
        assert stored[0].embedding == pytest.approx(agreements[0].embedding)
        assert stored[0].provider == "Provider 0"

    def test_clauses_round_trip(self, filled_sql_store, sample_corpus):
        _, clauses = sample_corpus
        stored = {c.id: c for c in filled_sql_store.list_clauses()}
        expected = clauses[4]
        clause = stored[expected.id]

        assert clause.clause_type == expected.clause_type
        assert clause.risk_level == expected.risk_level
        assert clause.favorability == expected.favorability
        assert clause.embedding == pytest.approx(expected.embedding)
        assert clause.cluster_id is None
        assert clause.is_outlier is None


class TestApplyAnalysis:

    def test_patches_and_results(self, filled_sql_store):
        clause = filled_sql_store.list_clauses()[0]
        agreement = filled_sql_store.list_agreements()[0]

        stored = filled_sql_store.apply_analysis(
            [ClausePatch(clause_id=clause.id, x=0.25, y=-1.0, cluster_id=3, is_outlier=True)],
            [AgreementPatch(agreement_id=agreement.id, x=-0.5, y=0.5)],
            [
                AnalysisResult(analysis_type=AnalysisType.CLUSTERS, title="Clusters",
                               data={"k": 5}),
                AnalysisResult(analysis_type=AnalysisType.INSIGHTS, title="Insights",
                               data={"insights": []}),
            ],
        )

        assert [r.id for r in stored] == [1, 2]

        updated = {c.id: c for c in filled_sql_store.list_clauses()}[clause.id]
        assert (updated.x, updated.y, updated.cluster_id, updated.is_outlier) == (
            0.25, -1.0, 3, True,
        )
        assert filled_sql_store.list_agreements()[0].x == -0.5

    def test_failed_batch_rolls_back(self, filled_sql_store):
        clause = filled_sql_store.list_clauses()[0]

        with pytest.raises(TypeError):
            filled_sql_store.apply_analysis(
                [ClausePatch(clause_id=clause.id, x=0.1, y=0.2, cluster_id=1, is_outlier=False)],
                [],
                [AnalysisResult(analysis_type=AnalysisType.OUTLIERS, title="Broken",
                                data={"value": object()})],
            )

        assert filled_sql_store.list_clauses()[0].cluster_id is None
        assert filled_sql_store.list_results() == []


class TestResults:

    def test_latest_and_history(self, sql_store):
        for title in ("first", "second"):
            sql_store.apply_analysis([], [], [
                AnalysisResult(analysis_type=AnalysisType.CLUSTERS, title=title,
                               data={"run": title}),
            ])
        sql_store.apply_analysis([], [], [
            AnalysisResult(analysis_type=AnalysisType.RISK_ANALYSIS, title="Risk"),
        ])

        latest = sql_store.latest_results()
        assert set(latest) == {"clusters", "risk_analysis"}
        assert latest["clusters"].title == "second"
        assert latest["clusters"].data == {"run": "second"}

        history = sql_store.list_results("clusters")
        assert [r.title for r in history] == ["first", "second"]
        assert history[0].created_at.tzinfo is not None

    def test_clear_all(self, filled_sql_store):
        filled_sql_store.apply_analysis([], [], [
            AnalysisResult(analysis_type=AnalysisType.CLUSTERS, title="Clusters"),
        ])
        deleted = filled_sql_store.clear_all()
        assert deleted == {"agreements": 3, "clauses": 18, "analysis_results": 1}
        assert filled_sql_store.list_agreements() == []
        assert filled_sql_store.latest_results() == {}
