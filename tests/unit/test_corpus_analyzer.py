"""Tests for clause_intel/services/corpus_analyzer.py: full analysis runs."""

import numpy as np
import pytest

from clause_intel.config import Settings
from clause_intel.errors import EmptyCorpusError, MalformedEmbeddingError
from clause_intel.models.corpus import AgreementItem, ClauseItem
from clause_intel.services.corpus_analyzer import CorpusAnalyzer
from clause_intel.storage.memory import InMemoryCorpusStore


def _fill(store, agreements, clauses):
    for agreement in agreements:
        store.add_agreement(agreement)
    for clause in clauses:
        store.add_clause(clause)
    return store


@pytest.fixture
def analyzer(loaded_store):
    return CorpusAnalyzer(store=loaded_store, rng=np.random.default_rng(7))


class TestRunFullAnalysis:

    def test_output_counts(self, analyzer):
        output = analyzer.run_full_analysis()
        assert output.clauses_analyzed == 18
        assert output.agreements_analyzed == 3
        assert output.clusters_found == 5
        assert output.insights_generated == 6
        assert output.duration_seconds is not None

    def test_clause_fields_written(self, analyzer, loaded_store):
        analyzer.run_full_analysis()
        for clause in loaded_store.list_clauses():
            assert clause.x is not None and -1.0 <= clause.x <= 1.0
            assert clause.y is not None and -1.0 <= clause.y <= 1.0
            assert clause.cluster_id in range(5)
            assert clause.is_outlier is not None

    def test_agreement_coordinates_written(self, analyzer, loaded_store):
        analyzer.run_full_analysis()
        for agreement in loaded_store.list_agreements():
            assert agreement.x is not None
            assert agreement.y is not None

    def test_five_results_appended(self, analyzer, loaded_store):
        analyzer.run_full_analysis()
        latest = loaded_store.latest_results()
        assert set(latest) == {
            "clusters", "similarity_matrix", "outliers", "insights", "risk_analysis",
        }

    def test_cluster_payload(self, analyzer, loaded_store):
        analyzer.run_full_analysis()
        data = loaded_store.latest_results()["clusters"].data
        assert data["k"] == 5
        assert [c["cluster_id"] for c in data["clusters"]] == [0, 1, 2, 3, 4]
        assert sum(c["size"] for c in data["clusters"]) == 18

    def test_similarity_payload(self, analyzer, loaded_store):
        analyzer.run_full_analysis()
        data = loaded_store.latest_results()["similarity_matrix"].data
        assert data["labels"] == ["Agreement 0", "Agreement 1", "Agreement 2"]
        assert data["providers"] == ["Provider 0", "Provider 1", "Provider 2"]
        assert len(data["matrix"]) == 3

    def test_outlier_payload_matches_flags(self, analyzer, loaded_store):
        analyzer.run_full_analysis()
        data = loaded_store.latest_results()["outliers"].data
        flagged = {c.id for c in loaded_store.list_clauses() if c.is_outlier}
        assert {o["clause_id"] for o in data["outliers"]} == flagged
        assert data["threshold"] == pytest.approx(
            data["mean_score"] + 1.5 * data["std_score"]
        )

    def test_repeat_runs_keep_history(self, analyzer, loaded_store):
        analyzer.run_full_analysis()
        analyzer.run_full_analysis()
        assert len(loaded_store.list_results()) == 10
        assert len(loaded_store.list_results("insights")) == 2
        assert loaded_store.latest_results()["insights"].id == 9

    def test_seeded_runs_reproducible(self, sample_corpus):
        settings = Settings(random_seed=3)
        first = _fill(InMemoryCorpusStore(), *sample_corpus)
        second = _fill(InMemoryCorpusStore(), *sample_corpus)

        CorpusAnalyzer(store=first, settings=settings).run_full_analysis()
        CorpusAnalyzer(store=second, settings=settings).run_full_analysis()

        assert [c.cluster_id for c in first.list_clauses()] == [
            c.cluster_id for c in second.list_clauses()
        ]
        assert [c.x for c in first.list_clauses()] == [c.x for c in second.list_clauses()]


class TestSimilarAgreements:

    def test_identical_agreements_are_most_similar(self, corpus_factory, memory_store):
        agreements, clauses = corpus_factory(n_agreements=4, clauses_per_agreement=3, dimension=4)
        embeddings = [
            [1.0, 0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 1.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ]
        agreements = [
            a.model_copy(update={"embedding": e}) for a, e in zip(agreements, embeddings)
        ]
        _fill(memory_store, agreements, clauses)

        CorpusAnalyzer(store=memory_store, rng=np.random.default_rng(1)).run_full_analysis()
        latest = memory_store.latest_results()

        matrix = latest["similarity_matrix"].data["matrix"]
        assert matrix[0][1] == pytest.approx(1.0)
        assert [matrix[i][i] for i in range(4)] == [1.0, 1.0, 1.0, 1.0]
        assert matrix[2][3] == pytest.approx(0.0)

        similarity = latest["insights"].data["insights"][0]
        assert similarity["type"] == "similarity"
        assert similarity["details"]["agreements"] == ["Agreement 0", "Agreement 1"]


class TestOutlierDetection:

    def test_far_clause_flagged_first(self, memory_store):
        rng = np.random.default_rng(21)
        axes = np.eye(8)

        agreements = [
            AgreementItem(id="agr-a", name="Agreement A", embedding=rng.normal(size=8).tolist()),
            AgreementItem(id="agr-b", name="Agreement B", embedding=rng.normal(size=8).tolist()),
        ]
        clauses = []
        for group in range(5):
            for i in range(10):
                clauses.append(ClauseItem(
                    id=f"g{group}-{i:02d}",
                    agreement_id=agreements[i % 2].id,
                    agreement_name=agreements[i % 2].name,
                    clause_type=f"Type {group}",
                    title=f"Clause {group}.{i}",
                    embedding=(axes[group] + 0.01 * rng.normal(size=8)).tolist(),
                ))
        clauses.append(ClauseItem(
            id="odd-one",
            agreement_id="agr-a",
            agreement_name="Agreement A",
            clause_type="Type 0",
            title="Unusual indemnity",
            embedding=(0.95 * axes[0] + 0.31 * axes[5]).tolist(),
        ))
        _fill(memory_store, agreements, clauses)

        CorpusAnalyzer(store=memory_store, rng=np.random.default_rng(5)).run_full_analysis()

        flagged = {c.id: c.is_outlier for c in memory_store.list_clauses()}
        assert flagged["odd-one"] is True

        outliers = memory_store.latest_results()["outliers"].data["outliers"]
        assert outliers[0]["clause_id"] == "odd-one"
        assert outliers[0]["title"] == "Unusual indemnity"


class TestFailures:

    def test_empty_corpus(self, memory_store):
        analyzer = CorpusAnalyzer(store=memory_store)
        with pytest.raises(EmptyCorpusError):
            analyzer.run_full_analysis()
        assert memory_store.list_results() == []

    def test_agreements_without_clauses(self, memory_store):
        memory_store.add_agreement(AgreementItem(name="Lonely", embedding=[1.0, 0.0]))
        with pytest.raises(EmptyCorpusError):
            CorpusAnalyzer(store=memory_store).run_full_analysis()
        assert memory_store.list_agreements()[0].x is None
        assert memory_store.list_results() == []

    def test_missing_clause_embedding(self, loaded_store):
        loaded_store.add_clause(ClauseItem(
            id="no-embedding", agreement_id="agr-0", clause_type="Termination",
        ))
        with pytest.raises(MalformedEmbeddingError):
            CorpusAnalyzer(store=loaded_store).run_full_analysis()
        assert all(c.cluster_id is None for c in loaded_store.list_clauses())
        assert loaded_store.list_results() == []

    def test_mismatched_clause_dimension(self, loaded_store):
        loaded_store.add_clause(ClauseItem(
            id="short", agreement_id="agr-0", clause_type="Termination", embedding=[1.0, 0.0],
        ))
        with pytest.raises(MalformedEmbeddingError, match="short"):
            CorpusAnalyzer(store=loaded_store).run_full_analysis()
        assert loaded_store.list_results() == []

    def test_mismatched_agreement_dimension(self, loaded_store):
        loaded_store.add_agreement(AgreementItem(id="agr-x", name="X", embedding=[1.0]))
        with pytest.raises(MalformedEmbeddingError, match="agr-x"):
            CorpusAnalyzer(store=loaded_store).run_full_analysis()
        assert all(a.x is None for a in loaded_store.list_agreements())
