"""Integration tests for the click CLI via CliRunner."""

import json

import pytest
from click.testing import CliRunner

from clause_intel.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def corpus_file(tmp_path, sample_corpus):
    agreements, clauses = sample_corpus
    path = tmp_path / "corpus.json"
    path.write_text(json.dumps({
        "agreements": [a.model_dump(mode="json") for a in agreements],
        "clauses": [
            c.model_dump(mode="json", exclude={"agreement_name"}) for c in clauses
        ],
    }))
    return path


class TestCorpusCommands:

    def test_load_and_stats(self, runner, corpus_file):
        result = runner.invoke(cli, ["load", str(corpus_file)])
        assert result.exit_code == 0, result.output
        assert "Loaded 3 agreement(s) and 18 clause(s)." in result.output

        result = runner.invoke(cli, ["stats"])
        assert result.exit_code == 0
        assert "Agreements: 3" in result.output
        assert "Clauses: 18" in result.output
        assert "Analyzed: no" in result.output

    def test_load_fills_agreement_names(self, runner, corpus_file):
        from clause_intel.storage.sql import get_corpus_store

        runner.invoke(cli, ["load", str(corpus_file)])
        clause = get_corpus_store().list_clauses()[0]
        assert clause.agreement_name == "Agreement 0"

    def test_load_invalid_json(self, runner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        result = runner.invoke(cli, ["load", str(path)])
        assert result.exit_code == 1
        assert "not valid JSON" in result.output

    def test_load_invalid_record(self, runner, tmp_path):
        path = tmp_path / "bad_risk.json"
        path.write_text(json.dumps({
            "clauses": [{
                "agreement_id": "agr-0",
                "clause_type": "Termination",
                "risk_level": "extreme",
                "embedding": [1.0, 0.0],
            }],
        }))

        result = runner.invoke(cli, ["load", str(path)])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "invalid ClauseItem record: risk_level" in result.output
        assert "Traceback" not in result.output

    def test_load_mixed_dimensions(self, runner, tmp_path):
        path = tmp_path / "mixed.json"
        path.write_text(json.dumps({
            "clauses": [
                {"id": "a", "agreement_id": "agr-0", "clause_type": "Termination",
                 "embedding": [1.0, 0.0]},
                {"id": "b", "agreement_id": "agr-0", "clause_type": "Termination",
                 "embedding": [1.0, 0.0, 0.0]},
            ],
        }))

        result = runner.invoke(cli, ["load", str(path)])

        assert result.exit_code == 1
        assert "record b has a 3-dimensional embedding, expected 2" in result.output
        assert "Clauses: 0" in runner.invoke(cli, ["stats"]).output

    def test_load_rejects_dimension_of_stored_corpus(self, runner, corpus_file, tmp_path):
        runner.invoke(cli, ["load", str(corpus_file)])
        path = tmp_path / "extra.json"
        path.write_text(json.dumps({
            "clauses": [{"id": "extra", "agreement_id": "agr-0",
                         "clause_type": "Termination", "embedding": [1.0, 0.0]}],
        }))

        result = runner.invoke(cli, ["load", str(path)])

        assert result.exit_code == 1
        assert "expected 6" in result.output

    def test_list_before_analysis(self, runner, corpus_file):
        runner.invoke(cli, ["load", str(corpus_file)])

        result = runner.invoke(cli, ["agreements"])
        assert result.exit_code == 0
        assert "Agreement 1 (Provider 1)  (not analyzed)" in result.output

        result = runner.invoke(cli, ["clauses", "--agreement", "agr-2"])
        assert result.exit_code == 0
        assert result.output.count("cl-2-") == 6
        assert "cl-1-" not in result.output

    def test_list_empty(self, runner):
        assert "No agreements found." in runner.invoke(cli, ["agreements"]).output
        assert "No clauses found." in runner.invoke(cli, ["clauses"]).output


class TestAnalysisCommands:

    def test_analyze_then_read(self, runner, corpus_file):
        runner.invoke(cli, ["load", str(corpus_file)])

        result = runner.invoke(cli, ["analyze", "--seed", "3"])
        assert result.exit_code == 0, result.output
        assert "Clusters found: 5" in result.output
        assert "Insights generated: 6" in result.output

        result = runner.invoke(cli, ["latest"])
        assert result.exit_code == 0
        assert "[insights] Key Insights" in result.output
        assert "Most Similar Agreements" in result.output

        result = runner.invoke(cli, ["latest", "--json"])
        payload = json.loads(result.output[result.output.index("{"):])
        assert set(payload) == {
            "clusters", "similarity_matrix", "outliers", "insights", "risk_analysis",
        }

        result = runner.invoke(cli, ["history", "--type", "clusters"])
        assert result.exit_code == 0
        assert "[clusters]" in result.output

        result = runner.invoke(cli, ["clauses", "--type", "Termination"])
        assert result.exit_code == 0
        assert result.output.count("[Termination]") == 6
        assert "not analyzed" not in result.output
        assert "cluster=-" not in result.output

    def test_analyze_empty_corpus(self, runner):
        result = runner.invoke(cli, ["analyze"])
        assert result.exit_code == 1
        assert "No clauses found" in result.output

    def test_latest_before_analysis(self, runner):
        result = runner.invoke(cli, ["latest"])
        assert result.exit_code == 0
        assert "No analysis results yet" in result.output


class TestDatabaseCommands:

    def test_clear_db(self, runner, corpus_file):
        runner.invoke(cli, ["load", str(corpus_file)])
        result = runner.invoke(cli, ["clear-db", "--yes"])
        assert result.exit_code == 0
        assert "3 agreement(s), 18 clause(s), 0 result(s)" in result.output

    def test_init_db(self, runner):
        result = runner.invoke(cli, ["init-db"])
        assert result.exit_code == 0
        assert "Schema ready" in result.output

    def test_config(self, runner):
        result = runner.invoke(cli, ["config"])
        assert result.exit_code == 0
        assert "Database: sqlite://" in result.output
        assert "Clusters: 5-15" in result.output
