"""Shared pytest fixtures for the Clause Intel test suite."""

import numpy as np
import pytest

from clause_intel.models.corpus import AgreementItem, ClauseItem
from clause_intel.storage.memory import InMemoryCorpusStore
from clause_intel.storage.sql import SqlCorpusStore

CLAUSE_TYPES = ["Limitation of Liability", "Termination", "Confidentiality"]
RISK_LEVELS = ["low", "medium", "high"]
FAVORABILITY = ["provider-favorable", "neutral", "customer-favorable"]


# ---------------------------------------------------------------------------
# Singleton cache clearing (autouse)
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def clear_singletons(monkeypatch):
    """Point storage at in-memory SQLite and clear all @lru_cache singletons."""
    from clause_intel.config import get_settings
    from clause_intel.services.corpus_analyzer import get_corpus_analyzer
    from clause_intel.services.corpus_stats import get_corpus_stats_service
    from clause_intel.services.runner import get_analysis_runner
    from clause_intel.services.search_service import get_search_service
    from clause_intel.storage.sql import get_corpus_store

    monkeypatch.setenv("DATABASE_URL", "sqlite://")

    caches = [
        get_settings,
        get_corpus_store,
        get_corpus_analyzer,
        get_analysis_runner,
        get_corpus_stats_service,
        get_search_service,
    ]
    for getter in caches:
        getter.cache_clear()
    yield
    for getter in caches:
        getter.cache_clear()


# ---------------------------------------------------------------------------
# Corpus fixtures
# ---------------------------------------------------------------------------

def _build_corpus(
    n_agreements: int = 3,
    clauses_per_agreement: int = 6,
    dimension: int = 6,
    seed: int = 0,
) -> tuple[list[AgreementItem], list[ClauseItem]]:
    """Agreements plus clauses whose embeddings sit near one axis per clause type."""
    rng = np.random.default_rng(seed)
    axes = np.eye(dimension)

    agreements = []
    clauses = []
    for a in range(n_agreements):
        agreement = AgreementItem(
            id=f"agr-{a}",
            name=f"Agreement {a}",
            provider=f"Provider {a}",
            embedding=rng.normal(size=dimension).tolist(),
        )
        agreements.append(agreement)

        for c in range(clauses_per_agreement):
            clause_type = CLAUSE_TYPES[c % len(CLAUSE_TYPES)]
            embedding = axes[c % len(CLAUSE_TYPES)] + 0.05 * rng.normal(size=dimension)
            clauses.append(ClauseItem(
                id=f"cl-{a}-{c}",
                agreement_id=agreement.id,
                agreement_name=agreement.name,
                clause_type=clause_type,
                title=f"{clause_type} {a}.{c}",
                text=f"Clause {c} of agreement {a}.",
                summary=f"{clause_type} summary",
                risk_level=RISK_LEVELS[(a + c) % 3],
                favorability=FAVORABILITY[c % 3],
                embedding=embedding.tolist(),
            ))

    return agreements, clauses


@pytest.fixture
def corpus_factory():
    """Factory building a deterministic synthetic corpus."""
    return _build_corpus


@pytest.fixture
def sample_corpus():
    """Three agreements with six clauses each, 6-dimensional embeddings."""
    return _build_corpus()


@pytest.fixture
def memory_store():
    return InMemoryCorpusStore()


@pytest.fixture
def loaded_store(memory_store, sample_corpus):
    """In-memory store holding the sample corpus."""
    agreements, clauses = sample_corpus
    for agreement in agreements:
        memory_store.add_agreement(agreement)
    for clause in clauses:
        memory_store.add_clause(clause)
    return memory_store


@pytest.fixture
def sql_store():
    """SQL store on a private in-memory SQLite database."""
    store = SqlCorpusStore("sqlite://")
    store.create_schema()
    yield store
    store.close()


@pytest.fixture
def rng():
    return np.random.default_rng(42)
