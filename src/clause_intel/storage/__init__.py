"""
Storage backends for the agreement corpus and analysis results.
"""

from clause_intel.storage.base import CorpusStore
from clause_intel.storage.memory import InMemoryCorpusStore
from clause_intel.storage.sql import SqlCorpusStore, get_corpus_store

__all__ = [
    "CorpusStore",
    "InMemoryCorpusStore",
    "SqlCorpusStore",
    "get_corpus_store",
]
