"""
Analysis and read-side services for Clause Intel.
"""

from clause_intel.services.corpus_analyzer import CorpusAnalyzer, get_corpus_analyzer
from clause_intel.services.corpus_stats import (
    CorpusStatistics,
    CorpusStatsService,
    get_corpus_stats_service,
)
from clause_intel.services.runner import AnalysisRunner, get_analysis_runner
from clause_intel.services.search_service import (
    ClauseMarketInsight,
    SearchService,
    get_search_service,
)

__all__ = [
    "CorpusAnalyzer",
    "get_corpus_analyzer",
    "CorpusStatistics",
    "CorpusStatsService",
    "get_corpus_stats_service",
    "AnalysisRunner",
    "get_analysis_runner",
    "ClauseMarketInsight",
    "SearchService",
    "get_search_service",
]
