"""
Serialized invocation of the corpus analysis.

A second run started before the first finishes could read a half-written
corpus, so callers go through ``AnalysisRunner`` which admits one run at a
time and rejects the rest.
"""

import threading
from functools import lru_cache

import numpy as np
import structlog

from clause_intel.analytics.types import AnalysisOutput
from clause_intel.errors import AnalysisInProgressError
from clause_intel.services.corpus_analyzer import CorpusAnalyzer, get_corpus_analyzer

logger = structlog.get_logger(__name__)


class AnalysisRunner:
    """
    Runs ``CorpusAnalyzer.run_full_analysis`` one at a time.

    The lock is held per process. A CLI ``analyze`` and a separate API
    server process sharing one database are not serialized against each
    other.
    """

    def __init__(self, analyzer: CorpusAnalyzer | None = None):
        self._analyzer = analyzer
        self._lock = threading.Lock()
        self.last_output: AnalysisOutput | None = None

    @property
    def analyzer(self) -> CorpusAnalyzer:
        if self._analyzer is None:
            self._analyzer = get_corpus_analyzer()
        return self._analyzer

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def run(self, seed: int | None = None) -> AnalysisOutput:
        """
        Run the analysis, or raise if one is already in progress.

        Args:
            seed: Seed for this run only; the analyzer's configured source otherwise
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("analysis_rejected_in_progress")
            raise AnalysisInProgressError("An analysis run is already in progress")

        rng = np.random.default_rng(seed) if seed is not None else None
        try:
            output = self.analyzer.run_full_analysis(rng=rng)
            self.last_output = output
            return output
        except Exception as e:
            logger.error("analysis_failed", error=str(e), error_type=type(e).__name__)
            raise
        finally:
            self._lock.release()


@lru_cache()
def get_analysis_runner() -> AnalysisRunner:
    """Get cached analysis runner singleton."""
    return AnalysisRunner()
