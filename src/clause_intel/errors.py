"""
Error types raised by the analytics engine.
"""


class AnalysisError(Exception):
    """Base class for failures that abort an analysis run."""
    pass


class EmptyCorpusError(AnalysisError):
    """Raised when there are no clauses to analyze."""
    pass


class MalformedEmbeddingError(AnalysisError):
    """Raised when a record has a missing or mis-dimensioned embedding."""
    pass


class DimensionMismatchError(AnalysisError, ValueError):
    """Raised when two vectors of different length are compared."""
    pass


class AnalysisInProgressError(AnalysisError):
    """Raised when a run is requested while another one is still going."""
    pass
