"""
Clause Intel: embedding analytics for legal agreement corpora.

Clusters clause embeddings, projects clauses and agreements onto a 2-D
map, flags outlier clauses and derives corpus-level insights that are
written back through a storage collaborator.
"""

__version__ = "0.1.0"
__author__ = "Clause Intel Team"

from clause_intel.config import get_settings

__all__ = ["get_settings", "__version__"]
