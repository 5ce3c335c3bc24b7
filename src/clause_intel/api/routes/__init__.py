"""
API route modules.
"""

from clause_intel.api.routes import analysis, corpus, search

__all__ = ["analysis", "corpus", "search"]
