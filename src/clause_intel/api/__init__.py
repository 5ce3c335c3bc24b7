"""
FastAPI application for Clause Intel.
"""

from clause_intel.api.main import app, create_app

__all__ = ["app", "create_app"]
