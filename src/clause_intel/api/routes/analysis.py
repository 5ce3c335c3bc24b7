"""
Analysis run and result routes.
"""

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException

from clause_intel.errors import (
    AnalysisInProgressError,
    EmptyCorpusError,
    MalformedEmbeddingError,
)
from clause_intel.models.analysis import AnalysisResult, AnalysisType
from clause_intel.services.corpus_stats import get_corpus_stats_service
from clause_intel.services.runner import get_analysis_runner

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/run")
def run_analysis() -> dict[str, Any]:
    """
    Run the full corpus analysis (synchronous).

    Returns counts for the run; results are read back via /latest.
    """
    runner = get_analysis_runner()

    try:
        output = runner.run()
    except AnalysisInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (EmptyCorpusError, MalformedEmbeddingError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return output.to_dict()


@router.get("/status")
def analysis_status() -> dict[str, Any]:
    """Whether a run is in progress, and the counts of the last finished one."""
    runner = get_analysis_runner()
    last = runner.last_output

    return {
        "running": runner.is_running,
        "last_run": last.to_dict() if last else None,
    }


@router.get("/latest", response_model=dict[str, AnalysisResult])
def latest_results() -> dict[str, AnalysisResult]:
    """Most recent result of each analysis type."""
    return get_corpus_stats_service().latest()


@router.get("/{analysis_type}", response_model=AnalysisResult)
def latest_of_type(analysis_type: AnalysisType) -> AnalysisResult:
    """Most recent result of one analysis type."""
    result = get_corpus_stats_service().latest_of(analysis_type)
    if result is None:
        raise HTTPException(
            status_code=404,
            detail=f"No {analysis_type.value} result yet. Run an analysis first.",
        )
    return result


@router.get("/{analysis_type}/history", response_model=list[AnalysisResult])
def result_history(analysis_type: AnalysisType) -> list[AnalysisResult]:
    """Every stored result of one analysis type, oldest first."""
    return get_corpus_stats_service().history(analysis_type)
