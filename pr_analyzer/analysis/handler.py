"""
Analysis Handler Module

This module defines the FastAPI endpoints for PR analysis.

Design Decisions:
- Read the raw JSON body instead of a request model so that a missing or
  non-string prUrl gets the uniform 400 envelope rather than FastAPI's 422
- Get the analyzer through a dependency so tests can override it
- The handler only translates; all decisions live in the processor
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from pr_analyzer.analysis.processor import INVALID_PR_URL_MESSAGE, PRAnalyzer
from pr_analyzer.logging_config import get_logger
from pr_analyzer.models import AnalyzeResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


def get_pr_analyzer(request: Request) -> PRAnalyzer:
    """Return the analyzer built during application startup."""
    return request.app.state.analyzer


@router.post("/analyze-pr")
async def analyze_pr(
    request: Request,
    analyzer: PRAnalyzer = Depends(get_pr_analyzer)
) -> JSONResponse:
    """
    Analyze a GitHub pull request.

    Request body: {"prUrl": "https://github.com/owner/repo/pull/123"}

    Returns:
        200 with {"success": true, "data": ..., "prInfo": ...}, or the
        failure envelope {"success": false, "error": ...} with 400/500
    """
    try:
        body = await request.json()
    except ValueError as e:
        logger.warning("Failed to parse request body", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=AnalyzeResponse.failure(INVALID_PR_URL_MESSAGE).to_payload()
        )

    pr_url = body.get("prUrl") if isinstance(body, dict) else None

    logger.info(
        "Received analysis request",
        remote_addr=request.client.host if request.client else "unknown"
    )

    response, status_code = await analyzer.analyze(pr_url)
    return JSONResponse(status_code=status_code, content=response.to_payload())


@router.get("/health")
async def analysis_health() -> Dict[str, Any]:
    """
    Health check endpoint for the analysis API.

    Returns:
        Simple health status
    """
    return {"status": "healthy", "service": "analysis"}
