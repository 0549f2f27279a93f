"""
Analysis Package

This package contains the analysis API components:
- handler: FastAPI route handlers
- processor: orchestration of a single PR analysis
"""

from pr_analyzer.analysis.handler import router

__all__ = ["router"]
