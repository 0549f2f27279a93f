"""
Services Package

This package contains the stages of the analysis pipeline:
- pr_url: PR URL parsing
- github_client: GitHub API client
- prompt_builder: prompt construction
- ai_engine: completion client
- normalizer: model output validation
"""

from pr_analyzer.services.ai_engine import AIReviewEngine, ModelInvocationError
from pr_analyzer.services.github_client import GitHubAPIError, GitHubClient
from pr_analyzer.services.normalizer import ModelOutputError, normalize_analysis
from pr_analyzer.services.pr_url import parse_pr_url
from pr_analyzer.services.prompt_builder import build_analysis_prompt

__all__ = [
    "AIReviewEngine",
    "ModelInvocationError",
    "GitHubAPIError",
    "GitHubClient",
    "ModelOutputError",
    "normalize_analysis",
    "parse_pr_url",
    "build_analysis_prompt",
]
