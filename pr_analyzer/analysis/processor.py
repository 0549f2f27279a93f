"""
PR Analysis Processor Module

This module orchestrates one analysis request end to end.
It validates configuration and input, fetches the pull request, builds the
prompt, runs the completion and normalizes the answer into the response
envelope.

Design Decisions:
- Single responsibility: sequence the stages, nothing else
- Stages run strictly in order, each awaiting the previous one
- Every failure is caught once here, logged, and turned into the uniform
  failure envelope; no internal error type reaches the HTTP layer
- Clients are injected so tests can substitute fakes
"""

from typing import Any, Optional, Tuple

from fastapi import status

from pr_analyzer.config import Settings
from pr_analyzer.exceptions import AnalysisError, ConfigurationError, InvalidRequestError
from pr_analyzer.logging_config import describe_text, get_logger
from pr_analyzer.models import AnalyzeResponse, PRInfo, PRReference
from pr_analyzer.services.ai_engine import AIReviewEngine
from pr_analyzer.services.github_client import GitHubClient
from pr_analyzer.services.normalizer import normalize_analysis
from pr_analyzer.services.pr_url import PR_URL_FORMAT_HINT, parse_pr_url
from pr_analyzer.services.prompt_builder import build_analysis_prompt

logger = get_logger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"
INVALID_PR_URL_MESSAGE = "Invalid PR URL provided"
INVALID_PR_URL_FORMAT_MESSAGE = f"Invalid GitHub PR URL format. Expected: {PR_URL_FORMAT_HINT}"

CREDENTIAL_MESSAGES = {
    "OPENAI_API_KEY": "OpenAI API key not configured",
    "GITHUB_TOKEN": "GitHub token not configured",
}


class PRAnalyzer:
    """
    Orchestrates a pull request analysis.

    Pipeline:
    1. Check that both credentials are configured
    2. Parse the PR URL
    3. Fetch the PR snapshot from GitHub
    4. Build the prompt
    5. Run the completion
    6. Normalize the model output

    Usage:
        analyzer = PRAnalyzer(settings, github_client, ai_engine)
        response, status_code = await analyzer.analyze(pr_url)
    """

    def __init__(
        self,
        settings: Settings,
        github_client: Optional[GitHubClient],
        ai_engine: Optional[AIReviewEngine]
    ):
        """
        Initialize the analyzer.

        Args:
            settings: Application settings, read for credential presence
            github_client: Shared GitHub client (may be None when unconfigured)
            ai_engine: Shared completion client (may be None when unconfigured)
        """
        self.settings = settings
        self.github_client = github_client
        self.ai_engine = ai_engine

    async def analyze(self, pr_url: Any) -> Tuple[AnalyzeResponse, int]:
        """
        Run the full analysis for a PR URL.

        Never raises; every outcome is an envelope and an HTTP status.

        Args:
            pr_url: The prUrl value from the request body, unvalidated

        Returns:
            Tuple of (response envelope, HTTP status code)
        """
        try:
            response = await self._run(pr_url)
            return response, status.HTTP_200_OK

        except AnalysisError as e:
            logger.error(
                "PR analysis failed",
                error=e.message,
                error_type=type(e).__name__,
                status_code=e.status_code
            )
            return AnalyzeResponse.failure(e.message), e.status_code

        except Exception as e:
            logger.exception(
                "PR analysis failed unexpectedly",
                error=str(e),
                error_type=type(e).__name__
            )
            return (
                AnalyzeResponse.failure(UNEXPECTED_ERROR_MESSAGE),
                status.HTTP_500_INTERNAL_SERVER_ERROR
            )

    async def _run(self, pr_url: Any) -> AnalyzeResponse:
        self._check_configuration()
        ref = self._parse_reference(pr_url)

        logger.info(
            "Starting PR analysis",
            owner=ref.owner,
            repo=ref.repo,
            pr_number=ref.pull_number
        )

        snapshot = await self.github_client.fetch_pull_request(ref)

        prompt = build_analysis_prompt(snapshot)
        logger.debug(
            "Built analysis prompt",
            diff=describe_text(snapshot.diff_text),
            prompt=describe_text(prompt)
        )

        raw_text = await self.ai_engine.complete(prompt)
        result = normalize_analysis(raw_text)

        logger.info(
            "PR analysis completed",
            owner=ref.owner,
            repo=ref.repo,
            pr_number=ref.pull_number,
            num_issues=len(result.issues)
        )

        return AnalyzeResponse(
            success=True,
            data=result,
            pr_info=PRInfo.from_snapshot(snapshot)
        )

    def _check_configuration(self) -> None:
        """Fail before any network activity when a credential is missing."""
        missing = self.settings.missing_credentials()
        if missing:
            raise ConfigurationError(CREDENTIAL_MESSAGES[missing[0]])
        if self.github_client is None or self.ai_engine is None:
            raise ConfigurationError("Analysis clients are not initialized")

    @staticmethod
    def _parse_reference(pr_url: Any) -> PRReference:
        if not pr_url or not isinstance(pr_url, str):
            raise InvalidRequestError(INVALID_PR_URL_MESSAGE)

        ref = parse_pr_url(pr_url)
        if ref is None:
            raise InvalidRequestError(INVALID_PR_URL_FORMAT_MESSAGE)
        return ref
