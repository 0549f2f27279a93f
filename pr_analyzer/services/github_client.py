"""
GitHub API Client Module

This module provides the client used to read pull requests from the GitHub API.
It fetches PR details, the changed-file listing and the unified diff, and
classifies every failure into an error the end user can act on.

Design Decisions:
- Use httpx for async HTTP requests
- One shared httpx.AsyncClient per process, injected so tests can swap
  the transport
- No retries: the first failure ends the request with a readable message
- Content negotiation (Accept header) to get the raw diff
"""

from typing import Any, Dict, List, Optional

import httpx
from fastapi import status
from pydantic import ValidationError

from pr_analyzer.config import Settings
from pr_analyzer.exceptions import AnalysisError
from pr_analyzer.logging_config import get_logger
from pr_analyzer.models import PRFile, PRReference, PRSnapshot

logger = get_logger(__name__)

JSON_MEDIA_TYPE = "application/vnd.github+json"
DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"

NOT_FOUND_MESSAGE = (
    "Pull request not found. Please check the URL and ensure the repository "
    "is public or your token has access."
)
FORBIDDEN_MESSAGE = (
    "Access forbidden. Your GitHub token may not have permission to access "
    "this repository."
)
UNAUTHORIZED_MESSAGE = "GitHub authentication failed. Please check your GitHub token."
RATE_LIMIT_MESSAGE = "GitHub API rate limit exceeded. Please try again later."
GENERIC_MESSAGE = (
    "Failed to fetch PR data from GitHub. Please check the URL and your GitHub token."
)


class GitHubAPIError(AnalysisError):
    """Custom exception for GitHub API errors."""
    def __init__(self, message: str = GENERIC_MESSAGE, status_code: int = None,
                 upstream_status: int = None):
        super().__init__(message, status_code)
        self.upstream_status = upstream_status


class GitHubNotFoundError(GitHubAPIError):
    """The pull request or repository does not exist or is not visible."""
    def __init__(self, upstream_status: int = status.HTTP_404_NOT_FOUND):
        super().__init__(NOT_FOUND_MESSAGE, upstream_status=upstream_status)


class GitHubForbiddenError(GitHubAPIError):
    """The token lacks the scope needed to read the repository."""
    def __init__(self, upstream_status: int = status.HTTP_403_FORBIDDEN):
        super().__init__(FORBIDDEN_MESSAGE, upstream_status=upstream_status)


class GitHubUnauthorizedError(GitHubAPIError):
    """The token was rejected."""
    def __init__(self, upstream_status: int = status.HTTP_401_UNAUTHORIZED):
        super().__init__(UNAUTHORIZED_MESSAGE, upstream_status=upstream_status)


class GitHubRateLimitError(GitHubAPIError):
    """Exception raised when GitHub rate limit is exceeded."""
    def __init__(self, upstream_status: int = status.HTTP_429_TOO_MANY_REQUESTS):
        super().__init__(RATE_LIMIT_MESSAGE, upstream_status=upstream_status)


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == status.HTTP_429_TOO_MANY_REQUESTS:
        return True
    if response.headers.get("x-ratelimit-remaining") == "0":
        return True
    return "rate limit" in response.text.lower()


def classify_error_response(response: httpx.Response) -> GitHubAPIError:
    """
    Map a failed GitHub response to the matching error.

    Rate limiting is checked first because GitHub reports it as 403 or 429.

    Args:
        response: Response with a 4xx/5xx status

    Returns:
        The error to raise
    """
    code = response.status_code
    if code in (status.HTTP_403_FORBIDDEN, status.HTTP_429_TOO_MANY_REQUESTS) \
            and _is_rate_limited(response):
        return GitHubRateLimitError(upstream_status=code)
    if code == status.HTTP_404_NOT_FOUND:
        return GitHubNotFoundError()
    if code == status.HTTP_403_FORBIDDEN:
        return GitHubForbiddenError()
    if code == status.HTTP_401_UNAUTHORIZED:
        return GitHubUnauthorizedError()
    return GitHubAPIError(upstream_status=code)


class GitHubClient:
    """
    Async GitHub API client for reading pull requests.

    The client holds no per-request state and can be shared by
    concurrent requests.

    Usage:
        client = GitHubClient.from_settings(settings)
        snapshot = await client.fetch_pull_request(reference)
        await client.aclose()
    """

    def __init__(self, http_client: httpx.AsyncClient, max_pr_files: int = 300):
        """
        Initialize the GitHub client.

        Args:
            http_client: Client configured with base URL, auth headers and timeout
            max_pr_files: Upper bound on files collected from the listing
        """
        self._http = http_client
        self.max_pr_files = max_pr_files

    @classmethod
    def from_settings(cls, settings: Settings,
                      transport: Optional[httpx.AsyncBaseTransport] = None) -> "GitHubClient":
        """Build a client authenticated with the configured token."""
        headers = {
            "Accept": JSON_MEDIA_TYPE,
            "X-GitHub-Api-Version": settings.github_api_version,
            "User-Agent": "ai-pr-analyzer",
        }
        if settings.github_token:
            headers["Authorization"] = f"Bearer {settings.github_token}"

        http_client = httpx.AsyncClient(
            base_url=settings.github_api_base_url,
            headers=headers,
            timeout=settings.github_timeout,
            transport=transport,
        )
        return cls(http_client, max_pr_files=settings.max_pr_files)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        accept: Optional[str] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make a request to the GitHub API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            accept: Media type overriding the default JSON Accept header
            **kwargs: Additional arguments to pass to httpx

        Returns:
            httpx.Response object

        Raises:
            GitHubAPIError: If the request fails at transport or HTTP level
        """
        headers = {"Accept": accept} if accept else None

        try:
            response = await self._http.request(method, endpoint, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(
                "GitHub request failed",
                endpoint=endpoint,
                error=str(e),
                error_type=type(e).__name__
            )
            raise GitHubAPIError() from e

        remaining = response.headers.get("x-ratelimit-remaining")
        if remaining and remaining.isdigit() and int(remaining) < 100:
            logger.warning(
                "GitHub API rate limit running low",
                remaining=int(remaining),
                reset_at=response.headers.get("x-ratelimit-reset")
            )

        if response.status_code >= 400:
            error = classify_error_response(response)
            logger.error(
                "GitHub API error",
                status_code=response.status_code,
                endpoint=endpoint,
                error_kind=type(error).__name__,
                error=response.text[:500]
            )
            raise error

        return response

    @staticmethod
    def _json(response: httpx.Response, expected_type: type) -> Any:
        """Decode a JSON body, failing if it is not of the expected shape."""
        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                "GitHub returned a non-JSON body",
                url=str(response.url),
                content_type=response.headers.get("content-type"),
                error=str(e)
            )
            raise GitHubAPIError(upstream_status=response.status_code) from e

        if not isinstance(data, expected_type):
            logger.error(
                "GitHub returned an unexpected body",
                url=str(response.url),
                expected=expected_type.__name__,
                received=type(data).__name__
            )
            raise GitHubAPIError(upstream_status=response.status_code)

        return data

    async def get_pull_request(self, ref: PRReference) -> Dict[str, Any]:
        """Fetch the PR detail object."""
        endpoint = f"/repos/{ref.owner}/{ref.repo}/pulls/{ref.pull_number}"
        response = await self._request("GET", endpoint)
        return self._json(response, dict)

    async def get_pr_files(self, ref: PRReference) -> List[PRFile]:
        """
        Fetch the files changed in a pull request.

        Handles pagination and stops at max_pr_files.

        Args:
            ref: Pull request coordinates

        Returns:
            List of PRFile objects
        """
        endpoint = f"/repos/{ref.owner}/{ref.repo}/pulls/{ref.pull_number}/files"
        all_files: List[PRFile] = []
        page = 1
        per_page = 100

        while len(all_files) < self.max_pr_files:
            response = await self._request(
                "GET",
                endpoint,
                params={"page": page, "per_page": per_page}
            )
            files_data = self._json(response, list)
            if not files_data:
                break

            for file_data in files_data:
                if not isinstance(file_data, dict):
                    logger.warning("Skipping malformed file entry", page=page)
                    continue
                try:
                    all_files.append(PRFile(
                        filename=file_data.get("filename") or "",
                        status=file_data.get("status", "modified"),
                        additions=file_data.get("additions") or 0,
                        deletions=file_data.get("deletions") or 0,
                        changes=file_data.get("changes") or 0,
                        patch=file_data.get("patch"),
                        sha=file_data.get("sha") or "",
                    ))
                except ValidationError as e:
                    logger.warning(
                        "Skipping malformed file entry",
                        page=page,
                        filename=file_data.get("filename"),
                        error=str(e)
                    )

            if len(files_data) < per_page:
                break
            page += 1

        if len(all_files) > self.max_pr_files:
            logger.warning(
                "PR file limit reached",
                limit=self.max_pr_files,
                total_files=len(all_files)
            )

        return all_files[:self.max_pr_files]

    async def get_pr_diff(self, ref: PRReference) -> str:
        """Fetch the PR as a unified diff."""
        endpoint = f"/repos/{ref.owner}/{ref.repo}/pulls/{ref.pull_number}"
        response = await self._request("GET", endpoint, accept=DIFF_MEDIA_TYPE)
        return response.text

    async def fetch_pull_request(self, ref: PRReference) -> PRSnapshot:
        """
        Fetch everything the analysis needs for one pull request.

        Calls are made in order (detail, files, diff); the first failure
        stops the sequence.

        Args:
            ref: Pull request coordinates

        Returns:
            PRSnapshot with metadata and the raw diff

        Raises:
            GitHubAPIError: Or one of its subclasses on any failure
        """
        logger.info(
            "Fetching pull request",
            owner=ref.owner,
            repo=ref.repo,
            pr_number=ref.pull_number
        )

        pr = await self.get_pull_request(ref)
        files = await self.get_pr_files(ref)
        diff_text = await self.get_pr_diff(ref)

        user = pr.get("user")
        if not isinstance(user, dict):
            user = {}
        try:
            snapshot = PRSnapshot(
                title=pr.get("title") or "",
                author=user.get("login") or "Unknown",
                additions=pr.get("additions") or 0,
                deletions=pr.get("deletions") or 0,
                changed_files=pr.get("changed_files") or 0,
                diff_text=diff_text,
                files=files,
            )
        except ValidationError as e:
            logger.error(
                "GitHub returned unusable PR metadata",
                owner=ref.owner,
                repo=ref.repo,
                pr_number=ref.pull_number,
                error=str(e)
            )
            raise GitHubAPIError() from e

        logger.info(
            "Fetched pull request",
            owner=ref.owner,
            repo=ref.repo,
            pr_number=ref.pull_number,
            num_files=len(files),
            additions=snapshot.additions,
            deletions=snapshot.deletions,
            diff_chars=len(diff_text)
        )

        return snapshot
