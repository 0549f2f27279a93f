"""
Test Configuration

Pytest configuration and fixtures for the test suite.
"""

import json
from types import SimpleNamespace
from typing import Callable, Dict, Generator, List, Optional
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from pr_analyzer.analysis.handler import get_pr_analyzer
from pr_analyzer.analysis.processor import PRAnalyzer
from pr_analyzer.config import Settings
from pr_analyzer.main import app
from pr_analyzer.services.ai_engine import AIReviewEngine
from pr_analyzer.services.github_client import GitHubClient

PR_URL = "https://github.com/octocat/hello-world/pull/42"
PR_ENDPOINT = "/repos/octocat/hello-world/pulls/42"


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment and any .env file."""
    values = {
        "github_token": "ghp_test_token",
        "openai_api_key": "sk-test-key",
        "github_api_base_url": "https://api.github.test",
        "openai_model": "gpt-test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_completion(content: Optional[str], **message_fields) -> SimpleNamespace:
    """Minimal stand-in for an OpenAI ChatCompletion object."""
    message = SimpleNamespace(
        content=content,
        refusal=message_fields.get("refusal"),
        tool_calls=message_fields.get("tool_calls"),
    )
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message, finish_reason="stop")],
        usage=None,
    )


class FakeGitHub:
    """Records requests and answers them like the GitHub pulls API."""

    def __init__(self, pr: dict, files: List[dict], diff: str):
        self.pr = pr
        self.files = files
        self.diff = diff
        self.requests: List[httpx.Request] = []
        self.failures: Dict[str, httpx.Response] = {}

    def fail(self, kind: str, response: httpx.Response) -> None:
        """Make the "detail", "files" or "diff" call return response."""
        self.failures[kind] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path.endswith("/files"):
            kind = "files"
        elif "diff" in request.headers.get("accept", ""):
            kind = "diff"
        else:
            kind = "detail"

        if kind in self.failures:
            return self.failures[kind]

        if kind == "files":
            page = int(request.url.params.get("page", "1"))
            return httpx.Response(200, json=self.files if page == 1 else [])
        if kind == "diff":
            return httpx.Response(200, text=self.diff)
        return httpx.Response(200, json=self.pr)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def sample_pr() -> dict:
    """PR detail object as returned by GET /repos/{owner}/{repo}/pulls/{n}."""
    return {
        "number": 42,
        "title": "Add input validation to login form",
        "user": {"login": "octocat", "id": 1},
        "additions": 12,
        "deletions": 3,
        "changed_files": 2,
        "state": "open",
    }


@pytest.fixture
def sample_files() -> List[dict]:
    return [
        {
            "filename": "app/login.py",
            "status": "modified",
            "additions": 10,
            "deletions": 3,
            "changes": 13,
            "patch": "@@ -1,3 +1,10 @@\n-old\n+new",
            "sha": "abc123",
        },
        {
            "filename": "tests/test_login.py",
            "status": "added",
            "additions": 2,
            "deletions": 0,
            "changes": 2,
            "patch": "@@ -0,0 +1,2 @@\n+def test():\n+    pass",
            "sha": "def456",
        },
    ]


@pytest.fixture
def sample_diff() -> str:
    return '''diff --git a/app/login.py b/app/login.py
--- a/app/login.py
+++ b/app/login.py
@@ -1,3 +1,4 @@
 def login(user, password):
-    return db.query("SELECT * FROM users WHERE name='" + user + "'")
+    query = "SELECT * FROM users WHERE name=%s"
+    return db.query(query, (user,))
'''


@pytest.fixture
def sample_analysis() -> dict:
    """A well-formed model answer."""
    return {
        "summary": "Replaces string-built SQL with a parameterized query.",
        "metrics": {"complexity_score": 3, "technical_debt": "Low", "risk_score": 15},
        "issues": [
            {
                "severity": "medium",
                "file": "app/login.py",
                "line": 3,
                "description": "Password is accepted but never checked",
                "suggestion": "Verify the password hash before returning the user",
            }
        ],
        "security_issues": [
            {
                "severity": "HIGH",
                "type": "SQL Injection",
                "file": "app/login.py",
                "line": 2,
                "description": "User input concatenated into SQL",
                "risk": "Attackers can read arbitrary rows",
                "remediation": "Use bound parameters",
            }
        ],
        "performance_issues": [],
        "test_suggestions": [
            {
                "function": "login()",
                "file": "app/login.py",
                "missing_tests": ["unknown user", "quote in user name"],
                "test_skeleton": "def test_login_unknown_user(): ...",
            }
        ],
        "security_concerns": ["Queries were injectable before this change"],
        "performance_tips": [],
        "code_quality": {"score": 78, "improvements": ["Add type hints"]},
        "complexity_analysis": "Small, linear change.",
    }


@pytest.fixture
def fake_github(sample_pr, sample_files, sample_diff) -> FakeGitHub:
    return FakeGitHub(sample_pr, sample_files, sample_diff)


@pytest.fixture
def github_client(settings, fake_github) -> GitHubClient:
    return GitHubClient.from_settings(
        settings, transport=httpx.MockTransport(fake_github.handler)
    )


@pytest.fixture
def openai_client(sample_analysis) -> SimpleNamespace:
    """Stand-in for AsyncOpenAI with a mocked chat.completions.create."""
    create = AsyncMock(return_value=make_completion(json.dumps(sample_analysis)))
    return SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=create)),
        close=AsyncMock(),
    )


@pytest.fixture
def ai_engine(openai_client) -> AIReviewEngine:
    return AIReviewEngine(openai_client, model="gpt-test", max_tokens=8000)


@pytest.fixture
def analyzer(settings, github_client, ai_engine) -> PRAnalyzer:
    return PRAnalyzer(settings, github_client, ai_engine)


@pytest.fixture
def client_for() -> Generator[Callable[[PRAnalyzer], TestClient], None, None]:
    """Build a test client whose analyze endpoint uses the given analyzer."""
    clients: List[TestClient] = []

    def build(analyzer: PRAnalyzer) -> TestClient:
        app.dependency_overrides[get_pr_analyzer] = lambda: analyzer
        test_client = TestClient(app)
        test_client.__enter__()
        clients.append(test_client)
        return test_client

    yield build

    for test_client in clients:
        test_client.__exit__(None, None, None)
    app.dependency_overrides.clear()


@pytest.fixture
def client(client_for, analyzer) -> TestClient:
    """Create a test client wired to the fake GitHub and OpenAI clients."""
    return client_for(analyzer)
