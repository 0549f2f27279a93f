"""
Tests for Data Models

Tests for the Pydantic models and settings used in the application.
"""

import pytest
from pydantic import ValidationError

from pr_analyzer.models import (
    AnalysisResult,
    AnalyzeResponse,
    CodeIssue,
    CodeMetrics,
    CodeQuality,
    PRInfo,
    PRReference,
    PRSnapshot,
    SecuritySeverity,
    Severity,
    TechnicalDebt,
)

from tests.conftest import make_settings


class TestGitHubModels:
    """Tests for GitHub-related models."""

    def test_pr_reference_requires_positive_number(self):
        with pytest.raises(ValidationError):
            PRReference(owner="o", repo="r", pull_number=0)

    def test_snapshot_defaults(self):
        snapshot = PRSnapshot(title="Fix typo")

        assert snapshot.author == "Unknown"
        assert snapshot.additions == 0
        assert snapshot.diff_text == ""
        assert snapshot.files == []

    def test_snapshot_rejects_negative_counts(self):
        with pytest.raises(ValidationError):
            PRSnapshot(title="t", additions=-1)


class TestAnalysisModels:
    """Tests for analysis result models."""

    def test_result_defaults(self):
        result = AnalysisResult(summary="Looks good", issues=[])

        assert result.security_concerns == []
        assert result.code_quality == CodeQuality(score=0, improvements=[])
        assert result.metrics is None
        assert result.complexity_analysis is None

    def test_result_requires_summary(self):
        with pytest.raises(ValidationError):
            AnalysisResult(summary="", issues=[])

    def test_code_issue_severity(self):
        issue = CodeIssue(severity="high", description="d", suggestion="s")

        assert issue.severity == Severity.HIGH
        with pytest.raises(ValidationError):
            CodeIssue(severity="HIGH", description="d", suggestion="s")

    def test_code_quality_range(self):
        with pytest.raises(ValidationError):
            CodeQuality(score=101)

    def test_metrics_ranges(self):
        with pytest.raises(ValidationError):
            CodeMetrics(complexity_score=0)
        with pytest.raises(ValidationError):
            CodeMetrics(risk_score=101)


class TestResponseModels:
    """Tests for the API envelope."""

    def test_failure_payload(self):
        assert AnalyzeResponse.failure("nope").to_payload() == {
            "success": False,
            "error": "nope",
        }

    def test_pr_info_alias(self):
        info = PRInfo(title="t", author="a", additions=1, deletions=2, changed_files=3)

        assert info.model_dump(by_alias=True)["changedFiles"] == 3

    def test_pr_info_from_snapshot(self):
        snapshot = PRSnapshot(title="t", author="a", additions=4, deletions=5, changed_files=6)

        info = PRInfo.from_snapshot(snapshot)

        assert (info.additions, info.deletions, info.changed_files) == (4, 5, 6)


class TestEnums:
    """Tests for enum values."""

    def test_severity_values(self):
        assert [s.value for s in Severity] == ["high", "medium", "low"]

    def test_security_severity_values(self):
        assert [s.value for s in SecuritySeverity] == ["CRITICAL", "HIGH", "MEDIUM", "LOW"]

    def test_technical_debt_values(self):
        assert [t.value for t in TechnicalDebt] == ["Low", "Medium", "High"]


class TestSettings:
    """Tests for configuration."""

    def test_missing_credentials(self):
        settings = make_settings(openai_api_key=None, github_token="   ")

        assert settings.missing_credentials() == ["OPENAI_API_KEY", "GITHUB_TOKEN"]

    def test_credentials_present(self):
        assert make_settings().missing_credentials() == []

    def test_log_level_normalized(self):
        assert make_settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            make_settings(log_level="loud")
