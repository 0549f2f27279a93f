"""
Data Models Module

This module defines all Pydantic models used throughout the application.
Strong typing ensures data integrity and provides clear contracts between components.

Design Decisions:
- Use Pydantic models for all data transfer objects
- Inputs from GitHub and from the model are coerced before they reach these
  models; the models themselves enforce the final ranges and value sets
- Enumerations and required-field names defined here are the single source
  of truth for both the prompt schema text and the response normalizer
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class Severity(str, Enum):
    """Severity levels for code and performance issues."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SecuritySeverity(str, Enum):
    """Severity levels for security issues."""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Impact(str, Enum):
    """Expected impact of fixing a performance issue."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TechnicalDebt(str, Enum):
    """Technical debt level reported in the metrics block."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# Fields the model output must contain to be usable at all
REQUIRED_FIELDS = ("summary", "issues")

CODE_QUALITY_SCORE_RANGE = (0, 100)
COMPLEXITY_SCORE_RANGE = (1, 10)
RISK_SCORE_RANGE = (0, 100)


# =============================================================================
# GitHub Models
# =============================================================================

class PRReference(BaseModel):
    """Coordinates of a pull request parsed from a URL."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    pull_number: int = Field(gt=0)

    @property
    def full_name(self) -> str:
        """Get the full repository name (owner/repo)."""
        return f"{self.owner}/{self.repo}"


class PRFile(BaseModel):
    """
    Information about a file in a pull request.

    Attributes:
        filename: Path to the file in the repository
        status: Change status (added, removed, modified, renamed, copied)
        additions: Number of added lines
        deletions: Number of deleted lines
        changes: Total number of changes
        patch: Unified diff patch (None for binary or very large files)
        sha: Blob SHA of the file
    """
    filename: str
    status: str
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    changes: int = Field(default=0, ge=0)
    patch: Optional[str] = None
    sha: str = ""


class PRSnapshot(BaseModel):
    """
    Everything fetched from GitHub for one pull request.

    Read-only once built; the prompt builder and the response envelope
    both read from it.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    author: str = "Unknown"
    additions: int = Field(default=0, ge=0)
    deletions: int = Field(default=0, ge=0)
    changed_files: int = Field(default=0, ge=0)
    diff_text: str = ""
    files: List[PRFile] = Field(default_factory=list)


# =============================================================================
# Analysis Models
# =============================================================================

class CodeIssue(BaseModel):
    """A bug or correctness issue with a proposed fix."""
    severity: Severity
    file: Optional[str] = None
    line: Optional[int] = None
    description: str
    suggestion: str
    original_code: Optional[str] = None
    fixed_code: Optional[str] = None
    explanation: Optional[str] = None


class SecurityIssue(BaseModel):
    """A security vulnerability with risk and remediation."""
    severity: SecuritySeverity
    type: str
    file: Optional[str] = None
    line: Optional[int] = None
    description: str
    risk: str
    remediation: str
    code_snippet: Optional[str] = None


class PerformanceIssue(BaseModel):
    """A performance problem and how to address it."""
    severity: Severity
    description: str
    file: Optional[str] = None
    line: Optional[int] = None
    impact: Impact
    suggestion: str


class TestSuggestion(BaseModel):
    """Missing tests for a function, with a skeleton to start from."""

    # Keep pytest from collecting this model as a test class
    __test__ = False

    function: str
    file: str
    missing_tests: List[str] = Field(default_factory=list)
    test_skeleton: str = ""


class CodeQuality(BaseModel):
    """Overall quality score with improvement suggestions."""
    score: int = Field(default=0, ge=0, le=100)
    improvements: List[str] = Field(default_factory=list)


class CodeMetrics(BaseModel):
    """Headline metrics reported by the model. Every field is optional."""
    complexity_score: Optional[int] = Field(default=None, ge=1, le=10)
    technical_debt: Optional[TechnicalDebt] = None
    risk_score: Optional[int] = Field(default=None, ge=0, le=100)
    lines_added: Optional[int] = Field(default=None, ge=0)
    lines_removed: Optional[int] = Field(default=None, ge=0)
    files_changed: Optional[int] = Field(default=None, ge=0)


class AnalysisResult(BaseModel):
    """
    Canonical review result delivered to clients.

    Only the normalizer builds instances from model output; it guarantees
    every list field is a list and every required field is present.
    """
    summary: str = Field(min_length=1)
    issues: List[CodeIssue]
    security_concerns: List[str] = Field(default_factory=list)
    performance_tips: List[str] = Field(default_factory=list)
    code_quality: CodeQuality = Field(default_factory=CodeQuality)
    complexity_analysis: Optional[str] = None
    security_issues: List[SecurityIssue] = Field(default_factory=list)
    performance_issues: List[PerformanceIssue] = Field(default_factory=list)
    test_suggestions: List[TestSuggestion] = Field(default_factory=list)
    metrics: Optional[CodeMetrics] = None


# =============================================================================
# API Models
# =============================================================================

class PRInfo(BaseModel):
    """Short PR summary shown next to the review."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    author: str
    additions: int
    deletions: int
    changed_files: int = Field(alias="changedFiles")

    @classmethod
    def from_snapshot(cls, snapshot: PRSnapshot) -> "PRInfo":
        return cls(
            title=snapshot.title,
            author=snapshot.author,
            additions=snapshot.additions,
            deletions=snapshot.deletions,
            changed_files=snapshot.changed_files,
        )


class AnalyzeResponse(BaseModel):
    """Uniform success/failure envelope for the analyze endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    data: Optional[AnalysisResult] = None
    error: Optional[str] = None
    pr_info: Optional[PRInfo] = Field(default=None, alias="prInfo")

    @classmethod
    def failure(cls, message: str) -> "AnalyzeResponse":
        return cls(success=False, error=message)

    def to_payload(self) -> dict:
        """Serialize by alias, leaving out fields that are not set."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
