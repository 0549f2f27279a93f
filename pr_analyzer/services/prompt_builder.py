"""
Prompt Builder Module

Builds the single user prompt sent to the model for one pull request.

The JSON schema embedded in the prompt is rendered from the enumerations
and ranges in pr_analyzer.models, the same constants the response
normalizer checks against, so the two cannot drift apart.
"""

from enum import Enum
from typing import Tuple, Type

from pr_analyzer.models import (
    CODE_QUALITY_SCORE_RANGE,
    COMPLEXITY_SCORE_RANGE,
    REQUIRED_FIELDS,
    RISK_SCORE_RANGE,
    Impact,
    PRSnapshot,
    SecuritySeverity,
    Severity,
    TechnicalDebt,
)

MAX_DIFF_CHARS = 50_000

TRUNCATION_MARKER = "\n... (diff truncated for length)"


def _choices(enum_cls: Type[Enum]) -> str:
    return " | ".join(f'"{member.value}"' for member in enum_cls)


def _span(bounds: Tuple[int, int]) -> str:
    return f"{bounds[0]}-{bounds[1]}"


def describe_output_schema() -> str:
    """Render the JSON shape the model must answer with."""
    return f"""{{
  "summary": "Concise 2-3 sentence summary of changes and overall assessment",
  "metrics": {{
    "complexity_score": {_span(COMPLEXITY_SCORE_RANGE)},
    "technical_debt": {_choices(TechnicalDebt)},
    "risk_score": {_span(RISK_SCORE_RANGE)}
  }},
  "security_issues": [
    {{
      "severity": {_choices(SecuritySeverity)},
      "type": "SQL Injection" | "XSS" | "Auth Issue" | etc,
      "file": "path/to/file.py",
      "line": 42,
      "description": "What the security issue is",
      "risk": "What could happen if exploited",
      "remediation": "How to fix it",
      "code_snippet": "Problematic code if applicable"
    }}
  ],
  "issues": [
    {{
      "severity": {_choices(Severity)},
      "file": "path/to/file.py",
      "line": 42,
      "description": "What the bug/issue is",
      "suggestion": "How to fix it",
      "original_code": "current problematic code",
      "fixed_code": "corrected code with proper syntax",
      "explanation": "Why this fix works"
    }}
  ],
  "performance_issues": [
    {{
      "severity": {_choices(Severity)},
      "description": "Performance issue description",
      "file": "path/to/file.py",
      "line": 42,
      "impact": {_choices(Impact)},
      "suggestion": "Optimization approach (e.g. 'Use a dict lookup instead of nested loops')"
    }}
  ],
  "test_suggestions": [
    {{
      "function": "function_name()",
      "file": "path/to/file.py",
      "missing_tests": ["edge case 1", "edge case 2"],
      "test_skeleton": "Test code covering the missing cases"
    }}
  ],
  "security_concerns": ["Short security notes, if any"],
  "performance_tips": ["Short performance notes, if any"],
  "code_quality": {{
    "score": {_span(CODE_QUALITY_SCORE_RANGE)},
    "improvements": ["Specific improvement suggestions"]
  }},
  "complexity_analysis": "Analysis of code complexity and maintainability"
}}"""


REVIEW_PRIORITIES = """CRITICAL ANALYSIS AREAS:
1. **Security** (highest priority):
   - SQL injection, XSS, CSRF vulnerabilities
   - Hardcoded secrets/API keys
   - Authentication/authorization flaws
   - Insecure dependencies
   - Data exposure risks

2. **Bugs & Logic Errors**:
   - Null/undefined handling
   - Off-by-one errors
   - Race conditions
   - Unhandled errors and rejected promises
   - Type mismatches

3. **Performance**:
   - O(n^2) or worse algorithms
   - Unnecessary work in hot paths or re-renders
   - Large imports
   - Missing database indexes
   - Blocking operations

4. **Test Coverage**:
   - New functions without tests
   - Missing edge cases
   - Error path coverage

5. **Code Quality**:
   - Best practices
   - Maintainability
   - Documentation"""


def truncate_diff(diff_text: str, max_chars: int = MAX_DIFF_CHARS) -> str:
    """
    Bound the diff to max_chars characters.

    Returns:
        The diff unchanged, or its first max_chars characters followed by
        the truncation marker
    """
    if len(diff_text) <= max_chars:
        return diff_text
    return diff_text[:max_chars] + TRUNCATION_MARKER


def build_analysis_prompt(snapshot: PRSnapshot, max_diff_chars: int = MAX_DIFF_CHARS) -> str:
    """
    Build the review prompt for a pull request.

    Args:
        snapshot: PR metadata and raw diff
        max_diff_chars: Character budget for the diff

    Returns:
        Prompt text
    """
    required = ", ".join(f'"{name}"' for name in REQUIRED_FIELDS)

    return f"""You are an expert code reviewer specializing in security, performance, and code quality analysis.

Analyze this pull request and provide a comprehensive, actionable code review with specific fixes.

Pull Request Information:
- Title: {snapshot.title}
- Changed Files: {snapshot.changed_files}
- Additions: {snapshot.additions}
- Deletions: {snapshot.deletions}

Code Diff:
```diff
{truncate_diff(snapshot.diff_text, max_diff_chars)}
```

Provide your analysis in the following JSON format:

{describe_output_schema()}

The fields {required} are mandatory; use an empty list when there are no issues.

{REVIEW_PRIORITIES}

For code snippets, keep original_code and fixed_code concise but complete.

Return ONLY valid JSON, no markdown code blocks or additional text."""
