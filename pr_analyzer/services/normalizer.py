"""
Response Normalizer Module

Turns the model's raw text into a validated AnalysisResult.

The model is an untrusted text generator: its JSON is never cast straight
into the result type. Each field is rebuilt on its own, optional fields get
safe defaults, and list items that cannot be repaired are dropped.

Design Decisions:
- Tolerate a markdown code fence around the JSON even though the prompt
  forbids it
- Fail the request only when JSON parsing fails or a required field is
  missing; everything else degrades to defaults
- Unknown severities fall back to the lowest level of their set
- Log every dropped item so prompt regressions are visible
"""

import json
import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from pr_analyzer.exceptions import AnalysisError
from pr_analyzer.logging_config import get_logger
from pr_analyzer.models import (
    CODE_QUALITY_SCORE_RANGE,
    COMPLEXITY_SCORE_RANGE,
    REQUIRED_FIELDS,
    RISK_SCORE_RANGE,
    AnalysisResult,
    CodeIssue,
    CodeMetrics,
    CodeQuality,
    Impact,
    PerformanceIssue,
    SecurityIssue,
    SecuritySeverity,
    Severity,
    TechnicalDebt,
    TestSuggestion,
)

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

MALFORMED_OUTPUT_MESSAGE = "The AI model returned a malformed review. Please try again."

LEADING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\n?")
TRAILING_FENCE = re.compile(r"\n?```\s*$")


class ModelOutputError(AnalysisError):
    """The model text is not JSON or lacks the required fields."""
    def __init__(self, message: str = MALFORMED_OUTPUT_MESSAGE, reason: str = ""):
        super().__init__(message)
        self.reason = reason


# =============================================================================
# Text handling
# =============================================================================

def strip_code_fence(text: str) -> str:
    """
    Remove a markdown code fence wrapped around the text.

    Handles an optional language tag (```json). Text without a leading
    fence is returned trimmed but otherwise untouched.
    """
    text = text.strip()
    if not text.startswith("```"):
        return text
    text = LEADING_FENCE.sub("", text, count=1)
    text = TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Parse model text into a JSON object.

    Raises:
        ModelOutputError: If the text is not JSON or not an object
    """
    cleaned = strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except (ValueError, RecursionError) as e:
        logger.error(
            "Failed to parse AI response as JSON",
            error=str(e),
            response_length=len(cleaned)
        )
        raise ModelOutputError(reason=f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        logger.error("AI response is not a JSON object", json_type=type(data).__name__)
        raise ModelOutputError(reason="top-level JSON value is not an object")

    return data


# =============================================================================
# Scalar coercion
# =============================================================================

def _text(value: Any) -> Optional[str]:
    """Non-empty string, or None."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def _integer(value: Any) -> Optional[int]:
    """Whole number from an int, float or numeric string, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _line_number(value: Any) -> Optional[int]:
    line = _integer(value)
    if line is None or line < 1:
        return None
    return line


def _clamp(value: Any, bounds: Tuple[int, int]) -> Optional[int]:
    number = _integer(value)
    if number is None:
        return None
    low, high = bounds
    return max(low, min(high, number))


def _choice(value: Any, enum_cls: Type[Enum], default: Optional[Enum]) -> Optional[Enum]:
    """Match value against an enum case-insensitively."""
    if isinstance(value, str):
        wanted = value.strip().lower()
        for member in enum_cls:
            if member.value.lower() == wanted:
                return member
    return default


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item.strip()]


# =============================================================================
# Item coercion
# =============================================================================

def _coerce_code_issue(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "severity": _choice(data.get("severity"), Severity, Severity.LOW),
        "file": _text(data.get("file")),
        "line": _line_number(data.get("line")),
        "description": _text(data.get("description")),
        "suggestion": _text(data.get("suggestion")),
        "original_code": _text(data.get("original_code")),
        "fixed_code": _text(data.get("fixed_code")),
        "explanation": _text(data.get("explanation")),
    }


def _coerce_security_issue(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "severity": _choice(data.get("severity"), SecuritySeverity, SecuritySeverity.LOW),
        "type": _text(data.get("type")) or "Security Issue",
        "file": _text(data.get("file")),
        "line": _line_number(data.get("line")),
        "description": _text(data.get("description")),
        "risk": _text(data.get("risk")) or "",
        "remediation": _text(data.get("remediation")) or "",
        "code_snippet": _text(data.get("code_snippet")),
    }


def _coerce_performance_issue(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "severity": _choice(data.get("severity"), Severity, Severity.LOW),
        "description": _text(data.get("description")),
        "file": _text(data.get("file")),
        "line": _line_number(data.get("line")),
        "impact": _choice(data.get("impact"), Impact, Impact.LOW),
        "suggestion": _text(data.get("suggestion")),
    }


def _coerce_test_suggestion(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "function": _text(data.get("function")),
        "file": _text(data.get("file")) or "",
        "missing_tests": _string_list(data.get("missing_tests")),
        "test_skeleton": _text(data.get("test_skeleton")) or "",
    }


def _build_items(
    field: str,
    value: Any,
    model: Type[ModelT],
    coerce: Callable[[Dict[str, Any]], Dict[str, Any]],
) -> List[ModelT]:
    """
    Rebuild a list of objects, dropping items that cannot be repaired.

    Args:
        field: Field name, for logging
        value: Raw value from the model output
        model: Target model for each item
        coerce: Maps a raw item to model keyword arguments

    Returns:
        Validated items in their original order
    """
    if not isinstance(value, list):
        if value is not None:
            logger.warning("Expected a list, using empty default", field=field,
                           json_type=type(value).__name__)
        return []

    items: List[ModelT] = []
    for index, raw in enumerate(value):
        if not isinstance(raw, dict):
            logger.warning("Skipping non-object item", field=field, index=index)
            continue
        try:
            items.append(model(**coerce(raw)))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid item",
                field=field,
                index=index,
                error_count=e.error_count()
            )
    return items


def _build_code_quality(value: Any) -> CodeQuality:
    if not isinstance(value, dict):
        return CodeQuality()
    return CodeQuality(
        score=_clamp(value.get("score"), CODE_QUALITY_SCORE_RANGE) or 0,
        improvements=_string_list(value.get("improvements")),
    )


def _build_metrics(value: Any) -> Optional[CodeMetrics]:
    if not isinstance(value, dict):
        return None

    def count(key: str) -> Optional[int]:
        number = _integer(value.get(key))
        return number if number is not None and number >= 0 else None

    metrics = CodeMetrics(
        complexity_score=_clamp(value.get("complexity_score"), COMPLEXITY_SCORE_RANGE),
        technical_debt=_choice(value.get("technical_debt"), TechnicalDebt, None),
        risk_score=_clamp(value.get("risk_score"), RISK_SCORE_RANGE),
        lines_added=count("lines_added"),
        lines_removed=count("lines_removed"),
        files_changed=count("files_changed"),
    )
    if not metrics.model_dump(exclude_none=True):
        return None
    return metrics


# =============================================================================
# Entry point
# =============================================================================

def validate_required_fields(data: Dict[str, Any]) -> None:
    """
    Check the minimum shape needed for a usable review.

    Raises:
        ModelOutputError: If summary is missing/empty or issues is not a list
    """
    summary_field, issues_field = REQUIRED_FIELDS
    problems = []
    if _text(data.get(summary_field)) is None:
        problems.append(f"missing {summary_field}")
    if not isinstance(data.get(issues_field), list):
        problems.append(f"{issues_field} is not a list")

    if problems:
        logger.error(
            "Invalid response structure from AI",
            problems=problems,
            keys=sorted(data.keys())
        )
        raise ModelOutputError(reason="; ".join(problems))


def normalize_analysis(text: str) -> AnalysisResult:
    """
    Parse, validate and default the model's answer.

    Args:
        text: Raw text returned by the completion client

    Returns:
        AnalysisResult with every list field populated

    Raises:
        ModelOutputError: On JSON errors or missing required fields
    """
    data = parse_json_object(text)
    validate_required_fields(data)

    result = AnalysisResult(
        summary=data["summary"].strip(),
        issues=_build_items("issues", data["issues"], CodeIssue, _coerce_code_issue),
        security_concerns=_string_list(data.get("security_concerns")),
        performance_tips=_string_list(data.get("performance_tips")),
        code_quality=_build_code_quality(data.get("code_quality")),
        complexity_analysis=_text(data.get("complexity_analysis")),
        security_issues=_build_items(
            "security_issues", data.get("security_issues"),
            SecurityIssue, _coerce_security_issue
        ),
        performance_issues=_build_items(
            "performance_issues", data.get("performance_issues"),
            PerformanceIssue, _coerce_performance_issue
        ),
        test_suggestions=_build_items(
            "test_suggestions", data.get("test_suggestions"),
            TestSuggestion, _coerce_test_suggestion
        ),
        metrics=_build_metrics(data.get("metrics")),
    )

    logger.info(
        "AI review normalized",
        num_issues=len(result.issues),
        high_severity=sum(1 for i in result.issues if i.severity == Severity.HIGH),
        security_issues=len(result.security_issues),
        performance_issues=len(result.performance_issues),
        test_suggestions=len(result.test_suggestions),
        quality_score=result.code_quality.score
    )

    return result
