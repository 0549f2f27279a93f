"""
AI Review Engine Module

This module sends the review prompt to OpenAI's chat completion API
and returns the raw text the model produced.

Design Decisions:
- Deterministic sampling (temperature 0) for a reproducible JSON structure
- JSON response format so the model answers with a bare object
- Bounded output tokens and request timeout from settings
- No retries: the SDK's built-in retries are disabled and one failed call
  fails the analysis
- Parsing and validation of the text live in the normalizer, not here
"""

from typing import Optional

import openai
from openai import AsyncOpenAI

from pr_analyzer.config import Settings
from pr_analyzer.exceptions import AnalysisError
from pr_analyzer.logging_config import get_logger

logger = get_logger(__name__)

INVOCATION_FAILED_MESSAGE = "Failed to analyze code with the AI model. Please try again."
NON_TEXT_MESSAGE = "Unexpected response type from the AI model. Please try again."


class ModelInvocationError(AnalysisError):
    """The completion call failed or did not return text."""
    def __init__(self, message: str = INVOCATION_FAILED_MESSAGE):
        super().__init__(message)


class AIReviewEngine:
    """
    Completion client for code review prompts.

    Wraps a single AsyncOpenAI client that is shared read-only across
    requests.

    Usage:
        engine = AIReviewEngine.from_settings(settings)
        text = await engine.complete(prompt)
    """

    TEMPERATURE = 0.0

    def __init__(self, client: AsyncOpenAI, model: str, max_tokens: int = 8000):
        """
        Initialize the AI review engine.

        Args:
            client: Configured OpenAI client
            model: Model identifier
            max_tokens: Ceiling on generated tokens
        """
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "AIReviewEngine":
        client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.openai_timeout,
            max_retries=0,
        )
        return cls(client, model=settings.openai_model, max_tokens=settings.openai_max_tokens)

    async def aclose(self) -> None:
        await self.client.close()

    async def complete(self, prompt: str) -> str:
        """
        Run one completion for the prompt.

        Args:
            prompt: Full review prompt

        Returns:
            Raw text generated by the model

        Raises:
            ModelInvocationError: If the call fails or the reply is not text
        """
        logger.info(
            "Sending code review request to AI",
            model=self.model,
            prompt_length=len(prompt)
        )

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.TEMPERATURE,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"}
            )
        except openai.OpenAIError as e:
            logger.error(
                "AI completion call failed",
                error=str(e),
                error_type=type(e).__name__
            )
            raise ModelInvocationError() from e

        content = self._extract_text(response)

        logger.debug(
            "Received AI response",
            response_length=len(content),
            finish_reason=response.choices[0].finish_reason,
            usage=response.usage.model_dump() if response.usage else None
        )

        return content

    def _extract_text(self, response) -> str:
        """Return the text of the first choice, or fail if there is none."""
        if not response.choices:
            logger.error("AI response has no choices")
            raise ModelInvocationError(NON_TEXT_MESSAGE)

        message = response.choices[0].message
        content: Optional[str] = message.content
        if not isinstance(content, str) or not content.strip():
            logger.error(
                "AI response is not text",
                refusal=getattr(message, "refusal", None),
                has_tool_calls=bool(getattr(message, "tool_calls", None))
            )
            raise ModelInvocationError(NON_TEXT_MESSAGE)

        return content
