"""
Configuration Management Module

This module handles all application configuration using Pydantic Settings.
Configuration is loaded from environment variables with strong typing and validation.

Design Decisions:
- Use Pydantic Settings for automatic environment variable loading
- Provide sensible defaults for optional settings
- Credentials are optional at load time so the service can start and
  report a configuration error per request instead of crashing
- Bounded timeouts for every outbound call
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All sensitive values are loaded from environment variables only,
    never hardcoded or logged.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # =========================================================================
    # GitHub Configuration
    # =========================================================================
    github_token: Optional[str] = Field(
        default=None,
        description="GitHub access token used to read pull requests"
    )

    github_api_base_url: str = Field(
        default="https://api.github.com",
        description="Base URL of the GitHub REST API"
    )

    github_api_version: str = Field(
        default="2022-11-28",
        description="Value of the X-GitHub-Api-Version header"
    )

    github_timeout: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Timeout in seconds for each GitHub API call"
    )

    max_pr_files: int = Field(
        default=300,
        ge=1,
        le=3000,
        description="Maximum number of changed files to list per PR"
    )

    # =========================================================================
    # OpenAI Configuration
    # =========================================================================
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key"
    )

    openai_model: str = Field(
        default="gpt-4o",
        description="OpenAI model to use for code review"
    )

    openai_max_tokens: int = Field(
        default=8000,
        ge=100,
        le=128000,
        description="Maximum tokens for AI response"
    )

    openai_timeout: float = Field(
        default=120.0,
        gt=0,
        le=600,
        description="Timeout in seconds for the completion call"
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port to bind the server"
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    log_json_format: bool = Field(
        default=True,
        description="Enable JSON logging format"
    )

    log_requests: bool = Field(
        default=False,
        description="Enable request/response logging"
    )

    # =========================================================================
    # Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("github_token", "openai_api_key")
    @classmethod
    def blank_credential_is_missing(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty or whitespace-only credentials as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    # =========================================================================
    # Computed Properties
    # =========================================================================
    def missing_credentials(self) -> List[str]:
        """
        List the environment variables for credentials that are not set.

        Returns:
            Names of the missing variables, LLM key first
        """
        missing = []
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if not self.github_token:
            missing.append("GITHUB_TOKEN")
        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once,
    which is important for performance and consistency.

    Returns:
        Settings instance
    """
    return Settings()
