"""
Error Taxonomy

Every failure the analysis pipeline can report derives from AnalysisError.
Each error carries the message shown to the end user and the HTTP status
the API responds with. Stage-specific subclasses live next to the stage
that raises them (GitHub errors in github_client, model errors in
ai_engine and normalizer); the orchestrator only ever catches the base.
"""

from fastapi import status


class AnalysisError(Exception):
    """Base exception for all user-facing analysis failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(AnalysisError):
    """A required credential is missing from the server configuration."""
    pass


class InvalidRequestError(AnalysisError):
    """The client sent a missing or unusable PR URL."""

    status_code = status.HTTP_400_BAD_REQUEST
