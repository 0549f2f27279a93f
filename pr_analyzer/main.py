"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.
It sets up all routes, middleware, and exception handlers.

Design Decisions:
- Use lifespan events to build the shared GitHub and OpenAI clients once
  per process and close them on shutdown
- Start even when credentials are missing; the analyze endpoint reports
  the configuration error and /ready returns 503
- Add CORS middleware so a browser front end can call the API
- Every application error response, /ready included, uses the
  {"success": false, "error": ...} envelope
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pr_analyzer import __version__
from pr_analyzer.analysis import router as analysis_router
from pr_analyzer.analysis.processor import UNEXPECTED_ERROR_MESSAGE, PRAnalyzer
from pr_analyzer.config import get_settings
from pr_analyzer.logging_config import get_logger, setup_logging
from pr_analyzer.models import AnalyzeResponse
from pr_analyzer.services.ai_engine import AIReviewEngine
from pr_analyzer.services.github_client import GitHubClient

# Initialize logging first
setup_logging()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Builds the process-wide clients on startup and closes them on shutdown.
    """
    settings = get_settings()

    logger.info(
        "Starting AI PR Analyzer",
        host=settings.host,
        port=settings.port
    )

    missing = settings.missing_credentials()
    github_client = GitHubClient.from_settings(settings) if settings.github_token else None
    ai_engine = AIReviewEngine.from_settings(settings) if settings.openai_api_key else None

    if missing:
        logger.warning("Credentials missing, analysis requests will fail", missing=missing)
    else:
        logger.info("Configuration validated successfully", model=settings.openai_model)

    app.state.analyzer = PRAnalyzer(settings, github_client, ai_engine)

    yield

    # Shutdown
    logger.info("Shutting down AI PR Analyzer")
    if github_client is not None:
        await github_client.aclose()
    if ai_engine is not None:
        await ai_engine.aclose()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="AI PR Analyzer",
        description="AI-generated code review for GitHub pull requests",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    app.include_router(analysis_router)

    # Add global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            error_type=type(exc).__name__
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=AnalyzeResponse.failure(UNEXPECTED_ERROR_MESSAGE).to_payload()
        )

    # Add root endpoint
    @app.get("/")
    async def root():
        """Root endpoint with basic info."""
        return {
            "name": "AI PR Analyzer",
            "version": __version__,
            "status": "running",
            "docs": "/docs"
        }

    # Add health check endpoint
    @app.get("/health")
    async def health_check():
        """
        Health check endpoint.

        Returns basic health status for load balancers and monitors.
        """
        return {
            "status": "healthy",
            "service": "ai-pr-analyzer",
            "version": __version__
        }

    # Add readiness check endpoint
    @app.get("/ready")
    async def readiness_check():
        """
        Readiness check endpoint.

        Ready only when both credentials are configured.
        """
        missing = get_settings().missing_credentials()
        if missing:
            logger.error("Readiness check failed", missing=missing)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content=AnalyzeResponse.failure(
                    f"Not ready: missing {', '.join(missing)}"
                ).to_payload()
            )

        return {
            "status": "ready",
            "service": "ai-pr-analyzer"
        }

    return app


# Create the application instance
app = create_app()
