"""
Application Runner

This script is the entry point for running the application.
Use: python run.py
"""

import uvicorn

from pr_analyzer.config import get_settings


def main():
    """Run the application with uvicorn."""
    settings = get_settings()

    uvicorn.run(
        "pr_analyzer.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,  # Disable for production
        log_level=settings.log_level.lower(),
        access_log=settings.log_requests
    )


if __name__ == "__main__":
    main()
