# pr_buddy/main.py

"""FastAPI Application Entry Point

Main FastAPI application with:
- Service construction at startup
- Router registration
- Root metadata endpoint
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pr_buddy.core.config import settings, validate_settings
from pr_buddy.core.logging import setup_logging
from pr_buddy.routes import health, webhooks
from pr_buddy.services.github_service import GitHubService
from pr_buddy.services.llm_service import LLMService
from pr_buddy.services.pr_processor import PRProcessingService

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager

    Validates configuration and builds the services shared by all requests.
    Invalid configuration aborts startup.
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.VERSION} ({settings.ENVIRONMENT})")
    validate_settings(settings)

    github_service = GitHubService(settings.GITHUB_TOKEN, timeout=settings.GITHUB_TIMEOUT_SECONDS)
    llm_service = LLMService(settings)
    app.state.pr_processor = PRProcessingService(github_service, llm_service, settings)

    logger.info(
        f"Reviewing PR actions [{', '.join(settings.TRIGGER_ACTIONS)}] with "
        f"{settings.LLM_PROVIDER}/{settings.LLM_MODEL}, up to {settings.MAX_FILES_PER_PR} files per PR, "
        f"{settings.MAX_CONCURRENT_REVIEWS} at a time"
    )
    logger.info("Listening for GitHub webhooks on /webhooks/github")

    yield

    # Shutdown
    github_service.close()
    await llm_service.close()
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=settings.APP_NAME,
    description="AI-powered pull request reviewer using GitHub webhooks",
    version=settings.VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None
)


@app.get("/")
async def root():
    """
    Root endpoint with basic info

    Returns:
        API information
    """
    return {
        "name": "PR Buddy - AI Code Reviewer",
        "version": settings.VERSION,
        "description": "AI-powered pull request reviewer using GitHub webhooks",
        "endpoints": {
            "webhooks": "/webhooks/github",
            "health": "/webhooks/health"
        }
    }


app.include_router(health.router)
app.include_router(webhooks.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pr_buddy.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower()
    )
