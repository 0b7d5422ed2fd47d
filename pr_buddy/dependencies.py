# pr_buddy/dependencies.py

"""FastAPI dependency providers for the services built at startup."""

from fastapi import Request

from pr_buddy.core.config import Settings, settings
from pr_buddy.services.pr_processor import PRProcessingService


def get_settings() -> Settings:
    return settings


def get_pr_processor(request: Request) -> PRProcessingService:
    """Return the PRProcessingService created in the application lifespan."""
    return request.app.state.pr_processor
