# pr_buddy/core/config.py

import logging
from typing import List

from pydantic_settings import BaseSettings

from pr_buddy.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_SUPPORTED_EXTENSIONS = [
    ".js", ".jsx", ".ts", ".tsx", ".mjs",
    ".py", ".java", ".kt", ".go", ".rb",
    ".php", ".c", ".h", ".cpp", ".hpp",
    ".cs", ".rs", ".swift", ".scala", ".sh",
    ".sql", ".vue", ".html", ".css", ".scss",
]


class Settings(BaseSettings):
    """Application Settings"""

    # Application
    APP_NAME: str = "PR Buddy"
    ENVIRONMENT: str = "development"  # development, staging, production
    DEBUG: bool = False
    VERSION: str = "1.0.0"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # GitHub
    GITHUB_TOKEN: str
    GITHUB_WEBHOOK_SECRET: str
    GITHUB_TIMEOUT_SECONDS: int = 10

    # LLM Configuration
    LLM_PROVIDER: str = "groq"  # groq, openai, anthropic, or google (gemini)
    GROQ_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    ANTHROPIC_API_KEY: str = ""
    GOOGLE_API_KEY: str = ""
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"

    # LLM Model Settings
    # Default models per provider:
    # - groq: llama3-8b-8192, llama-3.1-8b-instant
    # - openai: gpt-4o-mini, gpt-4o
    # - anthropic: claude-3-5-haiku-20241022
    # - google: gemini-1.5-flash
    LLM_MODEL: str = "llama3-8b-8192"
    LLM_TEMPERATURE: float = 0.1
    LLM_MAX_TOKENS: int = 800
    LLM_TIMEOUT_SECONDS: int = 30
    LLM_MAX_CONTENT_CHARS: int = 8000

    # Review policy
    TRIGGER_ACTIONS: List[str] = ["opened"]
    SUPPORTED_EXTENSIONS: List[str] = DEFAULT_SUPPORTED_EXTENSIONS
    MAX_FILE_CHANGES: int = 500
    MAX_FILES_PER_PR: int = 50
    MAX_FILE_SIZE_BYTES: int = 100_000
    MAX_CONCURRENT_REVIEWS: int = 1

    # Labels
    MANUAL_REVIEW_LABEL: str = "needs-manual-review"
    REVIEWED_LABEL: str = ""  # empty disables labelling reviewed PRs

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "allow"
    }

    def llm_api_key(self) -> str:
        """API key for the configured LLM provider ("" when unset)"""
        keys = {
            "groq": self.GROQ_API_KEY,
            "openai": self.OPENAI_API_KEY,
            "anthropic": self.ANTHROPIC_API_KEY,
            "google": self.GOOGLE_API_KEY,
        }
        return keys.get(self.LLM_PROVIDER.lower(), "")


def validate_settings(config: Settings) -> None:
    """
    Validate settings at startup

    Missing GitHub credentials abort startup. A missing webhook secret or
    AI key only degrades the service, so those are logged as warnings.

    Args:
        config: Settings instance to validate

    Raises:
        ConfigurationError: If a required value is missing or a limit is invalid
    """
    if not config.GITHUB_TOKEN.strip():
        raise ConfigurationError("Missing required environment variable: GITHUB_TOKEN")

    if not config.GITHUB_WEBHOOK_SECRET:
        logger.warning("GITHUB_WEBHOOK_SECRET is empty - webhook signatures will NOT be verified")

    if not config.llm_api_key():
        logger.warning(
            f"No API key configured for LLM provider '{config.LLM_PROVIDER}' - AI reviews will be placeholders"
        )

    limits = {
        "GITHUB_TIMEOUT_SECONDS": config.GITHUB_TIMEOUT_SECONDS,
        "LLM_TIMEOUT_SECONDS": config.LLM_TIMEOUT_SECONDS,
        "LLM_MAX_TOKENS": config.LLM_MAX_TOKENS,
        "LLM_MAX_CONTENT_CHARS": config.LLM_MAX_CONTENT_CHARS,
        "MAX_FILE_CHANGES": config.MAX_FILE_CHANGES,
        "MAX_FILES_PER_PR": config.MAX_FILES_PER_PR,
        "MAX_FILE_SIZE_BYTES": config.MAX_FILE_SIZE_BYTES,
        "MAX_CONCURRENT_REVIEWS": config.MAX_CONCURRENT_REVIEWS,
    }
    invalid = [name for name, value in limits.items() if value <= 0]
    if invalid:
        raise ConfigurationError(
            f"Configuration values must be positive: {', '.join(invalid)}",
            details={name: limits[name] for name in invalid}
        )


settings = Settings()
