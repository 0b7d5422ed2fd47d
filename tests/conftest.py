# tests/conftest.py

"""Shared fixtures

Environment is seeded before any pr_buddy module is imported, since the
settings object is created at import time.
"""

import os

os.environ["GITHUB_TOKEN"] = "test-token"
os.environ["GITHUB_WEBHOOK_SECRET"] = "test-secret"
os.environ["LOG_FORMAT"] = "text"
os.environ["LLM_PROVIDER"] = "groq"
for _key in ("GROQ_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GOOGLE_API_KEY", "REVIEWED_LABEL"):
    os.environ[_key] = ""

import pytest
from unittest.mock import AsyncMock, MagicMock

from pr_buddy.models.github import PRInfo
from pr_buddy.models.review import AIReviewResult, Issue, Severity
from pr_buddy.services.github_service import GitHubService
from pr_buddy.services.llm_service import LLMService

from tests.factories import make_file, make_settings


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def pr_info():
    """A public PR that was just opened"""
    return PRInfo(
        owner="test-user",
        repo="test-repo",
        pull_number=123,
        action="opened",
        title="Add greeting helper",
        author="octocat",
        head_sha="abc123",
        base_sha="def456",
        html_url="https://github.com/test-user/test-repo/pull/123",
        is_public=True,
    )


@pytest.fixture
def review_result():
    return AIReviewResult(
        rating=4,
        issues=[Issue(type="style", description="Missing semicolon", severity=Severity.LOW)],
        suggestions=["Use template literals"],
        summary="Small, readable helper",
    )


@pytest.fixture
def github_service():
    """GitHubService double with one reviewable file"""
    service = MagicMock(spec=GitHubService)
    service.is_configured = True
    service.list_changed_files = AsyncMock(return_value=[make_file()])
    service.get_file_content = AsyncMock(return_value="function greet(name) {\n  return 'Hello ' + name\n}\n")
    service.post_review = AsyncMock(return_value=101)
    service.post_comment = AsyncMock(return_value=202)
    service.add_label = AsyncMock(return_value=True)
    return service


@pytest.fixture
def llm_service(review_result):
    """LLMService double returning a fixed review"""
    service = MagicMock(spec=LLMService)
    service.analyze = AsyncMock(return_value=review_result)
    service.get_status = MagicMock(return_value={
        "provider": "groq",
        "model": "llama3-8b-8192",
        "configured": True
    })
    return service
