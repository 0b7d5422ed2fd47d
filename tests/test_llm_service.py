# tests/test_llm_service.py

"""Unit tests for LLMService and review response parsing"""

from types import SimpleNamespace
from typing import Optional
import json

import pytest
from unittest.mock import AsyncMock, patch

from pr_buddy.core.exceptions import AIResponseParseError, ConfigurationError, LLMError
from pr_buddy.models.review import Severity
from pr_buddy.services.llm_service import (
    BaseLLM,
    GroqLLM,
    LLMService,
    RAW_EXCERPT_CHARS,
    SYSTEM_PROMPT,
    TRUNCATION_MARKER,
    fallback_result,
    parse_review_response,
)

from tests.factories import make_settings


class FakeLLM(BaseLLM):
    """Returns a canned answer and records the prompts it was sent"""

    def __init__(self, response: Optional[str] = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.prompts = []
        self.closed = False

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        self.prompts.append((prompt, system_prompt))
        if self.error:
            raise self.error
        return self.response

    async def close(self) -> None:
        self.closed = True


class TestParseReviewResponse:
    """Test suite for parse_review_response"""

    def test_plain_json(self):
        result = parse_review_response(
            '{"rating": 2, "issues": [{"type": "bug", "description": "Off by one", "severity": "high"}], '
            '"suggestions": ["Add tests"], "summary": "Buggy loop"}'
        )

        assert result.rating == 2
        assert result.issues[0].type == "bug"
        assert result.issues[0].severity == Severity.HIGH
        assert result.suggestions == ["Add tests"]
        assert result.summary == "Buggy loop"

    def test_markdown_code_block(self):
        response = 'Here is my review:\n```json\n{"rating": 4, "issues": [], "suggestions": [], "summary": "Fine"}\n```'
        result = parse_review_response(response)
        assert result.rating == 4
        assert result.summary == "Fine"

    def test_json_surrounded_by_prose(self):
        response = 'Sure! {"rating": 5, "summary": "Clean"} Hope this helps.'
        assert parse_review_response(response).rating == 5

    @pytest.mark.parametrize("raw,expected", [(0, 1), (-3, 1), (9, 5), (3.6, 4), ("2", 2), ("great", 3), (None, 3)])
    def test_rating_is_clamped(self, raw, expected):
        result = parse_review_response(f'{{"rating": {json.dumps(raw)}, "summary": "x"}}')
        assert result.rating == expected

    def test_missing_fields_are_defaulted(self):
        result = parse_review_response('{"rating": 4}')
        assert result.issues == []
        assert result.suggestions == []
        assert result.summary == ""

    def test_severity_is_normalized(self):
        result = parse_review_response(
            '{"rating": 3, "issues": ['
            '{"description": "a", "severity": "Critical"},'
            '{"description": "b", "severity": "minor"},'
            '{"description": "c", "severity": "whatever"},'
            '{"description": "d"}'
            ']}'
        )
        assert [issue.severity for issue in result.issues] == [
            Severity.HIGH, Severity.LOW, Severity.MEDIUM, Severity.MEDIUM
        ]
        assert all(issue.type == "general" for issue in result.issues)

    def test_invalid_issue_entries_are_skipped(self):
        result = parse_review_response(
            '{"rating": 3, "issues": [{"type": "bug"}, "Unused variable", 42]}'
        )
        assert [issue.description for issue in result.issues] == ["Unused variable"]

    def test_single_string_suggestion(self):
        result = parse_review_response('{"rating": 3, "suggestions": "Rename foo"}')
        assert result.suggestions == ["Rename foo"]

    def test_not_json(self):
        with pytest.raises(AIResponseParseError) as exc_info:
            parse_review_response("This code looks fine to me.")
        assert exc_info.value.raw_response == "This code looks fine to me."

    def test_json_without_review_fields(self):
        with pytest.raises(AIResponseParseError):
            parse_review_response('{"answer": 42}')


class TestFallbackResult:
    """Test suite for fallback_result"""

    def test_without_raw_response(self):
        result = fallback_result()
        assert result.rating == 3
        assert result.issues == []
        assert result.suggestions == ["AI service temporarily unavailable"]

    def test_excerpt_is_truncated(self):
        result = fallback_result("x" * 500)
        assert result.suggestions == ["x" * RAW_EXCERPT_CHARS + "..."]
        assert result.summary == "Code reviewed - see suggestions above"


class TestLLMService:
    """Test suite for LLMService"""

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError, match="Unsupported LLM provider"):
            LLMService(make_settings(LLM_PROVIDER="cohere"))

    def test_not_configured_without_key(self):
        service = LLMService(make_settings(LLM_PROVIDER="groq", GROQ_API_KEY=""))

        assert service.is_configured is False
        assert service.get_status() == {
            "provider": "groq",
            "model": "llama3-8b-8192",
            "configured": False
        }

    def test_provider_name_is_case_insensitive(self):
        service = LLMService(make_settings(LLM_PROVIDER="OpenAI"), llm=FakeLLM("{}"))
        assert service.provider == "openai"
        assert service.is_configured is True

    @pytest.mark.asyncio
    async def test_placeholder_when_not_configured(self):
        service = LLMService(make_settings())

        result = await service.analyze("app.js", "+ let x = 1")

        assert result.rating == 3
        assert result.summary == "AI review not configured"

    @pytest.mark.asyncio
    async def test_analyze_parses_response(self):
        llm = FakeLLM('{"rating": 2, "issues": [{"type": "security", "description": "eval", "severity": "high"}]}')
        service = LLMService(make_settings(), llm=llm)

        result = await service.analyze("app.js", "eval(input)", source="content")

        assert result.rating == 2
        assert len(result.issues_by_severity(Severity.HIGH)) == 1
        prompt, system_prompt = llm.prompts[0]
        assert system_prompt == SYSTEM_PROMPT
        assert "File: app.js" in prompt
        assert "eval(input)" in prompt

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [LLMError("timeout"), RuntimeError("boom"), TimeoutError()])
    async def test_call_failure_never_raises(self, error):
        service = LLMService(make_settings(), llm=FakeLLM(error=error))

        result = await service.analyze("app.js", "+ code")

        assert 1 <= result.rating <= 5
        assert result.suggestions == ["AI service temporarily unavailable"]

    @pytest.mark.asyncio
    async def test_unparseable_response_uses_excerpt(self):
        service = LLMService(make_settings(), llm=FakeLLM("Looks fine overall, nothing to add."))

        result = await service.analyze("app.js", "+ code")

        assert result.rating == 3
        assert result.suggestions == ["Looks fine overall, nothing to add...."]

    @pytest.mark.asyncio
    async def test_empty_response_uses_fallback(self):
        service = LLMService(make_settings(), llm=FakeLLM(None))

        result = await service.analyze("app.js", "+ code")

        assert result.suggestions == ["AI service temporarily unavailable"]

    def test_build_prompt_truncates_content(self):
        service = LLMService(make_settings(LLM_MAX_CONTENT_CHARS=100), llm=FakeLLM())

        prompt = service.build_prompt("big.py", "a" * 250)

        assert "a" * 100 + TRUNCATION_MARKER in prompt
        assert "a" * 101 not in prompt

    def test_build_prompt_labels_source(self):
        service = LLMService(make_settings(), llm=FakeLLM())

        assert "Code changes:\n```diff" in service.build_prompt("a.py", "+x")
        assert "Code changes:\n```diff" in service.build_prompt("a.py", "+x", source="patch")
        assert "File content:\n```\n" in service.build_prompt("a.py", "x = 1", source="content")


class TestProviderClient:
    """The configured provider client carries the request limits"""

    @pytest.fixture
    def groq_service(self):
        return LLMService(make_settings(GROQ_API_KEY="gsk-test"))

    def test_client_limits(self, groq_service):
        llm = groq_service.llm

        assert isinstance(llm, GroqLLM)
        assert llm.client.timeout == 30
        assert llm.client.max_retries == 0
        assert str(llm.client.base_url).startswith("https://api.groq.com/openai/v1")
        assert llm.temperature == 0.1
        assert llm.max_tokens == 800
        assert llm.model == "llama3-8b-8192"

    @pytest.mark.asyncio
    async def test_completion_request_options(self, groq_service):
        completion = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content='{"rating": 4, "summary": "ok"}'))]
        )
        completions = groq_service.llm.client.chat.completions

        with patch.object(completions, "create", new=AsyncMock(return_value=completion)) as create:
            result = await groq_service.analyze("app.js", "+ const x = 1")

        assert result.rating == 4
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "llama3-8b-8192"
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 800
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}

    @pytest.mark.asyncio
    async def test_close_releases_client(self, groq_service):
        with patch.object(groq_service.llm.client, "close", new=AsyncMock()) as close:
            await groq_service.close()
        close.assert_awaited_once()


class TestClose:
    """Test suite for LLMService.close"""

    @pytest.mark.asyncio
    async def test_closes_provider(self):
        llm = FakeLLM("{}")
        await LLMService(make_settings(), llm=llm).close()
        assert llm.closed is True

    @pytest.mark.asyncio
    async def test_without_provider(self):
        await LLMService(make_settings()).close()

    @pytest.mark.asyncio
    async def test_close_failure_is_logged(self, caplog):
        llm = FakeLLM("{}")
        llm.close = AsyncMock(side_effect=RuntimeError("socket gone"))

        with caplog.at_level("WARNING"):
            await LLMService(make_settings(), llm=llm).close()

        assert "socket gone" in caplog.text
