# pr_buddy/services/llm_service.py

"""LLM Service with Multi-Provider Support

Supports Groq (default, through its OpenAI-compatible endpoint), OpenAI GPT,
Anthropic Claude and Google Gemini. Reviews one file at a time and always
returns a usable AIReviewResult: when the model is unreachable, unconfigured
or answers with something that is not a review, a fallback result is used.
"""

from typing import Any, Dict, List, Optional
from abc import ABC, abstractmethod
import json
import logging
import re

from pydantic import ValidationError

from pr_buddy.core.config import Settings, settings
from pr_buddy.core.exceptions import AIResponseParseError, ConfigurationError, LLMError
from pr_buddy.models.review import AIReviewResult, Issue

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("groq", "openai", "anthropic", "google")

TRUNCATION_MARKER = "\n... [truncated]"
RAW_EXCERPT_CHARS = 150

SYSTEM_PROMPT = (
    "You are a senior software engineer doing a thorough code review. "
    "You answer with a single JSON object and nothing else."
)

REVIEW_PROMPT = """Your job is to find REAL issues and bugs.

File: {filename}
{label}:
```{fence}
{content}
```

CAREFULLY analyze this code for:
- Syntax errors, bugs, logical mistakes
- Security vulnerabilities
- Performance issues
- Poor coding practices
- Missing error handling

Be strict and thorough. If the code has problems, rate it low (1-2 stars). Only give high ratings (4-5) for genuinely good code.

Return ONLY this JSON:
{{
  "rating": 2,
  "issues": [
    {{"type": "bug", "description": "Missing semicolon will cause error", "severity": "high"}},
    {{"type": "security", "description": "User input not validated", "severity": "medium"}}
  ],
  "suggestions": ["Add error handling", "Use strict mode"],
  "summary": "Code has several issues that need fixing"
}}"""


class BaseLLM(ABC):
    """Base LLM interface"""

    @abstractmethod
    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Generate response from LLM"""
        pass

    async def close(self) -> None:
        """Release network resources held by the client"""
        pass


class OpenAILLM(BaseLLM):
    """OpenAI GPT implementation (also serves any OpenAI-compatible endpoint)"""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
        base_url: Optional[str] = None
    ):
        try:
            import openai
            self.client = openai.AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout,
                max_retries=0
            )
            self.model = model
            self.temperature = temperature
            self.max_tokens = max_tokens
            logger.info(f"Initialized OpenAI-compatible client: {model} ({base_url or 'api.openai.com'})")
        except Exception as e:
            raise LLMError(f"Failed to initialize OpenAI client: {str(e)}")

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Generate response from a chat completion"""
        try:
            messages = []
            if system_prompt:
                messages.append({"role": "system", "content": system_prompt})
            messages.append({"role": "user", "content": prompt})

            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
            return response.choices[0].message.content or ""
        except Exception as e:
            logger.error(f"Chat completion error: {type(e).__name__}: {e}")
            raise LLMError(f"Chat completion failed: {str(e)}")

    async def close(self) -> None:
        await self.client.close()


class GroqLLM(OpenAILLM):
    """Groq implementation (DEFAULT) via its OpenAI-compatible API"""

    def __init__(self, api_key: str, model: str, temperature: float, max_tokens: int, timeout: float, base_url: str):
        super().__init__(api_key, model, temperature, max_tokens, timeout, base_url=base_url)


class AnthropicLLM(BaseLLM):
    """Anthropic Claude implementation"""

    def __init__(self, api_key: str, model: str, temperature: float, max_tokens: int, timeout: float):
        try:
            import anthropic
            self.client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
            self.model = model
            self.temperature = temperature
            self.max_tokens = max_tokens
            logger.info(f"Initialized Anthropic: {model}")
        except Exception as e:
            raise LLMError(f"Failed to initialize Anthropic: {str(e)}")

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Generate response from Claude"""
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_prompt or "",
                messages=[{"role": "user", "content": prompt}]
            )
            return response.content[0].text
        except Exception as e:
            logger.error(f"Anthropic generation error: {type(e).__name__}: {e}")
            raise LLMError(f"Anthropic generation failed: {str(e)}")

    async def close(self) -> None:
        await self.client.close()


class GoogleLLM(BaseLLM):
    """Google Gemini implementation"""

    def __init__(self, api_key: str, model: str, temperature: float, max_tokens: int, timeout: float):
        try:
            import google.generativeai as genai
            genai.configure(api_key=api_key)
            self.model = genai.GenerativeModel(model)
            self.temperature = temperature
            self.max_tokens = max_tokens
            self.timeout = timeout
            logger.info(f"Initialized Google Gemini: {model}")
        except Exception as e:
            raise LLMError(f"Failed to initialize Google Gemini: {str(e)}")

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Generate response from Gemini"""
        try:
            # Gemini takes a single prompt
            full_prompt = prompt
            if system_prompt:
                full_prompt = f"{system_prompt}\n\n{prompt}"

            response = await self.model.generate_content_async(
                full_prompt,
                generation_config={
                    "temperature": self.temperature,
                    "max_output_tokens": self.max_tokens,
                },
                request_options={"timeout": self.timeout}
            )
            return response.text
        except Exception as e:
            logger.error(f"Gemini generation error: {type(e).__name__}: {e}")
            raise LLMError(f"Gemini generation failed: {str(e)}")


def placeholder_result() -> AIReviewResult:
    """Result used when no AI provider is configured"""
    return AIReviewResult(
        rating=3,
        issues=[],
        suggestions=["AI review is not configured for this service"],
        summary="AI review not configured"
    )


def fallback_result(raw_response: Optional[str] = None) -> AIReviewResult:
    """
    Result used when the AI call fails or its answer cannot be parsed

    Args:
        raw_response: Model output that could not be parsed, if any

    Returns:
        Neutral review carrying an excerpt of the raw answer when available
    """
    if raw_response and raw_response.strip():
        return AIReviewResult(
            rating=3,
            issues=[],
            suggestions=[raw_response.strip()[:RAW_EXCERPT_CHARS] + "..."],
            summary="Code reviewed - see suggestions above"
        )
    return AIReviewResult(
        rating=3,
        issues=[],
        suggestions=["AI service temporarily unavailable"],
        summary="Could not analyze this file right now"
    )


def _extract_json_object(response: str) -> Dict[str, Any]:
    """Extract a JSON object from an LLM response (handles markdown code blocks)"""
    text = response.strip()

    candidates = [text]
    fenced = re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL)
    if fenced:
        candidates.append(fenced.group(1))
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    raise AIResponseParseError("No JSON object found in LLM response", raw_response=response)


def _coerce_issues(raw_issues: Any) -> List[Issue]:
    if not isinstance(raw_issues, list):
        return []

    issues = []
    for entry in raw_issues:
        if isinstance(entry, str):
            entry = {"description": entry}
        try:
            issues.append(Issue.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Failed to parse review issue: {e.error_count()} errors, data: {entry}")
    return issues


def parse_review_response(response: str) -> AIReviewResult:
    """
    Parse model output into an AIReviewResult

    Args:
        response: Raw text returned by the model

    Returns:
        Parsed review

    Raises:
        AIResponseParseError: If the output holds no review-shaped JSON object
    """
    data = _extract_json_object(response)

    if not {"rating", "issues", "suggestions", "summary"} & data.keys():
        raise AIResponseParseError("JSON object has none of the review fields", raw_response=response)

    suggestions = data.get("suggestions")
    if isinstance(suggestions, str):
        suggestions = [suggestions]
    elif isinstance(suggestions, list):
        suggestions = [str(s) for s in suggestions if s is not None]
    else:
        suggestions = []

    try:
        return AIReviewResult(
            rating=data.get("rating"),
            issues=_coerce_issues(data.get("issues")),
            suggestions=suggestions,
            summary=data.get("summary")
        )
    except ValidationError as e:
        raise AIResponseParseError(f"Invalid review structure: {e.error_count()} errors", raw_response=response)


class LLMService:
    """AI review client wrapping the configured provider"""

    def __init__(self, config: Settings = settings, llm: Optional[BaseLLM] = None):
        self.provider = config.LLM_PROVIDER.lower()
        self.model = config.LLM_MODEL
        self.max_content_chars = config.LLM_MAX_CONTENT_CHARS

        if self.provider not in SUPPORTED_PROVIDERS:
            raise ConfigurationError(f"Unsupported LLM provider: {self.provider}")

        self.llm = llm if llm is not None else self._create_llm(config)
        logger.info(
            f"LLMService initialized with provider: {self.provider} "
            f"({'configured' if self.is_configured else 'not configured'})"
        )

    def _create_llm(self, config: Settings) -> Optional[BaseLLM]:
        api_key = config.llm_api_key()
        if not api_key:
            logger.warning(f"AI not configured - no API key for provider '{self.provider}'")
            return None

        options = {
            "api_key": api_key,
            "model": config.LLM_MODEL,
            "temperature": config.LLM_TEMPERATURE,
            "max_tokens": config.LLM_MAX_TOKENS,
            "timeout": config.LLM_TIMEOUT_SECONDS,
        }
        try:
            if self.provider == "groq":
                return GroqLLM(base_url=config.GROQ_BASE_URL, **options)
            if self.provider == "openai":
                return OpenAILLM(**options)
            if self.provider == "anthropic":
                return AnthropicLLM(**options)
            return GoogleLLM(**options)
        except LLMError as e:
            logger.error(f"AI provider unavailable, reviews will be placeholders: {e.message}")
            return None

    @property
    def is_configured(self) -> bool:
        return self.llm is not None

    async def close(self) -> None:
        """Close the provider client; errors are only logged"""
        if self.llm is None:
            return
        try:
            await self.llm.close()
            logger.info(f"{self.provider} client closed")
        except Exception as e:
            logger.warning(f"Error closing {self.provider} client: {e}")

    def get_status(self) -> Dict[str, Any]:
        """Get AI service status"""
        return {
            "provider": self.provider,
            "model": self.model,
            "configured": self.is_configured
        }

    def build_prompt(self, filename: str, content: str, source: str = "diff") -> str:
        """Build the review prompt, truncating content to the context budget"""
        if len(content) > self.max_content_chars:
            content = content[:self.max_content_chars] + TRUNCATION_MARKER

        if source == "content":
            label, fence = "File content", ""
        else:
            label, fence = "Code changes", "diff"

        return REVIEW_PROMPT.format(filename=filename, label=label, fence=fence, content=content)

    async def analyze(self, filename: str, content: str, source: str = "diff") -> AIReviewResult:
        """
        Review one file

        Never raises: an unconfigured provider yields a placeholder, and call or
        parse failures yield a fallback result.

        Args:
            filename: Path of the file in the repository
            content: Unified diff or full file content
            source: "diff" or "content", used to label the code in the prompt

        Returns:
            AIReviewResult with rating in 1..5
        """
        if not self.is_configured:
            logger.warning(f"AI not configured, using placeholder for {filename}")
            return placeholder_result()

        prompt = self.build_prompt(filename, content, source)

        try:
            logger.info(f"Sending {filename} to AI for analysis ({len(content)} chars)")
            response = await self.llm.generate(prompt=prompt, system_prompt=SYSTEM_PROMPT)
        except Exception as e:
            logger.error(f"AI analysis failed for {filename}: {e}")
            return fallback_result()

        response = response or ""

        logger.debug(f"Raw AI response for {filename}: {response[:200]}")

        try:
            result = parse_review_response(response)
        except AIResponseParseError as e:
            logger.warning(f"JSON parse failed for {filename}: {e.message}")
            return fallback_result(response)

        logger.info(f"AI found {len(result.issues)} issues in {filename} (Rating: {result.rating}/5)")
        return result
