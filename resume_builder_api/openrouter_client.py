"""OpenRouter LLM client for single-shot text generation."""

import json
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from resume_builder_api.config import get_settings
from resume_builder_api.observability import log_llm_request, log_llm_response
from resume_builder_api.prompts import extract_input_resume

logger = structlog.get_logger()


class OpenRouterError(Exception):
    """Base exception for OpenRouter client errors."""

    pass


class OpenRouterAuthError(OpenRouterError):
    """Raised when the API key is missing or rejected."""

    pass


class OpenRouterNetworkError(OpenRouterError):
    """Raised when the API cannot be reached or does not answer in time."""

    pass


class OpenRouterRateLimitError(OpenRouterError):
    """Raised when the rate limit or quota is exceeded."""

    pass


@dataclass
class LLMResponse:
    """Response from the LLM."""

    content: str
    tokens_used: int
    finish_reason: str | None = None
    tokens_prompt: int = 0
    tokens_completion: int = 0


MOCK_ANALYSIS = {
    "atsScore": 72,
    "missingKeywords": ["Docker", "CI/CD"],
    "suggestions": [
        "Quantify the impact of each experience bullet.",
        "Mention containerization tools used in recent projects.",
        "Move the most relevant skills to the top of the skills list.",
    ],
}


def classify_error(message: str, status: int | None = None) -> type[OpenRouterError]:
    """Pick the exception class for a failed call.

    The HTTP status decides when present; otherwise the message text.
    """
    if status in (401, 403):
        return OpenRouterAuthError
    if status == 429:
        return OpenRouterRateLimitError

    text = message.lower()
    if "api key" in text or "unauthorized" in text:
        return OpenRouterAuthError
    if "quota" in text or "rate limit" in text:
        return OpenRouterRateLimitError
    if "network" in text or "timeout" in text or "timed out" in text:
        return OpenRouterNetworkError
    return OpenRouterError


class OpenRouterClient:
    """Async client for the OpenRouter chat completions API.

    Each call is a single attempt; failures are raised to the caller.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout_seconds: float | None = None,
    ):
        """Initialize the OpenRouter client.

        Args:
            api_key: OpenRouter API key. Defaults to config value.
            base_url: API base URL. Defaults to config value.
            model: Model ID to use. Defaults to config value.
            max_tokens: Maximum tokens in response. Defaults to config value.
            temperature: Sampling temperature. Defaults to config value.
            timeout_seconds: Per-call timeout. Defaults to config value.
        """
        settings = get_settings()
        self._api_key = api_key or settings.openrouter_api_key
        self._base_url = base_url or settings.openrouter_base_url
        self._model = model or settings.llm_model
        self._max_tokens = max_tokens or settings.llm_max_tokens
        self._temperature = temperature or settings.llm_temperature
        self._timeout = timeout_seconds or settings.llm_timeout_seconds
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "OpenRouterClient":
        await self.connect()
        return self

    async def __aexit__(self, _exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        await self.close()

    async def connect(self) -> None:
        """Create the HTTP client.

        In mock mode (MOCK_OPENROUTER=true), skips creating a real HTTP client
        since all requests will be served by mock handlers.
        """
        settings = get_settings()
        if settings.mock_openrouter:
            logger.info(
                "OpenRouter client in mock mode, skipping HTTP client creation",
                model=self._model,
            )
            return

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
                "X-Title": "Resume Builder",
            },
            timeout=httpx.Timeout(self._timeout, connect=10.0),
        )
        logger.info("OpenRouter client connected", model=self._model)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("OpenRouter client closed")

    @property
    def model(self) -> str:
        return self._model

    @property
    def is_configured(self) -> bool:
        """Check if the client is properly configured with an API key."""
        return bool(self._api_key and self._api_key.startswith("sk-"))

    def _build_messages(self, prompt: str, system_prompt: str | None = None) -> list[dict[str, str]]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        operation: str = "generate",
    ) -> LLMResponse:
        """Send one instruction and return the generated text.

        Args:
            prompt: The formatted instruction string.
            system_prompt: Optional system message.
            operation: Label for logs and metrics ("enhance", "analyze", ...).

        Returns:
            LLM response with content and token usage.

        Raises:
            OpenRouterAuthError: Missing or rejected API key.
            OpenRouterNetworkError: Transport failure or timeout.
            OpenRouterRateLimitError: Rate limit or quota exceeded.
            OpenRouterError: Any other failure.
        """
        settings = get_settings()

        # Check mock policy - fail loudly if real implementation unavailable
        if not self.is_configured:
            if settings.mock_openrouter:
                logger.info("MOCK_OPENROUTER=true: Using mock LLM response", operation=operation)
                return await self._mock_generate(prompt)
            error_msg = (
                "OpenRouter API key not configured with MOCK_OPENROUTER=false. "
                "Either set OPENROUTER_API_KEY or set MOCK_OPENROUTER=true for testing."
            )
            logger.error(error_msg)
            raise OpenRouterAuthError(error_msg)

        if not self._client:
            await self.connect()

        payload = {
            "model": self._model,
            "messages": self._build_messages(prompt, system_prompt),
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
            "stream": False,
        }

        request_log = log_llm_request(model=self._model, operation=operation, prompt=prompt)

        try:
            response = await self._client.post("/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()

            # OpenRouter can report provider failures in a 200 body
            if "error" in data:
                upstream = data["error"]
                if isinstance(upstream, dict):
                    detail, code = str(upstream.get("message", upstream)), upstream.get("code")
                else:
                    detail, code = str(upstream), None
                raise classify_error(detail, code if isinstance(code, int) else None)(detail)

            content = data["choices"][0]["message"]["content"] or ""
            usage = data.get("usage", {})
            result = LLMResponse(
                content=content,
                tokens_used=usage.get("total_tokens", 0),
                finish_reason=data["choices"][0].get("finish_reason"),
                tokens_prompt=usage.get("prompt_tokens", 0),
                tokens_completion=usage.get("completion_tokens", 0),
            )
        except httpx.HTTPStatusError as e:
            error = self._http_error(e)
            log_llm_response(request_log, error=str(error))
            raise error from e
        except httpx.TransportError as e:
            error = OpenRouterNetworkError(f"Network error contacting OpenRouter: {e!r}")
            log_llm_response(request_log, error=str(error))
            raise error from e
        except (KeyError, IndexError, ValueError) as e:
            error = OpenRouterError(f"Malformed OpenRouter response: {e!r}")
            log_llm_response(request_log, error=str(error))
            raise error from e
        except OpenRouterError as e:
            log_llm_response(request_log, error=str(e))
            raise

        log_llm_response(
            request_log,
            tokens_prompt=result.tokens_prompt,
            tokens_completion=result.tokens_completion,
            tokens_total=result.tokens_used,
            finish_reason=result.finish_reason or "stop",
        )
        return result

    def _http_error(self, error: httpx.HTTPStatusError) -> OpenRouterError:
        """Map an HTTP error from the OpenRouter API to a client exception."""
        status = error.response.status_code
        try:
            detail = error.response.json().get("error", {}).get("message", str(error))
        except (ValueError, AttributeError):
            detail = str(error)

        logger.error("OpenRouter API error", status=status, detail=detail)

        error_class = classify_error(detail, status)
        if error_class is OpenRouterAuthError:
            return error_class(f"Authentication failed: {detail}")
        if error_class is OpenRouterRateLimitError:
            return error_class(f"Quota exceeded: {detail}")
        return error_class(f"API error ({status}): {detail}")

    async def _mock_generate(self, prompt: str) -> LLMResponse:
        """Return a mock LLM response for testing.

        Enhancement prompts get their input resume echoed back unchanged;
        anything else gets a fixed analysis JSON.
        """
        resume_text = extract_input_resume(prompt)
        content = resume_text if resume_text is not None else json.dumps(MOCK_ANALYSIS)
        return LLMResponse(content=content, tokens_used=len(content.split()), finish_reason="stop")


# Global client instance
_openrouter_client: OpenRouterClient | None = None


async def get_openrouter_client() -> OpenRouterClient:
    """Get or create the global OpenRouter client instance."""
    global _openrouter_client
    if _openrouter_client is None:
        _openrouter_client = OpenRouterClient()
        await _openrouter_client.connect()
    return _openrouter_client


async def close_openrouter_client() -> None:
    """Close the global OpenRouter client."""
    global _openrouter_client
    if _openrouter_client:
        await _openrouter_client.close()
        _openrouter_client = None


def reset_openrouter_client() -> None:
    """Reset the global OpenRouter client (for testing)."""
    global _openrouter_client
    _openrouter_client = None
