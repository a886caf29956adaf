import base64
import time
from typing import Any, Protocol

import httpx
import litellm
import structlog

from aiprofessor.errors import InvalidResponseError, ProviderError, ProviderTimeoutError, RateLimitedError

logger = structlog.get_logger(__name__)

TIMEOUT_STATUS_CODES = frozenset({408, 504})
SERVER_ERROR_STATUS_CODES = frozenset({500, 502, 503})


class LLMUsage(Protocol):
    """Protocol for LLM usage statistics from litellm response."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class CompletionClient:
    """Single-shot chat completion over litellm, mapping provider failures to the error taxonomy.

    Exactly one network round trip per call; retries are disabled both in litellm
    and in the underlying provider SDK.
    """

    def __init__(
        self,
        model: str,
        api_key: str,
        max_tokens: int,
        timeout: httpx.Timeout,
        api_base: str | None = None,
    ) -> None:
        self.model = model
        self.api_key = api_key
        self.api_base = api_base
        self.max_tokens = max_tokens
        self.timeout = timeout

    async def complete(self, system_prompt: str, user_prompt: str, document: bytes | str) -> str:
        """Send a document with instructions and return the model's Markdown answer.

        Args:
            system_prompt: Fixed instructions for the processing type
            user_prompt: Caller instructions
            document: Raw PDF bytes (sent as a file part) or extracted text (appended to the user message)

        Raises:
            ProviderTimeoutError: transport or provider timeout, HTTP 408/504
            RateLimitedError: HTTP 429
            ProviderError: any other provider or transport failure
            InvalidResponseError: response has no usable text
        """
        start_time = time.monotonic()
        try:
            response = await litellm.acompletion(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": self._user_content(user_prompt, document)},
                ],
                max_tokens=self.max_tokens,
                api_key=self.api_key or None,
                api_base=self.api_base,
                timeout=self.timeout,
                num_retries=0,
                max_retries=0,
            )
        except (litellm.Timeout, httpx.TimeoutException) as e:
            logger.warning("llm_call_failed", model=self.model, reason="timeout", duration_ms=_elapsed_ms(start_time))
            raise ProviderTimeoutError from e
        except Exception as e:
            status_code = getattr(e, "status_code", None)
            logger.warning(
                "llm_call_failed",
                model=self.model,
                status_code=status_code,
                error=type(e).__name__,
                duration_ms=_elapsed_ms(start_time),
            )
            raise _map_provider_failure(status_code) from e

        duration_ms = _elapsed_ms(start_time)
        content = _extract_text(response)
        usage: LLMUsage | None = getattr(response, "usage", None)
        logger.info(
            "llm_call_completed",
            model=self.model,
            duration_ms=duration_ms,
            prompt_tokens=usage.prompt_tokens if usage else None,
            completion_tokens=usage.completion_tokens if usage else None,
            total_tokens=usage.total_tokens if usage else None,
        )
        return content

    @staticmethod
    def _user_content(user_prompt: str, document: bytes | str) -> str | list[dict[str, Any]]:
        if isinstance(document, bytes):
            encoded = base64.b64encode(document).decode("ascii")
            return [
                {"type": "file", "file": {"file_data": f"data:application/pdf;base64,{encoded}"}},
                {"type": "text", "text": user_prompt},
            ]
        return f"{user_prompt}\n\n---\n\nDocument content:\n\n{document}"


def _map_provider_failure(status_code: int | None) -> Exception:
    if status_code == 429:
        return RateLimitedError()
    if status_code in TIMEOUT_STATUS_CODES:
        return ProviderTimeoutError()
    if status_code in SERVER_ERROR_STATUS_CODES:
        return ProviderError(f"LLM provider server error (HTTP {status_code})", status_code=status_code)
    if status_code is not None:
        return ProviderError(f"LLM provider request failed (HTTP {status_code})", status_code=status_code)
    return ProviderError("Unexpected error while calling the LLM provider")


def _extract_text(response: Any) -> str:  # noqa: ANN401
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError) as e:
        raise InvalidResponseError("LLM provider response could not be parsed") from e

    if not isinstance(content, str) or not content.strip():
        raise InvalidResponseError("LLM provider response contains no text")
    return content


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)
