"""LiteLLM backend for model-tier execution targets.

Invokes a model through LiteLLM's unified interface. Retries are owned by
the dispatcher, so this backend makes exactly one call per ``invoke``.
Authentication and API errors become failure results; transient errors
(rate limits, timeouts, connection errors) propagate as exceptions.

API keys are read from the environment by model prefix (OPENROUTER_API_KEY,
ANTHROPIC_API_KEY, OPENAI_API_KEY) unless passed explicitly.
"""

import os
import time
from typing import Any

import litellm
import structlog

from caprouter.backends.base import ExecutionResult
from caprouter.core.security import MAX_BACKEND_OUTPUT_LENGTH, truncate_output

log = structlog.get_logger()

_REWRITE_INSTRUCTION = (
    "You rewrite terse tool output into a short, user-facing answer. "
    "Keep every code block unchanged and add a brief explanation of what it "
    "does and how it addresses the request."
)


class LiteLLMBackend:
    """Execution backend and rewriter backed by ``litellm.acompletion``.

    Example:
        backend = LiteLLMBackend(model="anthropic/claude-sonnet-4-20250514")
        result = await backend.invoke("Why does this test fail intermittently?")
        if result.is_success:
            print(result.output)
    """

    def __init__(
        self,
        *,
        model: str,
        api_key: str | None = None,
        api_base: str | None = None,
        system_prompt: str | None = None,
        temperature: float = 0.2,
        max_tokens: int = 4096,
    ) -> None:
        self._model = model
        self._api_key = api_key
        self._api_base = api_base
        self._system_prompt = system_prompt
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._model

    def _get_api_key(self) -> str | None:
        if self._api_key:
            return self._api_key
        if self._model.startswith("openrouter/"):
            return os.environ.get("OPENROUTER_API_KEY")
        if self._model.startswith("anthropic/") or self._model.startswith("claude"):
            return os.environ.get("ANTHROPIC_API_KEY")
        if self._model.startswith("openai/") or self._model.startswith("gpt"):
            return os.environ.get("OPENAI_API_KEY")
        return None

    def _build_kwargs(self, messages: list[dict[str, str]]) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        api_key = self._get_api_key()
        if api_key:
            kwargs["api_key"] = api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
        return kwargs

    async def _complete(self, messages: list[dict[str, str]]) -> ExecutionResult:
        start = time.monotonic()
        try:
            response = await litellm.acompletion(**self._build_kwargs(messages))
        except litellm.AuthenticationError as e:
            log.warning("backend.litellm.auth_failed", model=self._model, error=str(e))
            return ExecutionResult.failure(
                "Authentication failed - check API key", model=self._model
            )
        except litellm.APIError as e:
            log.warning(
                "backend.litellm.api_error",
                model=self._model,
                error=str(e),
                status_code=getattr(e, "status_code", None),
            )
            return ExecutionResult.failure(str(e), model=self._model)

        latency_ms = int((time.monotonic() - start) * 1000)
        choice = response.choices[0]
        content, truncated = truncate_output(choice.message.content or "")
        if truncated:
            log.warning(
                "backend.litellm.response_truncated",
                model=self._model,
                max_length=MAX_BACKEND_OUTPUT_LENGTH,
            )

        return ExecutionResult.success(
            content,
            model=response.model or self._model,
            finish_reason=choice.finish_reason or "stop",
            latency_ms=latency_ms,
        )

    async def invoke(self, request_text: str) -> ExecutionResult:
        messages = []
        if self._system_prompt:
            messages.append({"role": "system", "content": self._system_prompt})
        messages.append({"role": "user", "content": request_text})
        return await self._complete(messages)

    async def rewrite(self, original_request: str, raw_output: str) -> str:
        """Rewrite terse output; raises RuntimeError when the model call fails."""
        result = await self._complete(
            [
                {"role": "system", "content": _REWRITE_INSTRUCTION},
                {
                    "role": "user",
                    "content": f"Request:\n{original_request}\n\nRaw output:\n{raw_output}",
                },
            ]
        )
        if not result.is_success:
            msg = f"Rewrite failed: {result.error}"
            raise RuntimeError(msg)
        return result.output
