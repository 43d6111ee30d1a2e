"""Completion model protocol and vendor implementations.

The refinement loop depends only on the CompletionModel protocol.
No loop module directly instantiates any vendor SDK; create_language_model()
builds a vendor client from environment variables for entry points.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional, Protocol, runtime_checkable

from duochat.core.config import LLMConfig
from duochat.core.errors import ConfigError, LLMError

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"

PROVIDERS = ("anthropic", "gemini")


@runtime_checkable
class CompletionModel(Protocol):
    """Protocol for a text completion capability.

    Executor and verifier are both CompletionModels. Enables testing
    with scripted mock clients.
    """

    async def complete(self, prompt: str) -> str:
        """Return the text completion for prompt, or raise."""
        ...


class AnthropicClient:
    """CompletionModel implementation using the Anthropic API.

    Owns its own auth and model defaults. LLMConfig provides
    vendor-neutral call parameters (retries, temperature, max_tokens).
    """

    def __init__(
        self,
        config: LLMConfig = LLMConfig(),
        api_key: str = "",
        model: str = DEFAULT_ANTHROPIC_MODEL,
    ) -> None:
        self.config = config
        self.model = model
        # Lazy import: anthropic is an optional dependency
        try:
            import anthropic
        except ImportError as e:
            raise LLMError(
                "anthropic package not installed. "
                "Install with: pip install duochat[llm]"
            ) from e
        self._client = anthropic.AsyncAnthropic(api_key=api_key or None)

    async def complete(self, prompt: str) -> str:
        last_error: Optional[Exception] = None
        for attempt in range(self.config.max_retries):
            try:
                response = await self._client.messages.create(
                    model=self.model,
                    max_tokens=self.config.max_tokens,
                    temperature=self.config.temperature,
                    messages=[{"role": "user", "content": prompt}],
                )
                return response.content[0].text
            except Exception as e:
                last_error = e
                if attempt < self.config.max_retries - 1:
                    await asyncio.sleep(2**attempt)
        raise LLMError(f"LLM call failed after {self.config.max_retries} retries: {last_error}")


class GeminiClient:
    """CompletionModel implementation using the Google Gemini API.

    Uses the google-genai SDK. Free tier available for testing.
    """

    def __init__(
        self,
        config: LLMConfig = LLMConfig(),
        api_key: str = "",
        model: str = DEFAULT_GEMINI_MODEL,
    ) -> None:
        self.config = config
        self.model = model
        try:
            from google import genai
        except ImportError as e:
            raise LLMError(
                "google-genai package not installed. "
                "Install with: pip install duochat[gemini]"
            ) from e
        self._client = genai.Client(api_key=api_key or None)

    async def complete(self, prompt: str) -> str:
        from google.genai import types

        last_error: Optional[Exception] = None
        for attempt in range(self.config.max_retries):
            try:
                response = await self._client.aio.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        temperature=self.config.temperature,
                        max_output_tokens=self.config.max_tokens,
                    ),
                )
                return response.text
            except Exception as e:
                last_error = e
                if attempt < self.config.max_retries - 1:
                    await asyncio.sleep(2**attempt)
        raise LLMError(f"Gemini call failed after {self.config.max_retries} retries: {last_error}")


def resolve_provider(env: Mapping[str, str]) -> str:
    """Pick the provider named by DUOCHAT_PROVIDER, else the first one with a key.

    Raises ConfigError for an unknown provider or when no key is available.
    """
    provider = env.get("DUOCHAT_PROVIDER", "").strip().lower()
    if provider:
        if provider not in PROVIDERS:
            raise ConfigError(
                f"Unknown DUOCHAT_PROVIDER '{provider}'. Expected one of: {', '.join(PROVIDERS)}"
            )
        return provider
    if env.get("ANTHROPIC_API_KEY"):
        return "anthropic"
    if env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY"):
        return "gemini"
    raise ConfigError(
        "No language model configured. Set ANTHROPIC_API_KEY or GEMINI_API_KEY "
        "(optionally DUOCHAT_PROVIDER to choose between them)."
    )


def create_language_model(
    env: Mapping[str, str],
    config: LLMConfig = LLMConfig(),
    provider: Optional[str] = None,
    model: Optional[str] = None,
) -> CompletionModel:
    """Build a CompletionModel from environment variables.

    Args:
        env: Usually os.environ. Reads DUOCHAT_PROVIDER, DUOCHAT_MODEL,
            ANTHROPIC_API_KEY, GEMINI_API_KEY / GOOGLE_API_KEY.
        config: Call parameters passed to the client.
        provider: Overrides DUOCHAT_PROVIDER.
        model: Overrides DUOCHAT_MODEL.

    Raises:
        ConfigError: Unknown provider or missing API key.
        LLMError: The provider's SDK is not installed.
    """
    if provider:
        provider = resolve_provider({**env, "DUOCHAT_PROVIDER": provider})
    else:
        provider = resolve_provider(env)
    model = model or env.get("DUOCHAT_MODEL") or None

    if provider == "anthropic":
        api_key = env.get("ANTHROPIC_API_KEY", "")
        if not api_key:
            raise ConfigError("ANTHROPIC_API_KEY is not set")
        return AnthropicClient(config, api_key=api_key, model=model or DEFAULT_ANTHROPIC_MODEL)

    api_key = env.get("GEMINI_API_KEY") or env.get("GOOGLE_API_KEY", "")
    if not api_key:
        raise ConfigError("GEMINI_API_KEY is not set")
    return GeminiClient(config, api_key=api_key, model=model or DEFAULT_GEMINI_MODEL)
