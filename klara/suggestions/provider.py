"""
Suggestion Provider

The orchestrator treats the provider as an opaque capability:
``await provider.generate(prompt)`` returns raw text or raises one of the
errors in ``klara.suggestions.errors``. It knows nothing about the wire
protocol.

Providers are constructed explicitly and passed to the orchestrator, so
tests can substitute a fake without touching global state.

Models (Gemini):
    - Primary: gemini-2.5-flash-lite (most cost effective)
    - Fallback: gemini-2.5-flash (used when the primary fails)

Usage:
    from klara.suggestions.provider import get_provider

    provider = get_provider(config.provider)
    text = await provider.generate("Suggest 3 steps for: plan the offsite")

Dependencies:
    - httpx (async HTTP client)
    - python-dotenv (GEMINI_API_KEY from .env)
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any

import httpx
from dotenv import load_dotenv

from klara.config_models import ProviderConfig
from klara.logging_config import get_logger
from klara.suggestions.errors import (
    ProviderNetworkError,
    ProviderServerError,
    ProviderUnavailableError,
    SuggestionError,
    SuggestionValidationError,
)

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


class SuggestionProvider(ABC):
    """Interface every suggestion provider implements."""

    name: str = "base"

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider is configured and usable."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return the provider's raw text answer for a prompt."""


class UnavailableProvider(SuggestionProvider):
    """Stand-in used when no provider is configured."""

    name = "unavailable"

    def __init__(self, reason: str = "AI service not configured. Please set GEMINI_API_KEY."):
        self.reason = reason

    def is_available(self) -> bool:
        return False

    async def generate(self, prompt: str) -> str:
        raise ProviderUnavailableError(self.reason)


class GeminiProvider(SuggestionProvider):
    """
    Google Gemini over the public REST API.

    Tries the primary model first and the fallback model when the primary
    fails for any reason other than a missing configuration.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str | None,
        config: ProviderConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.config = config or ProviderConfig()
        self._client = client

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _request_body(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_output_tokens,
            },
        }

    async def _generate_with_model(self, model: str, prompt: str) -> str:
        url = f"{self.config.base_url}/models/{model}:generateContent"
        try:
            response = await self._get_client().post(
                url,
                params={"key": self.api_key},
                json=self._request_body(prompt),
            )
        except httpx.TransportError as e:
            raise ProviderNetworkError(f"{model}: {e.__class__.__name__}: {e}") from e

        if response.status_code >= 500:
            raise ProviderServerError(
                f"{model} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise SuggestionValidationError(f"{model} rejected the request: HTTP {response.status_code}")

        try:
            payload = response.json()
            parts = payload["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise SuggestionValidationError(f"{model} returned an unexpected body: {e}") from e

    async def generate(self, prompt: str) -> str:
        if not self.is_available():
            raise ProviderUnavailableError("Gemini API key not configured")

        try:
            return await self._generate_with_model(self.config.primary_model, prompt)
        except SuggestionError as primary_error:
            if not self.config.fallback_model:
                raise
            logger.warning(
                "provider_primary_failed",
                model=self.config.primary_model,
                error=str(primary_error),
            )

        return await self._generate_with_model(self.config.fallback_model, prompt)


def get_provider(config: ProviderConfig | None = None) -> SuggestionProvider:
    """Build the configured provider, or the unavailable stand-in."""
    config = config or ProviderConfig()

    if config.name != "gemini":
        logger.warning("provider_unknown", name=config.name)
        return UnavailableProvider(f"Unknown AI provider: {config.name}")

    api_key = os.environ.get(config.api_key_env)
    if not api_key:
        return UnavailableProvider(f"AI service not configured. Please set {config.api_key_env}.")

    return GeminiProvider(api_key=api_key, config=config)


__all__ = [
    "GeminiProvider",
    "SuggestionProvider",
    "UnavailableProvider",
    "get_provider",
]
