"""
Model Client - one invoke(conversation) -> text capability for every provider.

All supported providers expose an OpenAI-compatible chat completions
endpoint, so a single client class covers them. The provider is chosen by
configuration (base URL, key, default model), not by subclassing.
"""

import time
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Sequence

from openai import AsyncOpenAI, OpenAIError

from src.ai.types import ChatMessage, ModelProvider
from src.config import Settings, get_settings
from src.logging_config import get_logger

logger = get_logger(__name__)


PROVIDER_BASE_URLS: Dict[ModelProvider, Optional[str]] = {
    ModelProvider.OPENAI: None,
    ModelProvider.XAI: "https://api.x.ai/v1",
    ModelProvider.GEMINI: "https://generativelanguage.googleapis.com/v1beta/openai/",
    ModelProvider.HUGGINGFACE: "https://router.huggingface.co/v1",
}

PROVIDER_DEFAULT_MODELS: Dict[ModelProvider, str] = {
    ModelProvider.OPENAI: "gpt-4o-mini",
    ModelProvider.XAI: "grok-beta",
    ModelProvider.GEMINI: "gemini-2.0-flash",
    ModelProvider.HUGGINGFACE: "Qwen/Qwen2.5-7B-Instruct",
}


class ModelInvocationError(RuntimeError):
    """The model call itself failed (timeout, provider error, bad credentials)."""


class ProviderNotConfiguredError(ModelInvocationError):
    """No usable API key is configured for the provider."""


class ModelClient(Protocol):
    """Anything that turns a conversation into reply text."""

    async def invoke(self, conversation: Sequence[ChatMessage]) -> str:
        ...


@dataclass
class ProviderSettings:
    """Everything needed to reach one provider/model pair."""

    provider: ModelProvider
    model: str
    api_key: str
    base_url: Optional[str] = None
    temperature: float = 0.2
    max_tokens: Optional[int] = None
    timeout: Optional[float] = None
    max_retries: int = 2

    @property
    def is_configured(self) -> bool:
        key = (self.api_key or "").strip()
        return bool(key) and not key.startswith("sk-your-")


def _api_key_for(provider: ModelProvider, settings: Settings) -> str:
    return {
        ModelProvider.OPENAI: settings.openai_api_key,
        ModelProvider.XAI: settings.xai_api_key,
        ModelProvider.GEMINI: settings.google_api_key,
        ModelProvider.HUGGINGFACE: settings.huggingfacehub_api_key,
    }[provider]


def resolve_provider_settings(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ProviderSettings:
    """Fill in provider, model and credentials from explicit values, then settings."""
    settings = settings or get_settings()
    resolved_provider = ModelProvider(provider or settings.default_provider)
    if model:
        resolved_model = model
    elif settings.default_model and resolved_provider == ModelProvider(settings.default_provider):
        resolved_model = settings.default_model
    else:
        resolved_model = PROVIDER_DEFAULT_MODELS[resolved_provider]

    return ProviderSettings(
        provider=resolved_provider,
        model=resolved_model,
        api_key=_api_key_for(resolved_provider, settings),
        base_url=PROVIDER_BASE_URLS[resolved_provider],
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.llm_timeout_seconds,
        max_retries=settings.llm_max_retries,
    )


class OpenAICompatibleClient:
    """ModelClient over the OpenAI SDK, pointed at the configured provider."""

    def __init__(self, provider_settings: ProviderSettings):
        self.settings = provider_settings
        self._client: Optional[AsyncOpenAI] = None

    @property
    def model(self) -> str:
        return self.settings.model

    def _get_client(self) -> AsyncOpenAI:
        if not self.settings.is_configured:
            raise ProviderNotConfiguredError(
                f"No API key configured for provider '{self.settings.provider.value}'"
            )
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.api_key,
                base_url=self.settings.base_url,
                timeout=self.settings.timeout,
                max_retries=self.settings.max_retries,
            )
        return self._client

    async def invoke(self, conversation: Sequence[ChatMessage]) -> str:
        client = self._get_client()
        kwargs = {
            "model": self.settings.model,
            "messages": [message.model_dump() for message in conversation],
            "temperature": self.settings.temperature,
        }
        if self.settings.max_tokens is not None:
            kwargs["max_tokens"] = self.settings.max_tokens

        start = time.perf_counter()
        try:
            response = await client.chat.completions.create(**kwargs)
        except OpenAIError as exc:
            raise ModelInvocationError(
                f"Invocation failed for {self.settings.provider.value}/{self.settings.model}: {exc}"
            ) from exc

        if not response.choices:
            raise ModelInvocationError(
                f"{self.settings.provider.value}/{self.settings.model} returned no choices"
            )
        content = (response.choices[0].message.content or "").strip()
        logger.debug(
            "Model call finished",
            extra={
                "provider": self.settings.provider.value,
                "model": self.settings.model,
                "duration_ms": round((time.perf_counter() - start) * 1000, 1),
            },
        )
        return content


def build_model_client(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ModelClient:
    """Default client factory used by the orchestrator."""
    return OpenAICompatibleClient(resolve_provider_settings(provider, model, settings))
