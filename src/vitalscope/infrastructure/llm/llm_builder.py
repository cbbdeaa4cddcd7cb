"""
infrastructure.llm.llm_builder - Chat model construction for image analysis.

Every analysis request carries image parts, which only chat message content
supports, so each provider is built as a chat model and the configured model
must accept image input. The provider is controlled by LLM_PROVIDER.

    openai  → langchain_openai.ChatOpenAI   (needs OPENAI_API_KEY)
    groq    → langchain_groq.ChatGroq       (needs GROQ_API_KEY)
    ollama  → langchain_ollama.ChatOllama   (local server, no key)

Provider packages are imported lazily, so a missing credential is reported
before anything vendor-specific is loaded.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)

# Analysis replies (summary, pros, cons, three recommendations) rarely need more.
GROQ_DEFAULT_MAX_TOKENS = 2048

_KEY_SETTINGS = {"openai": "OPENAI_API_KEY", "groq": "GROQ_API_KEY"}


def _openai(*, model, temperature, api_key, json_mode, max_tokens, **_) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    extra: dict[str, Any] = {}
    if json_mode:
        extra["model_kwargs"] = {"response_format": {"type": "json_object"}}
    if max_tokens is not None:
        extra["max_tokens"] = max_tokens
    return ChatOpenAI(model=model, temperature=temperature, api_key=api_key, **extra)


def _groq(*, model, temperature, api_key, json_mode, max_tokens, **_) -> BaseChatModel:
    from langchain_groq import ChatGroq

    extra: dict[str, Any] = {}
    if json_mode:
        extra["model_kwargs"] = {"response_format": {"type": "json_object"}}
    return ChatGroq(
        model=model,
        temperature=temperature,
        api_key=api_key,
        max_tokens=max_tokens or GROQ_DEFAULT_MAX_TOKENS,
        **extra,
    )


def _ollama(*, model, temperature, base_url, json_mode, **_) -> BaseChatModel:
    from langchain_ollama import ChatOllama

    return ChatOllama(
        model=model,
        temperature=temperature,
        base_url=base_url,
        format="json" if json_mode else None,
    )


_BUILDERS: dict[str, Callable[..., BaseChatModel]] = {
    "openai": _openai,
    "groq": _groq,
    "ollama": _ollama,
}

SUPPORTED_PROVIDERS = tuple(_BUILDERS)


def build_llm(
    *,
    provider: str,
    model: str,
    temperature: float = 0,
    ollama_base_url: str = "http://localhost:11434/",
    openai_api_key: str = "",
    groq_api_key: str = "",
    json_mode: bool = False,
    max_tokens: Optional[int] = None,
) -> BaseChatModel:
    """Build the chat model for the given provider.

    Args:
        provider: One of SUPPORTED_PROVIDERS (case-insensitive).
        model: A vision-capable model name for that provider.
        temperature: Sampling temperature.
        ollama_base_url: Ollama server URL (provider="ollama" only).
        openai_api_key: API key for OpenAI.
        groq_api_key: API key for Groq.
        json_mode: Ask the provider for a single JSON object reply.
        max_tokens: Reply token limit. Groq defaults to GROQ_DEFAULT_MAX_TOKENS.

    Raises:
        ValueError: Unknown provider, or its API key is missing. The message
            names the setting to fix and is shown to the user as-is.
    """
    provider = provider.lower().strip()
    builder = _BUILDERS.get(provider)
    if builder is None:
        raise ValueError(
            f"Unsupported LLM_PROVIDER: '{provider}'. "
            f"Must be one of: {', '.join(SUPPORTED_PROVIDERS)}."
        )

    api_key = {"openai": openai_api_key, "groq": groq_api_key}.get(provider, "")
    if provider in _KEY_SETTINGS and not api_key:
        raise ValueError(
            f"{_KEY_SETTINGS[provider]} is required when LLM_PROVIDER='{provider}'"
        )

    logger.info(
        "Building %s chat model (model=%s, json_mode=%s)", provider, model, json_mode,
    )
    return builder(
        model=model,
        temperature=temperature,
        api_key=api_key,
        base_url=ollama_base_url,
        json_mode=json_mode,
        max_tokens=max_tokens,
    )
