"""
infrastructure.llm.analysis_gateway - Multimodal LLM product analysis.

Implements AnalysisGatewayPort using LangChain. The LLM provider (openai /
groq / ollama) is controlled by the centralized LLM_PROVIDER setting and
must be a vision-capable model.

One request, one response: no streaming, no retries. A missing API key is a
ConfigurationError whose message is shown to the user as-is. Everything
else that goes wrong (transport, empty reply, invalid JSON, schema mismatch,
timeout) is logged in full and surfaced as an AnalysisServiceError carrying
a fixed, user-facing message.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence

from langchain_core.exceptions import OutputParserException
from langchain_core.language_models import BaseChatModel
from langchain_core.output_parsers import JsonOutputParser
from pydantic import ValidationError

from vitalscope.domain.exceptions import (
    AnalysisServiceError,
    ConfigurationError,
    ProfileNotConfiguredError,
)
from vitalscope.domain.models import AnalysisResult, EncodedImage, Profile, is_configured
from vitalscope.infrastructure.llm.llm_builder import build_llm
from vitalscope.infrastructure.llm.prompt import build_messages
from vitalscope.infrastructure.llm.schema import AnalysisPayload

logger = logging.getLogger(__name__)

SERVICE_ERROR_MESSAGE = (
    "An error occurred during analysis. Please wait a moment and try again."
)


class LLMAnalysisGateway:
    """Implements AnalysisGatewayPort with a LangChain chat model.

    The model is built on first use, so a missing credential fails the scan
    attempt (ConfigurationError) instead of application startup.
    """

    def __init__(
        self,
        *,
        provider: str = "openai",
        model: str = "gpt-4.1-mini",
        ollama_base_url: str = "http://localhost:11434/",
        openai_api_key: str = "",
        groq_api_key: str = "",
        timeout: float = 0.0,
        response_language: str = "English",
        llm: Optional[BaseChatModel] = None,
    ):
        self._provider = provider
        self._model = model
        self._ollama_base_url = ollama_base_url
        self._openai_api_key = openai_api_key
        self._groq_api_key = groq_api_key
        self._timeout = timeout
        self._response_language = response_language
        self._llm = llm
        self._parser = JsonOutputParser(pydantic_object=AnalysisPayload)

    async def analyze(
        self, profile: Profile, images: Sequence[EncodedImage],
    ) -> AnalysisResult:
        """Send the profile and images in one request and validate the reply."""
        if not images:
            raise ValueError("At least one image is required for analysis")
        if not is_configured(profile):
            raise ProfileNotConfiguredError("Profile must be configured before analysis")

        llm = self._get_llm()
        messages = build_messages(
            profile,
            images,
            self._parser.get_format_instructions(),
            self._response_language,
        )

        logger.info(
            "Requesting analysis from %s (%s) with %d image(s)",
            self._provider, self._model, len(images),
        )
        loop = asyncio.get_event_loop()
        call = loop.run_in_executor(None, llm.invoke, messages)
        try:
            if self._timeout > 0:
                response = await asyncio.wait_for(call, timeout=self._timeout)
            else:
                response = await call
        except asyncio.TimeoutError as e:
            logger.error("Analysis timed out after %.1fs", self._timeout)
            raise AnalysisServiceError(SERVICE_ERROR_MESSAGE) from e
        except Exception as e:
            logger.error("Analysis request failed: %s", e)
            raise AnalysisServiceError(SERVICE_ERROR_MESSAGE) from e

        return self._parse(_message_text(response.content))

    def _get_llm(self) -> BaseChatModel:
        if self._llm is None:
            try:
                self._llm = build_llm(
                    provider=self._provider,
                    model=self._model,
                    temperature=0,
                    json_mode=True,
                    ollama_base_url=self._ollama_base_url,
                    openai_api_key=self._openai_api_key,
                    groq_api_key=self._groq_api_key,
                )
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
        return self._llm

    def _parse(self, text: str) -> AnalysisResult:
        if not text.strip():
            logger.error("Analysis service returned an empty response")
            raise AnalysisServiceError(SERVICE_ERROR_MESSAGE)
        try:
            data = self._parser.parse(text)
            payload = AnalysisPayload.model_validate(data)
        except (OutputParserException, ValidationError) as e:
            logger.error("Malformed analysis response: %s", e)
            raise AnalysisServiceError(SERVICE_ERROR_MESSAGE) from e

        result = payload.to_domain()
        logger.info(
            "Analysis complete (unclear=%s, calories=%s)",
            result.is_unclear, result.calorie_analysis is not None,
        )
        return result


def _message_text(content: Any) -> str:
    """Flatten chat message content (str or list of parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part if isinstance(part, str) else str(part.get("text", ""))
            for part in content
        )
    return str(content or "")
