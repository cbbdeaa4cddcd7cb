"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from environment or passed
explicitly in tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for VitalScope.

    No module-level globals: construct via from_env() or pass explicitly
    in tests.
    """
    # ── Centralized LLM Provider ────────────────────────────────
    # One setting controls the analysis model. Allowed: "openai", "groq", "ollama".
    # The chosen model must accept image input.
    llm_provider: str = "openai"

    # Model names — only the one matching llm_provider is used.
    llm_model_openai: str = "gpt-4.1-mini"
    llm_model_groq: str = "meta-llama/llama-4-scout-17b-16e-instruct"
    llm_model_ollama: str = "llama3.2-vision"

    # Connection details
    ollama_base_url: str = "http://localhost:11434/"
    openai_api_key: str = ""
    groq_api_key: str = ""

    # Seconds to wait for the analysis service; 0 waits indefinitely.
    analysis_timeout: float = 0.0
    response_language: str = "English"

    # Device-local storage. Empty db_path keeps everything in memory.
    db_path: str = str(Path.home() / ".vitalscope" / "vitalscope.db")
    storage_quota_bytes: int = 5 * 1024 * 1024
    storage_key_prefix: str = "vitalscope"
    history_limit: int = 20

    # Re-show consent when editing a profile that is already configured.
    require_consent_on_edit: bool = False

    log_level: str = "WARNING"

    @property
    def active_llm_model(self) -> str:
        """Return the model name for the currently active LLM provider."""
        if self.llm_provider == "groq":
            return self.llm_model_groq
        elif self.llm_provider == "ollama":
            return self.llm_model_ollama
        return self.llm_model_openai

    @property
    def profile_key(self) -> str:
        return f"{self.storage_key_prefix}_profile"

    @property
    def history_key(self) -> str:
        return f"{self.storage_key_prefix}_history"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> Settings:
        """Build Settings from the environment (and a .env file if present)."""
        from dotenv import load_dotenv
        load_dotenv(env_file)

        defaults = cls()
        return cls(
            llm_provider=os.getenv("LLM_PROVIDER", defaults.llm_provider).lower(),
            llm_model_openai=os.getenv("LLM_MODEL_OPENAI", defaults.llm_model_openai),
            llm_model_groq=os.getenv("LLM_MODEL_GROQ", defaults.llm_model_groq),
            llm_model_ollama=os.getenv("LLM_MODEL_OLLAMA", defaults.llm_model_ollama),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", defaults.ollama_base_url),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            analysis_timeout=float(os.getenv("ANALYSIS_TIMEOUT", "0")),
            response_language=os.getenv("RESPONSE_LANGUAGE", defaults.response_language),
            db_path=os.getenv("DB_PATH", defaults.db_path),
            storage_quota_bytes=int(
                os.getenv("STORAGE_QUOTA_BYTES", str(defaults.storage_quota_bytes))
            ),
            storage_key_prefix=os.getenv("STORAGE_KEY_PREFIX", defaults.storage_key_prefix),
            history_limit=int(os.getenv("HISTORY_LIMIT", str(defaults.history_limit))),
            require_consent_on_edit=_env_bool("REQUIRE_CONSENT_ON_EDIT"),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )
