"""Tests for Settings."""

from vitalscope.infrastructure.config import Settings


class TestSettings:
    """Tests for defaults and environment loading."""

    def test_defaults(self):
        """Test the documented defaults."""
        settings = Settings()
        assert settings.llm_provider == "openai"
        assert settings.history_limit == 20
        assert settings.storage_quota_bytes == 5 * 1024 * 1024
        assert settings.profile_key == "vitalscope_profile"
        assert settings.history_key == "vitalscope_history"
        assert not settings.require_consent_on_edit

    def test_active_model_follows_provider(self):
        """Test that only the selected provider's model is used."""
        assert Settings(llm_provider="groq", llm_model_groq="g").active_llm_model == "g"
        assert Settings(llm_provider="ollama", llm_model_ollama="o").active_llm_model == "o"
        assert Settings(llm_model_openai="x").active_llm_model == "x"

    def test_from_env(self, monkeypatch, tmp_path):
        """Test that environment variables override defaults."""
        monkeypatch.setenv("LLM_PROVIDER", "GROQ")
        monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
        monkeypatch.setenv("HISTORY_LIMIT", "5")
        monkeypatch.setenv("STORAGE_KEY_PREFIX", "demo")
        monkeypatch.setenv("REQUIRE_CONSENT_ON_EDIT", "yes")
        monkeypatch.setenv("ANALYSIS_TIMEOUT", "12.5")
        monkeypatch.setenv("DB_PATH", "")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings.from_env(tmp_path / "missing.env")

        assert settings.llm_provider == "groq"
        assert settings.groq_api_key == "gsk-test"
        assert settings.history_limit == 5
        assert settings.history_key == "demo_history"
        assert settings.require_consent_on_edit
        assert settings.analysis_timeout == 12.5
        assert settings.db_path == ""
        assert settings.log_level == "DEBUG"

    def test_env_file_is_loaded(self, monkeypatch, tmp_path):
        """Test that a .env file fills unset variables."""
        monkeypatch.delenv("RESPONSE_LANGUAGE", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("RESPONSE_LANGUAGE=Japanese\n")

        settings = Settings.from_env(env_file)

        assert settings.response_language == "Japanese"
