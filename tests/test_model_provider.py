"""Tests for multi-provider LLM model factory."""

from unittest.mock import MagicMock

import pytest

from sportello.agents.utils.model_provider import (
    _PROVIDER_FACTORIES,
    LLMProvider,
    _create_openrouter,
    create_model,
    get_active_provider,
    get_model_id_for_tier,
)

# ---------------------------------------------------------------------------
# get_active_provider
# ---------------------------------------------------------------------------


class TestGetActiveProvider:
    def test_default_is_bedrock(self, monkeypatch):
        monkeypatch.delenv("LLM_PROVIDER", raising=False)
        assert get_active_provider() is LLMProvider.BEDROCK

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("bedrock", LLMProvider.BEDROCK),
            ("anthropic", LLMProvider.ANTHROPIC),
            ("openai", LLMProvider.OPENAI),
            ("openrouter", LLMProvider.OPENROUTER),
        ],
    )
    def test_each_provider(self, monkeypatch, value, expected):
        monkeypatch.setenv("LLM_PROVIDER", value)
        assert get_active_provider() is expected

    def test_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", " OpenRouter ")
        assert get_active_provider() is LLMProvider.OPENROUTER

    def test_invalid_raises(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "banana")
        with pytest.raises(ValueError, match="Unknown LLM_PROVIDER 'banana'"):
            get_active_provider()


# ---------------------------------------------------------------------------
# get_model_id_for_tier
# ---------------------------------------------------------------------------


class TestGetModelIdForTier:
    def test_provider_specific_env_var(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "anthropic")
        monkeypatch.setenv("ANTHROPIC_HEAVY_MODEL_ID", "my-custom-model")
        assert get_model_id_for_tier("heavy") == "my-custom-model"

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "openai")
        monkeypatch.delenv("OPENAI_LIGHT_MODEL_ID", raising=False)
        assert get_model_id_for_tier("light") == "gpt-4o-mini"

    def test_openrouter_defaults(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "openrouter")
        monkeypatch.delenv("OPENROUTER_HEAVY_MODEL_ID", raising=False)
        assert get_model_id_for_tier("heavy") == "moonshotai/kimi-k2.5"

    def test_reasoning_falls_back_to_heavy(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "anthropic")
        monkeypatch.delenv("ANTHROPIC_REASONING_MODEL_ID", raising=False)
        monkeypatch.setenv("ANTHROPIC_HEAVY_MODEL_ID", "heavy-model")
        assert get_model_id_for_tier("reasoning") == "heavy-model"

    def test_bedrock_env(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "bedrock")
        monkeypatch.setenv("BEDROCK_HEAVY_MODEL_ID", "anthropic.claude-v2")
        assert get_model_id_for_tier("heavy") == "anthropic.claude-v2"

    def test_invalid_tier_raises(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "anthropic")
        with pytest.raises(ValueError, match="Invalid tier 'mega'"):
            get_model_id_for_tier("mega")


# ---------------------------------------------------------------------------
# create_model
# ---------------------------------------------------------------------------


class TestCreateModel:
    def _patch_factory(self, monkeypatch, provider):
        """Replace the factory in the dispatch dict and return the mock."""
        mock = MagicMock(return_value=MagicMock())
        monkeypatch.setitem(_PROVIDER_FACTORIES, provider, mock)
        return mock

    def test_every_provider_has_a_factory(self):
        assert set(_PROVIDER_FACTORIES) == set(LLMProvider)

    def test_bedrock_dispatch(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "bedrock")
        mock = self._patch_factory(monkeypatch, LLMProvider.BEDROCK)
        create_model(model_id="some-model", max_tokens=1000)
        mock.assert_called_once()
        assert mock.call_args[1]["model_id"] == "some-model"
        assert mock.call_args[1]["max_tokens"] == 1000

    def test_anthropic_dispatch(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "anthropic")
        mock = self._patch_factory(monkeypatch, LLMProvider.ANTHROPIC)
        create_model(model_id="claude-sonnet-4-20250514", max_tokens=2000)
        mock.assert_called_once()
        assert mock.call_args[1]["model_id"] == "claude-sonnet-4-20250514"

    def test_openrouter_dispatch(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "openrouter")
        mock = self._patch_factory(monkeypatch, LLMProvider.OPENROUTER)
        create_model(model_id="z-ai/glm-4.6:exacto", max_tokens=16000, temperature=0.2)
        kwargs = mock.call_args[1]
        assert kwargs["model_id"] == "z-ai/glm-4.6:exacto"
        assert kwargs["temperature"] == 0.2

    def test_default_tier_resolution(self, monkeypatch):
        """When model_id is None, it resolves from tier + provider."""
        monkeypatch.setenv("LLM_PROVIDER", "bedrock")
        monkeypatch.setenv("BEDROCK_LIGHT_MODEL_ID", "resolved-model")
        mock = self._patch_factory(monkeypatch, LLMProvider.BEDROCK)
        create_model()
        assert mock.call_args[1]["model_id"] == "resolved-model"

    def test_max_tokens_from_env(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "bedrock")
        monkeypatch.setenv("DEFAULT_MAX_TOKENS", "8000")
        mock = self._patch_factory(monkeypatch, LLMProvider.BEDROCK)
        create_model(model_id="test-model")
        assert mock.call_args[1]["max_tokens"] == 8000


class TestOpenRouter:
    def test_missing_api_key_raises(self, monkeypatch):
        pytest.importorskip("openai")
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        with pytest.raises(ValueError, match="OPENROUTER_API_KEY"):
            _create_openrouter(
                model_id="moonshotai/kimi-k2.5", max_tokens=100, streaming=False, temperature=0.7
            )
