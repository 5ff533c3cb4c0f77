"""Tests for prompt loading and config-driven agent creation."""

from unittest.mock import MagicMock

import pytest

from sportello.agents.factory import agent_factory
from sportello.agents.utils.prompt_loader import (
    AVAILABLE_AGENTS,
    PromptLoadError,
    _normalize_agent_name,
    clear_prompt_cache,
    load_agent_prompt,
)
from sportello.config import TOKENS_SCRIPT


class TestPromptLoader:
    @pytest.fixture(autouse=True)
    def _fresh_cache(self):
        clear_prompt_cache()
        yield
        clear_prompt_cache()

    @pytest.mark.parametrize("name", ["builder", "builder_agent", "worker_builder"])
    def test_normalize(self, name):
        assert _normalize_agent_name(name) == "worker_builder"

    @pytest.mark.parametrize("name", AVAILABLE_AGENTS)
    def test_every_shipped_prompt_loads(self, name):
        assert load_agent_prompt(name).strip()

    def test_aliases_share_the_cache(self):
        assert load_agent_prompt("scribe") is load_agent_prompt("worker_scribe")

    def test_missing_prompt(self):
        with pytest.raises(PromptLoadError, match="Prompt file not found"):
            load_agent_prompt("narrator")


class TestCreateAgentByName:
    @pytest.fixture
    def fakes(self, monkeypatch):
        agent_cls = MagicMock(name="Agent")
        model_factory = MagicMock(name="create_model")
        monkeypatch.setattr(agent_factory, "Agent", agent_cls)
        monkeypatch.setattr(agent_factory, "create_model", model_factory)
        monkeypatch.setattr(agent_factory, "load_agent_prompt", lambda key: f"prompt:{key}")
        return agent_cls, model_factory

    def test_unknown_name(self, fakes):
        with pytest.raises(ValueError, match="Unknown agent name"):
            agent_factory.create_agent_by_name("narrator")

    def test_builds_agent_from_config(self, fakes):
        agent_cls, model_factory = fakes

        agent_factory.create_agent_by_name(
            "builder", model_id="test-model", trace_attributes={"build.id": "build-1"}
        )

        model_kwargs = model_factory.call_args.kwargs
        assert model_kwargs["model_id"] == "test-model"
        assert model_kwargs["read_timeout"] == 600.0
        agent_kwargs = agent_cls.call_args.kwargs
        assert agent_kwargs["system_prompt"] == "prompt:worker_builder"
        assert agent_kwargs["name"] == "builder_agent"
        assert agent_kwargs["callback_handler"] is None
        assert agent_kwargs["trace_attributes"] == {
            "agent.name": "builder",
            "build.id": "build-1",
        }
        assert agent_kwargs["hooks"][0].role == "builder"

    def test_max_tokens_override(self, fakes):
        _, model_factory = fakes
        agent_factory.create_agent_by_name(
            "builder", model_id="test-model", max_tokens_override=TOKENS_SCRIPT
        )
        assert model_factory.call_args.kwargs["max_tokens"] == TOKENS_SCRIPT

    def test_model_id_resolved_from_tier(self, fakes, monkeypatch):
        _, model_factory = fakes
        monkeypatch.setenv("LLM_PROVIDER", "anthropic")
        monkeypatch.setenv("ANTHROPIC_REASONING_MODEL_ID", "reviewer-model")
        agent_factory.create_agent_by_name("tester")
        assert model_factory.call_args.kwargs["model_id"] == "reviewer-model"
        assert model_factory.call_args.kwargs["temperature"] == 0.3
