"""Tests for the agent-backed generate capability.

Agents are replaced by a factory returning fakes, so these tests cover the
timeout, retry and error mapping without a model provider.
"""

import asyncio
from types import SimpleNamespace

import pytest

from sportello.agents.utils.prompt_loader import PromptLoadError
from sportello.workflow.agent_runner import (
    AgentGenerator,
    GenerationError,
    _is_token_limit_error,
    _is_transient_error,
)


class FakeAgent:
    """Agent whose ``invoke_async`` replays outcomes in order."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.prompts = []

    async def invoke_async(self, prompt):
        self.prompts.append(prompt)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome == "hang":
            await asyncio.sleep(10)
        return SimpleNamespace(message={"content": [{"text": outcome}]})


class FakeFactory:
    def __init__(self, agent):
        self.agent = agent
        self.calls = []

    def __call__(self, role, **kwargs):
        self.calls.append((role, kwargs))
        return self.agent


def make_generator(outcomes, **kwargs):
    factory = FakeFactory(FakeAgent(outcomes))
    kwargs.setdefault("retry_delay", 0)
    return AgentGenerator(agent_factory=factory, **kwargs), factory


class TestAgentGenerator:
    @pytest.mark.asyncio
    async def test_returns_text(self):
        generate, factory = make_generator(["<html></html>"])
        assert await generate("builder", "build it") == "<html></html>"
        assert factory.agent.prompts == ["build it"]

    @pytest.mark.asyncio
    async def test_forwards_max_tokens_and_trace_attributes(self):
        generate, factory = make_generator(["ok"], trace_attributes={"build.id": "build-1"})
        await generate("builder", "script please", max_tokens=8000)
        role, kwargs = factory.calls[0]
        assert role == "builder"
        assert kwargs == {"max_tokens_override": 8000, "trace_attributes": {"build.id": "build-1"}}

    @pytest.mark.asyncio
    async def test_timeout(self):
        generate, _ = make_generator(["hang"], timeout=0.01)
        with pytest.raises(GenerationError) as exc_info:
            await generate("architect", "plan")
        assert exc_info.value.timed_out
        assert exc_info.value.role == "architect"

    @pytest.mark.asyncio
    async def test_transient_error_retried(self):
        generate, factory = make_generator([ConnectionError("connection reset by peer"), "done"])
        assert await generate("scribe", "docs") == "done"
        assert len(factory.agent.prompts) == 2

    @pytest.mark.asyncio
    async def test_transient_retries_are_bounded(self):
        error = ConnectionError("Response ended prematurely")
        generate, factory = make_generator([error, error, error, "never"])
        with pytest.raises(GenerationError):
            await generate("builder", "build")
        assert len(factory.agent.prompts) == 3

    @pytest.mark.asyncio
    async def test_non_transient_error_not_retried(self):
        generate, factory = make_generator([ValueError("invalid model id"), "never"])
        with pytest.raises(GenerationError, match="invalid model id"):
            await generate("builder", "build")
        assert len(factory.agent.prompts) == 1

    @pytest.mark.asyncio
    async def test_token_limit_gets_friendly_message(self):
        generate, _ = make_generator([RuntimeError("Input is too long for requested model")])
        with pytest.raises(GenerationError, match="Token limit exceeded for builder"):
            await generate("builder", "build")

    @pytest.mark.asyncio
    async def test_empty_output(self):
        generate, _ = make_generator(["<thinking>hmm</thinking>"])
        with pytest.raises(GenerationError, match="empty output"):
            await generate("scribe", "docs")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [ValueError("Unknown agent name: poet"), PromptLoadError("missing prompt")]
    )
    async def test_agent_creation_failure(self, error):
        def factory(role, **kwargs):
            raise error

        generate = AgentGenerator(agent_factory=factory)
        with pytest.raises(GenerationError, match="could not create agent"):
            await generate("poet", "write")


class TestErrorClassification:
    def test_transient_found_in_cause_chain(self):
        try:
            try:
                raise ConnectionError("Connection reset by peer")
            except ConnectionError as inner:
                raise RuntimeError("event loop failed") from inner
        except RuntimeError as outer:
            assert _is_transient_error(outer)

    def test_not_transient(self):
        assert not _is_transient_error(ValueError("bad request"))

    @pytest.mark.parametrize("message", ["maxTokens reached", "context_length_exceeded"])
    def test_token_limit(self, message):
        assert _is_token_limit_error(RuntimeError(message))
