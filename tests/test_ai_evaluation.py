"""Tests for the AI evaluation module."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from core.ai_evaluation import (
    DEFAULT_MODEL,
    MAX_RETRIES,
    SYSTEM_PROMPT,
    architecture_payload,
    evaluate_remote,
    evaluate_with_ai,
    evaluate_with_claude,
    parse_model_reply,
    transform_result,
)
from core.catalog import Parameter
from core.exceptions import AIEvaluationError, AIUnavailableError, DomainValidationError

if TYPE_CHECKING:
    from core.schemas.diagram import Architecture

REPLY = {"heuristic_scores": {"LATENCY": 8, "COST": 6.5, "AVAILABILITY": 7}, "suggestion": "Add a read replica."}


class _FakeRateLimitError(Exception):
    """Stand-in for anthropic.RateLimitError, which needs an HTTP response to build."""


def _claude_client(*texts: str | Exception) -> MagicMock:
    """Build a mock AsyncAnthropic client whose create() yields ``texts`` in order."""
    side_effects = []
    for item in texts:
        if isinstance(item, Exception):
            side_effects.append(item)
            continue
        block = MagicMock()
        block.text = item
        response = MagicMock()
        response.content = [block]
        side_effects.append(response)

    mock_client = MagicMock()
    mock_client.messages.create = AsyncMock(side_effect=side_effects)
    return mock_client


class TestTransform:
    """Tests for turning evaluator replies into results."""

    def test_system_prompt_lists_every_parameter(self) -> None:
        """The model is asked to score every parameter."""
        for parameter in Parameter:
            assert parameter.value in SYSTEM_PROMPT
        assert "claude" in DEFAULT_MODEL

    def test_payload_fields(self, web_architecture: Architecture) -> None:
        """Only identity and graph fields are sent to the evaluator."""
        payload = architecture_payload(web_architecture)
        assert set(payload) == {"id", "name", "components", "links"}
        assert payload["links"][0]["sourceId"] == "client"

    def test_transform_result(self, web_architecture: Architecture) -> None:
        """The overall score is the mean of the heuristic scores."""
        result = transform_result(REPLY, web_architecture)

        assert result.overall_score == 7.17
        assert result.parameter_scores == {"LATENCY": 8.0, "COST": 6.5, "AVAILABILITY": 7.0}
        assert result.insights == ["Add a read replica."]
        assert result.component_count == 5
        assert result.link_count == 4
        assert result.is_ai_mode
        assert result.model_dump(by_alias=True)["isAiMode"] is True

    def test_transform_skips_non_numeric_scores(self, web_architecture: Architecture) -> None:
        """Unparseable scores are ignored; no scores means a zero overall score."""
        result = transform_result({"heuristic_scores": {"LATENCY": "fast", "COST": "4"}}, web_architecture)
        assert result.parameter_scores == {"COST": 4.0}
        assert result.insights == []

        assert transform_result({}, web_architecture).overall_score == 0.0

    def test_parse_model_reply_with_fences(self) -> None:
        """Code fences and surrounding prose are tolerated."""
        text = "```json\n" + json.dumps(REPLY) + "\n```"
        assert parse_model_reply(text) == REPLY
        assert parse_model_reply("Here you go: " + json.dumps(REPLY)) == REPLY

    def test_parse_model_reply_rejects_garbage(self) -> None:
        """Replies without a JSON object raise AIEvaluationError."""
        with pytest.raises(AIEvaluationError, match="did not contain a JSON object"):
            parse_model_reply("I cannot grade this.")
        with pytest.raises(AIEvaluationError, match="not valid JSON"):
            parse_model_reply("{heuristic_scores: }")


class TestEvaluateWithClaude:
    """Tests for the Claude-backed evaluator."""

    @pytest.mark.asyncio
    async def test_evaluates_with_mock(self, web_architecture: Architecture) -> None:
        """Should send the question and architecture and parse the JSON reply."""
        mock_client = _claude_client(json.dumps(REPLY))

        with patch("core.ai_evaluation.anthropic") as mock_anthropic:
            mock_anthropic.AsyncAnthropic.return_value = mock_client
            result = await evaluate_with_claude("fake-key", "Design an online shop", web_architecture)

        assert result == REPLY
        mock_anthropic.AsyncAnthropic.assert_called_once_with(api_key="fake-key")
        call_kwargs = mock_client.messages.create.call_args[1]
        assert call_kwargs["model"] == DEFAULT_MODEL
        assert call_kwargs["system"] == SYSTEM_PROMPT
        content = call_kwargs["messages"][0]["content"]
        assert "Design an online shop" in content
        assert "Orders API" in content

    @pytest.mark.asyncio
    async def test_retries_on_rate_limit(self, web_architecture: Architecture) -> None:
        """Rate-limited calls are retried with exponential backoff."""
        mock_client = _claude_client(_FakeRateLimitError("429"), json.dumps(REPLY))

        with (
            patch("core.ai_evaluation.anthropic") as mock_anthropic,
            patch("core.ai_evaluation._RateLimitError", _FakeRateLimitError),
            patch("core.ai_evaluation.asyncio.sleep", new_callable=AsyncMock) as mock_sleep,
        ):
            mock_anthropic.AsyncAnthropic.return_value = mock_client
            result = await evaluate_with_claude("fake-key", "Design a chat app", web_architecture)

        assert result == REPLY
        assert mock_client.messages.create.await_count == 2
        mock_sleep.assert_awaited_once_with(2)

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, web_architecture: Architecture) -> None:
        """Persistent rate limiting ends in AIEvaluationError."""
        mock_client = _claude_client(*[_FakeRateLimitError("429") for _ in range(MAX_RETRIES)])

        with (
            patch("core.ai_evaluation.anthropic") as mock_anthropic,
            patch("core.ai_evaluation._RateLimitError", _FakeRateLimitError),
            patch("core.ai_evaluation.asyncio.sleep", new_callable=AsyncMock) as mock_sleep,
        ):
            mock_anthropic.AsyncAnthropic.return_value = mock_client
            with pytest.raises(AIEvaluationError, match="Rate limit exceeded"):
                await evaluate_with_claude("fake-key", "Design a chat app", web_architecture)

        assert mock_client.messages.create.await_count == MAX_RETRIES
        assert [call.args[0] for call in mock_sleep.await_args_list] == [2, 4]

    @pytest.mark.asyncio
    async def test_api_failure_is_wrapped(self, web_architecture: Architecture) -> None:
        """Unexpected client errors become AIEvaluationError."""
        mock_client = _claude_client(RuntimeError("connection reset"))

        with patch("core.ai_evaluation.anthropic") as mock_anthropic:
            mock_anthropic.AsyncAnthropic.return_value = mock_client
            with pytest.raises(AIEvaluationError, match="AI evaluation failed: connection reset"):
                await evaluate_with_claude("fake-key", "Design a chat app", web_architecture)

    @pytest.mark.asyncio
    async def test_unusable_reply_is_not_retried(self, web_architecture: Architecture) -> None:
        """A reply without JSON fails immediately."""
        mock_client = _claude_client("Sorry, no.")

        with patch("core.ai_evaluation.anthropic") as mock_anthropic:
            mock_anthropic.AsyncAnthropic.return_value = mock_client
            with pytest.raises(AIEvaluationError, match="did not contain a JSON object"):
                await evaluate_with_claude("fake-key", "Design a chat app", web_architecture)

        assert mock_client.messages.create.await_count == 1


class TestEvaluateRemote:
    """Tests for the remote evaluator client."""

    @pytest.mark.asyncio
    async def test_posts_question_and_architecture(self, web_architecture: Architecture) -> None:
        """The evaluator receives the question and architecture and its JSON is returned."""
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json=REPLY)

        result = await evaluate_remote(
            "http://evaluator.test/evaluate",
            "Design a shop",
            web_architecture,
            transport=httpx.MockTransport(handler),
        )

        assert result == REPLY
        assert seen[0]["question"] == "Design a shop"
        assert seen[0]["architecture"]["name"] == "Web Stack"

    @pytest.mark.asyncio
    async def test_http_error(self, web_architecture: Architecture) -> None:
        """Non-2xx replies raise AIEvaluationError with the status."""
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(AIEvaluationError, match="AI evaluation failed: 500"):
            await evaluate_remote("http://evaluator.test/evaluate", "Q", web_architecture, transport=transport)

    @pytest.mark.asyncio
    async def test_non_json_and_non_object(self, web_architecture: Architecture) -> None:
        """Bodies that are not a JSON object are rejected."""
        not_json = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        a_list = httpx.MockTransport(lambda request: httpx.Response(200, json=[1, 2]))

        with pytest.raises(AIEvaluationError, match="AI evaluation failed"):
            await evaluate_remote("http://evaluator.test/evaluate", "Q", web_architecture, transport=not_json)
        with pytest.raises(AIEvaluationError, match="unexpected payload"):
            await evaluate_remote("http://evaluator.test/evaluate", "Q", web_architecture, transport=a_list)


class TestEvaluateWithAI:
    """Tests for backend selection."""

    @pytest.mark.asyncio
    async def test_not_configured(self, web_architecture: Architecture) -> None:
        """Without a key or URL the evaluator is unavailable."""
        with pytest.raises(AIUnavailableError, match="not configured"):
            await evaluate_with_ai("Design a shop", web_architecture)

    @pytest.mark.asyncio
    async def test_blank_question(self, web_architecture: Architecture) -> None:
        """A question is required."""
        with pytest.raises(DomainValidationError):
            await evaluate_with_ai("   ", web_architecture, claude_api_key="fake-key")

    @pytest.mark.asyncio
    async def test_prefers_claude(self, web_architecture: Architecture) -> None:
        """Claude is used when a key is configured, even if a URL is set too."""
        with (
            patch("core.ai_evaluation.evaluate_with_claude", new_callable=AsyncMock, return_value=REPLY) as claude,
            patch("core.ai_evaluation.evaluate_remote", new_callable=AsyncMock) as remote,
        ):
            result = await evaluate_with_ai(
                "Design a shop", web_architecture, claude_api_key="fake-key", evaluator_url="http://evaluator.test"
            )

        claude.assert_awaited_once_with("fake-key", "Design a shop", web_architecture)
        remote.assert_not_awaited()
        assert result.overall_score == 7.17

    @pytest.mark.asyncio
    async def test_falls_back_to_remote(self, web_architecture: Architecture) -> None:
        """The remote evaluator is used when no key is configured."""
        with patch("core.ai_evaluation.evaluate_remote", new_callable=AsyncMock, return_value=REPLY) as remote:
            result = await evaluate_with_ai(
                "Design a shop", web_architecture, evaluator_url="http://evaluator.test", timeout=5
            )

        remote.assert_awaited_once_with("http://evaluator.test", "Design a shop", web_architecture, timeout=5)
        assert result.insights == ["Add a read replica."]
