"""Tests for the LLM gateway client."""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest
from openai import APIStatusError

from app.domain.exceptions import (
    LLMException,
    LLMPaymentRequiredException,
    LLMRateLimitException,
)
from app.infrastructure.llm.client import LLMClient
from app.infrastructure.llm.models import StatusReport, TaskPrioritization, TaskPriority


def gateway_error(status_code: int) -> APIStatusError:
    request = httpx.Request("POST", "https://gateway.test/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    return APIStatusError("gateway error", response=response, body=None)


class TestLLMClient:
    """Test cases for LLMClient."""

    @pytest.fixture
    def llm_client(self):
        """Create LLM client for testing."""
        client = LLMClient()
        client.base_delay = 0
        return client

    def test_llm_client_initialization(self):
        """Test LLM client defaults."""
        client = LLMClient()
        assert client.client is None
        assert client.max_retries == 2
        assert client.base_delay == 1.0

    @pytest.mark.asyncio
    async def test_initialize_success(self, llm_client):
        """Test successful LLM client initialization."""
        with patch("app.infrastructure.llm.client.ChatOpenAI") as mock_openai:
            mock_client = Mock()
            mock_openai.return_value = mock_client

            await llm_client.initialize()

            assert llm_client.client == mock_client
            assert mock_openai.call_args.kwargs["max_retries"] == 0

    @pytest.mark.asyncio
    async def test_initialize_missing_api_key(self, llm_client):
        """Test initialization without API key."""
        with patch("app.infrastructure.llm.client.settings") as mock_settings:
            mock_settings.openai_api_key = None

            with pytest.raises(LLMException, match="API key not configured"):
                await llm_client.initialize()

    @pytest.mark.asyncio
    async def test_initialize_error(self, llm_client):
        """Test initialization error handling."""
        with patch("app.infrastructure.llm.client.ChatOpenAI") as mock_openai:
            mock_openai.side_effect = Exception("Connection error")

            with pytest.raises(LLMException, match="LLM client initialization failed"):
                await llm_client.initialize()

    @pytest.mark.asyncio
    async def test_calls_before_initialize_fail(self, llm_client):
        """Uninitialized clients raise instead of calling the gateway."""
        with pytest.raises(LLMException, match="not initialized"):
            await llm_client.chat("system", "hello")

        with pytest.raises(LLMException, match="not initialized"):
            await llm_client.prioritize_tasks("[]")


class TestChat:
    @pytest.fixture
    def llm_client(self):
        client = LLMClient()
        client.client = Mock()
        return client

    @pytest.mark.asyncio
    async def test_history_window(self, llm_client):
        """Only the last messages of the conversation follow the system prompt."""
        reply = Mock(content="Two projects are red.")
        llm_client._invoke_chain_with_retry = AsyncMock(return_value=reply)
        history = [
            {"role": "user" if i % 2 == 0 else "assistant", "content": f"m{i}"}
            for i in range(8)
        ]

        answer = await llm_client.chat("You are a PMO assistant", "What is red?", history)

        assert answer == "Two projects are red."
        messages = llm_client._invoke_chain_with_retry.call_args.args[1]
        assert messages[0].type == "system"
        assert messages[0].content == "You are a PMO assistant"
        assert [m.content for m in messages[1:]] == ["m3", "m4", "m5", "m6", "m7", "What is red?"]
        assert messages[1].type == "ai"
        assert messages[-1].type == "human"

    @pytest.mark.asyncio
    async def test_error_propagates(self, llm_client):
        llm_client._invoke_chain_with_retry = AsyncMock(side_effect=LLMRateLimitException())

        with pytest.raises(LLMRateLimitException):
            await llm_client.chat("system", "hello")


class TestStructuredOutput:
    @pytest.fixture
    def llm_client(self):
        client = LLMClient()
        client.client = Mock()
        return client

    @pytest.mark.asyncio
    async def test_prioritize_tasks(self, llm_client):
        expected = TaskPrioritization(
            prioritized_tasks=[TaskPriority(id="t1", priority_score=80, sentiment="😟")]
        )
        llm_client._invoke_chain_with_retry = AsyncMock(return_value=expected)

        with patch("app.infrastructure.llm.client.metrics") as mock_metrics:
            result = await llm_client.prioritize_tasks('[{"id": "t1"}]')

        assert result == expected
        llm_client.client.with_structured_output.assert_called_once_with(
            TaskPrioritization, method="function_calling"
        )
        assert llm_client._invoke_chain_with_retry.call_args.args[1] == {
            "tasks": '[{"id": "t1"}]'
        }
        mock_metrics.record_ai_request.assert_called_once()
        assert mock_metrics.record_ai_request.call_args.args[:2] == (
            "prioritize_tasks",
            "success",
        )

    @pytest.mark.asyncio
    async def test_status_report_inputs(self, llm_client):
        llm_client._invoke_chain_with_retry = AsyncMock(
            return_value=StatusReport(summary="ok")
        )

        await llm_client.generate_status_report("{}", "[]", "[]", "[]")

        assert set(llm_client._invoke_chain_with_retry.call_args.args[1]) == {
            "project",
            "tasks",
            "risks",
            "milestones",
        }

    @pytest.mark.asyncio
    async def test_missing_tool_call(self, llm_client):
        llm_client._invoke_chain_with_retry = AsyncMock(return_value=None)

        with pytest.raises(LLMException, match="No tool call"):
            await llm_client.predict_milestones("[]")

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped(self, llm_client):
        llm_client._invoke_chain_with_retry = AsyncMock(side_effect=ValueError("bad json"))

        with pytest.raises(LLMException, match="forecast_risks failed"):
            await llm_client.forecast_risks("[]", "[]", 0, 0)

    @pytest.mark.asyncio
    async def test_gateway_errors_keep_their_type(self, llm_client):
        llm_client._invoke_chain_with_retry = AsyncMock(
            side_effect=LLMPaymentRequiredException()
        )

        with pytest.raises(LLMPaymentRequiredException):
            await llm_client.portfolio_insights("{}")


class TestRetry:
    @pytest.fixture
    def llm_client(self):
        client = LLMClient()
        client.max_retries = 3
        client.base_delay = 0
        return client

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, llm_client):
        chain = Mock()
        chain.ainvoke = AsyncMock(side_effect=[Exception("timeout"), "done"])

        result = await llm_client._invoke_chain_with_retry(chain, {})

        assert result == "done"
        assert chain.ainvoke.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, llm_client):
        chain = Mock()
        chain.ainvoke = AsyncMock(side_effect=Exception("timeout"))

        with pytest.raises(LLMException, match="after 3 attempts"):
            await llm_client._invoke_chain_with_retry(chain, {})

        assert chain.ainvoke.await_count == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status_code,exception",
        [(429, LLMRateLimitException), (402, LLMPaymentRequiredException)],
    )
    async def test_gateway_refusals_are_not_retried(
        self, llm_client, status_code, exception
    ):
        chain = Mock()
        chain.ainvoke = AsyncMock(side_effect=gateway_error(status_code))

        with pytest.raises(exception):
            await llm_client._invoke_chain_with_retry(chain, {})

        assert chain.ainvoke.await_count == 1

    @pytest.mark.asyncio
    async def test_other_status_codes_are_retried(self, llm_client):
        chain = Mock()
        chain.ainvoke = AsyncMock(side_effect=gateway_error(500))

        with pytest.raises(LLMException):
            await llm_client._invoke_chain_with_retry(chain, {})

        assert chain.ainvoke.await_count == 3
