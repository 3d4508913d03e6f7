import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence

import structlog
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from openai import APIStatusError

from app.core.config import settings
from app.core.observability import metrics
from app.domain.exceptions import (
    LLMException,
    LLMPaymentRequiredException,
    LLMRateLimitException,
)
from app.infrastructure.llm.models import (
    MilestoneForecast,
    PortfolioInsights,
    RiskForecast,
    StatusReport,
    TaskPrioritization,
)
from app.infrastructure.llm.prompts import (
    MILESTONE_FORECAST_PROMPT,
    PORTFOLIO_INSIGHTS_PROMPT,
    RISK_FORECAST_PROMPT,
    STATUS_REPORT_PROMPT,
    TASK_PRIORITIZATION_PROMPT,
)

logger = structlog.get_logger(__name__)


def _gateway_error(error: BaseException) -> Optional[LLMException]:
    """Map gateway status codes the caller must surface as-is."""
    if isinstance(error, APIStatusError):
        if error.status_code == 429:
            return LLMRateLimitException()
        if error.status_code == 402:
            return LLMPaymentRequiredException()
    return None


class LLMClient:
    def __init__(self) -> None:
        self.client: Optional[ChatOpenAI] = None
        self.max_retries = settings.openai_max_retries
        self.base_delay = 1.0

    async def initialize(self) -> None:
        """Initialize LangChain OpenAI client against the configured gateway."""
        if not settings.openai_api_key:
            raise LLMException("AI gateway API key not configured")

        try:
            self.client = ChatOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                model_name=settings.openai_model,
                temperature=settings.openai_temperature,
                max_tokens=settings.openai_max_tokens,
                # Retries are handled in _invoke_chain_with_retry
                max_retries=0,
            )

            logger.info("LLM client initialized", model=settings.openai_model)

        except Exception as e:
            logger.error("Failed to initialize LLM client", error=str(e))
            raise LLMException(f"LLM client initialization failed: {e}")

    async def close(self) -> None:
        logger.info("LLM client closed")

    def _require_client(self) -> ChatOpenAI:
        if not self.client:
            raise LLMException("LLM client not initialized")
        return self.client

    async def chat(
        self,
        system_prompt: str,
        message: str,
        history: Sequence[Dict[str, str]] = (),
    ) -> str:
        """Free-form assistant reply.

        The system prompt is always sent; only the most recent
        ``chat_history_window`` conversation messages accompany it.
        """
        client = self._require_client()
        conversation: List[BaseMessage] = []
        for item in history:
            if item.get("role") == "assistant":
                conversation.append(AIMessage(content=item.get("content", "")))
            else:
                conversation.append(HumanMessage(content=item.get("content", "")))
        conversation.append(HumanMessage(content=message))

        window = conversation[-settings.chat_history_window:]
        messages = [SystemMessage(content=system_prompt), *window]

        start_time = time.time()
        try:
            reply = await self._invoke_chain_with_retry(client, messages)
        except Exception:
            metrics.record_ai_request("chat", "error", time.time() - start_time)
            raise

        duration = time.time() - start_time
        metrics.record_ai_request("chat", "success", duration)
        logger.info(
            "Assistant reply generated",
            history_messages=len(window) - 1,
            duration=f"{duration:.2f}s",
        )
        return reply.content if isinstance(reply.content, str) else str(reply.content)

    async def prioritize_tasks(self, tasks_json: str) -> TaskPrioritization:
        return await self._structured(
            "prioritize_tasks",
            TASK_PRIORITIZATION_PROMPT,
            TaskPrioritization,
            {"tasks": tasks_json},
        )

    async def generate_status_report(
        self, project_json: str, tasks_json: str, risks_json: str, milestones_json: str
    ) -> StatusReport:
        return await self._structured(
            "status_report",
            STATUS_REPORT_PROMPT,
            StatusReport,
            {
                "project": project_json,
                "tasks": tasks_json,
                "risks": risks_json,
                "milestones": milestones_json,
            },
        )

    async def forecast_risks(
        self,
        milestones_json: str,
        risks_json: str,
        document_count: int,
        approved_documents: int,
    ) -> RiskForecast:
        return await self._structured(
            "forecast_risks",
            RISK_FORECAST_PROMPT,
            RiskForecast,
            {
                "milestones": milestones_json,
                "risks": risks_json,
                "document_count": document_count,
                "approved_documents": approved_documents,
            },
        )

    async def predict_milestones(self, milestones_json: str) -> MilestoneForecast:
        return await self._structured(
            "predict_milestones",
            MILESTONE_FORECAST_PROMPT,
            MilestoneForecast,
            {"milestones": milestones_json},
        )

    async def portfolio_insights(self, portfolio_json: str) -> PortfolioInsights:
        return await self._structured(
            "portfolio_insights",
            PORTFOLIO_INSIGHTS_PROMPT,
            PortfolioInsights,
            {"portfolio": portfolio_json},
        )

    async def _structured(
        self, operation: str, prompt, schema, input_data: Dict[str, Any]
    ) -> Any:
        """Run ``prompt`` with a forced tool call returning ``schema``."""
        start_time = time.time()

        try:
            client = self._require_client()
            chain = prompt | client.with_structured_output(
                schema, method="function_calling"
            )
            result = await self._invoke_chain_with_retry(chain, input_data)
            if result is None:
                raise LLMException("No tool call in AI response")

            duration = time.time() - start_time
            metrics.record_ai_request(operation, "success", duration)
            logger.info(
                "Structured AI response received",
                operation=operation,
                duration=f"{duration:.2f}s",
            )
            return result

        except LLMException:
            metrics.record_ai_request(operation, "error", time.time() - start_time)
            raise
        except Exception as e:
            metrics.record_ai_request(operation, "error", time.time() - start_time)
            logger.error("AI request failed", operation=operation, error=str(e))
            raise LLMException(f"{operation} failed: {e}")

    async def _invoke_chain_with_retry(self, chain, input_data: Any) -> Any:
        """Invoke LangChain runnable with exponential backoff retry.

        Rate-limit and payment errors from the gateway are raised at once.
        """
        last_exception = None
        attempts = max(self.max_retries, 1)

        for attempt in range(attempts):
            try:
                return await chain.ainvoke(input_data)

            except Exception as e:
                mapped = _gateway_error(e)
                if mapped is not None:
                    logger.warning("AI gateway refused request", error=str(mapped))
                    raise mapped from e

                last_exception = e
                if attempt < attempts - 1:
                    delay = self.base_delay * (2**attempt)
                    logger.warning(
                        "Chain invocation failed, retrying",
                        attempt=attempt + 1,
                        delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(
                        "All chain invocation retry attempts failed", error=str(e)
                    )

        raise LLMException(
            f"Chain invocation failed after {attempts} attempts: {last_exception}"
        )
