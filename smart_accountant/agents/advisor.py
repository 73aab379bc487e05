"""
Financial Advisor Agent

CRITICAL BOUNDARIES:
- CAN: Comment on balances and recent entries it is given
- CANNOT: Post, edit or persist anything
- CANNOT: Block or fail a bookkeeping flow

The advisor is a COMMENTATOR, not a BOOKKEEPER. Its output is shown next
to the numbers and never feeds back into them. Any failure of the model
(network error, malformed JSON, wrong shape) ends in a single default
insight, so callers always get something to display.
"""

import json
from collections.abc import Sequence
from typing import Any, Optional

import google.generativeai as genai
import structlog
from pydantic import TypeAdapter, ValidationError
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from smart_accountant.config import get_settings
from smart_accountant.config.settings import GeminiSettings
from smart_accountant.models.ledger import (
    Account,
    FinancialInsight,
    InsightType,
    JournalEntry,
)


logger = structlog.get_logger(__name__)

RECENT_ENTRY_COUNT = 5
INSIGHT_COUNT = 3

DEFAULT_INSIGHTS = {
    "ar": FinancialInsight(
        title="تحليل سريع",
        content="تأكد من توازن الأصول والالتزامات في ميزانيتك.",
        type=InsightType.INFO,
    ),
    "en": FinancialInsight(
        title="Quick analysis",
        content="Make sure assets and liabilities are balanced in your balance sheet.",
        type=InsightType.INFO,
    ),
}

READY_INSIGHTS = {
    "ar": FinancialInsight(
        title="النظام جاهز",
        content="ابدأ بتسجيل القيود والعمليات لتحصل على تحليل مالي.",
        type=InsightType.SUCCESS,
    ),
    "en": FinancialInsight(
        title="System ready",
        content="Start recording entries and transactions to receive financial analysis.",
        type=InsightType.SUCCESS,
    ),
}

_insights_adapter = TypeAdapter(list[FinancialInsight])


class AdvisoryServiceError(Exception):
    """The advisory model could not produce usable insights."""
    pass


def default_insight(language: str = "ar") -> FinancialInsight:
    return DEFAULT_INSIGHTS.get(language, DEFAULT_INSIGHTS["en"])


def ready_insight(language: str = "ar") -> FinancialInsight:
    return READY_INSIGHTS.get(language, READY_INSIGHTS["en"])


def build_context(accounts: Sequence[Account], entries: Sequence[JournalEntry]) -> dict[str, Any]:
    """
    Data sent to the model.

    Accounts are reduced to name, type and balance. Entries are the most
    recent ones only, newest first.
    """
    recent = sorted(entries, key=lambda e: e.date, reverse=True)[:RECENT_ENTRY_COUNT]
    return {
        "accounts": [
            {"name": a.name, "type": a.type.value, "balance": str(a.balance)}
            for a in accounts
        ],
        "recent_entries": [
            e.model_dump(mode="json", by_alias=True) for e in recent
        ],
    }


def parse_insights(text: str) -> list[FinancialInsight]:
    """
    Parse the model's reply into insights.

    Raises:
        AdvisoryServiceError: the reply is not a non-empty JSON array of insights
    """
    text = (text or "").strip()
    start = text.find("[")
    end = text.rfind("]") + 1
    if start < 0 or end <= start:
        raise AdvisoryServiceError("Advisory reply contains no JSON array")

    try:
        insights = _insights_adapter.validate_python(json.loads(text[start:end]))
    except (json.JSONDecodeError, ValidationError) as e:
        raise AdvisoryServiceError(f"Advisory reply has the wrong shape: {e}") from e

    if not insights:
        raise AdvisoryServiceError("Advisory reply is empty")
    return insights


class FinancialAdvisor:
    """
    Gemini-backed financial commentary.

    Usage:
        advisor = FinancialAdvisor()
        insights = await advisor.get_insights(accounts, entries, language="en")

    A model object can be injected (anything with an async
    `generate_content_async(prompt)` returning an object with `.text`).
    """

    def __init__(
        self,
        model: Optional[Any] = None,
        settings: Optional[GeminiSettings] = None,
        max_attempts: Optional[int] = None,
        wait: Optional[wait_base] = None,
    ):
        if model is None:
            self._settings = settings or get_settings().gemini
            self._configure_genai()
        else:
            self._settings = settings
            self._model = model

        if max_attempts is None:
            max_attempts = self._settings.max_attempts if self._settings else 3
        self._max_attempts = max_attempts
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=8)

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
            }
        )

    def build_prompt(
        self,
        accounts: Sequence[Account],
        entries: Sequence[JournalEntry],
        language: str = "ar",
    ) -> str:
        context = json.dumps(build_context(accounts, entries), ensure_ascii=False)
        reply_language = "Arabic" if language == "ar" else "English"

        return f"""You are an expert financial advisor for a small business.

Analyze the following accounting data:
{context}

Give exactly {INSIGHT_COUNT} insights about the company's financial performance, written in {reply_language}.

Respond with ONLY a JSON array in this exact format:
[{{"title": "short title", "content": "one or two sentences", "type": "success"}}]

"type" must be one of: success, warning, info.
Only comment on the numbers given. Do not invent figures."""

    async def request_insights(
        self,
        accounts: Sequence[Account],
        entries: Sequence[JournalEntry],
        language: str = "ar",
    ) -> list[FinancialInsight]:
        """
        Ask the model, retrying transient failures.

        Raises:
            AdvisoryServiceError: every attempt failed
        """
        prompt = self.build_prompt(accounts, entries, language)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=self._wait,
                reraise=True,
            ):
                with attempt:
                    response = await self._model.generate_content_async(prompt)
                    return parse_insights(response.text)
        except AdvisoryServiceError:
            raise
        except Exception as e:
            raise AdvisoryServiceError(f"Advisory request failed: {e}") from e

    async def get_insights(
        self,
        accounts: Sequence[Account],
        entries: Sequence[JournalEntry],
        language: str = "ar",
    ) -> list[FinancialInsight]:
        """Insights for display; never raises, falls back to a default insight."""
        try:
            insights = await self.request_insights(accounts, entries, language)
        except AdvisoryServiceError as e:
            logger.warning("advisory_fallback", error=str(e), attempts=self._max_attempts)
            return [default_insight(language)]

        logger.info("advisory_insights_received", count=len(insights))
        return insights
