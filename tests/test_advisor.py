"""
Tests for the financial advisor.

The Gemini model is replaced by a fake; no network calls are made.
"""

import json
import pytest
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

from tenacity import wait_none

from smart_accountant.agents import (
    AdvisoryServiceError,
    FinancialAdvisor,
    default_insight,
    parse_insights,
)
from smart_accountant.agents.advisor import build_context
from smart_accountant.models import InsightType, JournalEntry


VALID_REPLY = json.dumps([
    {"title": "Healthy margin", "content": "Gross margin is 50%.", "type": "success"},
    {"title": "Cash", "content": "Cash is low.", "type": "warning"},
    {"title": "Stock", "content": "Stock turns slowly.", "type": "info"},
])


class FakeModel:
    """Replays scripted replies; an Exception in the script is raised."""

    def __init__(self, *replies):
        self._replies = list(replies)
        self.prompts = []

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(text=reply)


def make_advisor(*replies, attempts=3):
    model = FakeModel(*replies)
    return FinancialAdvisor(model=model, max_attempts=attempts, wait=wait_none()), model


def entries(count):
    start = date(2024, 1, 1)
    return [
        JournalEntry(id=f"JV-{i}", date=start + timedelta(days=i), description=f"Entry {i}")
        for i in range(count)
    ]


class TestParseInsights:
    """Tests for reading the model reply."""

    def test_valid_reply(self):
        insights = parse_insights(VALID_REPLY)
        assert [i.type for i in insights] == [
            InsightType.SUCCESS, InsightType.WARNING, InsightType.INFO,
        ]

    def test_reply_wrapped_in_markdown(self):
        insights = parse_insights(f"```json\n{VALID_REPLY}\n```")
        assert len(insights) == 3

    @pytest.mark.parametrize("reply", [
        "",
        "no json here",
        "[]",
        '[{"title": "x"}]',
        '[{"title": "x", "content": "y", "type": "panic"}]',
        "[not json]",
    ])
    def test_bad_replies(self, reply):
        with pytest.raises(AdvisoryServiceError):
            parse_insights(reply)


class TestFinancialAdvisor:
    """Tests for the advisor's retry and fallback behaviour."""

    def test_context_has_only_recent_entries(self, ledger):
        context = build_context(ledger.chart.accounts, entries(8))

        assert len(context["recent_entries"]) == 5
        assert context["recent_entries"][0]["id"] == "JV-7"
        assert set(context["accounts"][0]) == {"name", "type", "balance"}

    @pytest.mark.asyncio
    async def test_returns_model_insights(self, ledger):
        advisor, model = make_advisor(VALID_REPLY)
        insights = await advisor.get_insights(ledger.chart.accounts, entries(6), "en")

        assert len(insights) == 3
        assert "English" in model.prompts[0]

    @pytest.mark.asyncio
    async def test_retries_transient_failure(self, ledger):
        advisor, model = make_advisor(RuntimeError("503"), VALID_REPLY)
        insights = await advisor.get_insights(ledger.chart.accounts, entries(6))

        assert len(insights) == 3
        assert len(model.prompts) == 2

    @pytest.mark.asyncio
    async def test_request_raises_after_last_attempt(self, ledger):
        advisor, _ = make_advisor(RuntimeError("down"), RuntimeError("down"), attempts=2)
        with pytest.raises(AdvisoryServiceError):
            await advisor.request_insights(ledger.chart.accounts, entries(6))

    @pytest.mark.asyncio
    async def test_falls_back_to_default_insight(self, ledger):
        advisor, _ = make_advisor("garbage", "garbage", attempts=2)
        insights = await advisor.get_insights(ledger.chart.accounts, entries(6), "ar")

        assert insights == [default_insight("ar")]
        assert insights[0].type == InsightType.INFO
