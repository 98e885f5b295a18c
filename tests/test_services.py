"""Tests for external services, with the network replaced by fakes."""

import asyncio
import json
import urllib.error
from decimal import Decimal

import pytest

from pocket_ledger.agents import InsightAgent, build_insight_prompt
from pocket_ledger.config import ExchangeRateSettings, GeminiSettings
from pocket_ledger.models.transaction import TransactionType
from pocket_ledger.services.extraction import (
    ExtractionFailedError,
    GeminiDocumentExtractor,
    build_extraction_prompt,
    parse_extraction_response,
)
from pocket_ledger.services.rates import ExchangeRateService, RateFetchError

from conftest import build_expense, build_income


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """Stands in for genai.GenerativeModel."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def generate_content_async(self, contents):
        self.calls.append(contents)
        if self.error:
            raise self.error
        return FakeResponse(self.text)


def gemini_settings():
    return GeminiSettings(api_key="test-key")


def rate_service(payload=None, error=None):
    service = ExchangeRateService(
        ExchangeRateSettings(decimal_places=2),
        target_currency="TWD",
    )

    def read_payload():
        if error:
            raise error
        return json.dumps(payload).encode("utf-8")

    service._read_payload = read_payload
    return service


class TestExchangeRateService:
    """Tests for the live rate lookup."""

    def test_fetch_rounds_rate(self):
        service = rate_service({"result": "success", "rates": {"TWD": 21.4367, "USD": 0.65}})
        assert service.fetch_rate() == Decimal("21.44")

    def test_missing_currency(self):
        with pytest.raises(RateFetchError):
            rate_service({"rates": {"USD": 0.65}}).fetch_rate()

    def test_non_positive_rate(self):
        with pytest.raises(RateFetchError):
            rate_service({"rates": {"TWD": 0}}).fetch_rate()

    def test_network_error(self):
        with pytest.raises(RateFetchError, match="Rate lookup failed"):
            rate_service(error=urllib.error.URLError("offline")).fetch_rate()

    def test_invalid_json(self):
        service = rate_service()
        service._read_payload = lambda: b"<html>"
        with pytest.raises(RateFetchError):
            service.fetch_rate()


class TestDocumentExtraction:
    """Tests for Gemini extraction with a fake model."""

    def test_prompt_for_income_mentions_payslip_fields(self):
        prompt = build_extraction_prompt(TransactionType.INCOME)
        assert "Net Pay" in prompt
        assert "Casual Work" in prompt
        assert "Groceries" not in prompt

    def test_prompt_for_expense_lists_expense_categories(self):
        prompt = build_extraction_prompt(TransactionType.EXPENSE)
        assert "Groceries" in prompt
        assert "Salary" not in prompt

    def test_parse_response_with_code_fence(self):
        text = '```json\n{"amount": 23.5, "merchant": "Coles", "items": [{"name": "Milk", "price": 4}]}\n```'
        document = parse_extraction_response(text)
        assert document.amount == Decimal("23.5")
        assert document.items[0].name == "Milk"

    @pytest.mark.parametrize("text", [None, "", "no json here", '{"merchant": "Coles"}'])
    def test_parse_response_failures(self, text):
        with pytest.raises(ExtractionFailedError):
            parse_extraction_response(text)

    def test_extract_sends_document_and_prompt(self):
        model = FakeModel(text='{"amount": 12, "date": "2024-05-01", "category": "Dining"}')
        extractor = GeminiDocumentExtractor(gemini_settings(), model=model)

        document = asyncio.run(extractor.extract(b"\xff\xd8", "image/jpeg", TransactionType.EXPENSE))

        assert document.amount == Decimal("12")
        parts = model.calls[0]
        assert parts[0] == {"mime_type": "image/jpeg", "data": b"\xff\xd8"}
        assert "Receipt" in parts[1]

    def test_empty_document_rejected(self):
        extractor = GeminiDocumentExtractor(gemini_settings(), model=FakeModel(text="{}"))
        with pytest.raises(ExtractionFailedError):
            asyncio.run(extractor.extract(b"", "image/png", TransactionType.EXPENSE))


class TestInsightAgent:
    """Tests for the insight agent."""

    def test_prompt_contains_figures(self):
        ledger = (build_income(1000), build_expense(250, note="Coles"))
        prompt = build_insight_prompt(ledger, Decimal("21.5"))
        assert "Total income: $1000.00" in prompt
        assert "Savings rate: 75.0%" in prompt
        assert "1 AUD = 21.5 TWD" in prompt
        assert "Coles" in prompt

    def test_recent_limit(self):
        ledger = tuple(build_expense(1, date=f"2024-01-{day:02d}", note=f"n{day}") for day in range(1, 11))
        prompt = build_insight_prompt(ledger, Decimal("20"), recent_limit=3)
        assert "n10" in prompt
        assert "n7" not in prompt

    def test_no_transactions(self):
        model = FakeModel(text="unused")
        agent = InsightAgent(gemini_settings(), model=model)
        insight = asyncio.run(agent.generate_insight((), Decimal("20")))
        assert insight.generated is False
        assert model.calls == []

    def test_model_failure_returns_fallback(self):
        agent = InsightAgent(gemini_settings(), model=FakeModel(error=RuntimeError("quota")))
        insight = asyncio.run(agent.generate_insight((build_expense(5),), Decimal("20")))
        assert insight.generated is False
        assert "unavailable" in insight.text

    def test_generated_text(self):
        agent = InsightAgent(gemini_settings(), model=FakeModel(text="  Spend less on dining.  "))
        insight = asyncio.run(agent.generate_insight((build_expense(5),), Decimal("20")))
        assert insight.generated is True
        assert insight.text == "Spend less on dining."
        assert insight.transaction_count == 1
