"""
AI Agents for Pocket Ledger

CRITICAL BOUNDARIES:

INSIGHT AGENT:
   - CAN: Comment on cash flow, spending patterns and savings rate
   - CAN: Give one concrete suggestion
   - CANNOT: Compute figures itself (every number in the prompt is
     computed deterministically beforehand)
   - CANNOT: Change any data

The LLM is a WRITER, not a CALCULATOR.
It turns numbers we already computed into a short paragraph.
"""

from decimal import Decimal
from typing import Any, Optional, Sequence

import google.generativeai as genai
from pydantic import BaseModel, Field

from pocket_ledger.analytics.filters import sort_newest_first
from pocket_ledger.analytics.totals import calculate_totals, savings_rate
from pocket_ledger.config import GeminiSettings, get_settings
from pocket_ledger.models.transaction import Transaction


NO_DATA_MESSAGE = "There are not enough transactions to analyse yet."
UNAVAILABLE_MESSAGE = "AI analysis is temporarily unavailable. Please try again later."
EMPTY_RESPONSE_MESSAGE = "Could not produce an analysis."


class FinancialInsight(BaseModel):
    """Text shown to the user plus whether the model actually wrote it."""

    text: str
    generated: bool = Field(
        description="False when a fixed fallback message was returned"
    )
    transaction_count: int = 0


def format_transaction_line(transaction: Transaction) -> str:
    label = "Income" if transaction.is_income else "Expense"
    return (
        f"- {transaction.date} [{label}]: ${transaction.amount_primary:.2f} "
        f"({transaction.category.value}) - {transaction.note}"
    )


def build_insight_prompt(
    transactions: Sequence[Transaction],
    exchange_rate: Decimal,
    recent_limit: int = 30,
    home_currency: str = "AUD",
    secondary_currency: str = "TWD",
) -> str:
    """Prompt carrying the overall figures and the most recent transactions."""
    totals = calculate_totals(transactions)
    rate = savings_rate(totals)
    recent = "\n".join(
        format_transaction_line(t) for t in sort_newest_first(transactions)[:recent_limit]
    )

    return f"""You are a professional Australian financial adviser. Analyse the user's records below (amounts in {home_currency}).

Overview:
- Total income: ${totals.income_total:.2f}
- Total expenses: ${totals.expense_total:.2f}
- Net balance: ${totals.net:.2f}
- Savings rate: {rate:.1f}%
- Current exchange rate: 1 {home_currency} = {exchange_rate} {secondary_currency}

Recent transactions (partial):
{recent}

Provide:
1. **Cash flow**: A short assessment of the current cash flow.
2. **Spending / income insight**: Point out notable spending patterns or income observations.
3. **Suggestion**: One concrete financial suggestion (e.g. tax optimisation, a specific Australian cost to cut, or investing).

Keep the tone professional and encouraging, under 200 words.
IMPORTANT: Use ONLY the figures above. Do NOT invent amounts."""


class InsightAgent:
    """
    Writes a short financial insight from the ledger.

    BOUNDARIES:
    - NEVER writes to storage
    - NEVER raises on model failure; returns a fixed message instead
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
        recent_limit: Optional[int] = None,
    ):
        self._settings = settings or get_settings().gemini
        analytics = get_settings().analytics
        self._recent_limit = recent_limit or analytics.insight_recent_transactions
        self._home_currency = analytics.home_currency
        self._secondary_currency = analytics.secondary_currency
        self._model = model or self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": 0.7,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def generate_insight(
        self,
        transactions: Sequence[Transaction],
        exchange_rate: Decimal,
    ) -> FinancialInsight:
        if not transactions:
            return FinancialInsight(text=NO_DATA_MESSAGE, generated=False)

        prompt = build_insight_prompt(
            transactions,
            exchange_rate,
            recent_limit=self._recent_limit,
            home_currency=self._home_currency,
            secondary_currency=self._secondary_currency,
        )

        try:
            response = await self._model.generate_content_async(prompt)
            text = (response.text or "").strip()
        except Exception:
            return FinancialInsight(
                text=UNAVAILABLE_MESSAGE,
                generated=False,
                transaction_count=len(transactions),
            )

        if not text:
            return FinancialInsight(
                text=EMPTY_RESPONSE_MESSAGE,
                generated=False,
                transaction_count=len(transactions),
            )

        return FinancialInsight(
            text=text,
            generated=True,
            transaction_count=len(transactions),
        )
