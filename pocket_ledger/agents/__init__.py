"""AI Agents package."""

from pocket_ledger.agents.ai_agents import (
    FinancialInsight,
    InsightAgent,
    build_insight_prompt,
)

__all__ = [
    "FinancialInsight",
    "InsightAgent",
    "build_insight_prompt",
]
