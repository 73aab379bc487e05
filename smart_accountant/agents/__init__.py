"""AI Agents package."""

from smart_accountant.agents.advisor import (
    AdvisoryServiceError,
    FinancialAdvisor,
    default_insight,
    parse_insights,
    ready_insight,
)

__all__ = [
    "AdvisoryServiceError",
    "FinancialAdvisor",
    "default_insight",
    "parse_insights",
    "ready_insight",
]
