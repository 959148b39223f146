"""AI Agents package."""

from lifemanager.agents.payment_agent import (
    AIParseError,
    AIResponseFormatError,
    AIServiceError,
    PaymentParseAgent,
)

__all__ = [
    "AIParseError",
    "AIResponseFormatError",
    "AIServiceError",
    "PaymentParseAgent",
]
