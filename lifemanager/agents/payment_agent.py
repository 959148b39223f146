"""
AI-assisted Payment Parsing

DESIGN DECISION: The rule-based extractor is the primary parser. This agent
is only asked when the rules could not find an amount, and only by the
capture flow - the extractor itself never calls it.

CRITICAL BOUNDARIES:
- CAN: Read an amount, direction, counterparty and time from messy text
- CANNOT: Persist anything
- CANNOT: Invent an amount that is not in the text
- MUST: Mark the direction as ambiguous when the model did not state it

The LLM is a READER, not an ORACLE. Anything it returns goes through the
same PaymentInfo validation and the same review as a rule-based result.
"""

import asyncio
import json
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import google.generativeai as genai
import structlog
from tenacity import retry, stop_after_attempt, wait_exponential

from lifemanager.config import get_settings
from lifemanager.models.payment import (
    ACCEPTED_TIMESTAMP_PATTERNS,
    PartialPaymentInfo,
    PaymentChannel,
    PaymentInfo,
    TransactionDirection,
)

logger = structlog.get_logger(__name__)

MAX_PROMPT_TEXT = 2000


class AIParseError(Exception):
    """Base exception for AI-assisted parsing."""
    pass


class AIServiceError(AIParseError):
    """The model could not be reached or did not answer in time."""
    pass


class AIResponseFormatError(AIParseError):
    """The model replied, but not with a usable payment."""

    def __init__(self, reply: str, message: str):
        self.reply = reply
        super().__init__(message)


PROMPT_TEMPLATE = """You are reading the text of a payment screenshot or payment notification
for a personal bookkeeping app. The text is usually Chinese (WeChat Pay, Alipay,
UnionPay Cloud Pay or a bank app).

Text:
{text}
{hints}
Extract the payment as a JSON object with these fields:
- amount: the paid or received amount as a plain number, without currency sign
- type: "expense" or "income", or null if the text does not say
- payee: the merchant or person on the other side, or null
- timestamp: the transaction time as "YYYY-MM-DD HH:MM:SS", or null
- channel: one of "wechat", "alipay", "bank", "cloud_pay", or null

Important:
- Only use numbers that appear in the text. If there is no amount, use null.
- Do not guess the type. Use null when unsure.

Respond with ONLY the JSON object, no explanation."""


class PaymentParseAgent:
    """
    AI fallback for payment text the rules could not read.

    RESPONSIBILITIES:
    - Turn free text into a PaymentInfo
    - Report unusable replies as errors instead of guessing

    BOUNDARIES:
    - NEVER persists data
    - NEVER fills in an amount the model did not return
    """

    def __init__(self, model: Optional[Any] = None, timeout_seconds: Optional[float] = None):
        """
        Initialize the agent.

        Args:
            model: Object with an async ``generate_content_async(prompt)``.
                   If None, a Gemini model is configured from settings.
            timeout_seconds: Upper bound for one parse, retries included.
                             Defaults to the Gemini setting.
        """
        if model is None or timeout_seconds is None:
            self._settings = get_settings().gemini
        if model is None:
            model = self._configure_genai()
        if timeout_seconds is None:
            timeout_seconds = self._settings.timeout_seconds

        self._model = model
        self._timeout = timeout_seconds

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    def build_prompt(
        self,
        raw_text: str,
        partial: Optional[PartialPaymentInfo] = None,
    ) -> str:
        """Build the extraction prompt, passing on what the rules already found."""
        hints = []
        if partial is not None:
            if partial.direction is not None:
                hints.append(f"- The text looks like an {partial.direction.value}")
            if partial.timestamp is not None:
                hints.append(f"- The transaction time appears to be {partial.timestamp}")

        hint_block = ""
        if hints:
            hint_block = "\nAlready known:\n" + "\n".join(hints) + "\n"

        return PROMPT_TEMPLATE.format(
            text=raw_text[:MAX_PROMPT_TEXT],
            hints=hint_block,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _generate(self, prompt: str) -> str:
        response = await self._model.generate_content_async(prompt)
        return (response.text or "").strip()

    async def parse(
        self,
        raw_text: str,
        partial: Optional[PartialPaymentInfo] = None,
    ) -> PaymentInfo:
        """
        Parse payment text with the model.

        Args:
            raw_text: The text the rules gave up on
            partial: Fields the rules did find, passed to the model as hints
                     and used when the model leaves them out

        Returns:
            PaymentInfo built from the model's reply

        Raises:
            AIParseError: If the text is empty
            AIServiceError: If the model could not be reached in time
            AIResponseFormatError: If the reply holds no usable payment
        """
        if not raw_text or not raw_text.strip():
            raise AIParseError("Nothing to parse: text is empty")

        prompt = self.build_prompt(raw_text, partial)

        try:
            reply = await asyncio.wait_for(self._generate(prompt), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise AIServiceError(f"Model did not answer within {self._timeout}s") from e
        except Exception as e:
            raise AIServiceError(f"Model request failed: {e}") from e

        logger.debug("ai_reply_received", reply_length=len(reply))

        data = self._extract_json(reply)
        return self._to_payment(data, reply, raw_text, partial)

    @staticmethod
    def _extract_json(reply: str) -> dict:
        start = reply.find("{")
        end = reply.rfind("}") + 1
        if start < 0 or end <= start:
            raise AIResponseFormatError(reply, "Reply contains no JSON object")

        try:
            data = json.loads(reply[start:end])
        except json.JSONDecodeError as e:
            raise AIResponseFormatError(reply, f"Reply is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise AIResponseFormatError(reply, "Reply JSON is not an object")
        return data

    @staticmethod
    def _to_payment(
        data: dict,
        reply: str,
        raw_text: str,
        partial: Optional[PartialPaymentInfo],
    ) -> PaymentInfo:
        amount = _parse_amount(data.get("amount"))
        if amount is None:
            raise AIResponseFormatError(reply, "Reply has no positive amount")

        direction_value = str(data.get("type") or "").strip().lower()
        if direction_value in (TransactionDirection.EXPENSE.value, TransactionDirection.INCOME.value):
            direction = TransactionDirection(direction_value)
            ambiguous = False
        elif partial is not None and partial.direction is not None:
            direction = partial.direction
            ambiguous = False
        else:
            direction = TransactionDirection.EXPENSE
            ambiguous = True

        counterparty = data.get("payee")
        if isinstance(counterparty, str) and counterparty.strip():
            counterparty = counterparty.strip()[:30]
        else:
            counterparty = None

        timestamp = data.get("timestamp")
        if not (isinstance(timestamp, str) and _is_accepted_timestamp(timestamp.strip())):
            timestamp = partial.timestamp if partial is not None else None
        else:
            timestamp = timestamp.strip()

        channel = None
        channel_value = data.get("channel")
        if isinstance(channel_value, str):
            try:
                channel = PaymentChannel(channel_value.strip().lower())
            except ValueError:
                channel = None

        return PaymentInfo(
            amount=amount,
            direction=direction,
            counterparty=counterparty,
            timestamp=timestamp,
            payment_channel=channel,
            raw_text=raw_text,
            direction_ambiguous=ambiguous,
        )


def _parse_amount(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip().lstrip("¥￥"))
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def _is_accepted_timestamp(value: str) -> bool:
    return any(re.fullmatch(pattern, value) for pattern in ACCEPTED_TIMESTAMP_PATTERNS)
