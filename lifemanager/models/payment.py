"""
Payment Data Models

These models define the shapes produced by the payment text extractor,
the notification parser and the AI fallback. They are designed to:
1. Be immutable - a parse result is a value, not a record being edited
2. Round-trip through plain data (JSON) without losing anything
3. Carry the raw text for audit and for a secondary parse

DESIGN DECISION: Extraction results are a tagged union discriminated on
``kind``. Callers branch on the variant instead of checking a pile of
optional fields.
"""

import re
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)


# Date-time layouts accepted for PaymentInfo.timestamp, in match priority.
ACCEPTED_TIMESTAMP_PATTERNS = (
    r"\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}(?::\d{2})?",
    r"\d{4}/\d{2}/\d{2}\s+\d{2}:\d{2}(?::\d{2})?",
    r"\d{4}年\d{1,2}月\d{1,2}日\s*\d{2}:\d{2}(?::\d{2})?",
)


# =============================================================================
# ENUMS
# =============================================================================

class TransactionDirection(str, Enum):
    """Money leaving the user (expense) or reaching the user (income)."""
    EXPENSE = "expense"
    INCOME = "income"


class PaymentChannel(str, Enum):
    """Payment channel a transaction went through."""
    WECHAT = "wechat"
    ALIPAY = "alipay"
    BANK = "bank"
    CLOUD_PAY = "cloud_pay"


class PaymentSource(str, Enum):
    """
    Kind of document the text was read from.

    Wider than PaymentChannel: invoices and receipts are recognised
    but say nothing about how the money moved.
    """
    WECHAT_PAY = "wechat_pay"
    ALIPAY = "alipay"
    BANK_APP = "bank_app"
    CLOUD_PAY = "cloud_pay"
    INVOICE = "invoice"
    RECEIPT = "receipt"
    UNKNOWN = "unknown"

    @property
    def channel(self) -> Optional[PaymentChannel]:
        """The payment channel implied by this source, if any."""
        return _SOURCE_CHANNELS.get(self)


_SOURCE_CHANNELS = {
    PaymentSource.WECHAT_PAY: PaymentChannel.WECHAT,
    PaymentSource.ALIPAY: PaymentChannel.ALIPAY,
    PaymentSource.BANK_APP: PaymentChannel.BANK,
    PaymentSource.CLOUD_PAY: PaymentChannel.CLOUD_PAY,
}


class InsufficientConfidenceReason(str, Enum):
    """Why the rule-based parse gave up."""
    NO_TEXT = "no text"
    NO_AMOUNT = "no amount"


# =============================================================================
# PAYMENT VALUES
# =============================================================================

class PaymentInfo(BaseModel):
    """
    A payment read from text.

    CRITICAL: ``direction_ambiguous`` is True when the keyword scan could
    not decide and a fallback (sign character or the EXPENSE default)
    picked the direction. Such payments should be shown to the user
    before they are booked.
    """
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount, currency-agnostic"
    )
    direction: TransactionDirection
    counterparty: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=30,
        description="Merchant or person on the other side"
    )
    timestamp: Optional[str] = Field(
        default=None,
        description="Date-time string as printed on the screenshot"
    )
    payment_channel: Optional[PaymentChannel] = None
    raw_text: str = Field(
        default="",
        description="Original input, kept for audit and fallback"
    )
    direction_ambiguous: bool = Field(
        default=False,
        description="Direction was decided by a fallback rule"
    )

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp_format(cls, v: Optional[str]) -> Optional[str]:
        """Only the three printed layouts are accepted."""
        if v is None:
            return v
        if not any(re.fullmatch(p, v) for p in ACCEPTED_TIMESTAMP_PATTERNS):
            raise ValueError(f"Unsupported timestamp format: {v!r}")
        return v


class PartialPaymentInfo(BaseModel):
    """Fields found before the rule-based parse gave up."""
    model_config = ConfigDict(frozen=True)

    amount: Optional[Decimal] = Field(default=None, gt=0)
    direction: Optional[TransactionDirection] = None
    timestamp: Optional[str] = None


# =============================================================================
# EXTRACTION RESULT (tagged union)
# =============================================================================

class ExtractionSuccess(BaseModel):
    """The rules found a positive amount; the payment is fully populated."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    payment: PaymentInfo
    source: PaymentSource = PaymentSource.UNKNOWN


class InsufficientConfidence(BaseModel):
    """
    The rules could not produce a payment.

    ``partial`` carries whatever was found so that a secondary
    (AI-assisted) parse can start from it. It is None when the direction
    could not be told and no timestamp was seen.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["insufficient_confidence"] = "insufficient_confidence"
    reason: InsufficientConfidenceReason
    raw_text: str = ""
    partial: Optional[PartialPaymentInfo] = None


ExtractionResult = Annotated[
    Union[ExtractionSuccess, InsufficientConfidence],
    Field(discriminator="kind"),
]

extraction_result_adapter: TypeAdapter = TypeAdapter(ExtractionResult)
