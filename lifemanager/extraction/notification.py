"""
Payment Notification Parsing

Push notifications from payment apps carry the same kind of text as a
screenshot, split across a title, a content line and an optional expanded
body. They also carry something a screenshot does not: the package name of
the app that posted them, which is a far better channel signal than keywords.

Notification text is shorter and terser than a screenshot ("消费支出人民币
128.00" with no currency sign), so it has its own amount, direction and
counterparty rules. Source detection and timestamps are shared with the
screenshot extractor.
"""

import re
from decimal import Decimal
from typing import Optional

import structlog

from lifemanager.extraction.payment_text import (
    NUMBER,
    PaymentTextExtractor,
    Rule,
    apply_rules,
    build_partial,
    group_decimal,
    group_text,
)
from lifemanager.models.payment import (
    ExtractionResult,
    ExtractionSuccess,
    InsufficientConfidence,
    InsufficientConfidenceReason,
    PaymentChannel,
    PaymentInfo,
    TransactionDirection,
)


logger = structlog.get_logger(__name__)


# Android package names of payment apps we recognise.
PACKAGE_CHANNELS: dict[str, PaymentChannel] = {
    "com.tencent.mm": PaymentChannel.WECHAT,
    "com.eg.android.AlipayGphone": PaymentChannel.ALIPAY,
    "com.unionpay": PaymentChannel.CLOUD_PAY,
    "com.icbc.mobile": PaymentChannel.BANK,
    "com.chinamworld.main": PaymentChannel.BANK,
    "com.android.bankabc": PaymentChannel.BANK,
    "com.chinaonlinepayment.boc": PaymentChannel.BANK,
    "cmb.pb": PaymentChannel.BANK,
    "com.bankcomm.Bankcomm": PaymentChannel.BANK,
}

# Amounts outside (0, MAX_NOTIFICATION_AMOUNT) are card numbers, balances
# or points, not payments.
MAX_NOTIFICATION_AMOUNT = Decimal("1000000")

NOTIFICATION_EXPENSE_KEYWORDS = (
    "支付成功", "付款成功", "消费", "支出", "扣款",
    "向", "付给", "支付给", "已付款", "已扣款",
)
NOTIFICATION_INCOME_KEYWORDS = (
    "收款成功", "到账", "收入", "转入", "收到",
    "红包", "退款", "已收款", "转账收款",
)

# Bracketed words that are not a counterparty.
PAYEE_STOP_WORDS = frozenset({"支付", "付款", "收款", "成功", "通知"})

NOTIFICATION_AMOUNT_RULES: list[Rule] = [
    # ¥12.34
    (re.compile(r"[¥￥]\s*" + NUMBER), group_decimal),
    # 12.34元
    (re.compile(NUMBER + r"\s*元"), group_decimal),
    # 金额：12.34
    (re.compile(r"金额[：:]?\s*" + NUMBER), group_decimal),
    # bare number before a currency mark or at the very end
    (re.compile(NUMBER + r"(?=\s*(?:元|¥|￥|$))"), group_decimal),
]

NOTIFICATION_PAYEE_RULES: list[Rule] = [
    # 向XX付款 / 支付给「XX」
    (
        re.compile(r"(?:向|付款给|转账给|支付给)\s*[\"「【]?([^\"」】\s]+?)(?=付款|转账|[\"」】\s]|$)"),
        group_text,
    ),
    # 来自XX / 收到XX的转账
    (
        re.compile(r"(?:来自|收到)\s*[\"「【]?([^\"」】\s]+?)(?=的|转账|[\"」】\s]|$)"),
        group_text,
    ),
    # 商户：XX
    (re.compile(r"(?:商户|店铺|商家)[：:]?\s*(\S+)"), group_text),
    # 【XX】
    (re.compile(r"[【\[]([^】\]]+)[】\]]"), group_text),
]


def channel_for_package(package_name: Optional[str]) -> Optional[PaymentChannel]:
    """Payment channel of a known payment app, else None."""
    if not package_name:
        return None
    return PACKAGE_CHANNELS.get(package_name)


def compose_notification_text(title: str, content: str, big_text: str = "") -> str:
    """The text a notification shows, non-empty parts joined by spaces."""
    return " ".join(part for part in (title, content, big_text) if part)


def classify_notification_direction(text: str) -> tuple[TransactionDirection, bool]:
    """
    Expense or income for notification text.

    Returns:
        (direction, ambiguous)

    Exactly one keyword set matching decides. Otherwise a lone "+" means
    income and anything else an expense, flagged as ambiguous.
    """
    has_expense = any(keyword in text for keyword in NOTIFICATION_EXPENSE_KEYWORDS)
    has_income = any(keyword in text for keyword in NOTIFICATION_INCOME_KEYWORDS)

    if has_income and not has_expense:
        return TransactionDirection.INCOME, False
    if has_expense and not has_income:
        return TransactionDirection.EXPENSE, False

    if "+" in text and "-" not in text:
        return TransactionDirection.INCOME, True
    return TransactionDirection.EXPENSE, True


class NotificationParser:
    """Parses payment-app notifications with the notification rule set."""

    def __init__(self, extractor: Optional[PaymentTextExtractor] = None):
        self._extractor = extractor or PaymentTextExtractor()

    def extract_amount(self, text: str) -> Optional[Decimal]:
        """First plausible amount, trying every match of each rule."""
        return apply_rules(
            NOTIFICATION_AMOUNT_RULES,
            text,
            accept=lambda amount: amount < MAX_NOTIFICATION_AMOUNT,
            scan_all=True,
        )

    def extract_counterparty(self, text: str) -> Optional[str]:
        """Payee or payer named in the notification."""
        max_length = self._extractor.max_counterparty_length
        return apply_rules(
            NOTIFICATION_PAYEE_RULES,
            text,
            accept=lambda name: len(name) <= max_length and name not in PAYEE_STOP_WORDS,
        )

    def parse(
        self,
        package_name: str,
        title: str,
        content: str,
        big_text: str = "",
    ) -> ExtractionResult:
        """
        Parse one notification.

        The package's channel overrides the keyword-detected one; unknown
        packages keep whatever the text suggested.
        """
        full_text = compose_notification_text(title, content, big_text)

        if not full_text.strip():
            return InsufficientConfidence(
                reason=InsufficientConfidenceReason.NO_TEXT,
                raw_text=full_text,
            )

        source = self._extractor.detect_source(full_text)
        amount = self.extract_amount(full_text)
        direction, ambiguous = classify_notification_direction(full_text)
        timestamp = self._extractor.extract_timestamp(full_text)

        if amount is None:
            logger.debug("notification_insufficient", package=package_name)
            return InsufficientConfidence(
                reason=InsufficientConfidenceReason.NO_AMOUNT,
                raw_text=full_text,
                partial=build_partial(direction, ambiguous, timestamp),
            )

        payment = PaymentInfo(
            amount=amount,
            direction=direction,
            counterparty=self.extract_counterparty(full_text),
            timestamp=timestamp,
            payment_channel=channel_for_package(package_name) or source.channel,
            raw_text=full_text,
            direction_ambiguous=ambiguous,
        )

        logger.debug(
            "notification_extracted",
            package=package_name,
            direction=direction.value,
            direction_ambiguous=ambiguous,
        )
        return ExtractionSuccess(payment=payment, source=source)
