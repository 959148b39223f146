"""
Rule-Based Payment Text Extraction

Reads OCR / clipboard text from payment-app screenshots (WeChat Pay, Alipay,
bank apps, UnionPay cloud pay, invoices, receipts) and pulls out:
1. Where the text came from (payment source / channel)
2. The amount
3. Whether money went out or came in
4. Who was on the other side
5. When it happened

DESIGN DECISION: Each field is found by an ordered list of
(pattern, extractor) rules evaluated with early exit. The order IS the
priority - e.g. a currency-symbol amount beats a "元"-suffixed one.

CRITICAL: Extraction never raises. A pattern that does not match, or whose
match does not parse, simply hands over to the next rule. When no amount is
found the result is InsufficientConfidence with whatever partial fields were
seen, so that a caller can try a secondary (AI-assisted) parse.
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, Sequence

import structlog

from lifemanager.config import get_settings
from lifemanager.models.payment import (
    ACCEPTED_TIMESTAMP_PATTERNS,
    ExtractionResult,
    ExtractionSuccess,
    InsufficientConfidence,
    InsufficientConfidenceReason,
    PartialPaymentInfo,
    PaymentInfo,
    PaymentSource,
    TransactionDirection,
)


logger = structlog.get_logger(__name__)

# A rule pairs a pattern with a function turning its match into a value.
Rule = tuple[re.Pattern, Callable[[re.Match], Any]]


# =============================================================================
# KEYWORDS
# =============================================================================

WECHAT_KEYWORDS = ("微信支付", "微信转账", "微信红包", "零钱", "微信零钱")
ALIPAY_KEYWORDS = ("支付宝", "蚂蚁花呗", "余额宝", "淘宝", "天猫")
BANK_KEYWORDS = (
    "银行卡", "储蓄卡", "信用卡",
    "工商银行", "建设银行", "农业银行", "中国银行", "招商银行", "交通银行",
)
CLOUD_PAY_KEYWORDS = ("云闪付",)
INVOICE_KEYWORDS = ("发票", "税额")
RECEIPT_KEYWORDS = ("收据", "收款")

# Checked in this order; the first set with a hit decides the source.
SOURCE_KEYWORDS: Sequence[tuple[PaymentSource, Sequence[str]]] = (
    (PaymentSource.WECHAT_PAY, WECHAT_KEYWORDS),
    (PaymentSource.ALIPAY, ALIPAY_KEYWORDS),
    (PaymentSource.BANK_APP, BANK_KEYWORDS),
    (PaymentSource.CLOUD_PAY, CLOUD_PAY_KEYWORDS),
    (PaymentSource.INVOICE, INVOICE_KEYWORDS),
    (PaymentSource.RECEIPT, RECEIPT_KEYWORDS),
)

EXPENSE_KEYWORDS = (
    "支出", "付款", "消费", "扣款", "转出", "购买", "支付成功", "付款成功",
)
INCOME_KEYWORDS = (
    "收入", "收款", "到账", "转入", "红包", "退款", "收款成功",
)


# =============================================================================
# RULE EXTRACTORS
# =============================================================================

def group_decimal(match: re.Match) -> Optional[Decimal]:
    """First capture group as a positive Decimal, else None. Thousands separators are dropped."""
    try:
        value = Decimal((match.group(1) or "").replace(",", ""))
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value


def group_text(match: re.Match) -> Optional[str]:
    """First capture group, stripped; None when blank."""
    value = (match.group(1) or "").strip()
    return value or None


# 12.34 or 1,234.56
NUMBER = r"([0-9]+(?:,[0-9]{3})*(?:\.[0-9]{1,2})?)"

AMOUNT_RULES: list[Rule] = [
    # ¥12.34 / ￥-12.34 (the minus is a direction hint, not part of the amount)
    (re.compile(r"[¥￥]\s*-?" + NUMBER), group_decimal),
    # 12.34元
    (re.compile(NUMBER + r"\s*元"), group_decimal),
    # 金额：12.34
    (re.compile(r"金额[：:]?\s*" + NUMBER), group_decimal),
    # 实付款 / 实收款 / 实付
    (re.compile(r"实[付收]款?[：:]?\s*[¥￥]?\s*" + NUMBER), group_decimal),
    # 付款金额
    (re.compile(r"付款金额[：:]?\s*[¥￥]?\s*" + NUMBER), group_decimal),
    # 订单金额
    (re.compile(r"订单金额[：:]?\s*[¥￥]?\s*" + NUMBER), group_decimal),
]

COUNTERPARTY_RULES: list[Rule] = [
    # 收款方：XX / 商户名称：XX / 店铺 XX / 商家：XX
    (re.compile(r"(?:收款方|商户名称|店铺|商家)[：:]?\s*([^\n\r]+)"), group_text),
    # 向XX付款 / 付款给XX / 转账给XX
    (
        re.compile(r"(?:向|付款给|转账给)\s*([^\n\r]+?)\s*(?:付款|转账|$)", re.MULTILINE),
        group_text,
    ),
    # 来自XX / 收到XX的转账
    (
        re.compile(r"(?:来自|收到)\s*([^\n\r]+?)\s*(?:的|转账|$)", re.MULTILINE),
        group_text,
    ),
]

TIMESTAMP_RULES: list[Rule] = [
    (re.compile("(" + pattern + ")"), group_text)
    for pattern in ACCEPTED_TIMESTAMP_PATTERNS
]


def apply_rules(
    rules: Sequence[Rule],
    text: str,
    accept: Optional[Callable[[Any], bool]] = None,
    scan_all: bool = False,
) -> Optional[Any]:
    """
    Evaluate rules in order and return the first accepted value.

    By default only the first match of each pattern is considered. With
    ``scan_all`` every match of a pattern is tried before moving on. A
    match whose extractor returns None, or whose value is refused by
    ``accept``, passes control to the next match or rule.
    """
    for pattern, extractor in rules:
        if scan_all:
            matches = pattern.finditer(text)
        else:
            first = pattern.search(text)
            matches = [first] if first is not None else []

        for match in matches:
            value = extractor(match)
            if value is None:
                continue
            if accept is not None and not accept(value):
                continue
            return value
    return None


def build_partial(
    direction: TransactionDirection,
    ambiguous: bool,
    timestamp: Optional[str],
) -> Optional[PartialPaymentInfo]:
    """
    Partial fields worth handing to a secondary parser.

    A guessed direction is not passed on. None when nothing is left.
    """
    partial_direction = None if ambiguous else direction
    if partial_direction is None and timestamp is None:
        return None
    return PartialPaymentInfo(direction=partial_direction, timestamp=timestamp)


# =============================================================================
# TIMESTAMP NORMALISATION
# =============================================================================

def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Convert an extracted timestamp string to a naive datetime.

    Accepts the ISO-like, slash-delimited and 年/月/日 layouts, with or
    without seconds. Returns None for anything else, including impossible
    dates such as 2024-02-30.
    """
    if not value:
        return None

    normalized = (
        value.strip()
        .replace("年", "-")
        .replace("月", "-")
        .replace("日", " ")
        .replace("/", "-")
    )
    normalized = " ".join(normalized.split())

    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M"):
        try:
            return datetime.strptime(normalized, fmt)
        except ValueError:
            continue
    return None


# =============================================================================
# EXTRACTOR
# =============================================================================

class PaymentTextExtractor:
    """
    Rule-based extractor for payment screenshot text.

    Stateless after construction: one instance can be shared by any number
    of concurrent callers.
    """

    def __init__(self, max_counterparty_length: Optional[int] = None):
        """
        Initialize extractor.

        Args:
            max_counterparty_length: Longest counterparty accepted.
                                     Defaults to the extraction settings.
        """
        if max_counterparty_length is None:
            max_counterparty_length = get_settings().extraction.max_counterparty_length
        self._max_counterparty_length = max_counterparty_length

    @property
    def max_counterparty_length(self) -> int:
        return self._max_counterparty_length

    def detect_source(self, text: str) -> PaymentSource:
        """Detect where the text came from. First matching keyword set wins."""
        for source, keywords in SOURCE_KEYWORDS:
            if any(keyword in text for keyword in keywords):
                return source
        return PaymentSource.UNKNOWN

    def extract_amount(self, text: str) -> Optional[Decimal]:
        """First positive amount found by the amount rules, in priority order."""
        return apply_rules(AMOUNT_RULES, text)

    def classify_direction(self, text: str) -> tuple[TransactionDirection, bool]:
        """
        Decide whether the text describes an expense or an income.

        Returns:
            (direction, ambiguous)

        The keyword sets are scanned independently. Exactly one set matching
        decides. Otherwise a literal "-" means expense and "+" means income,
        and failing that the payment is treated as an EXPENSE: a missed
        expense is worse than a mis-tagged one. ``ambiguous`` is True
        whenever the keyword scan did not decide.
        """
        has_expense = any(keyword in text for keyword in EXPENSE_KEYWORDS)
        has_income = any(keyword in text for keyword in INCOME_KEYWORDS)

        if has_income and not has_expense:
            return TransactionDirection.INCOME, False
        if has_expense and not has_income:
            return TransactionDirection.EXPENSE, False

        if "-" in text:
            return TransactionDirection.EXPENSE, True
        if "+" in text:
            return TransactionDirection.INCOME, True
        return TransactionDirection.EXPENSE, True

    def extract_counterparty(self, text: str) -> Optional[str]:
        """Merchant / person on the other side, if a rule finds a short one."""
        return apply_rules(
            COUNTERPARTY_RULES,
            text,
            accept=lambda name: len(name) <= self._max_counterparty_length,
        )

    def extract_timestamp(self, text: str) -> Optional[str]:
        """First date-time string in one of the accepted layouts."""
        return apply_rules(TIMESTAMP_RULES, text)

    def extract(self, text: Optional[str]) -> ExtractionResult:
        """
        Parse payment text.

        Returns:
            ExtractionSuccess when a positive amount was found,
            InsufficientConfidence otherwise.
        """
        text = text or ""

        if not text.strip():
            logger.debug("payment_text_empty")
            return InsufficientConfidence(
                reason=InsufficientConfidenceReason.NO_TEXT,
                raw_text=text,
            )

        source = self.detect_source(text)
        amount = self.extract_amount(text)
        direction, ambiguous = self.classify_direction(text)
        timestamp = self.extract_timestamp(text)

        if amount is None:
            partial = build_partial(direction, ambiguous, timestamp)
            logger.debug(
                "payment_text_insufficient",
                source=source.value,
                text_length=len(text),
                has_partial=partial is not None,
            )
            return InsufficientConfidence(
                reason=InsufficientConfidenceReason.NO_AMOUNT,
                raw_text=text,
                partial=partial,
            )

        payment = PaymentInfo(
            amount=amount,
            direction=direction,
            counterparty=self.extract_counterparty(text),
            timestamp=timestamp,
            payment_channel=source.channel,
            raw_text=text,
            direction_ambiguous=ambiguous,
        )

        logger.debug(
            "payment_text_extracted",
            source=source.value,
            direction=direction.value,
            direction_ambiguous=ambiguous,
        )
        return ExtractionSuccess(payment=payment, source=source)


_default_extractor: Optional[PaymentTextExtractor] = None


def extract(text: Optional[str]) -> ExtractionResult:
    """Parse payment text with a shared default extractor."""
    global _default_extractor
    if _default_extractor is None:
        _default_extractor = PaymentTextExtractor()
    return _default_extractor.extract(text)
