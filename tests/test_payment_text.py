"""Tests for rule-based payment text extraction."""

import pytest
from datetime import datetime
from decimal import Decimal

from lifemanager.extraction import PaymentTextExtractor, extract, parse_timestamp
from lifemanager.models import (
    ExtractionSuccess,
    InsufficientConfidence,
    InsufficientConfidenceReason,
    PaymentChannel,
    PaymentSource,
    TransactionDirection,
    extraction_result_adapter,
)


WECHAT_RECEIPT = """微信支付
商户名称：星巴克
支付成功
¥38.00
支付时间 2024-03-15 12:30:45"""

WECHAT_TRANSFER_IN = """微信转账
已收款
¥200.00
收到张三的转账"""


@pytest.fixture
def extractor():
    return PaymentTextExtractor(max_counterparty_length=30)


class TestAmount:
    """Tests for amount extraction."""

    def test_currency_symbol(self, extractor):
        """Test that a ¥-prefixed amount is extracted."""
        result = extractor.extract("¥12.34")
        assert isinstance(result, ExtractionSuccess)
        assert result.payment.amount == Decimal("12.34")

    def test_full_width_currency_symbol(self, extractor):
        """Test that the full-width ￥ sign is accepted."""
        assert extractor.extract_amount("￥ 9.9") == Decimal("9.9")

    def test_negative_sign_is_not_part_of_amount(self, extractor):
        """Test that a minus sign around the symbol is not part of the amount."""
        assert extractor.extract_amount("-¥15.00") == Decimal("15.00")
        assert extractor.extract_amount("¥-15.00") == Decimal("15.00")

    def test_actual_paid_label(self, extractor):
        """Test the 实付款 label rule."""
        result = extractor.extract("实付款: 88")
        assert isinstance(result, ExtractionSuccess)
        assert result.payment.amount == Decimal("88")

    def test_yuan_suffix(self, extractor):
        """Test the 元-suffixed amount rule."""
        assert extractor.extract_amount("共消费 25.5 元") == Decimal("25.5")

    def test_labels(self, extractor):
        """Test the 金额, 付款金额 and 订单金额 labels."""
        assert extractor.extract_amount("金额：66.60") == Decimal("66.60")
        assert extractor.extract_amount("付款金额 120") == Decimal("120")
        assert extractor.extract_amount("订单金额:3.5") == Decimal("3.5")

    def test_symbol_beats_suffix(self, extractor):
        """Test that the currency-symbol rule has priority."""
        assert extractor.extract_amount("优惠 5元 实付 ¥20.00") == Decimal("20.00")

    def test_zero_falls_through_to_next_rule(self, extractor):
        """Test that a zero amount hands over to the next rule."""
        assert extractor.extract_amount("¥0.00 合计 25元") == Decimal("25")

    def test_no_amount(self, extractor):
        """Test text without any amount."""
        assert extractor.extract_amount("支付成功") is None

    def test_thousands_separator(self, extractor):
        """Test that 1,234.56 is read as one amount."""
        result = extractor.extract("支付成功 ¥1,234.56")
        assert isinstance(result, ExtractionSuccess)
        assert result.payment.amount == Decimal("1234.56")

    def test_thousands_separator_with_suffix(self, extractor):
        """Test thousands separators with other amount rules."""
        assert extractor.extract_amount("到账 12,000元") == Decimal("12000")
        assert extractor.extract_amount("实付款：¥1,000,000.00") == Decimal("1000000.00")

    def test_comma_without_thousands_group(self, extractor):
        """Test that a comma not followed by three digits ends the amount."""
        assert extractor.extract_amount("¥12,星巴克") == Decimal("12")


class TestDirection:
    """Tests for expense / income classification."""

    def test_expense_keyword(self, extractor):
        """Test an expense keyword."""
        assert extractor.classify_direction("支付成功") == (TransactionDirection.EXPENSE, False)

    def test_income_keyword(self, extractor):
        """Test an income keyword."""
        assert extractor.classify_direction("已到账") == (TransactionDirection.INCOME, False)

    def test_both_keyword_sets_default_to_expense(self, extractor):
        """Test that conflicting keywords fall back to an ambiguous expense."""
        result = extractor.extract("付款 退款 ¥10")
        assert isinstance(result, ExtractionSuccess)
        assert result.payment.direction == TransactionDirection.EXPENSE
        assert result.payment.direction_ambiguous is True

    def test_sign_fallback(self, extractor):
        """Test the +/- sign fallback."""
        assert extractor.classify_direction("+¥5") == (TransactionDirection.INCOME, True)
        assert extractor.classify_direction("-¥5") == (TransactionDirection.EXPENSE, True)

    def test_no_hint_defaults_to_expense(self, extractor):
        """Test the expense default without any hint."""
        assert extractor.classify_direction("¥5") == (TransactionDirection.EXPENSE, True)


class TestCounterparty:
    """Tests for counterparty extraction."""

    def test_merchant_label(self, extractor):
        """Test the 商户名称 label."""
        assert extractor.extract_counterparty("商户名称：星巴克\n¥38") == "星巴克"

    def test_transfer_to(self, extractor):
        """Test 向X付款."""
        assert extractor.extract_counterparty("向李四付款 ¥50") == "李四"

    def test_received_from(self, extractor):
        """Test 收到X的转账."""
        assert extractor.extract_counterparty(WECHAT_TRANSFER_IN) == "张三"

    def test_too_long_is_dropped(self, extractor):
        """Test the counterparty length limit."""
        assert extractor.extract_counterparty("商家：" + "A" * 31) is None
        assert extractor.extract_counterparty("商家：" + "A" * 30) == "A" * 30

    def test_configured_limit(self):
        """Test a custom counterparty length limit."""
        short = PaymentTextExtractor(max_counterparty_length=3)
        assert short.extract_counterparty("商家：星巴克咖啡") is None


class TestTimestamp:
    """Tests for timestamp extraction and normalisation."""

    def test_iso_layout(self, extractor):
        """Test the ISO-like timestamp layout."""
        assert extractor.extract_timestamp("时间 2024-03-15 12:30:45") == "2024-03-15 12:30:45"

    def test_slash_layout(self, extractor):
        """Test the slash-delimited timestamp layout."""
        assert extractor.extract_timestamp("2024/03/15 12:30 付款") == "2024/03/15 12:30"

    def test_chinese_layout(self, extractor):
        """Test the 年/月/日 timestamp layout."""
        assert extractor.extract_timestamp("2024年3月5日 08:05") == "2024年3月5日 08:05"

    def test_no_timestamp(self, extractor):
        """Test text without a timestamp."""
        assert extractor.extract_timestamp("¥12") is None

    def test_parse_timestamp(self):
        """Test timestamp normalisation for every layout."""
        assert parse_timestamp("2024-03-15 12:30:45") == datetime(2024, 3, 15, 12, 30, 45)
        assert parse_timestamp("2024/03/15 12:30") == datetime(2024, 3, 15, 12, 30)
        assert parse_timestamp("2024年3月5日 08:05") == datetime(2024, 3, 5, 8, 5)
        assert parse_timestamp("2024年3月5日08:05:09") == datetime(2024, 3, 5, 8, 5, 9)

    def test_parse_timestamp_rejects_invalid(self):
        """Test that unparsable timestamps give None."""
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None
        assert parse_timestamp("2024-02-30 10:00") is None
        assert parse_timestamp("soon") is None


class TestSource:
    """Tests for source detection."""

    @pytest.mark.parametrize(
        "text,source",
        [
            ("微信支付 ¥1", PaymentSource.WECHAT_PAY),
            ("支付宝 ¥1", PaymentSource.ALIPAY),
            ("招商银行 储蓄卡 ¥1", PaymentSource.BANK_APP),
            ("云闪付 ¥1", PaymentSource.CLOUD_PAY),
            ("增值税发票 ¥1", PaymentSource.INVOICE),
            ("收据 ¥1", PaymentSource.RECEIPT),
            ("¥1", PaymentSource.UNKNOWN),
        ],
    )
    def test_detect_source(self, extractor, text, source):
        """Test source detection per keyword set."""
        assert extractor.detect_source(text) == source

    def test_first_source_wins(self, extractor):
        """Test that the first matching keyword set decides."""
        assert extractor.detect_source("支付宝 微信支付") == PaymentSource.WECHAT_PAY


class TestExtract:
    """Tests for the full extraction."""

    def test_wechat_receipt(self, extractor):
        """Test a complete WeChat Pay receipt."""
        result = extractor.extract(WECHAT_RECEIPT)
        assert isinstance(result, ExtractionSuccess)
        assert result.source == PaymentSource.WECHAT_PAY

        payment = result.payment
        assert payment.amount == Decimal("38.00")
        assert payment.direction == TransactionDirection.EXPENSE
        assert payment.direction_ambiguous is False
        assert payment.counterparty == "星巴克"
        assert payment.timestamp == "2024-03-15 12:30:45"
        assert payment.payment_channel == PaymentChannel.WECHAT
        assert payment.raw_text == WECHAT_RECEIPT

    def test_wechat_transfer_in(self, extractor):
        """Test an incoming WeChat transfer."""
        result = extractor.extract(WECHAT_TRANSFER_IN)
        assert isinstance(result, ExtractionSuccess)
        assert result.payment.direction == TransactionDirection.INCOME
        assert result.payment.counterparty == "张三"
        assert result.payment.amount == Decimal("200.00")

    def test_invoice_has_no_channel(self, extractor):
        """Test that invoices imply no payment channel."""
        result = extractor.extract("发票 金额：100")
        assert isinstance(result, ExtractionSuccess)
        assert result.source == PaymentSource.INVOICE
        assert result.payment.payment_channel is None

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_blank_text(self, extractor, text):
        """Test blank or missing text."""
        result = extractor.extract(text)
        assert isinstance(result, InsufficientConfidence)
        assert result.reason == InsufficientConfidenceReason.NO_TEXT
        assert result.partial is None

    def test_no_amount_keeps_partial(self, extractor):
        """Test that partial fields survive a missing amount."""
        result = extractor.extract("支付成功 2024-03-15 12:30")
        assert isinstance(result, InsufficientConfidence)
        assert result.reason == InsufficientConfidenceReason.NO_AMOUNT
        assert result.raw_text == "支付成功 2024-03-15 12:30"
        assert result.partial.direction == TransactionDirection.EXPENSE
        assert result.partial.timestamp == "2024-03-15 12:30"
        assert result.partial.amount is None

    def test_no_amount_nothing_found(self, extractor):
        """Test that partial is None when nothing was found."""
        result = extractor.extract("hello world")
        assert isinstance(result, InsufficientConfidence)
        assert result.reason == InsufficientConfidenceReason.NO_AMOUNT
        assert result.partial is None

    @pytest.mark.parametrize(
        "text",
        ["¥", "元", "金额：", "¥abc", "¥99999999999999999999.99", "\x00\uffff", "商家：\n", "2024-13-45 99:99"],
    )
    def test_never_raises(self, extractor, text):
        """Test that malformed text never raises."""
        result = extractor.extract(text)
        assert result.kind in ("success", "insufficient_confidence")

    def test_result_round_trips(self, extractor):
        """Test that a result survives a dump and validate."""
        result = extractor.extract(WECHAT_RECEIPT)
        restored = extraction_result_adapter.validate_python(result.model_dump())
        assert restored == result

    def test_module_level_extract(self):
        """Test the module-level extract function."""
        result = extract("¥12.34")
        assert isinstance(result, ExtractionSuccess)
        assert result.payment.amount == Decimal("12.34")
