"""Payment extraction package."""

from lifemanager.extraction.notification import (
    PACKAGE_CHANNELS,
    NotificationParser,
    channel_for_package,
    classify_notification_direction,
    compose_notification_text,
)
from lifemanager.extraction.payment_text import (
    PaymentTextExtractor,
    apply_rules,
    build_partial,
    extract,
    parse_timestamp,
)

__all__ = [
    "PACKAGE_CHANNELS",
    "NotificationParser",
    "PaymentTextExtractor",
    "apply_rules",
    "build_partial",
    "channel_for_package",
    "classify_notification_direction",
    "compose_notification_text",
    "extract",
    "parse_timestamp",
]
