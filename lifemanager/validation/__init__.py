"""Payment review before booking."""

from lifemanager.validation.reviewer import PaymentReviewValidator

__all__ = ["PaymentReviewValidator"]
