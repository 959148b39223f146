"""
Review Models

Outcome of checking an extracted payment before it is booked.

IMPORTANT: Review NEVER fixes anything. It only reports what a human
should look at.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReviewIssue(BaseModel):
    """A single issue found while reviewing a payment."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'ambiguous', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ReviewResult(BaseModel):
    """
    Result of reviewing an extracted payment.

    ``can_auto_apply`` is the "confidence" the app uses to decide whether
    a payment may be booked without asking the user.
    """

    reviewed_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    can_auto_apply: bool = Field(
        ...,
        description="No warnings - safe to book without confirmation"
    )
    issues: list[ReviewIssue] = Field(
        default_factory=list,
        description="All issues found, including informational ones"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Messages of warning-level issues"
    )

