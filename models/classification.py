"""Classification models for feedback items.

This module defines the categorical metadata the classifier derives for
each piece of feedback:

    theme:     Short free-text label ("Billing", "Mobile", ...)
    sentiment: positive | neutral | negative
    urgency:   high | medium | low
    tags:      Ordered list of short keywords

A Classification is always fully populated. When model output cannot be
trusted, the classifier substitutes values from FALLBACK_CLASSIFICATION
field by field, so no partial result ever leaves the classifier.
"""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Sentiment(str, Enum):
    """Overall tone of a feedback item."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Urgency(str, Enum):
    """How quickly a feedback item needs attention."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def normalize_sentiment(value: Any) -> Sentiment | None:
    """Return the Sentiment for a raw model value, or None if unrecognised.

    Only strings are considered. The value is lower-cased and must then
    match one of the enum values exactly.
    """
    if isinstance(value, Sentiment):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Sentiment(value.lower())
    except ValueError:
        return None


def normalize_urgency(value: Any) -> Urgency | None:
    """Return the Urgency for a raw model value, or None if unrecognised."""
    if isinstance(value, Urgency):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Urgency(value.lower())
    except ValueError:
        return None


class Classification(BaseModel):
    """Metadata derived for one feedback item.

    Attributes:
        theme: Main theme, trimmed and non-empty
        sentiment: Overall tone
        urgency: Attention level
        tags: Keywords in model order

    Example:
        >>> Classification(theme="Billing", sentiment="negative", urgency="high", tags=["refund"])
        Classification(theme='Billing', ...)
    """

    theme: str = Field(min_length=1, description="Main theme of the feedback")
    sentiment: Sentiment = Field(description="Overall tone")
    urgency: Urgency = Field(description="How urgent the feedback is")
    tags: list[str] = Field(default_factory=list, description="Relevant keywords")

    def __str__(self) -> str:
        """Human-readable representation for logging."""
        return f"Classification({self.theme}, {self.sentiment.value}, {self.urgency.value})"


# Substituted for any field the model fails to provide. One constant covers
# every failure path: generator errors, empty output and invalid fields alike.
FALLBACK_CLASSIFICATION = Classification(
    theme="General Feedback",
    sentiment=Sentiment.NEUTRAL,
    urgency=Urgency.LOW,
    tags=["misc"],
)


def fallback_classification() -> Classification:
    """Return a fresh copy of the fallback classification."""
    return FALLBACK_CLASSIFICATION.model_copy(deep=True)
