"""Digest models for periodic feedback summaries.

A digest aggregates every feedback item created within a cadence window:

    daily:   since UTC midnight of the generation day
    weekly:  the last 7 days
    monthly: since the same day one calendar month earlier

DigestPayload is what the digest agent produces. Digest adds the storage
fields (id, cadence, period bounds, created_at).
"""

import calendar
from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field

from models.classification import Sentiment
from models.feedback import ensure_utc


class Cadence(str, Enum):
    """Digest aggregation period."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def period_start(cadence: Cadence, now: datetime) -> datetime:
    """Compute the start of the digest window ending at now.

    Args:
        cadence: Aggregation period
        now: End of the window

    Returns:
        Window start as an aware UTC datetime
    """
    now = ensure_utc(now)
    if cadence == Cadence.DAILY:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if cadence == Cadence.WEEKLY:
        return now - timedelta(days=7)
    year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


class ThemeCount(BaseModel):
    """Number of feedback items sharing a theme."""

    theme: str = Field(description="Theme label")
    count: int = Field(ge=0, description="Items with this theme")


class SentimentCount(BaseModel):
    """Number of feedback items with a given sentiment."""

    sentiment: Sentiment = Field(description="Sentiment value")
    count: int = Field(ge=0, description="Items with this sentiment")


class DigestPayload(BaseModel):
    """Aggregated view of a batch of feedback.

    Attributes:
        executive_summary: Short prose summary of the batch
        top_themes: Most common themes, highest count first
        sentiment_breakdown: Exactly one entry each for positive, neutral, negative
        urgent_ids: Distinct ids of urgent feedback items
    """

    executive_summary: str = Field(description="2-3 sentence overview")
    top_themes: list[ThemeCount] = Field(default_factory=list)
    sentiment_breakdown: list[SentimentCount] = Field(default_factory=list)
    urgent_ids: list[int] = Field(default_factory=list)


class Digest(DigestPayload):
    """A stored digest for one cadence and generation event."""

    id: int
    cadence: Cadence
    period_start: datetime
    period_end: datetime
    created_at: datetime

    def to_api(self) -> dict:
        """Serialize to the JSON shape returned to API and CLI callers."""
        return self.model_dump(mode="json")
