"""Feedback data models.

FeedbackCreate is the inbound shape accepted from users and import files.
FeedbackItem is the stored record: the inbound fields plus the id assigned
by the database and the classification computed before the insert.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from models.classification import Sentiment, Urgency, normalize_sentiment, normalize_urgency


def ensure_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class FeedbackCreate(BaseModel):
    """A feedback submission before classification.

    Attributes:
        source: Channel the feedback arrived on (email, slack, ...)
        content: Feedback text, must not be blank
        title: Optional short title
        created_at: Optional timestamp; defaults to submission time
    """

    source: str = Field(min_length=1, description="Channel the feedback came from")
    content: str = Field(min_length=1, description="Feedback text")
    title: str | None = Field(default=None, description="Optional short title")
    created_at: datetime | None = Field(default=None, description="When it was written")

    @field_validator("source", "content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None


class FeedbackItem(BaseModel):
    """A stored feedback record.

    Classification fields are optional in the schema because rows written
    by other tools may lack them; everything this package writes has them.
    """

    id: int
    source: str
    title: str | None = None
    content: str
    created_at: datetime
    theme: str | None = None
    sentiment: Sentiment | None = None
    urgency: Urgency | None = None
    tags: list[str] | None = None

    # Unknown labels in old rows are read as missing rather than failing the load
    @field_validator("sentiment", mode="before")
    @classmethod
    def _lenient_sentiment(cls, value):
        return normalize_sentiment(value)

    @field_validator("urgency", mode="before")
    @classmethod
    def _lenient_urgency(cls, value):
        return normalize_urgency(value)

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def to_api(self) -> dict:
        """Serialize to the JSON shape returned to API and CLI callers."""
        return self.model_dump(mode="json")
