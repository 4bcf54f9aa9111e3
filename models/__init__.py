"""Pydantic models for the Signalboard feedback pipeline.

Classification:
    Per-item labels (theme, sentiment, urgency, tags) from the classifier.

Sentiment / Urgency:
    Closed label sets; parsing is case-insensitive.

FeedbackCreate / FeedbackItem:
    Inbound feedback and the stored item with its classification.

Cadence / Digest / DigestPayload:
    Aggregation period and the aggregated digest for a window.

Example:
    >>> from models import Classification, Sentiment, Urgency
    >>> c = Classification(theme="Billing", sentiment=Sentiment.NEGATIVE, urgency=Urgency.HIGH)
"""

from models.classification import Classification, Sentiment, Urgency
from models.feedback import FeedbackCreate, FeedbackItem
from models.digest import Cadence, Digest, DigestPayload, SentimentCount, ThemeCount

__all__ = [
    "Classification",
    "Sentiment",
    "Urgency",
    "FeedbackCreate",
    "FeedbackItem",
    "Cadence",
    "Digest",
    "DigestPayload",
    "SentimentCount",
    "ThemeCount",
]
