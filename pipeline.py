"""Pipeline orchestration for feedback ingestion and digests.

This module coordinates the feedback workflow:

Ingestion:
    1. VALIDATE: FeedbackCreate checks required fields
    2. CLASSIFY: FeedbackClassifier labels the content (one model call)
    3. SAVE: Item and labels are stored together, never updated afterwards

Digest:
    1. WINDOW: Compute the cadence window ending now
    2. LOAD: Read feedback created inside the window
    3. SUMMARIZE: DigestAgent aggregates the batch (model or fallback)
    4. SAVE: Store the digest; the newest one per cadence wins on read

The pipeline owns no global state; the database and text generators are
passed in so every collaborator can be replaced in tests.
"""

import logging
from datetime import datetime, timedelta, timezone

from agents.classifier import FeedbackClassifier
from agents.generator import TextGenerator
from agents.summarizer import DigestAgent
from config import Config
from database import Database
from models.classification import Classification
from models.digest import Cadence, Digest, period_start
from models.feedback import FeedbackCreate, FeedbackItem, ensure_utc
from seeds import MOCK_FEEDBACK

logger = logging.getLogger(__name__)


class SignalboardError(Exception):
    """Base class for errors reported to pipeline callers."""


class NoFeedbackError(SignalboardError):
    """Raised when a digest window contains no feedback."""


class DigestNotFoundError(SignalboardError):
    """Raised when no digest exists for a cadence."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def seed_feedback(db: Database, now: datetime | None = None) -> int:
    """Insert the built-in mock feedback without any model calls.

    Timestamps are spread over the last ten days so every cadence has
    data to aggregate.

    Args:
        db: Open database
        now: Reference time (defaults to current UTC time)

    Returns:
        Number of items inserted
    """
    now = ensure_utc(now) if now else _now()
    inserted = 0
    for i, entry in enumerate(MOCK_FEEDBACK):
        created_at = (now - timedelta(days=i % 10)).replace(
            hour=9 + (i % 8), minute=0, second=0, microsecond=0,
        )
        feedback = FeedbackCreate(
            source=entry["source"],
            title=entry["title"],
            content=entry["content"],
            created_at=created_at,
        )
        classification = Classification(
            theme=entry["theme"],
            sentiment=entry["sentiment"],
            urgency=entry["urgency"],
            tags=entry["tags"],
        )
        db.save_feedback(feedback, classification, created_at, commit=False)
        inserted += 1
    db.commit()
    logger.info("Mock feedback seeded | count=%d", inserted)
    return inserted


def get_latest_digest(db: Database, cadence: Cadence) -> Digest:
    """Return the most recent digest for a cadence.

    Raises:
        DigestNotFoundError: If no digest exists yet
    """
    digest = db.latest_digest(cadence)
    if digest is None:
        raise DigestNotFoundError(f"No digest found for cadence '{cadence.value}'")
    return digest


class FeedbackPipeline:
    """Feedback ingestion and digest generation.

    Components:
        - Database: SQLite storage for feedback and digests
        - FeedbackClassifier: Per-item labels (classifier generator)
        - DigestAgent: Batch aggregation (summary generator)

    Example:
        >>> pipeline = FeedbackPipeline(config, db, classifier_gen, summary_gen)
        >>> item = await pipeline.submit(FeedbackCreate(source="email", content="..."))
        >>> digest = await pipeline.generate_digest(Cadence.WEEKLY)
    """

    def __init__(
        self,
        config: Config,
        db: Database,
        classifier_generator: TextGenerator,
        summary_generator: TextGenerator | None = None,
    ):
        """Initialize pipeline with its collaborators.

        Args:
            config: Application configuration
            db: Open database
            classifier_generator: Backend for classification calls
            summary_generator: Backend for digest calls (defaults to classifier_generator)
        """
        self.config = config
        self.db = db
        self.classifier = FeedbackClassifier(classifier_generator, max_tokens=config.classify_max_tokens)
        self.digest_agent = DigestAgent(
            summary_generator or classifier_generator,
            max_tokens=config.digest_max_tokens,
        )

    async def submit(self, feedback: FeedbackCreate) -> FeedbackItem:
        """Classify and store a single feedback item.

        Args:
            feedback: Validated inbound feedback

        Returns:
            The stored item with id and classification
        """
        classification = await self.classifier.classify(feedback.content)
        item = self.db.save_feedback(feedback, classification, feedback.created_at or _now())
        logger.info("Feedback stored | id=%d source=%s %s", item.id, item.source, classification)
        return item

    async def import_items(self, feedback: list[FeedbackCreate]) -> list[FeedbackItem]:
        """Classify a batch concurrently and store it in input order.

        Args:
            feedback: Validated inbound feedback

        Returns:
            Stored items, in the same order as the input
        """
        if not feedback:
            return []

        classifications = await self.classifier.classify_batch(
            [f.content for f in feedback],
            max_concurrent=self.config.max_workers,
        )
        now = _now()
        items = [
            self.db.save_feedback(f, c, f.created_at or now, commit=False)
            for f, c in zip(feedback, classifications)
        ]
        self.db.commit()
        logger.info("Feedback imported | count=%d", len(items))
        return items

    def seed(self, now: datetime | None = None) -> int:
        """Insert the built-in mock feedback (see seed_feedback)."""
        return seed_feedback(self.db, now)

    async def generate_digest(self, cadence: Cadence, now: datetime | None = None) -> Digest:
        """Aggregate the cadence window ending now into a stored digest.

        Args:
            cadence: Aggregation period
            now: End of the window (defaults to current UTC time)

        Returns:
            The stored Digest

        Raises:
            NoFeedbackError: If the window contains no feedback
        """
        now = ensure_utc(now) if now else _now()
        start = period_start(cadence, now)

        items = self.db.feedback_since(start)
        if not items:
            raise NoFeedbackError(f"No feedback found in the {cadence.value} window starting {start.isoformat()}")

        logger.info("Generating digest | cadence=%s items=%d since=%s", cadence.value, len(items), start.isoformat())
        payload = await self.digest_agent.summarize(items)
        return self.db.save_digest(cadence, start, now, payload, created_at=now)

    def latest_digest(self, cadence: Cadence) -> Digest:
        """Return the most recent digest for a cadence (see get_latest_digest)."""
        return get_latest_digest(self.db, cadence)
