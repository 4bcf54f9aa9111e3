"""Shared fixtures for the Signalboard test suite."""

from datetime import datetime, timezone

import pytest

from config import Config
from database import Database
from models.feedback import FeedbackItem

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class StubGenerator:
    """Deterministic TextGenerator that records every call.

    response may be a string or a callable taking the prompt; error, when
    set, is raised instead of answering.
    """

    def __init__(self, response="", error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def generate(self, prompt: str, max_tokens: int) -> str:
        self.calls.append((prompt, max_tokens))
        if self.error is not None:
            raise self.error
        if callable(self.response):
            return self.response(prompt)
        return self.response


@pytest.fixture
def stub():
    """Factory for StubGenerator instances."""
    return StubGenerator


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        classifier_model="test",
        summary_model="test",
        db_path=tmp_path / "signalboard.db",
        log_dir=tmp_path / "log",
        reports_dir=tmp_path / "reports",
        max_workers=3,
    )


@pytest.fixture
def db(tmp_path):
    with Database(tmp_path / "signalboard.db") as database:
        yield database


def make_item(item_id: int, **fields) -> FeedbackItem:
    """Build a stored-looking FeedbackItem without touching the database."""
    data = {
        "id": item_id,
        "source": "email",
        "content": f"Feedback number {item_id}",
        "created_at": NOW,
    }
    data.update(fields)
    return FeedbackItem(**data)


@pytest.fixture
def item_factory():
    return make_item
