"""Digest agent for aggregating a window of feedback."""

import logging
import math
from typing import Any

from agents.generator import TextGenerator
from agents.parsing import extract_json_object, is_encodable, try_parse_json
from models.classification import Sentiment, Urgency, normalize_sentiment, normalize_urgency
from models.digest import Digest, DigestPayload, SentimentCount, ThemeCount
from models.feedback import FeedbackItem
from observability.tracing import trace_operation

logger = logging.getLogger(__name__)

DEFAULT_THEME = "General Feedback"
MAX_TOP_THEMES = 5
MAX_URGENT_IDS = 10
CONTENT_PREVIEW_CHARS = 200

SUMMARIZER_PROMPT = """Analyze the following feedback items and generate a digest. Return ONLY a valid JSON object with this exact structure:
{{
  "executive_summary": "a 2-3 sentence summary of the overall feedback",
  "top_themes": [{{"theme": "theme_name", "count": number}}, ...],
  "sentiment_breakdown": [{{"sentiment": "positive|negative|neutral", "count": number}}, ...],
  "urgent_ids": [array of feedback IDs that are urgent]
}}

Feedback items:
{items}

Return ONLY the JSON object, no other text."""


def build_prompt(items: list[FeedbackItem]) -> str:
    """List every item as 'n. [ID:id] title: content preview...'."""
    lines = [
        f"{i}. [ID:{item.id}] {item.title or 'Untitled'}: {item.content[:CONTENT_PREVIEW_CHARS]}..."
        for i, item in enumerate(items, start=1)
    ]
    return SUMMARIZER_PROMPT.format(items="\n".join(lines))


def fallback_summary(count: int) -> str:
    return f"Summary of {count} feedback items collected (fallback digest)."


def _sentiment_breakdown(counts: dict[Sentiment, int]) -> list[SentimentCount]:
    """Exactly one entry per sentiment, in fixed order."""
    return [SentimentCount(sentiment=s, count=counts.get(s, 0)) for s in Sentiment]


def fallback_digest(items: list[FeedbackItem]) -> DigestPayload:
    """Aggregate a batch directly, without a model.

    - Themes are counted per item (missing theme counts as "General Feedback"),
      sorted by count descending with ties in first-seen order, top 5 kept.
    - Sentiments count only items labelled positive, neutral or negative.
    - Urgent ids are the first 10 items with urgency "high".

    Args:
        items: Feedback batch (non-empty)

    Returns:
        Deterministic DigestPayload
    """
    themes: dict[str, int] = {}
    sentiments: dict[Sentiment, int] = {}
    urgent_ids: list[int] = []

    for item in items:
        theme = item.theme or DEFAULT_THEME
        themes[theme] = themes.get(theme, 0) + 1

        sentiment = normalize_sentiment(item.sentiment)
        if sentiment is not None:
            sentiments[sentiment] = sentiments.get(sentiment, 0) + 1

        if normalize_urgency(item.urgency) == Urgency.HIGH and item.id not in urgent_ids:
            urgent_ids.append(item.id)

    # sorted() is stable, so equal counts keep first-seen order
    ranked = sorted(themes.items(), key=lambda kv: kv[1], reverse=True)

    return DigestPayload(
        executive_summary=fallback_summary(len(items)),
        top_themes=[ThemeCount(theme=t, count=c) for t, c in ranked[:MAX_TOP_THEMES]],
        sentiment_breakdown=_sentiment_breakdown(sentiments),
        urgent_ids=urgent_ids[:MAX_URGENT_IDS],
    )


def _count(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0 or value != int(value):
        return None
    return int(value)


def _item_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        # isdigit() also accepts superscripts and over-long digit runs
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def validate_digest(parsed: Any, items: list[FeedbackItem]) -> DigestPayload | None:
    """Build a DigestPayload from parsed model output.

    Fields that are not lists become empty lists. Entries are then checked
    individually and invalid ones dropped: themes need a non-empty name and a
    non-negative whole count; the sentiment breakdown is rebuilt in fixed
    order from the recognised entries; urgent ids must name items of the
    batch. A missing or non-UTF-8 summary is replaced by the fallback sentence.

    Returns:
        DigestPayload, or None if parsed is not a JSON object
    """
    if not isinstance(parsed, dict):
        return None

    raw_themes = parsed.get("top_themes")
    raw_sentiments = parsed.get("sentiment_breakdown")
    raw_urgent = parsed.get("urgent_ids")
    raw_themes = raw_themes if isinstance(raw_themes, list) else []
    raw_sentiments = raw_sentiments if isinstance(raw_sentiments, list) else []
    raw_urgent = raw_urgent if isinstance(raw_urgent, list) else []

    themes: list[ThemeCount] = []
    for entry in raw_themes:
        if not isinstance(entry, dict):
            continue
        theme = entry.get("theme")
        count = _count(entry.get("count"))
        if isinstance(theme, str) and theme.strip() and is_encodable(theme) and count is not None:
            themes.append(ThemeCount(theme=theme.strip(), count=count))
    themes.sort(key=lambda t: t.count, reverse=True)

    sentiments: dict[Sentiment, int] = {}
    for entry in raw_sentiments:
        if not isinstance(entry, dict):
            continue
        sentiment = normalize_sentiment(entry.get("sentiment"))
        count = _count(entry.get("count"))
        if sentiment is not None and count is not None and sentiment not in sentiments:
            sentiments[sentiment] = count

    known_ids = {item.id for item in items}
    urgent_ids: list[int] = []
    for value in raw_urgent:
        item_id = _item_id(value)
        if item_id in known_ids and item_id not in urgent_ids:
            urgent_ids.append(item_id)

    summary = parsed.get("executive_summary")
    if not isinstance(summary, str) or not summary.strip() or not is_encodable(summary):
        summary = fallback_summary(len(items))

    return DigestPayload(
        executive_summary=summary.strip(),
        top_themes=themes[:MAX_TOP_THEMES],
        sentiment_breakdown=_sentiment_breakdown(sentiments),
        urgent_ids=urgent_ids[:MAX_URGENT_IDS],
    )


def render_digest_markdown(digest: Digest) -> str:
    """Render a stored Digest into a human-readable markdown file."""
    lines = [
        f"# {digest.cadence.value.capitalize()} Feedback Digest",
        "",
        f"**Generated:** {digest.created_at.strftime('%Y-%m-%d %H:%M:%S')} UTC",
        f"**Period:** {digest.period_start.strftime('%Y-%m-%d %H:%M')} to "
        f"{digest.period_end.strftime('%Y-%m-%d %H:%M')} UTC",
        "",
        "## Executive Summary",
        "",
        digest.executive_summary,
    ]

    if digest.top_themes:
        lines.extend(["", "## Top Themes", ""])
        lines.extend([f"- **{t.theme}**: {t.count}" for t in digest.top_themes])

    lines.extend(["", "## Sentiment", ""])
    lines.extend([f"- {s.sentiment.value}: {s.count}" for s in digest.sentiment_breakdown])

    lines.extend(["", "## Urgent Items", ""])
    if digest.urgent_ids:
        lines.extend([f"- #{item_id}" for item_id in digest.urgent_ids])
    else:
        lines.append("None")

    return "\n".join(lines) + "\n"


class DigestAgent:
    """Summarizes a batch of feedback into a digest.

    summarize() never raises. When the model call fails or its output is
    unusable, the digest is computed by fallback_digest() instead.
    """

    def __init__(self, generator: TextGenerator, max_tokens: int = 500):
        """Initialize the digest agent.

        Args:
            generator: Text generation backend
            max_tokens: Output cap for one digest call
        """
        self.generator = generator
        self.max_tokens = max_tokens

    async def _generate_payload(self, items: list[FeedbackItem]) -> DigestPayload | None:
        try:
            text = await self.generator.generate(build_prompt(items), self.max_tokens)
        except Exception as e:
            logger.error("Digest call failed | items=%d error=%s", len(items), e, exc_info=True)
            return None

        if not isinstance(text, str) or not text.strip():
            logger.warning("Digest call returned empty output | items=%d", len(items))
            return None

        raw = extract_json_object(text)
        if raw is None:
            logger.warning("No JSON object in digest output | output=%s", text[:120])
            return None

        payload = validate_digest(try_parse_json(raw), items)
        if payload is None:
            logger.warning("Unparseable digest JSON | raw=%s", raw[:120])
        return payload

    async def summarize(self, items: list[FeedbackItem]) -> DigestPayload:
        """Generate a digest payload for a non-empty batch.

        Args:
            items: Feedback items in the digest window

        Returns:
            DigestPayload from the model, or the deterministic fallback
        """
        with trace_operation("summarize_feedback", {"items": len(items)}) as attrs:
            payload = await self._generate_payload(items)
            if payload is None:
                attrs["fallback"] = True
                logger.info("Using fallback digest | items=%d", len(items))
                return fallback_digest(items)

            logger.info(
                "Digest generated | items=%d themes=%d urgent=%d",
                len(items),
                len(payload.top_themes),
                len(payload.urgent_ids),
            )
            return payload
