"""Classifier agent for feedback metadata.

This module implements the FeedbackClassifier, which asks a language model
to label a single piece of feedback with a theme, sentiment, urgency and
tags.

Design Philosophy:
    - Total: classify() never raises; the worst case is the fallback value
    - Per-field degradation: an invalid sentiment does not discard a valid theme
    - One call: a single model round-trip per item, no retries

Pipeline:
    prompt -> TextGenerator -> extract_json_object -> try_parse_json
           -> field validation -> Classification
"""

import asyncio
import json
import logging
from typing import Any

from agents.generator import TextGenerator
from agents.parsing import extract_json_object, is_encodable, try_parse_json
from models.classification import (
    FALLBACK_CLASSIFICATION,
    Classification,
    fallback_classification,
    normalize_sentiment,
    normalize_urgency,
)
from observability.tracing import trace_operation

logger = logging.getLogger(__name__)


CLASSIFIER_PROMPT = """Analyze the following feedback and return ONLY a valid JSON object with this exact structure:
{{
  "theme": "a single word or short phrase describing the main theme (e.g., feature_request, bug, performance, ui, integration)",
  "sentiment": "one of: positive, negative, neutral",
  "urgency": "one of: high, medium, low",
  "tags": ["array", "of", "relevant", "tags"]
}}

Feedback: {content}

Return ONLY the JSON object, no other text."""


def build_prompt(content: str) -> str:
    """Embed feedback content verbatim in the classification prompt."""
    return CLASSIFIER_PROMPT.format(content=content)


def _tag_text(value: Any) -> str:
    """String form of a tag element; non-strings are rendered as JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def validate_classification(parsed: Any) -> Classification:
    """Build a Classification from parsed model output.

    Each field is validated on its own and replaced by the fallback value
    when invalid:
        theme:     non-empty string after trimming, valid UTF-8
        sentiment: lower-cased, one of positive/neutral/negative
        urgency:   lower-cased, one of high/medium/low
        tags:      a list; elements converted to strings, invalid UTF-8 dropped

    Args:
        parsed: Value returned by try_parse_json

    Returns:
        A fully populated Classification
    """
    if not isinstance(parsed, dict):
        return fallback_classification()

    theme = parsed.get("theme")
    theme = theme.strip() if isinstance(theme, str) and is_encodable(theme) else ""

    tags = parsed.get("tags")
    if isinstance(tags, list):
        tags = [text for text in map(_tag_text, tags) if is_encodable(text)]
    return Classification(
        theme=theme or FALLBACK_CLASSIFICATION.theme,
        sentiment=normalize_sentiment(parsed.get("sentiment")) or FALLBACK_CLASSIFICATION.sentiment,
        urgency=normalize_urgency(parsed.get("urgency")) or FALLBACK_CLASSIFICATION.urgency,
        tags=tags if isinstance(tags, list) else list(FALLBACK_CLASSIFICATION.tags),
    )


class FeedbackClassifier:
    """Labels feedback items using a language model.

    Error Handling:
        Generator exceptions, empty output, output without a JSON object and
        unparseable JSON all yield the fallback classification. Parsed
        objects with some invalid fields keep their valid fields.

    Example:
        >>> classifier = FeedbackClassifier(generator, max_tokens=200)
        >>> result = await classifier.classify("The app crashes on login")
        >>> result.urgency
        <Urgency.HIGH: 'high'>
    """

    def __init__(self, generator: TextGenerator, max_tokens: int = 200):
        """Initialize the classifier.

        Args:
            generator: Text generation backend
            max_tokens: Output cap for one classification call
        """
        self.generator = generator
        self.max_tokens = max_tokens

    async def classify(self, content: str) -> Classification:
        """Classify a single feedback text.

        Args:
            content: Feedback text

        Returns:
            Classification (fallback values where the model output is unusable)
        """
        with trace_operation("classify_feedback", {"chars": len(content)}) as attrs:
            try:
                text = await self.generator.generate(build_prompt(content), self.max_tokens)
            except Exception as e:
                logger.error("Classification call failed | preview=%s error=%s", content[:50], e, exc_info=True)
                attrs["fallback"] = "error"
                return fallback_classification()

            if not isinstance(text, str) or not text.strip():
                logger.warning("Classification returned empty output | preview=%s", content[:50])
                attrs["fallback"] = "empty"
                return fallback_classification()

            raw = extract_json_object(text)
            if raw is None:
                logger.warning("No JSON object in classification output | output=%s", text[:120])
                attrs["fallback"] = "no_json"
                return fallback_classification()

            parsed = try_parse_json(raw)
            if parsed is None:
                logger.warning("Unparseable classification JSON | raw=%s", raw[:120])
                attrs["fallback"] = "parse"
                return fallback_classification()

            result = validate_classification(parsed)
            logger.debug("Classified: %s... -> %s", content[:50], result)
            return result

    async def classify_batch(
        self,
        contents: list[str],
        max_concurrent: int = 5,
    ) -> list[Classification]:
        """Classify multiple texts concurrently.

        Args:
            contents: Feedback texts
            max_concurrent: Max concurrent model calls

        Returns:
            Classifications in input order
        """
        total = len(contents)
        completed = 0
        semaphore = asyncio.Semaphore(max_concurrent)

        logger.info("Batch classification started | total=%d max_concurrent=%d", total, max_concurrent)

        async def classify_one(content: str) -> Classification:
            nonlocal completed
            async with semaphore:
                result = await self.classify(content)
                completed += 1
                if completed % 10 == 0 or completed == total:
                    logger.info("Classification progress: %d/%d (%.0f%%)", completed, total, completed / total * 100)
                return result

        results = await asyncio.gather(*(classify_one(c) for c in contents))
        logger.info("Batch classification complete | total=%d", total)
        return list(results)
