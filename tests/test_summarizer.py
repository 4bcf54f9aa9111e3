import asyncio
import json

from agents.generator import GenerationError
from agents.summarizer import (
    DigestAgent,
    build_prompt,
    fallback_digest,
    render_digest_markdown,
    validate_digest,
)
from models.classification import Sentiment
from models.digest import Cadence, Digest, SentimentCount, ThemeCount
from conftest import NOW, make_item


def summarize(generator, items, **kwargs):
    return asyncio.run(DigestAgent(generator, **kwargs).summarize(items))


def breakdown(positive=0, neutral=0, negative=0):
    return [
        SentimentCount(sentiment=Sentiment.POSITIVE, count=positive),
        SentimentCount(sentiment=Sentiment.NEUTRAL, count=neutral),
        SentimentCount(sentiment=Sentiment.NEGATIVE, count=negative),
    ]


def sample_items():
    return [
        make_item(1, theme="A", sentiment="negative", urgency="high"),
        make_item(2, theme="A", sentiment="positive", urgency="low"),
        make_item(3, theme="B", sentiment="negative", urgency="high"),
    ]


def test_fallback_on_generator_failure(stub):
    items = sample_items()

    payload = summarize(stub(error=GenerationError("down")), items)

    assert payload.top_themes == [ThemeCount(theme="A", count=2), ThemeCount(theme="B", count=1)]
    assert payload.sentiment_breakdown == breakdown(positive=1, negative=2)
    assert set(payload.urgent_ids) == {1, 3}
    assert payload.executive_summary == "Summary of 3 feedback items collected (fallback digest)."


def test_fallback_on_unusable_output(stub):
    items = sample_items()
    for output in ["", "Here is your digest!", "{broken", "{still: broken}"]:
        assert summarize(stub(output), items) == fallback_digest(items)


def test_fallback_truncates_themes_and_urgent_ids():
    items = [make_item(i, theme=f"Theme {i % 7}", urgency="high") for i in range(1, 16)]

    payload = fallback_digest(items)

    assert len(payload.top_themes) == 5
    assert payload.urgent_ids == list(range(1, 11))


def test_fallback_theme_ties_keep_first_seen_order():
    items = [
        make_item(1, theme="Zeta"),
        make_item(2, theme="Alpha"),
        make_item(3, theme="Alpha"),
        make_item(4, theme="Zeta"),
        make_item(5, theme="Mid"),
    ]

    assert [t.theme for t in fallback_digest(items).top_themes] == ["Zeta", "Alpha", "Mid"]


def test_fallback_missing_labels():
    items = [make_item(1), make_item(2, theme="", sentiment="mixed", urgency="HIGH")]

    payload = fallback_digest(items)

    assert payload.top_themes == [ThemeCount(theme="General Feedback", count=2)]
    assert payload.sentiment_breakdown == breakdown()
    assert payload.urgent_ids == [2]


def test_model_digest_is_used(stub):
    items = sample_items()
    output = json.dumps({
        "executive_summary": "Login issues dominate this week.",
        "top_themes": [{"theme": "B", "count": 1}, {"theme": "A", "count": 2}],
        "sentiment_breakdown": [{"sentiment": "negative", "count": 2}, {"sentiment": "positive", "count": 1}],
        "urgent_ids": [3, 1],
    })

    payload = summarize(stub(f"Digest:\n{output}\nDone."), items)

    assert payload.executive_summary == "Login issues dominate this week."
    assert payload.top_themes == [ThemeCount(theme="A", count=2), ThemeCount(theme="B", count=1)]
    assert payload.sentiment_breakdown == breakdown(positive=1, negative=2)
    assert payload.urgent_ids == [3, 1]


def test_prompt_lists_items_and_uses_token_cap(stub):
    long_content = "x" * 300
    items = [
        make_item(7, title="Slow dashboard", content="Takes ten seconds"),
        make_item(9, content=long_content),
    ]
    generator = stub("")

    summarize(generator, items, max_tokens=321)

    prompt, max_tokens = generator.calls[0]
    assert prompt == build_prompt(items)
    assert "1. [ID:7] Slow dashboard: Takes ten seconds..." in prompt
    assert f"2. [ID:9] Untitled: {'x' * 200}..." in prompt
    assert "x" * 201 not in prompt
    assert max_tokens == 321


def test_default_token_cap(stub):
    generator = stub("")
    summarize(generator, sample_items())
    assert generator.calls[0][1] == 500


class TestValidateDigest:
    def test_non_object_is_rejected(self):
        assert validate_digest([1, 2], sample_items()) is None
        assert validate_digest(None, sample_items()) is None

    def test_non_list_fields_become_empty(self):
        payload = validate_digest({
            "executive_summary": "Quiet week.",
            "top_themes": "A, B",
            "sentiment_breakdown": {"positive": 1},
            "urgent_ids": 3,
        }, sample_items())

        assert payload.executive_summary == "Quiet week."
        assert payload.top_themes == []
        assert payload.sentiment_breakdown == breakdown()
        assert payload.urgent_ids == []

    def test_invalid_theme_entries_are_dropped(self):
        payload = validate_digest({
            "top_themes": [
                {"theme": "A", "count": 2},
                {"theme": "", "count": 5},
                {"theme": "B", "count": -1},
                {"theme": "C", "count": "many"},
                {"theme": "D", "count": 1.5},
                {"theme": "E", "count": 3.0},
                "F",
            ],
        }, sample_items())

        assert payload.top_themes == [ThemeCount(theme="E", count=3), ThemeCount(theme="A", count=2)]

    def test_themes_capped_at_five(self):
        themes = [{"theme": f"T{i}", "count": i} for i in range(8)]
        payload = validate_digest({"top_themes": themes}, sample_items())
        assert [t.theme for t in payload.top_themes] == ["T7", "T6", "T5", "T4", "T3"]

    def test_sentiment_breakdown_is_normalised(self):
        payload = validate_digest({
            "sentiment_breakdown": [
                {"sentiment": "NEGATIVE", "count": 4},
                {"sentiment": "mixed", "count": 9},
                {"sentiment": "negative", "count": 1},
                {"sentiment": "positive", "count": True},
            ],
        }, sample_items())

        assert payload.sentiment_breakdown == breakdown(negative=4)

    def test_urgent_ids_limited_to_batch(self):
        items = [make_item(i) for i in range(1, 21)]
        payload = validate_digest({"urgent_ids": [99, 3, "4", 3, None, 5.0] + list(range(6, 21))}, items)
        assert payload.urgent_ids == [3, 4, 6, 7, 8, 9, 10, 11, 12, 13]

    def test_missing_summary_uses_fallback_sentence(self):
        payload = validate_digest({"executive_summary": 42}, sample_items())
        assert payload.executive_summary == "Summary of 3 feedback items collected (fallback digest)."


def test_render_markdown():
    digest = Digest(
        id=4,
        cadence=Cadence.WEEKLY,
        period_start=NOW,
        period_end=NOW,
        created_at=NOW,
        executive_summary="Mostly positive.",
        top_themes=[ThemeCount(theme="Billing", count=3)],
        sentiment_breakdown=breakdown(positive=3),
        urgent_ids=[],
    )

    text = render_digest_markdown(digest)

    assert text.startswith("# Weekly Feedback Digest\n")
    assert "Mostly positive." in text
    assert "- **Billing**: 3" in text
    assert "- positive: 3" in text
    assert "## Urgent Items\n\nNone" in text


def test_unconvertible_digit_strings_are_dropped(stub):
    items = sample_items()
    output = json.dumps({"executive_summary": "x", "urgent_ids": ["²", "9" * 5000, "3"]})

    payload = summarize(stub(output), items)

    assert payload.executive_summary == "x"
    assert payload.urgent_ids == [3]


def test_lone_surrogates_degrade_per_field(stub):
    items = sample_items()
    output = (
        '{"executive_summary": "Bad \\ud800 text",'
        ' "top_themes": [{"theme": "Billing \\udfff", "count": 4}, {"theme": "A", "count": 2}],'
        ' "urgent_ids": [1]}'
    )

    payload = summarize(stub(output), items)

    assert payload.executive_summary == "Summary of 3 feedback items collected (fallback digest)."
    assert payload.top_themes == [ThemeCount(theme="A", count=2)]
    assert payload.urgent_ids == [1]
