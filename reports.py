"""Markdown output for generated digests.

Digests are written to REPORTS_DIR as one markdown file per generation.
Saving fails gracefully: errors are logged and None is returned, so a
read-only reports directory never loses a digest that is already stored.
"""

import logging
from pathlib import Path

from agents.summarizer import render_digest_markdown
from models.digest import Digest

logger = logging.getLogger(__name__)


def build_digest_filename(digest: Digest) -> str:
    """Filename like 'digest_weekly_20260118_093000_42.md'."""
    timestamp = digest.created_at.strftime("%Y%m%d_%H%M%S")
    return f"digest_{digest.cadence.value}_{timestamp}_{digest.id}.md"


def save_digest_report(
    digest: Digest,
    reports_dir: Path,
    output: Path | None = None,
) -> Path | None:
    """Save a digest as markdown.

    Args:
        digest: Stored digest to render
        reports_dir: Default output directory
        output: Explicit file path, overriding reports_dir

    Returns:
        Path written, or None on failure
    """
    try:
        filepath = output or reports_dir / build_digest_filename(digest)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_text(render_digest_markdown(digest), encoding="utf-8")
        logger.info("Digest saved | file=%s", filepath.name)
        return filepath
    except OSError as e:
        logger.error("Digest save failed: %s", e, exc_info=True)
        return None
