#!/usr/bin/env python3
"""Signalboard: feedback classification and digests powered by language models.

This CLI tool stores short text feedback, labels each item with a theme,
sentiment, urgency and tags, and aggregates recent feedback into digests.

Commands:
    submit       Classify and store one feedback item
    import       Classify and store feedback from a JSONL file
    feedback     List stored feedback with optional filters
    seed         Insert pre-labelled mock feedback (no model calls)
    digest       Generate a digest for a cadence
    show-digest  Print the latest digest for a cadence
    status       Show configuration and database statistics

Examples:
    python main.py submit --source email --content "Export to CSV please"
    python main.py import feedback.jsonl
    python main.py feedback --urgency high --limit 20
    python main.py digest --cadence weekly
    python main.py show-digest --cadence weekly

Environment:
    See config.py for all configuration options
"""

import argparse
import asyncio
import json
import logging
import sys
import uuid
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from config import Config
from database import Database
from models.digest import Cadence
from models.feedback import FeedbackCreate
from observability.logging import set_request_context, setup_logging

if TYPE_CHECKING:
    from pipeline import FeedbackPipeline

logger = logging.getLogger(__name__)


def _build_pipeline(config: Config, db: Database) -> "FeedbackPipeline":
    """Create a pipeline with generators for the configured models."""
    from agents.generator import create_generator
    from pipeline import FeedbackPipeline

    classifier_generator = create_generator(config.classifier_model, config)
    if config.summary_model == config.classifier_model:
        summary_generator = classifier_generator
    else:
        summary_generator = create_generator(config.summary_model, config)
    return FeedbackPipeline(config, db, classifier_generator, summary_generator)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def cmd_submit(args: argparse.Namespace, config: Config) -> int:
    """Classify and store a single feedback item.

    Returns:
        Exit code (0 for success)
    """
    feedback = FeedbackCreate(
        source=args.source,
        content=args.content,
        title=args.title,
        created_at=args.created_at,
    )
    with Database(config.db_path) as db:
        pipeline = _build_pipeline(config, db)
        item = asyncio.run(pipeline.submit(feedback))
    _print_json(item.to_api())
    return 0


def cmd_import(args: argparse.Namespace, config: Config) -> int:
    """Classify and store every feedback object in a JSONL file.

    Returns:
        Exit code (0 for success, 1 if any line is invalid)
    """
    path = Path(args.file)
    feedback: list[FeedbackCreate] = []
    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            feedback.append(FeedbackCreate.model_validate_json(line))
        except ValidationError as e:
            print(f"Invalid feedback on line {lineno}: {e}", file=sys.stderr)
            return 1

    with Database(config.db_path) as db:
        pipeline = _build_pipeline(config, db)
        items = asyncio.run(pipeline.import_items(feedback))
    print(f"Imported {len(items)} feedback items from {path.name}")
    return 0


def cmd_feedback(args: argparse.Namespace, config: Config) -> int:
    """List stored feedback.

    Returns:
        Exit code (0 for success)
    """
    with Database(config.db_path) as db:
        items = db.list_feedback(
            source=args.source,
            sentiment=args.sentiment,
            urgency=args.urgency,
            query=args.q,
            limit=args.limit,
        )

    if args.json:
        _print_json([item.to_api() for item in items])
        return 0

    if not items:
        print("No feedback found.")
        return 0

    for item in items:
        print(f"#{item.id} [{item.source}] {item.title or 'Untitled'}")
        print(f"   Created: {item.created_at.strftime('%Y-%m-%d %H:%M')}")
        print(
            f"   Theme: {item.theme or '-'} | "
            f"Sentiment: {item.sentiment.value if item.sentiment else '-'} | "
            f"Urgency: {item.urgency.value if item.urgency else '-'}"
        )
        if item.tags:
            print(f"   Tags: {', '.join(item.tags)}")
        content = item.content if len(item.content) <= 200 else item.content[:200] + "..."
        print(f"   {content}")
        print()
    return 0


def cmd_seed(args: argparse.Namespace, config: Config) -> int:
    """Insert mock feedback.

    Returns:
        Exit code (0 for success)
    """
    from pipeline import seed_feedback

    with Database(config.db_path) as db:
        inserted = seed_feedback(db)
    print(f"Inserted {inserted} mock feedback items (no AI calls)")
    return 0


def cmd_digest(args: argparse.Namespace, config: Config) -> int:
    """Generate, store and print a digest.

    Returns:
        Exit code (0 for success, 1 if the window is empty)
    """
    from pipeline import NoFeedbackError
    from reports import save_digest_report

    cadence = Cadence(args.cadence)
    with Database(config.db_path) as db:
        pipeline = _build_pipeline(config, db)
        try:
            digest = asyncio.run(pipeline.generate_digest(cadence))
        except NoFeedbackError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    output = Path(args.output) if args.output else None
    save_digest_report(digest, config.reports_dir, output=output)
    _print_json(digest.to_api())
    return 0


def cmd_show_digest(args: argparse.Namespace, config: Config) -> int:
    """Print the latest digest for a cadence.

    Returns:
        Exit code (0 for success, 1 if none exists)
    """
    from agents.summarizer import render_digest_markdown
    from pipeline import DigestNotFoundError, get_latest_digest

    with Database(config.db_path) as db:
        try:
            digest = get_latest_digest(db, Cadence(args.cadence))
        except DigestNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    if args.markdown:
        print(render_digest_markdown(digest))
    else:
        _print_json(digest.to_api())
    return 0


def cmd_status(args: argparse.Namespace, config: Config) -> int:
    """Display configuration and database statistics.

    Returns:
        Exit code (0 for success)
    """
    with Database(config.db_path) as db:
        db_stats = db.stats()

    status = {
        "config": {
            "classifier_model": config.classifier_model,
            "summary_model": config.summary_model,
            "classify_max_tokens": config.classify_max_tokens,
            "digest_max_tokens": config.digest_max_tokens,
            "max_workers": config.max_workers,
            "enable_logfire": config.enable_logfire,
        },
        "database": {
            "path": str(config.db_path),
            "feedback": db_stats["feedback"],
            "urgent": db_stats["urgent"],
            "digests": db_stats["digests"],
        },
    }
    _print_json(status)
    return 0


def main() -> int:
    """Main entry point.

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        description="Signalboard: feedback classification and digests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # submit command
    submit_parser = subparsers.add_parser("submit", help="Classify and store one feedback item")
    submit_parser.add_argument("--source", required=True, help="Channel (email, slack, support, ...)")
    submit_parser.add_argument("--content", required=True, help="Feedback text")
    submit_parser.add_argument("--title", help="Optional title")
    submit_parser.add_argument(
        "--created-at",
        type=datetime.fromisoformat,
        help="ISO 8601 timestamp (default: now)",
    )

    # import command
    import_parser = subparsers.add_parser("import", help="Import feedback from a JSONL file")
    import_parser.add_argument("file", help="JSONL file, one {source, content, title?, created_at?} per line")

    # feedback command
    feedback_parser = subparsers.add_parser("feedback", help="List stored feedback")
    feedback_parser.add_argument("--source", help="Filter by source")
    feedback_parser.add_argument("--sentiment", choices=["positive", "neutral", "negative"])
    feedback_parser.add_argument("--urgency", choices=["high", "medium", "low"])
    feedback_parser.add_argument("-q", help="Search content and title")
    feedback_parser.add_argument("--limit", type=int, default=100, help="Max rows (default: 100)")
    feedback_parser.add_argument("--json", action="store_true", help="Print JSON")

    # seed command
    subparsers.add_parser("seed", help="Insert mock feedback")

    # digest command
    digest_parser = subparsers.add_parser("digest", help="Generate a digest")
    digest_parser.add_argument(
        "--cadence",
        choices=[c.value for c in Cadence],
        required=True,
        help="Aggregation period",
    )
    digest_parser.add_argument(
        "--output",
        help="Write digest markdown to this path instead of the reports directory",
    )

    # show-digest command
    show_parser = subparsers.add_parser("show-digest", help="Show the latest digest")
    show_parser.add_argument(
        "--cadence",
        choices=[c.value for c in Cadence],
        default="daily",
        help="Aggregation period (default: daily)",
    )
    show_parser.add_argument("--markdown", action="store_true", help="Print markdown instead of JSON")

    # status command
    subparsers.add_parser("status", help="Show configuration and statistics")

    args = parser.parse_args()

    config = Config.load()
    setup_logging(config, verbose=args.verbose)
    set_request_context(uuid.uuid4().hex[:8], command=args.command or "-")

    # Commands that call a model need valid credentials
    if args.command in ("submit", "import", "digest"):
        error = config.validate()
        if error:
            print(f"Configuration error: {error}", file=sys.stderr)
            return 1

    if config.enable_logfire:
        from observability.tracing import setup_tracing
        setup_tracing(enabled=True, service_name="signalboard", token=config.logfire_token)

    commands = {
        "submit": cmd_submit,
        "import": cmd_import,
        "feedback": cmd_feedback,
        "seed": cmd_seed,
        "digest": cmd_digest,
        "show-digest": cmd_show_digest,
        "status": cmd_status,
    }

    if args.command in commands:
        try:
            return commands[args.command](args, config)
        except KeyboardInterrupt:
            logger.info("Stopped by user (Ctrl+C)")
            return 130
        except ValidationError as e:
            print(f"Invalid feedback: {e}", file=sys.stderr)
            return 1
        except Exception as e:
            logger.error("Command failed | cmd=%s error=%s", args.command, e, exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
