"""CLI entry-point: ``python -m tweetletter run`` / ``python -m tweetletter sectors``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from tweetletter import config
from tweetletter.errors import SearchUnavailable, ValidationError
from tweetletter.models import FilterSpec, NarrativeSettings
from tweetletter.narrative import OPENINGS
from tweetletter.pipeline import build_digest
from tweetletter.sectors import find_sector, load_catalog
from tweetletter.x_client import XClient

logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _run(args: argparse.Namespace) -> int:
    handles = list(args.handle)
    if args.sector:
        sector = find_sector(load_catalog(config.SECTORS_FILE), args.sector)
        if sector is None:
            logger.error("No catalogue sector named '%s' in %s", args.sector, config.SECTORS_FILE)
            return 2
        # Catalogue sectors are not stored, so their handles go in directly.
        handles.extend(sector.handles)

    spec = FilterSpec(
        keywords=args.keyword,
        trusted_handles=handles,
        verified_only=args.verified_only,
        min_followers=args.min_followers,
        exclude_replies=args.exclude_replies,
        exclude_retweets=args.exclude_retweets,
        safe_mode=not args.no_safe_mode,
    )
    settings = NarrativeSettings(
        style=args.style,
        tone=args.tone,
        word_count=args.words,
        paragraph_count=args.paragraphs,
    )

    try:
        client = XClient(bearer_token=config.X_BEARER_TOKEN, max_results=config.PAGE_SIZE)
    except ValueError as exc:
        logger.error("%s Set it in .env", exc)
        return 2

    try:
        result = build_digest(spec, settings, client)
    except ValidationError as exc:
        logger.error("Invalid filters: %s", exc)
        return 2
    except SearchUnavailable as exc:
        logger.error("Search unavailable: %s", exc)
        return 1

    if result.is_empty:
        logger.warning("No matching posts. Try broadening your criteria.")

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(result.narrative_html, encoding="utf-8")
        logger.info("Wrote %d posts to %s", len(result.posts), out_path)
    else:
        sys.stdout.write(result.narrative_html + "\n")
    return 0


def _list_sectors() -> int:
    catalog = load_catalog(config.SECTORS_FILE)
    if not catalog:
        logger.error("No sectors found in %s", config.SECTORS_FILE)
        return 1
    for sector in catalog:
        sys.stdout.write(f"{sector.name} ({len(sector.handles)} handles): {sector.description}\n")
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="tweetletter",
        description="Build a narrative newsletter section from X Recent Search.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── run ────────────────────────────────────────────────────────────
    run_parser = sub.add_parser("run", help="Search and synthesise a narrative.")
    run_parser.add_argument(
        "-k", "--keyword", action="append", default=[], help="Search keyword (repeatable)."
    )
    run_parser.add_argument(
        "--handle", action="append", default=[], help="Trusted source handle (repeatable)."
    )
    run_parser.add_argument("--sector", help="Merge handles from a catalogue sector.")
    run_parser.add_argument("--verified-only", action="store_true")
    run_parser.add_argument("--min-followers", type=int, default=0)
    run_parser.add_argument("--exclude-replies", action="store_true")
    run_parser.add_argument("--exclude-retweets", action="store_true")
    run_parser.add_argument(
        "--no-safe-mode", action="store_true", help="Allow links, mentions and denylisted words."
    )
    run_parser.add_argument("--style", choices=sorted(OPENINGS), default="professional")
    run_parser.add_argument("--tone", choices=["formal", "conversational"], default="formal")
    run_parser.add_argument("--paragraphs", type=int, default=6, help="Paragraph count (1-10).")
    run_parser.add_argument("--words", type=int, default=300, help="Word-count target (100-1000).")
    run_parser.add_argument("--out", help="Write the HTML fragment here instead of stdout.")

    # ── sectors ───────────────────────────────────────────────────────
    sub.add_parser("sectors", help="List the predefined sector catalogue.")

    args = parser.parse_args(argv)
    _setup_logging()

    if args.command == "run":
        if not 1 <= args.paragraphs <= 10 or not 100 <= args.words <= 1000:
            parser.error("--paragraphs must be 1-10 and --words 100-1000")
        if args.min_followers < 0:
            parser.error("--min-followers must be 0 or more")
        sys.exit(_run(args))
    elif args.command == "sectors":
        sys.exit(_list_sectors())
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
