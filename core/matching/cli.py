#!/usr/bin/env python3
"""
CLI for running match queries against the JSON stores.

Usage:
    python -m core.matching.cli match-properties <investor_id> [--min-score N] [--limit N] [--page N]
    python -m core.matching.cli match-investors <property_id> [--min-score N]
    python -m core.matching.cli digest [--hours N] [--min-score N] [--render]

Examples:
    # Top 10 properties for an investor
    python -m core.matching.cli match-properties inv-001 --limit 10

    # Investors who would want a newly approved listing
    python -m core.matching.cli match-investors prop-042 --min-score 70

    # Today's new-listing digests as email text
    python -m core.matching.cli digest --render
"""

import argparse
import json
import sys
from datetime import timedelta
from typing import List, Optional

from core.errors import MatchingError
from core.models import MatchQuery
from core.stores import PreferenceRepository, PropertyRepository
from utils.config import Config
from utils.logging import setup_logging

from .digest import render_digest
from .engine import MatchingEngine


def build_engine(config: Config) -> MatchingEngine:
    """Create an engine over the JSON stores in the configured data dir."""
    return MatchingEngine(
        preference_store=PreferenceRepository(config.preferences_path),
        property_store=PropertyRepository(config.properties_path),
        policy=config.match_policy(),
    )


def cmd_match_properties(engine: MatchingEngine, args: argparse.Namespace) -> dict:
    query = MatchQuery.from_page(
        page=args.page,
        limit=args.limit,
        min_score=args.min_score,
        max_limit=engine.policy.max_limit,
    )
    result = engine.match_properties_for_investor(args.investor_id, query)
    return {
        "investorId": args.investor_id,
        "hasPreferences": result.has_preferences,
        "total": result.total,
        "page": result.page,
        "totalPages": result.total_pages,
        "properties": [r.to_dict(id_key="propertyId") for r in result.results],
    }


def cmd_match_investors(engine: MatchingEngine, args: argparse.Namespace) -> dict:
    result = engine.match_investors_for_property(
        args.property_id, MatchQuery(min_score=args.min_score, limit=None)
    )
    return {
        "propertyId": result.property_id,
        "total": result.total,
        "investors": [r.to_dict(id_key="investorId") for r in result.results],
    }


def cmd_digest(engine: MatchingEngine, args: argparse.Namespace) -> dict:
    digests = engine.match_new_listings(
        window=timedelta(hours=args.hours) if args.hours else None,
        min_score=args.min_score,
    )
    output = []
    for digest in digests:
        entry = digest.to_dict()
        if args.render:
            entry["body"] = render_digest(digest)
        output.append(entry)
    return {"digests": output, "count": len(output)}


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Investor-property matching queries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    props = subparsers.add_parser("match-properties", help="Rank properties for an investor")
    props.add_argument("investor_id")
    props.add_argument("--min-score", type=int, default=config.default_min_score)
    props.add_argument("--limit", type=int, default=config.default_limit)
    props.add_argument("--page", type=int, default=1)
    props.set_defaults(handler=cmd_match_properties)

    investors = subparsers.add_parser("match-investors", help="Rank investors for a property")
    investors.add_argument("property_id")
    investors.add_argument("--min-score", type=int, default=config.default_min_score)
    investors.set_defaults(handler=cmd_match_investors)

    digest = subparsers.add_parser("digest", help="New-listing match digests")
    digest.add_argument("--hours", type=int, default=None, help="Look-back window")
    digest.add_argument("--min-score", type=int, default=None)
    digest.add_argument("--render", action="store_true", help="Include rendered email text")
    digest.set_defaults(handler=cmd_digest)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    config = Config.load()
    setup_logging(config.log_level, config.log_format, stream=sys.stderr)

    args = build_parser(config).parse_args(argv)
    engine = build_engine(config)

    try:
        output = args.handler(engine, args)
    except MatchingError as e:
        print(json.dumps({"success": False, "error": str(e), "retryable": e.retryable}))
        return 1

    print(json.dumps({"success": True, **output}, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
