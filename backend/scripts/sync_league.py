#!/usr/bin/env python
"""
Sync a Yahoo fantasy hockey league and print a valuation summary.

Runs the same sync as POST /api/v1/leagues/{league_key}/sync without the
HTTP layer. Useful for checking a league's response shapes against the
parsers before pointing the frontend at it.

Usage:
    python -m scripts.sync_league 465.l.9080
    python -m scripts.sync_league 465.l.9080 --top 5
    YAHOO_ACCESS_TOKEN=... python -m scripts.sync_league 465.l.9080 --verbose

The access token is read from --token or YAHOO_ACCESS_TOKEN; obtaining it
(OAuth) happens outside this script.
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tradr.services.errors import SyncError, YahooApiError
from tradr.services.league_sync import LeagueSyncResult, LeagueSyncService, SyncContext
from tradr.services.yahoo_client import YahooApiClient

# Load environment
load_dotenv(".env.local")
load_dotenv(".env")

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_TOP_ATHLETES = 3


def log_summary(result: LeagueSyncResult, top: int) -> None:
    """Log one line per team plus its most valuable athletes."""
    logger.info(f"League {result.league_key} (game {result.game_key}, season {result.season})")

    teams = sorted(result.teams, key=lambda t: (t.rank is None, t.rank or 0, t.name))
    for team in teams:
        with_stats = sum(1 for a in team.athletes if not a.stat_less)
        owner = f" [{team.owner}]" if team.owner else ""
        logger.info(
            f"  {team.name}{owner}: {team.record.as_string()}, "
            f"{len(team.athletes)} athletes, {with_stats} with season stats"
        )

        ranked = sorted(team.athletes, key=lambda a: a.value or 0.0, reverse=True)
        for athlete in ranked[:top]:
            logger.info(f"      {athlete.value:5.1f}  {athlete.name} ({athlete.position})")


async def main() -> None:
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(description="Sync a Yahoo league and summarize values")
    parser.add_argument("league_key", help="Yahoo league key, e.g. 465.l.9080")
    parser.add_argument(
        "--token",
        default=os.getenv("YAHOO_ACCESS_TOKEN"),
        help="Yahoo OAuth access token (default: YAHOO_ACCESS_TOKEN)",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=DEFAULT_TOP_ATHLETES,
        help=f"Athletes listed per team (default: {DEFAULT_TOP_ATHLETES})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.token:
        logger.error("No access token: pass --token or set YAHOO_ACCESS_TOKEN")
        sys.exit(1)

    try:
        async with YahooApiClient(args.token) as client:
            service = LeagueSyncService(client, SyncContext())
            result = await service.sync_league(args.league_key)
    except (SyncError, YahooApiError, ValueError) as e:
        logger.error(f"Sync failed: {e}")
        sys.exit(1)

    log_summary(result, args.top)


if __name__ == "__main__":
    asyncio.run(main())
