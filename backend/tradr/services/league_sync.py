"""League sync: turns a league key and an access token into valued teams.

Order of work:
    1. Season for the league's game (fatal if unresolved)
    2. Stat taxonomy for the game (fatal if unresolved)
    3. League teams (fatal if none)
    4. Standings for every team (fatal if any team is unresolved)
    5. Per team, concurrently: roster (fatal if empty), season stats
       (per-batch failures degrade), semantic stat lines, values

Teams are built fresh on every sync and returned wholesale; nothing is
merged with a previous sync's entities.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from tradr.config import get_settings
from tradr.services.models import Team, TeamRecord
from tradr.services.roster import parse_roster
from tradr.services.season import SeasonCache, game_key_from_league_key
from tradr.services.standings import TeamEntry, parse_league_teams, resolve_standings
from tradr.services.stat_taxonomy import StatDefinitionCache, StatTaxonomy, map_stat_line
from tradr.services.stats import attach_season_stats
from tradr.services.valuation import compute_value
from tradr.services.yahoo_client import YahooApiClient, YahooClientProtocol

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncContext:
    """Process-wide resolver caches shared by every sync."""

    definitions: StatDefinitionCache = field(default_factory=StatDefinitionCache)
    seasons: SeasonCache = field(default_factory=SeasonCache)

    def clear(self) -> None:
        """Clear both caches. Used by tests to ensure isolation."""
        self.definitions.clear()
        self.seasons.clear()


@dataclass(slots=True)
class LeagueSyncResult:
    """Fully valued teams for one league."""

    league_key: str
    game_key: str
    season: str
    teams: list[Team]


class LeagueSyncService:
    """Runs league syncs against one Yahoo client."""

    def __init__(
        self,
        client: YahooClientProtocol,
        context: SyncContext,
        max_concurrent_stat_batches: int | None = None,
    ) -> None:
        self.client = client
        self.context = context
        self.max_concurrent_stat_batches = (
            max_concurrent_stat_batches or get_settings().max_concurrent_stat_batches
        )

    async def sync_league(self, league_key: str) -> LeagueSyncResult:
        """Sync a league and return its valued teams.

        Raises:
            ValueError: If the league key is malformed.
            SyncError: On a missing season or taxonomy, zero teams, unresolved
                standings, or a team roster that parses to zero athletes.
            YahooApiError: If a required (non-stats) request fails.
        """
        game_key = game_key_from_league_key(league_key)

        season = await self.context.seasons.get_season(self.client, game_key)
        taxonomy = await self.context.definitions.get_stat_definitions(self.client, game_key)

        entries = parse_league_teams(await self.client.get_league_teams(league_key))
        records = await resolve_standings(self.client, league_key, entries)

        tasks = [
            asyncio.create_task(self._build_team(entry, records[entry.key], season, taxonomy))
            for entry in entries
        ]
        try:
            teams = await asyncio.gather(*tasks)
        except BaseException:
            # One fatal team fails the sync; stop the rest before the client closes
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        logger.info(
            f"Synced league {league_key} (season {season}): {len(teams)} teams, "
            f"{sum(len(team.athletes) for team in teams)} athletes"
        )
        return LeagueSyncResult(
            league_key=league_key, game_key=game_key, season=season, teams=list(teams)
        )

    async def _build_team(
        self,
        entry: TeamEntry,
        record: TeamRecord,
        season: str,
        taxonomy: StatTaxonomy,
    ) -> Team:
        try:
            athletes = parse_roster(await self.client.get_team_roster(entry.key))
        except Exception as e:
            logger.error(f"Roster failed for team {entry.name} ({entry.key}): {e}")
            raise

        report = await attach_season_stats(
            self.client, athletes, season, max_concurrent=self.max_concurrent_stat_batches
        )
        for athlete in athletes:
            if athlete.stats:
                athlete.stat_line = map_stat_line(athlete.stats, taxonomy, athlete.role)
            athlete.value = compute_value(athlete)

        logger.info(
            f"Team {entry.name}: {len(athletes)} athletes, {report.attached} with stats, "
            f"{report.failed_batches}/{report.total_batches} stat batches failed"
        )
        return Team(
            id=entry.key,
            name=entry.name,
            record=record,
            athletes=athletes,
            owner=entry.owner,
            rank=entry.rank,
        )


async def sync_league(
    league_key: str, access_token: str, context: SyncContext | None = None
) -> list[Team]:
    """Sync a league with a fresh client and return its fully valued teams."""
    async with YahooApiClient(access_token) as client:
        service = LeagueSyncService(client, context or SyncContext())
        result = await service.sync_league(league_key)
    return result.teams
