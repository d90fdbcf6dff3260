from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from app.schemas.dashboard import DashboardOut, NextMatchOut, PlayerStatsOut
from app.services.cache import CacheStore, dashboard_key
from app.services.errors import NotFoundError
from app.services.queries import QueryCollaborator, SeasonRecord
from app.services.stats import (
    DEFAULT_LAST_MATCHES_LIMIT,
    DEFAULT_NO_OPPONENT_LABEL,
    build_dashboard_stats,
    empty_dashboard,
)

logger = logging.getLogger(__name__)

DEFAULT_DASHBOARD_TTL_SECONDS = 300


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def start_of_day(now: datetime, tz: ZoneInfo) -> datetime:
    local = now.astimezone(tz)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc)


class DashboardService:
    """Read path for season dashboards: cache lookup, then aggregate on miss.

    There is no per-key lock: two concurrent misses for the same season both
    compute and both store, the last write wins.
    """

    def __init__(
        self,
        queries: QueryCollaborator,
        cache: CacheStore,
        *,
        ttl_seconds: float = DEFAULT_DASHBOARD_TTL_SECONDS,
        timezone_name: str = "UTC",
        last_matches_limit: int = DEFAULT_LAST_MATCHES_LIMIT,
        no_opponent_label: str = DEFAULT_NO_OPPONENT_LABEL,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.queries = queries
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.tz = ZoneInfo(timezone_name)
        self.last_matches_limit = last_matches_limit
        self.no_opponent_label = no_opponent_label
        self._now = now

    def today_start(self) -> datetime:
        return start_of_day(self._now(), self.tz)

    def _resolve_season(self, team_id: int, season_id: Optional[int]) -> Optional[SeasonRecord]:
        if season_id is None:
            return self.queries.find_active_season(team_id)
        return self.queries.find_season(team_id, season_id)

    def get_dashboard(self, team_id: int, season_id: Optional[int] = None) -> DashboardOut:
        if season_id is not None:
            cached = self.cache.get(dashboard_key(team_id, season_id))
            if cached is not None:
                logger.debug("dashboard_cache_hit team_id=%s season_id=%s", team_id, season_id)
                return cached

        season = self._resolve_season(team_id, season_id)
        if season is None:
            logger.debug("dashboard_no_season team_id=%s season_id=%s", team_id, season_id)
            return empty_dashboard()

        key = dashboard_key(team_id, season.id)
        if season_id is None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("dashboard_cache_hit team_id=%s season_id=%s", team_id, season.id)
                return cached

        started = time.perf_counter()
        stats = self._compute(team_id, season.id)
        self.cache.set(key, stats, self.ttl_seconds)
        logger.info(
            "dashboard_computed team_id=%s season_id=%s elapsed_ms=%.1f",
            team_id,
            season.id,
            (time.perf_counter() - started) * 1000,
        )
        return stats

    def _compute(self, team_id: int, season_id: int) -> DashboardOut:
        matches = self.queries.list_matches(team_id, season_id)
        played_ids = [match.id for match in matches if match.played]
        goals = self.queries.list_goals(played_ids) if played_ids else []
        presences = self.queries.list_present_presences(played_ids) if played_ids else []
        roster = self.queries.list_season_players(season_id)
        return build_dashboard_stats(
            matches,
            goals,
            presences,
            roster,
            today_start=self.today_start(),
            last_matches_limit=self.last_matches_limit,
            no_opponent_label=self.no_opponent_label,
        )

    def get_next_match(self, team_id: int, season_id: Optional[int] = None) -> Optional[NextMatchOut]:
        season = self._resolve_season(team_id, season_id)
        if season is None:
            return None
        match = self.queries.find_next_unplayed_match(team_id, season.id, self.today_start())
        if match is None:
            return None
        return NextMatchOut(
            id=match.id,
            date=match.date,
            location=match.location,
            opponent=match.opponent,
        )

    def get_player_stats(
        self, team_id: int, player_id: int, season_id: Optional[int] = None
    ) -> PlayerStatsOut:
        if self.queries.find_player(team_id, player_id) is None:
            raise NotFoundError("player_not_found")

        season = self._resolve_season(team_id, season_id)
        if season is None:
            return PlayerStatsOut(player_id=player_id)

        matches = self.queries.list_matches(team_id, season.id)
        match_ids = [match.id for match in matches]
        if not match_ids:
            return PlayerStatsOut(player_id=player_id, season_id=season.id)

        presences = self.queries.list_present_presences(match_ids)
        goals = self.queries.list_goals(match_ids)
        return PlayerStatsOut(
            player_id=player_id,
            season_id=season.id,
            presences=sum(1 for presence in presences if presence.player_id == player_id),
            total_matches=len(match_ids),
            goals=sum(1 for goal in goals if goal.player_id == player_id and not goal.own_goal),
        )
