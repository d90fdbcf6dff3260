"""Read access to the relational store for the dashboard engine.

The aggregation code only ever sees the frozen records defined here, so it
can be fed from the SQL collaborator below or from any other source that
honours the ``QueryCollaborator`` protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import Goal, Match, Player, Presence, Season, SeasonPlayer


@dataclass(frozen=True)
class PlayerRef:
    id: int
    name: str
    nickname: Optional[str] = None
    photo: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.nickname or self.name


@dataclass(frozen=True)
class GoalRecord:
    id: int
    match_id: int
    player: Optional[PlayerRef]
    minute: Optional[int] = None
    own_goal: bool = False
    free_kick: bool = False
    penalty: bool = False
    created_at: Optional[datetime] = None

    @property
    def player_id(self) -> Optional[int]:
        return self.player.id if self.player else None


@dataclass(frozen=True)
class MatchRecord:
    id: int
    team_id: int
    season_id: int
    date: datetime
    our_score: int
    their_score: int
    location: Optional[str] = None
    opponent: Optional[str] = None
    goals: Tuple[GoalRecord, ...] = ()
    present_count: int = 0

    @property
    def played(self) -> bool:
        return self.present_count > 0


@dataclass(frozen=True)
class PresenceRecord:
    match_id: int
    player_id: int
    match_date: datetime
    match_opponent: Optional[str] = None


@dataclass(frozen=True)
class RosterEntry:
    season_id: int
    player: PlayerRef


@dataclass(frozen=True)
class SeasonRecord:
    id: int
    team_id: int
    year: int
    name: str
    is_active: bool


class QueryCollaborator(Protocol):
    def find_active_season(self, team_id: int) -> Optional[SeasonRecord]: ...

    def find_season(self, team_id: int, season_id: int) -> Optional[SeasonRecord]: ...

    def list_matches(self, team_id: int, season_id: int) -> List[MatchRecord]: ...

    def find_next_unplayed_match(
        self, team_id: int, season_id: int, from_date: datetime
    ) -> Optional[MatchRecord]: ...

    def list_goals(self, match_ids: Sequence[int]) -> List[GoalRecord]: ...

    def list_present_presences(self, match_ids: Sequence[int]) -> List[PresenceRecord]: ...

    def list_season_players(self, season_id: int) -> List[RosterEntry]: ...

    def find_player(self, team_id: int, player_id: int) -> Optional[PlayerRef]: ...


def _player_ref(player: Player) -> PlayerRef:
    return PlayerRef(id=player.id, name=player.name, nickname=player.nickname, photo=player.photo)


def _season_record(season: Season) -> SeasonRecord:
    return SeasonRecord(
        id=season.id,
        team_id=season.team_id,
        year=season.year,
        name=season.name,
        is_active=bool(season.is_active),
    )


def _goal_record(goal: Goal, player: Optional[Player]) -> GoalRecord:
    return GoalRecord(
        id=goal.id,
        match_id=goal.match_id,
        player=_player_ref(player) if player is not None else None,
        minute=goal.minute,
        own_goal=bool(goal.own_goal),
        free_kick=bool(goal.free_kick),
        penalty=bool(goal.penalty),
        created_at=goal.created_at,
    )


class SqlQueryCollaborator:
    """QueryCollaborator backed by a SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_active_season(self, team_id: int) -> Optional[SeasonRecord]:
        season = (
            self.db.execute(
                select(Season)
                .where(Season.team_id == team_id, Season.is_active.is_(True))
                .order_by(Season.id)
                .limit(1)
            )
            .scalars()
            .first()
        )
        return _season_record(season) if season else None

    def find_season(self, team_id: int, season_id: int) -> Optional[SeasonRecord]:
        season = self.db.execute(
            select(Season).where(Season.id == season_id, Season.team_id == team_id)
        ).scalar_one_or_none()
        return _season_record(season) if season else None

    def _present_counts(self, match_ids: Iterable[int]) -> Dict[int, int]:
        ids = list(match_ids)
        if not ids:
            return {}
        rows = (
            self.db.execute(
                select(Presence.match_id, func.count())
                .where(Presence.match_id.in_(ids), Presence.present.is_(True))
                .group_by(Presence.match_id)
            )
            .all()
        )
        return {match_id: int(count) for match_id, count in rows}

    def _match_records(self, matches: Sequence[Match]) -> List[MatchRecord]:
        match_ids = [match.id for match in matches]
        counts = self._present_counts(match_ids)
        goals_by_match: Dict[int, List[GoalRecord]] = {}
        for goal in self.list_goals(match_ids):
            goals_by_match.setdefault(goal.match_id, []).append(goal)
        return [
            MatchRecord(
                id=match.id,
                team_id=match.team_id,
                season_id=match.season_id,
                date=match.date,
                our_score=int(match.our_score or 0),
                their_score=int(match.their_score or 0),
                location=match.location,
                opponent=match.opponent,
                goals=tuple(goals_by_match.get(match.id, ())),
                present_count=counts.get(match.id, 0),
            )
            for match in matches
        ]

    def list_matches(self, team_id: int, season_id: int) -> List[MatchRecord]:
        matches = (
            self.db.execute(
                select(Match)
                .where(Match.team_id == team_id, Match.season_id == season_id)
                .order_by(Match.date.desc(), Match.id.desc())
            )
            .scalars()
            .all()
        )
        return self._match_records(matches)

    def find_next_unplayed_match(
        self, team_id: int, season_id: int, from_date: datetime
    ) -> Optional[MatchRecord]:
        played_ids = (
            select(Presence.match_id)
            .where(Presence.present.is_(True))
            .distinct()
        )
        match = (
            self.db.execute(
                select(Match)
                .where(
                    Match.team_id == team_id,
                    Match.season_id == season_id,
                    Match.date >= from_date,
                    Match.id.not_in(played_ids),
                )
                .order_by(Match.date, Match.id)
                .limit(1)
            )
            .scalars()
            .first()
        )
        if match is None:
            return None
        return self._match_records([match])[0]

    def list_goals(self, match_ids: Sequence[int]) -> List[GoalRecord]:
        if not match_ids:
            return []
        rows = (
            self.db.execute(
                select(Goal, Player)
                .outerjoin(Player, Player.id == Goal.player_id)
                .where(Goal.match_id.in_(list(match_ids)))
                .order_by(Goal.match_id, Goal.created_at, Goal.id)
            )
            .all()
        )
        return [_goal_record(goal, player) for goal, player in rows]

    def list_present_presences(self, match_ids: Sequence[int]) -> List[PresenceRecord]:
        if not match_ids:
            return []
        rows = (
            self.db.execute(
                select(Presence.match_id, Presence.player_id, Match.date, Match.opponent)
                .join(Match, Match.id == Presence.match_id)
                .where(Presence.match_id.in_(list(match_ids)), Presence.present.is_(True))
                .order_by(Match.date, Presence.player_id)
            )
            .all()
        )
        return [
            PresenceRecord(
                match_id=match_id,
                player_id=player_id,
                match_date=match_date,
                match_opponent=opponent,
            )
            for match_id, player_id, match_date, opponent in rows
        ]

    def list_season_players(self, season_id: int) -> List[RosterEntry]:
        players = (
            self.db.execute(
                select(Player)
                .join(SeasonPlayer, SeasonPlayer.player_id == Player.id)
                .where(SeasonPlayer.season_id == season_id)
                .order_by(Player.name, Player.id)
            )
            .scalars()
            .all()
        )
        return [RosterEntry(season_id=season_id, player=_player_ref(player)) for player in players]

    def find_player(self, team_id: int, player_id: int) -> Optional[PlayerRef]:
        player = self.db.execute(
            select(Player).where(Player.id == player_id, Player.team_id == team_id)
        ).scalar_one_or_none()
        return _player_ref(player) if player else None
