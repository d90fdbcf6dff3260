from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.db.session import commit_or_rollback
from app.models import Goal, Match, Player, Presence
from app.services.errors import ForbiddenError, NotFoundError, ValidationError
from app.services.invalidation import InvalidationCoordinator, Mutation
from app.services.seasons import require_active_season_id

MAX_SCORE = 99
MAX_GOAL_MINUTE = 130

_UNSET = object()


def _check_score(value: int, code: str) -> int:
    if value is None or not 0 <= int(value) <= MAX_SCORE:
        raise ValidationError(code)
    return int(value)


def _check_label(value: Optional[str], code: str) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) < 2:
        raise ValidationError(code)
    return value


def _get_season_match(db: Session, team_id: int, match_id: int) -> Match:
    season_id = require_active_season_id(db, team_id)
    match = db.execute(
        select(Match).where(
            Match.id == match_id,
            Match.team_id == team_id,
            Match.season_id == season_id,
        )
    ).scalar_one_or_none()
    if match is None:
        raise NotFoundError("match_not_found")
    return match


def create_match(
    db: Session,
    invalidation: InvalidationCoordinator,
    team_id: int,
    *,
    date: datetime,
    location: Optional[str] = None,
    opponent: Optional[str] = None,
    notes: Optional[str] = None,
    our_score: int = 0,
    their_score: int = 0,
) -> Match:
    season_id = require_active_season_id(db, team_id)
    match = Match(
        team_id=team_id,
        season_id=season_id,
        date=date,
        location=_check_label(location, "invalid_location"),
        opponent=_check_label(opponent, "invalid_opponent"),
        notes=notes,
        our_score=_check_score(our_score, "invalid_our_score"),
        their_score=_check_score(their_score, "invalid_their_score"),
    )
    db.add(match)
    commit_or_rollback(db)
    db.refresh(match)
    invalidation.invalidate(team_id, Mutation.MATCH)
    return match


def update_match(
    db: Session,
    invalidation: InvalidationCoordinator,
    team_id: int,
    match_id: int,
    *,
    date: Optional[datetime] = None,
    location=_UNSET,
    opponent=_UNSET,
    notes=_UNSET,
    our_score: Optional[int] = None,
    their_score: Optional[int] = None,
) -> Match:
    match = _get_season_match(db, team_id, match_id)
    if date is not None:
        match.date = date
    if location is not _UNSET:
        match.location = _check_label(location, "invalid_location")
    if opponent is not _UNSET:
        match.opponent = _check_label(opponent, "invalid_opponent")
    if notes is not _UNSET:
        match.notes = notes
    if our_score is not None:
        match.our_score = _check_score(our_score, "invalid_our_score")
    if their_score is not None:
        match.their_score = _check_score(their_score, "invalid_their_score")
    commit_or_rollback(db)
    db.refresh(match)
    invalidation.invalidate(team_id, Mutation.MATCH)
    return match


def delete_match(
    db: Session, invalidation: InvalidationCoordinator, team_id: int, match_id: int
) -> None:
    match = _get_season_match(db, team_id, match_id)
    db.execute(delete(Goal).where(Goal.match_id == match.id))
    db.execute(delete(Presence).where(Presence.match_id == match.id))
    db.delete(match)
    commit_or_rollback(db)
    invalidation.invalidate(team_id, Mutation.MATCH)


def record_goal(
    db: Session,
    invalidation: InvalidationCoordinator,
    team_id: int,
    match_id: int,
    *,
    player_id: int,
    minute: Optional[int] = None,
    own_goal: bool = False,
    free_kick: bool = False,
    penalty: bool = False,
) -> Goal:
    match = _get_season_match(db, team_id, match_id)
    if minute is not None and not 0 <= minute <= MAX_GOAL_MINUTE:
        raise ValidationError("invalid_minute")
    player = db.execute(
        select(Player.id).where(Player.id == player_id, Player.team_id == team_id)
    ).first()
    if not player:
        raise ValidationError("player_not_found_for_team")

    goal = Goal(
        match_id=match.id,
        player_id=player_id,
        minute=minute,
        own_goal=own_goal,
        free_kick=free_kick,
        penalty=penalty,
    )
    db.add(goal)
    commit_or_rollback(db)
    db.refresh(goal)
    invalidation.invalidate(team_id, Mutation.GOAL)
    return goal


def delete_goal(
    db: Session, invalidation: InvalidationCoordinator, team_id: int, goal_id: int
) -> None:
    row = db.execute(
        select(Goal, Match.team_id).join(Match, Match.id == Goal.match_id).where(Goal.id == goal_id)
    ).first()
    if row is None:
        raise NotFoundError("goal_not_found")
    goal, owner_team_id = row
    if owner_team_id != team_id:
        raise ForbiddenError()
    db.delete(goal)
    commit_or_rollback(db)
    invalidation.invalidate(team_id, Mutation.GOAL)


def upsert_presences(
    db: Session,
    invalidation: InvalidationCoordinator,
    team_id: int,
    match_id: int,
    presences: Sequence[Tuple[int, bool]],
) -> List[Presence]:
    match = _get_season_match(db, team_id, match_id)
    wanted: Dict[int, bool] = {int(player_id): bool(present) for player_id, present in presences}
    if wanted:
        players_count = db.execute(
            select(func.count())
            .select_from(Player)
            .where(Player.id.in_(list(wanted)), Player.team_id == team_id)
        ).scalar_one()
        if players_count != len(wanted):
            raise ValidationError("invalid_players_for_team")

    existing = {
        row.player_id: row
        for row in db.execute(select(Presence).where(Presence.match_id == match.id)).scalars()
    }
    for player_id, present in wanted.items():
        row = existing.get(player_id)
        if row:
            row.present = present
        else:
            db.add(Presence(match_id=match.id, player_id=player_id, present=present))
    commit_or_rollback(db)
    invalidation.invalidate(team_id, Mutation.PRESENCE)

    return list(
        db.execute(
            select(Presence)
            .join(Player, Player.id == Presence.player_id)
            .where(Presence.match_id == match.id)
            .order_by(Player.name)
        )
        .scalars()
        .all()
    )
