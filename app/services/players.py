from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.session import commit_or_rollback
from app.models import Player, SeasonPlayer
from app.services.errors import ConflictError, NotFoundError, ValidationError
from app.services.invalidation import InvalidationCoordinator, Mutation
from app.services.seasons import get_active_season, get_team_season

logger = logging.getLogger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class EnrollmentResult:
    """Outcome of adding a freshly created player to the active season."""

    season_id: Optional[int] = None
    enrolled: bool = False
    error: Optional[str] = None


def _check_name(name: Optional[str]) -> str:
    if not name or len(name.strip()) < 2:
        raise ValidationError("invalid_player_name")
    return name.strip()


def get_team_player(db: Session, team_id: int, player_id: int) -> Player:
    player = db.execute(
        select(Player).where(Player.id == player_id, Player.team_id == team_id)
    ).scalar_one_or_none()
    if player is None:
        raise NotFoundError("player_not_found")
    return player


def enroll_in_active_season(db: Session, team_id: int, player_id: int) -> EnrollmentResult:
    """Add the player to the team's active season roster.

    Failures are reported in the result and never undo the player itself.
    """
    season = get_active_season(db, team_id)
    if season is None:
        return EnrollmentResult()
    try:
        exists = db.get(SeasonPlayer, (season.id, player_id))
        if exists is None:
            db.add(SeasonPlayer(season_id=season.id, player_id=player_id))
            db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(
            "season_enroll_failed team_id=%s player_id=%s season_id=%s detail=%s",
            team_id,
            player_id,
            season.id,
            str(exc),
        )
        return EnrollmentResult(season_id=season.id, enrolled=False, error=str(exc))
    return EnrollmentResult(season_id=season.id, enrolled=True)


def create_player(
    db: Session,
    invalidation: InvalidationCoordinator,
    team_id: int,
    *,
    name: str,
    nickname: Optional[str] = None,
    position: Optional[str] = None,
    number: Optional[int] = None,
    photo: Optional[str] = None,
) -> Tuple[Player, EnrollmentResult]:
    player = Player(
        team_id=team_id,
        name=_check_name(name),
        nickname=nickname,
        position=position,
        number=number,
        photo=photo,
    )
    db.add(player)
    commit_or_rollback(db)
    db.refresh(player)

    try:
        enrollment = enroll_in_active_season(db, team_id, player.id)
    finally:
        invalidation.invalidate(team_id, Mutation.PLAYER)
    return player, enrollment


def update_player(
    db: Session,
    invalidation: InvalidationCoordinator,
    team_id: int,
    player_id: int,
    *,
    name: Optional[str] = None,
    nickname=_UNSET,
    position=_UNSET,
    number=_UNSET,
    photo=_UNSET,
    active: Optional[bool] = None,
) -> Player:
    player = get_team_player(db, team_id, player_id)
    if name is not None:
        player.name = _check_name(name)
    if nickname is not _UNSET:
        player.nickname = nickname
    if position is not _UNSET:
        player.position = position
    if number is not _UNSET:
        player.number = number
    if photo is not _UNSET:
        player.photo = photo
    if active is not None:
        player.active = active
    commit_or_rollback(db)
    db.refresh(player)
    invalidation.invalidate(team_id, Mutation.PLAYER)
    return player


def deactivate_player(
    db: Session, invalidation: InvalidationCoordinator, team_id: int, player_id: int
) -> Player:
    return update_player(db, invalidation, team_id, player_id, active=False)


def list_season_players(db: Session, team_id: int, season_id: int) -> List[Player]:
    season = get_team_season(db, team_id, season_id)
    return list(
        db.execute(
            select(Player)
            .join(SeasonPlayer, SeasonPlayer.player_id == Player.id)
            .where(SeasonPlayer.season_id == season.id)
            .order_by(Player.name, Player.id)
        )
        .scalars()
        .all()
    )


def add_season_player(
    db: Session,
    invalidation: InvalidationCoordinator,
    team_id: int,
    season_id: int,
    player_id: int,
) -> SeasonPlayer:
    season = get_team_season(db, team_id, season_id)
    player = db.execute(
        select(Player.id).where(Player.id == player_id, Player.team_id == team_id)
    ).first()
    if not player:
        raise ValidationError("player_not_found_for_team")
    if db.get(SeasonPlayer, (season.id, player_id)) is not None:
        raise ConflictError("player_already_in_season")

    entry = SeasonPlayer(season_id=season.id, player_id=player_id)
    db.add(entry)
    commit_or_rollback(db)
    invalidation.invalidate(team_id, Mutation.SEASON_PLAYER)
    return entry


def remove_season_player(
    db: Session,
    invalidation: InvalidationCoordinator,
    team_id: int,
    season_id: int,
    player_id: int,
) -> None:
    season = get_team_season(db, team_id, season_id)
    entry = db.get(SeasonPlayer, (season.id, player_id))
    if entry is None:
        raise NotFoundError("player_not_in_season")
    db.delete(entry)
    commit_or_rollback(db)
    invalidation.invalidate(team_id, Mutation.SEASON_PLAYER)


def replace_season_players(
    db: Session,
    invalidation: InvalidationCoordinator,
    team_id: int,
    season_id: int,
    player_ids: Sequence[int],
) -> List[Player]:
    season = get_team_season(db, team_id, season_id)
    unique_ids = list(dict.fromkeys(int(player_id) for player_id in player_ids))
    if unique_ids:
        count = db.execute(
            select(func.count())
            .select_from(Player)
            .where(Player.id.in_(unique_ids), Player.team_id == team_id)
        ).scalar_one()
        if count != len(unique_ids):
            raise ValidationError("invalid_players_for_team")

    db.execute(delete(SeasonPlayer).where(SeasonPlayer.season_id == season.id))
    for player_id in unique_ids:
        db.add(SeasonPlayer(season_id=season.id, player_id=player_id))
    commit_or_rollback(db)
    invalidation.invalidate(team_id, Mutation.SEASON_PLAYER)
    return list_season_players(db, team_id, season.id)
