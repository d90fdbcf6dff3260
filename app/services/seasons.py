from __future__ import annotations

from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from app.db.session import commit_or_rollback
from app.models import Match, Season, SeasonPlayer, Team
from app.services.errors import ConflictError, NoActiveSeasonError, NotFoundError, ValidationError
from app.services.invalidation import InvalidationCoordinator, Mutation


def get_active_season(db: Session, team_id: int) -> Optional[Season]:
    return (
        db.execute(
            select(Season)
            .where(Season.team_id == team_id, Season.is_active.is_(True))
            .order_by(Season.id)
            .limit(1)
        )
        .scalars()
        .first()
    )


def require_active_season_id(db: Session, team_id: int) -> int:
    season = get_active_season(db, team_id)
    if season is None:
        raise NoActiveSeasonError()
    return season.id


def get_team_season(db: Session, team_id: int, season_id: int) -> Season:
    season = db.execute(
        select(Season).where(Season.id == season_id, Season.team_id == team_id)
    ).scalar_one_or_none()
    if season is None:
        raise NotFoundError("season_not_found")
    return season


def list_seasons(db: Session, team_id: int) -> List[Season]:
    return list(
        db.execute(
            select(Season)
            .where(Season.team_id == team_id)
            .order_by(Season.created_at.desc(), Season.id.desc())
        )
        .scalars()
        .all()
    )


def _season_exists(db: Session, team_id: int, year: int) -> bool:
    return db.execute(
        select(Season.id).where(Season.team_id == team_id, Season.year == year)
    ).first() is not None


def _deactivate_all(db: Session, team_id: int) -> None:
    db.execute(
        update(Season)
        .where(Season.team_id == team_id, Season.is_active.is_(True))
        .values(is_active=False)
    )


def create_season(
    db: Session,
    invalidation: InvalidationCoordinator,
    team_id: int,
    *,
    year: int,
    name: str,
    is_active: bool = False,
) -> Season:
    if not name or not name.strip():
        raise ValidationError("invalid_season_name")
    if _season_exists(db, team_id, year):
        raise ConflictError("season_already_exists")

    if is_active:
        _deactivate_all(db, team_id)
    season = Season(team_id=team_id, year=year, name=name.strip(), is_active=is_active)
    db.add(season)
    commit_or_rollback(db)
    db.refresh(season)
    invalidation.invalidate(team_id, Mutation.SEASON)
    return season


def update_season(
    db: Session,
    invalidation: InvalidationCoordinator,
    team_id: int,
    season_id: int,
    *,
    name: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> Season:
    season = get_team_season(db, team_id, season_id)
    if name is not None:
        if not name.strip():
            raise ValidationError("invalid_season_name")
        season.name = name.strip()
    if is_active is not None:
        if is_active:
            _deactivate_all(db, team_id)
        season.is_active = is_active
    commit_or_rollback(db)
    db.refresh(season)
    invalidation.invalidate(team_id, Mutation.SEASON)
    return season


def activate_season(
    db: Session, invalidation: InvalidationCoordinator, team_id: int, season_id: int
) -> Season:
    season = get_team_season(db, team_id, season_id)
    _deactivate_all(db, team_id)
    season.is_active = True
    commit_or_rollback(db)
    db.refresh(season)
    invalidation.invalidate(team_id, Mutation.SEASON)
    return season


def delete_season(
    db: Session, invalidation: InvalidationCoordinator, team_id: int, season_id: int
) -> None:
    season = get_team_season(db, team_id, season_id)
    matches_count = db.execute(
        select(func.count())
        .select_from(Match)
        .where(Match.season_id == season.id, Match.team_id == team_id)
    ).scalar_one()
    if matches_count:
        raise ValidationError("season_has_matches")
    db.execute(delete(SeasonPlayer).where(SeasonPlayer.season_id == season.id))
    db.delete(season)
    commit_or_rollback(db)
    invalidation.invalidate(team_id, Mutation.SEASON)


def update_team(
    db: Session, invalidation: InvalidationCoordinator, team_id: int, *, name: str
) -> Team:
    team = db.get(Team, team_id)
    if team is None:
        raise NotFoundError("team_not_found")
    if not name or len(name.strip()) < 2:
        raise ValidationError("invalid_team_name")
    team.name = name.strip()
    commit_or_rollback(db)
    db.refresh(team)
    invalidation.invalidate(team_id, Mutation.TEAM)
    return team
