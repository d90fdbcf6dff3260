from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_invalidation
from app.db.session import get_db
from app.schemas.team import (
    PlayerOut,
    SeasonCreateIn,
    SeasonOut,
    SeasonPlayerIn,
    SeasonPlayersIn,
    SeasonUpdateIn,
    TeamOut,
    TeamUpdateIn,
)
from app.services import players as player_service
from app.services import seasons as season_service
from app.services.invalidation import InvalidationCoordinator

router = APIRouter(prefix="/teams/{team_id}", tags=["seasons"])


@router.patch("", response_model=TeamOut)
def update_team(
    team_id: int,
    payload: TeamUpdateIn,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> TeamOut:
    team = season_service.update_team(db, invalidation, team_id, name=payload.name)
    return TeamOut.model_validate(team)


@router.get("/seasons", response_model=List[SeasonOut])
def list_seasons(team_id: int, db: Session = Depends(get_db)) -> List[SeasonOut]:
    return [SeasonOut.model_validate(s) for s in season_service.list_seasons(db, team_id)]


@router.post("/seasons", response_model=SeasonOut)
def create_season(
    team_id: int,
    payload: SeasonCreateIn,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> SeasonOut:
    season = season_service.create_season(
        db,
        invalidation,
        team_id,
        year=payload.year,
        name=payload.name,
        is_active=payload.is_active,
    )
    return SeasonOut.model_validate(season)


@router.patch("/seasons/{season_id}", response_model=SeasonOut)
def update_season(
    team_id: int,
    season_id: int,
    payload: SeasonUpdateIn,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> SeasonOut:
    season = season_service.update_season(
        db, invalidation, team_id, season_id, name=payload.name, is_active=payload.is_active
    )
    return SeasonOut.model_validate(season)


@router.post("/seasons/{season_id}/activate", response_model=SeasonOut)
def activate_season(
    team_id: int,
    season_id: int,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> SeasonOut:
    season = season_service.activate_season(db, invalidation, team_id, season_id)
    return SeasonOut.model_validate(season)


@router.delete("/seasons/{season_id}")
def delete_season(
    team_id: int,
    season_id: int,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> dict:
    season_service.delete_season(db, invalidation, team_id, season_id)
    return {"ok": True}


@router.get("/seasons/{season_id}/players", response_model=List[PlayerOut])
def list_season_players(
    team_id: int, season_id: int, db: Session = Depends(get_db)
) -> List[PlayerOut]:
    players = player_service.list_season_players(db, team_id, season_id)
    return [PlayerOut.model_validate(p) for p in players]


@router.post("/seasons/{season_id}/players")
def add_season_player(
    team_id: int,
    season_id: int,
    payload: SeasonPlayerIn,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> dict:
    player_service.add_season_player(db, invalidation, team_id, season_id, payload.player_id)
    return {"ok": True, "season_id": season_id, "player_id": payload.player_id}


@router.put("/seasons/{season_id}/players", response_model=List[PlayerOut])
def replace_season_players(
    team_id: int,
    season_id: int,
    payload: SeasonPlayersIn,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> List[PlayerOut]:
    players = player_service.replace_season_players(
        db, invalidation, team_id, season_id, payload.player_ids
    )
    return [PlayerOut.model_validate(p) for p in players]


@router.delete("/seasons/{season_id}/players/{player_id}")
def remove_season_player(
    team_id: int,
    season_id: int,
    player_id: int,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> dict:
    player_service.remove_season_player(db, invalidation, team_id, season_id, player_id)
    return {"ok": True}
