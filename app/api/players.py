from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_invalidation
from app.db.session import get_db
from app.schemas.team import (
    EnrollmentOut,
    PlayerCreateIn,
    PlayerCreateOut,
    PlayerOut,
    PlayerUpdateIn,
)
from app.services import players as player_service
from app.services.invalidation import InvalidationCoordinator

router = APIRouter(prefix="/teams/{team_id}/players", tags=["players"])


@router.post("", response_model=PlayerCreateOut)
def create_player(
    team_id: int,
    payload: PlayerCreateIn,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> PlayerCreateOut:
    player, enrollment = player_service.create_player(
        db, invalidation, team_id, **payload.model_dump()
    )
    return PlayerCreateOut(
        player=PlayerOut.model_validate(player),
        enrollment=EnrollmentOut.model_validate(enrollment),
    )


@router.patch("/{player_id}", response_model=PlayerOut)
def update_player(
    team_id: int,
    player_id: int,
    payload: PlayerUpdateIn,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> PlayerOut:
    player = player_service.update_player(
        db, invalidation, team_id, player_id, **payload.model_dump(exclude_unset=True)
    )
    return PlayerOut.model_validate(player)


@router.delete("/{player_id}", response_model=PlayerOut)
def deactivate_player(
    team_id: int,
    player_id: int,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> PlayerOut:
    player = player_service.deactivate_player(db, invalidation, team_id, player_id)
    return PlayerOut.model_validate(player)
