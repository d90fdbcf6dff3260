from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_invalidation
from app.db.session import get_db
from app.schemas.team import (
    GoalCreateIn,
    GoalOut,
    MatchCreateIn,
    MatchOut,
    MatchUpdateIn,
    PresenceOut,
    PresencesIn,
)
from app.services import matches as match_service
from app.services.invalidation import InvalidationCoordinator

router = APIRouter(prefix="/teams/{team_id}", tags=["matches"])


@router.post("/matches", response_model=MatchOut)
def create_match(
    team_id: int,
    payload: MatchCreateIn,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> MatchOut:
    match = match_service.create_match(db, invalidation, team_id, **payload.model_dump())
    return MatchOut.model_validate(match)


@router.patch("/matches/{match_id}", response_model=MatchOut)
def update_match(
    team_id: int,
    match_id: int,
    payload: MatchUpdateIn,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> MatchOut:
    match = match_service.update_match(
        db, invalidation, team_id, match_id, **payload.model_dump(exclude_unset=True)
    )
    return MatchOut.model_validate(match)


@router.delete("/matches/{match_id}")
def delete_match(
    team_id: int,
    match_id: int,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> dict:
    match_service.delete_match(db, invalidation, team_id, match_id)
    return {"ok": True}


@router.post("/matches/{match_id}/goals", response_model=GoalOut)
def record_goal(
    team_id: int,
    match_id: int,
    payload: GoalCreateIn,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> GoalOut:
    goal = match_service.record_goal(db, invalidation, team_id, match_id, **payload.model_dump())
    return GoalOut.model_validate(goal)


@router.delete("/goals/{goal_id}")
def delete_goal(
    team_id: int,
    goal_id: int,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> dict:
    match_service.delete_goal(db, invalidation, team_id, goal_id)
    return {"ok": True}


@router.put("/matches/{match_id}/presences", response_model=List[PresenceOut])
def upsert_presences(
    team_id: int,
    match_id: int,
    payload: PresencesIn,
    db: Session = Depends(get_db),
    invalidation: InvalidationCoordinator = Depends(get_invalidation),
) -> List[PresenceOut]:
    rows = match_service.upsert_presences(
        db,
        invalidation,
        team_id,
        match_id,
        [(item.player_id, item.present) for item in payload.presences],
    )
    return [PresenceOut.model_validate(row) for row in rows]
