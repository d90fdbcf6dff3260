from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from app.api.deps import cached_response, get_dashboard_service
from app.schemas.dashboard import DashboardOut, NextMatchOut, PlayerStatsOut
from app.services.dashboard import DashboardService

router = APIRouter(prefix="/teams/{team_id}", tags=["dashboard"])


@router.get("/dashboard", response_model=DashboardOut)
def get_dashboard(
    team_id: int,
    season_id: int | None = Query(default=None, ge=1),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardOut:
    return service.get_dashboard(team_id, season_id)


@router.get("/dashboard/next-match", response_model=NextMatchOut | None)
def get_next_match(
    team_id: int,
    season_id: int | None = Query(default=None, ge=1),
    service: DashboardService = Depends(get_dashboard_service),
) -> NextMatchOut | None:
    return service.get_next_match(team_id, season_id)


@router.get("/players/{player_id}/stats", response_model=PlayerStatsOut)
def get_player_stats(
    team_id: int,
    player_id: int,
    request: Request,
    season_id: int | None = Query(default=None, ge=1),
    service: DashboardService = Depends(get_dashboard_service),
) -> PlayerStatsOut:
    return cached_response(
        request,
        team_id,
        lambda: service.get_player_stats(team_id, player_id, season_id),
    )
