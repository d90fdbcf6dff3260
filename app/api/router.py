from fastapi import APIRouter

from app.api import dashboard, matches, players, seasons

router = APIRouter()
router.include_router(dashboard.router)
router.include_router(seasons.router)
router.include_router(players.router)
router.include_router(matches.router)
