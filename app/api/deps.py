from __future__ import annotations

from typing import Callable, TypeVar
from urllib.parse import urlencode

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.db.session import get_db
from app.services.cache import CacheStore, response_key
from app.services.dashboard import DashboardService
from app.services.invalidation import InvalidationCoordinator
from app.services.queries import SqlQueryCollaborator

T = TypeVar("T")


def get_cache(request: Request) -> CacheStore:
    return request.app.state.cache


def get_invalidation(request: Request) -> InvalidationCoordinator:
    return request.app.state.invalidation


def get_dashboard_service(
    request: Request,
    db: Session = Depends(get_db),
) -> DashboardService:
    settings = get_settings()
    return DashboardService(
        SqlQueryCollaborator(db),
        get_cache(request),
        ttl_seconds=settings.DASHBOARD_CACHE_TTL_SECONDS,
        timezone_name=settings.DASHBOARD_TIMEZONE,
        last_matches_limit=settings.DASHBOARD_LAST_MATCHES_LIMIT,
        no_opponent_label=settings.DASHBOARD_NO_OPPONENT_LABEL,
    )


def canonical_query_string(request: Request) -> str:
    items = sorted(request.query_params.multi_items())
    return f"?{urlencode(items)}" if items else ""


def cached_response(request: Request, team_id: int, compute: Callable[[], T]) -> T:
    """Serve a GET response from ``cache:{team}:{path}{query}`` or compute and store it."""
    cache = get_cache(request)
    key = response_key(team_id, request.url.path, canonical_query_string(request))
    cached = cache.get(key)
    if cached is not None:
        return cached
    value = compute()
    cache.set(key, value, get_settings().RESPONSE_CACHE_TTL_SECONDS)
    return value
