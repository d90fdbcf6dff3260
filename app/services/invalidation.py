from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Sequence

from app.services.cache import DASHBOARD_NAMESPACE, RESPONSE_NAMESPACE, CacheKey, CacheStore

logger = logging.getLogger(__name__)

TEAM_NAMESPACES = (DASHBOARD_NAMESPACE, RESPONSE_NAMESPACE)


class Mutation(str, Enum):
    MATCH = "match"
    GOAL = "goal"
    PRESENCE = "presence"
    PLAYER = "player"
    SEASON_PLAYER = "season_player"
    SEASON = "season"
    TEAM = "team"
    MEMBERSHIP = "membership"


class InvalidationCoordinator:
    """Drops every cached read for a team after a committed write.

    Whole-team invalidation is the policy for every mutation kind: season
    scoped entries such as the next fixture depend on more than the season
    that was written to.
    """

    def __init__(self, cache: CacheStore, namespaces: Sequence[str] = TEAM_NAMESPACES) -> None:
        self.cache = cache
        self.namespaces = tuple(namespaces)

    def prefixes_for(self, team_id: int) -> List[str]:
        return [CacheKey.team_prefix(namespace, team_id) for namespace in self.namespaces]

    def invalidate(self, team_id: int, mutation: Optional[Mutation] = None) -> int:
        removed = sum(self.cache.delete_prefix(prefix) for prefix in self.prefixes_for(team_id))
        logger.info(
            "cache_invalidated team_id=%s mutation=%s removed=%s",
            team_id,
            mutation.value if mutation else "unspecified",
            removed,
        )
        return removed
