from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict

MatchResult = Literal["WIN", "LOSS", "DRAW"]


class FrozenOut(BaseModel):
    # Cached values are shared by reference between requests.
    model_config = ConfigDict(frozen=True)


class SummaryOut(FrozenOut):
    total_games: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    win_rate: int = 0


class MatchRefOut(FrozenOut):
    date: datetime
    opponent: str | None = None


class LastMatchOut(FrozenOut):
    id: int
    date: datetime
    location: str | None = None
    opponent: str
    our_score: int
    their_score: int
    result: MatchResult
    scorers: List[str]


class NextMatchOut(FrozenOut):
    id: int
    date: datetime
    location: str | None = None
    opponent: str | None = None


class ScorerOut(FrozenOut):
    id: int
    name: str
    nickname: str | None = None
    photo: str | None = None
    goals: int
    free_kick_goals: int = 0
    penalty_goals: int = 0
    hat_tricks: int = 0
    doubles: int = 0
    current_streak: int = 0
    max_streak: int = 0
    last_goal: MatchRefOut | None = None
    matches_played: int = 0


class AttendanceOut(FrozenOut):
    id: int
    name: str
    nickname: str | None = None
    photo: str | None = None
    present_count: int
    percentage: int
    last_match: MatchRefOut | None = None


class DashboardOut(FrozenOut):
    summary: SummaryOut
    last_matches: List[LastMatchOut]
    next_match: NextMatchOut | None = None
    top_scorers: List[ScorerOut]
    attendance: List[AttendanceOut]


class PlayerStatsOut(FrozenOut):
    player_id: int
    season_id: int | None = None
    presences: int = 0
    total_matches: int = 0
    goals: int = 0
