from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence, Tuple

from unidecode import unidecode

from app.schemas.dashboard import (
    AttendanceOut,
    DashboardOut,
    LastMatchOut,
    MatchRefOut,
    MatchResult,
    NextMatchOut,
    ScorerOut,
    SummaryOut,
)
from app.services.queries import GoalRecord, MatchRecord, PresenceRecord, RosterEntry

DEFAULT_LAST_MATCHES_LIMIT = 5
DEFAULT_NO_OPPONENT_LABEL = "Sem adversário"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive timestamps; they are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _percent(part: int, total: int) -> int:
    if total <= 0:
        return 0
    value = Decimal(part) * 100 / Decimal(total)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _match_result(match: MatchRecord) -> MatchResult:
    if match.our_score > match.their_score:
        return "WIN"
    if match.our_score < match.their_score:
        return "LOSS"
    return "DRAW"


def _name_key(name: str) -> Tuple[str, str]:
    return unidecode(name or "").casefold(), name or ""


def _chronological(matches: Sequence[MatchRecord]) -> List[MatchRecord]:
    return sorted(matches, key=lambda match: _as_utc(match.date))


def empty_dashboard() -> DashboardOut:
    return DashboardOut(
        summary=SummaryOut(),
        last_matches=[],
        next_match=None,
        top_scorers=[],
        attendance=[],
    )


def build_summary(played: Sequence[MatchRecord]) -> SummaryOut:
    wins = draws = losses = 0
    goals_for = goals_against = 0
    for match in played:
        goals_for += match.our_score
        goals_against += match.their_score
        result = _match_result(match)
        if result == "WIN":
            wins += 1
        elif result == "LOSS":
            losses += 1
        else:
            draws += 1
    total = len(played)
    return SummaryOut(
        total_games=total,
        wins=wins,
        draws=draws,
        losses=losses,
        goals_for=goals_for,
        goals_against=goals_against,
        win_rate=_percent(wins, total),
    )


def find_next_match(
    matches: Sequence[MatchRecord], today_start: datetime
) -> Optional[NextMatchOut]:
    threshold = _as_utc(today_start)
    candidates = [
        match
        for match in matches
        if not match.played and _as_utc(match.date) >= threshold
    ]
    if not candidates:
        return None
    match = min(candidates, key=lambda item: (_as_utc(item.date), item.id))
    return NextMatchOut(
        id=match.id,
        date=match.date,
        location=match.location,
        opponent=match.opponent,
    )


def build_last_matches(
    played: Sequence[MatchRecord],
    limit: int = DEFAULT_LAST_MATCHES_LIMIT,
    no_opponent_label: str = DEFAULT_NO_OPPONENT_LABEL,
) -> List[LastMatchOut]:
    recent = sorted(played, key=lambda match: _as_utc(match.date), reverse=True)[:limit]
    return [
        LastMatchOut(
            id=match.id,
            date=match.date,
            location=match.location,
            opponent=match.opponent or no_opponent_label,
            our_score=match.our_score,
            their_score=match.their_score,
            result=_match_result(match),
            scorers=[
                goal.player.display_name
                for goal in match.goals
                if not goal.own_goal and goal.player is not None
            ],
        )
        for match in recent
    ]


def build_top_scorers(
    played: Sequence[MatchRecord],
    goals: Sequence[GoalRecord],
    presences: Sequence[PresenceRecord],
    roster: Sequence[RosterEntry],
) -> List[ScorerOut]:
    played_ids = {match.id for match in played}
    ordered = _chronological(played)

    goals_by_player: Dict[int, List[GoalRecord]] = {}
    for goal in goals:
        if goal.own_goal or goal.player_id is None or goal.match_id not in played_ids:
            continue
        goals_by_player.setdefault(goal.player_id, []).append(goal)

    appearances: Dict[int, set] = {}
    for presence in presences:
        if presence.match_id in played_ids:
            appearances.setdefault(presence.player_id, set()).add(presence.match_id)

    scorers: List[ScorerOut] = []
    for entry in roster:
        player = entry.player
        player_goals = goals_by_player.get(player.id, [])
        if not player_goals:
            continue

        per_match: Dict[int, int] = {}
        for goal in player_goals:
            per_match[goal.match_id] = per_match.get(goal.match_id, 0) + 1

        hat_tricks = sum(1 for count in per_match.values() if count >= 3)
        doubles = sum(1 for count in per_match.values() if count == 2)

        current_streak = 0
        max_streak = 0
        last_goal_match: Optional[MatchRecord] = None
        for match in ordered:
            if per_match.get(match.id):
                current_streak += 1
                last_goal_match = match
            else:
                current_streak = 0
            max_streak = max(max_streak, current_streak)

        scorers.append(
            ScorerOut(
                id=player.id,
                name=player.name,
                nickname=player.nickname,
                photo=player.photo,
                goals=len(player_goals),
                free_kick_goals=sum(1 for goal in player_goals if goal.free_kick),
                penalty_goals=sum(1 for goal in player_goals if goal.penalty),
                hat_tricks=hat_tricks,
                doubles=doubles,
                current_streak=current_streak,
                max_streak=max_streak,
                last_goal=(
                    MatchRefOut(date=last_goal_match.date, opponent=last_goal_match.opponent)
                    if last_goal_match
                    else None
                ),
                matches_played=len(appearances.get(player.id, ())),
            )
        )

    # sorted() is stable, so equal totals keep roster order.
    return sorted(scorers, key=lambda scorer: scorer.goals, reverse=True)


def build_attendance(
    played: Sequence[MatchRecord],
    presences: Sequence[PresenceRecord],
    roster: Sequence[RosterEntry],
) -> List[AttendanceOut]:
    played_ids = {match.id for match in played}
    total = len(played)

    by_player: Dict[int, Dict[int, PresenceRecord]] = {}
    for presence in presences:
        if presence.match_id not in played_ids:
            continue
        by_player.setdefault(presence.player_id, {})[presence.match_id] = presence

    rows: List[AttendanceOut] = []
    for entry in roster:
        player = entry.player
        player_presences = list(by_player.get(player.id, {}).values())
        if not player_presences:
            continue
        latest = max(player_presences, key=lambda presence: _as_utc(presence.match_date))
        rows.append(
            AttendanceOut(
                id=player.id,
                name=player.name,
                nickname=player.nickname,
                photo=player.photo,
                present_count=len(player_presences),
                percentage=_percent(len(player_presences), total),
                last_match=MatchRefOut(date=latest.match_date, opponent=latest.match_opponent),
            )
        )

    rows.sort(key=lambda row: (-row.percentage, _name_key(row.name)))
    return rows


def build_dashboard_stats(
    matches: Sequence[MatchRecord],
    goals: Sequence[GoalRecord],
    presences: Sequence[PresenceRecord],
    roster: Sequence[RosterEntry],
    *,
    today_start: datetime,
    last_matches_limit: int = DEFAULT_LAST_MATCHES_LIMIT,
    no_opponent_label: str = DEFAULT_NO_OPPONENT_LABEL,
) -> DashboardOut:
    played = [match for match in matches if match.played]
    return DashboardOut(
        summary=build_summary(played),
        last_matches=build_last_matches(played, last_matches_limit, no_opponent_label),
        next_match=find_next_match(matches, today_start),
        top_scorers=build_top_scorers(played, goals, presences, roster),
        attendance=build_attendance(played, presences, roster),
    )
