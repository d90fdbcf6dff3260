from datetime import datetime, timezone

from app.services.queries import SqlQueryCollaborator


def utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def naive(value):
    return value.replace(tzinfo=None) if value.tzinfo else value


def test_find_active_season_is_team_scoped(db, seed):
    team = seed.team()
    other = seed.team("Other")
    seed.season(team, 2025, is_active=False)
    active = seed.season(team, 2026, is_active=True)
    seed.season(other, 2026, is_active=True)

    queries = SqlQueryCollaborator(db)

    assert queries.find_active_season(team.id).id == active.id
    assert queries.find_active_season(999) is None


def test_find_season_rejects_other_team(db, seed):
    team = seed.team()
    other = seed.team("Other")
    season = seed.season(other)

    queries = SqlQueryCollaborator(db)

    assert queries.find_season(other.id, season.id).year == 2026
    assert queries.find_season(team.id, season.id) is None


def test_list_matches_orders_by_date_with_goals_and_present_counts(db, seed):
    team = seed.team()
    ana = seed.player(team, "Ana", nickname="Aninha")
    bia = seed.player(team, "Bia")
    season = seed.season(team, players=[ana, bia])
    old = seed.match(team, season, utc(2026, 3, 1), our=2, present=[ana, bia])
    new = seed.match(team, season, utc(2026, 4, 1), present=[], absent=[ana])
    seed.goal(old, bia)
    seed.goal(old, ana)

    matches = SqlQueryCollaborator(db).list_matches(team.id, season.id)

    assert [match.id for match in matches] == [new.id, old.id]
    assert matches[0].present_count == 0
    assert matches[0].played is False
    assert matches[1].present_count == 2
    assert [goal.player.display_name for goal in matches[1].goals] == ["Bia", "Aninha"]


def test_list_matches_ignores_other_seasons(db, seed):
    team = seed.team()
    s2025 = seed.season(team, 2025, is_active=False)
    s2026 = seed.season(team, 2026)
    seed.match(team, s2025, utc(2025, 5, 1))
    current = seed.match(team, s2026, utc(2026, 5, 1))

    matches = SqlQueryCollaborator(db).list_matches(team.id, s2026.id)

    assert [match.id for match in matches] == [current.id]


def test_find_next_unplayed_match(db, seed):
    team = seed.team()
    ana = seed.player(team, "Ana")
    season = seed.season(team, players=[ana])
    seed.match(team, season, utc(2026, 5, 30), present=[])
    seed.match(team, season, utc(2026, 6, 2), present=[ana])
    later = seed.match(team, season, utc(2026, 6, 20), present=[])
    sooner = seed.match(team, season, utc(2026, 6, 5), present=[], absent=[ana])

    queries = SqlQueryCollaborator(db)

    assert queries.find_next_unplayed_match(team.id, season.id, utc(2026, 6, 1, 0)).id == sooner.id
    assert queries.find_next_unplayed_match(team.id, season.id, utc(2026, 6, 6, 0)).id == later.id
    assert queries.find_next_unplayed_match(team.id, season.id, utc(2026, 7, 1, 0)) is None


def test_list_goals_keeps_goals_without_player(db, seed):
    team = seed.team()
    ana = seed.player(team, "Ana")
    season = seed.season(team)
    match = seed.match(team, season, utc(2026, 3, 1))
    seed.goal(match, ana, penalty=True, minute=90)
    seed.goal(match, None, own_goal=True)

    goals = SqlQueryCollaborator(db).list_goals([match.id])

    assert [goal.player_id for goal in goals] == [ana.id, None]
    assert goals[0].penalty is True
    assert goals[0].minute == 90
    assert goals[1].own_goal is True


def test_list_goals_with_no_ids(db):
    assert SqlQueryCollaborator(db).list_goals([]) == []


def test_list_present_presences_joins_match(db, seed):
    team = seed.team()
    ana = seed.player(team, "Ana")
    bia = seed.player(team, "Bia")
    season = seed.season(team)
    match = seed.match(team, season, utc(2026, 3, 1), opponent="Rivals", present=[ana], absent=[bia])

    presences = SqlQueryCollaborator(db).list_present_presences([match.id])

    assert len(presences) == 1
    assert presences[0].player_id == ana.id
    assert presences[0].match_opponent == "Rivals"
    assert naive(presences[0].match_date) == datetime(2026, 3, 1, 12)


def test_list_season_players_in_name_order(db, seed):
    team = seed.team()
    zed = seed.player(team, "Zed")
    amy = seed.player(team, "Amy")
    seed.player(team, "Not Enrolled")
    season = seed.season(team, players=[zed, amy])

    roster = SqlQueryCollaborator(db).list_season_players(season.id)

    assert [entry.player.name for entry in roster] == ["Amy", "Zed"]
    assert all(entry.season_id == season.id for entry in roster)


def test_find_player_is_team_scoped(db, seed):
    team = seed.team()
    other = seed.team("Other")
    ana = seed.player(team, "Ana")

    queries = SqlQueryCollaborator(db)

    assert queries.find_player(team.id, ana.id).name == "Ana"
    assert queries.find_player(other.id, ana.id) is None
