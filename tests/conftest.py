"""Pytest fixtures for the dashboard engine tests."""

import os
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from app.db.base import Base  # noqa: E402
from app.models import Goal, Match, Player, Presence, Season, SeasonPlayer, Team  # noqa: E402
from app.services.cache import CacheStore  # noqa: E402
from app.services.invalidation import InvalidationCoordinator  # noqa: E402


def utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Seeder:
    """Writes rows straight into the session, bypassing the mutation services."""

    def __init__(self, db):
        self.db = db

    def team(self, name="Varzea FC"):
        team = Team(name=name)
        self.db.add(team)
        self.db.commit()
        return team

    def player(self, team, name, nickname=None):
        player = Player(team_id=team.id, name=name, nickname=nickname)
        self.db.add(player)
        self.db.commit()
        return player

    def season(self, team, year=2026, name=None, is_active=True, players=()):
        season = Season(team_id=team.id, year=year, name=name or str(year), is_active=is_active)
        self.db.add(season)
        self.db.commit()
        for player in players:
            self.db.add(SeasonPlayer(season_id=season.id, player_id=player.id))
        self.db.commit()
        return season

    def match(self, team, season, date, our=0, their=0, opponent="Rivals", location="Home", present=(), absent=()):
        match = Match(
            team_id=team.id,
            season_id=season.id,
            date=date,
            our_score=our,
            their_score=their,
            opponent=opponent,
            location=location,
        )
        self.db.add(match)
        self.db.commit()
        for player in present:
            self.db.add(Presence(match_id=match.id, player_id=player.id, present=True))
        for player in absent:
            self.db.add(Presence(match_id=match.id, player_id=player.id, present=False))
        self.db.commit()
        return match

    def goal(self, match, player, own_goal=False, free_kick=False, penalty=False, minute=None):
        goal = Goal(
            match_id=match.id,
            player_id=player.id if player is not None else None,
            own_goal=own_goal,
            free_kick=free_kick,
            penalty=penalty,
            minute=minute,
        )
        self.db.add(goal)
        self.db.commit()
        return goal


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    store = CacheStore(default_ttl=300, check_period=60, clock=clock)
    yield store
    store.flush()


@pytest.fixture
def invalidation(cache):
    return InvalidationCoordinator(cache)
