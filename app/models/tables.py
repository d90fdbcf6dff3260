from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
    func,
    true,
)

from app.db.base import Base


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Player(Base):
    __tablename__ = "players"

    id = Column(Integer, primary_key=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    nickname = Column(String(60), nullable=True)
    position = Column(String(20), nullable=True)
    number = Column(Integer, nullable=True)
    photo = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Season(Base):
    __tablename__ = "seasons"

    id = Column(Integer, primary_key=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("team_id", "year"),)


class SeasonPlayer(Base):
    __tablename__ = "season_players"

    season_id = Column(Integer, ForeignKey("seasons.id"), primary_key=True)
    player_id = Column(Integer, ForeignKey("players.id"), primary_key=True)


class Match(Base):
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    season_id = Column(Integer, ForeignKey("seasons.id"), nullable=False, index=True)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(120), nullable=True)
    opponent = Column(String(120), nullable=True)
    notes = Column(Text, nullable=True)
    our_score = Column(Integer, nullable=False, default=0, server_default="0")
    their_score = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    minute = Column(Integer, nullable=True)
    own_goal = Column(Boolean, nullable=False, default=False, server_default=false())
    free_kick = Column(Boolean, nullable=False, default=False, server_default=false())
    penalty = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Presence(Base):
    __tablename__ = "presences"

    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), primary_key=True)
    player_id = Column(Integer, ForeignKey("players.id"), primary_key=True)
    present = Column(Boolean, nullable=False, default=False, server_default=false())
