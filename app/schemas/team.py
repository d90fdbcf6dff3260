from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrmOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class TeamUpdateIn(BaseModel):
    name: str


class TeamOut(OrmOut):
    id: int
    name: str


class SeasonCreateIn(BaseModel):
    year: int = Field(ge=1900, le=2999)
    name: str
    is_active: bool = False


class SeasonUpdateIn(BaseModel):
    name: Optional[str] = None
    is_active: Optional[bool] = None


class SeasonOut(OrmOut):
    id: int
    team_id: int
    year: int
    name: str
    is_active: bool


class SeasonPlayerIn(BaseModel):
    player_id: int


class SeasonPlayersIn(BaseModel):
    player_ids: List[int]


class PlayerCreateIn(BaseModel):
    name: str
    nickname: Optional[str] = None
    position: Optional[str] = None
    number: Optional[int] = Field(default=None, ge=0, le=999)
    photo: Optional[str] = None


class PlayerUpdateIn(BaseModel):
    name: Optional[str] = None
    nickname: Optional[str] = None
    position: Optional[str] = None
    number: Optional[int] = Field(default=None, ge=0, le=999)
    photo: Optional[str] = None
    active: Optional[bool] = None


class PlayerOut(OrmOut):
    id: int
    team_id: int
    name: str
    nickname: Optional[str] = None
    position: Optional[str] = None
    number: Optional[int] = None
    photo: Optional[str] = None
    active: bool


class EnrollmentOut(OrmOut):
    season_id: Optional[int] = None
    enrolled: bool = False
    error: Optional[str] = None


class PlayerCreateOut(BaseModel):
    player: PlayerOut
    enrollment: EnrollmentOut


class MatchCreateIn(BaseModel):
    date: datetime
    location: Optional[str] = None
    opponent: Optional[str] = None
    notes: Optional[str] = None
    our_score: int = 0
    their_score: int = 0


class MatchUpdateIn(BaseModel):
    date: Optional[datetime] = None
    location: Optional[str] = None
    opponent: Optional[str] = None
    notes: Optional[str] = None
    our_score: Optional[int] = None
    their_score: Optional[int] = None


class MatchOut(OrmOut):
    id: int
    team_id: int
    season_id: int
    date: datetime
    location: Optional[str] = None
    opponent: Optional[str] = None
    notes: Optional[str] = None
    our_score: int
    their_score: int


class GoalCreateIn(BaseModel):
    player_id: int
    minute: Optional[int] = None
    own_goal: bool = False
    free_kick: bool = False
    penalty: bool = False


class GoalOut(OrmOut):
    id: int
    match_id: int
    player_id: Optional[int] = None
    minute: Optional[int] = None
    own_goal: bool
    free_kick: bool
    penalty: bool


class PresenceIn(BaseModel):
    player_id: int
    present: bool


class PresencesIn(BaseModel):
    presences: List[PresenceIn]


class PresenceOut(OrmOut):
    player_id: int
    present: bool
