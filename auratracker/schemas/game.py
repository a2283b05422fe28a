from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from auratracker.models.action import ActionType

# Point deltas are stored in BIGINT columns
PointDelta = Annotated[StrictInt, Field(ge=-(2**63), le=2**63 - 1)]


class GameCreate(BaseModel):
    name: str = Field(min_length=1)


class GameUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None


class GameResponse(BaseModel):
    id: int
    code: str
    name: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PlayerCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    user_id: Optional[int] = Field(default=None, alias="userId")


class PlayerUpdate(BaseModel):
    """Direct aura adjustment."""

    model_config = ConfigDict(populate_by_name=True)

    points: PointDelta
    description: Optional[str] = None
    user_id: Optional[str | int] = Field(default=None, alias="userId")


class PlayerResponse(BaseModel):
    id: int
    game_id: int
    name: str
    avatar: str
    aura_points: int
    user_id: Optional[int]
    created_at: datetime

    model_config = {"from_attributes": True}


class ActionPlayer(BaseModel):
    name: str


class ActionResponse(BaseModel):
    id: int
    game_id: int
    player_id: int
    action_type: ActionType
    points: int
    description: str
    performed_by_username: Optional[str]
    created_at: datetime
    players: Optional[ActionPlayer] = None

    model_config = {"from_attributes": True}


class GameDetailResponse(BaseModel):
    game: GameResponse
    players: list[PlayerResponse] = []
    actions: list[ActionResponse] = []


class CommentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    comment: str
    user_id: Optional[str | int] = Field(default=None, alias="userId")
    username: Optional[str] = None


class CommentResponse(BaseModel):
    id: int
    action_id: int
    user_id: str
    username: str
    comment: str
    created_at: datetime

    model_config = {"from_attributes": True}
