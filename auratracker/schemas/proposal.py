from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from auratracker.models.proposal import ProposalStatus
from auratracker.schemas.game import PointDelta


class ProposalCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_id: int = Field(alias="playerId")
    description: str
    points: PointDelta
    username: Optional[str] = None


class VoteCreate(BaseModel):
    vote: Literal["for", "against"]
    username: Optional[str] = None


class ProposalPlayer(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class VoteResponse(BaseModel):
    username: str
    vote: Literal["for", "against"]
    created_at: datetime


class ProposalResponse(BaseModel):
    id: int
    game_id: int
    player_id: int
    proposed_by_username: str
    description: str
    points: int
    status: ProposalStatus
    votes_for: int
    votes_against: int
    total_voters: int
    required_votes: int
    expires_at: datetime
    created_at: datetime
    players: Optional[ProposalPlayer] = None

    model_config = {"from_attributes": True}


class ProposalDetailResponse(ProposalResponse):
    votes: list[VoteResponse] = []


class ActionResult(BaseModel):
    executed: bool
    new_aura: Optional[int] = Field(default=None, serialization_alias="newAura")


class VoteResultResponse(BaseModel):
    success: bool = True
    vote: Literal["for", "against"]
    proposal: ProposalResponse
    action_result: Optional[ActionResult] = Field(default=None, serialization_alias="actionResult")
    message: str
