"""Proposal router: create proposals and vote on them."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from auratracker.database import get_db
from auratracker.dependencies import Principal, get_optional_principal
from auratracker.errors import AuraTrackerError
from auratracker.models.player import Player
from auratracker.models.proposal import Proposal, ProposalStatus
from auratracker.routers.games import get_game_or_404
from auratracker.schemas.proposal import (
    ActionResult,
    ProposalCreate,
    ProposalDetailResponse,
    ProposalPlayer,
    ProposalResponse,
    VoteCreate,
    VoteResponse,
    VoteResultResponse,
)
from auratracker.services.proposal_service import (
    cast_vote,
    create_proposal,
    get_proposal_with_player,
    get_votes,
    list_pending_proposals,
)

router = APIRouter(prefix="/games", tags=["proposals"])


def _voter_name(body_username: str | None, principal: Principal | None) -> str:
    """The acting display name: the token's principal wins over the body."""
    if principal is not None:
        return principal.username
    if body_username and body_username.strip():
        return body_username.strip()
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username is required")


def _proposal_response(proposal: Proposal, player: Player | None = None) -> ProposalResponse:
    response = ProposalResponse.model_validate(proposal)
    if player is not None:
        response.players = ProposalPlayer.model_validate(player)
    return response


@router.get("/{code}/proposals")
async def list_proposals(code: str, db: AsyncSession = Depends(get_db)):
    """Return the game's pending proposals, newest first."""
    game = await get_game_or_404(db, code)
    rows = await list_pending_proposals(db, game.id)
    return {"proposals": [_proposal_response(p, player) for p, player in rows]}


@router.post("/{code}/proposals")
async def create_proposal_endpoint(
    code: str,
    body: ProposalCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal | None = Depends(get_optional_principal),
):
    username = _voter_name(body.username, principal)
    game = await get_game_or_404(db, code)
    try:
        proposal = await create_proposal(
            db,
            game,
            player_id=body.player_id,
            description=body.description,
            points=body.points,
            username=username,
        )
    except AuraTrackerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {
        "success": True,
        "proposal": _proposal_response(proposal),
        "message": (
            f"Proposal created! It needs {proposal.required_votes} votes in favour "
            f"out of {proposal.total_voters} players."
        ),
    }


@router.get("/{code}/proposals/{proposal_id}")
async def get_proposal(code: str, proposal_id: int, db: AsyncSession = Depends(get_db)):
    game = await get_game_or_404(db, code)
    row = await get_proposal_with_player(db, game.id, proposal_id)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proposal not found")
    proposal, player = row
    detail = ProposalDetailResponse.model_validate(proposal)
    detail.players = ProposalPlayer.model_validate(player)
    detail.votes = [
        VoteResponse(username=v.username, vote="for" if v.vote else "against", created_at=v.created_at)
        for v in await get_votes(db, proposal.id)
    ]
    return {"proposal": detail}


@router.post("/{code}/proposals/{proposal_id}/vote", response_model=VoteResultResponse)
async def vote_on_proposal(
    code: str,
    proposal_id: int,
    body: VoteCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal | None = Depends(get_optional_principal),
):
    username = _voter_name(body.username, principal)
    game = await get_game_or_404(db, code)
    try:
        outcome = await cast_vote(
            db, game, proposal_id=proposal_id, vote_for=body.vote == "for", username=username
        )
    except AuraTrackerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    proposal = outcome.proposal
    if proposal.status == ProposalStatus.executed:
        message = "Proposal approved and executed!"
    elif proposal.status == ProposalStatus.approved:
        message = "Proposal approved"
    elif proposal.status == ProposalStatus.rejected:
        message = "Proposal rejected"
    else:
        message = f"Vote recorded ({proposal.votes_for}/{proposal.required_votes} votes in favour)"

    action_result = None
    if outcome.executed:
        action_result = ActionResult(executed=True, new_aura=outcome.new_aura)
    return VoteResultResponse(
        vote=body.vote,
        proposal=_proposal_response(proposal),
        action_result=action_result,
        message=message,
    )
