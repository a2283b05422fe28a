from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from auratracker.database import get_db
from auratracker.dependencies import Principal, is_guest_id, require_member
from auratracker.errors import AuraTrackerError
from auratracker.routers.games import get_game_or_404
from auratracker.schemas.game import PlayerCreate, PlayerResponse, PlayerUpdate
from auratracker.services.ledger_service import (
    add_player,
    adjust_points,
    delete_player,
    get_player_in_game,
)

router = APIRouter(prefix="/games", tags=["players"])


@router.post("/{code}/players")
async def add_player_endpoint(
    code: str,
    body: PlayerCreate,
    db: AsyncSession = Depends(get_db),
):
    if body.user_id is None and not (body.name and body.name.strip()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Player name is required")
    game = await get_game_or_404(db, code)
    try:
        player = await add_player(db, game, name=body.name, user_id=body.user_id)
    except AuraTrackerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"player": PlayerResponse.model_validate(player), "message": "Player added"}


@router.patch("/{code}/players/{player_id}")
async def adjust_player_points(
    code: str,
    player_id: int,
    body: PlayerUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal | None = Depends(require_member),
):
    """Apply a direct aura change to a player without a vote."""
    if is_guest_id(body.user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Guests cannot modify the game"
        )
    game = await get_game_or_404(db, code)
    player = await get_player_in_game(db, game.id, player_id)
    if player is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Player not found")

    player = await adjust_points(
        db,
        game,
        player,
        points=body.points,
        description=body.description,
        performed_by=principal.username if principal else None,
    )
    return {"player": PlayerResponse.model_validate(player), "message": "Points updated"}


@router.delete("/{code}/players/{player_id}")
async def delete_player_endpoint(
    code: str,
    player_id: int,
    db: AsyncSession = Depends(get_db),
    _member=Depends(require_member),
):
    game = await get_game_or_404(db, code)
    player = await get_player_in_game(db, game.id, player_id)
    if player is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Player not found")
    await delete_player(db, player)
    return {"message": "Player deleted"}
