import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from auratracker.database import get_db
from auratracker.dependencies import require_member
from auratracker.errors import AuraTrackerError
from auratracker.models.game import Game
from auratracker.schemas.game import (
    ActionPlayer,
    ActionResponse,
    GameCreate,
    GameDetailResponse,
    GameResponse,
    GameUpdate,
    PlayerResponse,
)
from auratracker.services.game_service import (
    create_game,
    delete_game,
    get_game_by_code,
    get_players_for_game,
    get_recent_actions,
    reset_game,
    update_game,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games", tags=["games"])


async def get_game_or_404(db: AsyncSession, code: str) -> Game:
    game = await get_game_by_code(db, code)
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return game


@router.post("/create")
async def create_new_game(body: GameCreate, db: AsyncSession = Depends(get_db)):
    try:
        game = await create_game(db, name=body.name)
    except AuraTrackerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except RuntimeError as e:
        logger.error("Game creation failed: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    return {
        "game": GameResponse.model_validate(game),
        "code": game.code,
        "message": "Game created",
    }


@router.get("/{code}", response_model=GameDetailResponse)
async def get_game_info(code: str, db: AsyncSession = Depends(get_db)):
    game = await get_game_or_404(db, code)
    players = await get_players_for_game(db, game.id)
    actions = []
    for action, player_name in await get_recent_actions(db, game.id):
        item = ActionResponse.model_validate(action)
        item.players = ActionPlayer(name=player_name)
        actions.append(item)
    return GameDetailResponse(
        game=GameResponse.model_validate(game),
        players=[PlayerResponse.model_validate(p) for p in players],
        actions=actions,
    )


@router.patch("/{code}")
async def update_game_endpoint(
    code: str,
    body: GameUpdate,
    db: AsyncSession = Depends(get_db),
    _member=Depends(require_member),
):
    game = await get_game_or_404(db, code)
    try:
        game = await update_game(db, game, name=body.name, code=body.code)
    except AuraTrackerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"game": GameResponse.model_validate(game), "message": "Game updated"}


@router.delete("/{code}")
async def delete_game_endpoint(
    code: str,
    db: AsyncSession = Depends(get_db),
    _member=Depends(require_member),
):
    game = await get_game_or_404(db, code)
    await delete_game(db, game)
    return {
        "message": "Game deleted",
        "deletedAt": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/{code}/reset")
async def reset_game_endpoint(
    code: str,
    db: AsyncSession = Depends(get_db),
    _member=Depends(require_member),
):
    game = await get_game_or_404(db, code)
    await reset_game(db, game)
    return {
        "message": "Game reset",
        "resetAt": datetime.now(timezone.utc).isoformat(),
    }
