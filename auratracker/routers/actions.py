from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from auratracker.database import get_db
from auratracker.dependencies import Principal, get_optional_principal, require_member
from auratracker.errors import AuraTrackerError
from auratracker.routers.games import get_game_or_404
from auratracker.schemas.game import CommentCreate, CommentResponse
from auratracker.services.ledger_service import (
    add_comment,
    delete_action,
    get_action_in_game,
    list_comments,
)

router = APIRouter(prefix="/games", tags=["actions"])


@router.delete("/{code}/actions/{action_id}")
async def delete_action_endpoint(
    code: str,
    action_id: int,
    db: AsyncSession = Depends(get_db),
    _member=Depends(require_member),
):
    """Remove a ledger entry and reverse its effect on the player's aura."""
    game = await get_game_or_404(db, code)
    action = await get_action_in_game(db, game.id, action_id)
    if action is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Action not found")
    try:
        new_aura = await delete_action(db, action)
    except AuraTrackerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"message": "Action deleted", "newAuraPoints": new_aura}


@router.get("/{code}/actions/{action_id}/comments")
async def list_comments_endpoint(code: str, action_id: int, db: AsyncSession = Depends(get_db)):
    game = await get_game_or_404(db, code)
    action = await get_action_in_game(db, game.id, action_id)
    if action is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Action not found")
    comments = await list_comments(db, action.id)
    return {"comments": [CommentResponse.model_validate(c) for c in comments]}


@router.post("/{code}/actions/{action_id}/comments")
async def add_comment_endpoint(
    code: str,
    action_id: int,
    body: CommentCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal | None = Depends(get_optional_principal),
):
    if not body.comment.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Comment is required")

    if principal is not None:
        user_id, username = principal.id, principal.username
    else:
        user_id, username = body.user_id, body.username
    if user_id is None or not username:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="User information is required"
        )

    game = await get_game_or_404(db, code)
    action = await get_action_in_game(db, game.id, action_id)
    if action is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Action not found")
    try:
        comment = await add_comment(
            db, action, user_id=str(user_id), username=username, comment=body.comment
        )
    except AuraTrackerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"message": "Comment added", "comment": CommentResponse.model_validate(comment)}
