"""Score ledger: players, their running aura totals, and the action log.

Every change to a player's aura goes through apply_points() and is followed
by an Action row.  The Action insert is a secondary write: if it fails the
point change stays and the failure is only logged.
"""

import logging
import random

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auratracker.errors import ConflictError, NotFoundError, ValidationError
from auratracker.models.action import Action, ActionComment, ActionType
from auratracker.models.game import Game
from auratracker.models.player import Player
from auratracker.models.proposal import Proposal, ProposalVote
from auratracker.services.auth_service import get_user_by_id

logger = logging.getLogger(__name__)

AVATAR_EMOJIS = [
    "👑", "🏆", "⚡", "🔥", "💎", "🌟", "🎯", "🚀",
    "💫", "🎭", "🎪", "🎨", "🎵", "🎮", "🎲",
]

STARTING_AURA_POINTS = 0


def random_avatar() -> str:
    return random.choice(AVATAR_EMOJIS)


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------


async def get_player_in_game(db: AsyncSession, game_id: int, player_id: int) -> Player | None:
    result = await db.execute(
        select(Player).where(Player.id == player_id, Player.game_id == game_id)
    )
    return result.scalar_one_or_none()


async def _get_player_by_name(db: AsyncSession, game_id: int, name: str) -> Player | None:
    result = await db.execute(
        select(Player).where(Player.game_id == game_id, Player.name == name)
    )
    return result.scalar_one_or_none()


async def add_player(
    db: AsyncSession, game: Game, name: str | None = None, user_id: int | None = None
) -> Player:
    """Add a player to the game, either by free-text name or by linking a user.

    A linked user joins under their display name.
    """
    if user_id is not None:
        user = await get_user_by_id(db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        result = await db.execute(
            select(Player).where(Player.game_id == game.id, Player.user_id == user.id)
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictError("User already joined this game")
        name = user.display_name

    name = (name or "").strip()
    if not name:
        raise ValidationError("Player name is required")
    if await _get_player_by_name(db, game.id, name) is not None:
        raise ConflictError("Player name already in use")

    player = Player(
        game_id=game.id,
        name=name,
        avatar=random_avatar(),
        aura_points=STARTING_AURA_POINTS,
        user_id=user_id,
    )
    db.add(player)
    await db.commit()
    await db.refresh(player)
    return player


async def delete_player(db: AsyncSession, player: Player) -> None:
    """Remove a player together with their ledger entries and the proposals about them."""
    action_ids = select(Action.id).where(Action.player_id == player.id)
    await db.execute(delete(ActionComment).where(ActionComment.action_id.in_(action_ids)))
    await db.execute(delete(Action).where(Action.player_id == player.id))

    proposal_ids = select(Proposal.id).where(Proposal.player_id == player.id)
    await db.execute(delete(ProposalVote).where(ProposalVote.proposal_id.in_(proposal_ids)))
    await db.execute(delete(Proposal).where(Proposal.player_id == player.id))

    await db.delete(player)
    await db.commit()


# ---------------------------------------------------------------------------
# Points
# ---------------------------------------------------------------------------


async def apply_points(db: AsyncSession, player: Player, points: int) -> Player:
    """Add a signed delta to the player's aura and return the refreshed row."""
    await db.execute(
        update(Player)
        .where(Player.id == player.id)
        .values(aura_points=Player.aura_points + points)
    )
    await db.commit()
    await db.refresh(player)
    return player


async def record_action(
    db: AsyncSession,
    game_id: int,
    player_id: int,
    action_type: ActionType,
    points: int,
    description: str,
    performed_by: str | None = None,
) -> Action | None:
    action = Action(
        game_id=game_id,
        player_id=player_id,
        action_type=action_type,
        points=points,
        description=description,
        performed_by_username=performed_by,
    )
    db.add(action)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to record action for player %s (%+d)", player_id, points)
        return None
    await db.refresh(action)
    return action


async def adjust_points(
    db: AsyncSession,
    game: Game,
    player: Player,
    points: int,
    description: str | None = None,
    performed_by: str | None = None,
) -> Player:
    """Apply a direct aura change, bypassing the vote."""
    player = await apply_points(db, player, points)
    action_type = ActionType.aura_gain if points > 0 else ActionType.aura_loss
    if not description:
        description = "Aura gained" if points > 0 else "Aura lost"
    action = await record_action(
        db,
        game_id=game.id,
        player_id=player.id,
        action_type=action_type,
        points=points,
        description=description,
        performed_by=performed_by,
    )
    if action is None:
        # rollback expired the instance
        await db.refresh(player)
    return player


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


async def get_action_in_game(db: AsyncSession, game_id: int, action_id: int) -> Action | None:
    result = await db.execute(
        select(Action).where(Action.id == action_id, Action.game_id == game_id)
    )
    return result.scalar_one_or_none()


async def delete_action(db: AsyncSession, action: Action) -> int:
    """Remove a ledger entry and undo its delta.  Returns the player's new aura."""
    player = await db.get(Player, action.player_id)
    if player is None:
        raise NotFoundError("Player not found")

    await db.execute(
        update(Player)
        .where(Player.id == player.id)
        .values(aura_points=Player.aura_points - action.points)
    )
    await db.execute(delete(ActionComment).where(ActionComment.action_id == action.id))
    await db.delete(action)
    await db.commit()
    await db.refresh(player)
    return player.aura_points


async def list_comments(db: AsyncSession, action_id: int) -> list[ActionComment]:
    result = await db.execute(
        select(ActionComment)
        .where(ActionComment.action_id == action_id)
        .order_by(ActionComment.created_at, ActionComment.id)
    )
    return list(result.scalars().all())


async def add_comment(
    db: AsyncSession, action: Action, user_id: str, username: str, comment: str
) -> ActionComment:
    comment = comment.strip()
    if not comment:
        raise ValidationError("Comment is required")
    row = ActionComment(
        action_id=action.id,
        user_id=str(user_id),
        username=username,
        comment=comment,
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row
