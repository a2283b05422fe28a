import logging
import random
import string

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from auratracker.errors import ConflictError, ValidationError
from auratracker.models.action import Action, ActionComment
from auratracker.models.game import Game
from auratracker.models.player import Player
from auratracker.models.proposal import Proposal, ProposalVote
from auratracker.models.user import GameSession

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6
CODE_ATTEMPTS = 10

# Every player's aura after a reset
RESET_AURA_POINTS = 1000
RECENT_ACTIONS_LIMIT = 20


def generate_game_code() -> str:
    return "".join(random.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def normalize_code(code: str) -> str:
    return code.strip().upper()


async def get_game_by_code(db: AsyncSession, code: str) -> Game | None:
    result = await db.execute(select(Game).where(Game.code == normalize_code(code)))
    return result.scalar_one_or_none()


async def create_game(db: AsyncSession, name: str) -> Game:
    name = name.strip()
    if not name:
        raise ValidationError("Game name is required")

    for _ in range(CODE_ATTEMPTS):
        code = generate_game_code()
        if await get_game_by_code(db, code) is None:
            break
    else:
        raise RuntimeError("Could not generate a unique game code")

    game = Game(name=name, code=code)
    db.add(game)
    await db.commit()
    await db.refresh(game)
    logger.info("Created game %s (%s)", game.code, game.name)
    return game


async def get_players_for_game(db: AsyncSession, game_id: int) -> list[Player]:
    result = await db.execute(
        select(Player).where(Player.game_id == game_id).order_by(Player.aura_points.desc(), Player.id)
    )
    return list(result.scalars().all())


async def count_players(db: AsyncSession, game_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(Player).where(Player.game_id == game_id)
    )
    return result.scalar_one()


async def get_recent_actions(
    db: AsyncSession, game_id: int, limit: int = RECENT_ACTIONS_LIMIT
) -> list[tuple[Action, str]]:
    """Most recent ledger entries for a game, newest first, with the player name."""
    result = await db.execute(
        select(Action, Player.name)
        .join(Player, Player.id == Action.player_id)
        .where(Action.game_id == game_id)
        .order_by(Action.created_at.desc(), Action.id.desc())
        .limit(limit)
    )
    return [(action, player_name) for action, player_name in result.all()]


async def update_game(
    db: AsyncSession, game: Game, name: str | None = None, code: str | None = None
) -> Game:
    if name is None and code is None:
        raise ValidationError("Nothing to update: provide name or code")

    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError("Game name cannot be empty")
        game.name = name

    if code is not None:
        new_code = normalize_code(code)
        if not new_code:
            raise ValidationError("Game code cannot be empty")
        if new_code != game.code:
            existing = await get_game_by_code(db, new_code)
            if existing is not None and existing.id != game.id:
                raise ConflictError("Game code already in use")
            game.code = new_code

    await db.commit()
    await db.refresh(game)
    return game


async def _delete_comments_for_actions(db: AsyncSession, action_filter) -> None:
    action_ids = select(Action.id).where(action_filter)
    await db.execute(delete(ActionComment).where(ActionComment.action_id.in_(action_ids)))


async def reset_game(db: AsyncSession, game: Game) -> None:
    """Clear the ledger and put every player back on the baseline.

    Player rows and ids are kept.  Proposals are left untouched.
    """
    await _delete_comments_for_actions(db, Action.game_id == game.id)
    await db.execute(delete(Action).where(Action.game_id == game.id))
    await db.execute(
        update(Player)
        .where(Player.game_id == game.id)
        .values(aura_points=RESET_AURA_POINTS)
    )
    await db.commit()
    logger.info("Reset game %s", game.code)


async def delete_game(db: AsyncSession, game: Game) -> None:
    # Children first so foreign keys hold at every step
    await _delete_comments_for_actions(db, Action.game_id == game.id)
    await db.execute(delete(Action).where(Action.game_id == game.id))

    proposal_ids = select(Proposal.id).where(Proposal.game_id == game.id)
    await db.execute(delete(ProposalVote).where(ProposalVote.proposal_id.in_(proposal_ids)))
    await db.execute(delete(Proposal).where(Proposal.game_id == game.id))

    await db.execute(delete(GameSession).where(GameSession.game_id == game.id))
    await db.execute(delete(Player).where(Player.game_id == game.id))
    await db.delete(game)
    await db.commit()
    logger.info("Deleted game %s", game.code)
