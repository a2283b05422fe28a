"""Proposal lifecycle: creation, voting, tally and execution.

A proposal asks the table to change one player's aura by a signed delta.
Every player of the game counts as a voter; the electorate is frozen when the
proposal is created (total_voters) and so is the approval threshold
(required_votes = total_voters // 2 + 1, an absolute majority).

After each vote the tally decides the next status:

- votes_for >= required_votes              -> approved, then executed
- votes_against >= total_voters // 2 + 1   -> rejected
- every voter has voted                    -> rejected
- otherwise                                -> pending

Expiry is lazy: a pending proposal past expires_at is only flipped to
expired when somebody next tries to vote on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auratracker.config import settings
from auratracker.errors import ConflictError, NotFoundError, ProposalExpiredError, ValidationError
from auratracker.models.action import ActionType
from auratracker.models.game import Game
from auratracker.models.player import Player
from auratracker.models.proposal import Proposal, ProposalStatus, ProposalVote
from auratracker.services.game_service import count_players
from auratracker.services.ledger_service import apply_points, get_player_in_game, record_action

logger = logging.getLogger(__name__)


@dataclass
class VoteOutcome:
    proposal: Proposal
    executed: bool = False
    new_aura: int | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def majority(total_voters: int) -> int:
    return total_voters // 2 + 1


def decide_status(
    votes_for: int, votes_against: int, required_votes: int, total_voters: int
) -> ProposalStatus:
    """Return the status a proposal should move to after a tally.

    Only pending, approved or rejected are returned; execution and expiry are
    separate transitions.
    """
    if votes_for >= required_votes:
        return ProposalStatus.approved
    if votes_against >= majority(total_voters) or votes_for + votes_against >= total_voters:
        return ProposalStatus.rejected
    return ProposalStatus.pending


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_pending_proposals(db: AsyncSession, game_id: int) -> list[tuple[Proposal, Player]]:
    result = await db.execute(
        select(Proposal, Player)
        .join(Player, Player.id == Proposal.player_id)
        .where(Proposal.game_id == game_id, Proposal.status == ProposalStatus.pending)
        .order_by(Proposal.created_at.desc(), Proposal.id.desc())
    )
    return [(proposal, player) for proposal, player in result.all()]


async def get_proposal_with_player(
    db: AsyncSession, game_id: int, proposal_id: int
) -> tuple[Proposal, Player] | None:
    result = await db.execute(
        select(Proposal, Player)
        .join(Player, Player.id == Proposal.player_id)
        .where(Proposal.id == proposal_id, Proposal.game_id == game_id)
    )
    row = result.first()
    if row is None:
        return None
    return row[0], row[1]


async def get_votes(db: AsyncSession, proposal_id: int) -> list[ProposalVote]:
    result = await db.execute(
        select(ProposalVote)
        .where(ProposalVote.proposal_id == proposal_id)
        .order_by(ProposalVote.created_at, ProposalVote.id)
    )
    return list(result.scalars().all())


async def _has_voted(db: AsyncSession, proposal_id: int, username: str) -> bool:
    result = await db.execute(
        select(ProposalVote.id).where(
            ProposalVote.proposal_id == proposal_id, ProposalVote.username == username
        )
    )
    return result.first() is not None


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


async def create_proposal(
    db: AsyncSession,
    game: Game,
    player_id: int,
    description: str,
    points: int,
    username: str,
    now: datetime | None = None,
) -> Proposal:
    description = description.strip()
    username = username.strip()
    if not description or not username:
        raise ValidationError("Incomplete proposal data")
    if points == 0:
        raise ValidationError("Proposed points must be non-zero")

    player = await get_player_in_game(db, game.id, player_id)
    if player is None:
        raise NotFoundError("Player not found")

    total_voters = await count_players(db, game.id) or 1
    now = now or _utcnow()
    proposal = Proposal(
        game_id=game.id,
        player_id=player.id,
        proposed_by_username=username,
        description=description,
        points=points,
        status=ProposalStatus.pending,
        votes_for=0,
        votes_against=0,
        total_voters=total_voters,
        required_votes=majority(total_voters),
        expires_at=now + timedelta(hours=settings.proposal_ttl_hours),
    )
    db.add(proposal)
    await db.commit()
    await db.refresh(proposal)
    logger.info(
        "Proposal %s in game %s: %+d for player %s (%s/%s votes needed)",
        proposal.id,
        game.code,
        points,
        player.id,
        proposal.required_votes,
        total_voters,
    )
    return proposal


# ---------------------------------------------------------------------------
# Voting
# ---------------------------------------------------------------------------


async def _transition(
    db: AsyncSession, proposal: Proposal, from_status: ProposalStatus, to_status: ProposalStatus
) -> bool:
    """Move the proposal between statuses only if it is still in from_status.

    Returns False when another request got there first.
    """
    result = await db.execute(
        update(Proposal)
        .where(Proposal.id == proposal.id, Proposal.status == from_status)
        .values(status=to_status)
    )
    await db.commit()
    await db.refresh(proposal)
    return result.rowcount == 1


async def cast_vote(
    db: AsyncSession,
    game: Game,
    proposal_id: int,
    vote_for: bool,
    username: str,
    now: datetime | None = None,
) -> VoteOutcome:
    """Record one vote and advance the proposal if a threshold is crossed.

    Checks, first failure wins: proposal pending in this game, not expired,
    voter has not voted yet.
    """
    result = await db.execute(
        select(Proposal).where(
            Proposal.id == proposal_id,
            Proposal.game_id == game.id,
            Proposal.status == ProposalStatus.pending,
        )
    )
    proposal = result.scalar_one_or_none()
    if proposal is None:
        raise NotFoundError("Proposal not found or no longer active")

    now = now or _utcnow()
    if now > _as_utc(proposal.expires_at):
        await _transition(db, proposal, ProposalStatus.pending, ProposalStatus.expired)
        logger.info("Proposal %s expired", proposal.id)
        raise ProposalExpiredError("Proposal expired")

    username = username.strip()
    if await _has_voted(db, proposal.id, username):
        raise ConflictError("You have already voted on this proposal")

    db.add(ProposalVote(proposal_id=proposal.id, username=username, vote=vote_for))
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("You have already voted on this proposal")

    counter = Proposal.votes_for if vote_for else Proposal.votes_against
    await db.execute(
        update(Proposal).where(Proposal.id == proposal.id).values({counter: counter + 1})
    )
    await db.commit()
    await db.refresh(proposal)

    outcome = VoteOutcome(proposal=proposal)
    next_status = decide_status(
        proposal.votes_for, proposal.votes_against, proposal.required_votes, proposal.total_voters
    )
    if next_status == ProposalStatus.pending:
        return outcome

    if not await _transition(db, proposal, ProposalStatus.pending, next_status):
        return outcome
    logger.info("Proposal %s %s", proposal.id, next_status.value)

    if next_status == ProposalStatus.approved:
        new_aura = await execute_proposal(db, proposal)
        if new_aura is not None:
            outcome.executed = True
            outcome.new_aura = new_aura
    return outcome


async def execute_proposal(db: AsyncSession, proposal: Proposal) -> int | None:
    """Apply an approved proposal to its player and log it in the ledger.

    Returns the player's new aura, or None when the player is gone (the
    proposal then stays approved).  A failed ledger insert does not stop the
    proposal from being marked executed.
    """
    player = await get_player_in_game(db, proposal.game_id, proposal.player_id)
    if player is None:
        logger.error(
            "Cannot execute proposal %s: player %s not found", proposal.id, proposal.player_id
        )
        return None

    player = await apply_points(db, player, proposal.points)
    new_aura = player.aura_points

    action = await record_action(
        db,
        game_id=proposal.game_id,
        player_id=player.id,
        action_type=ActionType.add if proposal.points > 0 else ActionType.subtract,
        points=proposal.points,
        description=f"Proposal approved: {proposal.description}",
        performed_by=proposal.proposed_by_username,
    )
    if action is None:
        await db.refresh(proposal)

    await _transition(db, proposal, ProposalStatus.approved, ProposalStatus.executed)
    return new_aura
