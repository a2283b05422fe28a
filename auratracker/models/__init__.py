from auratracker.models.base import Base  # noqa: F401
from auratracker.models.action import Action, ActionComment, ActionType  # noqa: F401
from auratracker.models.game import Game  # noqa: F401
from auratracker.models.player import Player  # noqa: F401
from auratracker.models.proposal import Proposal, ProposalStatus, ProposalVote  # noqa: F401
from auratracker.models.user import GameSession, User  # noqa: F401
