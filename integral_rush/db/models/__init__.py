from integral_rush.db.models.base import Base
from integral_rush.db.models.duel_queue import DuelQueueEntry
from integral_rush.db.models.duel_rooms import DuelRoom
from integral_rush.db.models.tournament_matches import TournamentMatch
from integral_rush.db.models.tournament_participants import TournamentParticipant
from integral_rush.db.models.tournament_rooms import TournamentRoom

__all__ = [
    "Base",
    "DuelQueueEntry",
    "DuelRoom",
    "TournamentMatch",
    "TournamentParticipant",
    "TournamentRoom",
]
