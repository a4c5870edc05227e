from integral_rush.game.tournaments.create_join import create_tournament, join_tournament
from integral_rush.game.tournaments.lifecycle import abandon_tournament, sync_tournament
from integral_rush.game.tournaments.queries import get_leaderboard, get_tournament
from integral_rush.game.tournaments.start import start_tournament

__all__ = [
    "abandon_tournament",
    "create_tournament",
    "get_leaderboard",
    "get_tournament",
    "join_tournament",
    "start_tournament",
    "sync_tournament",
]
