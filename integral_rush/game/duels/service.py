from integral_rush.game.duels.answers import submit_answer
from integral_rush.game.duels.create_join import create_duel_room, create_started_room, join_duel_room
from integral_rush.game.duels.invariants import quarantine_room
from integral_rush.game.duels.lifecycle import abandon_duel_room
from integral_rush.game.duels.queries import get_duel_state
from integral_rush.game.duels.questions import advance_to_next_question
from integral_rush.game.duels.timer import tick_timer

__all__ = [
    "abandon_duel_room",
    "advance_to_next_question",
    "create_duel_room",
    "create_started_room",
    "get_duel_state",
    "join_duel_room",
    "quarantine_room",
    "submit_answer",
    "tick_timer",
]
