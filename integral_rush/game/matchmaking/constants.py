from __future__ import annotations

MATCHMAKING_QUESTIONS_TO_WIN = 5

MATCHMAKING_STATE_QUEUED = "QUEUED"
MATCHMAKING_STATE_MATCHED = "MATCHED"
MATCHMAKING_STATE_IDLE = "IDLE"

MATCHMAKING_SWEEP_BATCH_SIZE = 200
