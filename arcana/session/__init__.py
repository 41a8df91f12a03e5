"""
Session Module - Manages ephemeral duel sessions.

A session represents one duel:
- Created when a match starts
- Holds the current match state and the Reducer driving it
- Runs bot seats through the game loop
- Destroyed when the match ends

Sessions are EPHEMERAL: nothing is written to a database.
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, LoopState, TurnResult

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "LoopState",
    "TurnResult",
]
