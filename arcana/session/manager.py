"""
Session Manager - Creates and manages duel sessions.

LIFECYCLE:
1. A session is created with a match config and the seats to fill
2. The manager builds the card registry, the initial state, one Reducer
   and the bots for computer-controlled seats
3. During the match:
   - The human submits actions (set, instant, pass, interaction answers)
   - The game loop applies them and runs the bots until the human is needed
4. Match ends, or the session is abandoned: it is removed from memory

PERSISTENCE RULES:
- NO database; sessions are in-memory only
- The Reducer is kept for the whole session, because suspended
  resolution (an unanswered interaction) lives in its command queue
- A match can be exported as a snapshot for transport, never stored here
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
import logging
import random
import time
from typing import Any
import uuid

from ..bots import BotPolicy, create_bot
from ..engine_core.cards import CardRegistry
from ..engine_core.reducer import Reducer
from ..engine_core.state import GamePhase, MatchState
from ..games.tarot import MatchConfig, build_registry, setup_match

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a duel session."""
    CREATED = "created"  # Session created, turn 1 not started yet
    ACTIVE = "active"  # Match in progress
    WAITING_INPUT = "waiting_input"  # A human interaction is pending
    GAME_OVER = "game_over"  # Match completed
    ABANDONED = "abandoned"  # User quit


@dataclass
class Session:
    """
    An ephemeral duel session.

    Contains:
    - The card registry and the Reducer driving the match
    - Current match state
    - Bots for computer-controlled seats

    The session is destroyed when the match ends.
    """
    session_id: str
    registry: CardRegistry
    reducer: Reducer
    created_at: float

    # Current state
    state: SessionState = SessionState.CREATED
    match_state: MatchState | None = None

    # Seats
    bots: dict[int, BotPolicy] = field(default_factory=dict)
    human_player_ids: list[int] = field(default_factory=list)

    # Session metadata
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state in {
            SessionState.CREATED,
            SessionState.ACTIVE,
            SessionState.WAITING_INPUT,
        }

    @property
    def human_player_id(self) -> int | None:
        """The first human seat, if any."""
        return self.human_player_ids[0] if self.human_player_ids else None

    def is_waiting_for_human(self) -> bool:
        """Whether the pending interaction belongs to a human seat."""
        if not self.match_state or self.match_state.interaction is None:
            return False
        return self.match_state.interaction.player_id in self.human_player_ids

    def refresh_state(self) -> None:
        """Derive the session state from the match state."""
        if self.match_state is None:
            return
        if self.match_state.phase == GamePhase.GAME_OVER:
            self.state = SessionState.GAME_OVER
        elif self.is_waiting_for_human():
            self.state = SessionState.WAITING_INPUT
        else:
            self.state = SessionState.ACTIVE


class SessionManager:
    """
    Manages duel sessions.

    Responsibilities:
    - Create sessions (registry, initial state, reducer, bots)
    - Track active sessions
    - Clean up completed sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, registry: CardRegistry | None = None):
        self._sessions: dict[str, Session] = {}
        self._registry = registry

    def create_session(
        self,
        config: MatchConfig | None = None,
        player_name: str = "Player",
        bot_personality: str = "balanced",
        vs_bot: bool = True,
        bot_personalities: tuple[str, str] | None = None,
    ) -> Session:
        """
        Create a new duel session.

        Args:
            config: Match configuration (hp, atk, hand size, seed...)
            player_name: Name for the human seat
            bot_personality: Personality of the computer opponent
            vs_bot: False seats two humans (hot-seat play)
            bot_personalities: Seat two bots instead of a human (self-play)

        Returns:
            New Session ready to start
        """
        config = config or MatchConfig()
        if config.random_seed is None:
            config = replace(config, random_seed=random.randrange(1_000_000))
        registry = self._registry or build_registry()
        session_id = str(uuid.uuid4())

        if bot_personalities is not None:
            seats = [(f"Bot ({p})", p) for p in bot_personalities]
        elif vs_bot:
            seats = [(player_name, None), (f"Bot ({bot_personality})", bot_personality)]
        else:
            seats = [(player_name, None), ("Player 2", None)]

        match_state = setup_match(
            config,
            registry,
            player_names=(seats[0][0], seats[1][0]),
            human_players=(seats[0][1] is None, seats[1][1] is None),
            match_id=session_id,
        )

        reducer = Reducer(registry=registry, rng=random.Random(config.random_seed))
        bots: dict[int, BotPolicy] = {}
        for pid, (_, personality) in enumerate(seats, start=1):
            if personality is None:
                continue
            bot = create_bot(pid, personality, seed=config.random_seed + pid)
            bots[pid] = bot
            reducer.register_responder(pid, bot)

        human_ids = [pid for pid, (_, personality) in enumerate(seats, start=1) if personality is None]
        session = Session(
            session_id=session_id,
            registry=registry,
            reducer=reducer,
            created_at=time.time(),
            state=SessionState.CREATED,
            match_state=match_state,
            bots=bots,
            human_player_ids=human_ids,
            metadata={"seed": config.random_seed},
        )

        self._sessions[session_id] = session
        logger.info("Created session %s (seed %s, bots %s)", session_id, config.random_seed, sorted(bots))
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed"):
        """
        End a session and clean up.

        This is called when:
        - The match is completed
        - The user abandons the match
        - The session went stale

        The session is removed from memory.
        """
        session = self._sessions.pop(session_id, None)
        if session:
            if reason == "completed":
                session.state = SessionState.GAME_OVER
            else:
                session.state = SessionState.ABANDONED

            session.reducer.resolver.reset()
            session.match_state = None
            logger.info("Ended session %s (%s)", session_id, reason)

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600):
        """
        Clean up finished sessions older than max_age.

        Called periodically to free memory.
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]

        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
