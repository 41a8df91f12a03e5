"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Manages sessions and their game loops
3. Formats responses (status, legal actions, snapshot)

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    ActionRequest,
    CreateMatchRequest,
    # Responses
    ActionResponse,
    ErrorResponse,
    MatchResponse,
    # Shared
    CardInfo,
    LegalActionInfo,
    # Enums
    ActionKind,
    ErrorCode,
    MatchStatus,
)
from ..bots import PERSONALITIES
from ..engine_core.action import Action, ActionType
from ..engine_core.action_generator import ActionGenerator
from ..engine_core.interaction import InteractionResponse
from ..engine_core.snapshot import MatchSnapshot, to_snapshot
from ..games.tarot import MatchConfig, TAROT_CARDS
from ..session import GameLoop, Session, SessionManager, SessionState

logger = logging.getLogger(__name__)

_ACTION_KINDS = {
    ActionType.SET_CARD: ActionKind.SET_CARD,
    ActionType.PLAY_INSTANT: ActionKind.PLAY_INSTANT,
    ActionType.PASS: ActionKind.PASS,
}


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Start a duel against a bot
        match = service.create_match(CreateMatchRequest(player_name="Ana"))

        # Set a card
        result = service.submit_action(match.match_id, ActionRequest(
            player_id=1, action=ActionKind.SET_CARD, instance_id="...",
        ))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # Game loops per session
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    def create_match(self, request: CreateMatchRequest) -> MatchResponse:
        """
        Create a duel and run it until the human is needed.

        Raises ValueError for an unknown bot personality.
        """
        if request.vs_bot and request.bot_personality not in PERSONALITIES:
            raise ValueError(f"Unknown personality: {request.bot_personality}")

        config = MatchConfig(
            starting_hp=request.starting_hp,
            starting_atk=request.starting_atk,
            random_seed=request.seed,
        )
        session = self.session_manager.create_session(
            config=config,
            player_name=request.player_name,
            bot_personality=request.bot_personality,
            vs_bot=request.vs_bot,
        )
        loop = GameLoop(session)
        self._game_loops[session.session_id] = loop
        loop.advance()
        return self._session_to_response(session)

    def get_match(self, match_id: str) -> MatchResponse | ErrorResponse:
        session = self.session_manager.get_session(match_id)
        if not session:
            return self._not_found(match_id)
        return self._session_to_response(session)

    def get_snapshot(self, match_id: str) -> MatchSnapshot | ErrorResponse:
        session = self.session_manager.get_session(match_id)
        if not session or session.match_state is None:
            return self._not_found(match_id)
        return to_snapshot(session.match_state)

    def submit_action(self, match_id: str, request: ActionRequest) -> ActionResponse | ErrorResponse:
        """
        Apply a human action and let the bots respond.

        Actions for a bot seat are rejected.
        """
        session = self.session_manager.get_session(match_id)
        if not session:
            return self._not_found(match_id)
        if request.player_id not in session.human_player_ids:
            return ErrorResponse(
                error=f"Player {request.player_id} is not controlled by a human",
                error_code=ErrorCode.INVALID_ACTION,
            )

        action = self._to_action(request)
        loop = self._game_loops.setdefault(match_id, GameLoop(session))
        result = loop.submit(action)
        if not result.success and not result.actions_taken:
            return ErrorResponse(
                error=result.errors[0] if result.errors else "Action rejected",
                error_code=ErrorCode.INVALID_ACTION,
                details={"action": request.action.value},
            )

        return ActionResponse(
            success=result.success,
            match=self._session_to_response(session),
            actions_taken=result.actions_taken,
            log_lines=result.log_lines,
            errors=result.errors,
        )

    def end_match(self, match_id: str, reason: str = "user_ended") -> bool:
        """End a match and clean up."""
        if not self.session_manager.get_session(match_id):
            return False
        self._game_loops.pop(match_id, None)
        self.session_manager.end_session(match_id, reason)
        return True

    def list_matches(self) -> list[str]:
        """List active match IDs."""
        return self.session_manager.list_active_sessions()

    def card_library(self) -> list[CardInfo]:
        return [
            CardInfo(
                card_id=card.card_id,
                name=card.name,
                suit=card.suit.value,
                rank=card.rank,
                description=card.description,
                keywords=[k.value for k in card.keywords],
                is_treasure=card.is_treasure,
                instant_windows=sorted(w.value for w in card.instant_windows),
            )
            for card in TAROT_CARDS
        ]

    # =========================================================================
    # Helper methods
    # =========================================================================

    @staticmethod
    def _not_found(match_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Match {match_id} not found",
            error_code=ErrorCode.MATCH_NOT_FOUND,
        )

    @staticmethod
    def _to_action(request: ActionRequest) -> Action:
        if request.action == ActionKind.SET_CARD:
            return Action.set_card(request.player_id, request.instance_id)
        if request.action == ActionKind.PLAY_INSTANT:
            return Action.play_instant(request.player_id, request.instance_id or "")
        if request.action == ActionKind.PASS:
            return Action.pass_window(request.player_id)

        if request.dismiss:
            response = InteractionResponse.dismissed("dismissed by player")
        elif request.option_index is not None:
            response = InteractionResponse.choose_option(request.option_index)
        elif request.card_instance_id is not None:
            response = InteractionResponse.card(request.card_instance_id)
        else:
            response = InteractionResponse(value=request.value)
        return Action.resolve_interaction(request.player_id, response)

    def _session_to_response(self, session: Session) -> MatchResponse:
        """Convert a Session to a MatchResponse."""
        state = session.match_state
        snapshot = to_snapshot(state)
        outcome = state.outcome
        return MatchResponse(
            match_id=session.session_id,
            status=self._session_state_to_status(session),
            turn_number=state.turn_number,
            phase=state.phase.value,
            human_player_ids=list(session.human_player_ids),
            pending_interaction=snapshot.interaction,
            legal_actions=self._legal_actions(session),
            winner_id=outcome.winner_id if outcome else None,
            is_draw=outcome.is_draw if outcome else False,
            state=snapshot,
        )

    @staticmethod
    def _session_state_to_status(session: Session) -> MatchStatus:
        """Map session state to API status."""
        mapping = {
            SessionState.CREATED: MatchStatus.CREATED,
            SessionState.ACTIVE: MatchStatus.ACTIVE,
            SessionState.WAITING_INPUT: MatchStatus.WAITING_INPUT,
            SessionState.GAME_OVER: MatchStatus.GAME_OVER,
            SessionState.ABANDONED: MatchStatus.GAME_OVER,
        }
        return mapping.get(session.state, MatchStatus.ACTIVE)

    @staticmethod
    def _legal_actions(session: Session) -> list[LegalActionInfo]:
        """Legal actions for the human seats, plus the interaction answer if one is due."""
        state = session.match_state
        if state.interaction is not None and session.is_waiting_for_human():
            return [LegalActionInfo(
                action=ActionKind.RESOLVE_INTERACTION,
                player_id=state.interaction.player_id,
            )]

        generator = ActionGenerator()
        infos: list[LegalActionInfo] = []
        for player_id in session.human_player_ids:
            player = state.get_player(player_id)
            for action in generator.generate_for_player(state, player_id):
                card = player.find_in_hand(action.payload.instance_id) if action.payload.instance_id else None
                infos.append(LegalActionInfo(
                    action=_ACTION_KINDS[action.action_type],
                    player_id=player_id,
                    instance_id=action.payload.instance_id,
                    card_name=card.name if card else None,
                ))
        return infos
