"""
Bot Policy - Interface for bot decision-making.

A BotPolicy takes a match state and returns a decision.
Decisions include:
- Which action to take (set a card, play an instant, pass)
- Answers to interactions raised during resolution
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import random
from typing import TYPE_CHECKING, Any

from ..engine_core.interaction import InteractionResponse

if TYPE_CHECKING:
    from ..engine_core.action import Action
    from ..engine_core.state import InteractionRequest, MatchState


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The action to take
    - Explanation (for UI/debugging)
    - Confidence in the decision
    """
    action: Action
    explanation: str = ""
    confidence: float = 1.0

    # Evaluation details (for debugging)
    evaluated_actions: int = 0
    best_score: float = 0.0
    evaluation_details: dict[str, Any] = field(default_factory=dict)


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a bot selects actions.
    Implementations can range from simple heuristics
    to complex search algorithms.
    """

    @abstractmethod
    def select_action(
        self,
        state: MatchState,
        player_id: int,
        legal_actions: list[Action],
    ) -> BotDecision:
        """
        Select an action from the legal actions.

        Args:
            state: Current match state
            player_id: The side the bot plays
            legal_actions: That player's legal actions

        Returns:
            BotDecision with the selected action
        """
        pass

    @abstractmethod
    def respond(self, state: MatchState, request: InteractionRequest) -> InteractionResponse:
        """
        Answer an interaction owned by the bot's player.

        Policies double as InteractionResponders, so the reducer can
        resolve their interactions synchronously.
        """
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """
    Random policy - selects actions uniformly at random.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_action(
        self,
        state: MatchState,
        player_id: int,
        legal_actions: list[Action],
    ) -> BotDecision:
        if not legal_actions:
            raise ValueError("No legal actions available")

        action = self.rng.choice(legal_actions)
        return BotDecision(
            action=action,
            explanation="Selected randomly",
            confidence=1.0 / len(legal_actions),
            evaluated_actions=len(legal_actions),
        )

    def respond(self, state: MatchState, request: InteractionRequest) -> InteractionResponse:
        if request.options:
            return InteractionResponse.choose_option(self.rng.randrange(len(request.options)))
        if request.candidates:
            return InteractionResponse.card(self.rng.choice(request.candidates).instance_id)
        if request.max_value is not None:
            low = request.min_value if request.min_value is not None else 0
            return InteractionResponse.number(self.rng.randint(low, request.max_value))
        return InteractionResponse.dismissed("nothing to choose")


class FirstLegalPolicy(BotPolicy):
    """
    First-legal policy - always selects the first legal action.

    Used for:
    - Deterministic testing
    - Baseline comparison
    """

    def select_action(
        self,
        state: MatchState,
        player_id: int,
        legal_actions: list[Action],
    ) -> BotDecision:
        if not legal_actions:
            raise ValueError("No legal actions available")

        return BotDecision(
            action=legal_actions[0],
            explanation="Selected first legal action",
            evaluated_actions=1,
        )

    def respond(self, state: MatchState, request: InteractionRequest) -> InteractionResponse:
        if request.options:
            return InteractionResponse.choose_option(0, "first option")
        if request.candidates:
            return InteractionResponse.card(request.candidates[0].instance_id, "first card")
        if request.min_value is not None:
            return InteractionResponse.number(request.min_value, "minimum")
        return InteractionResponse.dismissed("nothing to choose")
