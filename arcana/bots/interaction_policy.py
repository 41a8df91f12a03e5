"""
AI Interaction Policy - Answers suspended decisions for a computer player.

The policy is registered with the Reducer as the InteractionResponder for
computer-controlled players, so every interaction they own is answered the
moment it opens.

- CARD_SELECT: worst card when the request reads like a discard, best card
  when it reads like a keep/search/reward, otherwise random
- NUMBER_INPUT: maximum by default, minimum for discards, a safe hp spend
  when the request is a cost
- BUTTON: situational rules, then preferred wording, then random among
  options that do not read like a cancel
- Anything else is dismissed
"""

from __future__ import annotations
import logging
import random
from typing import TYPE_CHECKING

from ..engine_core.interaction import InteractionResponse
from ..engine_core.state import InteractionKind
from .evaluator import CardUtilityEvaluator

if TYPE_CHECKING:
    from ..engine_core.state import InteractionRequest, MatchState, PlayerState

logger = logging.getLogger(__name__)

DISCARD_TERMS = ("discard", "lose", "give up", "sacrifice")
KEEP_TERMS = ("select", "choose", "search", "reward", "keep", "take", "retrieve", "return")
COST_TERMS = ("cost", "pay", "spend")
PREFERRED_TERMS = ("confirm", "activate", "keep", "draw", "accept", "gain")
AVOID_TERMS = ("cancel", "skip", "decline", "do nothing")

SAFE_SPEND_FRACTION = 0.25
SMALL_HAND = 3


def _mentions(text: str, terms: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(term in lowered for term in terms)


class AIInteractionPolicy:
    """
    Heuristic responder for one or more computer-controlled players.

    The evaluator used for card selection is shared with the bot that
    chooses plays, so both reason from the same scores.
    """

    def __init__(
        self,
        evaluator: CardUtilityEvaluator | None = None,
        rng: random.Random | None = None,
    ):
        self.evaluator = evaluator or CardUtilityEvaluator()
        self.rng = rng or random.Random()

    def respond(self, state: MatchState, request: InteractionRequest) -> InteractionResponse:
        player = state.get_player(request.player_id)

        if request.kind == InteractionKind.CARD_SELECT and request.candidates:
            response = self._select_card(state, request)
        elif request.kind == InteractionKind.NUMBER_INPUT and request.max_value is not None:
            response = self._choose_number(player, request)
        elif request.kind == InteractionKind.BUTTON and request.options:
            response = self._choose_option(state, player, request)
        else:
            response = InteractionResponse.dismissed("nothing the AI can resolve")

        logger.debug("AI answer to %s: %s", request.title, response.explanation)
        return response

    # ------------------------------------------------------------------
    # Card selection
    # ------------------------------------------------------------------

    def _select_card(self, state: MatchState, request: InteractionRequest) -> InteractionResponse:
        candidates = [c for c in request.candidates if not c.is_locked] or list(request.candidates)
        text = f"{request.title} {request.description}"

        if _mentions(text, DISCARD_TERMS):
            ranked = self.evaluator.rank(candidates, state, request.player_id)
            chosen = ranked[-1].card
            reason = f"discard the weakest card [{chosen.name}]"
        elif _mentions(text, KEEP_TERMS):
            ranked = self.evaluator.rank(candidates, state, request.player_id)
            chosen = ranked[0].card
            reason = f"keep the strongest card [{chosen.name}]"
        else:
            chosen = self.rng.choice(candidates)
            reason = f"random pick [{chosen.name}]"
        return InteractionResponse.card(chosen.instance_id, reason)

    # ------------------------------------------------------------------
    # Numeric input
    # ------------------------------------------------------------------

    def _choose_number(self, player: PlayerState, request: InteractionRequest) -> InteractionResponse:
        low = request.min_value if request.min_value is not None else 0
        high = request.max_value if request.max_value is not None else low
        text = f"{request.title} {request.description}"

        if request.unit_cost or _mentions(text, COST_TERMS):
            value = self.safe_spend(player.hp, low, high, request.unit_cost or 1)
            return InteractionResponse.number(value, f"safe spend {value}")
        if _mentions(text, DISCARD_TERMS):
            return InteractionResponse.number(low, "discard as little as possible")
        return InteractionResponse.number(high, "take the maximum")

    @staticmethod
    def safe_spend(hp: int, low: int, high: int, unit_cost: int) -> int:
        """Spend about a quarter of current hp, never enough to die."""
        affordable = int(hp * SAFE_SPEND_FRACTION) // max(1, unit_cost)
        value = max(low, min(high, affordable))
        if hp - value * unit_cost <= 0:
            value = low
        return value

    # ------------------------------------------------------------------
    # Buttons
    # ------------------------------------------------------------------

    def _choose_option(
        self,
        state: MatchState,
        player: PlayerState,
        request: InteractionRequest,
    ) -> InteractionResponse:
        labels = [label.lower() for label in request.options]

        index = self._situational_option(state, player, labels)
        if index is not None:
            return InteractionResponse.choose_option(index, f"situational [{request.options[index]}]")

        for i, label in enumerate(labels):
            if any(term in label for term in PREFERRED_TERMS):
                return InteractionResponse.choose_option(i, f"preferred [{request.options[i]}]")

        allowed = [i for i, label in enumerate(labels) if not any(t in label for t in AVOID_TERMS)]
        index = self.rng.choice(allowed or list(range(len(labels))))
        return InteractionResponse.choose_option(index, f"random [{request.options[index]}]")

    @staticmethod
    def _situational_option(state: MatchState, player: PlayerState, labels: list[str]) -> int | None:
        draw = next((i for i, label in enumerate(labels) if "draw" in label), None)
        discard = next((i for i, label in enumerate(labels) if "discard" in label), None)
        if draw is not None and discard is not None:
            return draw if player.hand_count < SMALL_HAND else discard

        field_option = next((i for i, label in enumerate(labels) if "field" in label), None)
        if field_option is not None and state.shared_field is None:
            return field_option
        return None
