"""
Arcana Bot - Computer opponent for the duel.

The bot:
- Sets the highest-scoring settable card
- Spends a defensive instant only when its survival factor says it is
  in danger; otherwise it passes the window
- Answers its own interactions through AIInteractionPolicy

The bot does NOT:
- Look ahead (no search over the reveal pipeline)
- Read the opponent's hidden cards
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import random
from typing import TYPE_CHECKING

from ..engine_core.action import ActionType
from ..engine_core.cards import DEFENSIVE_TAGS
from .evaluator import CardEvaluation, CardUtilityEvaluator
from .interaction_policy import AIInteractionPolicy
from .personality import BALANCED, PERSONALITIES, Personality
from .policy import BotDecision, BotPolicy

if TYPE_CHECKING:
    from ..engine_core.action import Action
    from ..engine_core.interaction import InteractionResponse
    from ..engine_core.state import CardInstance, InteractionRequest, MatchState

logger = logging.getLogger(__name__)


@dataclass
class ArcanaBot(BotPolicy):
    """
    Heuristic bot built on the card utility evaluator.

    Usage:
        bot = ArcanaBot(player_id=2, personality=AGGRESSIVE)
        reducer.register_responder(2, bot)
        decision = bot.select_action(state, 2, legal_actions)
    """
    player_id: int
    personality: Personality = None  # type: ignore
    evaluator: CardUtilityEvaluator = None  # type: ignore
    rng: random.Random = None  # type: ignore
    interaction_policy: AIInteractionPolicy = None  # type: ignore

    def __post_init__(self):
        if self.personality is None:
            self.personality = BALANCED
        if self.evaluator is None:
            self.evaluator = CardUtilityEvaluator(weights=self.personality.weights)
        if self.rng is None:
            self.rng = random.Random()
        if self.interaction_policy is None:
            self.interaction_policy = AIInteractionPolicy(self.evaluator, self.rng)

    def select_action(
        self,
        state: MatchState,
        player_id: int,
        legal_actions: list[Action],
    ) -> BotDecision:
        """
        Pick an action for `player_id`.

        Process:
        1. A defensive instant, if the bot is in danger
        2. Otherwise the best card to set (with personality variance)
        3. Otherwise pass, or whatever single action remains
        """
        if not legal_actions:
            raise ValueError("No legal actions available")

        by_type: dict[ActionType, list[Action]] = {}
        for action in legal_actions:
            by_type.setdefault(action.action_type, []).append(action)

        instants = by_type.get(ActionType.PLAY_INSTANT, [])
        if instants:
            decision = self._consider_instant(state, player_id, instants)
            if decision is not None:
                return decision

        set_actions = by_type.get(ActionType.SET_CARD, [])
        if set_actions:
            return self._choose_set(state, player_id, set_actions)

        passes = by_type.get(ActionType.PASS, [])
        if passes:
            return BotDecision(action=passes[0], explanation="Nothing worth reacting with; pass")

        return BotDecision(
            action=legal_actions[0],
            explanation=f"Only option: {legal_actions[0].action_type.value}",
            evaluated_actions=len(legal_actions),
        )

    def respond(self, state: MatchState, request: InteractionRequest) -> InteractionResponse:
        return self.interaction_policy.respond(state, request)

    # ------------------------------------------------------------------

    def _card(self, state: MatchState, player_id: int, action: Action) -> CardInstance | None:
        if action.payload.instance_id is None:
            return None
        return state.get_player(player_id).find_in_hand(action.payload.instance_id)

    def _consider_instant(
        self,
        state: MatchState,
        player_id: int,
        instants: list[Action],
    ) -> BotDecision | None:
        ctx = self.evaluator.assess(state, player_id)
        if ctx.survival < self.personality.instant_threshold:
            return None

        best: tuple[Action, CardEvaluation] | None = None
        for action in instants:
            card = self._card(state, player_id, action)
            if card is None:
                continue
            if not any(tag in DEFENSIVE_TAGS for tag in card.definition.ai.on_instant):
                continue
            evaluation = self.evaluator.evaluate_in(card, ctx)
            if best is None or evaluation.score > best[1].score:
                best = (action, evaluation)

        if best is None:
            return None
        action, evaluation = best
        logger.debug("Bot %s reacts with %s", player_id, evaluation.card.name)
        return BotDecision(
            action=action,
            explanation=f"In danger (survival {ctx.survival:.2f}): react with [{evaluation.card.name}]",
            evaluated_actions=len(instants),
            best_score=evaluation.score,
            evaluation_details={"reasons": evaluation.reasons},
        )

    def _choose_set(self, state: MatchState, player_id: int, set_actions: list[Action]) -> BotDecision:
        cards = {}
        for action in set_actions:
            card = self._card(state, player_id, action)
            if card is not None:
                cards[card.instance_id] = action
        if not cards:
            return BotDecision(action=set_actions[0], explanation="Nothing to set")

        if self.rng.random() < self.personality.randomness:
            action = self.rng.choice(list(cards.values()))
            return BotDecision(
                action=action,
                explanation=f"Random set (personality: {self.personality.name})",
                evaluated_actions=0,
            )

        hand = state.get_player(player_id).hand
        ranked = self.evaluator.rank(
            [c for c in hand if c.instance_id in cards], state, player_id,
        )
        chosen = self._select_with_variance(ranked)
        return BotDecision(
            action=cards[chosen.card.instance_id],
            explanation=f"Set [{chosen.card.name}] (score: {chosen.score:.1f}, personality: {self.personality.name})",
            confidence=self._calculate_confidence(ranked),
            evaluated_actions=len(ranked),
            best_score=chosen.score,
            evaluation_details={"reasons": chosen.reasons},
        )

    def _select_with_variance(self, ranked: list[CardEvaluation]) -> CardEvaluation:
        """
        Select from the top cards with some variance.

        Higher risk_tolerance = more likely to pick a suboptimal card.
        Locked cards are never candidates.
        """
        playable = [e for e in ranked if not e.card.is_locked] or ranked
        top_n = max(1, int(len(playable) * self.personality.risk_tolerance))
        top = playable[:top_n]
        if len(top) == 1:
            return top[0]

        # Weight by score (softmax-like)
        min_score = min(e.score for e in top)
        weights = [max(0.1, e.score - min_score + 1) for e in top]
        return self.rng.choices(top, weights=weights, k=1)[0]

    @staticmethod
    def _calculate_confidence(ranked: list[CardEvaluation]) -> float:
        """Margin between the two best cards, squashed into 0..1."""
        if len(ranked) <= 1:
            return 1.0
        margin = ranked[0].score - ranked[1].score
        return min(1.0, 0.5 + margin / 100)

    def get_name(self) -> str:
        return f"ArcanaBot({self.player_id}, {self.personality.name})"


def create_bot(player_id: int, personality: str = "balanced", seed: int | None = None) -> ArcanaBot:
    """Build a bot from a personality name."""
    if personality not in PERSONALITIES:
        raise ValueError(f"Unknown personality: {personality}")
    return ArcanaBot(
        player_id=player_id,
        personality=PERSONALITIES[personality],
        rng=random.Random(seed),
    )
