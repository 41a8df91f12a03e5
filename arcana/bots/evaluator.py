"""
Card Utility Evaluator - Scores candidate cards for bot decision-making.

The evaluator assigns a desirability score to one card given:
- The acting player's state (hp, atk, hand)
- The opponent's state
- The shared field

Scoring runs in layers:
1. Context factors (survival, aggression, resource need, field advantage)
2. Per-tag scoring of what playing the card does
3. Adjustments: holding defensive instants, self-damage risk,
   pluggable situational rules
4. A small speed tie-break (lower rank preferred)

Weights can be adjusted to create different personalities.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from ..engine_core.cards import AITag, DEFENSIVE_TAGS
from ..engine_core.state import MAX_HP_REFERENCE

if TYPE_CHECKING:
    from ..engine_core.state import CardInstance, MatchState, PlayerState


SELF_DAMAGE_MARKERS = ("self-damage", "both players", "your own hp", "lose hp")


@dataclass
class EvaluationWeights:
    """
    Weights for the card evaluator.

    Higher values = more importance.
    Can be adjusted to create different play styles.
    """
    base_score: float = 50.0
    treasure_bonus: float = 150.0
    locked_sentinel: float = -9999.0
    lethal_bonus: float = 10000.0

    # Tag values
    damage_per_atk: float = 5.0
    heal_value: float = 40.0
    heal_at_full_hp: float = -20.0
    draw_value: float = 30.0
    draw_hand_full: float = -10.0
    discard_last_card: float = -30.0
    discard_cost: float = -10.0
    field_value: float = 40.0
    control_value: float = 35.0  # buff / debuff / control
    special_value: float = 20.0
    transform_value: float = 10.0

    # Adjustments
    hold_defensive_instant: float = -40.0
    hold_threshold: float = 0.5  # survival factor below which instants are held
    critical_self_damage: float = -500.0
    critical_hp: int = 4
    low_hp_self_damage: float = -50.0
    low_hp: int = 8
    speed_penalty_per_rank: float = 0.02

    # Situational rules
    empty_vault_penalty: float = -100.0
    search_target_bonus: float = 50.0


@dataclass
class EvaluationContext:
    """Factors computed once per evaluation."""
    state: MatchState
    player: PlayerState
    opponent: PlayerState
    survival: float
    aggression: float
    resource_need: float
    field_advantage: float


@dataclass
class CardEvaluation:
    """Result of evaluating one card."""
    card: CardInstance
    score: float
    reasons: list[str] = field(default_factory=list)
    breakdown: dict[str, float] = field(default_factory=dict)

    def add(self, key: str, value: float, reason: str) -> None:
        self.score += value
        self.breakdown[key] = self.breakdown.get(key, 0.0) + value
        self.reasons.append(reason)


# A situational rule returns (adjustment, reason) or None when it does not apply
SituationalRule = Callable[["CardInstance", EvaluationContext, EvaluationWeights], "tuple[float, str] | None"]


def empty_vault_rule(card: CardInstance, ctx: EvaluationContext, weights: EvaluationWeights):
    """A treasure-retrieval card is worth less when that treasure already left the vault."""
    treasure_id = card.definition.ai.retrieves_treasure
    if treasure_id and not card.is_treasure and not ctx.state.is_treasure_in_vault(treasure_id):
        return weights.empty_vault_penalty, f"Vault empty: {weights.empty_vault_penalty:+.0f}"
    return None


def search_target_rule(card: CardInstance, ctx: EvaluationContext, weights: EvaluationWeights):
    """A search card is worth more when something it can find is in the deck."""
    targets = card.definition.ai.search_targets
    if targets and any(c.card_id in targets for c in ctx.player.deck):
        return weights.search_target_bonus, f"Search target in deck: +{weights.search_target_bonus:.0f}"
    return None


DEFAULT_RULES: tuple[SituationalRule, ...] = (empty_vault_rule, search_target_rule)


class CardUtilityEvaluator:
    """
    Evaluates candidate cards using weighted heuristics.

    Used by bots to:
    1. Pick the card to set face down
    2. Decide whether an instant is worth spending
    3. Rank cards offered by a card-selection interaction
    """

    def __init__(
        self,
        weights: EvaluationWeights | None = None,
        rules: tuple[SituationalRule, ...] | list[SituationalRule] = DEFAULT_RULES,
    ):
        self.weights = weights or EvaluationWeights()
        self.rules = list(rules)

    def assess(self, state: MatchState, player_id: int) -> EvaluationContext:
        player = state.get_player(player_id)
        opponent = state.opponent_of(player_id)
        max_hp = MAX_HP_REFERENCE

        survival = (max_hp - player.hp) / max_hp
        if player.hp <= max_hp * 0.15:
            survival *= 4
        elif player.hp <= max_hp * 0.30:
            survival *= 2

        aggression = 0.5
        if opponent.hp <= player.atk * 3:
            aggression += 0.5
        if player.hp > 25:
            aggression += 0.2

        resource_need = 1.0 - (player.hand_count / player.max_hand_size) if player.max_hand_size else 0.0

        current = state.shared_field
        if current is None:
            field_advantage = 1.0
        elif current.owner_id != player_id:
            field_advantage = 1.5
        else:
            field_advantage = -0.5

        return EvaluationContext(
            state=state,
            player=player,
            opponent=opponent,
            survival=survival,
            aggression=aggression,
            resource_need=resource_need,
            field_advantage=field_advantage,
        )

    def evaluate(self, card: CardInstance, state: MatchState, player_id: int) -> CardEvaluation:
        return self.evaluate_in(card, self.assess(state, player_id))

    def rank(self, cards: list[CardInstance], state: MatchState, player_id: int) -> list[CardEvaluation]:
        """Evaluate several cards against one context, best first."""
        ctx = self.assess(state, player_id)
        evaluations = [self.evaluate_in(c, ctx) for c in cards]
        return sorted(evaluations, key=lambda e: e.score, reverse=True)

    def evaluate_in(self, card: CardInstance, ctx: EvaluationContext) -> CardEvaluation:
        w = self.weights
        evaluation = CardEvaluation(card=card, score=0.0)
        evaluation.add("base", w.base_score, f"Base: {w.base_score:.0f}")

        if card.is_locked:
            return CardEvaluation(
                card=card,
                score=w.locked_sentinel,
                reasons=[f"Locked: {w.locked_sentinel:.0f}"],
                breakdown={"locked": w.locked_sentinel},
            )

        if card.is_treasure:
            evaluation.add("treasure", w.treasure_bonus, f"Treasure: +{w.treasure_bonus:.0f}")

        tags = card.definition.ai.primary_tags
        for tag in tags:
            self._score_tag(tag, card, ctx, evaluation)

        self._hold_instant(card, ctx, evaluation)
        self._self_damage(card, tags, ctx, evaluation)

        for rule in self.rules:
            outcome = rule(card, ctx, w)
            if outcome is not None:
                value, reason = outcome
                evaluation.add(getattr(rule, "__name__", "rule"), value, reason)

        speed = card.rank * w.speed_penalty_per_rank
        evaluation.add("speed", -speed, f"Speed (rank {card.rank}): -{speed:.1f}")
        return evaluation

    def _score_tag(
        self,
        tag: AITag,
        card: CardInstance,
        ctx: EvaluationContext,
        evaluation: CardEvaluation,
    ) -> None:
        w = self.weights
        player = ctx.player

        if tag == AITag.DAMAGE:
            estimated = player.atk * card.definition.ai.damage_multiplier
            if estimated >= ctx.opponent.hp:
                evaluation.add("lethal", w.lethal_bonus, f"Lethal: +{w.lethal_bonus:.0f}")
            else:
                value = player.atk * w.damage_per_atk * (1 + ctx.aggression)
                evaluation.add("damage", value, f"Damage: +{value:.0f}")

        elif tag == AITag.HEAL:
            if player.hp >= MAX_HP_REFERENCE:
                evaluation.add("heal", w.heal_at_full_hp, f"Full hp: {w.heal_at_full_hp:.0f}")
            else:
                value = w.heal_value * ctx.survival
                evaluation.add("heal", value, f"Healing need: +{value:.0f}")

        elif tag == AITag.DRAW:
            if player.hand_count >= player.max_hand_size:
                evaluation.add("draw", w.draw_hand_full, f"Hand full: {w.draw_hand_full:.0f}")
            else:
                value = w.draw_value * (1 + ctx.resource_need * 2)
                evaluation.add("draw", value, f"Card advantage: +{value:.0f}")

        elif tag == AITag.DISCARD:
            if player.hand_count <= 1:
                evaluation.add("discard", w.discard_last_card, f"Protect last card: {w.discard_last_card:.0f}")
            else:
                evaluation.add("discard", w.discard_cost, f"Discard cost: {w.discard_cost:.0f}")

        elif tag == AITag.FIELD:
            value = w.field_value * ctx.field_advantage
            evaluation.add("field", value, f"Field: {value:+.0f}")

        elif tag in (AITag.BUFF, AITag.DEBUFF, AITag.CONTROL):
            evaluation.add("control", w.control_value, f"Control/buff: +{w.control_value:.0f}")

        elif tag == AITag.SPECIAL:
            evaluation.add("special", w.special_value, f"Special: +{w.special_value:.0f}")

        elif tag == AITag.TRANSFORM:
            evaluation.add("transform", w.transform_value, f"Transform: +{w.transform_value:.0f}")

    def _hold_instant(self, card: CardInstance, ctx: EvaluationContext, evaluation: CardEvaluation) -> None:
        definition = card.definition
        instant_tags = definition.ai.on_instant
        if not instant_tags or not definition.instant_windows or card.is_treasure:
            return
        defensive = any(tag in DEFENSIVE_TAGS for tag in instant_tags)
        if defensive and ctx.survival < self.weights.hold_threshold:
            value = self.weights.hold_defensive_instant
            evaluation.add("hold", value, f"Keep for a reaction: {value:.0f}")

    def _self_damage(
        self,
        card: CardInstance,
        tags: tuple[AITag, ...],
        ctx: EvaluationContext,
        evaluation: CardEvaluation,
    ) -> None:
        if not self.harms_caster(card, tags):
            return
        hp = ctx.player.hp
        w = self.weights
        if hp <= w.critical_hp:
            evaluation.add("self_damage", w.critical_self_damage,
                           f"Suicide risk: {w.critical_self_damage:.0f}")
        elif hp <= w.low_hp:
            evaluation.add("self_damage", w.low_hp_self_damage,
                           f"Low hp, avoid self-damage: {w.low_hp_self_damage:.0f}")

    @staticmethod
    def harms_caster(card: CardInstance, tags: tuple[AITag, ...] | None = None) -> bool:
        definition = card.definition
        if definition.ai.self_damage:
            return True
        tags = tags if tags is not None else definition.ai.primary_tags
        if AITag.DAMAGE not in tags and AITag.SPECIAL not in tags:
            return False
        text = definition.description.lower()
        return any(marker in text for marker in SELF_DAMAGE_MARKERS)
