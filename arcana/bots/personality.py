"""
Bot Personalities - Configurable play styles.

Personalities adjust:
- Evaluation weights (what the bot values)
- Risk tolerance (how far from the best card it may stray)
- When a defensive instant is worth spending
- Randomness (for unpredictability)
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
import random
from typing import Any

from .evaluator import EvaluationWeights


@dataclass
class Personality:
    """
    A bot personality that defines play style.

    Personalities can be:
    - Predefined (balanced, aggressive, cautious)
    - Generated (random variations)
    """
    name: str
    description: str = ""

    # Evaluation weights
    weights: EvaluationWeights = field(default_factory=EvaluationWeights)

    # Behavioral parameters
    risk_tolerance: float = 0.0  # 0 = always the best card, 1 = any scored card
    instant_threshold: float = 0.5  # survival factor needed before spending a defensive instant
    randomness: float = 0.05  # Probability of random action

    # Metadata
    metadata: dict[str, Any] = field(default_factory=dict)


# ============================================================================
# Predefined Personalities
# ============================================================================

BALANCED = Personality(
    name="Balanced",
    description="Plays the best-scoring card and keeps reactions for emergencies",
    weights=EvaluationWeights(),
    risk_tolerance=0.0,
    instant_threshold=0.5,
    randomness=0.05,
)


AGGRESSIVE = Personality(
    name="Aggressive",
    description="Values damage and disruption, tolerates self-damage",
    weights=EvaluationWeights(
        damage_per_atk=8.0,
        control_value=40.0,
        heal_value=25.0,
        low_hp_self_damage=-20.0,
        hold_defensive_instant=-20.0,
    ),
    risk_tolerance=0.3,
    instant_threshold=0.8,
    randomness=0.05,
)


CAUTIOUS = Personality(
    name="Cautious",
    description="Values healing and card advantage, spends reactions early",
    weights=EvaluationWeights(
        damage_per_atk=4.0,
        heal_value=60.0,
        draw_value=40.0,
        low_hp=12,
        hold_defensive_instant=-60.0,
    ),
    risk_tolerance=0.0,
    instant_threshold=0.3,
    randomness=0.02,
)


# All predefined personalities
PERSONALITIES: dict[str, Personality] = {
    "balanced": BALANCED,
    "aggressive": AGGRESSIVE,
    "cautious": CAUTIOUS,
}


def create_random_personality(
    name: str = "Random",
    base: Personality | None = None,
    variance: float = 0.3,
    seed: int | None = None,
) -> Personality:
    """
    Create a personality with random variations.

    Args:
        name: Name for the personality
        base: Base personality to vary from (default: BALANCED)
        variance: How much to vary (0-1)
        seed: Random seed for reproducibility
    """
    rng = random.Random(seed)

    base = base or BALANCED

    def vary(value: float) -> float:
        """Apply random variation to a value."""
        delta = value * variance * (rng.random() * 2 - 1)
        return value + delta

    # Only the scoring values vary; thresholds and sentinels stay fixed
    varied = {
        f.name: vary(getattr(base.weights, f.name))
        for f in fields(EvaluationWeights)
        if f.name.endswith(("_value", "_per_atk", "_cost", "_bonus")) and f.name != "lethal_bonus"
    }

    return Personality(
        name=name,
        description=f"Randomly varied from {base.name}",
        weights=replace(base.weights, **varied),
        risk_tolerance=max(0, min(1, base.risk_tolerance + variance * rng.random())),
        instant_threshold=max(0, min(1, base.instant_threshold + variance * (rng.random() * 2 - 1))),
        randomness=max(0, min(1, base.randomness + variance * 0.5 * (rng.random() * 2 - 1))),
        metadata={"base": base.name, "variance": variance, "seed": seed},
    )
