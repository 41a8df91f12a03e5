"""
Bots module - Computer opponent implementations.

Provides:
- BotPolicy: Interface for bot decision-making
- CardUtilityEvaluator: Scores candidate cards
- AIInteractionPolicy: Answers suspended decisions
- ArcanaBot: Heuristic duel bot
- Personality: Configurable play styles
"""

from .policy import BotPolicy, BotDecision, RandomPolicy, FirstLegalPolicy
from .evaluator import CardEvaluation, CardUtilityEvaluator, EvaluationWeights
from .interaction_policy import AIInteractionPolicy
from .personality import Personality, PERSONALITIES
from .arcana_bot import ArcanaBot, create_bot

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "FirstLegalPolicy",
    "CardEvaluation",
    "CardUtilityEvaluator",
    "EvaluationWeights",
    "AIInteractionPolicy",
    "Personality",
    "PERSONALITIES",
    "ArcanaBot",
    "create_bot",
]
