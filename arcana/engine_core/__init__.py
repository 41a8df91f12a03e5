"""
Engine Core - Deterministic match state management and effect resolution.

The engine is the runtime that:
1. Holds the MatchState
2. Generates legal actions
3. Applies actions via the reducer (the phase engine)
4. Resolves card hooks in strict order through the effect resolver
5. Suspends on interactions and resumes when they are answered
"""

from .cards import AITag, CardAIInfo, CardDefinition, CardRegistry, HookType, Keyword, Suit
from .state import (
    CardInstance,
    DelayedAction,
    GamePhase,
    InstantWindow,
    InteractionKind,
    InteractionRequest,
    MatchOutcome,
    MatchState,
    PlayerState,
    Quest,
    QuestTrigger,
    RevealStage,
)
from .action import Action, ActionType, ActionPayload, ActionResult
from .reducer import Reducer, apply_action
from .action_generator import ActionGenerator, legal_actions
from .effect_resolver import EffectResolver, EffectContext, ResolverState
from .interaction import InteractionBroker, InteractionResponder, InteractionResponse
from .clash import ClashOutcome, clash

__all__ = [
    "AITag",
    "CardAIInfo",
    "CardDefinition",
    "CardRegistry",
    "HookType",
    "Keyword",
    "Suit",
    "CardInstance",
    "DelayedAction",
    "GamePhase",
    "InstantWindow",
    "InteractionKind",
    "InteractionRequest",
    "MatchOutcome",
    "MatchState",
    "PlayerState",
    "Quest",
    "QuestTrigger",
    "RevealStage",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Reducer",
    "apply_action",
    "ActionGenerator",
    "legal_actions",
    "EffectResolver",
    "EffectContext",
    "ResolverState",
    "InteractionBroker",
    "InteractionResponder",
    "InteractionResponse",
    "ClashOutcome",
    "clash",
]
