"""
Tarot - The sample card library.

Cards are grouped by suit and ranked by major arcana number. Treasures
live in a shared vault and return there whenever they leave a hand.

This module contains:
- Card definitions covering every hook and engine primitive
- Quest rewards
- Match setup
"""

from .cards import TAROT_CARDS, build_registry
from .setup import MatchConfig, setup_match

__all__ = [
    "TAROT_CARDS",
    "build_registry",
    "MatchConfig",
    "setup_match",
]
