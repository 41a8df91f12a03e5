"""
Arcana - Tarot Duel Engine

A deterministic two-player card duel engine with a heuristic computer
opponent. The engine provides:
- Immutable match state and a reducer for player actions
- A command-queue effect resolver that can suspend for player choices
- Card hooks built from a small set of engine primitives
- Bot policies for the computer opponent
"""

__version__ = "0.1.0"
