"""
Games module - Card libraries for the engine.

Each library has its own subpackage with:
- Card definitions (CardDefinition subclasses)
- Quest rewards
- Match setup
"""
