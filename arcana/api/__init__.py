"""
API Module - HTTP interface for duel clients.

Exposes the engine via REST:
1. Start a duel against a bot (or hot-seat)
2. Read match status, legal actions and the state snapshot
3. Submit set/instant/pass actions and interaction answers

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    ActionRequest,
    CreateMatchRequest,
    # Responses
    ActionResponse,
    ErrorResponse,
    MatchResponse,
    # Shared
    CardInfo,
    LegalActionInfo,
    # Enums
    ActionKind,
    ErrorCode,
    MatchStatus,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "ActionRequest",
    "CreateMatchRequest",
    # Responses
    "ActionResponse",
    "ErrorResponse",
    "MatchResponse",
    # Shared
    "CardInfo",
    "LegalActionInfo",
    # Enums
    "ActionKind",
    "ErrorCode",
    "MatchStatus",
    # Service
    "APIService",
    "create_app",
]
