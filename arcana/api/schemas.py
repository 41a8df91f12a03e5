"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a client and the engine.
Match state itself travels as the engine's MatchSnapshot.

Error Codes:
- MATCH_NOT_FOUND: Match does not exist or has ended
- INVALID_ACTION: The engine rejected the action
- VALIDATION_ERROR: The request body is malformed
- INTERNAL_ERROR: Unexpected failure
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.snapshot import InteractionSnapshot, MatchSnapshot


# =============================================================================
# Enums
# =============================================================================

class MatchStatus(str, Enum):
    """Match status values."""
    CREATED = "created"
    ACTIVE = "active"
    WAITING_INPUT = "waiting_input"
    GAME_OVER = "game_over"


class ActionKind(str, Enum):
    """Actions a client can submit."""
    SET_CARD = "set_card"
    PLAY_INSTANT = "play_instant"
    PASS = "pass"
    RESOLVE_INTERACTION = "resolve_interaction"


class ErrorCode(str, Enum):
    """Structured error codes."""
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
    INVALID_ACTION = "INVALID_ACTION"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card definition for display."""
    card_id: str
    name: str
    suit: str
    rank: int
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    is_treasure: bool = False
    instant_windows: list[str] = Field(default_factory=list)


class LegalActionInfo(BaseModel):
    """An action the client may submit next."""
    action: ActionKind
    player_id: int
    instance_id: Optional[str] = None
    card_name: Optional[str] = None


# =============================================================================
# Request Models
# =============================================================================

class CreateMatchRequest(BaseModel):
    """Request to start a duel."""
    player_name: str = Field("Player", min_length=1, max_length=40)
    bot_personality: str = Field("balanced", description="balanced, aggressive or cautious")
    vs_bot: bool = Field(True, description="False seats two humans on one device")
    seed: Optional[int] = Field(None, description="Seed for a reproducible match")
    starting_hp: int = Field(40, ge=1, le=999)
    starting_atk: int = Field(2, ge=0, le=99)


class ActionRequest(BaseModel):
    """
    An action for one human seat.

    `instance_id` is used by set_card and play_instant. An interaction
    answer uses exactly one of option_index, value or card_instance_id,
    or `dismiss`.
    """
    player_id: int = Field(..., ge=1, le=2)
    action: ActionKind
    instance_id: Optional[str] = None
    option_index: Optional[int] = Field(None, ge=0)
    value: Optional[int] = None
    card_instance_id: Optional[str] = None
    dismiss: bool = False


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standardized error response."""
    success: bool = False
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class MatchResponse(BaseModel):
    """Match status plus the full state snapshot."""
    match_id: str
    status: MatchStatus
    turn_number: int
    phase: str
    human_player_ids: list[int] = Field(default_factory=list)
    pending_interaction: Optional[InteractionSnapshot] = None
    legal_actions: list[LegalActionInfo] = Field(default_factory=list)
    winner_id: Optional[int] = None
    is_draw: bool = False
    state: MatchSnapshot


class ActionResponse(BaseModel):
    """Result of an action, after the bots have caught up."""
    success: bool
    match: MatchResponse
    actions_taken: list[str] = Field(default_factory=list)
    log_lines: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class MatchListResponse(BaseModel):
    """List of active matches."""
    matches: list[str]
    count: int


class EndMatchResponse(BaseModel):
    """Response after ending a match."""
    success: bool
    match_id: str


class CardLibraryResponse(BaseModel):
    """Every card in the library."""
    cards: list[CardInfo]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str = "1.0.0"
    environment: str = "development"
