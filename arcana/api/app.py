"""
FastAPI Application - REST API for duel clients.

Endpoints:
    GET    /health                              Health check
    GET    /api/v1/cards                        Card library
    POST   /api/v1/matches                      Start a duel
    GET    /api/v1/matches                      List active duels
    GET    /api/v1/matches/{id}                 Match status, legal actions, snapshot
    DELETE /api/v1/matches/{id}                 End a duel
    POST   /api/v1/matches/{id}/actions         Submit a human action
    GET    /api/v1/matches/{id}/snapshot        Transport snapshot only

Bot Execution Flow:
    1. POST /actions applies the human action
    2. Bots set, react and answer their own interactions immediately
    3. The response stops where a human is needed: a card to set, an
       instant window to pass, or a pending interaction to answer

All responses are JSON with explicit Pydantic schemas.
"""

import logging
import os
from typing import Annotated, Union

# Environment configuration
ARCANA_ENV = os.getenv("ARCANA_ENV", "development")
ARCANA_LOG_LEVEL = os.getenv("ARCANA_LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query, Request
        from fastapi.exceptions import RequestValidationError
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from ..engine_core.snapshot import MatchSnapshot
    from .service import APIService
    from .schemas import (
        # Request models
        ActionRequest,
        CreateMatchRequest,
        # Response models
        ActionResponse,
        CardLibraryResponse,
        EndMatchResponse,
        ErrorResponse,
        HealthResponse,
        MatchListResponse,
        MatchResponse,
        # Enums
        ErrorCode,
    )

    logging.getLogger("arcana").setLevel(ARCANA_LOG_LEVEL.upper())

    app = FastAPI(
        title="Arcana Duel API",
        description="""
Two-player tarot duel engine with a heuristic computer opponent.

## Turn Flow

1. Both players set a card face down (`set_card`)
2. Before-reveal instants may be played; both sides then `pass`
3. Cards resolve in rank order; effects may ask a player to choose
   (`resolve_interaction`)

## Error Codes

| Code | Description |
|------|-------------|
| `MATCH_NOT_FOUND` | Match does not exist or has ended |
| `INVALID_ACTION` | The engine rejected the action |
| `VALIDATION_ERROR` | The request body is malformed |
| `INTERNAL_ERROR` | Unexpected failure |
        """,
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()

    # =========================================================================
    # Error helpers
    # =========================================================================

    status_codes = {
        ErrorCode.MATCH_NOT_FOUND: 404,
        ErrorCode.INVALID_ACTION: 400,
        ErrorCode.VALIDATION_ERROR: 422,
        ErrorCode.INTERNAL_ERROR: 500,
    }

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        details: dict | None = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_codes[error_code],
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_from(response: ErrorResponse) -> JSONResponse:
        return make_error_response(response.error_code, response.error, response.details)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Invalid request",
            details={"errors": [
                {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
                for err in exc.errors()
            ]},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return make_error_response(
            ErrorCode.INTERNAL_ERROR,
            "An unexpected error occurred",
            details={"type": type(exc).__name__} if ARCANA_ENV == "development" else None,
        )

    # =========================================================================
    # Health & library
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy", version="1.0.0", environment=ARCANA_ENV)

    @app.get(
        "/api/v1/cards",
        response_model=CardLibraryResponse,
        tags=["Cards"],
        summary="List the card library",
    )
    async def list_cards() -> CardLibraryResponse:
        cards = api_service.card_library()
        return CardLibraryResponse(cards=cards, count=len(cards))

    # =========================================================================
    # Match Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/matches",
        response_model=MatchResponse,
        status_code=201,
        responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Start a new duel",
    )
    async def create_match(body: CreateMatchRequest) -> Union[MatchResponse, JSONResponse]:
        """
        Start a duel.

        Turn 1 is started and the bot sets its card before the response
        is returned, so the match is waiting on the human.
        """
        try:
            return api_service.create_match(body)
        except ValueError as e:
            return make_error_response(ErrorCode.VALIDATION_ERROR, str(e))

    @app.get(
        "/api/v1/matches",
        response_model=MatchListResponse,
        tags=["Matches"],
        summary="List active duels",
    )
    async def list_matches() -> MatchListResponse:
        matches = api_service.list_matches()
        return MatchListResponse(matches=matches, count=len(matches))

    @app.get(
        "/api/v1/matches/{match_id}",
        response_model=MatchResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Get match status",
    )
    async def get_match(match_id: str) -> Union[MatchResponse, JSONResponse]:
        response = api_service.get_match(match_id)
        if isinstance(response, ErrorResponse):
            return error_from(response)
        return response

    @app.delete(
        "/api/v1/matches/{match_id}",
        response_model=EndMatchResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="End a duel",
    )
    async def end_match(
        match_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> Union[EndMatchResponse, JSONResponse]:
        if not api_service.end_match(match_id, reason):
            return make_error_response(ErrorCode.MATCH_NOT_FOUND, f"Match {match_id} not found")
        return EndMatchResponse(success=True, match_id=match_id)

    @app.get(
        "/api/v1/matches/{match_id}/snapshot",
        response_model=MatchSnapshot,
        responses={404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Get the transport snapshot",
    )
    async def get_snapshot(match_id: str) -> Union[MatchSnapshot, JSONResponse]:
        response = api_service.get_snapshot(match_id)
        if isinstance(response, ErrorResponse):
            return error_from(response)
        return response

    # =========================================================================
    # Game Loop
    # =========================================================================

    @app.post(
        "/api/v1/matches/{match_id}/actions",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Action rejected"},
            404: {"model": ErrorResponse, "description": "Match not found"},
        },
        tags=["Game Loop"],
        summary="Submit a human action",
    )
    async def submit_action(match_id: str, body: ActionRequest) -> Union[ActionResponse, JSONResponse]:
        """
        Submit an action for a human seat.

        **Request Body:**
        ```json
        {"player_id": 1, "action": "set_card", "instance_id": "wands-sun#4"}
        {"player_id": 1, "action": "resolve_interaction", "option_index": 0}
        ```
        """
        response = api_service.submit_action(match_id, body)
        if isinstance(response, ErrorResponse):
            return error_from(response)
        return response

    return app


# For running directly: uvicorn arcana.api.app:app
app = create_app()
