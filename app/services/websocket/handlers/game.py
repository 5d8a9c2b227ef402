"""Handlers for GAME_ACTION and GET_GAME_STATE messages."""

import logging

from pydantic import ValidationError

from app.schemas.ws import (
    GameActionPayload,
    GameActionResultPayload,
    GameStatePayload,
    MessageType,
    WSServerMessage,
)
from app.services.game.engine import build_action_from_payload, process_action

from . import handler
from .base import (
    HandlerContext,
    HandlerResult,
    error_response,
    validate_payload,
)

logger = logging.getLogger(__name__)


@handler(MessageType.GAME_ACTION)
async def handle_game_action(ctx: HandlerContext) -> HandlerResult:
    """Handle GAME_ACTION message by applying the action to the connection's game.

    Flow:
    1. Find the connection's session
    2. Validate payload
    3. Build a typed action from the payload
    4. Apply it through the game engine

    Events produced by the action reach the client through the connection's
    event stream; the response only says whether the input was accepted.
    """
    connection = ctx.manager.get_connection(ctx.connection_id)
    if connection is None or connection.session is None:
        return error_response(
            error_code="GAME_NOT_FOUND",
            message="No game for this connection",
            error_type=MessageType.GAME_ERROR,
            request_id=ctx.message.request_id,
        )

    payload, validation_error = validate_payload(
        ctx.message.payload,
        GameActionPayload,
        ctx.message.request_id,
        MessageType.GAME_ERROR,
    )
    if validation_error:
        return validation_error

    try:
        action = build_action_from_payload(payload.model_dump())
    except (ValueError, ValidationError) as e:
        return error_response(
            error_code="INVALID_ACTION",
            message=str(e),
            error_type=MessageType.GAME_ERROR,
            request_id=ctx.message.request_id,
        )

    result = process_action(connection.session, action)

    if not result.is_valid:
        logger.debug(
            "Game action ignored for connection %s: %s - %s",
            ctx.connection_id,
            result.error_code,
            result.error_message,
        )

    return HandlerResult(
        success=result.is_valid,
        response=WSServerMessage(
            type=MessageType.GAME_ACTION_RESULT,
            request_id=ctx.message.request_id,
            payload=GameActionResultPayload(
                accepted=result.is_valid,
                error_code=result.error_code,
                message=result.error_message,
            ).model_dump(),
        ),
    )


@handler(MessageType.GET_GAME_STATE)
async def handle_get_game_state(ctx: HandlerContext) -> HandlerResult:
    """Handle GET_GAME_STATE by sending the full session snapshot."""
    connection = ctx.manager.get_connection(ctx.connection_id)
    if connection is None or connection.session is None:
        return error_response(
            error_code="GAME_NOT_FOUND",
            message="No game for this connection",
            error_type=MessageType.GAME_ERROR,
            request_id=ctx.message.request_id,
        )

    snapshot = connection.session.snapshot()
    return HandlerResult(
        success=True,
        response=WSServerMessage(
            type=MessageType.GAME_STATE,
            request_id=ctx.message.request_id,
            payload=GameStatePayload(
                state=snapshot.model_dump(mode="json", by_alias=True)
            ).model_dump(),
        ),
    )
