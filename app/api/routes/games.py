from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import APIRouter, HTTPException

from rolls import EntropyBlock
from app.schemas.games import (
    CrossroadsRequest,
    EntropyBlockRequest,
    GameBlockRequest,
    GameStartRequest,
    NegotiationActionRequest,
    TravelChoiceRequest,
    VPChoiceRequest,
    WhaleInvestmentRequest,
)
from sales import service
from sales.errors import GAME_NOT_FOUND, TIER_NOT_STORABLE, MissingInput, SalesGameError

router = APIRouter()
logger = logging.getLogger(__name__)


def _block(req: EntropyBlockRequest) -> EntropyBlock:
    return EntropyBlock(
        height=int(req.height),
        block_hash=str(req.block_hash),
        client_seed=str(req.client_seed),
        client_seed_hash=str(req.client_seed_hash or ""),
    )


def _raise_http(e: Exception, *, context: str) -> NoReturn:
    if isinstance(e, SalesGameError):
        # Map well-known error codes to stable HTTP semantics.
        code = str(e.code or "")
        detail = {"code": code, "message": e.message, "details": e.details}
        if code == GAME_NOT_FOUND:
            raise HTTPException(status_code=404, detail=detail)
        if isinstance(e, MissingInput) or code == TIER_NOT_STORABLE:
            raise HTTPException(status_code=400, detail=detail)
        raise HTTPException(status_code=409, detail=detail)
    if isinstance(e, (ValueError, TypeError)):
        raise HTTPException(status_code=400, detail=str(e))
    logger.exception("%s failed", context)
    raise HTTPException(status_code=500, detail=f"{context} failed: {e}")


@router.post("/api/games/start")
async def api_games_start(req: GameStartRequest):
    """Start a sales game for a rolled character."""
    try:
        return service.start_game(req.character)
    except Exception as e:
        _raise_http(e, context="game start")


@router.get("/api/games/{session_id}")
async def api_games_get(session_id: str):
    try:
        return service.get_game(session_id)
    except Exception as e:
        _raise_http(e, context="game lookup")


@router.post("/api/games/{session_id}/assignment")
async def api_games_assignment(session_id: str, req: GameBlockRequest):
    """Bind block 1 and roll the territory."""
    try:
        return service.run_assignment(session_id, _block(req.block))
    except Exception as e:
        _raise_http(e, context="assignment")


@router.post("/api/games/{session_id}/travel")
async def api_games_travel(session_id: str, req: TravelChoiceRequest):
    try:
        return service.choose_travel(session_id, req.choice)
    except Exception as e:
        _raise_http(e, context="travel")


@router.post("/api/games/{session_id}/first-client")
async def api_games_first_client(session_id: str, req: GameBlockRequest):
    """Bind block 2 and meet the first client."""
    try:
        return service.start_first_client(session_id, _block(req.block))
    except Exception as e:
        _raise_http(e, context="first client")


@router.post("/api/games/{session_id}/action")
async def api_games_action(session_id: str, req: NegotiationActionRequest):
    """Resolve one negotiation round (pitch / listen / concede / ability)."""
    try:
        return service.take_action(session_id, req.action)
    except Exception as e:
        _raise_http(e, context="negotiation action")


@router.post("/api/games/{session_id}/settle")
async def api_games_settle(session_id: str):
    try:
        return service.settle_negotiation(session_id)
    except Exception as e:
        _raise_http(e, context="settlement")


@router.post("/api/games/{session_id}/crossroads")
async def api_games_crossroads(session_id: str, req: CrossroadsRequest):
    """Bind block 3 and resolve the crossroads check."""
    try:
        return service.resolve_crossroads(session_id, req.choice, _block(req.block))
    except Exception as e:
        _raise_http(e, context="crossroads")


@router.post("/api/games/{session_id}/quarter-event")
async def api_games_quarter_event(session_id: str):
    try:
        return service.resolve_quarter_event(session_id)
    except Exception as e:
        _raise_http(e, context="quarter event")


@router.post("/api/games/{session_id}/vp")
async def api_games_vp(session_id: str, req: VPChoiceRequest):
    try:
        return service.choose_vp(session_id, req.choice)
    except Exception as e:
        _raise_http(e, context="VP choice")


@router.post("/api/games/{session_id}/whale-investment")
async def api_games_whale_investment(session_id: str, req: WhaleInvestmentRequest):
    try:
        return service.invest_in_whale(session_id, req.investment)
    except Exception as e:
        _raise_http(e, context="whale investment")


@router.post("/api/games/{session_id}/lucky-item")
async def api_games_lucky_item(session_id: str):
    try:
        return service.roll_lucky_item(session_id)
    except Exception as e:
        _raise_http(e, context="lucky item")


@router.post("/api/games/{session_id}/whale")
async def api_games_whale(session_id: str, req: GameBlockRequest):
    """Bind block 4 and meet the whale."""
    try:
        return service.start_whale(session_id, _block(req.block))
    except Exception as e:
        _raise_http(e, context="whale")


@router.post("/api/games/{session_id}/advance")
async def api_games_advance(session_id: str):
    try:
        return service.advance(session_id)
    except Exception as e:
        _raise_http(e, context="phase advance")


@router.post("/api/games/{session_id}/finish")
async def api_games_finish(session_id: str):
    try:
        return service.finish_game(session_id)
    except Exception as e:
        _raise_http(e, context="finish")


@router.get("/api/games/{session_id}/achievement")
async def api_games_achievement(session_id: str):
    """Achievement record (Promotion / Legendary only)."""
    try:
        return service.achievement_for(session_id)
    except Exception as e:
        _raise_http(e, context="achievement")
