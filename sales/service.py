from __future__ import annotations

"""Orchestration layer for sales games (entropy -> rolls -> engine -> store).

This module is intended to be called by server endpoints.

Key responsibilities:
- Bind the four entropy blocks of a game and check their commitments
- Derive every die roll from its label and record it as a GameRoll
- Drive the pure engine one operation at a time against the session store
- Log phase transitions and settlements

All public functions return JSON-serializable dicts.
"""

import logging
import time
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from rolls import Character, EntropyBlock, character_from_payload, derive, verify_commitment

from . import engine, negotiation
from .achievement import build_achievement_record
from .config import DEFAULT_SALES_CONFIG, SalesConfig
from .errors import (
    PRECONDITION_VIOLATION,
    WRONG_PHASE,
    PreconditionViolation,
)
from .store import GameSession, create_session, get_session, update_session
from .tiers import calculate_tier, is_storable_tier, tier_description, tier_display_name
from .types import GameRoll, GameState, RollOutcome

logger = logging.getLogger(__name__)

# Label prefixes for the two negotiations.
_ROUND_PREFIX = {"first_client": "client1", "whale": "whale"}


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _payload(session: GameSession, **extra: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "session_id": session.session_id,
        "state": session.state.to_payload(),
        "blocks": {slot: b.to_payload() for slot, b in session.blocks.items()},
        "created_at": session.created_at,
        "updated_at": session.updated_at,
    }
    out.update(extra)
    return out


def _bind_block(session: GameSession, slot: str, block: EntropyBlock) -> GameSession:
    """Attach the entropy block for `slot`; rebinding the same block is a no-op."""
    if block.client_seed_hash and not verify_commitment(block.client_seed, block.client_seed_hash):
        raise PreconditionViolation(
            PRECONDITION_VIOLATION,
            "Client seed does not match its commitment",
            {"slot": slot, "height": block.height},
        )
    existing = session.block(slot)
    if existing is not None:
        if existing != block:
            raise PreconditionViolation(
                PRECONDITION_VIOLATION,
                f"Entropy block for '{slot}' is already bound",
                {"slot": slot, "height": existing.height},
            )
        return session
    blocks = dict(session.blocks)
    blocks[slot] = block
    return replace(session, blocks=blocks)


def _require_block(session: GameSession, slot: str) -> EntropyBlock:
    block = session.block(slot)
    if block is None:
        raise PreconditionViolation(
            PRECONDITION_VIOLATION,
            f"No entropy block bound for '{slot}'",
            {"slot": slot},
        )
    return block


def _roll(
    block: EntropyBlock,
    label: str,
    action: str,
    die: int,
    *,
    modifier: int = 0,
    target: Optional[int] = None,
) -> GameRoll:
    result = derive(block.block_hash, block.client_seed, label, die)
    total = int(result) + int(modifier)
    success = target is None or total >= int(target)
    outcome: RollOutcome = "fail"
    if success:
        outcome = "critical" if int(die) == 20 and int(result) == 20 else "success"
    return _game_roll(block, label, action, die, result, modifier=modifier, target=target, outcome=outcome)


def _game_roll(
    block: EntropyBlock,
    label: str,
    action: str,
    die: int,
    result: int,
    *,
    modifier: int = 0,
    target: Optional[int] = None,
    outcome: RollOutcome = "success",
) -> GameRoll:
    return GameRoll(
        label=label,
        action=action,
        roll_seed=block.client_seed,
        roll_seed_hash=block.client_seed_hash,
        block_height=int(block.height),
        block_hash=block.block_hash,
        die_size=int(die),
        result=int(result),
        modifier=int(modifier),
        total=int(result) + int(modifier),
        target=target,
        outcome=outcome,
    )


def _with_state(session: GameSession, state: GameState) -> GameSession:
    return replace(session, state=state)


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------


def start_game(
    character: Union[Character, Mapping[str, Any]],
    *,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> Dict[str, Any]:
    """Create a new game session for a character."""
    char = character if isinstance(character, Character) else character_from_payload(character)
    state = engine.create_game(char, cfg=cfg)
    session = create_session(state, cfg=cfg)
    logger.info(
        "SALES_GAME_STARTED session=%s character=%s starting_money=%s",
        session.session_id,
        char.name,
        state.starting_money,
    )
    return _payload(session)


def get_game(session_id: str) -> Dict[str, Any]:
    return _payload(get_session(session_id))


def run_assignment(session_id: str, block: EntropyBlock) -> Dict[str, Any]:
    """Bind block 1 and roll the territory."""
    captured: Dict[str, Any] = {}

    def _patch(session: GameSession) -> GameSession:
        session = _bind_block(session, "assignment", block)
        roll = _roll(block, "territory", "territory", 6)
        state = engine.assign_territory(session.state, roll.result, cfg=session.cfg)
        captured["roll"] = roll
        return _with_state(session, engine.record_roll(state, roll))

    session = update_session(session_id, _patch)
    logger.info("SALES_TERRITORY_ASSIGNED session=%s territory=%s", session_id, session.state.territory)
    return _payload(session, roll=captured["roll"].to_payload())


def choose_travel(session_id: str, choice: str) -> Dict[str, Any]:
    """Pay for travel, then roll the journey event (and drive trouble when the travel option calls for it)."""
    rolls = []

    def _patch(session: GameSession) -> GameSession:
        block = _require_block(session, "assignment")
        cfg = session.cfg
        state = engine.apply_travel_choice(session.state, choice, cfg=cfg)

        journey = _roll(block, "journey", "journey", 6)
        state = engine.record_roll(engine.apply_journey_event(state, journey.result, cfg=cfg), journey)
        rolls.append(journey)

        if engine.rolls_drive_trouble(state, cfg=cfg):
            drive = _roll(block, "drive", "drive", 6)
            state = engine.record_roll(engine.apply_drive_trouble(state, drive.result, cfg=cfg), drive)
            rolls.append(drive)
        return _with_state(session, state)

    session = update_session(session_id, _patch)
    logger.debug(
        "SALES_TRAVEL session=%s choice=%s journey=%s drive=%s",
        session_id,
        session.state.travel_choice,
        session.state.journey_event,
        session.state.drive_trouble,
    )
    return _payload(session, rolls=[r.to_payload() for r in rolls])


def start_first_client(session_id: str, block: EntropyBlock) -> Dict[str, Any]:
    """Bind block 2 and pick the first client."""

    def _patch(session: GameSession) -> GameSession:
        current = session.state
        if current.phase != "first_client":
            raise PreconditionViolation(
                WRONG_PHASE,
                f"First client starts in phase 'first_client' (current: '{current.phase}')",
                {"phase": current.phase},
            )
        session = _bind_block(session, "first_client", block)
        roll = _roll(block, "client1_select", "client_select", session.cfg.negotiation.select_die)
        state = engine.init_first_client(current, roll.result, cfg=session.cfg)
        return _with_state(session, engine.record_roll(state, roll))

    session = update_session(session_id, _patch)
    client = session.state.first_client
    logger.info("SALES_FIRST_CLIENT session=%s client=%s", session_id, client.name if client else None)
    return _payload(session)


def _negotiation_rolls(
    session: GameSession,
    slot: str,
    action: str,
) -> Tuple[Optional[int], Optional[int], Optional[EntropyBlock], int]:
    """Derive the pitch/body rolls a pitch or listen needs for the next round."""
    act = str(action or "").strip().lower()
    if act not in ("pitch", "listen"):
        return None, None, None, 0
    block = _require_block(session, slot)
    ncfg = session.cfg.negotiation
    n = len(session.state.rounds_for(slot)) + 1  # type: ignore[arg-type]
    prefix = _ROUND_PREFIX[slot]
    pitch = None
    if act == "pitch":
        pitch = derive(block.block_hash, block.client_seed, f"{prefix}_r{n}_pitch", ncfg.pitch_die)
    body = derive(block.block_hash, block.client_seed, f"{prefix}_r{n}_body", ncfg.body_language_die)
    return pitch, body, block, n


def take_action(session_id: str, action: str) -> Dict[str, Any]:
    """Resolve one negotiation action in the current negotiation phase."""
    captured: Dict[str, Any] = {}

    def _patch(session: GameSession) -> GameSession:
        slot = session.state.phase
        if slot not in _ROUND_PREFIX:
            raise PreconditionViolation(
                WRONG_PHASE,
                f"No negotiation in phase '{slot}'",
                {"phase": slot},
            )
        pitch, body, block, n = _negotiation_rolls(session, slot, action)
        state, result = negotiation.resolve_action(
            session.state,
            slot,  # type: ignore[arg-type]
            action,
            pitch_roll=pitch,
            body_language_roll=body,
            cfg=session.cfg,
        )
        prefix = _ROUND_PREFIX[slot]
        ncfg = session.cfg.negotiation
        if block is not None and result.pitch_roll is not None:
            outcome: RollOutcome = "fail"
            if result.success:
                outcome = "critical" if result.pitch_roll == ncfg.pitch_die else "success"
            state = engine.record_roll(
                state,
                _game_roll(
                    block,
                    f"{prefix}_r{n}_pitch",
                    "pitch",
                    ncfg.pitch_die,
                    result.pitch_roll,
                    modifier=result.pitch_modifier,
                    target=result.target,
                    outcome=outcome,
                ),
            )
        if block is not None and result.body_language_roll is not None:
            state = engine.record_roll(
                state,
                _game_roll(
                    block,
                    f"{prefix}_r{n}_body",
                    "body_language",
                    ncfg.body_language_die,
                    result.body_language_roll,
                ),
            )
        captured["result"] = result
        captured["slot"] = slot
        return _with_state(session, state)

    session = update_session(session_id, _patch)
    result = captured["result"]
    slot = captured["slot"]
    client = session.state.client_for(slot)
    logger.debug(
        "SALES_NEGOTIATION_ROUND session=%s slot=%s round=%s action=%s success=%s",
        session_id,
        slot,
        result.round,
        result.action,
        result.success,
    )
    return _payload(
        session,
        result=result.to_payload(),
        outcome=negotiation.negotiation_outcome(client) if client is not None else None,
    )


def settle_negotiation(session_id: str) -> Dict[str, Any]:
    """Pay out the finished negotiation of the current phase."""
    captured: Dict[str, Any] = {}

    def _patch(session: GameSession) -> GameSession:
        state = session.state
        before = int(state.money)
        if state.phase == "first_client":
            state = engine.complete_first_client(state, cfg=session.cfg)
        elif state.phase == "whale":
            state = engine.complete_whale(state, cfg=session.cfg)
        else:
            raise PreconditionViolation(
                WRONG_PHASE,
                f"No negotiation to settle in phase '{state.phase}'",
                {"phase": state.phase},
            )
        captured["money_change"] = int(state.money) - before
        return _with_state(session, state)

    session = update_session(session_id, _patch)
    logger.info(
        "SALES_NEGOTIATION_SETTLED session=%s phase=%s money_change=%s",
        session_id,
        session.state.phase,
        captured["money_change"],
    )
    return _payload(session, money_change=captured["money_change"])


def resolve_crossroads(session_id: str, choice: str, block: EntropyBlock) -> Dict[str, Any]:
    """Bind block 3 and resolve the crossroads check."""
    captured: Dict[str, Any] = {}

    def _patch(session: GameSession) -> GameSession:
        state = session.state
        cfg = session.cfg
        if state.phase != "crossroads":
            raise PreconditionViolation(
                WRONG_PHASE,
                f"Crossroads resolves in phase 'crossroads' (current: '{state.phase}')",
                {"phase": state.phase},
            )
        modifier = engine.crossroads_modifier(state.character, choice, cfg=cfg)
        key = str(choice).strip().lower()
        session = _bind_block(session, "crossroads", block)
        roll = _roll(
            block,
            "crossroads",
            f"crossroads:{key}",
            cfg.crossroads_die,
            modifier=modifier,
            target=int(cfg.crossroads_options[key].dc),
        )
        state = engine.apply_crossroads_choice(state, key, roll.result, cfg=cfg)
        captured["roll"] = roll
        return _with_state(session, engine.record_roll(state, roll))

    session = update_session(session_id, _patch)
    logger.info(
        "SALES_CROSSROADS session=%s choice=%s result=%s",
        session_id,
        session.state.crossroads_choice,
        session.state.crossroads_result,
    )
    return _payload(session, roll=captured["roll"].to_payload())


def resolve_quarter_event(session_id: str) -> Dict[str, Any]:
    captured: Dict[str, Any] = {}

    def _patch(session: GameSession) -> GameSession:
        block = _require_block(session, "crossroads")
        roll = _roll(block, "quarter_event", "quarter_event", 6)
        state = engine.apply_quarter_event(session.state, roll.result, cfg=session.cfg)
        captured["roll"] = roll
        return _with_state(session, engine.record_roll(state, roll))

    session = update_session(session_id, _patch)
    logger.debug("SALES_QUARTER_EVENT session=%s event=%s", session_id, session.state.quarter_event)
    return _payload(session, roll=captured["roll"].to_payload())


def choose_vp(session_id: str, choice: str) -> Dict[str, Any]:
    session = update_session(
        session_id,
        lambda s: _with_state(s, engine.apply_vp_choice(s.state, choice, cfg=s.cfg)),
    )
    logger.info(
        "SALES_VP_CHOICE session=%s choice=%s legendary_unlocked=%s",
        session_id,
        session.state.vp_choice,
        session.state.legendary_unlocked,
    )
    return _payload(session)


def invest_in_whale(session_id: str, investment: str) -> Dict[str, Any]:
    session = update_session(
        session_id,
        lambda s: _with_state(s, engine.apply_whale_investment(s.state, investment, cfg=s.cfg)),
    )
    return _payload(session)


def roll_lucky_item(session_id: str) -> Dict[str, Any]:
    captured: Dict[str, Any] = {}

    def _patch(session: GameSession) -> GameSession:
        block = _require_block(session, "assignment")
        roll = _roll(block, "lucky", "lucky_item", 6)
        state = engine.apply_lucky_item(session.state, roll.result, cfg=session.cfg)
        captured["roll"] = roll
        return _with_state(session, engine.record_roll(state, roll))

    session = update_session(session_id, _patch)
    return _payload(session, roll=captured["roll"].to_payload())


def start_whale(session_id: str, block: EntropyBlock) -> Dict[str, Any]:
    """Bind block 4 and pick the whale."""

    def _patch(session: GameSession) -> GameSession:
        if session.state.phase != "whale":
            raise PreconditionViolation(
                WRONG_PHASE,
                f"Whale starts in phase 'whale' (current: '{session.state.phase}')",
                {"phase": session.state.phase},
            )
        session = _bind_block(session, "whale", block)
        roll = _roll(block, "whale_select", "client_select", session.cfg.negotiation.select_die)
        state = engine.init_whale_client(session.state, roll.result, cfg=session.cfg)
        return _with_state(session, engine.record_roll(state, roll))

    session = update_session(session_id, _patch)
    client = session.state.whale_client
    logger.info("SALES_WHALE_CLIENT session=%s client=%s", session_id, client.name if client else None)
    return _payload(session)


def advance(session_id: str) -> Dict[str, Any]:
    before = get_session(session_id).state.phase
    session = update_session(
        session_id,
        lambda s: _with_state(s, engine.advance_phase(s.state, cfg=s.cfg)),
    )
    logger.debug("SALES_PHASE_ADVANCED session=%s from=%s to=%s", session_id, before, session.state.phase)
    return _payload(session)


def finish_game(session_id: str) -> Dict[str, Any]:
    """Compute the final tier at quarter end."""
    session = update_session(
        session_id,
        lambda s: _with_state(s, calculate_tier(s.state, cfg=s.cfg)),
    )
    tier = session.state.tier
    storable = is_storable_tier(tier)
    logger.info(
        "SALES_GAME_FINISHED session=%s money=%s starting=%s tier=%s",
        session_id,
        session.state.money,
        session.state.starting_money,
        tier,
    )
    if not storable:
        logger.warning("SALES_TIER_NOT_STORABLE session=%s tier=%s", session_id, tier)
    return _payload(
        session,
        tier={
            "tier": tier,
            "display_name": tier_display_name(tier),
            "description": tier_description(tier),
            "storable": storable,
        },
    )


def achievement_for(session_id: str, *, timestamp: Optional[int] = None) -> Dict[str, Any]:
    """Achievement record for a finished Promotion/Legendary game."""
    session = get_session(session_id)
    record = build_achievement_record(
        session.state,
        session.ordered_blocks(),
        timestamp=int(timestamp if timestamp is not None else time.time() * 1000),
    )
    return record.to_payload()
