from __future__ import annotations

"""Sales quarter game engine.

This package provides:
- An immutable game state driven through nine fixed phases
- A negotiation sub-engine (pitch / listen / concede / spirit ability)
- Element passives, spirit abilities and a typed modifier ledger
- Tier calculation and achievement records for finished games
- Orchestration helpers for server endpoints (entropy blocks -> labelled rolls)

The engine is designed to be:
- Deterministic: the same entropy blocks and choices replay the same game
- Pure: engine functions take a state and return a new one
- Strict: invalid operations raise; a lost negotiation is a normal outcome
"""

from .config import DEFAULT_SALES_CONFIG, NegotiationConfig, SalesConfig
from .errors import (
    ABILITY_ALREADY_USED,
    GAME_NOT_FOUND,
    INVALID_CHOICE,
    INVALID_ROLL,
    MISSING_INPUT,
    NEGOTIATION_INACTIVE,
    PRECONDITION_VIOLATION,
    TIER_NOT_STORABLE,
    WRONG_PHASE,
    MissingInput,
    PreconditionViolation,
    SalesGameError,
)
from .types import (
    PHASES,
    ActiveModifier,
    Client,
    GameRoll,
    GameState,
    ModifierEffect,
    ModifierSource,
    NegotiationRoundResult,
    Phase,
    Tier,
)
from .economy import (
    apply_con_resilience,
    calculate_budget_scale,
    calculate_starting_money,
    closing_bonus,
    pitch_modifier,
    setback_loss,
)
from .negotiation import (
    apply_body_language,
    calculate_pitch_value,
    interpret_body_language,
    negotiation_outcome,
    resolve_action,
)
from .spirits import use_spirit_ability
from .engine import (
    advance_phase,
    apply_crossroads_choice,
    apply_drive_trouble,
    apply_journey_event,
    apply_lucky_item,
    apply_quarter_event,
    apply_travel_choice,
    apply_vp_choice,
    apply_whale_investment,
    assign_territory,
    complete_first_client,
    complete_whale,
    create_game,
    init_first_client,
    init_whale_client,
    record_roll,
)
from .tiers import calculate_tier, is_storable_tier, tier_description, tier_display_name, tier_for
from .achievement import AchievementRecord, build_achievement_record
