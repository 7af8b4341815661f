from __future__ import annotations

"""Final tier calculation (quarter end)."""

from dataclasses import replace
from typing import Dict

from .config import DEFAULT_SALES_CONFIG, SalesConfig
from .errors import WRONG_PHASE, PreconditionViolation
from .types import STORABLE_TIERS, GameState, Tier

_DISPLAY_NAMES: Dict[str, str] = {
    "fired": "Fired",
    "under_review": "Under Review",
    "employed": "Still Employed",
    "promotion": "Promotion!",
    "legendary": "Legendary Status!",
}

_DESCRIPTIONS: Dict[str, str] = {
    "fired": "You've been let go. Better luck next quarter.",
    "under_review": "Performance needs improvement. You're on probation.",
    "employed": "Solid quarter. You kept your job.",
    "promotion": "Outstanding performance! You've been promoted!",
    "legendary": "Legendary achievement! Your name will be remembered forever!",
}


def tier_for(
    money: int,
    starting_money: int,
    legendary_unlocked: bool,
    *,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> Tier:
    """Pure tier rule.

    Reaching the legendary ratio without the unlock is reported as
    "promotion"; there is no separate capped tier.
    """
    if int(money) <= 0:
        return "fired"
    ratio = float(money) / float(starting_money)
    if ratio < 1.0:
        return "under_review"
    if ratio < float(cfg.promotion_threshold):
        return "employed"
    if ratio < float(cfg.legendary_threshold) or not legendary_unlocked:
        return "promotion"
    return "legendary"


def calculate_tier(state: GameState, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    if state.phase != "quarter_end":
        raise PreconditionViolation(
            WRONG_PHASE,
            f"Tier is computed at quarter end (current: '{state.phase}')",
            {"phase": state.phase},
        )
    tier = tier_for(state.money, state.starting_money, state.legendary_unlocked, cfg=cfg)
    return replace(state, tier=tier)


def is_storable_tier(tier: object) -> bool:
    return tier in STORABLE_TIERS


def tier_display_name(tier: object) -> str:
    return _DISPLAY_NAMES.get(str(tier), "Unknown")


def tier_description(tier: object) -> str:
    return _DESCRIPTIONS.get(str(tier), "")
