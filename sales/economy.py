from __future__ import annotations

"""Stat -> economy formulas (pure, no state mutation).

- starting money:  base + CHA*2000 + INT*1000 + WIS*500, floored at a minimum
- budget scale:    max(0.5, starting / base), applied to every client budget
- CON resilience:  CON*100 off every setback loss, never turning it into a gain
- STR closing:     STR*100 added to every successful pitch (may be negative)
- pitch modifier:  max(CHA, favored) + INT from round 2 + pitch buffs
- body language:   floor(DEX/2) shift, + floor(WIS/2) from round 2, clamped 1..6
"""

from typing import Iterable

from rolls.types import Character

from . import elements
from .config import DEFAULT_SALES_CONFIG, SalesConfig
from .modifiers import total as modifier_total
from .types import ActiveModifier, ModifierEffect
from .utils import clamp_int


def calculate_starting_money(character: Character, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> int:
    money = (
        int(cfg.base_money)
        + character.modifier("cha") * int(cfg.cha_multiplier)
        + character.modifier("int") * int(cfg.int_multiplier)
        + character.modifier("wis") * int(cfg.wis_multiplier)
    )
    return max(int(money), int(cfg.minimum_money))


def calculate_budget_scale(starting_money: int, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> float:
    return max(float(cfg.budget_scale_floor), float(starting_money) / float(cfg.base_money))


def con_adjustment(character: Character, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> int:
    return character.modifier("con") * int(cfg.stat_unit)


def apply_con_resilience(loss: int, character: Character, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> int:
    """actual = max(0, loss - max(0, CON*unit)); 0 <= actual <= loss."""
    amount = max(0, int(loss))
    return max(0, amount - max(0, con_adjustment(character, cfg=cfg)))


def setback_loss(loss: int, character: Character, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> int:
    """Loss actually charged for a setback: element reduction first, then CON."""
    amount = max(0, int(loss))
    if amount <= 0:
        return 0
    amount = max(0, amount - elements.setback_reduction(character.element, cfg=cfg))
    return apply_con_resilience(amount, character, cfg=cfg)


def closing_bonus(character: Character, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> int:
    return character.modifier("str") * int(cfg.stat_unit)


def favored_stat(territory: str, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> str:
    try:
        return str(cfg.favored_stat[str(territory)])
    except KeyError:
        raise ValueError(f"unknown territory: {territory!r}") from None


def pitch_modifier(
    character: Character,
    territory: str,
    modifiers: Iterable[ActiveModifier],
    negotiation_round: int = 1,
    *,
    whale: bool = False,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> int:
    mod = max(character.modifier("cha"), character.modifier(favored_stat(territory, cfg=cfg)))
    # Pattern recognition from round 2 (full INT, stale pitches when negative).
    if int(negotiation_round) >= 2:
        mod += character.modifier("int")
    mod += modifier_total(modifiers, ModifierEffect.PITCH_BONUS, whale=whale)
    mod += elements.check_bonus(character.element, cfg=cfg)
    return int(mod)


def body_language_shift(character: Character, negotiation_round: int = 1) -> int:
    shift = character.modifier("dex") // 2
    if int(negotiation_round) >= 2:
        shift += character.modifier("wis") // 2
    return int(shift)


def shift_body_language_roll(raw_roll: int, character: Character, negotiation_round: int = 1) -> int:
    return clamp_int(int(raw_roll) + body_language_shift(character, negotiation_round), 1, 6)
