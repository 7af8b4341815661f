from __future__ import annotations

"""Element passives.

Elements are permanent rules evaluated at fixed trigger points rather than
stored modifiers:

- Fire:  bonus on any closed deal
- Metal: bonus on every deal
- Air:   bonus on the first deal only
- Earth: flat reduction of every setback
- Wood:  flat income on every phase advance
- Water: bonus to every check (pitch and crossroads)

Each trigger is a table with one handler per element.
"""

from dataclasses import dataclass
from typing import Callable, Dict

from .config import DEFAULT_SALES_CONFIG, ElementConfig, SalesConfig


@dataclass(frozen=True, slots=True)
class ElementRule:
    deal_bonus: Callable[[ElementConfig, bool], int]
    setback_reduction: Callable[[ElementConfig], int]
    phase_income: Callable[[ElementConfig], int]
    check_bonus: Callable[[ElementConfig], int]


def _none(_cfg: ElementConfig) -> int:
    return 0


def _no_deal_bonus(_cfg: ElementConfig, _first_deal: bool) -> int:
    return 0


ELEMENT_RULES: Dict[str, ElementRule] = {
    "Fire": ElementRule(
        deal_bonus=lambda c, first: int(c.fire_closed_deal_bonus),
        setback_reduction=_none,
        phase_income=_none,
        check_bonus=_none,
    ),
    "Water": ElementRule(
        deal_bonus=_no_deal_bonus,
        setback_reduction=_none,
        phase_income=_none,
        check_bonus=lambda c: int(c.water_check_bonus),
    ),
    "Earth": ElementRule(
        deal_bonus=_no_deal_bonus,
        setback_reduction=lambda c: int(c.earth_setback_reduction),
        phase_income=_none,
        check_bonus=_none,
    ),
    "Air": ElementRule(
        deal_bonus=lambda c, first: int(c.air_first_deal_bonus) if first else 0,
        setback_reduction=_none,
        phase_income=_none,
        check_bonus=_none,
    ),
    "Wood": ElementRule(
        deal_bonus=_no_deal_bonus,
        setback_reduction=_none,
        phase_income=lambda c: int(c.wood_phase_income),
        check_bonus=_none,
    ),
    "Metal": ElementRule(
        deal_bonus=lambda c, first: int(c.metal_deal_bonus),
        setback_reduction=_none,
        phase_income=_none,
        check_bonus=_none,
    ),
}


def _rule(element: str) -> ElementRule:
    try:
        return ELEMENT_RULES[str(element)]
    except KeyError:
        raise ValueError(f"unknown element: {element!r}") from None


def deal_bonus(element: str, deal_value: int, *, first_deal: bool, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> int:
    """Bonus paid when a negotiation settles with a positive value."""
    if int(deal_value) <= 0:
        return 0
    return _rule(element).deal_bonus(cfg.elements, bool(first_deal))


def setback_reduction(element: str, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> int:
    return _rule(element).setback_reduction(cfg.elements)


def phase_income(element: str, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> int:
    return _rule(element).phase_income(cfg.elements)


def check_bonus(element: str, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> int:
    return _rule(element).check_bonus(cfg.elements)
