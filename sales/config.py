from __future__ import annotations

"""Tunable configuration for the sales game.

All numbers here are intended to be tuned via playtests. The config is an
immutable value passed explicitly into every engine call (`cfg=`), so games
with different tunings can run side by side in one process.

Design goals
-----------
- Starting money and client budgets scale together, so the 2x / 3x
  achievement thresholds stay reachable for weak and strong characters.
- Losses from setbacks are softened (Earth, CON) but never turned into gains.
- Some stat spreads can still make the top tier unreachable; that is accepted.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple


# ---------------------------------------------------------------------------
# Phase tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TableOutcome:
    """One row of a d6 event table."""

    roll: int
    name: str
    money_change: int = 0
    pitch_buff: int = 0


@dataclass(frozen=True, slots=True)
class TravelOption:
    cost: int
    pitch_bonus: int = 0
    rolls_drive_trouble: bool = False


@dataclass(frozen=True, slots=True)
class CrossroadsOption:
    stat: str
    dc: int
    success_money: int = 0
    fail_money: int = 0
    # Long-lived whale pitch modifier instead of money (hunt).
    whale_bonus: int = 0
    whale_penalty: int = 0


@dataclass(frozen=True, slots=True)
class VPChoiceConfig:
    legendary_gated: bool
    whale_multiplier: float
    failure_penalty: int = 0


@dataclass(frozen=True, slots=True)
class WhaleInvestmentOption:
    cost: int
    listen_bonus: int = 0
    pitch_bonus: int = 0
    patience_bonus: int = 0
    resistance_reduction: int = 0


@dataclass(frozen=True, slots=True)
class ClientTemplate:
    name: str
    patience: int
    budget: int
    resistance: int


# ---------------------------------------------------------------------------
# Negotiation
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NegotiationConfig:
    pitch_die: int = 20
    body_language_die: int = 6
    select_die: int = 6

    base_value_pct: float = 0.15
    margin_bonus_per_point: float = 0.05
    margin_bonus_cap: float = 0.25
    min_pitch_value: int = 100

    concede_pct: float = 0.80
    listen_bonus: int = 2

    # Body-language resistance reductions never go below this.
    resistance_floor: int = 5
    engaged_deal_pct: float = 0.10

    # Dinner investment never pushes whale resistance below this.
    whale_resistance_floor: int = 8


# ---------------------------------------------------------------------------
# Elements / spirit animals
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ElementConfig:
    fire_closed_deal_bonus: int = 500
    metal_deal_bonus: int = 200
    air_first_deal_bonus: int = 300
    earth_setback_reduction: int = 200
    wood_phase_income: int = 100
    water_check_bonus: int = 1


@dataclass(frozen=True, slots=True)
class SpiritConfig:
    wis_bond: int = 500
    wolf_base: int = 2000
    dragon_base: int = 5000
    owl_base: int = 1500
    whale_base: int = 4000
    tiger_base: int = 3000

    elephant_per_success: int = 1000
    elephant_wis_bond: int = 200

    frog_per_round: int = 800
    frog_wis_bond: int = 100
    frog_duration: int = 3

    deer_budget_pct: float = 0.50


def _default_first_clients() -> Mapping[str, Tuple[ClientTemplate, ...]]:
    return {
        "tech": (
            ClientTemplate("StartupBot Inc.", patience=5, budget=3000, resistance=12),
            ClientTemplate("CodeCraft Solutions", patience=6, budget=2500, resistance=11),
            ClientTemplate("DataFlow Systems", patience=4, budget=3500, resistance=13),
        ),
        "retail": (
            ClientTemplate("Main Street Goods", patience=6, budget=2500, resistance=11),
            ClientTemplate("Corner Shop Network", patience=5, budget=2800, resistance=12),
            ClientTemplate("Family Mart Chain", patience=7, budget=2200, resistance=10),
        ),
        "finance": (
            ClientTemplate("Regional Credit Union", patience=4, budget=3200, resistance=13),
            ClientTemplate("Prudent Advisors LLC", patience=5, budget=3000, resistance=12),
            ClientTemplate("Capital Partners Group", patience=5, budget=3500, resistance=14),
        ),
    }


def _default_whale_clients() -> Mapping[str, Tuple[ClientTemplate, ...]]:
    return {
        "tech": (
            ClientTemplate("MegaCorp Technologies", patience=7, budget=6000, resistance=14),
            ClientTemplate("Quantum Systems International", patience=6, budget=7000, resistance=15),
            ClientTemplate("CloudNine Enterprises", patience=8, budget=5500, resistance=13),
        ),
        "retail": (
            ClientTemplate("National Retail Holdings", patience=8, budget=5500, resistance=13),
            ClientTemplate("BigBox Superstores", patience=7, budget=6500, resistance=14),
            ClientTemplate("Premium Brands Collective", patience=6, budget=7500, resistance=15),
        ),
        "finance": (
            ClientTemplate("First National Bank", patience=6, budget=7000, resistance=15),
            ClientTemplate("Apex Investment Group", patience=7, budget=8000, resistance=16),
            ClientTemplate("Sterling Financial Services", patience=5, budget=6500, resistance=14),
        ),
    }


@dataclass(frozen=True, slots=True)
class SalesConfig:
    # ---------------------------------------------------------------------
    # Starting money
    # ---------------------------------------------------------------------
    base_money: int = 10_000
    cha_multiplier: int = 2_000
    int_multiplier: int = 1_000
    wis_multiplier: int = 500
    minimum_money: int = 3_000

    # budget_scale = max(floor, starting_money / base_money)
    budget_scale_floor: float = 0.5

    # CON resilience / STR closing power, per modifier point.
    stat_unit: int = 100

    # ---------------------------------------------------------------------
    # Tiers (multiples of starting money)
    # ---------------------------------------------------------------------
    promotion_threshold: float = 2.0
    legendary_threshold: float = 3.0

    vp_choices: Mapping[str, VPChoiceConfig] = field(
        default_factory=lambda: {
            "safe": VPChoiceConfig(legendary_gated=True, whale_multiplier=1.0),
            "stretch": VPChoiceConfig(legendary_gated=False, whale_multiplier=1.25),
            "allin": VPChoiceConfig(legendary_gated=False, whale_multiplier=1.5, failure_penalty=3000),
        }
    )

    # ---------------------------------------------------------------------
    # Territory: d6 thirds -> territory; favored pitch stat
    # ---------------------------------------------------------------------
    territory_by_third: Tuple[str, str, str] = ("tech", "retail", "finance")
    favored_stat: Mapping[str, str] = field(
        default_factory=lambda: {"tech": "int", "retail": "cha", "finance": "wis"}
    )

    # ---------------------------------------------------------------------
    # Phase tables
    # ---------------------------------------------------------------------
    travel_options: Mapping[str, TravelOption] = field(
        default_factory=lambda: {
            "fly": TravelOption(cost=800, pitch_bonus=2),
            "train": TravelOption(cost=200),
            "drive": TravelOption(cost=50, rolls_drive_trouble=True),
        }
    )
    # Travel / journey / drive buffs last through the first client phase.
    travel_buff_phases: int = 2

    journey_events: Tuple[TableOutcome, ...] = (
        TableOutcome(1, "delays"),
        TableOutcome(2, "contacts", money_change=300),
        TableOutcome(3, "intel", pitch_buff=1),
        TableOutcome(4, "luggage", money_change=-100),
        TableOutcome(5, "leads", money_change=500),
        TableOutcome(6, "smooth"),
    )
    drive_trouble_events: Tuple[TableOutcome, ...] = (
        TableOutcome(1, "breakdown", money_change=-400),
        TableOutcome(2, "traffic"),
        TableOutcome(3, "fine", money_change=-150),
        TableOutcome(4, "shortcut", money_change=100),
        TableOutcome(5, "scenic", pitch_buff=1),
        TableOutcome(6, "podcasts", pitch_buff=2),
    )
    quarter_events: Tuple[TableOutcome, ...] = (
        TableOutcome(1, "crash", money_change=-1500),
        TableOutcome(2, "competitor", money_change=-1000),
        TableOutcome(3, "recall", money_change=-500),
        TableOutcome(4, "quiet"),
        TableOutcome(5, "press", money_change=800),
        TableOutcome(6, "referral", money_change=500),
    )
    lucky_items: Tuple[TableOutcome, ...] = (
        TableOutcome(1, "watch", money_change=200),
        TableOutcome(2, "spill", money_change=-50),
        TableOutcome(3, "clover", pitch_buff=1),
        TableOutcome(4, "usb", pitch_buff=1),
        TableOutcome(5, "parking"),
        TableOutcome(6, "bird", money_change=100),
    )

    crossroads_die: int = 20
    crossroads_options: Mapping[str, CrossroadsOption] = field(
        default_factory=lambda: {
            "grind": CrossroadsOption(stat="cha", dc=10, success_money=1500, fail_money=800),
            "climb": CrossroadsOption(stat="int", dc=14, success_money=2500, fail_money=200),
            "hunt": CrossroadsOption(stat="wis", dc=16, whale_bonus=4, whale_penalty=-2),
        }
    )

    whale_investments: Mapping[str, WhaleInvestmentOption] = field(
        default_factory=lambda: {
            "research": WhaleInvestmentOption(cost=400, listen_bonus=2),
            "gift": WhaleInvestmentOption(cost=600, pitch_bonus=1, patience_bonus=2),
            "dinner": WhaleInvestmentOption(cost=800, resistance_reduction=2),
            "wingit": WhaleInvestmentOption(cost=0),
        }
    )

    # Modifiers that should outlive the game use this duration.
    permanent_phases: int = 99

    first_clients: Mapping[str, Tuple[ClientTemplate, ...]] = field(default_factory=_default_first_clients)
    whale_clients: Mapping[str, Tuple[ClientTemplate, ...]] = field(default_factory=_default_whale_clients)

    negotiation: NegotiationConfig = field(default_factory=NegotiationConfig)
    elements: ElementConfig = field(default_factory=ElementConfig)
    spirits: SpiritConfig = field(default_factory=SpiritConfig)

    def table_outcome(self, table: Tuple[TableOutcome, ...], roll: int) -> Optional[TableOutcome]:
        for row in table:
            if int(row.roll) == int(roll):
                return row
        return None


DEFAULT_SALES_CONFIG = SalesConfig()
