from __future__ import annotations

"""Public data types for the sales game.

We keep these dataclasses intentionally "thin" and immutable:
- Every engine operation takes a GameState and returns a new one
  (dataclasses.replace); nothing is mutated in place.
- Roll / choice history is an append-only tuple owned by the state.
- Business rules live in economy.py / negotiation.py / engine.py.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Optional, Tuple

from rolls.types import Character


Phase = Literal[
    "assignment",
    "first_trip",
    "first_client",
    "crossroads",
    "quarter_event",
    "vp_meeting",
    "whale_prep",
    "whale",
    "quarter_end",
]
PHASES: Tuple[str, ...] = (
    "assignment",
    "first_trip",
    "first_client",
    "crossroads",
    "quarter_event",
    "vp_meeting",
    "whale_prep",
    "whale",
    "quarter_end",
)

Territory = Literal["tech", "retail", "finance"]
TravelChoice = Literal["fly", "train", "drive"]
CrossroadsChoice = Literal["grind", "climb", "hunt"]
VPChoice = Literal["safe", "stretch", "allin"]
WhaleInvestment = Literal["research", "gift", "dinner", "wingit"]
NegotiationAction = Literal["pitch", "listen", "concede", "ability"]
NegotiationSlot = Literal["first_client", "whale"]
NegotiationOutcome = Literal["ongoing", "closed", "lost"]

BodyLanguage = Literal["arms_crossed", "skeptical", "neutral", "interested", "engaged"]
RollOutcome = Literal["success", "fail", "critical"]

Tier = Literal["fired", "under_review", "employed", "promotion", "legendary"]
TIERS: Tuple[str, ...] = ("fired", "under_review", "employed", "promotion", "legendary")
STORABLE_TIERS: Tuple[str, ...] = ("promotion", "legendary")


class ModifierSource(str, Enum):
    ELEMENT = "element"
    TRAVEL = "travel"
    JOURNEY = "journey"
    DRIVE = "drive"
    LISTEN = "listen"
    SPIRIT = "spirit"
    HUNT = "hunt"
    RESEARCH = "research"
    GIFT = "gift"
    DINNER = "dinner"
    LUCKY = "lucky"


class ModifierEffect(str, Enum):
    PITCH_BONUS = "pitch_bonus"
    DEAL_BONUS = "deal_bonus"
    LISTEN_BONUS = "listen_bonus"
    WHALE_RESISTANCE = "whale_resistance"
    AUTO_SUCCESS = "auto_success"
    NO_OBJECTION = "no_objection"
    DEAL_PROTECTION = "deal_protection"
    ESCAPE = "escape"
    PARTIAL_CLOSE = "partial_close"
    ROUND_INCOME = "round_income"


@dataclass(frozen=True, slots=True)
class ActiveModifier:
    """Time-boxed buff/debuff.

    phases_remaining ticks down on every phase advance. `charges`, when set,
    is consumed by the action the modifier applies to (e.g. "next pitch").
    """

    description: str
    kind: Literal["buff", "debuff"]
    value: int
    source: ModifierSource
    effect: ModifierEffect
    phases_remaining: int
    charges: Optional[int] = None
    whale_only: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "description": str(self.description),
            "kind": str(self.kind),
            "value": int(self.value),
            "source": self.source.value,
            "effect": self.effect.value,
            "phases_remaining": int(self.phases_remaining),
            "charges": None if self.charges is None else int(self.charges),
            "whale_only": bool(self.whale_only),
        }


@dataclass(frozen=True, slots=True)
class Client:
    """Negotiation opponent. Inactive once patience reaches 0 or the deal closes."""

    name: str
    territory: Territory
    budget: int
    resistance: int
    patience: int
    max_patience: int
    deal_value: int = 0
    active: bool = True

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": str(self.name),
            "territory": str(self.territory),
            "budget": int(self.budget),
            "resistance": int(self.resistance),
            "patience": int(self.patience),
            "max_patience": int(self.max_patience),
            "deal_value": int(self.deal_value),
            "active": bool(self.active),
        }


@dataclass(frozen=True, slots=True)
class GameRoll:
    """A single provably fair roll, kept for audit."""

    label: str
    action: str
    roll_seed: str
    roll_seed_hash: str
    block_height: int
    block_hash: str
    die_size: int
    result: int
    modifier: int = 0
    total: int = 0
    target: Optional[int] = None
    outcome: RollOutcome = "success"

    def to_payload(self) -> Dict[str, Any]:
        return {
            "label": str(self.label),
            "action": str(self.action),
            "roll_seed": str(self.roll_seed),
            "roll_seed_hash": str(self.roll_seed_hash),
            "block_height": int(self.block_height),
            "block_hash": str(self.block_hash),
            "die_size": int(self.die_size),
            "result": int(self.result),
            "modifier": int(self.modifier),
            "total": int(self.total),
            "target": None if self.target is None else int(self.target),
            "outcome": str(self.outcome),
        }


@dataclass(frozen=True, slots=True)
class NegotiationRoundResult:
    """Narrative-free result of one negotiation round."""

    round: int
    action: NegotiationAction
    success: Optional[bool] = None

    pitch_roll: Optional[int] = None
    pitch_modifier: int = 0
    pitch_total: Optional[int] = None
    target: Optional[int] = None

    body_language_roll: Optional[int] = None
    body_language_shifted: Optional[int] = None
    body_language: Optional[BodyLanguage] = None

    deal_value_gained: int = 0
    money_gained: int = 0

    patience_after: int = 0
    resistance_after: int = 0
    deal_value_after: int = 0
    client_active: bool = True

    effects: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "round": int(self.round),
            "action": str(self.action),
            "success": self.success,
            "pitch_roll": self.pitch_roll,
            "pitch_modifier": int(self.pitch_modifier),
            "pitch_total": self.pitch_total,
            "target": self.target,
            "body_language_roll": self.body_language_roll,
            "body_language_shifted": self.body_language_shifted,
            "body_language": self.body_language,
            "deal_value_gained": int(self.deal_value_gained),
            "money_gained": int(self.money_gained),
            "patience_after": int(self.patience_after),
            "resistance_after": int(self.resistance_after),
            "deal_value_after": int(self.deal_value_after),
            "client_active": bool(self.client_active),
            "effects": dict(self.effects or {}),
        }


@dataclass(frozen=True, slots=True)
class GameState:
    """Aggregate root for one game."""

    character: Character
    phase: Phase
    starting_money: int
    budget_scale: float
    money: int

    territory: Optional[Territory] = None
    vp_choice: Optional[VPChoice] = None
    legendary_unlocked: bool = False
    spirit_ability_used: bool = False

    modifiers: Tuple[ActiveModifier, ...] = ()
    rolls: Tuple[GameRoll, ...] = ()
    choices: Tuple[str, ...] = ()

    # Phase-specific state
    travel_choice: Optional[TravelChoice] = None
    journey_event: Optional[str] = None
    drive_trouble: Optional[str] = None

    first_client: Optional[Client] = None
    first_client_rounds: Tuple[NegotiationRoundResult, ...] = ()
    first_client_settled: bool = False

    crossroads_choice: Optional[CrossroadsChoice] = None
    crossroads_result: Optional[Literal["success", "fail"]] = None
    quarter_event: Optional[str] = None

    whale_investment: Optional[WhaleInvestment] = None
    lucky_item: Optional[str] = None

    whale_client: Optional[Client] = None
    whale_rounds: Tuple[NegotiationRoundResult, ...] = ()
    whale_settled: bool = False

    tier: Optional[Tier] = None

    @property
    def is_over(self) -> bool:
        return self.tier is not None

    def client_for(self, slot: NegotiationSlot) -> Optional[Client]:
        return self.first_client if slot == "first_client" else self.whale_client

    def rounds_for(self, slot: NegotiationSlot) -> Tuple[NegotiationRoundResult, ...]:
        return self.first_client_rounds if slot == "first_client" else self.whale_rounds

    def to_payload(self) -> Dict[str, Any]:
        return {
            "character": self.character.to_payload(),
            "phase": str(self.phase),
            "starting_money": int(self.starting_money),
            "budget_scale": float(self.budget_scale),
            "money": int(self.money),
            "territory": self.territory,
            "vp_choice": self.vp_choice,
            "legendary_unlocked": bool(self.legendary_unlocked),
            "spirit_ability_used": bool(self.spirit_ability_used),
            "modifiers": [m.to_payload() for m in self.modifiers],
            "rolls": [r.to_payload() for r in self.rolls],
            "choices": list(self.choices),
            "travel_choice": self.travel_choice,
            "journey_event": self.journey_event,
            "drive_trouble": self.drive_trouble,
            "first_client": None if self.first_client is None else self.first_client.to_payload(),
            "first_client_rounds": [r.to_payload() for r in self.first_client_rounds],
            "first_client_settled": bool(self.first_client_settled),
            "crossroads_choice": self.crossroads_choice,
            "crossroads_result": self.crossroads_result,
            "quarter_event": self.quarter_event,
            "whale_investment": self.whale_investment,
            "lucky_item": self.lucky_item,
            "whale_client": None if self.whale_client is None else self.whale_client.to_payload(),
            "whale_rounds": [r.to_payload() for r in self.whale_rounds],
            "whale_settled": bool(self.whale_settled),
            "tier": self.tier,
        }
