from __future__ import annotations

"""Character and entropy data types.

These are thin, immutable containers. Derivation rules live in
derivation.py / character.py.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Mapping, Tuple


StatName = Literal["str", "dex", "con", "int", "wis", "cha"]
Element = Literal["Fire", "Water", "Earth", "Air", "Wood", "Metal"]
SpiritAnimal = Literal[
    "Wolf",
    "Bear",
    "Eagle",
    "Dragon",
    "Octopus",
    "Owl",
    "Tiger",
    "Deer",
    "Spider",
    "Whale",
    "Elephant",
    "Frog",
]
Sex = Literal["Male", "Female"]

STAT_NAMES: Tuple[str, ...] = ("str", "dex", "con", "int", "wis", "cha")
ELEMENTS: Tuple[str, ...] = ("Fire", "Water", "Earth", "Air", "Wood", "Metal")
SPIRIT_ANIMALS: Tuple[str, ...] = (
    "Wolf",
    "Bear",
    "Eagle",
    "Dragon",
    "Octopus",
    "Owl",
    "Tiger",
    "Deer",
    "Spider",
    "Whale",
    "Elephant",
    "Frog",
)
SEXES: Tuple[str, ...] = ("Male", "Female")


@dataclass(frozen=True, slots=True)
class StatRoll:
    """One stat: four d6 values, their sum (4..24) and the derived modifier."""

    dice: Tuple[int, int, int, int]
    total: int
    modifier: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "dice": [int(d) for d in self.dice],
            "total": int(self.total),
            "modifier": int(self.modifier),
        }


@dataclass(frozen=True, slots=True)
class VerificationData:
    """Seed material used to roll the character (for later audit)."""

    block_height: int
    block_hash: str
    client_seed: str

    def to_payload(self) -> Dict[str, Any]:
        return {
            "block_height": int(self.block_height),
            "block_hash": str(self.block_hash),
            "client_seed": str(self.client_seed),
        }


@dataclass(frozen=True, slots=True)
class Character:
    """Read-only character record consumed by the sales engine."""

    name: str
    stats: Mapping[str, StatRoll]
    element: Element
    spirit_animal: SpiritAnimal
    sex: Sex
    verification: VerificationData

    def modifier(self, stat: str) -> int:
        return int(self.stats[stat].modifier)

    @property
    def roll_block_height(self) -> int:
        return int(self.verification.block_height)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": str(self.name),
            "stats": {k: self.stats[k].to_payload() for k in STAT_NAMES if k in self.stats},
            "traits": {
                "element": str(self.element),
                "spirit_animal": str(self.spirit_animal),
                "sex": str(self.sex),
            },
            "verification": self.verification.to_payload(),
        }


@dataclass(frozen=True, slots=True)
class EntropyBlock:
    """One unit of seed material: external block entropy + committed local seed.

    `client_seed_hash` is the commitment published before `block_hash` was known.
    """

    height: int
    block_hash: str
    client_seed: str
    client_seed_hash: str = field(default="")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "height": int(self.height),
            "block_hash": str(self.block_hash),
            "client_seed": str(self.client_seed),
            "client_seed_hash": str(self.client_seed_hash),
        }
