from __future__ import annotations

"""Character rolling: six 4d6 stats plus three traits, all from one seed pair."""

from typing import Any, Dict, Mapping

from .derivation import combine_seed, derive_roll
from .types import (
    ELEMENTS,
    SEXES,
    SPIRIT_ANIMALS,
    STAT_NAMES,
    Character,
    StatRoll,
    VerificationData,
)

STAT_DICE_PER_STAT = 4
ELEMENT_LABEL = "element"
SPIRIT_ANIMAL_LABEL = "spirit_animal"
SEX_LABEL = "sex"


def stat_labels(stat: str) -> tuple[str, ...]:
    return tuple(f"{stat}_d{i}" for i in range(1, STAT_DICE_PER_STAT + 1))


def calculate_modifier(total: int) -> int:
    """floor((total - 13) / 2): +0 at 13-14, +1 at 15-16, -1 at 11-12."""
    return (int(total) - 13) // 2


def roll_stat(combined_seed: bytes, stat: str) -> StatRoll:
    if stat not in STAT_NAMES:
        raise ValueError(f"unknown stat: {stat!r}")
    dice = tuple(derive_roll(combined_seed, label, 6) for label in stat_labels(stat))
    total = sum(dice)
    return StatRoll(dice=dice, total=int(total), modifier=calculate_modifier(total))  # type: ignore[arg-type]


def roll_character(name: str, block_height: int, block_hash: str, client_seed: str) -> Character:
    """Roll a full character from a verification block."""
    combined = combine_seed(block_hash, client_seed)
    stats = {stat: roll_stat(combined, stat) for stat in STAT_NAMES}
    element = ELEMENTS[derive_roll(combined, ELEMENT_LABEL, len(ELEMENTS)) - 1]
    spirit = SPIRIT_ANIMALS[derive_roll(combined, SPIRIT_ANIMAL_LABEL, len(SPIRIT_ANIMALS)) - 1]
    sex = SEXES[derive_roll(combined, SEX_LABEL, len(SEXES)) - 1]
    return Character(
        name=str(name),
        stats=stats,
        element=element,  # type: ignore[arg-type]
        spirit_animal=spirit,  # type: ignore[arg-type]
        sex=sex,  # type: ignore[arg-type]
        verification=VerificationData(
            block_height=int(block_height),
            block_hash=str(block_hash),
            client_seed=str(client_seed),
        ),
    )


def _stat_from_payload(stat: str, raw: Any) -> StatRoll:
    if not isinstance(raw, Mapping):
        raise ValueError(f"stats.{stat} must be a mapping")
    dice_raw = raw.get("dice")
    if not isinstance(dice_raw, (list, tuple)) or len(dice_raw) != STAT_DICE_PER_STAT:
        raise ValueError(f"stats.{stat}.dice must hold {STAT_DICE_PER_STAT} values")
    dice = tuple(int(d) for d in dice_raw)
    if any(d < 1 or d > 6 for d in dice):
        raise ValueError(f"stats.{stat}.dice values must be in 1..6")
    total = int(raw.get("total", sum(dice)))
    if total != sum(dice):
        raise ValueError(f"stats.{stat}.total does not match its dice")
    modifier = int(raw.get("modifier", calculate_modifier(total)))
    if modifier != calculate_modifier(total):
        raise ValueError(f"stats.{stat}.modifier does not match its total")
    return StatRoll(dice=dice, total=total, modifier=modifier)  # type: ignore[arg-type]


def character_from_payload(payload: Mapping[str, Any]) -> Character:
    """Parse a character record (as produced by Character.to_payload)."""
    if not isinstance(payload, Mapping):
        raise TypeError("character payload must be a mapping")

    stats_raw = payload.get("stats")
    if not isinstance(stats_raw, Mapping):
        raise ValueError("character.stats is required")
    stats: Dict[str, StatRoll] = {stat: _stat_from_payload(stat, stats_raw.get(stat)) for stat in STAT_NAMES}

    traits = payload.get("traits") if isinstance(payload.get("traits"), Mapping) else {}
    element = str(traits.get("element") or "")
    spirit = str(traits.get("spirit_animal") or "")
    sex = str(traits.get("sex") or "")
    if element not in ELEMENTS:
        raise ValueError(f"unknown element: {element!r}")
    if spirit not in SPIRIT_ANIMALS:
        raise ValueError(f"unknown spirit animal: {spirit!r}")
    if sex not in SEXES:
        raise ValueError(f"unknown sex: {sex!r}")

    ver = payload.get("verification") if isinstance(payload.get("verification"), Mapping) else {}
    return Character(
        name=str(payload.get("name") or ""),
        stats=stats,
        element=element,  # type: ignore[arg-type]
        spirit_animal=spirit,  # type: ignore[arg-type]
        sex=sex,  # type: ignore[arg-type]
        verification=VerificationData(
            block_height=int(ver.get("block_height") or 0),
            block_hash=str(ver.get("block_hash") or ""),
            client_seed=str(ver.get("client_seed") or ""),
        ),
    )
