from __future__ import annotations

"""Achievement record for finished games.

Only Promotion and Legendary games produce a record; it carries everything an
auditor needs to replay the game: the four entropy blocks, the territory roll
and the ordered action/choice lists.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from rolls.types import EntropyBlock

from .errors import PRECONDITION_VIOLATION, TIER_NOT_STORABLE, PreconditionViolation
from .tiers import is_storable_tier
from .types import GameRoll, GameState
from .utils import first_or_none

# Blocks consumed by a full game: assignment, first client, crossroads, whale.
GAME_BLOCKS = 4


@dataclass(frozen=True, slots=True)
class AchievementRecord:
    character_name: str
    character_roll_height: int
    starting_money: int
    final_money: int
    tier: str
    blocks: Tuple[Tuple[str, str], ...]
    key_roll: GameRoll
    first_client_actions: Tuple[str, ...]
    whale_actions: Tuple[str, ...]
    choices: Tuple[str, ...]
    completed_at_block: int
    timestamp: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "character_name": self.character_name,
            "character_roll_height": int(self.character_roll_height),
            "starting_money": int(self.starting_money),
            "final_money": int(self.final_money),
            "tier": self.tier,
            "blocks": [{"seed": s, "hash": h} for s, h in self.blocks],
            "key_roll": self.key_roll.to_payload(),
            "first_client_actions": list(self.first_client_actions),
            "whale_actions": list(self.whale_actions),
            "choices": list(self.choices),
            "completed_at_block": int(self.completed_at_block),
            "timestamp": int(self.timestamp),
        }


def build_achievement_record(
    state: GameState,
    blocks: Sequence[EntropyBlock],
    *,
    timestamp: int,
) -> AchievementRecord:
    if state.tier is None or not is_storable_tier(state.tier):
        raise PreconditionViolation(
            TIER_NOT_STORABLE,
            f"Tier '{state.tier}' is not eligible for an achievement record",
            {"tier": state.tier},
        )
    if len(blocks) != GAME_BLOCKS:
        raise PreconditionViolation(
            PRECONDITION_VIOLATION,
            f"Expected {GAME_BLOCKS} entropy blocks (got {len(blocks)})",
            {"blocks": len(blocks)},
        )

    key_roll: Optional[GameRoll] = first_or_none(r for r in state.rolls if r.label == "territory")
    if key_roll is None:
        raise PreconditionViolation(PRECONDITION_VIOLATION, "Territory roll missing from roll log")

    return AchievementRecord(
        character_name=state.character.name,
        character_roll_height=state.character.roll_block_height,
        starting_money=int(state.starting_money),
        final_money=int(state.money),
        tier=str(state.tier),
        blocks=tuple((b.client_seed, b.block_hash) for b in blocks),
        key_roll=key_roll,
        first_client_actions=tuple(r.action for r in state.first_client_rounds),
        whale_actions=tuple(r.action for r in state.whale_rounds),
        choices=tuple(state.choices),
        completed_at_block=max(int(b.height) for b in blocks),
        timestamp=int(timestamp),
    )
