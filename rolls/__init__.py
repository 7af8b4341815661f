from __future__ import annotations

"""Provably fair dice.

This package provides:
- Seed combination (external block hash + local client seed) and commitments
- Label-separated HMAC derivation of die rolls
- Character rolling (six 4d6 stats + element / spirit animal / sex traits)
- Audit helpers that re-derive a character from its verification block

Everything here is a pure function of its inputs: the same seed pair and label
always reproduce the same value, regardless of call order.
"""

from .types import (
    ELEMENTS,
    SEXES,
    SPIRIT_ANIMALS,
    STAT_NAMES,
    Character,
    Element,
    EntropyBlock,
    Sex,
    SpiritAnimal,
    StatName,
    StatRoll,
    VerificationData,
)
from .derivation import (
    combine_seed,
    commit_client_seed,
    derive,
    derive_roll,
    entropy_block,
    generate_client_seed,
)
from .character import (
    calculate_modifier,
    character_from_payload,
    roll_character,
    roll_stat,
)
from .verification import (
    CharacterVerification,
    EntropySource,
    EntropyUnavailable,
    InMemoryEntropySource,
    verify_character,
    verify_commitment,
)
