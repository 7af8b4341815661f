from __future__ import annotations

"""Audit helpers: re-derive a character from its verification block.

The entropy source (block heights / hashes) is an external collaborator; only
its boundary is modelled here. Source failures are reported in the result
rather than raised, so callers can retry once the source recovers.
"""

import hmac
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from .character import roll_character
from .derivation import commit_client_seed
from .types import STAT_NAMES, Character

logger = logging.getLogger(__name__)


class EntropyUnavailable(Exception):
    """Raised by an entropy source when a height is not (yet) available."""


@runtime_checkable
class EntropySource(Protocol):
    def current_height(self) -> int: ...

    def block_hash(self, height: int) -> str: ...

    def wait_for_height(self, height: int, *, timeout: Optional[float] = None) -> str: ...


@dataclass
class InMemoryEntropySource:
    """Height -> hash table filled by the host as blocks are observed.

    `wait_for_height` blocks until `add` records the height (or the timeout
    expires), so a roll can be requested before its block exists.
    """

    blocks: Dict[int, str] = field(default_factory=dict)
    _cond: threading.Condition = field(default_factory=threading.Condition, init=False, repr=False, compare=False)

    def add(self, height: int, block_hash: str) -> None:
        with self._cond:
            self.blocks[int(height)] = str(block_hash)
            self._cond.notify_all()

    def current_height(self) -> int:
        with self._cond:
            return max(self.blocks) if self.blocks else 0

    def block_hash(self, height: int) -> str:
        with self._cond:
            try:
                return self.blocks[int(height)]
            except KeyError:
                raise EntropyUnavailable(f"block {height} not available") from None

    def wait_for_height(self, height: int, *, timeout: Optional[float] = None) -> str:
        h = int(height)
        with self._cond:
            if not self._cond.wait_for(lambda: h in self.blocks, timeout=timeout):
                raise EntropyUnavailable(f"block {height} not available after {timeout}s")
            return self.blocks[h]


@dataclass(frozen=True, slots=True)
class CharacterVerification:
    valid: bool
    block_hash_valid: bool
    stats_match: bool
    traits_match: bool
    computed: Optional[Character] = None
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "valid": bool(self.valid),
            "block_hash_valid": bool(self.block_hash_valid),
            "stats_match": bool(self.stats_match),
            "traits_match": bool(self.traits_match),
        }
        if self.computed is not None:
            payload["computed"] = self.computed.to_payload()
        if self.error:
            payload["error"] = str(self.error)
        return payload


def _stats_equal(a: Mapping[str, Any], b: Mapping[str, Any]) -> bool:
    for stat in STAT_NAMES:
        sa, sb = a.get(stat), b.get(stat)
        if sa is None or sb is None:
            return False
        if int(sa.total) != int(sb.total) or tuple(sa.dice) != tuple(sb.dice):
            return False
    return True


def verify_character(
    character: Character,
    source: EntropySource,
    *,
    timeout: Optional[float] = None,
) -> CharacterVerification:
    """Check the stored block hash against the source, then re-roll and compare.

    With a `timeout`, waits up to that long for the source to reach the
    character's block height instead of failing immediately.
    """
    ver = character.verification
    try:
        if timeout is None:
            actual_hash = source.block_hash(int(ver.block_height))
        else:
            actual_hash = source.wait_for_height(int(ver.block_height), timeout=timeout)
    except EntropyUnavailable as exc:
        logger.warning("verify_character: entropy source unavailable height=%s", ver.block_height)
        return CharacterVerification(False, False, False, False, error=str(exc))

    if actual_hash != ver.block_hash:
        return CharacterVerification(
            False, False, False, False, error="Block hash does not match entropy source record"
        )

    computed = roll_character(character.name, ver.block_height, ver.block_hash, ver.client_seed)
    stats_match = _stats_equal(character.stats, computed.stats)
    traits_match = (
        character.element == computed.element
        and character.spirit_animal == computed.spirit_animal
        and character.sex == computed.sex
    )
    return CharacterVerification(
        valid=bool(stats_match and traits_match),
        block_hash_valid=True,
        stats_match=stats_match,
        traits_match=traits_match,
        computed=computed,
    )


def verify_commitment(client_seed: str, committed_hash: str) -> bool:
    """True when `client_seed` hashes to the previously published commitment."""
    return hmac.compare_digest(commit_client_seed(client_seed), str(committed_hash).lower())
