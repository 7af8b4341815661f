from __future__ import annotations

"""Label-separated dice derivation.

combined = SHA-256(block_hash + client_seed)
roll     = uint32_be(HMAC-SHA256(combined, label)[:4]) % die_size + 1

The label is the only disambiguator between rolls that share a seed pair.
There is no counter or internal state, so derivations may run in any order.
"""

import hashlib
import hmac
import secrets

from .types import EntropyBlock

CLIENT_SEED_BYTES = 32


def combine_seed(block_hash: str, client_seed: str) -> bytes:
    """Mix external block entropy with the local client seed."""
    return hashlib.sha256((str(block_hash) + str(client_seed)).encode("utf-8")).digest()


def commit_client_seed(client_seed: str) -> str:
    """One-way commitment of a client seed (hex SHA-256)."""
    return hashlib.sha256(str(client_seed).encode("utf-8")).hexdigest()


def generate_client_seed() -> str:
    """32 cryptographically random bytes as a 64-char hex string."""
    return secrets.token_hex(CLIENT_SEED_BYTES)


def derive_roll(combined_seed: bytes, label: str, die_size: int) -> int:
    """Derive a value in [1, die_size] for `label` from a combined seed."""
    size = int(die_size)
    if size < 1:
        raise ValueError(f"die_size must be >= 1 (got {die_size!r})")
    digest = hmac.new(bytes(combined_seed), str(label).encode("utf-8"), hashlib.sha256).digest()
    value = int.from_bytes(digest[:4], "big", signed=False)
    return (value % size) + 1


def derive(block_hash: str, client_seed: str, label: str, die_size: int) -> int:
    """Convenience: combine the seed pair and derive one labelled roll."""
    return derive_roll(combine_seed(block_hash, client_seed), label, die_size)


def entropy_block(height: int, block_hash: str, client_seed: str) -> EntropyBlock:
    """Build an EntropyBlock with its commitment filled in."""
    return EntropyBlock(
        height=int(height),
        block_hash=str(block_hash),
        client_seed=str(client_seed),
        client_seed_hash=commit_client_seed(client_seed),
    )
