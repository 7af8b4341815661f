from __future__ import annotations

"""Factories shared by the test modules."""

from dataclasses import replace
from typing import Optional

from rolls import Character, StatRoll, VerificationData, entropy_block
from sales.engine import create_game
from sales.types import Client, GameState

BLOCK_HASHES = (
    "00000000000000000a1b2c3d4e5f60718293a4b5c6d7e8f90112233445566778",
    "0000000000000000f0e1d2c3b4a5968778695a4b3c2d1e0ff0e1d2c3b4a59687",
    "000000000000000012345678123456781234567812345678abcdefabcdefabcd",
    "0000000000000000deadbeefcafebabedeadbeefcafebabe0123456789abcdef",
)


def _dice_for(total: int) -> tuple:
    dice = [1, 1, 1, 1]
    left = int(total) - 4
    for i in range(4):
        add = min(5, left)
        dice[i] += add
        left -= add
    return tuple(dice)


def make_stat(modifier: int) -> StatRoll:
    total = max(4, 13 + 2 * int(modifier))
    return StatRoll(dice=_dice_for(total), total=total, modifier=int(modifier))


def make_character(
    *,
    str_: int = 0,
    dex: int = 0,
    con: int = 0,
    int_: int = 0,
    wis: int = 0,
    cha: int = 0,
    element: str = "Fire",
    spirit: str = "Wolf",
    name: str = "Casey",
) -> Character:
    stats = {
        "str": make_stat(str_),
        "dex": make_stat(dex),
        "con": make_stat(con),
        "int": make_stat(int_),
        "wis": make_stat(wis),
        "cha": make_stat(cha),
    }
    return Character(
        name=name,
        stats=stats,
        element=element,  # type: ignore[arg-type]
        spirit_animal=spirit,  # type: ignore[arg-type]
        sex="Female",
        verification=VerificationData(block_height=1000, block_hash="ab" * 32, client_seed="cd" * 32),
    )


def make_client(
    *,
    territory: str = "tech",
    budget: int = 3000,
    resistance: int = 12,
    patience: int = 5,
    deal_value: int = 0,
) -> Client:
    return Client(
        name="Test Client",
        territory=territory,  # type: ignore[arg-type]
        budget=budget,
        resistance=resistance,
        patience=patience,
        max_patience=patience,
        deal_value=deal_value,
    )


def negotiation_state(
    character: Character,
    client: Client,
    *,
    slot: str = "first_client",
    vp_choice: Optional[str] = None,
) -> GameState:
    state = create_game(character)
    fields = {"phase": slot, "territory": client.territory}
    if slot == "first_client":
        fields["first_client"] = client
    else:
        fields["whale_client"] = client
        fields["vp_choice"] = vp_choice or "safe"
    return replace(state, **fields)


def make_blocks():
    return [
        entropy_block(2000 + i, block_hash, f"{i:02d}" * 32)
        for i, block_hash in enumerate(BLOCK_HASHES)
    ]
