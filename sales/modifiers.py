from __future__ import annotations

"""Modifier ledger helpers.

The ledger is an immutable tuple of ActiveModifier owned by GameState.
Consumers select by ModifierEffect (never by description text).
"""

from dataclasses import replace
from typing import Iterable, List, Optional, Tuple

from .types import ActiveModifier, ModifierEffect, ModifierSource

Ledger = Tuple[ActiveModifier, ...]


def make_modifier(
    description: str,
    *,
    value: int,
    source: ModifierSource,
    effect: ModifierEffect,
    phases: int,
    charges: Optional[int] = None,
    whale_only: bool = False,
) -> ActiveModifier:
    return ActiveModifier(
        description=str(description),
        kind="debuff" if int(value) < 0 else "buff",
        value=int(value),
        source=source,
        effect=effect,
        phases_remaining=int(phases),
        charges=None if charges is None else int(charges),
        whale_only=bool(whale_only),
    )


def add_modifier(ledger: Ledger, modifier: ActiveModifier) -> Ledger:
    return tuple(ledger) + (modifier,)


def tick_modifiers(ledger: Ledger) -> Ledger:
    """Decrement every modifier by one phase and drop the expired ones."""
    out: List[ActiveModifier] = []
    for m in ledger:
        left = int(m.phases_remaining) - 1
        if left > 0:
            out.append(replace(m, phases_remaining=left))
    return tuple(out)


def select(ledger: Iterable[ActiveModifier], effect: ModifierEffect, *, whale: bool) -> List[ActiveModifier]:
    """Modifiers with `effect` that apply to the current negotiation."""
    out: List[ActiveModifier] = []
    for m in ledger:
        if m.effect is not effect:
            continue
        if m.whale_only and not whale:
            continue
        if m.charges is not None and int(m.charges) <= 0:
            continue
        out.append(m)
    return out


def total(ledger: Iterable[ActiveModifier], effect: ModifierEffect, *, whale: bool) -> int:
    return sum(int(m.value) for m in select(ledger, effect, whale=whale))


def has_effect(ledger: Iterable[ActiveModifier], effect: ModifierEffect, *, whale: bool) -> bool:
    return bool(select(ledger, effect, whale=whale))


def consume(ledger: Ledger, effect: ModifierEffect, *, whale: bool) -> Ledger:
    """Use one charge of every charged modifier with `effect`; drop spent ones.

    Uncharged (duration-only) modifiers are left untouched.
    """
    out: List[ActiveModifier] = []
    for m in ledger:
        applies = m.effect is effect and (whale or not m.whale_only)
        if applies and m.charges is not None:
            left = int(m.charges) - 1
            if left > 0:
                out.append(replace(m, charges=left))
            continue
        out.append(m)
    return tuple(out)
