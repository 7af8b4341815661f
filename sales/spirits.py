from __future__ import annotations

"""Spirit-animal abilities (single use per game).

Seven abilities scale with the WIS modifier ("spirit bond"); five are boolean
tactical effects that ignore WIS. Money awards are credited immediately;
everything else is inserted into the modifier ledger.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Optional, Tuple

from .config import DEFAULT_SALES_CONFIG, SalesConfig
from .errors import ABILITY_ALREADY_USED, PreconditionViolation
from .modifiers import add_modifier, make_modifier
from .types import ActiveModifier, GameState, ModifierEffect, ModifierSource


@dataclass(frozen=True, slots=True)
class SpiritOutcome:
    spirit: str
    money_gained: int = 0
    modifier: Optional[ActiveModifier] = None
    effects: Dict[str, Any] = field(default_factory=dict)


def _bonded(base: int, wis: int, bond: int) -> int:
    return max(0, int(base) + int(wis) * int(bond))


def _instant(spirit: str, base: Callable[[SalesConfig], int]) -> Callable[[GameState, int, SalesConfig], SpiritOutcome]:
    def _handler(state: GameState, wis: int, cfg: SalesConfig) -> SpiritOutcome:
        amount = _bonded(base(cfg), wis, cfg.spirits.wis_bond)
        return SpiritOutcome(spirit, money_gained=amount, effects={"spirit_bond": wis * cfg.spirits.wis_bond})

    return _handler


def _tactical(
    spirit: str,
    description: str,
    effect: ModifierEffect,
    *,
    value: int = 0,
    permanent: bool = False,
) -> Callable[[GameState, int, SalesConfig], SpiritOutcome]:
    def _handler(state: GameState, wis: int, cfg: SalesConfig) -> SpiritOutcome:
        mod = make_modifier(
            description,
            value=value,
            source=ModifierSource.SPIRIT,
            effect=effect,
            phases=cfg.permanent_phases if permanent else 1,
            charges=1,
        )
        return SpiritOutcome(spirit, modifier=mod)

    return _handler


def _tiger(state: GameState, wis: int, cfg: SalesConfig) -> SpiritOutcome:
    amount = _bonded(cfg.spirits.tiger_base, wis, cfg.spirits.wis_bond)
    mod = make_modifier(
        f"Tiger Strike: +${amount:,} on next deal",
        value=amount,
        source=ModifierSource.SPIRIT,
        effect=ModifierEffect.DEAL_BONUS,
        phases=cfg.permanent_phases,
        charges=1,
    )
    return SpiritOutcome("Tiger", modifier=mod, effects={"spirit_bond": wis * cfg.spirits.wis_bond})


def _elephant(state: GameState, wis: int, cfg: SalesConfig) -> SpiritOutcome:
    successes = sum(
        1
        for r in tuple(state.first_client_rounds) + tuple(state.whale_rounds)
        if r.action == "pitch" and r.success
    )
    per_success = _bonded(cfg.spirits.elephant_per_success, wis, cfg.spirits.elephant_wis_bond)
    return SpiritOutcome(
        "Elephant",
        money_gained=successes * per_success,
        effects={"successes": successes, "per_success": per_success},
    )


def _frog(state: GameState, wis: int, cfg: SalesConfig) -> SpiritOutcome:
    per_round = _bonded(cfg.spirits.frog_per_round, wis, cfg.spirits.frog_wis_bond)
    mod = make_modifier(
        f"Frog Fortune: +${per_round:,} per round",
        value=per_round,
        source=ModifierSource.SPIRIT,
        effect=ModifierEffect.ROUND_INCOME,
        phases=cfg.spirits.frog_duration,
    )
    return SpiritOutcome("Frog", modifier=mod, effects={"per_round": per_round})


def _deer(state: GameState, wis: int, cfg: SalesConfig) -> SpiritOutcome:
    pct = int(round(float(cfg.spirits.deer_budget_pct) * 100))
    return _tactical("Deer", f"Deer Grace: close at {pct}% of budget", ModifierEffect.PARTIAL_CLOSE, value=pct)(
        state, wis, cfg
    )


SPIRIT_HANDLERS: Dict[str, Callable[[GameState, int, SalesConfig], SpiritOutcome]] = {
    "Wolf": _instant("Wolf", lambda c: c.spirits.wolf_base),
    "Bear": _tactical("Bear", "Bear Presence: client cannot object this round", ModifierEffect.NO_OBJECTION),
    "Eagle": _tactical("Eagle", "Eagle Eye: auto-succeed next pitch", ModifierEffect.AUTO_SUCCESS),
    "Dragon": _instant("Dragon", lambda c: c.spirits.dragon_base),
    "Octopus": _tactical(
        "Octopus", "Octopus Escape: exit a negotiation without loss", ModifierEffect.ESCAPE, permanent=True
    ),
    "Owl": _instant("Owl", lambda c: c.spirits.owl_base),
    "Tiger": _tiger,
    "Deer": _deer,
    "Spider": _tactical("Spider", "Spider Web: deal protected this round", ModifierEffect.DEAL_PROTECTION),
    "Whale": _instant("Whale", lambda c: c.spirits.whale_base),
    "Elephant": _elephant,
    "Frog": _frog,
}


def use_spirit_ability(state: GameState, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> Tuple[GameState, SpiritOutcome]:
    """Consume the character's single spirit ability."""
    if state.spirit_ability_used:
        raise PreconditionViolation(
            ABILITY_ALREADY_USED,
            "Spirit ability already used",
            {"spirit": str(state.character.spirit_animal)},
        )

    spirit = str(state.character.spirit_animal)
    try:
        handler = SPIRIT_HANDLERS[spirit]
    except KeyError:
        raise ValueError(f"unknown spirit animal: {spirit!r}") from None

    outcome = handler(state, state.character.modifier("wis"), cfg)

    modifiers = state.modifiers
    if outcome.modifier is not None:
        modifiers = add_modifier(modifiers, outcome.modifier)

    new_state = replace(
        state,
        spirit_ability_used=True,
        money=int(state.money) + int(outcome.money_gained),
        modifiers=modifiers,
        choices=tuple(state.choices) + (f"spirit:{spirit}",),
    )
    return new_state, outcome
