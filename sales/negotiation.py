from __future__ import annotations

"""Negotiation engine (pure; no I/O).

One action is resolved per round against the client of a negotiation slot
("first_client" or "whale"):

- pitch:   d20 + pitch modifier vs resistance; value on success; patience -1
- listen:  no pitch roll; +2 (plus research) to the next pitch; patience -1
- concede: no roll; close now at 80% of the accumulated deal value
- ability: the character's single spirit-animal use

A body-language d6 accompanies every pitch and listen. It is shifted by
DEX/WIS and applied after the pitch result. The client leaves once patience
reaches 0; the accumulated deal value is kept either way.
"""

from dataclasses import replace
from typing import Any, Dict, Iterable, Optional, Tuple

from .config import DEFAULT_SALES_CONFIG, SalesConfig
from .economy import closing_bonus, pitch_modifier, shift_body_language_roll
from .errors import (
    INVALID_CHOICE,
    INVALID_ROLL,
    MISSING_INPUT,
    NEGOTIATION_INACTIVE,
    WRONG_PHASE,
    MissingInput,
    PreconditionViolation,
)
from .modifiers import add_modifier, consume, has_effect, make_modifier, select
from .modifiers import total as modifier_total
from .spirits import use_spirit_ability
from .types import (
    ActiveModifier,
    BodyLanguage,
    Client,
    GameState,
    ModifierEffect,
    ModifierSource,
    NegotiationOutcome,
    NegotiationRoundResult,
    NegotiationSlot,
)
from .utils import floor_int

NEGOTIATION_ACTIONS: Tuple[str, ...] = ("pitch", "listen", "concede", "ability")

# Guards that only last for the round they are spent on.
_ROUND_GUARDS: Tuple[ModifierEffect, ...] = (ModifierEffect.NO_OBJECTION, ModifierEffect.DEAL_PROTECTION)


# -----------------------------------------------------------------------------
# Body language
# -----------------------------------------------------------------------------


def interpret_body_language(roll: int) -> BodyLanguage:
    r = int(roll)
    if r <= 1:
        return "arms_crossed"
    if r == 2:
        return "skeptical"
    if r in (3, 4):
        return "neutral"
    if r == 5:
        return "interested"
    return "engaged"


def apply_body_language(
    client: Client,
    body_language: BodyLanguage,
    *,
    ignore_patience_drain: bool = False,
    ignore_resistance_rise: bool = False,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> Client:
    """Apply one body-language outcome. Patience never increases."""
    ncfg = cfg.negotiation
    patience = int(client.patience)
    resistance = int(client.resistance)
    deal_value = int(client.deal_value)

    if body_language == "arms_crossed":
        if not ignore_patience_drain:
            patience = max(0, patience - 2)
        if not ignore_resistance_rise:
            resistance += 1
    elif body_language == "skeptical":
        if not ignore_resistance_rise:
            resistance += 2
    elif body_language == "interested":
        resistance = max(int(ncfg.resistance_floor), resistance - 1)
    elif body_language == "engaged":
        resistance = max(int(ncfg.resistance_floor), resistance - 2)
        deal_value += floor_int(deal_value * float(ncfg.engaged_deal_pct))

    return replace(
        client,
        patience=patience,
        resistance=resistance,
        deal_value=deal_value,
        active=bool(client.active) and patience > 0,
    )


# -----------------------------------------------------------------------------
# Pitch value
# -----------------------------------------------------------------------------


def calculate_pitch_value(
    budget: int,
    margin: int,
    *,
    closing: int = 0,
    deal_bonus: int = 0,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> int:
    """floor(floor(budget*15%) * (1 + min(25%, 5%*margin))) + closing + deal buffs, min 100."""
    ncfg = cfg.negotiation
    base_value = floor_int(int(budget) * float(ncfg.base_value_pct))
    margin_bonus = min(int(margin) * float(ncfg.margin_bonus_per_point), float(ncfg.margin_bonus_cap))
    value = floor_int(base_value * (1 + margin_bonus))
    value += int(closing)
    value += int(deal_bonus)
    return max(int(value), int(ncfg.min_pitch_value))


def negotiation_outcome(client: Client) -> NegotiationOutcome:
    if client.active:
        return "ongoing"
    return "closed" if int(client.deal_value) > 0 else "lost"


# -----------------------------------------------------------------------------
# Preconditions
# -----------------------------------------------------------------------------


def _require_live_client(state: GameState, slot: NegotiationSlot) -> Client:
    if slot not in ("first_client", "whale"):
        raise PreconditionViolation(INVALID_CHOICE, f"Unknown negotiation slot: {slot!r}")
    if state.phase != slot:
        raise PreconditionViolation(
            WRONG_PHASE,
            f"Negotiation '{slot}' is not available in phase '{state.phase}'",
            {"phase": state.phase, "slot": slot},
        )
    client = state.client_for(slot)
    if client is None:
        raise PreconditionViolation(
            NEGOTIATION_INACTIVE,
            f"Negotiation '{slot}' has not started",
            {"slot": slot, "territory": state.territory},
        )
    if not client.active:
        raise PreconditionViolation(
            NEGOTIATION_INACTIVE,
            f"Negotiation '{slot}' is over",
            {"slot": slot, "outcome": negotiation_outcome(client)},
        )
    return client


def _require_roll(value: Optional[int], *, name: str, die: int) -> int:
    if value is None:
        raise MissingInput(MISSING_INPUT, f"{name} roll is required", {"roll": name, "die": die})
    v = int(value)
    if v < 1 or v > int(die):
        raise PreconditionViolation(
            INVALID_ROLL,
            f"{name} roll must be in 1..{die} (got {value!r})",
            {"roll": name, "die": die, "value": value},
        )
    return v


def _store(
    state: GameState,
    slot: NegotiationSlot,
    client: Client,
    result: NegotiationRoundResult,
    *,
    modifiers: Optional[Tuple[ActiveModifier, ...]] = None,
    money_delta: int = 0,
) -> GameState:
    fields: Dict[str, Any] = {
        "money": int(state.money) + int(money_delta),
    }
    if modifiers is not None:
        fields["modifiers"] = modifiers
    if slot == "first_client":
        fields["first_client"] = client
        fields["first_client_rounds"] = tuple(state.first_client_rounds) + (result,)
    else:
        fields["whale_client"] = client
        fields["whale_rounds"] = tuple(state.whale_rounds) + (result,)
    return replace(state, **fields)


def _body_language_round(
    state: GameState,
    client: Client,
    raw_roll: int,
    negotiation_round: int,
    *,
    whale: bool,
    cfg: SalesConfig,
) -> Tuple[Client, int, BodyLanguage, Dict[str, Any]]:
    shifted = shift_body_language_roll(raw_roll, state.character, negotiation_round)
    body_language = interpret_body_language(shifted)
    no_objection = has_effect(state.modifiers, ModifierEffect.NO_OBJECTION, whale=whale)
    protected = has_effect(state.modifiers, ModifierEffect.DEAL_PROTECTION, whale=whale)
    updated = apply_body_language(
        client,
        body_language,
        ignore_patience_drain=no_objection,
        ignore_resistance_rise=protected,
        cfg=cfg,
    )
    effects: Dict[str, Any] = {}
    if no_objection:
        effects["no_objection"] = True
    if protected:
        effects["deal_protection"] = True
    return updated, shifted, body_language, effects


def _spend_round_guards(ledger: Tuple[ActiveModifier, ...], *, whale: bool) -> Tuple[ActiveModifier, ...]:
    for effect in _ROUND_GUARDS:
        ledger = consume(ledger, effect, whale=whale)
    return ledger


def _round_income(ledger: Iterable[ActiveModifier], *, whale: bool) -> int:
    return modifier_total(ledger, ModifierEffect.ROUND_INCOME, whale=whale)


# -----------------------------------------------------------------------------
# Actions
# -----------------------------------------------------------------------------


def resolve_pitch(
    state: GameState,
    slot: NegotiationSlot,
    pitch_roll: Optional[int],
    body_language_roll: Optional[int],
    *,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> Tuple[GameState, NegotiationRoundResult]:
    client = _require_live_client(state, slot)
    ncfg = cfg.negotiation
    roll = _require_roll(pitch_roll, name="pitch", die=ncfg.pitch_die)
    body_raw = _require_roll(body_language_roll, name="body_language", die=ncfg.body_language_die)

    whale = slot == "whale"
    round_no = len(state.rounds_for(slot)) + 1
    ledger = tuple(state.modifiers)

    modifier = pitch_modifier(
        state.character, client.territory, ledger, round_no, whale=whale, cfg=cfg
    )
    total = roll + modifier
    target = int(client.resistance)
    auto_success = has_effect(ledger, ModifierEffect.AUTO_SUCCESS, whale=whale)
    success = auto_success or total >= target

    effects: Dict[str, Any] = {}
    value = 0
    updated = client
    if success:
        deal_bonus = modifier_total(ledger, ModifierEffect.DEAL_BONUS, whale=whale)
        margin = total - target
        if auto_success:
            effects["auto_success"] = True
            margin = max(0, margin)
        value = calculate_pitch_value(
            client.budget,
            margin,
            closing=closing_bonus(state.character, cfg=cfg),
            deal_bonus=deal_bonus,
            cfg=cfg,
        )
        if deal_bonus:
            effects["deal_bonus"] = deal_bonus
            ledger = consume(ledger, ModifierEffect.DEAL_BONUS, whale=whale)
        updated = replace(updated, deal_value=int(updated.deal_value) + value)

    patience = max(0, int(updated.patience) - 1)
    updated = replace(updated, patience=patience, active=patience > 0)

    updated, shifted, body_language, guard_effects = _body_language_round(
        replace(state, modifiers=ledger), updated, body_raw, round_no, whale=whale, cfg=cfg
    )
    effects.update(guard_effects)

    # Listen buffs and one-shot checks are spent by this pitch.
    ledger = consume(ledger, ModifierEffect.PITCH_BONUS, whale=whale)
    ledger = consume(ledger, ModifierEffect.AUTO_SUCCESS, whale=whale)
    ledger = _spend_round_guards(ledger, whale=whale)

    income = _round_income(ledger, whale=whale)

    result = NegotiationRoundResult(
        round=round_no,
        action="pitch",
        success=bool(success),
        pitch_roll=roll,
        pitch_modifier=modifier,
        pitch_total=total,
        target=target,
        body_language_roll=body_raw,
        body_language_shifted=shifted,
        body_language=body_language,
        deal_value_gained=value,
        money_gained=income,
        patience_after=int(updated.patience),
        resistance_after=int(updated.resistance),
        deal_value_after=int(updated.deal_value),
        client_active=bool(updated.active),
        effects=effects,
    )
    return _store(state, slot, updated, result, modifiers=ledger, money_delta=income), result


def resolve_listen(
    state: GameState,
    slot: NegotiationSlot,
    body_language_roll: Optional[int],
    *,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> Tuple[GameState, NegotiationRoundResult]:
    client = _require_live_client(state, slot)
    ncfg = cfg.negotiation
    body_raw = _require_roll(body_language_roll, name="body_language", die=ncfg.body_language_die)

    whale = slot == "whale"
    round_no = len(state.rounds_for(slot)) + 1
    ledger = tuple(state.modifiers)

    patience = max(0, int(client.patience) - 1)
    updated = replace(client, patience=patience, active=patience > 0)
    updated, shifted, body_language, effects = _body_language_round(
        state, updated, body_raw, round_no, whale=whale, cfg=cfg
    )

    bonus = int(ncfg.listen_bonus) + modifier_total(ledger, ModifierEffect.LISTEN_BONUS, whale=whale)
    ledger = _spend_round_guards(ledger, whale=whale)
    ledger = add_modifier(
        ledger,
        make_modifier(
            f"Listen Bonus: +{bonus} to next pitch",
            value=bonus,
            source=ModifierSource.LISTEN,
            effect=ModifierEffect.PITCH_BONUS,
            phases=1,
            charges=1,
        ),
    )
    effects["listen_bonus"] = bonus

    income = _round_income(ledger, whale=whale)

    result = NegotiationRoundResult(
        round=round_no,
        action="listen",
        body_language_roll=body_raw,
        body_language_shifted=shifted,
        body_language=body_language,
        money_gained=income,
        patience_after=int(updated.patience),
        resistance_after=int(updated.resistance),
        deal_value_after=int(updated.deal_value),
        client_active=bool(updated.active),
        effects=effects,
    )
    return _store(state, slot, updated, result, modifiers=ledger, money_delta=income), result


def resolve_concede(
    state: GameState,
    slot: NegotiationSlot,
    *,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> Tuple[GameState, NegotiationRoundResult]:
    """Close immediately at 80% of the deal value (Octopus: 100%, Deer: half budget floor)."""
    client = _require_live_client(state, slot)
    whale = slot == "whale"
    round_no = len(state.rounds_for(slot)) + 1
    ledger = tuple(state.modifiers)

    deal_value = int(client.deal_value)
    award = floor_int(deal_value * float(cfg.negotiation.concede_pct))
    effects: Dict[str, Any] = {}

    if has_effect(ledger, ModifierEffect.ESCAPE, whale=whale):
        award = deal_value
        effects["escape"] = True
        ledger = consume(ledger, ModifierEffect.ESCAPE, whale=whale)

    partial = select(ledger, ModifierEffect.PARTIAL_CLOSE, whale=whale)
    if partial:
        pct = max(int(m.value) for m in partial)
        award = max(award, floor_int(int(client.budget) * pct / 100.0))
        effects["partial_close_pct"] = pct
        ledger = consume(ledger, ModifierEffect.PARTIAL_CLOSE, whale=whale)

    updated = replace(client, deal_value=int(award), active=False)
    result = NegotiationRoundResult(
        round=round_no,
        action="concede",
        deal_value_gained=int(award) - deal_value,
        patience_after=int(updated.patience),
        resistance_after=int(updated.resistance),
        deal_value_after=int(updated.deal_value),
        client_active=False,
        effects=effects,
    )
    return _store(state, slot, updated, result, modifiers=ledger), result


def resolve_ability(
    state: GameState,
    slot: NegotiationSlot,
    *,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> Tuple[GameState, NegotiationRoundResult]:
    """Spend the spirit ability; takes a round number but no patience."""
    client = _require_live_client(state, slot)
    round_no = len(state.rounds_for(slot)) + 1

    after, outcome = use_spirit_ability(state, cfg=cfg)
    effects: Dict[str, Any] = {"spirit": outcome.spirit}
    effects.update(outcome.effects)
    if outcome.modifier is not None:
        effects["modifier"] = outcome.modifier.to_payload()

    result = NegotiationRoundResult(
        round=round_no,
        action="ability",
        money_gained=int(outcome.money_gained),
        patience_after=int(client.patience),
        resistance_after=int(client.resistance),
        deal_value_after=int(client.deal_value),
        client_active=bool(client.active),
        effects=effects,
    )
    # Money and ledger were already updated by use_spirit_ability.
    return _store(after, slot, client, result), result


def resolve_action(
    state: GameState,
    slot: NegotiationSlot,
    action: str,
    *,
    pitch_roll: Optional[int] = None,
    body_language_roll: Optional[int] = None,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> Tuple[GameState, NegotiationRoundResult]:
    act = str(action or "").strip().lower()
    if act == "pitch":
        return resolve_pitch(state, slot, pitch_roll, body_language_roll, cfg=cfg)
    if act == "listen":
        return resolve_listen(state, slot, body_language_roll, cfg=cfg)
    if act == "concede":
        return resolve_concede(state, slot, cfg=cfg)
    if act == "ability":
        return resolve_ability(state, slot, cfg=cfg)
    raise PreconditionViolation(
        INVALID_CHOICE,
        f"Unknown negotiation action: {action!r}",
        {"allowed": list(NEGOTIATION_ACTIONS)},
    )
