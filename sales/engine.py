from __future__ import annotations

"""Phase state machine (pure).

assignment -> first_trip -> first_client -> crossroads -> quarter_event
-> vp_meeting -> whale_prep -> whale -> quarter_end

Every operation checks that it runs in its own phase, takes die results that
were already derived by the caller and returns a new GameState. Setbacks go
through the loss pipeline (element reduction first, then CON); deliberate
spends (travel, whale prep) are charged in full.
"""

from dataclasses import replace
from typing import Optional, Tuple

from rolls.types import Character

from . import elements
from .clients import create_first_client, create_whale_client, territory_from_roll
from .config import DEFAULT_SALES_CONFIG, SalesConfig, TableOutcome
from .economy import calculate_budget_scale, calculate_starting_money, setback_loss
from .errors import (
    INVALID_ROLL,
    NEGOTIATION_INACTIVE,
    PRECONDITION_VIOLATION,
    WRONG_PHASE,
    PreconditionViolation,
)
from .modifiers import add_modifier, make_modifier, tick_modifiers
from .modifiers import total as modifier_total
from .types import PHASES, GameRoll, GameState, ModifierEffect, ModifierSource
from .utils import floor_int, require_choice


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _require_phase(state: GameState, phase: str, operation: str) -> None:
    if state.phase != phase:
        raise PreconditionViolation(
            WRONG_PHASE,
            f"{operation} is only allowed in phase '{phase}' (current: '{state.phase}')",
            {"operation": operation, "expected": phase, "phase": state.phase},
        )


def _require_unset(value: object, what: str) -> None:
    if value is not None:
        raise PreconditionViolation(PRECONDITION_VIOLATION, f"{what} already resolved", {"value": value})


def _table_row(cfg: SalesConfig, table: Tuple[TableOutcome, ...], roll: int, what: str) -> TableOutcome:
    row = cfg.table_outcome(table, roll)
    if row is None:
        raise PreconditionViolation(
            INVALID_ROLL,
            f"{what} roll out of range: {roll!r}",
            {"table": what, "roll": roll},
        )
    return row


def _require_select_roll(roll: int, cfg: SalesConfig) -> int:
    die = int(cfg.negotiation.select_die)
    if not 1 <= int(roll) <= die:
        raise PreconditionViolation(
            INVALID_ROLL,
            f"client select roll out of range: {roll!r}",
            {"table": "client_select", "roll": roll, "die": die},
        )
    return int(roll)


def _apply_money_change(state: GameState, amount: int, *, cfg: SalesConfig) -> GameState:
    """Gains are paid in full; setbacks go through the loss pipeline."""
    if int(amount) >= 0:
        return replace(state, money=int(state.money) + int(amount))
    lost = setback_loss(-int(amount), state.character, cfg=cfg)
    return replace(state, money=int(state.money) - lost)


def _spend(state: GameState, cost: int) -> GameState:
    return replace(state, money=int(state.money) - int(cost))


def _choice(state: GameState, tag: str) -> GameState:
    return replace(state, choices=tuple(state.choices) + (tag,))


def _table_pitch_buff(
    state: GameState,
    row: TableOutcome,
    description: str,
    *,
    source: ModifierSource,
    phases: int,
) -> GameState:
    if int(row.pitch_buff) == 0:
        return state
    mod = make_modifier(
        description.format(value=int(row.pitch_buff)),
        value=int(row.pitch_buff),
        source=source,
        effect=ModifierEffect.PITCH_BONUS,
        phases=phases,
    )
    return replace(state, modifiers=add_modifier(state.modifiers, mod))


# -----------------------------------------------------------------------------
# Lifecycle
# -----------------------------------------------------------------------------


def create_game(character: Character, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    starting = calculate_starting_money(character, cfg=cfg)
    return GameState(
        character=character,
        phase="assignment",
        starting_money=starting,
        budget_scale=calculate_budget_scale(starting, cfg=cfg),
        money=starting,
    )


def _phase_decided(state: GameState, cfg: SalesConfig) -> Optional[str]:
    """Return what is still missing before the current phase can be left."""
    phase = state.phase
    if phase == "assignment" and state.territory is None:
        return "territory not assigned"
    if phase == "first_trip":
        if state.travel_choice is None:
            return "travel not chosen"
        if state.journey_event is None:
            return "journey event not rolled"
        if rolls_drive_trouble(state, cfg=cfg) and state.drive_trouble is None:
            return "drive trouble not rolled"
    if phase == "first_client" and not state.first_client_settled:
        return "first client not settled"
    if phase == "crossroads" and state.crossroads_result is None:
        return "crossroads not resolved"
    if phase == "quarter_event" and state.quarter_event is None:
        return "quarter event not applied"
    if phase == "vp_meeting" and state.vp_choice is None:
        return "VP choice not made"
    if phase == "whale_prep" and state.whale_investment is None:
        return "whale investment not made"
    if phase == "whale" and not state.whale_settled:
        return "whale not settled"
    return None


def advance_phase(state: GameState, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    """Move to the next phase, ticking modifiers and paying Wood income."""
    idx = PHASES.index(state.phase)
    if idx >= len(PHASES) - 1:
        raise PreconditionViolation(
            WRONG_PHASE,
            "Cannot advance past the final phase",
            {"phase": state.phase},
        )
    missing = _phase_decided(state, cfg)
    if missing is not None:
        raise PreconditionViolation(
            PRECONDITION_VIOLATION,
            f"Cannot leave phase '{state.phase}': {missing}",
            {"phase": state.phase, "missing": missing},
        )
    return replace(
        state,
        phase=PHASES[idx + 1],  # type: ignore[arg-type]
        modifiers=tick_modifiers(state.modifiers),
        money=int(state.money) + elements.phase_income(state.character.element, cfg=cfg),
    )


def record_roll(state: GameState, roll: GameRoll) -> GameState:
    return replace(state, rolls=tuple(state.rolls) + (roll,))


# -----------------------------------------------------------------------------
# Phase 1: assignment
# -----------------------------------------------------------------------------


def assign_territory(state: GameState, roll: int, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    _require_phase(state, "assignment", "assign_territory")
    _require_unset(state.territory, "territory")
    try:
        territory = territory_from_roll(roll, cfg=cfg)
    except ValueError as exc:
        raise PreconditionViolation(INVALID_ROLL, str(exc), {"roll": roll}) from None
    return _choice(replace(state, territory=territory), f"territory:{territory}")  # type: ignore[arg-type]


# -----------------------------------------------------------------------------
# Phase 2: first trip
# -----------------------------------------------------------------------------


def apply_travel_choice(state: GameState, choice: str, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    _require_phase(state, "first_trip", "apply_travel_choice")
    _require_unset(state.travel_choice, "travel choice")
    key = require_choice(choice, cfg.travel_options, field="travel choice")
    option = cfg.travel_options[key]

    out = _spend(replace(state, travel_choice=key), option.cost)  # type: ignore[arg-type]
    if int(option.pitch_bonus):
        mod = make_modifier(
            f"Well Rested: +{int(option.pitch_bonus)} to first negotiation",
            value=int(option.pitch_bonus),
            source=ModifierSource.TRAVEL,
            effect=ModifierEffect.PITCH_BONUS,
            phases=cfg.travel_buff_phases,
        )
        out = replace(out, modifiers=add_modifier(out.modifiers, mod))
    return _choice(out, f"travel:{key}")


def rolls_drive_trouble(state: GameState, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> bool:
    option = cfg.travel_options.get(str(state.travel_choice or ""))
    return bool(option is not None and option.rolls_drive_trouble)


def apply_journey_event(state: GameState, roll: int, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    _require_phase(state, "first_trip", "apply_journey_event")
    if state.travel_choice is None:
        raise PreconditionViolation(PRECONDITION_VIOLATION, "Choose travel before the journey event")
    _require_unset(state.journey_event, "journey event")
    row = _table_row(cfg, cfg.journey_events, roll, "journey")

    out = _apply_money_change(replace(state, journey_event=row.name), row.money_change, cfg=cfg)
    return _table_pitch_buff(
        out,
        row,
        "Market Intel: +{value} to next pitch",
        source=ModifierSource.JOURNEY,
        phases=cfg.travel_buff_phases,
    )


def apply_drive_trouble(state: GameState, roll: int, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    _require_phase(state, "first_trip", "apply_drive_trouble")
    if not rolls_drive_trouble(state, cfg=cfg):
        raise PreconditionViolation(
            PRECONDITION_VIOLATION,
            "Drive trouble does not apply to this travel choice",
            {"travel_choice": state.travel_choice},
        )
    _require_unset(state.drive_trouble, "drive trouble")
    row = _table_row(cfg, cfg.drive_trouble_events, roll, "drive")

    out = _apply_money_change(replace(state, drive_trouble=row.name), row.money_change, cfg=cfg)
    return _table_pitch_buff(
        out,
        row,
        "Drive Bonus: +{value} to first pitch",
        source=ModifierSource.DRIVE,
        phases=cfg.travel_buff_phases,
    )


# -----------------------------------------------------------------------------
# Phase 3: first client
# -----------------------------------------------------------------------------


def init_first_client(state: GameState, roll: int, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    _require_phase(state, "first_client", "init_first_client")
    if state.territory is None:
        raise PreconditionViolation(PRECONDITION_VIOLATION, "Territory must be assigned before the first client")
    _require_unset(state.first_client, "first client")
    roll = _require_select_roll(roll, cfg)
    client = create_first_client(state.territory, roll, state.budget_scale, cfg=cfg)
    return replace(state, first_client=client, first_client_rounds=())


def complete_first_client(state: GameState, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    """Pay out the first negotiation (deal value + Fire/Metal/Air bonuses)."""
    _require_phase(state, "first_client", "complete_first_client")
    client = state.first_client
    if client is None:
        raise PreconditionViolation(NEGOTIATION_INACTIVE, "No first client to complete")
    if client.active:
        raise PreconditionViolation(
            PRECONDITION_VIOLATION,
            "First client negotiation is still ongoing",
            {"patience": client.patience},
        )
    if state.first_client_settled:
        raise PreconditionViolation(PRECONDITION_VIOLATION, "First client already settled")

    value = int(client.deal_value)
    bonus = elements.deal_bonus(state.character.element, value, first_deal=True, cfg=cfg)
    return replace(state, money=int(state.money) + value + bonus, first_client_settled=True)


# -----------------------------------------------------------------------------
# Phase 4: crossroads
# -----------------------------------------------------------------------------


def crossroads_modifier(character: Character, choice: str, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> int:
    key = require_choice(choice, cfg.crossroads_options, field="crossroads choice")
    option = cfg.crossroads_options[key]
    return character.modifier(option.stat) + elements.check_bonus(character.element, cfg=cfg)


def apply_crossroads_choice(
    state: GameState,
    choice: str,
    roll: int,
    *,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> GameState:
    _require_phase(state, "crossroads", "apply_crossroads_choice")
    _require_unset(state.crossroads_choice, "crossroads")
    key = require_choice(choice, cfg.crossroads_options, field="crossroads choice")
    if int(roll) < 1 or int(roll) > int(cfg.crossroads_die):
        raise PreconditionViolation(INVALID_ROLL, f"crossroads roll out of range: {roll!r}", {"roll": roll})
    option = cfg.crossroads_options[key]

    total = int(roll) + crossroads_modifier(state.character, key, cfg=cfg)
    success = total >= int(option.dc)
    result = "success" if success else "fail"

    out = replace(
        state,
        money=int(state.money) + int(option.success_money if success else option.fail_money),
        crossroads_choice=key,  # type: ignore[arg-type]
        crossroads_result=result,  # type: ignore[arg-type]
    )

    if key == "hunt":
        value = int(option.whale_bonus if success else option.whale_penalty)
        label = "Hunt Success" if success else "Hunt Failure"
        mod = make_modifier(
            f"{label}: {value:+d} to Whale negotiations",
            value=value,
            source=ModifierSource.HUNT,
            effect=ModifierEffect.PITCH_BONUS,
            phases=cfg.permanent_phases,
            whale_only=True,
        )
        out = replace(out, modifiers=add_modifier(out.modifiers, mod))

    return _choice(out, f"crossroads:{key}:{result}")


# -----------------------------------------------------------------------------
# Phase 5: quarter event
# -----------------------------------------------------------------------------


def apply_quarter_event(state: GameState, roll: int, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    _require_phase(state, "quarter_event", "apply_quarter_event")
    _require_unset(state.quarter_event, "quarter event")
    row = _table_row(cfg, cfg.quarter_events, roll, "quarter_event")
    return _apply_money_change(replace(state, quarter_event=row.name), row.money_change, cfg=cfg)


# -----------------------------------------------------------------------------
# Phase 6: VP meeting
# -----------------------------------------------------------------------------


def apply_vp_choice(state: GameState, choice: str, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    _require_phase(state, "vp_meeting", "apply_vp_choice")
    _require_unset(state.vp_choice, "VP choice")
    key = require_choice(choice, cfg.vp_choices, field="VP choice")
    vp = cfg.vp_choices[key]
    out = replace(state, vp_choice=key, legendary_unlocked=not vp.legendary_gated)  # type: ignore[arg-type]
    return _choice(out, f"vp:{key}")


# -----------------------------------------------------------------------------
# Phase 7: whale prep
# -----------------------------------------------------------------------------


def apply_whale_investment(state: GameState, investment: str, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    _require_phase(state, "whale_prep", "apply_whale_investment")
    _require_unset(state.whale_investment, "whale investment")
    key = require_choice(investment, cfg.whale_investments, field="whale investment")
    option = cfg.whale_investments[key]

    out = _spend(replace(state, whale_investment=key), option.cost)  # type: ignore[arg-type]
    ledger = out.modifiers
    if int(option.listen_bonus):
        ledger = add_modifier(
            ledger,
            make_modifier(
                f"Research: +{int(option.listen_bonus)} to Listen actions",
                value=int(option.listen_bonus),
                source=ModifierSource.RESEARCH,
                effect=ModifierEffect.LISTEN_BONUS,
                phases=cfg.permanent_phases,
            ),
        )
    if int(option.pitch_bonus):
        ledger = add_modifier(
            ledger,
            make_modifier(
                f"Gift: +{int(option.pitch_bonus)} to all checks",
                value=int(option.pitch_bonus),
                source=ModifierSource.GIFT,
                effect=ModifierEffect.PITCH_BONUS,
                phases=cfg.permanent_phases,
            ),
        )
    if int(option.resistance_reduction):
        ledger = add_modifier(
            ledger,
            make_modifier(
                f"Dinner: -{int(option.resistance_reduction)} whale resistance",
                value=int(option.resistance_reduction),
                source=ModifierSource.DINNER,
                effect=ModifierEffect.WHALE_RESISTANCE,
                phases=cfg.permanent_phases,
            ),
        )
    return _choice(replace(out, modifiers=ledger), f"whaleinvest:{key}")


def apply_lucky_item(state: GameState, roll: int, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    _require_phase(state, "whale_prep", "apply_lucky_item")
    _require_unset(state.lucky_item, "lucky item")
    row = _table_row(cfg, cfg.lucky_items, roll, "lucky")
    out = _apply_money_change(replace(state, lucky_item=row.name), row.money_change, cfg=cfg)
    return _table_pitch_buff(
        out,
        row,
        f"Lucky Item ({row.name}): +{{value}} to pitches",
        source=ModifierSource.LUCKY,
        phases=cfg.permanent_phases,
    )


# -----------------------------------------------------------------------------
# Phase 8: the whale
# -----------------------------------------------------------------------------


def init_whale_client(state: GameState, roll: int, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    _require_phase(state, "whale", "init_whale_client")
    if state.territory is None:
        raise PreconditionViolation(PRECONDITION_VIOLATION, "Territory must be assigned before the whale")
    _require_unset(state.whale_client, "whale client")

    roll = _require_select_roll(roll, cfg)
    client = create_whale_client(state.territory, roll, state.budget_scale, cfg=cfg)
    reduction = modifier_total(state.modifiers, ModifierEffect.WHALE_RESISTANCE, whale=True)
    if reduction:
        floor = int(cfg.negotiation.whale_resistance_floor)
        client = replace(client, resistance=max(floor, int(client.resistance) - reduction))
    option = cfg.whale_investments.get(str(state.whale_investment or ""))
    if option is not None:
        if int(option.patience_bonus):
            client = replace(
                client,
                patience=int(client.patience) + int(option.patience_bonus),
                max_patience=int(client.max_patience) + int(option.patience_bonus),
            )
    return replace(state, whale_client=client, whale_rounds=())


def whale_payout(state: GameState, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> Tuple[int, int]:
    """(earned, penalty) for the whale: floor(deal * VP multiplier) + bonuses, or the all-in penalty."""
    if state.whale_client is None or state.vp_choice is None:
        raise PreconditionViolation(PRECONDITION_VIOLATION, "Whale client and VP choice required")
    vp = cfg.vp_choices[state.vp_choice]
    value = floor_int(int(state.whale_client.deal_value) * float(vp.whale_multiplier))
    earned = value + elements.deal_bonus(state.character.element, value, first_deal=False, cfg=cfg)
    penalty = 0
    if value == 0 and int(vp.failure_penalty) > 0:
        penalty = setback_loss(int(vp.failure_penalty), state.character, cfg=cfg)
    return earned, penalty


def complete_whale(state: GameState, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameState:
    _require_phase(state, "whale", "complete_whale")
    client = state.whale_client
    if client is None:
        raise PreconditionViolation(NEGOTIATION_INACTIVE, "No whale client to complete")
    if client.active:
        raise PreconditionViolation(
            PRECONDITION_VIOLATION,
            "Whale negotiation is still ongoing",
            {"patience": client.patience},
        )
    if state.whale_settled:
        raise PreconditionViolation(PRECONDITION_VIOLATION, "Whale already settled")

    earned, penalty = whale_payout(state, cfg=cfg)
    return replace(state, money=int(state.money) + earned - penalty, whale_settled=True)
