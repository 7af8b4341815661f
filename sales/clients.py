from __future__ import annotations

"""Client templates by territory (first client = easier, whale = high stakes)."""

from typing import Mapping, Tuple

from .config import DEFAULT_SALES_CONFIG, ClientTemplate, SalesConfig
from .types import Client
from .utils import floor_int


def territory_from_roll(roll: int, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> str:
    """d6 thirds: 1-2 tech, 3-4 retail, 5-6 finance."""
    r = int(roll)
    if r < 1 or r > 6:
        raise ValueError(f"territory roll must be a d6 result (got {roll!r})")
    return str(cfg.territory_by_third[(r - 1) // 2])


def _pick_template(
    table: Mapping[str, Tuple[ClientTemplate, ...]],
    territory: str,
    roll: int,
    die: int,
) -> ClientTemplate:
    r = int(roll)
    if r < 1 or r > int(die):
        raise ValueError(f"client select roll must be a d{int(die)} result (got {roll!r})")
    try:
        templates = table[str(territory)]
    except KeyError:
        raise ValueError(f"unknown territory: {territory!r}") from None
    return templates[(r - 1) % len(templates)]


def _instantiate(template: ClientTemplate, territory: str, budget_scale: float) -> Client:
    return Client(
        name=template.name,
        territory=territory,  # type: ignore[arg-type]
        budget=floor_int(int(template.budget) * float(budget_scale)),
        resistance=int(template.resistance),
        patience=int(template.patience),
        max_patience=int(template.patience),
    )


def create_first_client(
    territory: str,
    roll: int,
    budget_scale: float = 1.0,
    *,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> Client:
    return _instantiate(_pick_template(cfg.first_clients, territory, roll, cfg.negotiation.select_die), territory, budget_scale)


def create_whale_client(
    territory: str,
    roll: int,
    budget_scale: float = 1.0,
    *,
    cfg: SalesConfig = DEFAULT_SALES_CONFIG,
) -> Client:
    return _instantiate(_pick_template(cfg.whale_clients, territory, roll, cfg.negotiation.select_die), territory, budget_scale)
