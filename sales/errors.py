from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class SalesGameError(Exception):
    """Structured error for sales game flows.

    The host layer can map these to HTTP 4xx/5xx while keeping a stable
    machine-readable code for client/UI. A lost negotiation is a normal
    outcome and never raises.
    """

    code: str
    message: str
    details: Optional[Any] = None

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code}: {self.message}"


class PreconditionViolation(SalesGameError):
    """Caller error: the operation is not valid for the current game state."""


class MissingInput(SalesGameError):
    """A die roll (or other input) required by the operation was not supplied."""


# Error codes (stable API surface)
PRECONDITION_VIOLATION = "PRECONDITION_VIOLATION"
MISSING_INPUT = "MISSING_INPUT"
WRONG_PHASE = "WRONG_PHASE"
INVALID_CHOICE = "INVALID_CHOICE"
ABILITY_ALREADY_USED = "ABILITY_ALREADY_USED"
NEGOTIATION_INACTIVE = "NEGOTIATION_INACTIVE"
INVALID_ROLL = "INVALID_ROLL"
TIER_NOT_STORABLE = "TIER_NOT_STORABLE"
GAME_NOT_FOUND = "GAME_NOT_FOUND"
