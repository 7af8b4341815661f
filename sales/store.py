from __future__ import annotations

"""In-memory game session store.

Sessions live only for the lifetime of the process. Each session owns one
immutable GameState (replaced on every operation), the entropy blocks bound
to it so far, and the config it was started with.
"""

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from rolls.types import EntropyBlock

from .config import DEFAULT_SALES_CONFIG, SalesConfig
from .errors import GAME_NOT_FOUND, SalesGameError
from .types import GameState

# Entropy bundles in game order.
BLOCK_SLOTS = ("assignment", "first_client", "crossroads", "whale")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class GameSession:
    session_id: str
    state: GameState
    cfg: SalesConfig = DEFAULT_SALES_CONFIG
    blocks: Dict[str, EntropyBlock] = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""

    def block(self, slot: str) -> Optional[EntropyBlock]:
        return self.blocks.get(slot)

    def ordered_blocks(self) -> List[EntropyBlock]:
        return [self.blocks[s] for s in BLOCK_SLOTS if s in self.blocks]


_LOCK = threading.Lock()
_SESSIONS: Dict[str, GameSession] = {}


def create_session(state: GameState, *, cfg: SalesConfig = DEFAULT_SALES_CONFIG) -> GameSession:
    now = _now_iso()
    session = GameSession(
        session_id=str(uuid4()),
        state=state,
        cfg=cfg,
        created_at=now,
        updated_at=now,
    )
    with _LOCK:
        _SESSIONS[session.session_id] = session
    return session


def get_session(session_id: str) -> GameSession:
    with _LOCK:
        session = _SESSIONS.get(str(session_id))
    if session is None:
        raise SalesGameError(GAME_NOT_FOUND, "Game session not found", {"session_id": session_id})
    return session


def update_session(session_id: str, patch_fn: Callable[[GameSession], GameSession]) -> GameSession:
    """Apply `patch_fn` to a session atomically.

    If `patch_fn` raises, the stored session is left untouched.
    """
    with _LOCK:
        current = _SESSIONS.get(str(session_id))
        if current is None:
            raise SalesGameError(GAME_NOT_FOUND, "Game session not found", {"session_id": session_id})
        updated = replace(patch_fn(current), updated_at=_now_iso())
        _SESSIONS[current.session_id] = updated
    return updated


def clear_sessions() -> None:
    with _LOCK:
        _SESSIONS.clear()
