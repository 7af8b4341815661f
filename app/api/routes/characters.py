from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from rolls import (
    InMemoryEntropySource,
    character_from_payload,
    commit_client_seed,
    generate_client_seed,
    roll_character,
    verify_character,
)
from app.schemas.games import CharacterRollRequest, CharacterVerifyRequest, EntropyRecordRequest

router = APIRouter()
logger = logging.getLogger(__name__)

# Block hashes as observed by this host. Verification never trusts a hash sent
# by the client being audited.
ENTROPY_SOURCE = InMemoryEntropySource()


@router.get("/api/characters/commitment")
async def api_characters_commitment():
    """Fresh client seed plus the commitment to publish before the block is known."""
    seed = generate_client_seed()
    return {"client_seed": seed, "client_seed_hash": commit_client_seed(seed)}


@router.post("/api/characters/roll")
async def api_characters_roll(req: CharacterRollRequest):
    try:
        seed = req.client_seed or generate_client_seed()
        character = roll_character(req.name, req.block_height, req.block_hash, seed)
        return {
            "character": character.to_payload(),
            "client_seed_hash": commit_client_seed(seed),
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("character roll failed")
        raise HTTPException(status_code=500, detail=f"character roll failed: {e}")


@router.post("/api/entropy/blocks")
async def api_entropy_record(req: EntropyRecordRequest):
    """Record a chain block hash seen by the host (admin-guarded like every POST)."""
    ENTROPY_SOURCE.add(req.height, req.block_hash)
    logger.info("ENTROPY_BLOCK_RECORDED height=%s", req.height)
    return {"height": req.height, "current_height": ENTROPY_SOURCE.current_height()}


@router.post("/api/characters/verify")
def api_characters_verify(req: CharacterVerifyRequest):
    """Re-derive a character against the block hash this host has on record.

    Plain `def` so a `wait_seconds` wait holds a threadpool worker.
    """
    try:
        character = character_from_payload(req.character)
        return verify_character(character, ENTROPY_SOURCE, timeout=req.wait_seconds).to_payload()
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("character verification failed")
        raise HTTPException(status_code=500, detail=f"character verification failed: {e}")
