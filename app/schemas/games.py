from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class EntropyBlockRequest(BaseModel):
    height: int = Field(..., ge=0)
    block_hash: str
    client_seed: str
    client_seed_hash: Optional[str] = None  # commitment published before the block was known


class GameStartRequest(BaseModel):
    character: Dict[str, Any]  # see rolls.character.character_from_payload


class GameBlockRequest(BaseModel):
    block: EntropyBlockRequest


class TravelChoiceRequest(BaseModel):
    choice: str  # fly | train | drive


class NegotiationActionRequest(BaseModel):
    action: str  # pitch | listen | concede | ability


class CrossroadsRequest(BaseModel):
    choice: str  # grind | climb | hunt
    block: EntropyBlockRequest


class VPChoiceRequest(BaseModel):
    choice: str  # safe | stretch | allin


class WhaleInvestmentRequest(BaseModel):
    investment: str  # research | gift | dinner | wingit


class CharacterRollRequest(BaseModel):
    name: str
    block_height: int = Field(..., ge=0)
    block_hash: str
    client_seed: Optional[str] = None  # generated server-side when omitted


class EntropyRecordRequest(BaseModel):
    height: int = Field(..., ge=0)
    block_hash: str  # as published by the chain at `height`


class CharacterVerifyRequest(BaseModel):
    character: Dict[str, Any]
    wait_seconds: Optional[float] = Field(None, ge=0, le=30)  # wait for the block instead of failing fast
