"""
Pydantic models for API requests and responses.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class MintRequest(BaseModel):
    prompt: str
    imageUrl: str
    description: str = ""


class MintResponse(BaseModel):
    success: bool
    txHash: str
    explorerUrl: str
    tokenUri: str
    imageUri: str
    isFree: bool


class OwnedTokenResponse(BaseModel):
    id: int
    name: str
    description: str
    image: str


class CollectionResponse(BaseModel):
    owner: str
    tokens: List[OwnedTokenResponse]


class QuotaResponse(BaseModel):
    owner: str
    eligibleForFree: bool
    creationsToday: int
    cooldownSecondsRemaining: int
    cooldownHours: int
    freeMintsRemaining: int
    freeMintsPerDay: int
    totalCreations: Optional[int] = None
    freeToday: Optional[int] = None
    lastCreation: Optional[int] = None
    nextFreeCreation: Optional[int] = None


class GlobalStatsResponse(BaseModel):
    total: int
    free: int
    paid: int
    maxSupply: int


class MintStatusResponse(BaseModel):
    minting: bool
    state: Dict[str, Any]
    collection: List[OwnedTokenResponse]
