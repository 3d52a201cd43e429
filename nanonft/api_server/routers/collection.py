"""
Collection and quota router for the NanoNFT API.

This module handles read-only contract endpoints:
- A wallet's owned tokens (full ownership scan)
- A wallet's free-mint quota and creation stats
- Collection-wide mint statistics
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from web3 import AsyncWeb3

from ..dependencies import ServiceContainer, get_services
from ..schemas import CollectionResponse, GlobalStatsResponse, QuotaResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["collection"])


def _require_address(address: str) -> str:
    if not AsyncWeb3.is_address(address):
        raise HTTPException(status_code=400, detail=f"Invalid wallet address: {address}")
    return address


@router.get("/collection/{address}", response_model=CollectionResponse)
async def get_collection(address: str, services: ServiceContainer = Depends(get_services)):
    """Tokens owned by a wallet among recent mints, newest first."""
    owner = _require_address(address)

    known_creation_count = None
    try:
        stats = await services.contract.get_user_creation_stats(owner)
        known_creation_count = stats.total_creations
    except Exception as e:
        logger.error(f"Error fetching user stats for {owner}: {e}")

    tokens = await services.scanner.full_scan(owner, known_creation_count)
    return {"owner": owner, "tokens": [token.to_dict() for token in tokens]}


@router.get("/quota/{address}", response_model=QuotaResponse)
async def get_quota(address: str, services: ServiceContainer = Depends(get_services)):
    """Free-mint eligibility and creation stats for a wallet."""
    owner = _require_address(address)
    per_day = services.settings.mint.free_mints_per_day

    try:
        quota = await services.contract.can_create_free_nft(owner)
    except Exception as e:
        logger.error(f"Error fetching mint eligibility for {owner}: {e}")
        raise HTTPException(status_code=502, detail="Failed to read mint eligibility from contract")

    response = {
        "owner": owner,
        "eligibleForFree": quota.eligible_for_free,
        "creationsToday": quota.creations_today,
        "cooldownSecondsRemaining": quota.cooldown_seconds_remaining,
        "cooldownHours": quota.cooldown_hours,
        "freeMintsRemaining": quota.free_mints_remaining(per_day),
        "freeMintsPerDay": per_day,
    }

    try:
        stats = await services.contract.get_user_creation_stats(owner)
        response.update({
            "totalCreations": stats.total_creations,
            "freeToday": stats.free_today,
            "lastCreation": stats.last_creation,
            "nextFreeCreation": stats.next_free_creation,
        })
    except Exception as e:
        logger.error(f"Error fetching user stats for {owner}: {e}")

    return response


@router.get("/stats", response_model=GlobalStatsResponse)
async def get_global_stats(services: ServiceContainer = Depends(get_services)):
    """Collection-wide mint counters."""
    try:
        stats = await services.contract.get_global_stats()
    except Exception as e:
        logger.error(f"Error fetching global stats: {e}")
        raise HTTPException(status_code=502, detail="Failed to read global stats from contract")
    return {"total": stats.total, "free": stats.free, "paid": stats.paid, "maxSupply": stats.max_supply}
