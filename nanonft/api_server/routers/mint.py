"""
Mint router for the NanoNFT API.

Mints run through the server's single MintOrchestrator, so a second request
while one is in flight is refused rather than queued.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from nanonft.core.mint_state import MintPhase
from nanonft.core.models import GenerationResult
from nanonft.exceptions import FailureKind, GenerationError, MintInProgressError
from nanonft.integrations.google_ai_image_client import validate_prompt
from ..dependencies import ServiceContainer, get_services, require_orchestrator
from ..schemas import MintRequest, MintResponse, MintStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/mint", tags=["mint"])

MINT_STATUS_CODES = {
    FailureKind.INVALID_INPUT: 400,
    FailureKind.INVALID_LOCATOR: 502,
    FailureKind.CONFIGURATION: 503,
    FailureKind.TIMEOUT: 504,
}


@router.post("", response_model=MintResponse)
async def mint_nft(body: MintRequest, services: ServiceContainer = Depends(get_services)):
    """Upload a generated image with its metadata and mint it."""
    orchestrator = require_orchestrator(services)
    if orchestrator.is_minting:
        return JSONResponse(status_code=409, content={"error": "A mint is already in progress"})

    try:
        prompt = validate_prompt(body.prompt, services.settings.gemini.max_prompt_length)
    except GenerationError as e:
        return JSONResponse(status_code=400, content={"error": e.message, "kind": e.kind.value})

    generation = GenerationResult(image_url=body.imageUrl, description=body.description, prompt=prompt)
    try:
        orchestrator.load_generation(generation)
        state = await orchestrator.mint()
    except MintInProgressError as e:
        return JSONResponse(status_code=409, content={"error": str(e)})

    if state.phase is not MintPhase.SUBMITTED:
        failure = state.failure
        status_code = MINT_STATUS_CODES.get(failure.kind, 502)
        return JSONResponse(
            status_code=status_code,
            content={"error": failure.message, "kind": failure.kind.value},
        )

    explorer_url = services.settings.contract.explorer_url.rstrip("/")
    return {
        "success": True,
        "txHash": state.transaction.hash,
        "explorerUrl": f"{explorer_url}/tx/{state.transaction.hash}",
        "tokenUri": state.token_uri,
        "imageUri": state.image_uri,
        "isFree": bool(state.is_free),
    }


@router.get("/status", response_model=MintStatusResponse)
async def get_mint_status(services: ServiceContainer = Depends(get_services)):
    """Current mint state and the most recently refreshed collection."""
    orchestrator = require_orchestrator(services)
    return {
        "minting": orchestrator.is_minting,
        "state": orchestrator.state.to_dict(),
        "collection": [token.to_dict() for token in orchestrator.collection],
    }
