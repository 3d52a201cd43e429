"""
Image generation router.

`POST /api/generate-nft` turns a prompt into a data-URL image. Failure kinds
map onto HTTP status codes here and nowhere else.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from nanonft.exceptions import FailureKind, GenerationError
from nanonft.integrations.google_ai_image_client import validate_prompt
from ..dependencies import ServiceContainer, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generate"])

GENERATION_STATUS_CODES = {
    FailureKind.INVALID_INPUT: 400,
    FailureKind.AUTH: 401,
    FailureKind.QUOTA_EXCEEDED: 429,
    FailureKind.SAFETY_REJECTED: 400,
}


def generation_error_response(error: GenerationError) -> JSONResponse:
    status_code = GENERATION_STATUS_CODES.get(error.kind, 500)
    content = {"error": error.message}
    if error.kind is FailureKind.QUOTA_EXCEEDED:
        content.update(error.details)
    return JSONResponse(status_code=status_code, content=content)


@router.post("/generate-nft")
async def generate_nft(request: Request, services: ServiceContainer = Depends(get_services)):
    """Generate an NFT image from `{prompt}`."""
    try:
        body = await request.json()
    except ValueError:
        body = None
    prompt = body.get("prompt") if isinstance(body, dict) else None

    try:
        max_length = services.settings.gemini.max_prompt_length
        validate_prompt(prompt, max_length)

        if services.generation_client is None:
            logger.error("GEMINI_API_KEY not found")
            return JSONResponse(status_code=500, content={"error": "Server configuration error"})

        result = await services.generation_client.generate(prompt)
    except GenerationError as e:
        if e.kind is not FailureKind.INVALID_INPUT:
            logger.error(f"NFT Generation Error ({e.kind.value}): {e.message}")
        return generation_error_response(e)
    except Exception as e:
        logger.exception(f"NFT Generation Error: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to generate NFT. Please try again."})

    return {"success": True, **result.to_dict()}


@router.get("/generate-nft")
async def generate_nft_method_not_allowed():
    return JSONResponse(status_code=405, content={"error": "Method not allowed"})
