"""
Google AI Image Client

Generates NFT artwork from a text prompt with the google-genai SDK, trying an
ordered list of Gemini models and normalizing the response into a data URL.
"""

import base64
import logging
import time
from typing import Any, List, Optional, Sequence

from google import genai

from nanonft.config import GeminiConfig
from nanonft.core.models import GenerationResult
from nanonft.exceptions import FailureKind, GenerationError
from nanonft.utils.logging_config import performance_logger

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"
MAX_PROMPT_LENGTH = 500

QUOTA_REMEDIATION = {
    "details": (
        "Your API key doesn't have access to image generation. Please enable billing and "
        "request quota increase for 'generativelanguage.googleapis.com' in Google Cloud Console."
    ),
    "help": (
        "1. Go to Google Cloud Console → Billing → Enable Billing\n"
        "2. Go to APIs & Services → Quotas → Find 'Generative Language API'\n"
        "3. Request quota increase for image generation"
    ),
    "link": "https://console.cloud.google.com/billing",
    "retryAfter": "Not applicable - requires billing setup",
}


def validate_prompt(prompt: Any, max_length: int = MAX_PROMPT_LENGTH) -> str:
    """
    Check a prompt before any network call and return it trimmed.

    Raises:
        GenerationError: kind InvalidInput when the prompt is not a string,
            blank, or longer than max_length
    """
    if not isinstance(prompt, str) or not prompt.strip():
        raise GenerationError(
            "Prompt is required and must be a non-empty string", FailureKind.INVALID_INPUT
        )
    if len(prompt) > max_length:
        raise GenerationError(
            f"Prompt must be {max_length} characters or less", FailureKind.INVALID_INPUT
        )
    return prompt.strip()


def classify_upstream_error(error: Optional[BaseException]) -> GenerationError:
    """Map an SDK error onto the generation failure taxonomy by its message."""
    message = str(error) if error else "No model produced a response"
    if "API_KEY" in message:
        return GenerationError("Authentication error", FailureKind.AUTH)
    if "QUOTA" in message:
        return GenerationError(
            "Gemini API Not Properly Configured",
            FailureKind.QUOTA_EXCEEDED,
            details=dict(QUOTA_REMEDIATION),
        )
    if "SAFETY" in message:
        return GenerationError(
            "Content violates safety guidelines. Please try a different prompt.",
            FailureKind.SAFETY_REJECTED,
        )
    return GenerationError(
        "Failed to generate NFT. Please try again.",
        FailureKind.UPSTREAM_ERROR,
        details={"cause": message},
    )


class GoogleAIImageClient:
    """
    Gemini image generation client.
    Uses the google-genai SDK's async `generate_content` API.
    """

    def __init__(
        self,
        api_key: str,
        models: Sequence[str] = (
            "gemini-2.5-flash-image-preview",
            "gemini-1.5-flash-image-preview",
            "gemini-pro-vision",
        ),
        max_prompt_length: int = MAX_PROMPT_LENGTH,
        client: Optional[Any] = None,
    ):
        """
        Initialize Google AI image client.

        Args:
            api_key: Google AI API key (for Gemini Developer API).
            models: Model identifiers tried in order until one succeeds.
            max_prompt_length: Longest accepted prompt, in characters.
            client: Preconfigured genai.Client, built from api_key when omitted.
        """
        self.api_key = api_key
        self.models: List[str] = list(models)
        self.max_prompt_length = max_prompt_length
        if client is not None:
            self.client = client
        else:
            try:
                self.client = genai.Client(api_key=self.api_key)
            except Exception as e:
                logger.error(f"Failed to initialize genai.Client: {e}. Ensure API key is valid.")
                raise

    @classmethod
    def from_config(cls, config: GeminiConfig) -> Optional["GoogleAIImageClient"]:
        """Build a client, or None when no API key is configured."""
        if not config.api_key:
            logger.warning("GEMINI_API_KEY not found. Image generation will not work.")
            return None
        return cls(api_key=config.api_key, models=config.models, max_prompt_length=config.max_prompt_length)

    async def generate(self, prompt: Any) -> GenerationResult:
        """
        Generate an image for a prompt.

        Returns:
            GenerationResult with the image as a data URL.

        Raises:
            GenerationError: with the failure kind describing what went wrong.
        """
        text = validate_prompt(prompt, self.max_prompt_length)

        response = None
        last_error: Optional[BaseException] = None
        for model in self.models:
            start = time.monotonic()
            try:
                response = await self.client.aio.models.generate_content(
                    model=model,
                    contents=[prompt],
                )
            except Exception as e:
                performance_logger.log_generation(model, (time.monotonic() - start) * 1000, False)
                logger.warning(f"GoogleAIImageClient: Model {model} failed: {e}")
                last_error = e
                continue
            performance_logger.log_generation(model, (time.monotonic() - start) * 1000, True)
            logger.info(f"GoogleAIImageClient: Generated content with {model}")
            break

        if response is None:
            logger.error(f"GoogleAIImageClient: All models failed. Last error: {last_error}")
            raise classify_upstream_error(last_error)

        return self._parse_response(response, text)

    def _parse_response(self, response: Any, prompt: str) -> GenerationResult:
        candidates = getattr(response, "candidates", None)
        if not candidates:
            feedback = getattr(response, "prompt_feedback", None)
            if feedback is not None and getattr(feedback, "block_reason", None):
                logger.warning(f"GoogleAIImageClient: Prompt blocked. Reason: {feedback.block_reason}")
            raise GenerationError("No response generated from AI", FailureKind.NO_CANDIDATES)

        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) if content is not None else None
        if not parts:
            raise GenerationError("Invalid response format from AI", FailureKind.MALFORMED_RESPONSE)

        description = ""
        image_data: Optional[bytes] = None
        mime_type = DEFAULT_MIME_TYPE
        for part in parts:
            text = getattr(part, "text", None)
            inline_data = getattr(part, "inline_data", None)
            if text:
                description += text
            elif inline_data is not None and getattr(inline_data, "data", None) and image_data is None:
                image_data = inline_data.data
                mime_type = getattr(inline_data, "mime_type", None) or DEFAULT_MIME_TYPE

        if image_data is None:
            raise GenerationError("No image was generated", FailureKind.NO_IMAGE)

        if isinstance(image_data, str):
            encoded = image_data
        else:
            encoded = base64.b64encode(image_data).decode("ascii")

        return GenerationResult(
            image_url=f"data:{mime_type};base64,{encoded}",
            description=description.strip(),
            prompt=prompt,
        )
