"""
Upload Pipeline

Turns a generated image into a pinned asset, then builds and pins the
metadata document that the token URI will point at.
"""

import base64
import binascii
import json
import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol, Tuple

from nanonft.core.models import NFTAttribute, NFTMetadataDocument
from nanonft.exceptions import FailureKind, NanoNFTError, UploadError

logger = logging.getLogger(__name__)

ACCEPTED_LOCATOR_PREFIXES = ("ipfs://", "https://")
PROMPT_EXCERPT_LENGTH = 100


class StorageBackend(Protocol):
    async def upload_file(self, data: bytes, filename: str, content_type: str) -> str:
        ...


def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URL into its MIME type and payload bytes.

    Raises:
        UploadError: kind InvalidInput when the URL is not a base64 data URL
    """
    if not isinstance(data_url, str) or not data_url.startswith("data:"):
        raise UploadError("Generated image is not a data URL", FailureKind.INVALID_INPUT)
    header, _, payload = data_url.partition(",")
    if not header.endswith(";base64") or not payload:
        raise UploadError("Generated image is not base64 encoded", FailureKind.INVALID_INPUT)
    mime_type = header[len("data:"):-len(";base64")] or "image/png"
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UploadError(f"Generated image payload is corrupt: {e}", FailureKind.INVALID_INPUT) from e


def prompt_excerpt(prompt: str, limit: int = PROMPT_EXCERPT_LENGTH) -> str:
    return prompt[:limit] + ("..." if len(prompt) > limit else "")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UploadPipeline:
    """Image upload, metadata construction and metadata upload."""

    def __init__(
        self,
        storage: StorageBackend,
        name_prefix: str = "NanoNFT",
        model_label: str = "Gemini Nano Banana",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.storage = storage
        self.name_prefix = name_prefix
        self.model_label = model_label
        self.clock = clock

    async def upload_image(self, data: bytes, filename: str, content_type: str = "image/png") -> str:
        """Pin the image and return its locator."""
        locator = await self._upload(data, filename, content_type, "image")
        logger.info(f"UploadPipeline: Image uploaded: {locator}")
        return locator

    def build_metadata(self, image_locator: str, prompt: str, now: Optional[datetime] = None) -> NFTMetadataDocument:
        """
        Build the metadata document for a freshly uploaded image.

        The image locator is kept as returned by storage (ipfs:// stays
        ipfs://); only display paths rewrite it to a gateway URL.
        """
        now = now or self.clock()
        timestamp_ms = int(now.timestamp() * 1000)
        iso_timestamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return NFTMetadataDocument(
            name=f"{self.name_prefix} #{timestamp_ms}",
            description=f"AI-generated NFT: {prompt}",
            image=image_locator,
            attributes=[
                NFTAttribute("AI Model", self.model_label),
                NFTAttribute("Generation Date", now.date().isoformat()),
                NFTAttribute("Prompt", prompt_excerpt(prompt)),
                NFTAttribute("Created At", iso_timestamp),
            ],
        )

    async def upload_metadata(self, document: NFTMetadataDocument) -> str:
        """Serialize and pin a metadata document, returning the token URI."""
        payload = json.dumps(document.to_dict(), indent=2).encode("utf-8")
        locator = await self._upload(payload, "metadata.json", "application/json", "metadata")
        logger.info(f"UploadPipeline: Metadata uploaded: {locator}")
        return locator

    async def _upload(self, data: bytes, filename: str, content_type: str, label: str) -> str:
        try:
            locator = await self.storage.upload_file(data, filename, content_type)
        except NanoNFTError:
            raise
        except Exception as e:
            logger.error(f"UploadPipeline: {label} upload failed: {e}")
            raise UploadError(f"Failed to upload {label} to IPFS: {e}") from e

        if not isinstance(locator, str) or not locator.startswith(ACCEPTED_LOCATOR_PREFIXES):
            logger.error(f"UploadPipeline: Invalid {label} locator returned: {locator!r}")
            raise UploadError(
                f"Invalid IPFS URI returned for {label}: {locator}", FailureKind.INVALID_LOCATOR
            )
        return locator
