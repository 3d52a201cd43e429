"""
Metadata Resolver

Fetches NFT metadata documents through an HTTP gateway, rewriting
content-addressed (ipfs://) locators so callers receive renderable URLs.
"""

import json
import logging
from dataclasses import replace
from typing import Optional, Union
from urllib.parse import urlparse

import httpx

from nanonft.core.models import NFTMetadataDocument
from nanonft.exceptions import Failure, FailureKind

logger = logging.getLogger(__name__)

IPFS_SCHEME = "ipfs://"
DEFAULT_GATEWAY_URL = "https://ipfs.io/ipfs"


def to_gateway_url(locator: str, gateway_url: str = DEFAULT_GATEWAY_URL) -> str:
    """
    Rewrite an ipfs:// locator to `<gateway>/<hash>`.

    Any other locator is returned unchanged, so the rewrite is idempotent on
    HTTP URLs.
    """
    if locator.startswith(IPFS_SCHEME):
        return f"{gateway_url.rstrip('/')}/{locator[len(IPFS_SCHEME):]}"
    return locator


def is_well_formed_locator(locator: str) -> bool:
    if not isinstance(locator, str) or not locator.strip():
        return False
    if locator.startswith(IPFS_SCHEME):
        return len(locator) > len(IPFS_SCHEME)
    parsed = urlparse(locator)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class MetadataResolver:
    """Resolves token URIs to metadata documents, one request per call."""

    def __init__(
        self,
        gateway_url: str = DEFAULT_GATEWAY_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.gateway_url = gateway_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def gateway(self, locator: str) -> str:
        return to_gateway_url(locator, self.gateway_url)

    async def resolve(self, locator: str) -> Union[NFTMetadataDocument, Failure]:
        """
        Fetch and normalize the metadata document behind a locator.

        Failures are returned, never raised: FetchError for transport errors
        and non-2xx responses, ParseError for bodies that are not a JSON
        object, InvalidLocator for locators that are not URIs.
        """
        if not is_well_formed_locator(locator):
            logger.warning(f"MetadataResolver: Rejecting malformed locator: {locator!r}")
            return Failure(FailureKind.INVALID_LOCATOR, f"Malformed metadata locator: {locator!r}")

        url = self.gateway(locator)
        logger.debug(f"MetadataResolver: Fetching metadata from {url}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.error(f"MetadataResolver: Request for {url} failed: {e}")
            return Failure(FailureKind.FETCH_ERROR, f"Failed to fetch metadata: {e}", {"url": url})

        if not response.is_success:
            logger.error(f"MetadataResolver: HTTP error {response.status_code} fetching {url}")
            return Failure(
                FailureKind.FETCH_ERROR,
                f"HTTP error! status: {response.status_code}",
                {"url": url, "status": response.status_code},
            )

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"MetadataResolver: Invalid JSON at {url}: {e}")
            return Failure(FailureKind.PARSE_ERROR, f"Invalid metadata JSON: {e}", {"url": url})

        if not isinstance(data, dict):
            logger.error(f"MetadataResolver: Metadata at {url} is not a JSON object")
            return Failure(FailureKind.PARSE_ERROR, "Metadata document is not a JSON object", {"url": url})

        document = NFTMetadataDocument.from_dict(data)
        if document.image:
            document = replace(document, image=self.gateway(document.image))
        return document
