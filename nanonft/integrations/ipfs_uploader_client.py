"""
IPFS Uploader Client

This module uploads NFT images and metadata documents to IPFS through the
Pinata pinning API and returns content-addressed (ipfs://) locators.
"""

import logging
import time
from typing import Dict, Optional

import httpx

from nanonft.config import StorageConfig
from nanonft.core.metadata_resolver import to_gateway_url
from nanonft.exceptions import ConfigurationError, UploadError
from nanonft.utils.logging_config import performance_logger

logger = logging.getLogger(__name__)


class IPFSUploaderClient:
    """Client for pinning files to IPFS via Pinata."""

    def __init__(
        self,
        upload_url: str,
        jwt: Optional[str] = None,
        gateway_url: str = "https://ipfs.io/ipfs",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize IPFS uploader client.

        Args:
            upload_url: Pinata pinFileToIPFS endpoint
            jwt: Pinata JWT used as bearer token
            gateway_url: Gateway base for constructing public URLs
            timeout: Upload timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.upload_url = upload_url
        self.jwt = jwt
        self.gateway_url = gateway_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_config(cls, config: StorageConfig) -> "IPFSUploaderClient":
        return cls(
            upload_url=config.pinata_upload_url,
            jwt=config.pinata_jwt,
            gateway_url=config.gateway_url,
            timeout=config.upload_timeout_seconds,
        )

    def is_configured(self) -> bool:
        return bool(self.jwt)

    def _get_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.jwt}"}

    async def upload_file(self, data: bytes, filename: str, content_type: str) -> str:
        """
        Pin one file to IPFS.

        Args:
            data: Raw file bytes
            filename: Name recorded with the pin
            content_type: MIME type of the data

        Returns:
            The ipfs:// locator of the pinned content

        Raises:
            ConfigurationError: no Pinata credential is configured
            UploadError: the upload request failed or returned no hash
        """
        if not self.is_configured():
            raise ConfigurationError("IPFS uploads require STORAGE_PINATA_JWT")

        start = time.monotonic()
        success = False
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.upload_url,
                    files={"file": (filename, data, content_type)},
                    headers=self._get_headers(),
                )
                response.raise_for_status()
                result = response.json()

            ipfs_hash = result.get("IpfsHash") if isinstance(result, dict) else None
            if not ipfs_hash:
                logger.error(f"IPFSUploaderClient: Upload succeeded but no hash in response: {result}")
                raise UploadError(f"Failed to upload {filename} to IPFS: no hash returned")
            success = True
        except httpx.HTTPStatusError as e:
            logger.error(
                f"IPFSUploaderClient: HTTP error during upload: {e.response.status_code} - {e.response.text}"
            )
            raise UploadError(f"Failed to upload {filename} to IPFS: HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"IPFSUploaderClient: Upload of {filename} failed: {e}")
            raise UploadError(f"Failed to upload {filename} to IPFS: {e}") from e
        finally:
            performance_logger.log_upload(filename, len(data), (time.monotonic() - start) * 1000, success)

        logger.info(f"IPFSUploaderClient: Pinned {filename} as {ipfs_hash}")
        return f"ipfs://{ipfs_hash}"

    def get_gateway_url(self, locator: str) -> str:
        """Public gateway URL for a locator, for display only."""
        return to_gateway_url(locator, self.gateway_url)
