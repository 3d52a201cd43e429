"""
Dependency injection for the API server.

Routers depend on `get_services`; the server overrides it with the container
it was built with, so tests can inject fakes the same way.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException

from nanonft.config import AppConfig
from nanonft.core.metadata_resolver import MetadataResolver
from nanonft.core.mint_orchestrator import MintOrchestrator
from nanonft.core.ownership_scanner import OwnershipScanner
from nanonft.core.upload_pipeline import UploadPipeline
from nanonft.integrations.google_ai_image_client import GoogleAIImageClient
from nanonft.integrations.ipfs_uploader_client import IPFSUploaderClient
from nanonft.integrations.nano_nft_contract import NanoNFTContract

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Everything the routers need, built once per application."""

    settings: AppConfig
    generation_client: Optional[GoogleAIImageClient]
    contract: NanoNFTContract
    resolver: MetadataResolver
    scanner: OwnershipScanner
    uploads: UploadPipeline
    orchestrator: Optional[MintOrchestrator]

    async def close(self) -> None:
        if self.orchestrator is not None:
            await self.orchestrator.close()


def build_services(settings: AppConfig) -> ServiceContainer:
    """Wire the production services from configuration."""
    contract = NanoNFTContract.from_config(settings.contract)
    resolver = MetadataResolver(
        gateway_url=settings.storage.gateway_url,
        timeout=settings.storage.fetch_timeout_seconds,
    )
    scanner = OwnershipScanner(
        contract,
        resolver,
        full_window=settings.mint.full_scan_window,
        refresh_window=settings.mint.refresh_scan_window,
        max_results=settings.mint.max_results,
        collection_name=settings.mint.collection_name,
        default_description=settings.mint.default_description,
        placeholder_image=settings.mint.placeholder_image,
    )
    uploads = UploadPipeline(
        IPFSUploaderClient.from_config(settings.storage),
        name_prefix=settings.mint.name_prefix,
        model_label=settings.mint.model_label,
    )

    orchestrator = None
    if contract.can_sign():
        orchestrator = MintOrchestrator(
            contract.minter_address,
            contract,
            uploads,
            scanner,
            transaction_timeout=settings.mint.transaction_timeout_seconds,
            refresh_delay=settings.mint.refresh_delay_seconds,
        )
        logger.info(f"Minting enabled for {contract.minter_address}")
    else:
        logger.warning("CONTRACT_MINTER_PRIVATE_KEY not set; minting is disabled")

    return ServiceContainer(
        settings=settings,
        generation_client=GoogleAIImageClient.from_config(settings.gemini),
        contract=contract,
        resolver=resolver,
        scanner=scanner,
        uploads=uploads,
        orchestrator=orchestrator,
    )


def get_services() -> ServiceContainer:
    """Placeholder dependency, overridden by the API server."""
    raise HTTPException(status_code=500, detail="Services not configured")


def require_orchestrator(services: ServiceContainer) -> MintOrchestrator:
    if services.orchestrator is None:
        raise HTTPException(status_code=503, detail="Minting is not configured on this server")
    return services.orchestrator
