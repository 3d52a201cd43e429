"""
Main FastAPI server with modular router architecture.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nanonft import __version__
from nanonft.config import AppConfig
from .dependencies import ServiceContainer, build_services, get_services
from .routers import collection, generate, mint

logger = logging.getLogger(__name__)


class NanoNFTAPIServer:
    """API server for NFT generation, minting and collection browsing."""

    def __init__(self, settings: AppConfig, services: Optional[ServiceContainer] = None):
        self.settings = settings
        self.services = services or build_services(settings)

        self.app = FastAPI(
            title="NanoNFT API",
            description="Generate AI artwork, pin it to IPFS and mint it as an NFT",
            version=__version__,
            lifespan=self._lifespan,
        )

        self._setup_middleware()
        self._setup_dependency_overrides()
        self._setup_routers()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        yield
        # A pending post-mint refresh must not outlive the server
        await self.services.close()
        logger.info("NanoNFT API server stopped")

    def _setup_middleware(self):
        """Configure CORS middleware."""
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.settings.allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _setup_dependency_overrides(self):
        """Point every router's service dependency at this server's container."""
        def get_container():
            return self.services

        self.app.dependency_overrides[get_services] = get_container

    def _setup_routers(self):
        """Include all modular routers."""
        self.app.include_router(generate.router)
        self.app.include_router(collection.router)
        self.app.include_router(mint.router)

        @self.app.get("/health")
        async def root_health_check():
            """Root-level health check endpoint for Docker containers."""
            return {
                "status": "healthy",
                "timestamp": datetime.now().isoformat(),
                "service": "nanonft_api",
                "generation_configured": self.services.generation_client is not None,
                "minting_configured": self.services.orchestrator is not None,
            }


def create_app(settings: AppConfig, services: Optional[ServiceContainer] = None) -> FastAPI:
    """Factory function to create the API server."""
    server = NanoNFTAPIServer(settings, services)
    return server.app
