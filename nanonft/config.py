"""
Centralized Configuration Management

This module loads and validates NanoNFT configuration from environment
variables and .env files, organized into nested sections per concern.
"""

from typing import List, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def section_config(prefix: str) -> SettingsConfigDict:
    """Settings for one prefixed section, read from the environment and .env."""
    return SettingsConfigDict(
        env_prefix=prefix, env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


class GeminiConfig(BaseSettings):
    """Gemini image generation configuration."""

    model_config = section_config("GEMINI_")

    api_key: Optional[str] = None
    # Tried in order until one succeeds
    models: List[str] = [
        "gemini-2.5-flash-image-preview",
        "gemini-1.5-flash-image-preview",
        "gemini-pro-vision",
    ]
    max_prompt_length: int = 500


class ContractConfig(BaseSettings):
    """NanoNFT contract and chain configuration."""

    model_config = section_config("CONTRACT_")

    rpc_url: str = "https://ethereum-sepolia-rpc.publicnode.com"
    address: str = "0x99d60b29ec9238c94046a801894e04118bb21259"
    chain_id: int = 11155111  # Sepolia
    minter_private_key: Optional[str] = None
    receipt_timeout_seconds: float = 120.0
    explorer_url: str = "https://sepolia.etherscan.io"


class StorageConfig(BaseSettings):
    """Content-addressed storage configuration."""

    model_config = section_config("STORAGE_")

    pinata_jwt: Optional[str] = None
    pinata_upload_url: str = "https://api.pinata.cloud/pinning/pinFileToIPFS"
    gateway_url: str = "https://ipfs.io/ipfs"
    upload_timeout_seconds: float = 120.0
    fetch_timeout_seconds: float = 30.0


class MintConfig(BaseSettings):
    """Mint workflow and collection scan configuration."""

    model_config = section_config("MINT_")

    full_scan_window: int = 100
    refresh_scan_window: int = 20
    max_results: int = 10
    transaction_timeout_seconds: float = 60.0
    refresh_delay_seconds: float = 3.0
    free_mints_per_day: int = 3

    # Metadata document and display defaults
    name_prefix: str = "NanoNFT by moayaan.eth"
    collection_name: str = "NanoNFT"
    model_label: str = "Gemini Nano Banana"
    default_description: str = "AI-generated NFT"
    placeholder_image: str = "/icon.png"


class AppConfig(BaseSettings):
    """
    Centralized application configuration with nested sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    log_level: str = "INFO"
    log_format: str = "text"
    log_file: Optional[str] = None

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    allowed_origins: List[str] = ["http://localhost:3000"]

    # Nested configuration sections
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    contract: ContractConfig = Field(default_factory=ContractConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    mint: MintConfig = Field(default_factory=MintConfig)


# Global settings instance
def create_settings() -> AppConfig:
    """Create settings instance from environment variables and .env files only."""
    load_dotenv(find_dotenv(usecwd=True))
    return AppConfig()


settings = create_settings()


def get_settings() -> AppConfig:
    """Get the global settings instance."""
    return settings
