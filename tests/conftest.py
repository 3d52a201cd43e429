"""
Global test configuration and fixtures.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from nanonft.config import AppConfig, ContractConfig, GeminiConfig, MintConfig, StorageConfig
from nanonft.core.metadata_resolver import MetadataResolver
from nanonft.core.models import NFTMetadataDocument, PreparedMint, TransactionRecord
from nanonft.core.ownership_scanner import OwnershipScanner
from nanonft.core.upload_pipeline import UploadPipeline
from nanonft.integrations.nano_nft_contract import MintQuotaState, UserCreationStats
from tests.factories import FIXED_NOW, OWNER


@pytest.fixture
def app_settings() -> AppConfig:
    """Settings built without reading the environment's secrets."""
    return AppConfig(
        gemini=GeminiConfig(api_key="test-gemini-key"),
        contract=ContractConfig(minter_private_key=None),
        storage=StorageConfig(pinata_jwt="test-jwt"),
        mint=MintConfig(),
    )


@pytest.fixture
def mock_contract():
    """Contract double with an eligible quota and a successful transaction."""
    contract = MagicMock()
    contract.can_create_free_nft = AsyncMock(return_value=MintQuotaState(True, 0, 0))
    contract.get_user_creation_stats = AsyncMock(return_value=UserCreationStats(2, 1, 1700000000, 0))
    contract.balance_of = AsyncMock(return_value=1)
    contract.get_next_token_id = AsyncMock(return_value=1)
    contract.owner_of = AsyncMock(return_value=OWNER)
    contract.token_uri = AsyncMock(return_value="ipfs://QmMetadata")
    contract.prepare_create_nft = MagicMock(side_effect=lambda uri, free: PreparedMint(uri, free))
    contract.send_transaction = AsyncMock(return_value=TransactionRecord("0xabc123", True))
    return contract


@pytest.fixture
def mock_storage():
    """Storage backend returning an image hash first, then a metadata hash."""
    storage = MagicMock()
    storage.upload_file = AsyncMock(side_effect=["ipfs://QmImageHash", "ipfs://QmMetadataHash"])
    return storage


@pytest.fixture
def upload_pipeline(mock_storage) -> UploadPipeline:
    return UploadPipeline(
        mock_storage,
        name_prefix="NanoNFT by moayaan.eth",
        model_label="Gemini Nano Banana",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def mock_resolver():
    """Resolver double returning a complete document for every locator."""
    resolver = MagicMock(spec=MetadataResolver)
    resolver.resolve = AsyncMock(
        return_value=NFTMetadataDocument(
            name="Panda #1",
            description="AI-generated NFT: panda",
            image="https://ipfs.io/ipfs/QmImageHash",
        )
    )
    return resolver


@pytest.fixture
def scanner(mock_contract, mock_resolver) -> OwnershipScanner:
    return OwnershipScanner(mock_contract, mock_resolver)
