"""
Tests for the mint orchestrator: uploads, quota, transaction and refresh.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from nanonft.core.mint_orchestrator import MintOrchestrator
from nanonft.core.mint_state import MintPhase
from nanonft.core.models import TransactionRecord
from nanonft.exceptions import ConfigurationError, FailureKind, InvalidTransitionError, MintInProgressError
from nanonft.integrations.google_ai_image_client import GoogleAIImageClient
from nanonft.integrations.nano_nft_contract import MintQuotaState
from tests.factories import OWNER, PNG_BYTES, GenerationResultFactory, OwnedTokenFactory, genai_part, genai_response


@pytest.fixture
def mock_scanner():
    scanner = MagicMock()
    scanner.full_scan = AsyncMock(return_value=[OwnedTokenFactory(id=1)])
    scanner.refresh_scan = AsyncMock(return_value=[OwnedTokenFactory(id=2), OwnedTokenFactory(id=1)])
    return scanner


@pytest_asyncio.fixture
async def orchestrator(mock_contract, upload_pipeline, mock_scanner):
    orchestrator = MintOrchestrator(
        OWNER,
        mock_contract,
        upload_pipeline,
        mock_scanner,
        transaction_timeout=1.0,
        refresh_delay=0,
    )
    yield orchestrator
    await orchestrator.close()


async def hang(prepared):
    await asyncio.Event().wait()


class TestMintHappyPath:
    @pytest.mark.asyncio
    async def test_mint_submits_after_both_uploads(self, orchestrator, mock_contract, mock_storage):
        calls = []

        async def upload_file(data, filename, content_type):
            calls.append(("upload", filename))
            return "ipfs://QmImageHash" if content_type.startswith("image/") else "ipfs://QmMetadataHash"

        async def send_transaction(prepared):
            calls.append(("send", prepared.token_uri))
            return TransactionRecord("0xabc123", True)

        mock_storage.upload_file = AsyncMock(side_effect=upload_file)
        mock_contract.send_transaction = AsyncMock(side_effect=send_transaction)

        orchestrator.load_generation(GenerationResultFactory())
        state = await orchestrator.mint()

        assert state.phase is MintPhase.SUBMITTED
        assert [kind for kind, _ in calls] == ["upload", "upload", "send"]
        assert calls[0][1].startswith("nft-") and calls[0][1].endswith(".png")
        assert calls[1][1] == "metadata.json"
        assert calls[2][1] == "ipfs://QmMetadataHash"
        assert state.image_uri == "ipfs://QmImageHash"
        assert state.token_uri == "ipfs://QmMetadataHash"
        assert state.transaction.hash == "0xabc123"
        assert orchestrator.is_minting is False

    @pytest.mark.asyncio
    async def test_image_bytes_uploaded_decoded(self, orchestrator, mock_storage):
        orchestrator.load_generation(GenerationResultFactory())
        await orchestrator.mint()

        data, _, content_type = mock_storage.upload_file.await_args_list[0].args
        assert data == PNG_BYTES
        assert content_type == "image/png"

    @pytest.mark.asyncio
    async def test_eligible_wallet_mints_free(self, orchestrator, mock_contract):
        mock_contract.can_create_free_nft = AsyncMock(return_value=MintQuotaState(True, 0, 0))

        orchestrator.load_generation(GenerationResultFactory())
        state = await orchestrator.mint()

        assert state.is_free is True
        mock_contract.prepare_create_nft.assert_called_once_with("ipfs://QmMetadataHash", True)

    @pytest.mark.asyncio
    async def test_exhausted_quota_mints_paid(self, orchestrator, mock_contract):
        mock_contract.can_create_free_nft = AsyncMock(return_value=MintQuotaState(False, 3, 7200))

        orchestrator.load_generation(GenerationResultFactory())
        state = await orchestrator.mint()

        assert state.is_free is False
        mock_contract.prepare_create_nft.assert_called_once_with("ipfs://QmMetadataHash", False)

    @pytest.mark.asyncio
    async def test_quota_read_failure_mints_paid(self, orchestrator, mock_contract):
        mock_contract.can_create_free_nft = AsyncMock(side_effect=RuntimeError("rpc down"))

        orchestrator.load_generation(GenerationResultFactory())
        state = await orchestrator.mint()

        assert state.phase is MintPhase.SUBMITTED
        assert state.is_free is False


class TestMintFailures:
    @pytest.mark.asyncio
    async def test_upload_failure_skips_transaction(self, orchestrator, mock_contract, mock_storage):
        mock_storage.upload_file = AsyncMock(side_effect=OSError("pinata unreachable"))

        orchestrator.load_generation(GenerationResultFactory())
        state = await orchestrator.mint()

        assert state.phase is MintPhase.FAILED
        assert state.failure.kind is FailureKind.UPLOAD_ERROR
        mock_contract.send_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_image_is_invalid_input(self, orchestrator, mock_storage):
        orchestrator.load_generation(GenerationResultFactory(image_url="https://example.com/x.png"))
        state = await orchestrator.mint()

        assert state.failure.kind is FailureKind.INVALID_INPUT
        mock_storage.upload_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transaction_timeout(self, orchestrator, mock_contract):
        orchestrator.transaction_timeout = 0.05
        mock_contract.send_transaction = AsyncMock(side_effect=hang)

        orchestrator.load_generation(GenerationResultFactory())
        state = await orchestrator.mint()

        assert state.phase is MintPhase.FAILED
        assert state.failure.kind is FailureKind.TIMEOUT
        assert state.failure.message == "Transaction timeout after 0.05 seconds"
        assert orchestrator.is_minting is False

    @pytest.mark.asyncio
    async def test_reverted_transaction(self, orchestrator, mock_contract):
        mock_contract.send_transaction = AsyncMock(return_value=TransactionRecord("0xdead", False))

        orchestrator.load_generation(GenerationResultFactory())
        state = await orchestrator.mint()

        assert state.failure.kind is FailureKind.TRANSACTION_ERROR
        assert state.failure.details == {"txHash": "0xdead"}
        assert state.transaction is None

    @pytest.mark.asyncio
    async def test_missing_hash(self, orchestrator, mock_contract):
        mock_contract.send_transaction = AsyncMock(return_value=TransactionRecord("", True))

        orchestrator.load_generation(GenerationResultFactory())
        state = await orchestrator.mint()

        assert state.failure.kind is FailureKind.MISSING_HASH

    @pytest.mark.asyncio
    async def test_wallet_rejection_is_transaction_error(self, orchestrator, mock_contract):
        mock_contract.send_transaction = AsyncMock(side_effect=ValueError("insufficient funds for gas"))

        orchestrator.load_generation(GenerationResultFactory())
        state = await orchestrator.mint()

        assert state.failure.kind is FailureKind.TRANSACTION_ERROR
        assert "insufficient funds" in state.failure.message

    @pytest.mark.asyncio
    async def test_missing_signer_is_configuration_failure(self, orchestrator, mock_contract):
        mock_contract.send_transaction = AsyncMock(side_effect=ConfigurationError("No minter key configured"))

        orchestrator.load_generation(GenerationResultFactory())
        state = await orchestrator.mint()

        assert state.failure.kind is FailureKind.CONFIGURATION

    @pytest.mark.asyncio
    async def test_failed_mint_schedules_no_refresh(self, orchestrator, mock_contract, mock_scanner):
        mock_contract.send_transaction = AsyncMock(return_value=TransactionRecord("0xdead", False))

        orchestrator.load_generation(GenerationResultFactory())
        await orchestrator.mint()
        await orchestrator.close()

        mock_scanner.refresh_scan.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, orchestrator, mock_storage):
        mock_storage.upload_file = AsyncMock(
            side_effect=[OSError("flaky"), "ipfs://QmImageHash", "ipfs://QmMetadataHash"]
        )

        orchestrator.load_generation(GenerationResultFactory())
        first = await orchestrator.mint()
        second = await orchestrator.mint()
        await orchestrator.close()

        assert first.phase is MintPhase.FAILED
        assert second.phase is MintPhase.SUBMITTED


class TestMintGuards:
    @pytest.mark.asyncio
    async def test_mint_without_image(self, orchestrator):
        with pytest.raises(InvalidTransitionError):
            await orchestrator.mint()

    @pytest.mark.asyncio
    async def test_second_mint_while_in_flight(self, orchestrator, mock_contract):
        release = asyncio.Event()

        async def slow_send(prepared):
            await release.wait()
            return TransactionRecord("0xabc123", True)

        mock_contract.send_transaction = AsyncMock(side_effect=slow_send)
        orchestrator.load_generation(GenerationResultFactory())

        first = asyncio.create_task(orchestrator.mint())
        while not orchestrator.is_minting or mock_contract.send_transaction.await_count == 0:
            await asyncio.sleep(0)

        with pytest.raises(MintInProgressError):
            await orchestrator.mint()
        with pytest.raises(InvalidTransitionError):
            orchestrator.reset()

        release.set()
        state = await first
        await orchestrator.close()

        assert state.phase is MintPhase.SUBMITTED
        assert mock_contract.send_transaction.await_count == 1


class TestCollectionRefresh:
    @pytest.mark.asyncio
    async def test_load_collection(self, orchestrator, mock_scanner):
        tokens = await orchestrator.load_collection(known_creation_count=1)

        assert [token.id for token in tokens] == [1]
        mock_scanner.full_scan.assert_awaited_once_with(OWNER, 1)

    @pytest.mark.asyncio
    async def test_refresh_after_successful_mint(self, orchestrator, mock_scanner):
        orchestrator.load_generation(GenerationResultFactory())
        await orchestrator.mint()
        await orchestrator._refresh_task

        mock_scanner.refresh_scan.assert_awaited_once_with(OWNER)
        assert [token.id for token in orchestrator.collection] == [2, 1]

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_submitted_state(self, orchestrator, mock_scanner):
        mock_scanner.refresh_scan = AsyncMock(side_effect=RuntimeError("rpc down"))
        orchestrator.load_generation(GenerationResultFactory())

        state = await orchestrator.mint()
        await orchestrator._refresh_task

        assert state.phase is MintPhase.SUBMITTED
        assert orchestrator.state.phase is MintPhase.SUBMITTED

    @pytest.mark.asyncio
    async def test_close_cancels_pending_refresh(self, orchestrator, mock_scanner):
        orchestrator.refresh_delay = 30
        orchestrator.load_generation(GenerationResultFactory())
        await orchestrator.mint()

        task = orchestrator._refresh_task
        await orchestrator.close()

        assert task.cancelled()
        mock_scanner.refresh_scan.assert_not_awaited()


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_panda_prompt_minted_free(self, orchestrator, mock_contract, mock_storage):
        prompt = "A panda eating bamboo in a futuristic chinese city"
        genai_client = MagicMock()
        genai_client.aio.models.generate_content = AsyncMock(return_value=genai_response(parts=[
            genai_part(text="A panda in a neon city"),
            genai_part(data=PNG_BYTES, mime_type="image/png"),
        ]))
        generation = await GoogleAIImageClient("test-key", client=genai_client).generate(prompt)
        assert generation.image_url.startswith("data:image/png;base64,")

        orchestrator.load_generation(generation)
        state = await orchestrator.mint()
        await orchestrator._refresh_task

        assert state.phase is MintPhase.SUBMITTED
        assert state.image_uri.startswith(("ipfs://", "https://"))
        assert state.is_free is True
        metadata = json.loads(mock_storage.upload_file.await_args_list[1].args[0])
        assert [a["trait_type"] for a in metadata["attributes"]] == [
            "AI Model", "Generation Date", "Prompt", "Created At",
        ]
        assert metadata["description"] == f"AI-generated NFT: {prompt}"
        assert metadata["image"] == "ipfs://QmImageHash"
        mock_contract.prepare_create_nft.assert_called_once_with("ipfs://QmMetadataHash", True)
        assert len(orchestrator.collection) == 2
