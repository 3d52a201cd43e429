"""
Mint Orchestrator

Drives one wallet's mint workflow: upload the generated image and its
metadata, decide free-mint eligibility, submit `createNFT` under a timeout,
and refresh the displayed collection once the chain has settled.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from nanonft.core.mint_state import (
    ImageGenerated,
    MintFailed,
    MintRequested,
    MintState,
    QuotaResolved,
    Reset,
    TransactionConfirmed,
    UploadsCompleted,
    transition,
)
from nanonft.core.models import GenerationResult, OwnedToken, PreparedMint, TransactionRecord
from nanonft.core.ownership_scanner import OwnershipScanner
from nanonft.core.upload_pipeline import UploadPipeline, decode_data_url
from nanonft.exceptions import FailureKind, MintError, MintInProgressError, NanoNFTError

logger = logging.getLogger(__name__)

MIME_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp", "image/gif": "gif"}


class MintContract(Protocol):
    async def can_create_free_nft(self, user: str):
        ...

    def prepare_create_nft(self, token_uri: str, is_free: bool) -> PreparedMint:
        ...

    async def send_transaction(self, prepared: PreparedMint) -> TransactionRecord:
        ...


class MintOrchestrator:
    """Owns the mint state and the displayed collection for one wallet."""

    def __init__(
        self,
        owner_address: str,
        contract: MintContract,
        uploads: UploadPipeline,
        scanner: OwnershipScanner,
        transaction_timeout: float = 60.0,
        refresh_delay: float = 3.0,
    ):
        self.owner_address = owner_address
        self.contract = contract
        self.uploads = uploads
        self.scanner = scanner
        self.transaction_timeout = transaction_timeout
        self.refresh_delay = refresh_delay

        self.state = MintState()
        self.collection: List[OwnedToken] = []
        self._in_flight = False
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def is_minting(self) -> bool:
        return self._in_flight

    def load_generation(self, result: GenerationResult) -> MintState:
        """Accept a generation result; Idle -> ImageReady."""
        self.state = transition(self.state, ImageGenerated(result))
        return self.state

    def reset(self) -> MintState:
        self.state = transition(self.state, Reset())
        return self.state

    async def load_collection(self, known_creation_count: Optional[int] = None) -> List[OwnedToken]:
        """Initial full scan of the wallet's collection."""
        self.collection = await self.scanner.full_scan(self.owner_address, known_creation_count)
        return self.collection

    async def mint(self) -> MintState:
        """
        Run upload -> quota check -> transaction for the loaded image.

        Failures end in the Failed state carrying the failure; they are not
        raised. Only one mint may be in flight at a time.

        Raises:
            MintInProgressError: a mint is already running
            InvalidTransitionError: no generated image is loaded
        """
        if self._in_flight:
            raise MintInProgressError("A mint is already in progress")

        self.state = transition(self.state, MintRequested())
        self._in_flight = True
        try:
            await self._upload()
            await self._submit()
        except NanoNFTError as e:
            logger.error(f"MintOrchestrator: Mint failed ({e.kind.value}): {e.message}")
            self.state = transition(self.state, MintFailed(e.failure))
        finally:
            self._in_flight = False

        if self.state.transaction is not None:
            self._schedule_refresh()
        return self.state

    async def _upload(self) -> None:
        generation = self.state.generation
        mime_type, image_bytes = decode_data_url(generation.image_url)
        timestamp_ms = int(datetime.now(timezone.utc).timestamp() * 1000)
        filename = f"nft-{timestamp_ms}.{MIME_EXTENSIONS.get(mime_type, 'png')}"

        image_uri = await self.uploads.upload_image(image_bytes, filename, mime_type)
        document = self.uploads.build_metadata(image_uri, generation.prompt)
        token_uri = await self.uploads.upload_metadata(document)
        self.state = transition(self.state, UploadsCompleted(image_uri=image_uri, token_uri=token_uri))

    async def _submit(self) -> None:
        is_free = await self._resolve_is_free()
        self.state = transition(self.state, QuotaResolved(is_free))

        prepared = self.contract.prepare_create_nft(self.state.token_uri, is_free)
        logger.info(f"MintOrchestrator: Minting {prepared.token_uri} (free={is_free}) for {self.owner_address}")

        try:
            record = await asyncio.wait_for(
                self.contract.send_transaction(prepared), timeout=self.transaction_timeout
            )
        except asyncio.TimeoutError:
            raise MintError(
                f"Transaction timeout after {self.transaction_timeout:g} seconds", FailureKind.TIMEOUT
            )
        except NanoNFTError:
            raise
        except Exception as e:
            raise MintError(f"Transaction failed: {e}") from e

        if record is None or not record.hash:
            raise MintError("Transaction completed but no hash received", FailureKind.MISSING_HASH)
        if not record.success:
            raise MintError(f"Transaction failed: {record.hash}", details={"txHash": record.hash})

        logger.info(f"MintOrchestrator: Minting successful, tx {record.hash}")
        self.state = transition(self.state, TransactionConfirmed(record))

    async def _resolve_is_free(self) -> bool:
        try:
            quota = await self.contract.can_create_free_nft(self.owner_address)
        except Exception as e:
            logger.warning(f"MintOrchestrator: Could not read free-mint quota, minting as paid: {e}")
            return False
        return bool(quota.eligible_for_free)

    def _schedule_refresh(self) -> None:
        self._cancel_refresh()
        self._refresh_task = asyncio.create_task(self._refresh_after_delay())

    async def _refresh_after_delay(self) -> None:
        await asyncio.sleep(self.refresh_delay)
        try:
            self.collection = await self.scanner.refresh_scan(self.owner_address)
            logger.info(f"MintOrchestrator: Collection refreshed, {len(self.collection)} tokens")
        except Exception as e:
            logger.error(f"MintOrchestrator: Error refreshing NFTs: {e}")

    def _cancel_refresh(self) -> None:
        if self._refresh_task and not self._refresh_task.done():
            self._refresh_task.cancel()

    async def close(self) -> None:
        """Cancel any pending collection refresh."""
        task = self._refresh_task
        self._refresh_task = None
        if task is None:
            return
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
