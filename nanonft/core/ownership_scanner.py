"""
Ownership Scanner

Finds the tokens a wallet owns by probing `ownerOf` over a window of recent
token IDs and resolving each owned token's metadata.
"""

import logging
from typing import List, Optional, Protocol

from nanonft.core.metadata_resolver import MetadataResolver
from nanonft.core.models import OwnedToken
from nanonft.exceptions import Failure

logger = logging.getLogger(__name__)


class OwnershipReader(Protocol):
    async def balance_of(self, owner: str) -> int:
        ...

    async def get_next_token_id(self) -> int:
        ...

    async def owner_of(self, token_id: int) -> str:
        ...

    async def token_uri(self, token_id: int) -> str:
        ...


def scan_window(next_token_id: int, window_size: int) -> range:
    """
    Token IDs to probe, ascending.

    `next_token_id` is the contract's counter, one past the last minted ID.
    """
    start_id = max(1, next_token_id - window_size)
    end_id = next_token_id - 1
    return range(start_id, end_id + 1)


class OwnershipScanner:
    """Sequential per-ID ownership probe with metadata enrichment."""

    def __init__(
        self,
        contract: OwnershipReader,
        resolver: MetadataResolver,
        full_window: int = 100,
        refresh_window: int = 20,
        max_results: int = 10,
        collection_name: str = "NanoNFT",
        default_description: str = "AI-generated NFT",
        placeholder_image: str = "/icon.png",
    ):
        self.contract = contract
        self.resolver = resolver
        self.full_window = full_window
        self.refresh_window = refresh_window
        self.max_results = max_results
        self.collection_name = collection_name
        self.default_description = default_description
        self.placeholder_image = placeholder_image

    async def scan(self, owner: str, next_token_id: int, window_size: int, max_results: int) -> List[OwnedToken]:
        """
        Probe the window ending at the last minted ID and return owned
        tokens, newest first.

        IDs are checked one at a time in ascending order and probing stops
        as soon as max_results tokens have been found. A failing read for one
        ID counts as "not owned"; it never aborts the scan.
        """
        owner_key = owner.lower()
        owned: List[OwnedToken] = []

        for token_id in scan_window(next_token_id, window_size):
            if len(owned) >= max_results:
                break
            try:
                token_owner = await self.contract.owner_of(token_id)
                if str(token_owner).lower() != owner_key:
                    continue
                token = await self._load_token(token_id)
            except Exception as e:
                logger.debug(f"OwnershipScanner: Skipping token {token_id}: {e}")
                continue
            if token is not None:
                owned.append(token)

        owned.reverse()
        return owned

    async def _load_token(self, token_id: int) -> Optional[OwnedToken]:
        uri = await self.contract.token_uri(token_id)
        if not uri:
            logger.error(f"OwnershipScanner: No tokenURI found for token {token_id}")
            return None

        document = await self.resolver.resolve(uri)
        if isinstance(document, Failure):
            logger.error(f"OwnershipScanner: Failed to fetch metadata for token {token_id}: {document.message}")
            return None

        return OwnedToken(
            id=token_id,
            name=document.name or f"{self.collection_name} #{token_id}",
            description=document.description or self.default_description,
            image=document.image or self.placeholder_image,
        )

    async def full_scan(self, owner: str, known_creation_count: Optional[int] = None) -> List[OwnedToken]:
        """
        Initial collection load over the wide window.

        A zero balance short-circuits to an empty result. When the balance
        read fails, the wallet's creation count stands in for it; the two can
        diverge once tokens are transferred, so this only decides whether to
        scan at all.
        """
        try:
            balance = await self.contract.balance_of(owner)
        except Exception as e:
            balance = known_creation_count or 0
            logger.warning(
                f"OwnershipScanner: balanceOf failed for {owner} ({e}); "
                f"using creation count {balance} as approximate balance"
            )

        if balance == 0:
            return []

        try:
            next_token_id = await self.contract.get_next_token_id()
        except Exception as e:
            logger.error(f"OwnershipScanner: Error loading NFTs for {owner}: {e}")
            return []
        return await self.scan(owner, next_token_id, self.full_window, self.max_results)

    async def refresh_scan(self, owner: str) -> List[OwnedToken]:
        """
        Post-mint refresh over the narrow window near the tip.

        Errors propagate so the caller can log them as refresh failures.
        """
        next_token_id = await self.contract.get_next_token_id()
        return await self.scan(owner, next_token_id, self.refresh_window, self.max_results)
