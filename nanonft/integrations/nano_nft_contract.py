"""
NanoNFT Contract Client

This client reads collection, quota and ownership state from the NanoNFT
contract and submits `createNFT` transactions signed by the minter account.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from eth_account import Account
from web3 import AsyncWeb3

from nanonft.config import ContractConfig
from nanonft.core.models import PreparedMint, TransactionRecord
from nanonft.exceptions import ConfigurationError, MintError
from nanonft.utils.logging_config import performance_logger

logger = logging.getLogger(__name__)


def _view(name: str, inputs: List[Dict[str, str]], outputs: List[Dict[str, str]]) -> Dict[str, Any]:
    return {"type": "function", "name": name, "stateMutability": "view", "inputs": inputs, "outputs": outputs}


def _arg(name: str, type_: str) -> Dict[str, str]:
    return {"name": name, "type": type_, "internalType": type_}


# Minimal ABI for the methods this service uses
NANO_NFT_ABI: List[Dict[str, Any]] = [
    _view("getGlobalStats", [], [
        _arg("total", "uint256"), _arg("free", "uint256"),
        _arg("paid", "uint256"), _arg("maxSupply", "uint256"),
    ]),
    _view("getUserCreationStats", [_arg("user", "address")], [
        _arg("_totalCreations", "uint256"), _arg("_freeCreationsToday", "uint256"),
        _arg("_lastCreation", "uint256"), _arg("_nextFreeCreation", "uint256"),
    ]),
    _view("canCreateFreeNFT", [_arg("user", "address")], [
        _arg("canCreate", "bool"), _arg("creationsToday", "uint256"), _arg("timeLeft", "uint256"),
    ]),
    _view("balanceOf", [_arg("owner", "address")], [_arg("", "uint256")]),
    _view("getNextTokenId", [], [_arg("", "uint256")]),
    _view("ownerOf", [_arg("tokenId", "uint256")], [_arg("", "address")]),
    _view("tokenURI", [_arg("tokenId", "uint256")], [_arg("", "string")]),
    {
        "type": "function",
        "name": "createNFT",
        "stateMutability": "nonpayable",
        "inputs": [_arg("_tokenURI", "string"), _arg("isFree", "bool")],
        "outputs": [_arg("", "uint256")],
    },
]


@dataclass(frozen=True)
class GlobalStats:
    total: int
    free: int
    paid: int
    max_supply: int

    @classmethod
    def from_tuple(cls, values: Sequence[Any]) -> "GlobalStats":
        total, free, paid, max_supply = values
        return cls(int(total), int(free), int(paid), int(max_supply))


@dataclass(frozen=True)
class UserCreationStats:
    total_creations: int
    free_today: int
    last_creation: int
    next_free_creation: int

    @classmethod
    def from_tuple(cls, values: Sequence[Any]) -> "UserCreationStats":
        total_creations, free_today, last_creation, next_free_creation = values
        return cls(int(total_creations), int(free_today), int(last_creation), int(next_free_creation))


@dataclass(frozen=True)
class MintQuotaState:
    """Free-mint eligibility as reported by `canCreateFreeNFT`."""

    eligible_for_free: bool
    creations_today: int
    cooldown_seconds_remaining: int

    @classmethod
    def from_tuple(cls, values: Sequence[Any]) -> "MintQuotaState":
        can_create, creations_today, time_left = values
        return cls(bool(can_create), int(creations_today), int(time_left))

    def free_mints_remaining(self, per_day: int) -> int:
        return max(0, per_day - self.creations_today)

    @property
    def cooldown_hours(self) -> int:
        return math.ceil(self.cooldown_seconds_remaining / 3600)


class NanoNFTContract:
    """Async client for the NanoNFT ERC-721 contract."""

    def __init__(
        self,
        rpc_url: str,
        address: str,
        chain_id: int,
        minter_private_key: Optional[str] = None,
        receipt_timeout: float = 120.0,
        w3: Optional[AsyncWeb3] = None,
    ):
        """
        Initialize the contract client.

        Args:
            rpc_url: JSON-RPC endpoint of the chain
            address: Contract address
            chain_id: Chain the contract is deployed on
            minter_private_key: Key that signs `createNFT`; read-only without it
            receipt_timeout: Seconds to wait for a mined receipt
            w3: Preconfigured web3 instance, built from rpc_url when omitted
        """
        self.w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self.address = AsyncWeb3.to_checksum_address(address)
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout
        self.contract = self.w3.eth.contract(address=self.address, abi=NANO_NFT_ABI)
        self.account = Account.from_key(minter_private_key) if minter_private_key else None

    @classmethod
    def from_config(cls, config: ContractConfig) -> "NanoNFTContract":
        return cls(
            rpc_url=config.rpc_url,
            address=config.address,
            chain_id=config.chain_id,
            minter_private_key=config.minter_private_key,
            receipt_timeout=config.receipt_timeout_seconds,
        )

    @property
    def minter_address(self) -> Optional[str]:
        return self.account.address if self.account else None

    def can_sign(self) -> bool:
        return self.account is not None

    async def _call(self, method: str, *args: Any) -> Any:
        start = time.monotonic()
        success = False
        try:
            result = await getattr(self.contract.functions, method)(*args).call()
            success = True
            return result
        finally:
            performance_logger.log_contract_call(method, (time.monotonic() - start) * 1000, success)

    async def get_global_stats(self) -> GlobalStats:
        return GlobalStats.from_tuple(await self._call("getGlobalStats"))

    async def get_user_creation_stats(self, user: str) -> UserCreationStats:
        return UserCreationStats.from_tuple(
            await self._call("getUserCreationStats", AsyncWeb3.to_checksum_address(user))
        )

    async def can_create_free_nft(self, user: str) -> MintQuotaState:
        return MintQuotaState.from_tuple(
            await self._call("canCreateFreeNFT", AsyncWeb3.to_checksum_address(user))
        )

    async def balance_of(self, owner: str) -> int:
        return int(await self._call("balanceOf", AsyncWeb3.to_checksum_address(owner)))

    async def get_next_token_id(self) -> int:
        return int(await self._call("getNextTokenId"))

    async def owner_of(self, token_id: int) -> str:
        return str(await self._call("ownerOf", token_id))

    async def token_uri(self, token_id: int) -> str:
        return str(await self._call("tokenURI", token_id))

    def prepare_create_nft(self, token_uri: str, is_free: bool) -> PreparedMint:
        return PreparedMint(token_uri=token_uri, is_free=is_free)

    async def send_transaction(self, prepared: PreparedMint) -> TransactionRecord:
        """
        Sign and submit a prepared `createNFT` call, then wait for its receipt.

        Raises:
            ConfigurationError: no minter key is configured
            MintError: the transaction was rejected or reverted
        """
        if not self.account:
            raise ConfigurationError("No minter key configured; cannot sign transactions")

        start = time.monotonic()
        tx_hash = None
        try:
            nonce = await self.w3.eth.get_transaction_count(self.account.address)
            transaction = await self.contract.functions.createNFT(
                prepared.token_uri, prepared.is_free
            ).build_transaction({
                "from": self.account.address,
                "nonce": nonce,
                "chainId": self.chain_id,
            })
            signed = self.account.sign_transaction(transaction)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except Exception as e:
            performance_logger.log_contract_call("createNFT", (time.monotonic() - start) * 1000, False)
            logger.error(f"NanoNFTContract: createNFT transaction failed: {e}")
            raise MintError(f"Transaction failed: {e}") from e

        hash_hex = AsyncWeb3.to_hex(tx_hash)
        success = receipt.get("status") == 1
        performance_logger.log_contract_call("createNFT", (time.monotonic() - start) * 1000, success)
        if not success:
            logger.error(f"NanoNFTContract: createNFT reverted in {hash_hex}")
            raise MintError(f"Transaction reverted: {hash_hex}", details={"txHash": hash_hex})

        logger.info(f"NanoNFTContract: createNFT confirmed in {hash_hex}")
        return TransactionRecord(hash=hash_hex, success=True)

    def get_service_status(self) -> Dict[str, Any]:
        return {
            "contract_address": self.address,
            "chain_id": self.chain_id,
            "can_sign": self.can_sign(),
            "minter_address": self.minter_address,
            "service_name": "NanoNFTContract",
        }
