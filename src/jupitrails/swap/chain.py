"""Chain capability: submit signed transactions and check their status.

Backed by solana-py's async RPC client.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Protocol, runtime_checkable

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction_status import TransactionConfirmationStatus

from jupitrails.exceptions import NetworkError, SubmissionError

logger = logging.getLogger(__name__)

SOLANA_MAINNET_RPC = "https://api.mainnet-beta.solana.com"

LAMPORTS_PER_SOL = 1_000_000_000

# statuses that count as landed for "confirmed" commitment
CONFIRMED_STATUSES = (
    TransactionConfirmationStatus.Confirmed,
    TransactionConfirmationStatus.Finalized,
)


@dataclass(frozen=True)
class ConfirmationStatus:
    """Result of one confirmation check.

    ``confirmed=False`` with no ``error`` means not resolved yet.
    """

    confirmed: bool = False
    error: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.confirmed or self.error is not None


@runtime_checkable
class TransactionSubmitter(Protocol):
    async def submit_raw(self, signed_transaction: bytes) -> str:
        """Submit signed bytes, returning the transaction signature."""
        ...


@runtime_checkable
class TransactionConfirmer(Protocol):
    async def confirm(self, signature: str) -> ConfirmationStatus: ...


class SolanaRpcClient:
    """Solana RPC access for swap execution.

    Implements both TransactionSubmitter and TransactionConfirmer.
    """

    def __init__(
        self,
        endpoint: str = SOLANA_MAINNET_RPC,
        timeout: float = 30.0,
        client: Optional[AsyncClient] = None,
        commitment: Commitment = Confirmed,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.commitment = commitment
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings) -> "SolanaRpcClient":
        return cls(endpoint=settings.sol_rpc_url, timeout=settings.http_timeout)

    @property
    def client(self) -> AsyncClient:
        if self._client is None:
            self._client = AsyncClient(self.endpoint, commitment=self.commitment, timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.close()
            self._client = None

    async def __aenter__(self) -> "SolanaRpcClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    @staticmethod
    def _value(resp: Any, method: str) -> Any:
        # error replies are parsed into RPC error objects without a value
        if not hasattr(resp, "value"):
            raise NetworkError(f"RPC {method} error: {resp}")
        return resp.value

    async def submit_raw(self, signed_transaction: bytes) -> str:
        try:
            resp = await self.client.send_raw_transaction(
                signed_transaction,
                opts=TxOpts(preflight_commitment=self.commitment),
            )
            signature = self._value(resp, "sendTransaction")
        except (SolanaRpcException, RPCException, NetworkError) as e:
            raise SubmissionError(f"Failed to submit transaction: {e}") from e

        if not signature:
            raise SubmissionError("RPC returned no signature")
        logger.info(f"Submitted transaction {signature}")
        return str(signature)

    async def confirm(self, signature: str) -> ConfirmationStatus:
        try:
            resp = await self.client.get_signature_statuses([Signature.from_string(signature)])
        except SolanaRpcException as e:
            raise NetworkError(f"RPC getSignatureStatuses failed: {e}") from e

        statuses = self._value(resp, "getSignatureStatuses") or [None]
        status = statuses[0]
        if status is None:
            return ConfirmationStatus()

        if status.err is not None:
            return ConfirmationStatus(error=f"Transaction failed on-chain: {status.err}")

        if status.confirmation_status in CONFIRMED_STATUSES:
            return ConfirmationStatus(confirmed=True)
        return ConfirmationStatus()

    async def get_balance(self, address: str) -> Decimal:
        """Native SOL balance of ``address``."""
        try:
            resp = await self.client.get_balance(Pubkey.from_string(address), commitment=self.commitment)
        except SolanaRpcException as e:
            raise NetworkError(f"RPC getBalance failed: {e}") from e

        lamports = self._value(resp, "getBalance") or 0
        return Decimal(lamports) / Decimal(LAMPORTS_PER_SOL)
