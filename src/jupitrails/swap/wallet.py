"""Wallet capability used to sign swap transactions.

Signing flow:
1. Jupiter builds an unsigned versioned transaction for the user's address
2. The wallet signs it (keys never leave the wallet)
3. The signed bytes are handed to the chain capability for submission
"""

import logging
from typing import Optional, Protocol, runtime_checkable

from solders.keypair import Keypair
from solders.transaction import VersionedTransaction

from jupitrails.exceptions import SigningRejected, WalletNotConnected

logger = logging.getLogger(__name__)


@runtime_checkable
class WalletSigner(Protocol):
    """Anything that can sign a serialized Solana transaction."""

    @property
    def connected(self) -> bool: ...

    @property
    def address(self) -> Optional[str]: ...

    async def sign_transaction(self, transaction: bytes) -> bytes:
        """Sign serialized transaction bytes.

        Raises:
            WalletNotConnected: No wallet is connected
            SigningRejected: The user declined or signing failed
        """
        ...


class KeypairWallet:
    """Local hot wallet backed by a solders Keypair."""

    def __init__(self, keypair: Optional[Keypair] = None):
        self._keypair = keypair

    @classmethod
    def from_base58(cls, secret: str) -> "KeypairWallet":
        """Load a wallet from a base58 encoded 64-byte secret key."""
        try:
            return cls(Keypair.from_base58_string(secret.strip()))
        except ValueError as e:
            raise WalletNotConnected(f"Invalid wallet secret key: {e}") from e

    @classmethod
    def from_settings(cls, settings) -> "KeypairWallet":
        if not settings.wallet_secret_key:
            return cls()
        return cls.from_base58(settings.wallet_secret_key)

    @property
    def connected(self) -> bool:
        return self._keypair is not None

    @property
    def address(self) -> Optional[str]:
        if self._keypair is None:
            return None
        return str(self._keypair.pubkey())

    def disconnect(self) -> None:
        self._keypair = None

    async def sign_transaction(self, transaction: bytes) -> bytes:
        if self._keypair is None:
            raise WalletNotConnected("Wallet not connected")

        try:
            unsigned = VersionedTransaction.from_bytes(transaction)
            # the constructor signs the message with the given keypairs
            signed = VersionedTransaction(unsigned.message, [self._keypair])
        except Exception as e:
            logger.error(f"Signing failed for {self.address}: {e}")
            raise SigningRejected(f"Could not sign transaction: {e}") from e

        logger.debug(f"Signed transaction {signed.signatures[0]}")
        return bytes(signed)

    def __repr__(self) -> str:
        return f"KeypairWallet(address={self.address})"
