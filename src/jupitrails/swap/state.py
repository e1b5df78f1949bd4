"""Transaction lifecycle states for a single swap attempt."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from jupitrails.routing.route import transaction_url


class TxStatus(str, Enum):
    """Lifecycle: idle -> pending -> confirming -> confirmed | failed."""

    IDLE = "idle"
    PENDING = "pending"          # submitted, signature known
    CONFIRMING = "confirming"    # polling for confirmation
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TxFailure(str, Enum):
    """Why an attempt failed."""

    WALLET_NOT_CONNECTED = "wallet_not_connected"
    NO_ROUTE = "no_route"
    BUILD = "build"
    SIGNING = "signing"
    SUBMISSION = "submission"
    TIMEOUT = "timeout"
    ON_CHAIN = "on_chain"


@dataclass(frozen=True)
class TransactionState:
    """Immutable snapshot of a swap attempt.

    Each transition produces a new instance; a terminal state is replaced
    by the next attempt, never edited.
    """

    status: TxStatus = TxStatus.IDLE
    signature: Optional[str] = None
    error: Optional[str] = None
    failure: Optional[TxFailure] = None

    @classmethod
    def idle(cls) -> "TransactionState":
        return cls()

    @classmethod
    def pending(cls, signature: str) -> "TransactionState":
        return cls(TxStatus.PENDING, signature=signature)

    @classmethod
    def confirming(cls, signature: str) -> "TransactionState":
        return cls(TxStatus.CONFIRMING, signature=signature)

    @classmethod
    def confirmed(cls, signature: str) -> "TransactionState":
        return cls(TxStatus.CONFIRMED, signature=signature)

    @classmethod
    def failed(
        cls,
        failure: TxFailure,
        error: str,
        signature: Optional[str] = None,
    ) -> "TransactionState":
        return cls(TxStatus.FAILED, signature=signature, error=error, failure=failure)

    @property
    def is_active(self) -> bool:
        """Submitted and not yet resolved."""
        return self.status in (TxStatus.PENDING, TxStatus.CONFIRMING)

    @property
    def is_terminal(self) -> bool:
        return self.status in (TxStatus.CONFIRMED, TxStatus.FAILED)

    @property
    def explorer_url(self) -> Optional[str]:
        return transaction_url(self.signature) if self.signature else None

    def describe(self) -> str:
        """Short human-readable status line."""
        messages = {
            TxStatus.IDLE: "No transaction",
            TxStatus.PENDING: "Transaction Submitted",
            TxStatus.CONFIRMING: "Confirming Transaction...",
            TxStatus.CONFIRMED: "Transaction Confirmed!",
            TxStatus.FAILED: "Transaction Failed",
        }
        text = messages[self.status]
        if self.error:
            text = f"{text}: {self.error}"
        return text
