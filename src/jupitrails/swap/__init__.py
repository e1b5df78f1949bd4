"""Swap execution: wallet and chain capabilities and the transaction state machine."""

from jupitrails.swap.chain import ConfirmationStatus, SolanaRpcClient
from jupitrails.swap.orchestrator import SwapExecutionRequest, TransactionOrchestrator
from jupitrails.swap.state import TransactionState, TxFailure, TxStatus
from jupitrails.swap.wallet import KeypairWallet, WalletSigner

__all__ = [
    "ConfirmationStatus",
    "KeypairWallet",
    "SolanaRpcClient",
    "SwapExecutionRequest",
    "TransactionOrchestrator",
    "TransactionState",
    "TxFailure",
    "TxStatus",
    "WalletSigner",
]
