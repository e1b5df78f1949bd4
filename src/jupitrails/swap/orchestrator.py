"""Drives a single swap attempt: build -> sign -> submit -> confirm.

``execute`` is an async generator of TransactionState snapshots. Every
failure ends the stream with a ``failed`` state; nothing raised by
Jupiter, the wallet or the chain escapes it.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator

from jupitrails.exceptions import (
    ConfirmationFailed,
    ConfirmationTimeout,
    InvalidQuoteError,
    NetworkError,
    SigningRejected,
    SubmissionError,
    WalletNotConnected,
)
from jupitrails.routing.jupiter import JupiterClient
from jupitrails.routing.models import PriorityConfig, Quote
from jupitrails.swap.chain import TransactionConfirmer, TransactionSubmitter
from jupitrails.swap.state import TransactionState, TxFailure
from jupitrails.swap.wallet import WalletSigner

logger = logging.getLogger(__name__)

CONFIRM_POLL_INTERVAL = 2.0
CONFIRM_TIMEOUT = 60.0


@dataclass(frozen=True)
class SwapExecutionRequest:
    """An explicit request to execute an accepted quote."""

    quote: Quote
    user_address: str
    priority: PriorityConfig = field(default_factory=PriorityConfig)


class TransactionOrchestrator:
    """Runs swap attempts. Holds no state between attempts."""

    def __init__(
        self,
        quotes: JupiterClient,
        poll_interval: float = CONFIRM_POLL_INTERVAL,
        confirm_timeout: float = CONFIRM_TIMEOUT,
    ):
        self.quotes = quotes
        self.poll_interval = poll_interval
        self.confirm_timeout = confirm_timeout

    @classmethod
    def from_settings(cls, quotes: JupiterClient, settings) -> "TransactionOrchestrator":
        return cls(
            quotes,
            poll_interval=settings.confirm_poll_interval,
            confirm_timeout=settings.confirm_timeout,
        )

    async def execute(
        self,
        request: SwapExecutionRequest,
        signer: WalletSigner,
        submitter: TransactionSubmitter,
        confirmer: TransactionConfirmer,
    ) -> AsyncIterator[TransactionState]:
        """Execute ``request``, yielding each state transition."""
        if not signer.connected or not signer.address:
            logger.warning("Swap rejected: wallet not connected")
            yield TransactionState.failed(TxFailure.WALLET_NOT_CONNECTED, "Wallet not connected")
            return

        quote = request.quote
        logger.info(
            f"Executing swap {quote.in_amount} {quote.input_mint} -> "
            f"{quote.out_amount} {quote.output_mint} for {request.user_address}"
        )

        # 1. Build
        try:
            swap_tx = await self.quotes.build_swap(quote, request.user_address, request.priority)
        except (NetworkError, InvalidQuoteError) as e:
            logger.error(f"Swap build failed: {e}")
            yield TransactionState.failed(TxFailure.BUILD, f"Failed to build swap transaction: {e}")
            return
        except Exception as e:
            logger.error(f"Swap build error: {type(e).__name__}: {e}")
            yield TransactionState.failed(TxFailure.BUILD, f"Failed to build swap transaction: {e}")
            return

        # 2. Sign
        try:
            signed = await signer.sign_transaction(swap_tx.transaction_bytes)
        except WalletNotConnected as e:
            logger.warning(f"Signing aborted: {e}")
            yield TransactionState.failed(TxFailure.WALLET_NOT_CONNECTED, str(e) or "Wallet not connected")
            return
        except SigningRejected as e:
            logger.warning(f"Signing rejected: {e}")
            yield TransactionState.failed(TxFailure.SIGNING, str(e) or "Signing rejected")
            return
        except Exception as e:
            logger.error(f"Signing error: {type(e).__name__}: {e}")
            yield TransactionState.failed(TxFailure.SIGNING, f"Signing failed: {e}")
            return

        # 3. Submit
        try:
            signature = await submitter.submit_raw(signed)
        except SubmissionError as e:
            logger.error(f"Submission failed: {e}")
            yield TransactionState.failed(TxFailure.SUBMISSION, str(e))
            return
        except Exception as e:
            logger.error(f"Submission error: {type(e).__name__}: {e}")
            yield TransactionState.failed(TxFailure.SUBMISSION, f"Failed to submit transaction: {e}")
            return

        yield TransactionState.pending(signature)

        # 4. Confirm
        yield TransactionState.confirming(signature)
        try:
            await self._await_confirmation(signature, confirmer)
        except ConfirmationTimeout as e:
            logger.warning(str(e))
            yield TransactionState.failed(TxFailure.TIMEOUT, str(e), signature=signature)
            return
        except ConfirmationFailed as e:
            logger.error(str(e))
            yield TransactionState.failed(TxFailure.ON_CHAIN, str(e), signature=signature)
            return
        except Exception as e:
            logger.error(f"Confirmation error for {signature}: {type(e).__name__}: {e}")
            yield TransactionState.failed(
                TxFailure.ON_CHAIN, f"Confirmation failed: {e}", signature=signature
            )
            return

        logger.info(f"Swap confirmed: {signature}")
        yield TransactionState.confirmed(signature)

    async def _await_confirmation(self, signature: str, confirmer: TransactionConfirmer) -> None:
        """Poll until the transaction lands, fails, or the timeout passes.

        Raises:
            ConfirmationTimeout: Not resolved within ``confirm_timeout``
            ConfirmationFailed: Landed with an on-chain error
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.confirm_timeout

        while True:
            remaining = deadline - loop.time()
            try:
                status = await asyncio.wait_for(confirmer.confirm(signature), max(remaining, 0))
            except asyncio.TimeoutError:
                raise ConfirmationTimeout(
                    f"Transaction {signature} not confirmed after {self.confirm_timeout}s"
                ) from None
            except NetworkError as e:
                logger.debug(f"Confirmation check for {signature} failed, will retry: {e}")
            else:
                if status.error:
                    raise ConfirmationFailed(status.error)
                if status.confirmed:
                    return

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise ConfirmationTimeout(
                    f"Transaction {signature} not confirmed after {self.confirm_timeout}s"
                )
            await asyncio.sleep(min(self.poll_interval, remaining))
