"""Swap session: owns the form and wires quote sync to swap execution."""

import logging
from decimal import Decimal
from typing import Iterable, Optional, Union

from jupitrails.config import Settings
from jupitrails.exceptions import SwapInProgressError
from jupitrails.routing.jupiter import JupiterClient
from jupitrails.routing.models import PriorityConfig
from jupitrails.routing.route import ProcessedRoute, RouteProcessor
from jupitrails.swap.chain import TransactionConfirmer, TransactionSubmitter
from jupitrails.swap.orchestrator import SwapExecutionRequest, TransactionOrchestrator
from jupitrails.swap.state import TransactionState, TxFailure, TxStatus
from jupitrails.swap.wallet import WalletSigner
from jupitrails.sync.engine import AmountSide, QuoteSyncEngine, SwapForm
from jupitrails.tokens import Token, TokenRegistry

logger = logging.getLogger(__name__)


class SwapSession:
    """One user's swap form.

    All mutation happens on the event loop that drives the session. At most
    one execution may be in flight; swapping sides detaches a running
    execution from the form but does not allow a second one to start.
    """

    def __init__(
        self,
        quotes: JupiterClient,
        registry: TokenRegistry,
        input_token: Token,
        output_token: Token,
        settings: Settings,
        amount: Union[Decimal, int, str] = Decimal("1"),
    ):
        self.settings = settings
        self.quotes = quotes
        self.registry = registry
        self.form = SwapForm(
            input_token=input_token,
            output_token=output_token,
            amount=Decimal(str(amount)),
            slippage_bps=settings.default_slippage_bps,
        )
        self.engine = QuoteSyncEngine.from_settings(
            self.form, quotes, RouteProcessor(registry), settings
        )
        self.orchestrator = TransactionOrchestrator.from_settings(quotes, settings)
        self.priority = PriorityConfig.from_settings(settings)

        self._attempt = 0
        self._executing = False

    # ------------------------------------------------------------------
    # Form events
    # ------------------------------------------------------------------

    @property
    def transaction(self) -> TransactionState:
        return self.form.transaction

    @property
    def route(self) -> Optional[ProcessedRoute]:
        return self.form.route

    def set_amount(self, value: Union[Decimal, int, str]) -> None:
        self.engine.on_amount_edited(AmountSide.INPUT, value)

    def set_output_amount(self, value: Union[Decimal, int, str]) -> None:
        self.engine.on_amount_edited(AmountSide.OUTPUT, value)

    def set_input_token(self, token: Token) -> None:
        self.engine.on_token_changed(AmountSide.INPUT, token)

    def set_output_token(self, token: Token) -> None:
        self.engine.on_token_changed(AmountSide.OUTPUT, token)

    def set_slippage(self, slippage_bps: int) -> None:
        self.engine.on_slippage_changed(slippage_bps)

    def swap_sides(self) -> None:
        # a running execution keeps going but no longer writes to the form
        self._attempt += 1
        self.engine.swap_sides()

    async def get_route(self) -> Optional[ProcessedRoute]:
        """Explicit "get route": fetch now and surface errors on the form."""
        return await self.engine.refresh_route()

    def replace_registry(self, tokens: Iterable[Token]) -> TokenRegistry:
        """Swap in a fresh token registry.

        Selected tokens are replaced by their new registry entries when the
        mint is still listed.
        """
        self.registry = self.registry.replace(tokens)
        self.engine.processor = RouteProcessor(self.registry)
        self.form.input_token = self.registry.by_mint(self.form.input_token.mint) or self.form.input_token
        self.form.output_token = (
            self.registry.by_mint(self.form.output_token.mint) or self.form.output_token
        )
        logger.info(f"Loaded {len(self.registry)} tokens")
        return self.registry

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @property
    def can_execute(self) -> bool:
        return not self._executing and not self.form.transaction.is_active

    async def execute_swap(
        self,
        signer: WalletSigner,
        submitter: TransactionSubmitter,
        confirmer: TransactionConfirmer,
    ) -> TransactionState:
        """Execute the accepted route and return the final state.

        Raises:
            SwapInProgressError: Another execution is pending or confirming
        """
        if not self.can_execute:
            raise SwapInProgressError(
                f"Swap already in progress ({self.form.transaction.status.value})"
            )

        self._attempt += 1
        attempt = self._attempt

        route = self.form.route
        if route is None:
            state = TransactionState.failed(TxFailure.NO_ROUTE, "No route available")
            self.form.transaction = state
            return state

        request = SwapExecutionRequest(
            quote=route.quote,
            user_address=signer.address or "",
            priority=self.priority,
        )

        self._executing = True
        self.form.transaction = TransactionState.idle()
        state = self.form.transaction
        try:
            async for state in self.orchestrator.execute(request, signer, submitter, confirmer):
                if attempt == self._attempt:
                    self.form.transaction = state
        finally:
            self._executing = False

        if state.status is TxStatus.CONFIRMED and attempt == self._attempt:
            # force a fresh quote before the next swap
            self.engine.clear_route()
        return state

    async def aclose(self) -> None:
        self.engine.close()
        await self.quotes.aclose()
