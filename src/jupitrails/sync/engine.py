"""Keeps the input and output amount fields consistent with live quotes.

The user edits either field. The engine remembers which side was edited
last (the *source*), and after a quiet period asks Jupiter for a quote in
that direction and writes the quoted amount into the opposite field.

Responses can arrive out of order, so every refresh carries the edit
sequence number that was current when it was armed. A result is applied
only if no newer edit (on either side, or a token change) has happened
since; anything else is dropped.

A second, slower refresh keeps the accepted route (the one shown to the
user and later executed) in step with the token pair and input amount,
using the user's own slippage.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from jupitrails.amounts import to_amount, to_base_units
from jupitrails.exceptions import JupitrailsError
from jupitrails.routing.jupiter import JupiterClient
from jupitrails.routing.models import QuoteRequest
from jupitrails.routing.route import ProcessedRoute, RouteProcessor
from jupitrails.swap.state import TransactionState
from jupitrails.sync.debounce import DebouncedCall
from jupitrails.tokens import Token

logger = logging.getLogger(__name__)

QUOTE_DEBOUNCE_SECONDS = 0.5
ROUTE_DEBOUNCE_SECONDS = 1.0
DISCOVERY_SLIPPAGE_BPS = 50

ROUTE_ERROR_MESSAGE = "Failed to fetch route. Please try again."


class AmountSide(str, Enum):
    """Which amount field the user is editing."""

    INPUT = "input"
    OUTPUT = "output"

    @property
    def opposite(self) -> "AmountSide":
        return AmountSide.OUTPUT if self is AmountSide.INPUT else AmountSide.INPUT


@dataclass
class SwapForm:
    """Session-owned state of the swap form."""

    input_token: Token
    output_token: Token
    amount: Decimal = Decimal("0")
    output_amount: Decimal = Decimal("0")
    slippage_bps: int = 50
    route: Optional[ProcessedRoute] = None
    route_error: Optional[str] = None
    route_loading: bool = False
    transaction: TransactionState = field(default_factory=TransactionState.idle)

    def amount_for(self, side: AmountSide) -> Decimal:
        return self.amount if side is AmountSide.INPUT else self.output_amount

    def set_amount(self, side: AmountSide, value: Decimal) -> None:
        if side is AmountSide.INPUT:
            self.amount = value
        else:
            self.output_amount = value

    def token_for(self, side: AmountSide) -> Token:
        return self.input_token if side is AmountSide.INPUT else self.output_token

    def set_token(self, side: AmountSide, token: Token) -> None:
        if side is AmountSide.INPUT:
            self.input_token = token
        else:
            self.output_token = token

    @property
    def has_valid_pair(self) -> bool:
        return self.input_token.mint != self.output_token.mint


class QuoteSyncEngine:
    """Debounced, sequence-guarded synchronization of the two amount fields."""

    def __init__(
        self,
        form: SwapForm,
        quotes: JupiterClient,
        processor: RouteProcessor,
        discovery_slippage_bps: int = DISCOVERY_SLIPPAGE_BPS,
        quote_delay: float = QUOTE_DEBOUNCE_SECONDS,
        route_delay: float = ROUTE_DEBOUNCE_SECONDS,
    ):
        self.form = form
        self.quotes = quotes
        self.processor = processor
        self.discovery_slippage_bps = discovery_slippage_bps
        self.source = AmountSide.INPUT

        self._edit_seq = 0
        self._route_seq = 0
        self._discovery = {
            AmountSide.INPUT: DebouncedCall(quote_delay, name="input-quote"),
            AmountSide.OUTPUT: DebouncedCall(quote_delay, name="output-quote"),
        }
        self._route_timer = DebouncedCall(route_delay, name="route")

    @classmethod
    def from_settings(
        cls,
        form: SwapForm,
        quotes: JupiterClient,
        processor: RouteProcessor,
        settings,
    ) -> "QuoteSyncEngine":
        return cls(
            form,
            quotes,
            processor,
            discovery_slippage_bps=settings.discovery_slippage_bps,
            quote_delay=settings.quote_debounce_seconds,
            route_delay=settings.route_debounce_seconds,
        )

    # ------------------------------------------------------------------
    # User events
    # ------------------------------------------------------------------

    def on_amount_edited(self, side: AmountSide, value: Union[Decimal, int, str]) -> None:
        """Record an edit to one amount field and schedule the opposite side."""
        self.source = side
        self.form.set_amount(side, Decimal(str(value)))
        self._schedule_discovery(side)
        if side is AmountSide.INPUT:
            self._schedule_route()

    def on_token_changed(self, side: AmountSide, token: Token) -> None:
        self.form.set_token(side, token)
        self.form.transaction = TransactionState.idle()
        self.form.route_error = None
        self._schedule_discovery(self.source)
        self._schedule_route()

    def on_slippage_changed(self, slippage_bps: int) -> None:
        # takes effect on the next accepted-route refresh
        self.form.slippage_bps = slippage_bps

    def swap_sides(self) -> None:
        """Exchange tokens and amounts in one step and restart from the input side."""
        self._cancel_timers()
        form = self.form
        form.input_token, form.output_token = form.output_token, form.input_token
        form.amount, form.output_amount = form.output_amount, form.amount
        form.transaction = TransactionState.idle()
        form.route = None
        form.route_error = None
        form.route_loading = False
        self.source = AmountSide.INPUT
        self._route_seq += 1

        logger.debug(
            f"Swapped sides: {form.input_token.display_symbol} -> "
            f"{form.output_token.display_symbol}, amount {form.amount}"
        )
        self._schedule_discovery(AmountSide.INPUT)
        self._schedule_route()

    def clear_route(self) -> None:
        """Drop the accepted route and ignore any route fetch in flight."""
        self._route_timer.cancel()
        self._route_seq += 1
        self.form.route = None
        self.form.route_loading = False

    async def refresh_route(self) -> Optional[ProcessedRoute]:
        """Fetch the accepted route immediately.

        Returns the new route, or None if there is nothing to quote or the
        fetch failed (in which case ``form.route_error`` is set).
        """
        self._route_timer.cancel()
        self._route_seq += 1
        if self.form.amount <= 0 or not self.form.has_valid_pair:
            self.form.route = None
            self.form.route_error = None
            self.form.route_loading = False
            return None
        return await self._refresh_route(self._route_seq)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _schedule_discovery(self, side: AmountSide) -> None:
        self._edit_seq += 1
        seq = self._edit_seq
        # only the source side may drive a refresh
        self._discovery[side.opposite].cancel()

        from_token = self.form.token_for(side)
        to_token = self.form.token_for(side.opposite)
        amount = self.form.amount_for(side)
        self._discovery[side].arm(
            lambda: self._refresh_amount(side, seq, from_token, to_token, amount)
        )

    def _schedule_route(self) -> None:
        self._route_seq += 1
        seq = self._route_seq
        if self.form.amount <= 0 or not self.form.has_valid_pair:
            self._route_timer.cancel()
            self.form.route = None
            self.form.route_loading = False
            return
        self._route_timer.arm(lambda: self._refresh_route(seq))

    def _is_current_edit(self, seq: int) -> bool:
        return seq == self._edit_seq

    # ------------------------------------------------------------------
    # Refreshes
    # ------------------------------------------------------------------

    async def _refresh_amount(
        self,
        side: AmountSide,
        seq: int,
        from_token: Token,
        to_token: Token,
        amount: Decimal,
    ) -> None:
        target = side.opposite

        if amount <= 0:
            if self._is_current_edit(seq):
                self.form.set_amount(target, Decimal("0"))
                if target is AmountSide.INPUT:
                    self._schedule_route()
            return

        if from_token.mint == to_token.mint:
            logger.debug("Skipping price discovery for identical mints")
            return

        try:
            request = QuoteRequest(
                input_mint=from_token.mint,
                output_mint=to_token.mint,
                amount=to_base_units(amount, from_token.decimals),
                slippage_bps=self.discovery_slippage_bps,
            )
            quote = await self.quotes.get_quote(request)
        except (JupitrailsError, ValueError) as e:
            # price discovery is best effort, never surfaced to the user
            logger.warning(f"Failed to get quote for price calculation ({side.value}): {e}")
            return

        if not self._is_current_edit(seq):
            logger.debug(f"Discarding stale {side.value} quote (seq {seq} < {self._edit_seq})")
            return

        value = to_amount(quote.out_amount, to_token.decimals)
        self.form.set_amount(target, value)
        logger.debug(f"{target.value} amount set to {value} {to_token.display_symbol}")

        if target is AmountSide.INPUT:
            self._schedule_route()

    async def _refresh_route(self, seq: int) -> Optional[ProcessedRoute]:
        form = self.form
        input_token = form.input_token
        output_token = form.output_token
        form.route_loading = True
        form.route_error = None

        try:
            request = QuoteRequest(
                input_mint=input_token.mint,
                output_mint=output_token.mint,
                amount=to_base_units(form.amount, input_token.decimals),
                slippage_bps=form.slippage_bps,
            )
            quote = await self.quotes.get_quote(request)
            route = self.processor.process(quote, input_token, output_token)
        except (JupitrailsError, ValueError) as e:
            logger.error(f"Failed to fetch route: {e}")
            if seq == self._route_seq:
                form.route = None
                form.route_error = ROUTE_ERROR_MESSAGE
                form.route_loading = False
            return None

        if seq != self._route_seq:
            logger.debug(f"Discarding stale route (seq {seq} < {self._route_seq})")
            return None

        form.route = route
        form.route_loading = False
        logger.info(
            f"Route updated: {form.amount} {input_token.display_symbol} -> "
            f"{route.total_out} {output_token.display_symbol} via {', '.join(route.amm_path)}"
        )
        return route

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _timers(self) -> list[DebouncedCall]:
        return [*self._discovery.values(), self._route_timer]

    def _cancel_timers(self) -> None:
        for timer in self._timers():
            timer.cancel()

    @property
    def busy(self) -> bool:
        return any(timer.pending for timer in self._timers())

    async def flush(self) -> None:
        """Wait for every armed refresh, including ones armed by other refreshes."""
        while self.busy:
            await asyncio.gather(*(timer.wait() for timer in self._timers()))

    def close(self) -> None:
        self._cancel_timers()
