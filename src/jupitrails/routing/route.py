"""Turn a raw Jupiter quote into a display-ready route."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from jupitrails.amounts import to_decimal
from jupitrails.routing.models import Quote, SwapInfo
from jupitrails.tokens import Token, TokenRegistry

logger = logging.getLogger(__name__)

SOLSCAN_TX_URL = "https://solscan.io/tx/"


@dataclass(frozen=True)
class RouteHop:
    """One pool hop, with amounts formatted for display."""

    from_symbol: str
    to_symbol: str
    amm_label: str
    fee_percent: Decimal
    fee_amount: str
    in_amount: str
    out_amount: str
    input_mint: str
    output_mint: str


@dataclass(frozen=True)
class ProcessedRoute:
    """Read-only view over an accepted quote."""

    hops: tuple[RouteHop, ...]
    price_impact: str
    total_out: str
    quote: Quote

    @property
    def amm_path(self) -> list[str]:
        return [hop.amm_label for hop in self.hops]


def fee_percent(fee_amount: str, in_amount: str) -> Decimal:
    """Fee as a percentage of the hop's input; 0 for an empty hop."""
    inp = int(in_amount)
    if inp == 0:
        return Decimal("0")
    return Decimal(int(fee_amount)) / Decimal(inp) * 100


def transaction_url(signature: str) -> str:
    """Solscan link for a transaction signature."""
    return f"{SOLSCAN_TX_URL}{signature}"


class RouteProcessor:
    """Builds ProcessedRoute values using a token registry for hop decimals.

    Intermediate hop tokens are often missing from the registry, so decimals
    fall back to the requested input token (fee, in-amount) or output token
    (out-amount).
    """

    def __init__(self, registry: TokenRegistry):
        self.registry = registry

    def _decimals(self, mint: str, fallback: Token) -> int:
        token: Optional[Token] = self.registry.by_mint(mint)
        if token is None:
            return fallback.decimals
        return token.decimals

    def _hop(self, info: SwapInfo, input_token: Token, output_token: Token) -> RouteHop:
        in_decimals = self._decimals(info.input_mint, input_token)
        out_decimals = self._decimals(info.output_mint, output_token)
        return RouteHop(
            from_symbol=self.registry.symbol_for(info.input_mint),
            to_symbol=self.registry.symbol_for(info.output_mint),
            amm_label=info.label,
            fee_percent=fee_percent(info.fee_amount, info.in_amount),
            fee_amount=to_decimal(info.fee_amount, in_decimals),
            in_amount=to_decimal(info.in_amount, in_decimals),
            out_amount=to_decimal(info.out_amount, out_decimals),
            input_mint=info.input_mint,
            output_mint=info.output_mint,
        )

    def process(self, quote: Quote, input_token: Token, output_token: Token) -> ProcessedRoute:
        hops = tuple(self._hop(info, input_token, output_token) for info in quote.hops)
        route = ProcessedRoute(
            hops=hops,
            price_impact=quote.price_impact_pct,
            total_out=to_decimal(quote.out_amount, output_token.decimals),
            quote=quote,
        )
        logger.debug(
            f"Processed route {input_token.display_symbol} -> {output_token.display_symbol}: "
            f"{' > '.join(route.amm_path)} (out {route.total_out})"
        )
        return route
