"""Command line interface: quote, balance, swap and config."""

import argparse
import asyncio
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import Optional

from jupitrails.config import Settings, get_settings
from jupitrails.exceptions import JupitrailsError
from jupitrails.routing.jupiter import JupiterClient
from jupitrails.routing.route import ProcessedRoute
from jupitrails.session import SwapSession
from jupitrails.swap.chain import SolanaRpcClient
from jupitrails.swap.state import TxStatus
from jupitrails.swap.wallet import KeypairWallet
from jupitrails.tokens import Token, TokenRegistry

logger = logging.getLogger(__name__)


def parse_token(spec: str) -> Token:
    """Parse ``MINT:DECIMALS[:SYMBOL]``."""
    parts = spec.split(":")
    if len(parts) not in (2, 3):
        raise argparse.ArgumentTypeError(f"expected MINT:DECIMALS[:SYMBOL], got {spec!r}")
    try:
        decimals = int(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(f"decimals must be an integer: {parts[1]!r}") from None
    if not 0 <= decimals <= 255:
        raise argparse.ArgumentTypeError(f"decimals out of range: {decimals}")
    symbol = parts[2] if len(parts) == 3 else ""
    return Token(mint=parts[0], decimals=decimals, symbol=symbol)


def parse_amount(value: str) -> Decimal:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not amount.is_finite() or amount < 0:
        raise argparse.ArgumentTypeError(f"amount must be a non-negative number: {value!r}")
    return amount


def format_route(route: ProcessedRoute) -> str:
    lines = []
    for i, hop in enumerate(route.hops, 1):
        lines.append(
            f"  {i}. {hop.from_symbol} -> {hop.to_symbol} via {hop.amm_label}: "
            f"{hop.in_amount} -> {hop.out_amount} "
            f"(fee {hop.fee_amount}, {hop.fee_percent:.4f}%)"
        )
    lines.append(f"  Total out: {route.total_out}")
    lines.append(f"  Price impact: {route.price_impact}%")
    return "\n".join(lines)


def _build_session(args: argparse.Namespace, settings: Settings) -> SwapSession:
    registry = TokenRegistry([args.input, args.output])
    session = SwapSession(
        quotes=JupiterClient.from_settings(settings),
        registry=registry,
        input_token=args.input,
        output_token=args.output,
        settings=settings,
        amount=args.amount,
    )
    if args.slippage is not None:
        session.set_slippage(args.slippage)
    return session


async def _sync_and_route(session: SwapSession, output_amount: Optional[Decimal]) -> Optional[ProcessedRoute]:
    if output_amount is not None:
        # let the output-driven quote fill in the input amount first
        session.set_output_amount(output_amount)
        await session.engine.flush()
        if session.route is not None:
            return session.route
    return await session.get_route()


async def cmd_quote(args: argparse.Namespace, settings: Settings) -> int:
    session = _build_session(args, settings)
    try:
        route = await _sync_and_route(session, args.output_amount)
    finally:
        await session.aclose()

    if route is None:
        print(session.form.route_error or "No route available")
        return 1

    form = session.form
    print(
        f"{form.amount} {form.input_token.display_symbol} -> "
        f"{route.total_out} {form.output_token.display_symbol}"
    )
    print(format_route(route))
    return 0


async def cmd_balance(args: argparse.Namespace, settings: Settings) -> int:
    wallet = KeypairWallet.from_settings(settings)
    if not wallet.connected:
        print("No wallet configured (set WALLET_SECRET_KEY)")
        return 1

    async with SolanaRpcClient.from_settings(settings) as rpc:
        balance = await rpc.get_balance(wallet.address)
    print(f"{wallet.address}: {balance:.4f} SOL")
    return 0


async def cmd_swap(args: argparse.Namespace, settings: Settings) -> int:
    wallet = KeypairWallet.from_settings(settings)
    session = _build_session(args, settings)

    try:
        route = await _sync_and_route(session, args.output_amount)
        if route is None:
            print(session.form.route_error or "No route available")
            return 1
        print(format_route(route))

        if not args.yes:
            answer = input("Execute this swap? [y/N] ").strip().lower()
            if answer not in ("y", "yes"):
                print("Aborted")
                return 1

        async with SolanaRpcClient.from_settings(settings) as rpc:
            state = await session.execute_swap(wallet, rpc, rpc)
    finally:
        await session.aclose()

    print(state.describe())
    if state.explorer_url:
        print(f"View on Solscan: {state.explorer_url}")
    return 0 if state.status is TxStatus.CONFIRMED else 1


def cmd_config(args: argparse.Namespace, settings: Settings) -> int:
    print(json.dumps(settings.get_safe_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jupitrails", description="Quote and execute Jupiter swaps on Solana"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_pair_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--input", type=parse_token, required=True, help="MINT:DECIMALS[:SYMBOL]")
        p.add_argument("--output", type=parse_token, required=True, help="MINT:DECIMALS[:SYMBOL]")
        p.add_argument("--amount", type=parse_amount, default=Decimal("1"), help="Input amount")
        p.add_argument(
            "--output-amount",
            type=parse_amount,
            default=None,
            help="Desired output amount; the input amount is derived from a quote",
        )
        p.add_argument("--slippage", type=int, default=None, help="Slippage in bps")

    quote = sub.add_parser("quote", help="Show the best route for a swap")
    add_pair_args(quote)

    swap = sub.add_parser("swap", help="Quote and execute a swap")
    add_pair_args(swap)
    swap.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    sub.add_parser("balance", help="Show the configured wallet's SOL balance")
    sub.add_parser("config", help="Show effective configuration (secrets redacted)")
    return parser


COMMANDS = {
    "quote": cmd_quote,
    "swap": cmd_swap,
    "balance": cmd_balance,
}


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    log_level = logging.DEBUG if (settings.debug or args.verbose) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "config":
        sys.exit(cmd_config(args, settings))

    try:
        code = asyncio.run(COMMANDS[args.command](args, settings))
    except JupitrailsError as e:
        logger.error(f"{type(e).__name__}: {e}")
        code = 1
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
