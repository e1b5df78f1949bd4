"""Pytest configuration and fixtures."""

import asyncio
import os
from typing import Callable, Optional
from unittest.mock import AsyncMock

import pytest

# Keep a developer's .env / shell from leaking into tests
os.environ["JUPITER_API_KEY"] = ""
os.environ["WALLET_SECRET_KEY"] = ""
os.environ["DEBUG"] = "false"

from jupitrails.config import Settings
from jupitrails.exceptions import SigningRejected, SubmissionError
from jupitrails.routing.models import Quote, QuoteRequest, SwapTransaction
from jupitrails.swap.chain import ConfirmationStatus
from jupitrails.tokens import Token, TokenRegistry

SOL = Token(mint="So11111111111111111111111111111111111111112", decimals=9, symbol="SOL", name="Solana")
USDC = Token(mint="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", decimals=6, symbol="USDC", name="USD Coin")
JUP = Token(mint="JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN", decimals=6, symbol="JUP", name="Jupiter")

# base units out per base unit in, as (numerator, denominator)
RATES = {
    (SOL.mint, USDC.mint): (150, 1000),   # 1 SOL = 150 USDC
    (USDC.mint, SOL.mint): (1000, 150),
    (SOL.mint, JUP.mint): (300, 1000),    # 1 SOL = 300 JUP
    (JUP.mint, SOL.mint): (1000, 300),
    (USDC.mint, JUP.mint): (2, 1),
    (JUP.mint, USDC.mint): (1, 2),
}


def make_hop(
    input_mint: str,
    output_mint: str,
    in_amount: str,
    out_amount: str,
    fee_amount: str = "0",
    label: str = "Raydium",
) -> dict:
    return {
        "ammKey": f"{label.lower()}-amm",
        "label": label,
        "inputMint": input_mint,
        "outputMint": output_mint,
        "inAmount": in_amount,
        "outAmount": out_amount,
        "feeAmount": fee_amount,
        "feeMint": input_mint,
    }


def make_quote_payload(
    input_mint: str,
    output_mint: str,
    in_amount: str,
    out_amount: str,
    hops: Optional[list[dict]] = None,
    price_impact: str = "0.0012",
    slippage_bps: int = 50,
) -> dict:
    """Quote response shaped like Jupiter's /swap/v1/quote output."""
    if hops is None:
        hops = [make_hop(input_mint, output_mint, in_amount, out_amount, fee_amount="2500")]
    return {
        "inputMint": input_mint,
        "inAmount": in_amount,
        "outputMint": output_mint,
        "outAmount": out_amount,
        "otherAmountThreshold": out_amount,
        "swapMode": "ExactIn",
        "slippageBps": slippage_bps,
        "platformFee": None,
        "priceImpactPct": price_impact,
        "routePlan": [{"swapInfo": hop, "percent": 100} for hop in hops],
        "contextSlot": 301234567,
        "timeTaken": 0.012,
    }


def make_quote(input_mint: str, output_mint: str, in_amount: str, out_amount: str, **kwargs) -> Quote:
    return Quote.model_validate(
        make_quote_payload(input_mint, output_mint, in_amount, out_amount, **kwargs)
    )


class FakeQuotes:
    """Stand-in for JupiterClient that prices quotes from RATES.

    ``delays`` is consumed one entry per get_quote call; ``fail`` makes
    matching calls raise.
    """

    def __init__(self):
        self.requests: list[QuoteRequest] = []
        self.delays: list[float] = []
        self.fail: Optional[Callable[[QuoteRequest], Optional[Exception]]] = None
        self.build_swap = AsyncMock(
            return_value=SwapTransaction(transaction_bytes=b"unsigned-tx", last_valid_block_height=279_000_000)
        )
        self.closed = False

    async def get_quote(self, request: QuoteRequest) -> Quote:
        self.requests.append(request)
        delay = self.delays.pop(0) if self.delays else 0
        if delay:
            await asyncio.sleep(delay)
        if self.fail is not None:
            error = self.fail(request)
            if error is not None:
                raise error
        num, den = RATES[(request.input_mint, request.output_mint)]
        out_amount = str(int(request.amount) * num // den)
        return make_quote(request.input_mint, request.output_mint, request.amount, out_amount)

    def discovery_requests(self, slippage_bps: int = 50) -> list[QuoteRequest]:
        return [r for r in self.requests if r.slippage_bps == slippage_bps]

    async def aclose(self) -> None:
        self.closed = True


class FakeWallet:
    """Wallet capability double."""

    def __init__(self, address: Optional[str] = "UserWa11et1111111111111111111111111111111111", reject: bool = False):
        self._address = address
        self.reject = reject
        self.signed: list[bytes] = []

    @property
    def connected(self) -> bool:
        return self._address is not None

    @property
    def address(self) -> Optional[str]:
        return self._address

    async def sign_transaction(self, transaction: bytes) -> bytes:
        if self.reject:
            raise SigningRejected("User rejected the request")
        self.signed.append(transaction)
        return b"signed:" + transaction


class FakeChain:
    """Submitter and confirmer double.

    ``statuses`` is consumed one entry per confirm call; the last entry repeats.
    """

    def __init__(self, signature: str = "5igNaTuRe", statuses: Optional[list] = None, submit_error: bool = False):
        self.signature = signature
        self.statuses = statuses if statuses is not None else [ConfirmationStatus(confirmed=True)]
        self.submit_error = submit_error
        self.submitted: list[bytes] = []
        self.confirm_calls = 0

    async def submit_raw(self, signed_transaction: bytes) -> str:
        if self.submit_error:
            raise SubmissionError("Failed to submit transaction: blockhash not found")
        self.submitted.append(signed_transaction)
        return self.signature

    async def confirm(self, signature: str) -> ConfirmationStatus:
        self.confirm_calls += 1
        status = self.statuses[0] if len(self.statuses) == 1 else self.statuses.pop(0)
        if isinstance(status, Exception):
            raise status
        return status


@pytest.fixture
def settings() -> Settings:
    """Settings with short timings so tests run fast."""
    return Settings(
        _env_file=None,
        default_slippage_bps=100,
        discovery_slippage_bps=50,
        quote_debounce_seconds=0.05,
        route_debounce_seconds=0.1,
        confirm_poll_interval=0.01,
        confirm_timeout=0.1,
    )


@pytest.fixture
def registry() -> TokenRegistry:
    return TokenRegistry([SOL, USDC, JUP])


@pytest.fixture
def fake_quotes() -> FakeQuotes:
    return FakeQuotes()


@pytest.fixture
def sol_usdc_quote() -> Quote:
    return make_quote(SOL.mint, USDC.mint, "1000000000", "150000000")
