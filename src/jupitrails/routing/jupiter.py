"""Jupiter aggregator client for Solana.

Wraps the quote and swap-build endpoints of the Jupiter Swap API.
API docs: https://dev.jup.ag/docs/swap-api
"""

import base64
import binascii
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from jupitrails.exceptions import InvalidQuoteError, NetworkError
from jupitrails.routing.models import PriorityConfig, Quote, QuoteRequest, SwapTransaction

logger = logging.getLogger(__name__)

JUPITER_API_BASE = "https://lite-api.jup.ag/"

QUOTE_PATH = "swap/v1/quote"
SWAP_PATH = "swap/v1/swap"


class JupiterClient:
    """Stateless request/response wrapper around Jupiter's quote and swap APIs.

    Neither call touches chain state: ``get_quote`` only prices a route and
    ``build_swap`` only composes an unsigned transaction.
    """

    def __init__(
        self,
        base_url: str = JUPITER_API_BASE,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize Jupiter client.

        Args:
            base_url: API base URL, with or without trailing slash
            api_key: Optional API key for higher rate limits
            timeout: Request timeout in seconds
            client: Pre-built HTTP client (tests inject a mock transport here)
        """
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.api_key = api_key
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings) -> "JupiterClient":
        return cls(
            base_url=settings.jupiter_api_base,
            api_key=settings.jupiter_api_key,
            timeout=settings.http_timeout,
        )

    def _get_headers(self) -> dict:
        """Get API headers."""
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "JupiterClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    async def _request(self, method: str, path: str, **kwargs) -> object:
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.request(
                method, url, headers=self._get_headers(), **kwargs
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"Jupiter request failed: {type(e).__name__}: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Jupiter API error: {response.status_code} - {response.text}")
            raise NetworkError(
                f"Jupiter {path} returned {response.status_code}",
                http_status=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidQuoteError(f"Jupiter {path} response is not JSON") from e

        if not data:
            raise InvalidQuoteError(f"No data received from Jupiter {path}")
        return data

    async def get_quote(self, request: QuoteRequest) -> Quote:
        """Get the best route for a swap.

        Raises:
            NetworkError: Transport failure or non-200 response
            InvalidQuoteError: Response has no usable quote
        """
        logger.debug(
            f"Requesting quote: {request.amount} {request.input_mint} -> "
            f"{request.output_mint} (slippage {request.slippage_bps} bps)"
        )
        data = await self._request("GET", QUOTE_PATH, params=request.to_params())

        if not isinstance(data, dict):
            raise InvalidQuoteError("Quote response is not an object")
        try:
            quote = Quote.model_validate(data)
        except ValidationError as e:
            raise InvalidQuoteError(f"Unusable quote: {e.error_count()} validation error(s)") from e

        logger.debug(
            f"Quote: {quote.in_amount} -> {quote.out_amount} over "
            f"{len(quote.route_plan)} hop(s), impact {quote.price_impact_pct}"
        )
        return quote

    async def build_swap(
        self,
        quote: Quote,
        user_address: str,
        priority: Optional[PriorityConfig] = None,
    ) -> SwapTransaction:
        """Build an unsigned swap transaction for ``quote``.

        Raises:
            NetworkError: Transport failure or non-200 response
            InvalidQuoteError: Response has no usable transaction
        """
        priority = priority or PriorityConfig()
        payload = {
            "quoteResponse": quote.to_payload(),
            "userPublicKey": user_address,
            **priority.to_payload(),
        }
        data = await self._request("POST", SWAP_PATH, json=payload)

        if not isinstance(data, dict) or not data.get("swapTransaction"):
            raise InvalidQuoteError("No swap transaction returned")

        try:
            tx_bytes = base64.b64decode(data["swapTransaction"], validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise InvalidQuoteError("swapTransaction is not valid base64") from e

        try:
            return SwapTransaction(
                transaction_bytes=tx_bytes,
                last_valid_block_height=int(data.get("lastValidBlockHeight") or 0),
                prioritization_fee_lamports=int(data.get("prioritizationFeeLamports") or 0),
                compute_unit_limit=int(data.get("computeUnitLimit") or 0),
            )
        except (TypeError, ValueError) as e:
            raise InvalidQuoteError(f"Malformed swap response: {e}") from e
