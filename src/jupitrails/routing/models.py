"""Jupiter quote and swap payload models."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _integer_string(value: object) -> str:
    text = str(value).strip()
    if not text.isdigit():
        raise ValueError(f"expected a non-negative integer string, got {value!r}")
    return text


class SwapInfo(BaseModel):
    """A single pool hop inside a route plan."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    amm_key: str = Field(default="", alias="ammKey")
    label: str = Field(default="Unknown")
    input_mint: str = Field(..., alias="inputMint")
    output_mint: str = Field(..., alias="outputMint")
    in_amount: str = Field(..., alias="inAmount")
    out_amount: str = Field(..., alias="outAmount")
    fee_amount: str = Field(default="0", alias="feeAmount")
    fee_mint: str = Field(default="", alias="feeMint")

    @field_validator("in_amount", "out_amount", "fee_amount", mode="before")
    @classmethod
    def _amounts_are_integers(cls, value: object) -> str:
        return _integer_string(value)


class RoutePlanStep(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    swap_info: SwapInfo = Field(..., alias="swapInfo")
    percent: int = 100


class Quote(BaseModel):
    """Quote response from the Jupiter quote endpoint.

    Unknown fields are kept so the quote can be sent back unchanged as
    ``quoteResponse`` when building the swap transaction.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    input_mint: str = Field(..., alias="inputMint")
    output_mint: str = Field(..., alias="outputMint")
    in_amount: str = Field(..., alias="inAmount")
    out_amount: str = Field(..., alias="outAmount")
    other_amount_threshold: str = Field(default="0", alias="otherAmountThreshold")
    swap_mode: str = Field(default="ExactIn", alias="swapMode")
    slippage_bps: int = Field(default=0, alias="slippageBps")
    price_impact_pct: str = Field(default="0", alias="priceImpactPct")
    route_plan: list[RoutePlanStep] = Field(..., alias="routePlan")

    @field_validator("in_amount", "out_amount", "other_amount_threshold", mode="before")
    @classmethod
    def _amounts_are_integers(cls, value: object) -> str:
        return _integer_string(value)

    @field_validator("price_impact_pct", mode="before")
    @classmethod
    def _price_impact_as_string(cls, value: object) -> str:
        return "0" if value is None else str(value)

    @model_validator(mode="after")
    def _route_brackets_request(self) -> "Quote":
        if not self.route_plan:
            raise ValueError("routePlan is empty")
        first = self.route_plan[0].swap_info
        last = self.route_plan[-1].swap_info
        if first.input_mint != self.input_mint:
            raise ValueError(
                f"routePlan starts at {first.input_mint}, expected {self.input_mint}"
            )
        if last.output_mint != self.output_mint:
            raise ValueError(
                f"routePlan ends at {last.output_mint}, expected {self.output_mint}"
            )
        return self

    @property
    def hops(self) -> list[SwapInfo]:
        return [step.swap_info for step in self.route_plan]

    def to_payload(self) -> dict:
        """Wire form of the quote, as Jupiter returned it."""
        return self.model_dump(by_alias=True, mode="json")


@dataclass(frozen=True)
class QuoteRequest:
    """Parameters for a quote lookup."""

    input_mint: str
    output_mint: str
    amount: str  # base units
    slippage_bps: int

    def to_params(self) -> dict:
        return {
            "inputMint": self.input_mint,
            "outputMint": self.output_mint,
            "amount": self.amount,
            "slippageBps": str(self.slippage_bps),
            "restrictIntermediateTokens": "true",
        }


class PriorityLevel(str, Enum):
    """Jupiter priority fee levels."""

    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "veryHigh"


@dataclass(frozen=True)
class PriorityConfig:
    """Compute-unit and priority-fee policy for building a swap."""

    dynamic_compute_unit_limit: bool = True
    dynamic_slippage: bool = True
    priority_level: PriorityLevel = PriorityLevel.VERY_HIGH
    max_lamports: int = 1_000_000

    @classmethod
    def from_settings(cls, settings) -> "PriorityConfig":
        return cls(
            dynamic_compute_unit_limit=settings.dynamic_compute_unit_limit,
            dynamic_slippage=settings.dynamic_slippage,
            priority_level=PriorityLevel(settings.priority_level),
            max_lamports=settings.max_priority_fee_lamports,
        )

    def to_payload(self) -> dict:
        return {
            "dynamicComputeUnitLimit": self.dynamic_compute_unit_limit,
            "dynamicSlippage": self.dynamic_slippage,
            "prioritizationFeeLamports": {
                "priorityLevelWithMaxLamports": {
                    "maxLamports": self.max_lamports,
                    "priorityLevel": self.priority_level.value,
                },
            },
        }


@dataclass(frozen=True)
class SwapTransaction:
    """Unsigned swap transaction returned by the swap-build endpoint."""

    transaction_bytes: bytes
    last_valid_block_height: int
    prioritization_fee_lamports: int = 0
    compute_unit_limit: int = 0
