"""Quote request and response contracts."""

from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from swapbundler.routing.base import Quote


class QuoteOrderRequest(BaseModel):
    """Request for one swap order."""

    model_config = ConfigDict(populate_by_name=True)

    input_mint: Optional[str] = Field(
        None, validation_alias=AliasChoices("inputMint", "input_mint")
    )
    output_mint: Optional[str] = Field(
        None, validation_alias=AliasChoices("outputMint", "output_mint")
    )
    amount: Optional[Union[int, str]] = Field(None, description="Input amount in base units")
    taker: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("taker", "userPublicKey", "signerAddress"),
        description="Address that will sign the transaction",
    )
    slippage_bps: Optional[int] = Field(
        None, ge=0, le=10_000, validation_alias=AliasChoices("slippageBps", "slippage_bps")
    )


class QuoteOrderResponse(BaseModel):
    """One unsigned swap transaction plus routing metadata."""

    model_config = ConfigDict(populate_by_name=True)

    transaction: str = Field(..., description="Base64 unsigned swap transaction")
    request_id: Optional[str] = Field(None, alias="requestId")
    in_amount: str = Field(..., alias="inAmount")
    out_amount: str = Field(..., alias="outAmount")
    other_amount_threshold: Optional[str] = Field(None, alias="otherAmountThreshold")
    slippage_bps: Optional[int] = Field(None, alias="slippageBps")
    price_impact_pct: Optional[str] = Field(None, alias="priceImpactPct")
    prioritization_fee_lamports: Optional[int] = Field(None, alias="prioritizationFeeLamports")
    route_plan: list[Any] = Field(default_factory=list, alias="routePlan")
    platform_fee: Optional[dict] = Field(None, alias="platformFee")
    router: Optional[str] = None

    @classmethod
    def from_quote(cls, quote: Quote) -> "QuoteOrderResponse":
        return cls.model_validate(quote.to_dict())
