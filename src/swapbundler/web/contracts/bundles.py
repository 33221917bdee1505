"""Bundle request and response contracts.

Field names are camelCase on the wire. Names used by earlier clients
(``inputMint``, ``jitoTip``, ``userPublicKey``, ``userAddress``) are accepted
as aliases.
"""

from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from swapbundler.config import SubmissionMode


class BuildBundlesRequest(BaseModel):
    """Request to build unsigned bundles, one per branch."""

    model_config = ConfigDict(populate_by_name=True)

    branches: Optional[list[Any]] = Field(
        None, description="Branches of output assets (mints or known symbols)"
    )
    input_asset: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("inputAsset", "inputMint", "input_asset"),
        description="Mint (or known symbol) sold by every swap",
    )
    amount: Optional[Union[int, str]] = Field(
        None, description="Input amount per swap, in base units"
    )
    slippage_bps: Optional[int] = Field(
        None,
        ge=0,
        le=10_000,
        validation_alias=AliasChoices("slippageToleranceBps", "slippageBps", "slippage_bps"),
        description="Slippage tolerance in basis points",
    )
    tip_lamports: Optional[int] = Field(
        None,
        ge=0,
        validation_alias=AliasChoices("tipLamports", "jitoTip", "tip_lamports"),
        description="Tip per bundle before the configured multiplier",
    )
    signer_address: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("signerAddress", "userPublicKey", "signer_address"),
        description="Address that signs and pays for every transaction",
    )


class BuildBundlesResponse(BaseModel):
    """Unsigned bundles in branch order, tip transaction last in each."""

    model_config = ConfigDict(populate_by_name=True)

    bundles: list[list[str]] = Field(..., description="Base64 unsigned transactions per bundle")
    total_swaps: int = Field(..., alias="totalSwaps")
    total_bundles: int = Field(..., alias="totalBundles")


class SubmitBundlesRequest(BaseModel):
    """Request to submit bundles the client already signed."""

    model_config = ConfigDict(populate_by_name=True)

    bundles: Optional[list[Any]] = Field(None, description="Signed base64 transactions per bundle")
    signer_address: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("signerAddress", "userAddress", "signer_address"),
        description="Expected fee payer of every transaction",
    )
    mode: Optional[SubmissionMode] = Field(
        None, description="parallel or sequential (default: configured mode)"
    )


class SubmitBundleRequest(BaseModel):
    """Request to submit a single signed bundle."""

    model_config = ConfigDict(populate_by_name=True)

    transactions: Optional[list[Any]] = Field(None, description="Signed base64 transactions")
    signer_address: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("signerAddress", "userAddress", "signer_address"),
        description="Expected fee payer of every transaction",
    )
