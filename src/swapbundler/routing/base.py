"""Abstract quote fetcher interface."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class Quote:
    """An unsigned swap transaction plus routing metadata from the quote service."""

    input_mint: str
    output_mint: str
    in_amount: int
    out_amount: int
    transaction: str  # base64, unsigned
    request_id: Optional[str] = None
    other_amount_threshold: Optional[int] = None
    slippage_bps: Optional[int] = None
    price_impact_pct: Optional[str] = None
    prioritization_fee_lamports: Optional[int] = None
    route_plan: list = field(default_factory=list)
    platform_fee: Optional[dict] = None
    router: Optional[str] = None

    def to_dict(self) -> dict:
        """Render in the quote service's own field names."""
        return {
            "transaction": self.transaction,
            "requestId": self.request_id,
            "inputMint": self.input_mint,
            "outputMint": self.output_mint,
            "inAmount": str(self.in_amount),
            "outAmount": str(self.out_amount),
            "otherAmountThreshold": (
                str(self.other_amount_threshold)
                if self.other_amount_threshold is not None
                else None
            ),
            "slippageBps": self.slippage_bps,
            "priceImpactPct": self.price_impact_pct,
            "prioritizationFeeLamports": self.prioritization_fee_lamports,
            "routePlan": self.route_plan,
            "platformFee": self.platform_fee,
            "router": self.router,
        }


class QuoteFetcher(ABC):
    """Abstract base class for quote services that return executable transactions."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        pass

    @abstractmethod
    async def fetch_order(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        taker: str,
        slippage_bps: Optional[int] = None,
    ) -> Quote:
        """
        Fetch one unsigned swap transaction.

        Args:
            input_mint: Mint (or known symbol) being sold
            output_mint: Mint (or known symbol) being bought
            amount: Input amount in base units
            taker: Address that will sign and pay for the transaction
            slippage_bps: Optional slippage tolerance in basis points

        Returns:
            Quote carrying a non-empty transaction

        Raises:
            UpstreamQuoteError: On any upstream failure
        """
        pass
