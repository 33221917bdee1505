"""Quote service: a thin pass-through to the configured quote fetcher.

Lets clients inspect what a single swap of a bundle would look like before
building. Nothing is signed or submitted.
"""

import logging
from typing import Any, Optional

from swapbundler.errors import InputValidationError
from swapbundler.routing.base import Quote, QuoteFetcher
from swapbundler.web.services.bundle_builder import is_valid_pubkey, parse_amount

logger = logging.getLogger(__name__)


class QuoteService:
    """Service for fetching single swap orders."""

    def __init__(self, quote_fetcher: QuoteFetcher):
        self.quote_fetcher = quote_fetcher

    async def get_order(
        self,
        input_mint: str,
        output_mint: str,
        amount: Any,
        taker: str,
        slippage_bps: Optional[int] = None,
    ) -> Quote:
        """Fetch one order.

        Raises:
            InputValidationError: Missing or malformed parameters
            UpstreamQuoteError: The quote service failed
        """
        if not input_mint or not output_mint:
            raise InputValidationError("Missing inputMint or outputMint parameter")
        if not taker or not is_valid_pubkey(taker):
            raise InputValidationError("taker is not a valid public key", details=taker)
        parsed_amount = parse_amount(amount)

        return await self.quote_fetcher.fetch_order(
            input_mint, output_mint, parsed_amount, taker, slippage_bps
        )
