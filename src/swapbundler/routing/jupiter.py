"""Jupiter Ultra integration for Solana.

Ultra's ``/order`` endpoint returns a ready-to-sign swap transaction for a
given taker, so no separate swap call is needed.
API docs: https://dev.jup.ag/docs/ultra-api
"""

import logging
from typing import Optional

import httpx

from swapbundler.errors import ConfigurationError, UpstreamQuoteError
from swapbundler.routing.base import Quote, QuoteFetcher

logger = logging.getLogger(__name__)

JUPITER_ULTRA_API = "https://api.jup.ag/ultra/v1"

# Token mint addresses on Solana mainnet
SOLANA_TOKENS = {
    "SOL": "So11111111111111111111111111111111111111112",  # Wrapped SOL
    "USDT": "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",
    "USDC": "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
    "RAY": "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R",
    "ORCA": "orcaEKTdK7LKz57vaAYr9QeNsVEPfiu6QeMU1kektZE",
    "JUP": "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN",
    "BONK": "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
    "WIF": "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm",
    "PYTH": "HZ1JovNiVvGrGNiiYvEozEVgZ58xaU3RKwX8eACQBCt3",
}


def resolve_mint(asset: str) -> str:
    """Map a known token symbol to its mint; anything else is passed through."""
    return SOLANA_TOKENS.get(asset.upper(), asset)


def _optional_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class JupiterUltraFetcher(QuoteFetcher):
    """Jupiter Ultra order provider.

    Every order is a hard failure unless the response is 200, carries no
    error code or error message, and includes a non-empty transaction.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = JUPITER_ULTRA_API,
        timeout: float = 10.0,
        excluded_routers: Optional[list[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Jupiter Ultra fetcher.

        Args:
            api_key: Jupiter API key, sent as ``x-api-key``
            base_url: Ultra API base URL
            timeout: Per-request timeout in seconds
            excluded_routers: Routers Ultra should not use
            transport: Optional httpx transport (tests)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.excluded_routers = excluded_routers or []
        self._transport = transport

    @property
    def name(self) -> str:
        return "Jupiter Ultra"

    def _get_headers(self) -> dict:
        """Get API headers."""
        return {"Accept": "application/json", "x-api-key": self.api_key}

    async def fetch_order(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        taker: str,
        slippage_bps: Optional[int] = None,
    ) -> Quote:
        if not self.api_key:
            raise ConfigurationError("Jupiter API key is not configured")

        input_mint = resolve_mint(input_mint)
        output_mint = resolve_mint(output_mint)

        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "taker": taker,
        }
        if slippage_bps is not None:
            params["slippageBps"] = str(slippage_bps)
        if self.excluded_routers:
            params["excludeRouters"] = ",".join(self.excluded_routers)

        logger.debug(f"Requesting Ultra order: {amount} {input_mint} -> {output_mint}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(
                    f"{self.base_url}/order",
                    headers=self._get_headers(),
                    params=params,
                )
        except httpx.TimeoutException as e:
            raise UpstreamQuoteError("Quote request timed out", details=str(e)) from e
        except httpx.HTTPError as e:
            raise UpstreamQuoteError("Quote request failed", details=str(e)) from e

        if response.status_code != 200:
            logger.warning(f"Jupiter Ultra error: {response.status_code} - {response.text}")
            raise UpstreamQuoteError(
                f"Quote service returned HTTP {response.status_code}",
                details=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamQuoteError("Quote service returned invalid JSON", details=response.text) from e
        if not isinstance(data, dict):
            raise UpstreamQuoteError("Quote service returned invalid JSON", details=response.text)

        error_code = data.get("errorCode")
        if error_code not in (None, 0) or data.get("error"):
            raise UpstreamQuoteError(
                data.get("errorMessage") or data.get("error") or "Quote service returned an error",
                details=data,
            )

        transaction = data.get("transaction")
        if not transaction:
            raise UpstreamQuoteError("Quote service returned no transaction", details=data)

        quote = Quote(
            input_mint=data.get("inputMint", input_mint),
            output_mint=data.get("outputMint", output_mint),
            in_amount=_optional_int(data.get("inAmount")) or amount,
            out_amount=_optional_int(data.get("outAmount")) or 0,
            transaction=transaction,
            request_id=data.get("requestId"),
            other_amount_threshold=_optional_int(data.get("otherAmountThreshold")),
            slippage_bps=_optional_int(data.get("slippageBps")),
            price_impact_pct=(
                str(data["priceImpactPct"]) if data.get("priceImpactPct") is not None else None
            ),
            prioritization_fee_lamports=_optional_int(data.get("prioritizationFeeLamports")),
            route_plan=data.get("routePlan") or [],
            platform_fee=data.get("platformFee"),
            router=data.get("router"),
        )
        logger.info(
            f"Ultra order {quote.request_id}: {quote.in_amount} {quote.input_mint} -> "
            f"{quote.out_amount} {quote.output_mint} via {quote.router or 'unknown'}"
        )
        return quote
