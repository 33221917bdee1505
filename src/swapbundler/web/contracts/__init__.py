"""Request and response contracts for the web layer.

These Pydantic models define the API interface for web clients.
"""

from swapbundler.web.contracts.bundles import (
    BuildBundlesRequest,
    BuildBundlesResponse,
    SubmitBundleRequest,
    SubmitBundlesRequest,
)
from swapbundler.web.contracts.quotes import QuoteOrderRequest, QuoteOrderResponse
from swapbundler.web.contracts.transactions import (
    DecodedTransaction,
    DecodeTransactionRequest,
)

__all__ = [
    # Bundle contracts
    "BuildBundlesRequest",
    "BuildBundlesResponse",
    "SubmitBundlesRequest",
    "SubmitBundleRequest",
    # Quote contracts
    "QuoteOrderRequest",
    "QuoteOrderResponse",
    # Transaction contracts
    "DecodeTransactionRequest",
    "DecodedTransaction",
]
