"""Quote fetchers.

Providers:
- Jupiter Ultra: Solana swap orders returned as unsigned transactions
"""

from swapbundler.routing.base import Quote, QuoteFetcher
from swapbundler.routing.jupiter import SOLANA_TOKENS, JupiterUltraFetcher, resolve_mint

__all__ = [
    "Quote",
    "QuoteFetcher",
    "JupiterUltraFetcher",
    "SOLANA_TOKENS",
    "resolve_mint",
]
