"""Bundle assembly.

Turns branches of output assets into unsigned bundles:

    [swap_1, ..., swap_n, tip]

Each swap transaction comes from one quote-service order, with compute budget
instructions prepended. The tip transaction pays the relay and is always last.
Every tip of one build call reuses the recent blockhash of the first swap of
the first branch, so all bundles expire together.

This service never signs. Bundles are returned for client-side signing.
"""

import asyncio
import itertools
import logging
import random
from dataclasses import dataclass
from typing import Any, Optional

from solders.pubkey import Pubkey

from swapbundler.config import Settings, TipSelection
from swapbundler.errors import (
    BundleError,
    ConfigurationError,
    InputValidationError,
    UpstreamQuoteError,
)
from swapbundler.routing.base import Quote, QuoteFetcher
from swapbundler.solana.decoder import summarize_transaction
from swapbundler.solana.rpc import SolanaRpcClient
from swapbundler.solana.transactions import (
    TransactionDecodeError,
    add_compute_budget,
    build_tip_transaction,
    decode_transaction,
    encode_transaction,
    lookup_table_keys,
    recent_blockhash,
)

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Unsigned bundles in branch order."""

    bundles: list[list[str]]
    total_swaps: int

    @property
    def total_bundles(self) -> int:
        return len(self.bundles)

    def to_dict(self) -> dict:
        return {
            "bundles": self.bundles,
            "totalSwaps": self.total_swaps,
            "totalBundles": self.total_bundles,
        }


class TipAccountSelector:
    """Picks the tip recipient for each bundle."""

    def __init__(self, accounts: list[str], policy: TipSelection = TipSelection.RANDOM):
        if not accounts:
            raise ConfigurationError("No tip accounts configured")
        self.accounts = list(accounts)
        self.policy = policy
        self._cycle = itertools.cycle(self.accounts)

    def next(self) -> str:
        if self.policy == TipSelection.ROUND_ROBIN:
            return next(self._cycle)
        return random.choice(self.accounts)


def is_valid_pubkey(address: Any) -> bool:
    if not isinstance(address, str) or not address:
        return False
    try:
        Pubkey.from_string(address)
    except ValueError:
        return False
    return True


def parse_amount(amount: Any) -> int:
    """Amount in base units: a positive integer, or a string holding one."""
    if isinstance(amount, bool):
        raise InputValidationError("amount must be a positive integer", details=amount)
    if isinstance(amount, int):
        value = amount
    elif isinstance(amount, str) and amount.strip().isdigit():
        value = int(amount.strip())
    else:
        raise InputValidationError("amount must be a positive integer", details=amount)
    if value <= 0:
        raise InputValidationError("amount must be a positive integer", details=amount)
    return value


def validate_build_request(
    branches: Any,
    input_asset: Any,
    amount: Any,
    signer_address: Any,
    max_bundle_transactions: int,
) -> int:
    """Fail fast on malformed input before any network I/O.

    Returns:
        The parsed amount

    Raises:
        InputValidationError: Naming the first offending field or branch
    """
    if not branches or not isinstance(branches, list):
        raise InputValidationError("Missing or invalid branches array")

    for branch_index, branch in enumerate(branches, start=1):
        if not isinstance(branch, list) or not branch:
            raise InputValidationError(
                f"Branch {branch_index} is empty or invalid", branchIndex=branch_index
            )
        if not all(isinstance(asset, str) and asset for asset in branch):
            raise InputValidationError(
                f"Branch {branch_index} contains an invalid asset", branchIndex=branch_index
            )
        if len(branch) + 1 > max_bundle_transactions:
            raise InputValidationError(
                f"Branch {branch_index} has too many swaps",
                details=(
                    f"{len(branch)} swaps plus the tip exceed the relay limit of "
                    f"{max_bundle_transactions} transactions per bundle"
                ),
                branchIndex=branch_index,
            )

    if not input_asset or not isinstance(input_asset, str):
        raise InputValidationError("Missing inputAsset parameter")
    if amount is None or amount == "":
        raise InputValidationError("Missing amount parameter")
    if not signer_address:
        raise InputValidationError("Missing signerAddress parameter")
    if not is_valid_pubkey(signer_address):
        raise InputValidationError("signerAddress is not a valid public key", details=signer_address)

    return parse_amount(amount)


class BundleBuilder:
    """Builds unsigned bundles from branches of output assets."""

    def __init__(
        self,
        quote_fetcher: QuoteFetcher,
        rpc: SolanaRpcClient,
        settings: Settings,
        tip_selector: Optional[TipAccountSelector] = None,
    ):
        self.quote_fetcher = quote_fetcher
        self.rpc = rpc
        self.settings = settings
        self.tip_selector = tip_selector or TipAccountSelector(
            settings.tip_accounts, settings.tip_selection
        )

    def tip_amount(self, tip_lamports: Optional[int]) -> int:
        base = tip_lamports if tip_lamports is not None else self.settings.default_tip_lamports
        return base * self.settings.tip_multiplier

    async def _fetch_quote(
        self,
        input_asset: str,
        output_asset: str,
        amount: int,
        signer_address: str,
        slippage_bps: Optional[int],
    ) -> Quote:
        try:
            return await asyncio.wait_for(
                self.quote_fetcher.fetch_order(
                    input_asset, output_asset, amount, signer_address, slippage_bps
                ),
                timeout=self.settings.request_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamQuoteError(
                "Quote request timed out",
                details=f"No response within {self.settings.request_timeout_ms}ms",
            ) from e

    async def _fetch_branch_quotes(
        self,
        branch_index: int,
        branch: list[str],
        input_asset: str,
        amount: int,
        signer_address: str,
        slippage_bps: Optional[int],
    ) -> list[Quote]:
        """One order per asset, concurrently; the lowest failing swap aborts the build."""
        results = await asyncio.gather(
            *[
                self._fetch_quote(input_asset, asset, amount, signer_address, slippage_bps)
                for asset in branch
            ],
            return_exceptions=True,
        )

        for swap_index, result in enumerate(results, start=1):
            if isinstance(result, BundleError):
                logger.warning(
                    f"Quote failed for branch {branch_index}, swap {swap_index} "
                    f"({branch[swap_index - 1]}): {result}"
                )
                raise result.with_context(
                    message=f"Failed to get quote for branch {branch_index}, swap {swap_index}: {result.message}",
                    branchIndex=branch_index,
                    swapIndex=swap_index,
                    outputAsset=branch[swap_index - 1],
                )
            if isinstance(result, BaseException):
                raise result

        return list(results)

    async def _resolve_tables(self, branch_index: int, transactions: list) -> dict[str, list[Pubkey]]:
        keys = lookup_table_keys(transactions)
        if not keys:
            return {}
        try:
            tables = await self.rpc.get_lookup_tables(keys)
        except BundleError as e:
            raise e.with_context(branchIndex=branch_index)
        return {key: [Pubkey.from_string(a) for a in addresses] for key, addresses in tables.items()}

    async def build(
        self,
        branches: list[list[str]],
        input_asset: str,
        amount: Any,
        signer_address: str,
        slippage_bps: Optional[int] = None,
        tip_lamports: Optional[int] = None,
    ) -> BuildResult:
        """Build one unsigned bundle per branch.

        Branches are processed one after another; swaps within a branch are
        quoted concurrently.

        Raises:
            InputValidationError: Malformed input, nothing was fetched
            UpstreamQuoteError: A quote or lookup table could not be obtained
        """
        parsed_amount = validate_build_request(
            branches, input_asset, amount, signer_address,
            self.settings.max_bundle_transactions,
        )
        if tip_lamports is not None and tip_lamports < 0:
            raise InputValidationError("tipLamports must not be negative", details=tip_lamports)

        tip = self.tip_amount(tip_lamports)
        logger.info(
            f"Building {len(branches)} bundle(s) for {signer_address}: "
            f"{parsed_amount} {input_asset}, tip {tip} lamports"
        )

        bundles: list[list[str]] = []
        anchor: Optional[str] = None
        total_swaps = 0

        for branch_index, branch in enumerate(branches, start=1):
            quotes = await self._fetch_branch_quotes(
                branch_index, branch, input_asset, parsed_amount, signer_address, slippage_bps
            )

            swaps = []
            for swap_index, quote in enumerate(quotes, start=1):
                try:
                    swaps.append(decode_transaction(quote.transaction))
                except TransactionDecodeError as e:
                    raise UpstreamQuoteError(
                        "Quote service returned an undecodable transaction",
                        details=str(e),
                        branchIndex=branch_index,
                        swapIndex=swap_index,
                    ) from e

            tables = await self._resolve_tables(branch_index, swaps)

            rebuilt = []
            for swap_index, tx in enumerate(swaps, start=1):
                try:
                    rebuilt.append(
                        add_compute_budget(
                            tx,
                            tables,
                            self.settings.compute_unit_limit,
                            self.settings.compute_unit_price_micro_lamports,
                        )
                    )
                except Exception as e:
                    raise UpstreamQuoteError(
                        "Failed to add compute budget to swap transaction",
                        details=str(e),
                        branchIndex=branch_index,
                        swapIndex=swap_index,
                    ) from e

            if anchor is None:
                anchor = recent_blockhash(rebuilt[0])
                logger.debug(f"Tip blockhash anchor: {anchor}")

            tip_account = self.tip_selector.next()
            tip_tx = build_tip_transaction(signer_address, tip_account, tip, anchor)

            bundle = [encode_transaction(tx) for tx in rebuilt] + [encode_transaction(tip_tx)]
            if logger.isEnabledFor(logging.DEBUG):
                for position, blob in enumerate(bundle, start=1):
                    logger.debug(f"Bundle {branch_index} tx {position}: {summarize_transaction(blob)}")

            logger.info(
                f"Bundle {branch_index}: {len(rebuilt)} swap(s) + tip to {tip_account}"
            )
            bundles.append(bundle)
            total_swaps += len(rebuilt)

        return BuildResult(bundles=bundles, total_swaps=total_swaps)
