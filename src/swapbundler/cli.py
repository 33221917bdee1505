"""Command-line bundle runner.

Builds, signs (with the local keypair from SIGNER_PRIVATE_KEY), submits and
reports in one process.

Usage:
    swapbundler-run --input SOL --amount 1000000 --branch USDC --branch JUP,BONK
    swapbundler-run --input SOL --amount 1000000 --branch USDC --mode sequential
    swapbundler-run --input SOL --amount 1000000 --branch USDC --build-only
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

from swapbundler.config import Settings, SubmissionMode, get_settings
from swapbundler.errors import BundleError
from swapbundler.main import configure_logging
from swapbundler.relay.jito import JitoRelayClient
from swapbundler.routing.jupiter import JupiterUltraFetcher
from swapbundler.signing.factory import get_signer
from swapbundler.solana.rpc import SolanaRpcClient
from swapbundler.web.services.bundle_builder import BundleBuilder
from swapbundler.web.services.bundle_submitter import BundleSubmitter
from swapbundler.web.services.outcome_aggregator import OutcomeAggregator
from swapbundler.web.services.pipeline import BundlePipeline

logger = logging.getLogger(__name__)


def parse_branch(value: str) -> list[str]:
    assets = [a.strip() for a in value.split(",") if a.strip()]
    if not assets:
        raise argparse.ArgumentTypeError("branch must list at least one asset")
    return assets


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build and submit atomic Solana swap bundles")
    parser.add_argument("--input", required=True, help="Input mint or known symbol (e.g. SOL)")
    parser.add_argument("--amount", required=True, type=int, help="Input amount per swap, in base units")
    parser.add_argument(
        "--branch",
        required=True,
        action="append",
        type=parse_branch,
        help="Comma-separated output assets of one bundle; repeat for more bundles",
    )
    parser.add_argument("--slippage-bps", type=int, help="Slippage tolerance in basis points")
    parser.add_argument("--tip-lamports", type=int, help="Tip per bundle (default from settings)")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in SubmissionMode],
        help="Submission mode (default from settings)",
    )
    parser.add_argument(
        "--build-only", action="store_true", help="Print unsigned bundles and exit"
    )
    return parser


def create_pipeline(settings: Settings) -> BundlePipeline:
    """Wire the real clients from settings."""
    fetcher = JupiterUltraFetcher(
        api_key=settings.quote_api_key,
        base_url=settings.quote_base_url,
        timeout=settings.request_timeout_seconds,
        excluded_routers=settings.excluded_router_list,
    )
    relay = JitoRelayClient(
        relay_url=settings.relay_url,
        auth_token=settings.relay_auth_token or None,
        poll_interval=settings.confirmation_poll_interval_seconds,
    )
    rpc = SolanaRpcClient(settings.rpc_url, timeout=settings.request_timeout_seconds)

    return BundlePipeline(
        builder=BundleBuilder(fetcher, rpc, settings),
        signer=get_signer(settings),
        submitter=BundleSubmitter(
            relay,
            mode=settings.submission_mode,
            confirmation_timeout=settings.confirmation_timeout_seconds,
            grace=settings.confirmation_grace_seconds,
        ),
        aggregator=OutcomeAggregator(
            rpc,
            simulate_failed=settings.simulate_failed_bundles,
            timeout_ms=settings.confirmation_timeout_ms,
        ),
        max_bundle_transactions=settings.max_bundle_transactions,
    )


async def run(args: argparse.Namespace, settings: Settings) -> int:
    pipeline = create_pipeline(settings)

    if args.build_only:
        build = await pipeline.builder.build(
            args.branch, args.input, args.amount, pipeline.signer.get_address(),
            slippage_bps=args.slippage_bps, tip_lamports=args.tip_lamports,
        )
        print(json.dumps(build.to_dict(), indent=2))
        return 0

    mode: Optional[SubmissionMode] = SubmissionMode(args.mode) if args.mode else None
    outcome = await pipeline.run(
        args.branch, args.input, args.amount,
        slippage_bps=args.slippage_bps, tip_lamports=args.tip_lamports, mode=mode,
    )
    print(json.dumps(outcome.result.to_response(), indent=2, default=str))
    return 0 if outcome.result.success else 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.debug)

    try:
        return asyncio.run(run(args, settings))
    except BundleError as e:
        logger.error(f"Bundle run failed: {e}")
        print(json.dumps(e.to_dict(), indent=2, default=str), file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
