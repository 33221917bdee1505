"""End-to-end bundle pipeline: build -> sign -> validate -> submit -> aggregate.

Used by the command-line runner, which holds a local keypair. The HTTP
service runs the same steps split across the build and submit endpoints,
with signing done by the client in between.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from swapbundler.config import SubmissionMode
from swapbundler.errors import ConfigurationError
from swapbundler.signing.base import TransactionSigner, sign_bundles
from swapbundler.web.services.bundle_builder import BuildResult, BundleBuilder
from swapbundler.web.services.bundle_submitter import BundleSubmitter, validate_bundles
from swapbundler.web.services.outcome_aggregator import CallResult, OutcomeAggregator

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    build: BuildResult
    result: CallResult


class BundlePipeline:
    """Runs the whole bundle lifecycle with one signer."""

    def __init__(
        self,
        builder: BundleBuilder,
        signer: TransactionSigner,
        submitter: BundleSubmitter,
        aggregator: OutcomeAggregator,
        max_bundle_transactions: Optional[int] = None,
    ):
        self.builder = builder
        self.signer = signer
        self.submitter = submitter
        self.aggregator = aggregator
        self.max_bundle_transactions = max_bundle_transactions

    async def run(
        self,
        branches: list[list[str]],
        input_asset: str,
        amount: Any,
        slippage_bps: Optional[int] = None,
        tip_lamports: Optional[int] = None,
        mode: Optional[SubmissionMode] = None,
    ) -> PipelineResult:
        signer_address = self.signer.get_address()
        if not signer_address:
            raise ConfigurationError("Signer has no address")

        build = await self.builder.build(
            branches, input_asset, amount, signer_address,
            slippage_bps=slippage_bps, tip_lamports=tip_lamports,
        )
        signed = await sign_bundles(self.signer, build.bundles)
        validate_bundles(signed, signer_address, self.max_bundle_transactions)

        report = await self.submitter.submit(signed, mode)
        result = await self.aggregator.aggregate(report.outcomes, signed, report.skipped)
        return PipelineResult(build=build, result=result)
