"""Classification of per-bundle outcomes into one call result.

Precedence: any timeout -> TIMEOUT (408), else any failure -> FAILED (400)
or SUBMISSION_FAILED (500) when no bundle reached the chain, else SUCCESS.
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from swapbundler.solana.rpc import SolanaRpcClient
from swapbundler.web.services.bundle_submitter import (
    TIMEOUT_NOTE,
    BundleOutcome,
    FailureKind,
    OutcomeStatus,
)

logger = logging.getLogger(__name__)


class CallStatus(str, Enum):
    """Overall status of a submission call."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    FAILED = "failed"
    SUBMISSION_FAILED = "submission_failed"


HTTP_STATUS = {
    CallStatus.SUCCESS: 200,
    CallStatus.TIMEOUT: 408,
    CallStatus.FAILED: 400,
    CallStatus.SUBMISSION_FAILED: 500,
}


@dataclass(frozen=True)
class CallResult:
    """Aggregated result of one submission call."""

    status: CallStatus
    total_bundles: int
    successful: tuple[BundleOutcome, ...] = ()
    failed: tuple[BundleOutcome, ...] = ()
    timed_out: tuple[BundleOutcome, ...] = ()
    skipped: tuple[int, ...] = ()
    timeout_ms: Optional[int] = None
    # bundle index -> per-transaction simulation diagnostics
    simulations: dict = field(default_factory=dict)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.status]

    @property
    def success(self) -> bool:
        return self.status == CallStatus.SUCCESS

    @property
    def successful_bundles(self) -> list[int]:
        return [o.index for o in self.successful]

    @property
    def failed_bundles(self) -> list[int]:
        return [o.index for o in self.failed]

    @property
    def timeout_bundles(self) -> list[int]:
        return [o.index for o in self.timed_out]

    def _failed_entry(self, outcome: BundleOutcome) -> dict:
        entry = outcome.to_dict()
        if outcome.index in self.simulations:
            entry["simulation"] = self.simulations[outcome.index]
        return entry

    def to_response(self) -> dict:
        """Render as the HTTP response body."""
        successful = [o.to_dict() for o in self.successful]
        body: dict[str, Any] = {"success": self.success, "totalBundles": self.total_bundles}

        if self.status == CallStatus.SUCCESS:
            body["results"] = successful
        elif self.status == CallStatus.TIMEOUT:
            body["error"] = f"{len(self.timed_out)} bundle(s) timed out"
            body["note"] = TIMEOUT_NOTE
            if self.timeout_ms is not None:
                body["timeout"] = f"{self.timeout_ms}ms"
        elif self.status == CallStatus.SUBMISSION_FAILED:
            body["error"] = f"{len(self.failed)} bundle(s) could not be submitted"
        else:
            body["error"] = f"{len(self.failed)} bundle(s) failed"

        body["successfulBundles"] = successful
        body["failedBundles"] = [self._failed_entry(o) for o in self.failed]
        body["timeoutBundles"] = self.timeout_bundles
        body["skippedBundles"] = list(self.skipped)
        return body


def classify_outcomes(
    outcomes: Iterable[BundleOutcome],
    total_bundles: int,
    skipped: Iterable[int] = (),
    timeout_ms: Optional[int] = None,
) -> CallResult:
    """Classify outcomes into one ``CallResult``. Pure and idempotent."""
    ordered = sorted(outcomes, key=lambda o: o.index)
    successful = tuple(o for o in ordered if o.status == OutcomeStatus.CONFIRMED)
    failed = tuple(o for o in ordered if o.status == OutcomeStatus.FAILED)
    timed_out = tuple(o for o in ordered if o.status == OutcomeStatus.TIMED_OUT)

    if timed_out:
        status = CallStatus.TIMEOUT
    elif failed:
        if all(o.failure_kind != FailureKind.EXECUTION for o in failed):
            status = CallStatus.SUBMISSION_FAILED
        else:
            status = CallStatus.FAILED
    else:
        status = CallStatus.SUCCESS

    return CallResult(
        status=status,
        total_bundles=total_bundles,
        successful=successful,
        failed=failed,
        timed_out=timed_out,
        skipped=tuple(sorted(skipped)),
        timeout_ms=timeout_ms,
    )


class OutcomeAggregator:
    """Classifies outcomes and attaches dry-run diagnostics to failed bundles."""

    def __init__(
        self,
        rpc: Optional[SolanaRpcClient] = None,
        simulate_failed: bool = True,
        timeout_ms: Optional[int] = None,
    ):
        self.rpc = rpc
        self.simulate_failed = simulate_failed and rpc is not None
        self.timeout_ms = timeout_ms

    async def _simulate_one(self, tx_index: int, transaction: str) -> dict:
        try:
            value = await self.rpc.simulate_transaction(transaction)
        except Exception as e:
            # A failed dry-run never changes the outcome
            logger.warning(f"Simulation of transaction {tx_index} failed: {e}")
            return {
                "transactionIndex": tx_index,
                "success": False,
                "simulationError": f"could not simulate: {e}",
            }
        return {
            "transactionIndex": tx_index,
            "success": value.get("err") is None,
            "error": value.get("err"),
            "logs": value.get("logs") or [],
            "unitsConsumed": value.get("unitsConsumed"),
        }

    async def simulate_bundle(self, bundle: list[str]) -> list[dict]:
        """Dry-run every transaction of a bundle. Never raises for RPC errors."""
        return list(
            await asyncio.gather(
                *[self._simulate_one(i, tx) for i, tx in enumerate(bundle)]
            )
        )

    async def aggregate(
        self,
        outcomes: Iterable[BundleOutcome],
        bundles: list[list[str]],
        skipped: Iterable[int] = (),
    ) -> CallResult:
        result = classify_outcomes(outcomes, len(bundles), skipped, self.timeout_ms)
        logger.info(
            f"Submission result: {result.status.value} "
            f"(ok={result.successful_bundles}, failed={result.failed_bundles}, "
            f"timeout={result.timeout_bundles}, skipped={list(result.skipped)})"
        )

        if not self.simulate_failed or not result.failed:
            return result

        indices = [o.index for o in result.failed if 0 < o.index <= len(bundles)]
        diagnostics = await asyncio.gather(
            *[self.simulate_bundle(bundles[i - 1]) for i in indices]
        )
        return dataclasses.replace(result, simulations=dict(zip(indices, diagnostics)))
