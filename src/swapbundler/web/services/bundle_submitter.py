"""Bundle submission and confirmation tracking.

Each bundle goes through send -> confirm and ends in exactly one
``BundleOutcome``. In parallel mode bundles are fully independent: a timeout
or failure of one never cancels another. In sequential mode bundle N is only
sent once bundle N-1 confirmed; the rest are reported as skipped.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from swapbundler.config import SubmissionMode
from swapbundler.errors import BundleError, InputValidationError, SignatureMismatchError
from swapbundler.relay.base import BundleRelay, RelayStatusKind
from swapbundler.solana.validation import (
    TransactionValidationError,
    extract_signatures,
    validate_signed_transaction,
)

logger = logging.getLogger(__name__)

TIMEOUT_NOTE = "Bundle may still be processing. Check Jito explorer for status."


class OutcomeStatus(str, Enum):
    """Terminal state of one submitted bundle."""
    CONFIRMED = "confirmed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class FailureKind(str, Enum):
    """Why a FAILED bundle failed."""
    SUBMISSION = "submission"       # Relay rejected the bundle or returned no id
    EXECUTION = "execution"         # Relay reported the bundle failed on chain
    CONFIRMATION = "confirmation"   # Status could not be obtained or decoded


@dataclass(frozen=True)
class BundleOutcome:
    """Result of submitting one bundle. ``index`` is 1-based."""

    index: int
    status: OutcomeStatus
    bundle_id: Optional[str] = None
    slot: Optional[int] = None
    signatures: tuple[str, ...] = ()
    reason: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    error: Any = None

    @classmethod
    def confirmed(cls, index: int, bundle_id: str, slot: Optional[int], signatures: list[str]) -> "BundleOutcome":
        return cls(
            index=index, status=OutcomeStatus.CONFIRMED, bundle_id=bundle_id,
            slot=slot, signatures=tuple(signatures),
        )

    @classmethod
    def failed(
        cls,
        index: int,
        reason: str,
        kind: FailureKind,
        error: Any = None,
        bundle_id: Optional[str] = None,
    ) -> "BundleOutcome":
        return cls(
            index=index, status=OutcomeStatus.FAILED, bundle_id=bundle_id,
            reason=reason, failure_kind=kind, error=error,
        )

    @classmethod
    def timed_out(cls, index: int, bundle_id: str) -> "BundleOutcome":
        return cls(
            index=index, status=OutcomeStatus.TIMED_OUT, bundle_id=bundle_id,
            reason="Bundle confirmation timeout",
        )

    @property
    def is_confirmed(self) -> bool:
        return self.status == OutcomeStatus.CONFIRMED

    def to_dict(self) -> dict:
        body: dict[str, Any] = {
            "bundleIndex": self.index,
            "bundleId": self.bundle_id,
            "success": self.is_confirmed,
        }
        if self.status == OutcomeStatus.CONFIRMED:
            body.update(confirmed=True, slot=self.slot, signatures=list(self.signatures))
        elif self.status == OutcomeStatus.FAILED:
            body.update(
                error=self.reason,
                failureKind=self.failure_kind.value if self.failure_kind else None,
                details=self.error,
            )
        else:
            body.update(error=self.reason, isTimeout=True, note=TIMEOUT_NOTE)
        return body


@dataclass
class SubmissionReport:
    """All outcomes of one submission call, in bundle order."""

    outcomes: list[BundleOutcome]
    total_bundles: int
    mode: SubmissionMode
    skipped: list[int] = field(default_factory=list)


def validate_bundles(
    bundles: Any,
    signer_address: Any,
    max_bundle_transactions: Optional[int] = None,
) -> None:
    """Run the signed-transaction guard over every transaction before anything is sent.

    Raises:
        InputValidationError: Missing or malformed bundles / signer
        SignatureMismatchError: First offending transaction, with bundle and transaction index
    """
    if not bundles or not isinstance(bundles, list):
        raise InputValidationError("Missing or invalid bundles array")
    if not signer_address or not isinstance(signer_address, str):
        raise InputValidationError("Missing signerAddress parameter")

    for bundle_index, bundle in enumerate(bundles, start=1):
        if not isinstance(bundle, list) or not bundle:
            raise InputValidationError(
                f"Bundle {bundle_index} is empty or invalid", bundleIndex=bundle_index
            )
        if max_bundle_transactions and len(bundle) > max_bundle_transactions:
            raise InputValidationError(
                f"Bundle {bundle_index} has more than {max_bundle_transactions} transactions",
                bundleIndex=bundle_index,
            )

    for bundle_index, bundle in enumerate(bundles, start=1):
        for tx_index, blob in enumerate(bundle):
            try:
                validate_signed_transaction(blob, signer_address)
            except TransactionValidationError as e:
                raise SignatureMismatchError(
                    f"Bundle {bundle_index}, transaction {tx_index}: {e.reason}",
                    details=e.details or None,
                    bundleIndex=bundle_index,
                    transactionIndex=tx_index,
                ) from e


class BundleSubmitter:
    """Submits signed bundles to a relay and waits for each to be terminal."""

    def __init__(
        self,
        relay: BundleRelay,
        mode: SubmissionMode = SubmissionMode.PARALLEL,
        confirmation_timeout: float = 30.0,
        grace: float = 5.0,
    ):
        """Initialize submitter.

        Args:
            relay: Relay client
            mode: Default submission discipline
            confirmation_timeout: Seconds to wait for each bundle to become terminal
            grace: Extra seconds before the wait is abandoned outright
        """
        self.relay = relay
        self.mode = mode
        self.confirmation_timeout = confirmation_timeout
        self.grace = grace

    async def _landed_signatures(self, bundle_id: str, bundle: list[str], known: list[str]) -> list[str]:
        """Signatures reported by the relay, else the first signature of each local transaction."""
        if known:
            return known
        try:
            signatures = await self.relay.get_bundle_signatures(bundle_id)
        except Exception as e:
            logger.warning(f"Signature lookup for {bundle_id} failed, using local signatures: {e}")
            signatures = []
        return signatures or extract_signatures(bundle)

    async def submit_one(self, index: int, bundle: list[str]) -> BundleOutcome:
        """Send one bundle and wait for it to be terminal. Never raises for relay errors."""
        logger.info(f"Submitting bundle {index} ({len(bundle)} txs)")
        try:
            bundle_id = await self.relay.send_bundle(bundle)
        except BundleError as e:
            logger.error(f"Bundle {index} submission failed: {e}")
            return BundleOutcome.failed(index, e.message, FailureKind.SUBMISSION, error=e.details)

        try:
            status = await asyncio.wait_for(
                self.relay.confirm_bundle(bundle_id, self.confirmation_timeout),
                timeout=self.confirmation_timeout + self.grace,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Bundle {index} ({bundle_id}) confirmation timed out")
            return BundleOutcome.timed_out(index, bundle_id)
        except Exception as e:
            logger.error(f"Bundle {index} ({bundle_id}) status unavailable: {e}")
            return BundleOutcome.failed(
                index, "Failed to confirm bundle status", FailureKind.CONFIRMATION,
                error=e.to_dict() if isinstance(e, BundleError) else str(e),
                bundle_id=bundle_id,
            )

        if status.is_confirmed:
            signatures = await self._landed_signatures(bundle_id, bundle, status.transactions)
            logger.info(f"Bundle {index} ({bundle_id}) confirmed in slot {status.slot}")
            return BundleOutcome.confirmed(index, bundle_id, status.slot, signatures)

        if status.kind == RelayStatusKind.FAILED:
            logger.error(f"Bundle {index} ({bundle_id}) failed: {status.error}")
            return BundleOutcome.failed(
                index, "Bundle execution failed", FailureKind.EXECUTION,
                error=status.error, bundle_id=bundle_id,
            )

        logger.warning(f"Bundle {index} ({bundle_id}) not terminal within the confirmation window")
        return BundleOutcome.timed_out(index, bundle_id)

    @staticmethod
    def _crashed(index: int, error: Exception) -> BundleOutcome:
        """Outcome for a bundle whose submission raised something unexpected."""
        logger.error(f"Bundle {index} crashed during submission", exc_info=error)
        return BundleOutcome.failed(index, str(error), FailureKind.SUBMISSION)

    async def _submit_parallel(self, bundles: list[list[str]]) -> SubmissionReport:
        results = await asyncio.gather(
            *[self.submit_one(index, bundle) for index, bundle in enumerate(bundles, start=1)],
            return_exceptions=True,
        )

        outcomes = []
        for index, result in enumerate(results, start=1):
            if isinstance(result, Exception):
                outcomes.append(self._crashed(index, result))
            elif isinstance(result, BaseException):
                raise result
            else:
                outcomes.append(result)

        return SubmissionReport(
            outcomes=outcomes, total_bundles=len(bundles), mode=SubmissionMode.PARALLEL
        )

    async def _submit_sequential(self, bundles: list[list[str]]) -> SubmissionReport:
        outcomes = []
        skipped: list[int] = []
        for index, bundle in enumerate(bundles, start=1):
            try:
                outcome = await self.submit_one(index, bundle)
            except Exception as e:
                outcome = self._crashed(index, e)
            outcomes.append(outcome)
            if not outcome.is_confirmed:
                skipped = list(range(index + 1, len(bundles) + 1))
                if skipped:
                    logger.warning(f"Bundle {index} did not confirm; skipping bundles {skipped}")
                break

        return SubmissionReport(
            outcomes=outcomes,
            total_bundles=len(bundles),
            mode=SubmissionMode.SEQUENTIAL,
            skipped=skipped,
        )

    async def submit(
        self,
        bundles: list[list[str]],
        mode: Optional[SubmissionMode] = None,
    ) -> SubmissionReport:
        """Submit all bundles using ``mode`` (default: the configured mode)."""
        mode = mode or self.mode
        logger.info(f"Submitting {len(bundles)} bundle(s) ({mode.value})")
        if mode == SubmissionMode.SEQUENTIAL:
            return await self._submit_sequential(bundles)
        return await self._submit_parallel(bundles)
