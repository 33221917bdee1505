"""Web services for the bundle lifecycle.

The HTTP services never hold keys:
- BundleBuilder prepares unsigned bundles for client-side signing
- BundleSubmitter relays bundles the client already signed
- OutcomeAggregator turns per-bundle outcomes into one response
"""

from swapbundler.web.services.bundle_builder import BuildResult, BundleBuilder, TipAccountSelector
from swapbundler.web.services.bundle_submitter import (
    BundleOutcome,
    BundleSubmitter,
    FailureKind,
    OutcomeStatus,
    SubmissionReport,
    validate_bundles,
)
from swapbundler.web.services.outcome_aggregator import (
    CallResult,
    CallStatus,
    OutcomeAggregator,
    classify_outcomes,
)
from swapbundler.web.services.pipeline import BundlePipeline, PipelineResult
from swapbundler.web.services.quote_service import QuoteService

__all__ = [
    "BuildResult",
    "BundleBuilder",
    "TipAccountSelector",
    "BundleOutcome",
    "BundleSubmitter",
    "FailureKind",
    "OutcomeStatus",
    "SubmissionReport",
    "validate_bundles",
    "CallResult",
    "CallStatus",
    "OutcomeAggregator",
    "classify_outcomes",
    "BundlePipeline",
    "PipelineResult",
    "QuoteService",
]
