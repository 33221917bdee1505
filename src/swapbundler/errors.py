"""Error taxonomy for bundle building and submission.

Every error carries the HTTP status it maps to, so the API layer can render
it without re-classifying. Context keys (branchIndex, bundleIndex, ...) are
merged into the JSON error body next to ``error`` and ``details``.
"""

from typing import Any, Optional


class BundleError(Exception):
    """Base class for all errors raised by the bundle lifecycle."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Any = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        self.context = {k: v for k, v in context.items() if v is not None}

    def with_context(self, message: Optional[str] = None, **context: Any) -> "BundleError":
        """Return the same error enriched with extra context (and optionally a new message)."""
        if message:
            self.message = message
            self.args = (message,)
        self.context.update({k: v for k, v in context.items() if v is not None})
        return self

    def to_dict(self) -> dict:
        """Render as a structured error body."""
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.context)
        return body

    def __str__(self) -> str:
        if self.details is None:
            return self.message
        return f"{self.message}: {self.details}"


class InputValidationError(BundleError):
    """Malformed or missing request fields. No partial work has been done."""

    status_code = 400


class UpstreamQuoteError(BundleError):
    """Quote service returned an error, a non-200 status or an empty transaction."""

    status_code = 400


class SignatureMismatchError(BundleError):
    """A submitted transaction is malformed, unsigned or paid by someone else."""

    status_code = 400


class SubmissionError(BundleError):
    """Relay rejected the bundle or returned no bundle id."""

    status_code = 500


class ConfigurationError(BundleError):
    """Required configuration (API key, tip accounts, ...) is missing."""

    status_code = 500


class RpcError(BundleError):
    """Solana JSON-RPC call failed or returned an error payload."""

    status_code = 502


class LookupTableError(UpstreamQuoteError):
    """An address lookup table referenced by a quoted transaction could not be resolved."""
