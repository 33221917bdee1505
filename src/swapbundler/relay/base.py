"""Relay interface and bundle status decoding.

The block engine reports bundle state in two shapes:

- in-flight: ``{"bundle_id", "status": "Invalid|Pending|Failed|Landed", "landed_slot"}``
- final: ``{"bundle_id", "transactions", "slot", "confirmation_status", "err"}``

Both are decoded exactly once into a ``RelayStatus``; nothing downstream
inspects raw payloads.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class RelayStatusKind(str, Enum):
    """Decoded relay status."""
    CONFIRMED = "confirmed"   # confirmation_status confirmed/finalized
    LANDED = "landed"         # in-flight status Landed
    FAILED = "failed"         # in-flight status Failed, or err on the final status
    UNKNOWN = "unknown"       # Pending, Invalid, processed, missing


CONFIRMED_LEVELS = ("confirmed", "finalized")


@dataclass
class RelayStatus:
    """One decoded bundle status."""

    kind: RelayStatusKind
    slot: Optional[int] = None
    error: Any = None
    transactions: list[str] = field(default_factory=list)
    raw: Any = None

    @property
    def is_confirmed(self) -> bool:
        return self.kind in (RelayStatusKind.CONFIRMED, RelayStatusKind.LANDED)

    @property
    def is_terminal(self) -> bool:
        return self.kind != RelayStatusKind.UNKNOWN


def _is_error(err: Any) -> bool:
    """``{"Ok": null}`` is the relay's way of saying no error."""
    if not err:
        return False
    if isinstance(err, dict) and set(err) == {"Ok"}:
        return False
    return True


def decode_bundle_status(payload: Optional[dict]) -> RelayStatus:
    """Decode either status shape into a ``RelayStatus``."""
    if not payload or not isinstance(payload, dict):
        return RelayStatus(kind=RelayStatusKind.UNKNOWN, raw=payload)

    slot = payload.get("slot") or payload.get("landed_slot")
    transactions = list(payload.get("transactions") or [])
    err = payload.get("err")

    if _is_error(err):
        return RelayStatus(
            kind=RelayStatusKind.FAILED, slot=slot, error=err,
            transactions=transactions, raw=payload,
        )

    status = payload.get("status")
    if status == "Failed":
        return RelayStatus(
            kind=RelayStatusKind.FAILED, slot=slot, error=f"Status: {status}",
            transactions=transactions, raw=payload,
        )
    if payload.get("confirmation_status") in CONFIRMED_LEVELS:
        return RelayStatus(
            kind=RelayStatusKind.CONFIRMED, slot=slot,
            transactions=transactions, raw=payload,
        )
    if status == "Landed":
        return RelayStatus(
            kind=RelayStatusKind.LANDED, slot=slot,
            transactions=transactions, raw=payload,
        )
    return RelayStatus(kind=RelayStatusKind.UNKNOWN, slot=slot, transactions=transactions, raw=payload)


class BundleRelay(ABC):
    """Abstract base class for bundle relays."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Relay name identifier."""
        pass

    @abstractmethod
    async def send_bundle(self, transactions: list[str]) -> str:
        """
        Submit one bundle of signed base64 transactions.

        Returns:
            Relay-assigned bundle id

        Raises:
            SubmissionError: If the relay rejects the bundle or returns no id
        """
        pass

    @abstractmethod
    async def confirm_bundle(self, bundle_id: str, timeout: float) -> RelayStatus:
        """
        Wait until the bundle is terminal or ``timeout`` seconds elapse.

        Returns:
            The last decoded status; UNKNOWN means the window elapsed
        """
        pass

    @abstractmethod
    async def get_bundle_signatures(self, bundle_id: str) -> list[str]:
        """Signatures of the transactions that landed with the bundle."""
        pass
