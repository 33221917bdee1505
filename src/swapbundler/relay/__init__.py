"""Bundle relays."""

from swapbundler.relay.base import (
    BundleRelay,
    RelayStatus,
    RelayStatusKind,
    decode_bundle_status,
)
from swapbundler.relay.jito import JitoRelayClient

__all__ = [
    "BundleRelay",
    "RelayStatus",
    "RelayStatusKind",
    "decode_bundle_status",
    "JitoRelayClient",
]
