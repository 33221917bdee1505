"""Base interface for the signing boundary.

Signing flow:
1. Bundle assembler emits unsigned bundles
2. All transactions of all bundles are flattened into one ordered list
3. Signer returns the same list signed (same order, same count)
4. The signed list is regrouped into bundles using the original sizes
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from swapbundler.errors import BundleError

logger = logging.getLogger(__name__)


class SignerType(str, Enum):
    """Type of signing backend."""
    LOCAL = "local"           # Keypair in memory (CLI runner, development)
    EXTERNAL = "external"     # Wallet outside this process (browser, remote service)


class SigningError(BundleError):
    """Exception raised when signing fails or breaks the order/count contract."""

    status_code = 500


class TransactionSigner(ABC):
    """Abstract base class for signing backends.

    Implementations never expose raw private keys; they only return signed
    transactions.
    """

    def __init__(self, signer_type: SignerType):
        self.signer_type = signer_type

    @abstractmethod
    async def sign_transactions(self, transactions: list[str]) -> list[str]:
        """Sign an ordered list of base64 transactions.

        Args:
            transactions: Unsigned (or partially signed) base64 transactions

        Returns:
            The same transactions signed, in the same order
        """
        pass

    @abstractmethod
    def get_address(self) -> Optional[str]:
        """Base58 address of the signing key, if known."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.signer_type.value})"


def flatten_bundles(bundles: list[list[str]]) -> tuple[list[str], list[int]]:
    """Flatten bundles into one list, returning the per-bundle sizes for regrouping."""
    flat = [tx for bundle in bundles for tx in bundle]
    return flat, [len(bundle) for bundle in bundles]


def regroup_bundles(transactions: list[str], sizes: list[int]) -> list[list[str]]:
    """Split a flat list back into bundles of the given sizes."""
    if len(transactions) != sum(sizes):
        raise SigningError(
            "Cannot regroup signed transactions",
            details={"expected": sum(sizes), "received": len(transactions)},
        )
    bundles = []
    offset = 0
    for size in sizes:
        bundles.append(transactions[offset:offset + size])
        offset += size
    return bundles


async def sign_bundles(signer: TransactionSigner, bundles: list[list[str]]) -> list[list[str]]:
    """Sign every transaction of every bundle in a single batch call.

    Raises:
        SigningError: If the signer returns a different number of transactions
    """
    flat, sizes = flatten_bundles(bundles)
    logger.info(f"Signing {len(flat)} transaction(s) across {len(bundles)} bundle(s)")

    signed = await signer.sign_transactions(flat)
    if len(signed) != len(flat):
        raise SigningError(
            "Signer returned a different number of transactions",
            details={"expected": len(flat), "received": len(signed)},
        )
    return regroup_bundles(signed, sizes)
