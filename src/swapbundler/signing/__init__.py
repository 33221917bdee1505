"""Transaction signing services.

Provides:
- TransactionSigner: Batch signing boundary (same order, same count)
- LocalSigner: In-memory Solana keypair (CLI runner, development)
"""

from swapbundler.signing.base import (
    SignerType,
    SigningError,
    TransactionSigner,
    flatten_bundles,
    regroup_bundles,
    sign_bundles,
)
from swapbundler.signing.factory import get_signer
from swapbundler.signing.local import LocalSigner, load_keypair

__all__ = [
    "SignerType",
    "SigningError",
    "TransactionSigner",
    "flatten_bundles",
    "regroup_bundles",
    "sign_bundles",
    "LocalSigner",
    "load_keypair",
    "get_signer",
]
