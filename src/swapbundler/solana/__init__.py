"""Solana helpers: transaction codec, validation, decoding and JSON-RPC."""

from swapbundler.solana.rpc import SolanaRpcClient
from swapbundler.solana.transactions import (
    TransactionDecodeError,
    decode_transaction,
    encode_transaction,
)
from swapbundler.solana.validation import (
    TransactionValidationError,
    extract_signatures,
    validate_signed_transaction,
)

__all__ = [
    "SolanaRpcClient",
    "TransactionDecodeError",
    "decode_transaction",
    "encode_transaction",
    "TransactionValidationError",
    "extract_signatures",
    "validate_signed_transaction",
]
