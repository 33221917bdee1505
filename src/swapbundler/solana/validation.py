"""Pre-submission guard and signature extraction for signed transactions."""

import logging
from typing import Iterable

from solders.transaction import VersionedTransaction

from swapbundler.solana.transactions import (
    TransactionDecodeError,
    decode_transaction,
    fee_payer,
)

logger = logging.getLogger(__name__)


class TransactionValidationError(ValueError):
    """A signed transaction failed the pre-submission guard."""

    def __init__(self, reason: str, **details):
        super().__init__(reason)
        self.reason = reason
        self.details = details


def validate_signed_transaction(blob: str, expected_signer: str) -> VersionedTransaction:
    """Check that a blob is a transaction signed and paid for by ``expected_signer``.

    An all-zero signature is the placeholder for "not signed yet", so at least
    one signature must carry non-zero bytes. Pure: performs no I/O.

    Returns:
        The decoded transaction

    Raises:
        TransactionValidationError: With a human readable reason
    """
    try:
        tx = decode_transaction(blob)
    except TransactionDecodeError as e:
        raise TransactionValidationError("transaction is not valid", error=str(e)) from e

    signatures = list(tx.signatures)
    if not signatures:
        raise TransactionValidationError("transaction has no signatures")

    if not any(any(bytes(sig)) for sig in signatures):
        raise TransactionValidationError("transaction appears unsigned (all-zero signatures)")

    try:
        payer = fee_payer(tx)
    except TransactionDecodeError as e:
        raise TransactionValidationError("unable to determine fee payer from transaction") from e

    if payer != expected_signer:
        raise TransactionValidationError(
            "fee payer does not match signer",
            expected=expected_signer,
            found=payer,
        )

    return tx


def first_signature(blob: str) -> str:
    """First signature of a transaction in base58 (the transaction id)."""
    tx = decode_transaction(blob)
    if not tx.signatures:
        raise TransactionDecodeError("transaction has no signatures")
    return str(tx.signatures[0])


def extract_signatures(blobs: Iterable[str]) -> list[str]:
    """First signature of every decodable transaction; undecodable ones are skipped."""
    signatures = []
    for blob in blobs:
        try:
            signatures.append(first_signature(blob))
        except TransactionDecodeError as e:
            logger.debug(f"Skipping signature extraction: {e}")
    return signatures
