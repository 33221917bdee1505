"""Local signing backend.

Uses an in-memory Solana keypair. Suitable for:
- Development/testing
- The command-line runner

WARNING: The secret key is held in memory. Browser or remote wallets should
sign on their side and call the submit endpoint instead.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from solders.keypair import Keypair
from solders.message import to_bytes_versioned
from solders.transaction import VersionedTransaction

from swapbundler.signing.base import SignerType, SigningError, TransactionSigner
from swapbundler.solana.transactions import (
    TransactionDecodeError,
    decode_transaction,
    encode_transaction,
)

logger = logging.getLogger(__name__)


def load_keypair(secret: str) -> Keypair:
    """Load a keypair from a base58 secret, an inline JSON byte array, or a JSON key file.

    Raises:
        SigningError: If the secret cannot be parsed
    """
    raw = secret.strip()
    try:
        if raw.startswith("["):
            return Keypair.from_bytes(bytes(json.loads(raw)))
        path = Path(raw).expanduser()
        if path.suffix == ".json" and path.is_file():
            return Keypair.from_bytes(bytes(json.loads(path.read_text())))
        return Keypair.from_base58_string(raw)
    except (ValueError, TypeError, OSError) as e:
        raise SigningError("Invalid signer secret key", details=type(e).__name__) from e


class LocalSigner(TransactionSigner):
    """Local signing backend using one in-memory keypair."""

    def __init__(self, keypair: Keypair):
        super().__init__(SignerType.LOCAL)
        self.keypair = keypair
        logger.info(f"Loaded local signer {self.get_address()}")

    @classmethod
    def from_secret(cls, secret: str) -> "LocalSigner":
        return cls(load_keypair(secret))

    def get_address(self) -> Optional[str]:
        return str(self.keypair.pubkey())

    def _sign_one(self, blob: str) -> str:
        try:
            tx = decode_transaction(blob)
        except TransactionDecodeError as e:
            raise SigningError("Cannot sign malformed transaction", details=str(e)) from e

        message = tx.message
        pubkey = self.keypair.pubkey()
        num_signers = message.header.num_required_signatures
        signer_keys = list(message.account_keys)[:num_signers]
        if pubkey not in signer_keys:
            raise SigningError(
                "Transaction does not require this signer",
                details={"signer": str(pubkey)},
            )

        signatures = list(tx.signatures)
        signatures[signer_keys.index(pubkey)] = self.keypair.sign_message(
            to_bytes_versioned(message)
        )
        return encode_transaction(VersionedTransaction.populate(message, signatures))

    async def sign_transactions(self, transactions: list[str]) -> list[str]:
        """Sign each transaction in the signer's slot, keeping other signatures."""
        return [self._sign_one(blob) for blob in transactions]
