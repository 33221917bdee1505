"""Signer factory.

Creates the signing backend for the command-line runner. The HTTP service
never signs: clients sign on their side and call the submit endpoint.
"""

import logging

from swapbundler.config import Settings
from swapbundler.errors import ConfigurationError
from swapbundler.signing.base import TransactionSigner
from swapbundler.signing.local import LocalSigner

logger = logging.getLogger(__name__)


def get_signer(settings: Settings) -> TransactionSigner:
    """Get the configured signer.

    Raises:
        ConfigurationError: If no signer secret is configured
    """
    if not settings.signer_private_key:
        raise ConfigurationError(
            "No signer configured",
            details="Set SIGNER_PRIVATE_KEY to a base58 secret, JSON byte array or key file",
        )
    logger.info("Initializing local signer")
    return LocalSigner.from_secret(settings.signer_private_key)
