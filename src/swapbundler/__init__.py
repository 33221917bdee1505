"""Swapbundler - atomic Solana swap bundles submitted through the Jito block engine."""

__version__ = "0.1.0"
