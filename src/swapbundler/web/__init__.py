"""Web boundary layer.

The HTTP service is non-custodial: it builds unsigned bundles, relays bundles
the client signed, and reports outcomes. It never holds a private key, so
nothing under web/ imports from signing/ except the CLI pipeline.
"""

__all__ = [
    "contracts",
    "services",
    "controllers",
]
