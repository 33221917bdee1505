"""HTTP controllers for web API endpoints.

Controllers hold no state: services are created by the application factory
and read from ``request.app.state``.
"""

from swapbundler.web.controllers.bundles import router as bundles_router
from swapbundler.web.controllers.quotes import router as quotes_router
from swapbundler.web.controllers.transactions import router as transactions_router

__all__ = [
    "bundles_router",
    "quotes_router",
    "transactions_router",
]
