"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from swapbundler import __version__
from swapbundler.config import Settings, get_settings
from swapbundler.errors import BundleError
from swapbundler.relay.base import BundleRelay
from swapbundler.relay.jito import JitoRelayClient
from swapbundler.routing.base import QuoteFetcher
from swapbundler.routing.jupiter import JupiterUltraFetcher
from swapbundler.solana.rpc import SolanaRpcClient
from swapbundler.web.services.bundle_builder import BundleBuilder
from swapbundler.web.services.bundle_submitter import BundleSubmitter
from swapbundler.web.services.outcome_aggregator import OutcomeAggregator
from swapbundler.web.services.quote_service import QuoteService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = app.state.settings
    logger.info(
        f"swapbundler API starting ({settings.environment}, "
        f"relay {settings.relay_url}, {settings.submission_mode.value} submission)"
    )
    if not settings.quote_api_key:
        logger.warning("QUOTE_API_KEY not set - bundle building will fail")
    yield
    logger.info("swapbundler API stopped")


async def bundle_error_handler(request: Request, exc: BundleError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error in {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc)},
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    quote_fetcher: Optional[QuoteFetcher] = None,
    relay: Optional[BundleRelay] = None,
    rpc: Optional[SolanaRpcClient] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators default to the real Jupiter, Jito and Solana RPC clients
    built from ``settings``; tests pass fakes instead.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Swapbundler API",
        description="Atomic Solana swap bundles via the Jito block engine",
        version=__version__,
        lifespan=lifespan,
        # Errors always render through the JSON handlers below
        debug=False,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    quote_fetcher = quote_fetcher or JupiterUltraFetcher(
        api_key=settings.quote_api_key,
        base_url=settings.quote_base_url,
        timeout=settings.request_timeout_seconds,
        excluded_routers=settings.excluded_router_list,
    )
    relay = relay or JitoRelayClient(
        relay_url=settings.relay_url,
        auth_token=settings.relay_auth_token or None,
        poll_interval=settings.confirmation_poll_interval_seconds,
    )
    rpc = rpc or SolanaRpcClient(settings.rpc_url, timeout=settings.request_timeout_seconds)

    app.state.settings = settings
    app.state.quote_service = QuoteService(quote_fetcher)
    app.state.bundle_builder = BundleBuilder(quote_fetcher, rpc, settings)
    app.state.bundle_submitter = BundleSubmitter(
        relay,
        mode=settings.submission_mode,
        confirmation_timeout=settings.confirmation_timeout_seconds,
        grace=settings.confirmation_grace_seconds,
    )
    app.state.outcome_aggregator = OutcomeAggregator(
        rpc,
        simulate_failed=settings.simulate_failed_bundles,
        timeout_ms=settings.confirmation_timeout_ms,
    )

    app.add_exception_handler(BundleError, bundle_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Register routes
    from swapbundler.api.routes import health
    from swapbundler.web.controllers import bundles_router, quotes_router, transactions_router

    app.include_router(health.router, tags=["Health"])
    app.include_router(health.router, prefix="/api/v1", tags=["Health"])
    app.include_router(bundles_router, prefix="/api/v1")
    app.include_router(quotes_router, prefix="/api/v1")
    app.include_router(transactions_router, prefix="/api/v1")

    return app


# Default app instance
app = create_app()
