"""Health check endpoints."""

from fastapi import APIRouter, Request

from swapbundler import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness check. No upstream is contacted."""
    return {"status": "healthy", "service": "swapbundler"}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Wiring and redacted configuration of this instance."""
    state = request.app.state
    return {
        "status": "healthy",
        "service": "swapbundler",
        "version": __version__,
        "quoteFetcher": state.quote_service.quote_fetcher.name,
        "relay": state.bundle_submitter.relay.name,
        "submissionMode": state.bundle_submitter.mode.value,
        "config": state.settings.get_safe_dict(),
    }
