"""Bundle API endpoints.

Build returns unsigned bundles; the client signs them and calls submit.
The server never signs.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from swapbundler.errors import InputValidationError
from swapbundler.web.contracts.bundles import (
    BuildBundlesRequest,
    BuildBundlesResponse,
    SubmitBundleRequest,
    SubmitBundlesRequest,
)
from swapbundler.web.services.bundle_submitter import validate_bundles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bundles", tags=["bundles"])


@router.post("/build", response_model=BuildBundlesResponse)
async def build_bundles(body: BuildBundlesRequest, request: Request) -> BuildBundlesResponse:
    """Build one unsigned bundle per branch.

    Each bundle holds the branch's swap transactions in order followed by one
    tip transaction.
    """
    builder = request.app.state.bundle_builder
    result = await builder.build(
        body.branches,
        body.input_asset,
        body.amount,
        body.signer_address,
        slippage_bps=body.slippage_bps,
        tip_lamports=body.tip_lamports,
    )
    return BuildBundlesResponse(
        bundles=result.bundles,
        total_swaps=result.total_swaps,
        total_bundles=result.total_bundles,
    )


async def _submit(request: Request, bundles: list, signer_address: str, mode=None):
    settings = request.app.state.settings
    validate_bundles(bundles, signer_address, settings.max_bundle_transactions)

    report = await request.app.state.bundle_submitter.submit(bundles, mode)
    return await request.app.state.outcome_aggregator.aggregate(
        report.outcomes, bundles, report.skipped
    )


@router.post("/submit")
async def submit_bundles(body: SubmitBundlesRequest, request: Request) -> JSONResponse:
    """Submit signed bundles and wait for each to land, fail or time out.

    Status codes: 200 all landed, 408 any timed out, 400 any failed,
    500 none could be submitted.
    """
    result = await _submit(request, body.bundles, body.signer_address, body.mode)
    return JSONResponse(content=result.to_response(), status_code=result.http_status)


@router.post("/submit-one")
async def submit_bundle(body: SubmitBundleRequest, request: Request) -> JSONResponse:
    """Submit a single signed bundle."""
    if not body.transactions or not isinstance(body.transactions, list):
        raise InputValidationError("Missing or invalid transactions array")

    result = await _submit(request, [body.transactions], body.signer_address)
    content = result.to_response()
    if result.success:
        content.update(result.successful[0].to_dict())
    return JSONResponse(content=content, status_code=result.http_status)
