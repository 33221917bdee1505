"""Quote API endpoints."""

from fastapi import APIRouter, Request

from swapbundler.web.contracts.quotes import QuoteOrderRequest, QuoteOrderResponse

router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post("/order", response_model=QuoteOrderResponse)
async def get_order(body: QuoteOrderRequest, request: Request) -> QuoteOrderResponse:
    """Get one unsigned swap transaction from the quote service.

    This is a READ-ONLY operation - nothing is signed or submitted.
    """
    quote = await request.app.state.quote_service.get_order(
        body.input_mint,
        body.output_mint,
        body.amount,
        body.taker,
        slippage_bps=body.slippage_bps,
    )
    return QuoteOrderResponse.from_quote(quote)
