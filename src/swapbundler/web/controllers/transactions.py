"""Transaction inspection endpoints."""

from fastapi import APIRouter

from swapbundler.errors import InputValidationError
from swapbundler.solana.decoder import describe_transaction
from swapbundler.solana.transactions import TransactionDecodeError
from swapbundler.web.contracts.transactions import DecodedTransaction, DecodeTransactionRequest

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post("/decode", response_model=DecodedTransaction)
async def decode_transaction(body: DecodeTransactionRequest) -> DecodedTransaction:
    """Decode a base64 transaction: fee payer, blockhash, instructions.

    Lookup-table accounts are reported by index only.
    """
    if not body.transaction:
        raise InputValidationError("Missing transaction parameter")
    try:
        description = describe_transaction(body.transaction)
    except TransactionDecodeError as e:
        raise InputValidationError("Transaction is not valid", details=str(e)) from e
    return DecodedTransaction(**description)
