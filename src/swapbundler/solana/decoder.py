"""Human-readable description of a serialized transaction.

Used by the decode endpoint and by debug logging in the bundle assembler.
Lookup tables are not resolved here: accounts loaded from a table are
reported by position only.
"""

import logging
import struct
from typing import Optional

from solders.transaction import VersionedTransaction

from swapbundler.solana.transactions import (
    COMPUTE_BUDGET_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    decode_transaction,
)

logger = logging.getLogger(__name__)

# Common Solana program IDs
PROGRAM_NAMES = {
    SYSTEM_PROGRAM_ID: "System Program",
    "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA": "Token Program",
    "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb": "Token-2022 Program",
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL": "Associated Token Program",
    COMPUTE_BUDGET_PROGRAM_ID: "Compute Budget Program",
    "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4": "Jupiter Aggregator v6",
    "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc": "Whirlpool",
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8": "Raydium AMM",
}

# ComputeBudgetInstruction variants; 0 is the retired RequestUnitsDeprecated
REQUEST_HEAP_FRAME = 1
SET_COMPUTE_UNIT_LIMIT = 2
SET_COMPUTE_UNIT_PRICE = 3
SET_LOADED_ACCOUNTS_DATA_SIZE_LIMIT = 4

# SystemInstruction::Transfer
SYSTEM_TRANSFER = 2


def program_name(program_id: str) -> str:
    return PROGRAM_NAMES.get(program_id, "Unknown Program")


def decode_compute_budget(data: bytes) -> Optional[dict]:
    """Decode a compute budget instruction, or None if the layout is unknown."""
    if not data:
        return None
    kind = data[0]
    try:
        if kind == REQUEST_HEAP_FRAME:
            (value,) = struct.unpack_from("<I", data, 1)
            return {"type": "RequestHeapFrame", "bytes": value}
        if kind == SET_COMPUTE_UNIT_LIMIT:
            (value,) = struct.unpack_from("<I", data, 1)
            return {"type": "SetComputeUnitLimit", "units": value}
        if kind == SET_COMPUTE_UNIT_PRICE:
            (value,) = struct.unpack_from("<Q", data, 1)
            return {"type": "SetComputeUnitPrice", "microLamports": value}
        if kind == SET_LOADED_ACCOUNTS_DATA_SIZE_LIMIT:
            (value,) = struct.unpack_from("<I", data, 1)
            return {"type": "SetLoadedAccountsDataSizeLimit", "bytes": value}
    except struct.error:
        return None
    return None


def decode_system_instruction(data: bytes) -> Optional[dict]:
    """Decode a SystemProgram transfer, the only system instruction a bundle carries."""
    if len(data) < 12:
        return None
    (kind,) = struct.unpack_from("<I", data, 0)
    if kind != SYSTEM_TRANSFER:
        return None
    (lamports,) = struct.unpack_from("<Q", data, 4)
    return {"type": "Transfer", "lamports": lamports}


def _account_flags(tx: VersionedTransaction) -> list[tuple[Optional[str], bool, bool]]:
    """(pubkey, is_signer, is_writable) for every account index the message can reference."""
    message = tx.message
    header = message.header
    static_keys = [str(key) for key in message.account_keys]
    num_static = len(static_keys)
    num_signed = header.num_required_signatures
    num_writable_signed = num_signed - header.num_readonly_signed_accounts
    num_writable_unsigned_end = num_static - header.num_readonly_unsigned_accounts

    flags = []
    for index, key in enumerate(static_keys):
        if index < num_signed:
            flags.append((key, True, index < num_writable_signed))
        else:
            flags.append((key, False, index < num_writable_unsigned_end))

    lookups = getattr(message, "address_table_lookups", None) or []
    for lookup in lookups:
        flags.extend((None, False, True) for _ in lookup.writable_indexes)
    for lookup in lookups:
        flags.extend((None, False, False) for _ in lookup.readonly_indexes)
    return flags


def describe_transaction(blob: str) -> dict:
    """Decode a base64 transaction into a JSON-friendly description.

    Raises:
        TransactionDecodeError: If the blob is not a valid transaction
    """
    tx = decode_transaction(blob)
    message = tx.message
    flags = _account_flags(tx)
    account_keys = [str(key) for key in message.account_keys]

    instructions = []
    for compiled in message.instructions:
        program_index = compiled.program_id_index
        program_id = account_keys[program_index] if program_index < len(account_keys) else None
        data = bytes(compiled.data)

        accounts = []
        for index in compiled.accounts:
            if index < len(flags):
                pubkey, is_signer, is_writable = flags[index]
            else:
                pubkey, is_signer, is_writable = None, False, False
            accounts.append({
                "index": index,
                "pubkey": pubkey,
                "isSigner": is_signer,
                "isWritable": is_writable,
            })

        decoded = None
        if program_id == COMPUTE_BUDGET_PROGRAM_ID:
            decoded = decode_compute_budget(data)
        elif program_id == SYSTEM_PROGRAM_ID:
            decoded = decode_system_instruction(data)

        instructions.append({
            "programId": program_id,
            "programName": program_name(program_id) if program_id else "Unknown Program",
            "accounts": accounts,
            "dataHex": data.hex(),
            "dataLength": len(data),
            "decoded": decoded,
        })

    lookups = getattr(message, "address_table_lookups", None) or []
    return {
        "version": "legacy" if not hasattr(message, "address_table_lookups") else 0,
        "signatures": [str(sig) for sig in tx.signatures],
        "feePayer": account_keys[0] if account_keys else None,
        "recentBlockhash": str(message.recent_blockhash),
        "accountKeys": account_keys,
        "addressTableLookups": [
            {
                "accountKey": str(lookup.account_key),
                "writableIndexes": list(lookup.writable_indexes),
                "readonlyIndexes": list(lookup.readonly_indexes),
            }
            for lookup in lookups
        ],
        "numInstructions": len(instructions),
        "instructions": instructions,
    }


def summarize_transaction(blob: str) -> str:
    """One-line summary for debug logs, e.g. ``SetComputeUnitLimit, SetComputeUnitPrice, Jupiter Aggregator v6``."""
    description = describe_transaction(blob)
    parts = []
    for ix in description["instructions"]:
        decoded = ix["decoded"]
        parts.append(decoded["type"] if decoded else ix["programName"])
    return ", ".join(parts)
