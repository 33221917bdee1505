"""Versioned transaction codec and rewrites.

Swap transactions come back from the quote service compiled against address
lookup tables. To prepend compute budget instructions we decompile the
message back into instructions (resolving the tables), prepend, and recompile
against the same tables. The result is unsigned: every signature slot holds
the all-zero placeholder.
"""

import base64
import binascii
from typing import Iterable, Mapping, Sequence, Union

from solders.address_lookup_table_account import AddressLookupTableAccount
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.message import Message, MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction


COMPUTE_BUDGET_PROGRAM_ID = "ComputeBudget111111111111111111111111111111"
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

AnyMessage = Union[Message, MessageV0]


class TransactionDecodeError(ValueError):
    """Raised when a blob is not base64 of a serialized versioned transaction."""


def decode_transaction(blob: str) -> VersionedTransaction:
    """Decode a base64 wire transaction."""
    if not blob or not isinstance(blob, str):
        raise TransactionDecodeError("transaction is empty or not a string")
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as e:
        raise TransactionDecodeError(f"invalid base64: {e}") from e
    try:
        return VersionedTransaction.from_bytes(raw)
    except Exception as e:
        raise TransactionDecodeError(f"invalid transaction bytes: {e}") from e


def encode_transaction(tx: VersionedTransaction) -> str:
    """Serialize a transaction to base64 wire format."""
    return base64.b64encode(bytes(tx)).decode("ascii")


def unsigned_transaction(message: AnyMessage) -> VersionedTransaction:
    """Wrap a message with all-zero placeholder signatures."""
    placeholders = [Signature.default()] * message.header.num_required_signatures
    return VersionedTransaction.populate(message, placeholders)


def fee_payer(tx: VersionedTransaction) -> str:
    """First static account key, the fee payer by protocol convention."""
    keys = tx.message.account_keys
    if not keys:
        raise TransactionDecodeError("transaction has no account keys")
    return str(keys[0])


def recent_blockhash(tx: VersionedTransaction) -> str:
    return str(tx.message.recent_blockhash)


def lookup_table_keys(txs: Iterable[VersionedTransaction]) -> list[str]:
    """Distinct lookup table addresses referenced by the transactions, first-seen order."""
    seen: list[str] = []
    for tx in txs:
        for lookup in getattr(tx.message, "address_table_lookups", None) or []:
            key = str(lookup.account_key)
            if key not in seen:
                seen.append(key)
    return seen


def lookup_table_accounts(
    message: AnyMessage,
    tables: Mapping[str, Sequence[Pubkey]],
) -> list[AddressLookupTableAccount]:
    """Resolved lookup table accounts for a message, in the message's lookup order."""
    accounts = []
    for lookup in getattr(message, "address_table_lookups", None) or []:
        key = str(lookup.account_key)
        if key not in tables:
            raise TransactionDecodeError(f"lookup table {key} was not resolved")
        accounts.append(AddressLookupTableAccount(lookup.account_key, list(tables[key])))
    return accounts


def _loaded_addresses(
    message: AnyMessage,
    tables: Mapping[str, Sequence[Pubkey]],
) -> tuple[list[Pubkey], list[Pubkey]]:
    writable: list[Pubkey] = []
    readonly: list[Pubkey] = []
    for lookup in getattr(message, "address_table_lookups", None) or []:
        key = str(lookup.account_key)
        if key not in tables:
            raise TransactionDecodeError(f"lookup table {key} was not resolved")
        addresses = tables[key]
        try:
            writable.extend(addresses[i] for i in lookup.writable_indexes)
            readonly.extend(addresses[i] for i in lookup.readonly_indexes)
        except IndexError as e:
            raise TransactionDecodeError(f"lookup table {key} index out of range") from e
    return writable, readonly


def decompile_instructions(
    message: AnyMessage,
    tables: Mapping[str, Sequence[Pubkey]],
) -> list[Instruction]:
    """Rebuild full instructions from a compiled message.

    Account order for v0 messages: static keys, then writable loaded
    addresses, then readonly loaded addresses.
    """
    header = message.header
    static_keys = list(message.account_keys)
    writable_loaded, readonly_loaded = _loaded_addresses(message, tables)
    all_keys = static_keys + writable_loaded + readonly_loaded

    num_static = len(static_keys)
    num_signed = header.num_required_signatures
    num_writable_signed = num_signed - header.num_readonly_signed_accounts
    num_writable_unsigned_end = num_static - header.num_readonly_unsigned_accounts

    def meta(index: int) -> AccountMeta:
        if index < num_static:
            is_signer = index < num_signed
            if is_signer:
                is_writable = index < num_writable_signed
            else:
                is_writable = index < num_writable_unsigned_end
        else:
            is_signer = False
            is_writable = index < num_static + len(writable_loaded)
        return AccountMeta(all_keys[index], is_signer, is_writable)

    instructions = []
    for compiled in message.instructions:
        try:
            program_id = all_keys[compiled.program_id_index]
            accounts = [meta(i) for i in compiled.accounts]
        except IndexError as e:
            raise TransactionDecodeError("instruction references unknown account index") from e
        instructions.append(Instruction(program_id, bytes(compiled.data), accounts))
    return instructions


def add_compute_budget(
    tx: VersionedTransaction,
    tables: Mapping[str, Sequence[Pubkey]],
    unit_limit: int,
    unit_price_micro_lamports: int,
) -> VersionedTransaction:
    """Prepend compute unit limit and price instructions and recompile unsigned.

    The blockhash, payer and lookup tables of the original message are kept.
    """
    message = tx.message
    instructions = decompile_instructions(message, tables)
    instructions = [
        set_compute_unit_limit(unit_limit),
        set_compute_unit_price(unit_price_micro_lamports),
        *instructions,
    ]
    rebuilt = MessageV0.try_compile(
        message.account_keys[0],
        instructions,
        lookup_table_accounts(message, tables),
        message.recent_blockhash,
    )
    return unsigned_transaction(rebuilt)


def build_tip_transaction(
    payer: str,
    tip_account: str,
    lamports: int,
    blockhash: str,
) -> VersionedTransaction:
    """Unsigned v0 transaction with a single SystemProgram transfer to the tip account."""
    payer_key = Pubkey.from_string(payer)
    instruction = transfer(
        TransferParams(
            from_pubkey=payer_key,
            to_pubkey=Pubkey.from_string(tip_account),
            lamports=lamports,
        )
    )
    message = MessageV0.try_compile(payer_key, [instruction], [], Hash.from_string(blockhash))
    return unsigned_transaction(message)
